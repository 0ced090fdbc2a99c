"""Utility functions for masking sensitive data in logs and outputs."""


def mask_identifier(value: str) -> str:
    """
    Mask a login identifier for logging purposes.

    Example: someone@example.com -> som...om

    Args:
        value: Login identifier (email, phone or username)

    Returns:
        Masked identifier keeping the first three and last two characters
    """
    if not value or len(value) <= 5:
        return "..."
    return f"{value[:3]}...{value[-2:]}"

