"""Utility helpers."""

from .helpers import (
    format_duration,
    is_login_surface,
    jittered_interval,
    profile_key,
    same_resource,
)
from .masking import mask_identifier

__all__ = [
    "jittered_interval",
    "is_login_surface",
    "same_resource",
    "format_duration",
    "profile_key",
    "mask_identifier",
]
