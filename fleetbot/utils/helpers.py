"""Helper functions for scheduling, location checks and profile naming."""

import hashlib
import random
import re
from typing import Iterable
from urllib.parse import urlsplit


def jittered_interval(min_seconds: float, max_seconds: float) -> float:
    """
    Draw a delay uniformly from the closed window [min_seconds, max_seconds].

    Args:
        min_seconds: Lower bound in seconds
        max_seconds: Upper bound in seconds

    Returns:
        Delay in seconds

    Raises:
        ValueError: If the window is negative or inverted
    """
    if min_seconds < 0 or max_seconds < min_seconds:
        raise ValueError(f"Invalid jitter window [{min_seconds}, {max_seconds}]")
    return random.uniform(min_seconds, max_seconds)


def is_login_surface(location: str, markers: Iterable[str]) -> bool:
    """Check whether a URL looks like an authentication boundary."""
    if not location:
        return False
    lowered = location.lower()
    return any(marker.lower() in lowered for marker in markers if marker)


def _normalize(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.netloc.lower()}{parts.path.rstrip('/')}".lower()


def same_resource(location: str, resource_url: str) -> bool:
    """
    Check whether a location is on a resource, ignoring scheme, query and fragment.

    Sub-paths of the resource count as the resource itself.

    Args:
        location: Current browser location
        resource_url: Resource URL to compare against

    Returns:
        True if the location is the resource or below it
    """
    if not location or not resource_url:
        return False
    here = _normalize(location)
    there = _normalize(resource_url)
    return here == there or here.startswith(there + "/")


def profile_key(login_id: str) -> str:
    """
    Derive a filesystem-safe, collision-free directory name for an account.

    The readable part keeps only ``[a-z0-9]`` runs of the login id; the digest
    suffix keeps ids that normalize alike apart.

    Example: Someone@Example.com -> someone-example-com-<12 hex digits>
    """
    slug = re.sub(r"[^a-z0-9]+", "-", login_id.lower()).strip("-")[:40] or "account"
    digest = hashlib.sha256(login_id.encode("utf-8")).hexdigest()[:12]
    return f"{slug}-{digest}"


def format_duration(seconds: float) -> str:
    """Format a duration as ``1h 2m 3s`` (leading zero units omitted)."""
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
