"""Pydantic models for the control surface."""

from .accounts import AccountCreateRequest
from .common import ActionResponse, CountResponse

__all__ = [
    "AccountCreateRequest",
    "ActionResponse",
    "CountResponse",
]
