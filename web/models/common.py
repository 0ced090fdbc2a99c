"""Common shared models for the control surface."""

from pydantic import BaseModel


class ActionResponse(BaseModel):
    """Result of a mutation."""

    success: bool
    message: str


class CountResponse(ActionResponse):
    """Result of a batch start/stop."""

    count: int
