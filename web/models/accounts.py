"""Account models for the control surface."""

from pydantic import BaseModel, Field


class AccountCreateRequest(BaseModel):
    """Account creation request."""

    username: str = Field(min_length=1, description="Login identifier")
    password: str = Field(min_length=1)
    handle: str = Field(
        min_length=1,
        max_length=50,
        pattern=r"^[A-Za-z0-9_]+$",
        description="Public handle without '@', also the challenge answer",
    )
