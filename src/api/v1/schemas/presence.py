"""Pydantic schemas for Presence API."""

from pydantic import BaseModel


class OnlineUsersResponse(BaseModel):
    """Schema for the online-user snapshot."""

    data: list[str]
    count: int
