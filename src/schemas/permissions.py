from __future__ import annotations

from typing import List

from pydantic import Field

from src.shared.base import BaseSchema


class UserPermissions(BaseSchema):
    role: str = "User"
    brands: List[str] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)


class PermissionScope(BaseSchema):
    available_brands: List[str]
    available_channels: List[str]
    brands_unrestricted: bool = False
    channels_unrestricted: bool = False
