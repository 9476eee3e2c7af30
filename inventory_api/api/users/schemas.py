from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventory_api.api.roles.schemas import RoleOut


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(default="", max_length=255)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")


class UserPatch(BaseModel):
    """Updatable user fields. Only fields present in the request are applied."""
    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")

    @field_validator("first_name", "last_name", "email")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class UserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    roles: Optional[List[RoleOut]] = None
