from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventory_api.domain.rbac.patterns import validate_action_patterns


class RoleCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    is_active: bool = True
    allowed_actions: Optional[List[str]] = None
    not_allowed_actions: Optional[List[str]] = None

    @field_validator("allowed_actions", "not_allowed_actions")
    @classmethod
    def check_patterns(cls, v: Optional[List[str]]) -> List[str]:
        return validate_action_patterns(v)


class RolePatch(BaseModel):
    """Updatable role fields. Only fields present in the request are applied."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    is_active: Optional[bool] = None
    allowed_actions: Optional[List[str]] = None
    not_allowed_actions: Optional[List[str]] = None

    @field_validator("allowed_actions", "not_allowed_actions")
    @classmethod
    def check_patterns(cls, v: Optional[List[str]]) -> List[str]:
        return validate_action_patterns(v)

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class RoleOut(BaseModel):
    id: int
    name: str
    is_active: bool
    allowed_actions: List[str] = Field(default_factory=list)
    not_allowed_actions: List[str] = Field(default_factory=list)
