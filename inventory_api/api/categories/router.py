"""Inventory category routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventory_api.dependencies import get_category_store
from inventory_api.domain.interfaces import CategoryStore, NotFoundError
from inventory_api.middleware.rbac import authorize_actions

router = APIRouter(prefix="/category", tags=["Categories"])


class CategoryCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    is_active: bool = True
    description: Optional[str] = None


class CategoryPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    is_active: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class CategoryOut(BaseModel):
    id: int
    name: str
    is_active: bool
    description: Optional[str] = None


@router.get("", response_model=List[CategoryOut], dependencies=[Depends(authorize_actions("/category/read"))])
def list_categories(store: CategoryStore = Depends(get_category_store)):
    return store.list_categories()


@router.get("/{id}", response_model=CategoryOut, dependencies=[Depends(authorize_actions("/category/read"))])
def get_category(id: int, store: CategoryStore = Depends(get_category_store)):
    category = store.get_category(id)
    if category is None:
        raise NotFoundError("Category", id)
    return category


@router.post(
    "",
    response_model=CategoryOut,
    status_code=201,
    dependencies=[Depends(authorize_actions("/category/write"))],
)
def create_category(body: CategoryCreate, store: CategoryStore = Depends(get_category_store)):
    return store.create_category(body.model_dump())


@router.put("/{id}", response_model=CategoryOut, dependencies=[Depends(authorize_actions("/category/write"))])
def update_category(id: int, patch: CategoryPatch, store: CategoryStore = Depends(get_category_store)):
    return store.update_category(id, patch.model_dump(exclude_unset=True))


@router.delete("/{id}", status_code=204, dependencies=[Depends(authorize_actions("/category/delete"))])
def delete_category(id: int, store: CategoryStore = Depends(get_category_store)):
    store.delete_category(id)
    return Response(status_code=204)
