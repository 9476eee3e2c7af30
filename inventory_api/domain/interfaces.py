"""Domain interfaces for persistence stores."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from inventory_api.domain.rbac.models import Role


class StoreUnavailableError(RuntimeError):
    """The backing store could not be read or written."""


class NotFoundError(LookupError):
    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} could not be found")


class ConflictError(RuntimeError):
    """The operation conflicts with the current state of a resource."""


class InactiveRoleError(ValueError):
    def __init__(self, role_id: int):
        self.role_id = role_id
        super().__init__(f"Role {role_id} is not active")


class RoleStore(ABC):
    @abstractmethod
    def list_roles(self) -> List[Dict[str, Any]]: pass
    @abstractmethod
    def get_role(self, role_id: int) -> Optional[Dict[str, Any]]: pass
    @abstractmethod
    def create_role(self, role: Dict[str, Any]) -> Dict[str, Any]: pass
    @abstractmethod
    def update_role(self, role_id: int, updates: Dict[str, Any]) -> Dict[str, Any]: pass
    @abstractmethod
    def delete_role(self, role_id: int) -> None: pass
    @abstractmethod
    def get_roles_by_names(self, names: Iterable[str]) -> List[Role]:
        """Snapshots of the named roles, active or not."""


class UserStore(ABC):
    @abstractmethod
    def list_users(self, include_roles: bool = False) -> List[Dict[str, Any]]: pass
    @abstractmethod
    def get_user(self, user_id: int, include_roles: bool = False) -> Optional[Dict[str, Any]]: pass
    @abstractmethod
    def create_user(self, user: Dict[str, Any]) -> Dict[str, Any]: pass
    @abstractmethod
    def update_user(self, user_id: int, updates: Dict[str, Any]) -> Dict[str, Any]: pass
    @abstractmethod
    def delete_user(self, user_id: int) -> None: pass
    @abstractmethod
    def get_roles_for_user(self, user_id: int) -> List[Role]:
        """Snapshots of every role the user holds, active or not."""
    @abstractmethod
    def list_user_roles(self, user_id: int, active_only: bool = True) -> List[Dict[str, Any]]: pass
    @abstractmethod
    def add_role(self, user_id: int, role_id: int) -> None: pass
    @abstractmethod
    def remove_role(self, user_id: int, role_id: int) -> None: pass


class CategoryStore(ABC):
    @abstractmethod
    def list_categories(self) -> List[Dict[str, Any]]: pass
    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Dict[str, Any]]: pass
    @abstractmethod
    def create_category(self, category: Dict[str, Any]) -> Dict[str, Any]: pass
    @abstractmethod
    def update_category(self, category_id: int, updates: Dict[str, Any]) -> Dict[str, Any]: pass
    @abstractmethod
    def delete_category(self, category_id: int) -> None: pass
