"""Authorization models.

Role and user snapshots are read-only views handed to the policy engine for
the duration of one decision; decisions are never persisted.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class AuthzReasonCode(str, Enum):
    """Stable authorization reason codes."""
    PERMISSION_ALLOWED = "AUTHZ_PERMISSION_ALLOWED"
    SELF_ACCESS_ALLOWED = "AUTHZ_SELF_ACCESS_ALLOWED"
    NO_REQUIREMENT = "AUTHZ_NO_REQUIREMENT"
    PERMISSION_DENIED = "AUTHZ_PERMISSION_DENIED"
    NO_ROLES = "AUTHZ_NO_ROLES"
    NO_ACTIVE_ROLES = "AUTHZ_NO_ACTIVE_ROLES"


class CombinationPolicy(str, Enum):
    """How several required actions on one endpoint combine.

    ANY_OF: authorized as soon as any active role grants any one action.
    ALL_OF: every required action must be granted by at least one active role.
    """
    ANY_OF = "any_of"
    ALL_OF = "all_of"


@dataclass
class Role:
    """Snapshot of a stored role."""
    role_id: int
    name: str
    is_active: bool = True
    allowed_actions: List[str] = field(default_factory=list)
    not_allowed_actions: List[str] = field(default_factory=list)

    def __post_init__(self):
        # Nullable columns read as empty lists.
        self.allowed_actions = list(self.allowed_actions or [])
        self.not_allowed_actions = list(self.not_allowed_actions or [])


@dataclass
class Principal:
    """Authenticated caller as seen by the authorization layer."""
    subject: Optional[str]
    role_names: FrozenSet[str] = frozenset()
    user_id: Optional[int] = None


@dataclass
class AuthzDecision:
    """Outcome of one authorization evaluation."""
    allowed: bool
    reason_code: AuthzReasonCode
    required_actions: List[str] = field(default_factory=list)
    combination: CombinationPolicy = CombinationPolicy.ANY_OF
    user_id: Optional[int] = None
    matched_role_ids: List[int] = field(default_factory=list)
    granted_actions: List[str] = field(default_factory=list)
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z")

    def to_audit_dict(self) -> Dict[str, Any]:
        """Convert to normalized audit fields."""
        result = {
            "authz_decision": "ALLOW" if self.allowed else "DENY",
            "authz_reason_code": self.reason_code.value,
            "required_actions": list(self.required_actions),
            "combination": self.combination.value,
        }
        if self.allowed:
            result["matched_role_ids"] = list(self.matched_role_ids)
            result["granted_actions"] = list(self.granted_actions)
        return result
