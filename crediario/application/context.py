"""Acting user and tenant, passed explicitly into every operation"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from crediario.domain.exceptions import PermissionDenied


class Role(str, Enum):
    VENDEDOR = "vendedor"  # salesperson
    LOJA = "loja"  # store manager
    MASTER = "master"  # tenant administrator


ROLE_RANK = {
    Role.VENDEDOR: 1,
    Role.LOJA: 2,
    Role.MASTER: 3,
}


def has_permission(user_role: Role, required_role: Role) -> bool:
    return ROLE_RANK[user_role] >= ROLE_RANK[required_role]


@dataclass(frozen=True)
class RequestContext:
    """Identity resolved by the session provider for one request"""

    acting_user_id: str
    tenant_id: str
    role: Role
    request_id: str = "unknown"

    def require(self, role: Role) -> None:
        """Raise PermissionDenied unless the acting user holds at least `role`"""
        if not has_permission(self.role, role):
            raise PermissionDenied(f"Role '{self.role.value}' cannot perform this action (requires '{role.value}')")

    @property
    def scope_user_id(self) -> Optional[str]:
        """User filter for listings: masters see the whole tenant, others only their own records"""
        return None if self.role == Role.MASTER else self.acting_user_id
