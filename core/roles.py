# core/roles.py

from typing import Dict, FrozenSet, Iterable, Union

from models.enums import Role


# ============================================
# SCOPE LEVELS
#
# Used only for the managerial hierarchy.
# Building visibility is relation-based, never rank-based.
# ============================================
SCOPE_LEVELS: Dict[Role, int] = {
    Role.ACCOUNT_OWNER: 100,
    Role.PORTFOLIO_MANAGER: 80,
    Role.PROPERTY_MANAGER: 60,
    Role.BUILDING_OWNER: 40,
    Role.TENANT: 20,
    Role.VENDOR: 20,
    Role.GUARD: 10,
}


# ============================================
# MANAGER ROLE → ROLES IT MAY MANAGE
#
# Explicit whitelist: BUILDING_OWNER outranks TENANT
# and VENDOR but manages nobody.
# ============================================
MANAGEABLE_ROLES: Dict[Role, FrozenSet[Role]] = {
    Role.ACCOUNT_OWNER: frozenset(Role),
    Role.PORTFOLIO_MANAGER: frozenset({Role.PROPERTY_MANAGER, Role.GUARD}),
    Role.PROPERTY_MANAGER: frozenset({Role.GUARD}),
    Role.BUILDING_OWNER: frozenset(),
    Role.TENANT: frozenset(),
    Role.VENDOR: frozenset(),
    Role.GUARD: frozenset(),
}

MANAGEMENT_ROLES: FrozenSet[Role] = frozenset(
    {Role.ACCOUNT_OWNER, Role.PORTFOLIO_MANAGER, Role.PROPERTY_MANAGER}
)


def as_role(value) -> Union[Role, None]:
    """Coerce a stored/claimed role to the enum; unknown values become None."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def get_scope_level(user) -> int:
    return SCOPE_LEVELS.get(as_role(user.role), 0)


def has_role(user, roles: Union[Role, Iterable[Role]]) -> bool:
    if isinstance(roles, (Role, str)):
        roles = [roles]
    return as_role(user.role) in {as_role(r) for r in roles}


def can_manage_user(manager, target) -> bool:
    """
    Whitelisted (manager role, target role) pairs within one organization.
    Anything not listed is denied.
    """
    manager_role = as_role(manager.role)
    target_role = as_role(target.role)
    if manager_role is None or target_role is None:
        return False

    if not manager.organization_id or manager.organization_id != target.organization_id:
        return False

    return target_role in MANAGEABLE_ROLES.get(manager_role, frozenset())
