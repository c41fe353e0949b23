# services/buildings.py

from sqlmodel import Session, select

from core.audit import record_audit
from core.errors import InvalidTransitionError, NotFoundError
from core.logging_config import logger
from core.roles import as_role
from core.utils import utcnow
from database import commit_or_raise
from models.enums import AuditAction, Role
from models import (
    COI,
    Building,
    BuildingCreate,
    GuardBuildingAssignment,
    Tenant,
    User,
    UserBuildingAccess,
    VendorBuildingAuthorization,
)


# Roles that see a building only through a UserBuildingAccess grant
GRANT_ROLES = (Role.PORTFOLIO_MANAGER, Role.PROPERTY_MANAGER)


def _get_building(session: Session, building_id: str) -> Building:
    building = session.get(Building, building_id)
    if building is None:
        raise NotFoundError("Building", building_id)
    return building


# ============================================================
# CREATE
# ============================================================
def create_building(session: Session, payload: BuildingCreate, creator) -> Building:
    """
    Creates a building in the creator's organization.
    A manager creator gets an access grant so they can see what they made.
    """
    if not creator.organization_id:
        raise InvalidTransitionError("Creator has no organization")

    building = Building(
        **payload.model_dump(),
        organization_id=creator.organization_id,
        created_by=creator.id,
    )
    session.add(building)

    if as_role(creator.role) in GRANT_ROLES:
        session.add(UserBuildingAccess(
            user_id=creator.id,
            building_id=building.id,
            assigned_by=creator.id,
        ))

    session.flush()

    record_audit(
        session, "Building", building.id, AuditAction.CREATE_BUILDING,
        actor_id=creator.id, metadata={"name": building.name},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to create building")
    session.refresh(building)

    logger.info(f"Building {building.id} created by {creator.id}")
    return building


# ============================================================
# DELETE (refuses while certificates or tenants exist)
# ============================================================
def delete_building(session: Session, building_id: str, actor_id: str) -> None:
    building = _get_building(session, building_id)

    if session.exec(select(COI.id).where(COI.building_id == building_id)).first() is not None:
        raise InvalidTransitionError("Cannot delete a building that has certificates")

    if session.exec(select(Tenant.id).where(Tenant.building_id == building_id)).first() is not None:
        raise InvalidTransitionError("Cannot delete a building that has tenants")

    # Link rows go with the building
    for model in (UserBuildingAccess, VendorBuildingAuthorization, GuardBuildingAssignment):
        for row in session.exec(select(model).where(model.building_id == building_id)):
            session.delete(row)

    name, organization_id = building.name, building.organization_id
    session.delete(building)
    session.flush()

    record_audit(
        session, "Building", building_id, AuditAction.DELETE_BUILDING,
        actor_id=actor_id, metadata={"name": name},
        organization_id=organization_id,
    )
    commit_or_raise(session, "Failed to delete building")

    logger.info(f"Building {building_id} deleted by {actor_id}")


# ============================================================
# MANAGER GRANTS
# ============================================================
def assign_building_access(
    session: Session, building_id: str, user_id: str, actor_id: str
) -> UserBuildingAccess:
    """Upsert: re-assigning refreshes assigner and time."""
    target = session.get(User, user_id)
    if target is None or as_role(target.role) not in GRANT_ROLES:
        raise InvalidTransitionError("User is not a portfolio or property manager")

    building = _get_building(session, building_id)

    if target.organization_id != building.organization_id:
        raise InvalidTransitionError("Manager does not belong to the building's organization")

    access = session.exec(
        select(UserBuildingAccess)
        .where(UserBuildingAccess.user_id == user_id)
        .where(UserBuildingAccess.building_id == building_id)
    ).first()

    if access is None:
        access = UserBuildingAccess(user_id=user_id, building_id=building_id)

    access.assigned_by = actor_id
    access.assigned_at = utcnow()
    session.add(access)
    session.flush()

    record_audit(
        session, "Building", building_id, AuditAction.ASSIGN_BUILDING_ACCESS,
        actor_id=actor_id, metadata={"user_id": user_id, "role": str(target.role)},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to assign building access")
    session.refresh(access)
    return access


def revoke_building_access(session: Session, building_id: str, user_id: str, actor_id: str) -> None:
    building = _get_building(session, building_id)

    access = session.exec(
        select(UserBuildingAccess)
        .where(UserBuildingAccess.user_id == user_id)
        .where(UserBuildingAccess.building_id == building_id)
    ).first()

    if access is None:
        raise NotFoundError("UserBuildingAccess", f"{user_id}/{building_id}")

    session.delete(access)
    session.flush()

    record_audit(
        session, "Building", building_id, AuditAction.REVOKE_BUILDING_ACCESS,
        actor_id=actor_id, metadata={"user_id": user_id},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to revoke building access")


# ============================================================
# OWNER
# ============================================================
def set_building_owner(session: Session, building_id: str, owner_id: str, actor_id: str) -> Building:
    owner = session.get(User, owner_id)
    if owner is None or as_role(owner.role) != Role.BUILDING_OWNER:
        raise InvalidTransitionError("User is not a building owner")

    building = _get_building(session, building_id)
    previous = building.owner_id

    building.owner_id = owner_id
    session.add(building)
    session.flush()

    record_audit(
        session, "Building", building_id, AuditAction.SET_BUILDING_OWNER,
        actor_id=actor_id, metadata={"owner_id": owner_id, "previous_owner_id": previous},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to set building owner")
    session.refresh(building)
    return building
