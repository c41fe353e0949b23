# services/guards.py

from sqlmodel import Session, select

from core.audit import record_audit
from core.errors import InvalidTransitionError, NotFoundError
from database import commit_or_raise
from models.enums import AuditAction
from models import Building, Guard, GuardBuildingAssignment


def assign_guard_to_building(
    session: Session, guard_id: str, building_id: str, actor_id: str
) -> GuardBuildingAssignment:
    """Idempotent: an existing assignment is returned unchanged."""
    guard = session.get(Guard, guard_id)
    if guard is None:
        raise NotFoundError("Guard", guard_id)

    building = session.get(Building, building_id)
    if building is None:
        raise NotFoundError("Building", building_id)

    if guard.organization_id != building.organization_id:
        raise InvalidTransitionError("Guard does not belong to the building's organization")

    assignment = session.exec(
        select(GuardBuildingAssignment)
        .where(GuardBuildingAssignment.guard_id == guard_id)
        .where(GuardBuildingAssignment.building_id == building_id)
    ).first()
    if assignment is not None:
        return assignment

    assignment = GuardBuildingAssignment(
        guard_id=guard_id,
        building_id=building_id,
        assigned_by=actor_id,
    )
    session.add(assignment)
    session.flush()

    record_audit(
        session, "Guard", guard_id, AuditAction.ASSIGN_GUARD,
        actor_id=actor_id, metadata={"building_id": building_id},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to assign guard")
    session.refresh(assignment)
    return assignment
