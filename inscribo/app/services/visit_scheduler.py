"""Visit scheduling and calendar queries.

The scheduler knows nothing about funnel stages; callers that want a stage
move alongside a visit compose both in ``services.workflows``.
"""

import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from inscribo.app.core.errors import InvalidArgument, NotFound
from inscribo.app.core.time import as_naive_utc, day_bounds, utc_now
from inscribo.app.models.user import User
from inscribo.app.models.visit import VISIT_STATUSES, Visit
from inscribo.app.services.lead_service import check_version, get_lead
from inscribo.app.services.store import run_unit

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "scheduled_at", "duration_minutes", "status", "notes")


def default_title(student_name: str) -> str:
    return f"Visit - {student_name}"


def check_duration(duration_minutes) -> int:
    # bool is an int subclass; reject it along with floats and strings
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidArgument("Visit duration must be a whole number of minutes")
    if duration_minutes <= 0:
        raise InvalidArgument("Visit duration must be greater than zero")
    return duration_minutes


def check_scheduled_at(scheduled_at) -> datetime:
    if not isinstance(scheduled_at, datetime):
        raise InvalidArgument("Visit date and time are required")
    return as_naive_utc(scheduled_at)


def get_visit(db: Session, *, institution_id: int, visit_id: int) -> Visit:
    visit = db.query(Visit).filter(Visit.id == visit_id, Visit.institution_id == institution_id).first()
    if not visit:
        raise NotFound("Visit not found")
    return visit


def visit_fields(
    *,
    student_name: str,
    scheduled_at: datetime,
    duration_minutes: int,
    acting_user: User,
    title: str | None = None,
    description: str | None = None,
    notes: str | None = None,
) -> dict:
    """Validate a new visit and return the column values ``stage_visit`` needs, minus the lead."""
    return {
        "institution_id": acting_user.institution_id,
        "scheduled_by_id": acting_user.id,
        "title": (title or "").strip() or default_title(student_name),
        "description": description,
        "scheduled_at": check_scheduled_at(scheduled_at),
        "duration_minutes": check_duration(duration_minutes),
        "notes": notes,
    }


def stage_visit(db: Session, *, lead_id: int, fields: dict) -> Visit:
    """Add a validated visit to the current unit of work. Does not commit."""
    now = utc_now()
    visit = Visit(lead_id=lead_id, status="scheduled", created_at=now, updated_at=now, **fields)
    db.add(visit)
    db.flush()
    return visit


def schedule_visit(
    db: Session,
    *,
    lead_id: int,
    scheduled_at: datetime,
    duration_minutes: int,
    acting_user: User,
    title: str | None = None,
    description: str | None = None,
    notes: str | None = None,
) -> Visit:
    lead = get_lead(db, institution_id=acting_user.institution_id, lead_id=lead_id)
    fields = visit_fields(
        student_name=lead.student_name,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        acting_user=acting_user,
        title=title,
        description=description,
        notes=notes,
    )
    visit = run_unit(db, lambda: stage_visit(db, lead_id=lead.id, fields=fields), label="schedule visit")
    db.refresh(visit)
    logger.info("Visit %s scheduled for lead %s at %s", visit.id, lead.id, visit.scheduled_at.isoformat())
    return visit


def update_visit(
    db: Session,
    *,
    visit_id: int,
    changes: dict,
    acting_user: User,
    expected_version: int | None = None,
) -> Visit:
    visit = get_visit(db, institution_id=acting_user.institution_id, visit_id=visit_id)
    check_version(visit, expected_version, "Visit")

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidArgument(f"Cannot update visit field(s): {', '.join(sorted(unknown))}")

    cleaned = {}
    for field, value in changes.items():
        if field == "title":
            value = (value or "").strip()
            if not value:
                raise InvalidArgument("Visit title cannot be empty")
        elif field == "scheduled_at":
            value = check_scheduled_at(value)
        elif field == "duration_minutes":
            value = check_duration(value)
        elif field == "status" and value not in VISIT_STATUSES:
            raise InvalidArgument(f"Unknown visit status '{value}'")
        cleaned[field] = value

    changed = {field: value for field, value in cleaned.items() if getattr(visit, field) != value}
    if not changed:
        return visit

    def _apply() -> Visit:
        for field, value in changed.items():
            setattr(visit, field, value)
        visit.updated_at = utc_now()
        visit.version = visit.version + 1
        return visit

    run_unit(db, _apply, label=f"update visit {visit.id}")
    db.refresh(visit)
    if "status" in changed:
        logger.info("Visit %s marked %s by user %s", visit.id, visit.status, acting_user.id)
    return visit


def list_visits(
    db: Session,
    *,
    institution_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    status: str | None = None,
    lead_id: int | None = None,
) -> list[Visit]:
    query = db.query(Visit).filter(Visit.institution_id == institution_id)
    if start_date is not None:
        query = query.filter(Visit.scheduled_at >= day_bounds(start_date, start_date)[0])
    if end_date is not None:
        query = query.filter(Visit.scheduled_at <= day_bounds(end_date, end_date)[1])
    if status is not None:
        if status not in VISIT_STATUSES:
            raise InvalidArgument(f"Unknown visit status '{status}'")
        query = query.filter(Visit.status == status)
    if lead_id is not None:
        get_lead(db, institution_id=institution_id, lead_id=lead_id)
        query = query.filter(Visit.lead_id == lead_id)
    return query.order_by(Visit.scheduled_at.asc(), Visit.id.asc()).all()
