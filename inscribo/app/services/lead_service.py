"""Lead registry: intake, lookup and non-stage edits, always scoped to one institution."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from inscribo.app.core.errors import InvalidArgument, NotFound, StaleWrite
from inscribo.app.core.time import utc_now
from inscribo.app.models.institution import Institution
from inscribo.app.models.lead import Lead
from inscribo.app.models.user import User
from inscribo.app.schemas.lead import LeadCreate, LeadUpdate
from inscribo.app.services import stage_catalog
from inscribo.app.services.store import run_unit

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "student_name",
    "parent_name",
    "email",
    "phone",
    "grade_level",
    "course_interest",
    "source",
    "notes",
    "assigned_to_id",
)

SORT_FIELDS = {
    "created_at": Lead.created_at,
    "updated_at": Lead.updated_at,
    "student_name": Lead.student_name,
}


def get_lead(db: Session, *, institution_id: int, lead_id: int) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id, Lead.institution_id == institution_id).first()
    if not lead:
        raise NotFound("Lead not found")
    return lead


def check_version(record, expected_version: int | None, label: str) -> None:
    if expected_version is not None and record.version != expected_version:
        raise StaleWrite(f"{label} was changed by someone else; reload and try again")


def _check_assignee(db: Session, institution_id: int, user_id: int | None) -> None:
    if user_id is None:
        return
    exists = db.query(User.id).filter(User.id == user_id, User.institution_id == institution_id).first()
    if not exists:
        raise NotFound("Assigned user not found")


def _clean_student_name(value: str | None) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidArgument("Student name is required")
    return cleaned


def lead_fields(db: Session, *, acting_user: User, lead_in: LeadCreate) -> dict:
    """Validate a new lead and return the column values ``stage_lead`` needs."""
    institution_id = acting_user.institution_id
    student_name = _clean_student_name(lead_in.student_name)
    if lead_in.current_stage_id is not None:
        stage_catalog.get_stage(db, institution_id=institution_id, stage_id=lead_in.current_stage_id)
    _check_assignee(db, institution_id, lead_in.assigned_to_id)

    assigned_to_id = lead_in.assigned_to_id
    if assigned_to_id is None:
        institution = db.get(Institution, institution_id)
        if institution is not None and institution.auto_assign_leads:
            assigned_to_id = acting_user.id

    data = lead_in.model_dump(include=set(LeadCreate.model_fields) - {"student_name", "assigned_to_id"})
    return {
        "institution_id": institution_id,
        "student_name": student_name,
        "assigned_to_id": assigned_to_id,
        **data,
    }


def stage_lead(db: Session, fields: dict) -> Lead:
    """Add a validated lead to the current unit of work. Does not commit."""
    now = utc_now()
    lead = Lead(created_at=now, updated_at=now, **fields)
    db.add(lead)
    db.flush()
    return lead


def create_lead(db: Session, *, acting_user: User, lead_in: LeadCreate) -> Lead:
    fields = lead_fields(db, acting_user=acting_user, lead_in=lead_in)
    lead = run_unit(db, lambda: stage_lead(db, fields), label="create lead")
    db.refresh(lead)
    logger.info("Lead %s created in institution %s by user %s", lead.id, lead.institution_id, acting_user.id)
    return lead


def update_lead(db: Session, *, acting_user: User, lead_id: int, lead_in: LeadUpdate) -> Lead:
    institution_id = acting_user.institution_id
    lead = get_lead(db, institution_id=institution_id, lead_id=lead_id)
    check_version(lead, lead_in.expected_version, "Lead")

    changes = lead_in.model_dump(exclude_unset=True, exclude={"expected_version"})
    if "student_name" in changes:
        changes["student_name"] = _clean_student_name(changes["student_name"])
    if "source" in changes and not changes["source"]:
        raise InvalidArgument("Lead source cannot be empty")
    if "assigned_to_id" in changes:
        _check_assignee(db, institution_id, changes["assigned_to_id"])

    changed = {field: value for field, value in changes.items() if getattr(lead, field) != value}
    if not changed:
        return lead

    def _apply() -> Lead:
        for field, value in changed.items():
            setattr(lead, field, value)
        lead.updated_at = utc_now()
        lead.version = lead.version + 1
        return lead

    run_unit(db, _apply, label="update lead")
    db.refresh(lead)
    return lead


def list_leads(
    db: Session,
    *,
    institution_id: int,
    stage_id: int | None = None,
    assigned_to_id: int | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str | None = "created_at",
    sort_order: str | None = "desc",
) -> list[Lead]:
    query = db.query(Lead).filter(Lead.institution_id == institution_id)
    if stage_id is not None:
        query = query.filter(Lead.current_stage_id == stage_id)
    if assigned_to_id is not None:
        query = query.filter(Lead.assigned_to_id == assigned_to_id)
    if search:
        for token in [t for t in search.split() if t]:
            pattern = f"%{token}%"
            query = query.filter(
                or_(
                    Lead.student_name.ilike(pattern),
                    Lead.parent_name.ilike(pattern),
                    Lead.email.ilike(pattern),
                    Lead.phone.ilike(pattern),
                    Lead.notes.ilike(pattern),
                )
            )

    sort_field = sort_by or "created_at"
    if sort_field not in SORT_FIELDS:
        raise InvalidArgument("Invalid sort_by value")
    sort_column = SORT_FIELDS[sort_field]
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise InvalidArgument("Invalid sort_order value")

    if sort_order_normalized == "asc":
        query = query.order_by(sort_column.asc(), Lead.id.asc())
    else:
        query = query.order_by(sort_column.desc(), Lead.id.desc())
    return query.offset(skip).limit(limit).all()


def get_board(db: Session, *, institution_id: int) -> dict:
    """Kanban view: every stage in funnel order with its leads, plus unclassified leads."""
    stages = stage_catalog.list_stages(db, institution_id=institution_id)
    leads = (
        db.query(Lead)
        .filter(Lead.institution_id == institution_id)
        .order_by(Lead.updated_at.desc(), Lead.id.desc())
        .all()
    )
    by_stage: dict[int, list[Lead]] = {stage.id: [] for stage in stages}
    unclassified = []
    for lead in leads:
        if lead.current_stage_id in by_stage:
            by_stage[lead.current_stage_id].append(lead)
        else:
            unclassified.append(lead)
    return {
        "columns": [{"stage": stage, "leads": by_stage[stage.id]} for stage in stages],
        "unclassified": unclassified,
    }
