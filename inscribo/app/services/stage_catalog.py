"""Per-institution catalog of funnel stages."""

import logging
import re

from sqlalchemy import func
from sqlalchemy.orm import Session

from inscribo.app.core.errors import InvalidArgument, InvariantViolation, NotFound
from inscribo.app.models.lead import Lead
from inscribo.app.models.lead_stage import LeadStage
from inscribo.app.services.store import run_unit

logger = logging.getLogger(__name__)

MIN_STAGES = 2
HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

DEFAULT_STAGES = [
    ("Novo", "#8B5CF6"),
    ("Contato", "#06B6D4"),
    ("Agendado", "#F59E0B"),
    ("Visita", "#EC4899"),
    ("Proposta", "#EF4444"),
    ("Matrícula", "#10B981"),
]


def clean_stage_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidArgument("Stage name is required")
    return cleaned


def check_stage_color(color: str | None) -> str:
    if not color or not HEX_COLOR_RE.match(color):
        raise InvalidArgument("Stage color must be a hex value like #10B981")
    return color


def list_stages(db: Session, *, institution_id: int) -> list[LeadStage]:
    return (
        db.query(LeadStage)
        .filter(LeadStage.institution_id == institution_id)
        .order_by(LeadStage.order_index.asc(), LeadStage.id.asc())
        .all()
    )


def get_stage(db: Session, *, institution_id: int, stage_id: int) -> LeadStage:
    stage = (
        db.query(LeadStage)
        .filter(LeadStage.id == stage_id, LeadStage.institution_id == institution_id)
        .first()
    )
    if not stage:
        raise NotFound("Stage not found")
    return stage


def terminal_stage(stages: list[LeadStage]) -> LeadStage | None:
    """The enrolled stage: last in funnel order."""
    if not stages:
        return None
    return max(stages, key=lambda s: (s.order_index, s.id))


def add_stage(db: Session, *, institution_id: int, name: str, color: str) -> LeadStage:
    name = clean_stage_name(name)
    color = check_stage_color(color)

    def _apply() -> LeadStage:
        current_max = (
            db.query(func.max(LeadStage.order_index))
            .filter(LeadStage.institution_id == institution_id)
            .scalar()
        )
        stage = LeadStage(
            institution_id=institution_id,
            name=name,
            color=color,
            order_index=(current_max or 0) + 1,
        )
        db.add(stage)
        db.flush()
        return stage

    stage = run_unit(db, _apply, label="add stage")
    db.refresh(stage)
    logger.info("Stage %s (%s) added for institution %s", stage.id, stage.name, institution_id)
    return stage


def _update_stage(db: Session, stage: LeadStage, field: str, value) -> LeadStage:
    def _apply() -> LeadStage:
        setattr(stage, field, value)
        return stage

    run_unit(db, _apply, label=f"update stage {field}")
    db.refresh(stage)
    return stage


def rename_stage(db: Session, *, institution_id: int, stage_id: int, name: str) -> LeadStage:
    name = clean_stage_name(name)
    stage = get_stage(db, institution_id=institution_id, stage_id=stage_id)
    return _update_stage(db, stage, "name", name)


def recolor_stage(db: Session, *, institution_id: int, stage_id: int, color: str) -> LeadStage:
    color = check_stage_color(color)
    stage = get_stage(db, institution_id=institution_id, stage_id=stage_id)
    return _update_stage(db, stage, "color", color)


def reposition_stage(db: Session, *, institution_id: int, stage_id: int, order_index: int) -> LeadStage:
    if order_index is None or order_index < 0:
        raise InvalidArgument("Stage position must be zero or greater")
    stage = get_stage(db, institution_id=institution_id, stage_id=stage_id)
    return _update_stage(db, stage, "order_index", order_index)


def remove_stage(db: Session, *, institution_id: int, stage_id: int) -> None:
    stage = get_stage(db, institution_id=institution_id, stage_id=stage_id)
    remaining = (
        db.query(func.count(LeadStage.id))
        .filter(LeadStage.institution_id == institution_id)
        .scalar()
    )
    if remaining <= MIN_STAGES:
        raise InvariantViolation(f"The funnel must keep at least {MIN_STAGES} stages")
    occupied = db.query(func.count(Lead.id)).filter(Lead.current_stage_id == stage.id).scalar()
    if occupied:
        raise InvariantViolation(f"Move the {occupied} lead(s) out of '{stage.name}' before removing it")

    def _apply() -> None:
        db.delete(stage)

    run_unit(db, _apply, label="remove stage")
    logger.info("Stage %s removed for institution %s", stage_id, institution_id)


def seed_default_stages(db: Session, *, institution_id: int) -> list[LeadStage]:
    """Create the standard funnel for a new institution. Does not commit."""
    stages = [
        LeadStage(institution_id=institution_id, name=name, color=color, order_index=index)
        for index, (name, color) in enumerate(DEFAULT_STAGES, start=1)
    ]
    db.add_all(stages)
    db.flush()
    return stages
