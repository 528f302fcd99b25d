"""Funnel stage catalog endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from inscribo.app.core.errors import InvalidArgument
from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_admin, get_current_user
from inscribo.app.models.user import User
from inscribo.app.schemas.lead_stage import LeadStageCreate, LeadStageRead, LeadStageUpdate
from inscribo.app.services import stage_catalog

router = APIRouter(prefix="/stages", tags=["stages"])


@router.get("/", response_model=list[LeadStageRead])
async def list_stages(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return stage_catalog.list_stages(db, institution_id=current_user.institution_id)


@router.post("/", response_model=LeadStageRead, status_code=status.HTTP_201_CREATED)
async def add_stage(
    stage_in: LeadStageCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return stage_catalog.add_stage(
        db, institution_id=current_admin.institution_id, name=stage_in.name, color=stage_in.color
    )


@router.patch("/{stage_id}", response_model=LeadStageRead)
async def update_stage(
    stage_id: int,
    stage_in: LeadStageUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    institution_id = current_admin.institution_id
    stage = stage_catalog.get_stage(db, institution_id=institution_id, stage_id=stage_id)
    # Validate every field before the first write
    if stage_in.name is not None:
        stage_catalog.clean_stage_name(stage_in.name)
    if stage_in.color is not None:
        stage_catalog.check_stage_color(stage_in.color)
    if stage_in.order_index is not None and stage_in.order_index < 0:
        raise InvalidArgument("Stage position must be zero or greater")
    if stage_in.name is not None:
        stage = stage_catalog.rename_stage(db, institution_id=institution_id, stage_id=stage_id, name=stage_in.name)
    if stage_in.color is not None:
        stage = stage_catalog.recolor_stage(db, institution_id=institution_id, stage_id=stage_id, color=stage_in.color)
    if stage_in.order_index is not None:
        stage = stage_catalog.reposition_stage(
            db, institution_id=institution_id, stage_id=stage_id, order_index=stage_in.order_index
        )
    return stage


@router.delete("/{stage_id}")
async def remove_stage(stage_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    stage_catalog.remove_stage(db, institution_id=current_admin.institution_id, stage_id=stage_id)
    return {"status": "deleted", "id": stage_id}
