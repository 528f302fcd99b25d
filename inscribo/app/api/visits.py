"""Visit scheduling and calendar endpoints."""

from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_user
from inscribo.app.models.user import User
from inscribo.app.schemas.visit import VisitRead, VisitScheduleRequest, VisitStatus, VisitUpdate
from inscribo.app.services import notifications, visit_scheduler

router = APIRouter(prefix="/visits", tags=["visits"])


@router.post("/", response_model=VisitRead, status_code=status.HTTP_201_CREATED)
async def schedule_visit(
    visit_in: VisitScheduleRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    visit = visit_scheduler.schedule_visit(
        db,
        lead_id=visit_in.lead_id,
        scheduled_at=visit_in.scheduled_at,
        duration_minutes=visit_in.duration_minutes,
        acting_user=current_user,
        title=visit_in.title,
        description=visit_in.description,
        notes=visit_in.notes,
    )
    notifications.notify(
        background_tasks,
        db,
        institution_id=current_user.institution_id,
        event="visit.scheduled",
        data=VisitRead.model_validate(visit).model_dump(mode="json"),
    )
    return visit


@router.get("/", response_model=list[VisitRead])
async def list_visits(
    start_date: date | None = None,
    end_date: date | None = None,
    status: VisitStatus | None = None,
    lead_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return visit_scheduler.list_visits(
        db,
        institution_id=current_user.institution_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        lead_id=lead_id,
    )


@router.get("/{visit_id}", response_model=VisitRead)
async def get_visit(visit_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return visit_scheduler.get_visit(db, institution_id=current_user.institution_id, visit_id=visit_id)


@router.put("/{visit_id}", response_model=VisitRead)
async def update_visit(
    visit_id: int,
    visit_in: VisitUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    changes = visit_in.model_dump(exclude_unset=True, exclude={"expected_version"})
    before = visit_scheduler.get_visit(db, institution_id=current_user.institution_id, visit_id=visit_id).version
    visit = visit_scheduler.update_visit(
        db,
        visit_id=visit_id,
        changes=changes,
        acting_user=current_user,
        expected_version=visit_in.expected_version,
    )
    if visit.version != before:
        notifications.notify(
            background_tasks,
            db,
            institution_id=current_user.institution_id,
            event="visit.updated",
            data=VisitRead.model_validate(visit).model_dump(mode="json"),
        )
    return visit
