from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_user
from inscribo.app.models.user import User
from inscribo.app.schemas.funnel import DashboardSummary
from inscribo.app.services.dashboard_service import get_dashboard_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/", response_model=DashboardSummary)
async def read_dashboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_dashboard_summary(db, institution_id=current_user.institution_id, today=date.today())
