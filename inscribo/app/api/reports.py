"""Funnel reporting endpoints."""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_user
from inscribo.app.models.user import User
from inscribo.app.schemas.funnel import FunnelSummary, LeaderboardRow, UserStageRow, VisitOutcomeStats
from inscribo.app.services import funnel_aggregator

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/funnel", response_model=FunnelSummary)
async def get_funnel(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return funnel_aggregator.funnel_summary(db, institution_id=current_user.institution_id)


@router.get("/leaderboard", response_model=List[LeaderboardRow])
async def get_leaderboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return funnel_aggregator.user_leaderboard(db, institution_id=current_user.institution_id)


@router.get("/user-stages", response_model=List[UserStageRow])
async def get_user_stages(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return funnel_aggregator.user_stage_breakdown(db, institution_id=current_user.institution_id)


@router.get("/visits", response_model=VisitOutcomeStats)
async def get_visit_outcomes(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Defaults to the current month so far
    today = date.today()
    return funnel_aggregator.visit_outcome_stats(
        db,
        institution_id=current_user.institution_id,
        start_date=start_date or today.replace(day=1),
        end_date=end_date or today,
    )
