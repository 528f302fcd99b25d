"""Funnel report schemas."""

from datetime import date

from pydantic import BaseModel


class StageCount(BaseModel):
    stage_id: int
    name: str
    color: str
    order_index: int
    count: int


class FunnelSummary(BaseModel):
    total_leads: int
    conversion_rate: float
    stages: list[StageCount]


class LeaderboardRow(BaseModel):
    user_id: int
    user_name: str
    lead_count: int
    conversion_count: int
    conversion_rate: float


class DailyVisitOutcome(BaseModel):
    date: date
    scheduled: int
    completed: int
    cancelled: int
    no_show: int


class VisitOutcomeStats(BaseModel):
    start_date: date
    end_date: date
    scheduled: int
    completed: int
    cancelled: int
    no_show: int
    daily: list[DailyVisitOutcome]


class UserStageRow(BaseModel):
    user_id: int
    user_name: str
    stages: list[StageCount]
    total: int


class DashboardSummary(BaseModel):
    as_of: date
    total_leads: int
    leads_this_month: int
    visits_today: int
    visits_this_week: int
    enrollments: int
    completed_visits: int
    conversion_rate: float
