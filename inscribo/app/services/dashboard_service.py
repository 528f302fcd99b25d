"""Institution dashboard cards built from the funnel tables."""

from datetime import date, timedelta

from sqlalchemy.orm import Session

from inscribo.app.core.time import day_bounds
from inscribo.app.models.lead import Lead
from inscribo.app.models.visit import Visit
from inscribo.app.services.funnel_aggregator import compute_conversion_rate
from inscribo.app.services.stage_catalog import list_stages, terminal_stage


def get_dashboard_summary(db: Session, *, institution_id: int, today: date) -> dict:
    stages = list_stages(db, institution_id=institution_id)
    leads = db.query(Lead).filter(Lead.institution_id == institution_id).all()
    terminal = terminal_stage(stages)

    month_start = today.replace(day=1)
    leads_this_month = sum(1 for lead in leads if lead.created_at.date() >= month_start)
    enrollments = sum(1 for lead in leads if terminal is not None and lead.current_stage_id == terminal.id)

    # Weeks start on Monday
    week_start = today - timedelta(days=today.weekday())
    week_end = week_start + timedelta(days=6)
    week_from, week_to = day_bounds(week_start, week_end)
    week_visits = (
        db.query(Visit)
        .filter(
            Visit.institution_id == institution_id,
            Visit.scheduled_at >= week_from,
            Visit.scheduled_at <= week_to,
        )
        .all()
    )
    visits_today = sum(1 for visit in week_visits if visit.scheduled_at.date() == today)
    completed_visits = (
        db.query(Visit)
        .filter(Visit.institution_id == institution_id, Visit.status == "completed")
        .count()
    )

    return {
        "as_of": today,
        "total_leads": len(leads),
        "leads_this_month": leads_this_month,
        "visits_today": visits_today,
        "visits_this_week": len(week_visits),
        "enrollments": enrollments,
        "completed_visits": completed_visits,
        "conversion_rate": compute_conversion_rate(stages, leads),
    }
