"""Read-only funnel statistics, recomputed from the lead and visit tables on every call.

The ``compute_*`` helpers are pure functions over already loaded rows; the
public functions load one institution's rows and delegate to them.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from inscribo.app.core.errors import InvalidArgument
from inscribo.app.core.time import day_bounds
from inscribo.app.models.lead import Lead
from inscribo.app.models.lead_stage import LeadStage
from inscribo.app.models.user import User
from inscribo.app.models.visit import VISIT_STATUSES, Visit
from inscribo.app.services.stage_catalog import list_stages, terminal_stage


def compute_counts_by_stage(stages: List[LeadStage], leads: Iterable[Lead]) -> List[Dict]:
    counts = Counter(lead.current_stage_id for lead in leads)
    return [
        {
            "stage_id": stage.id,
            "name": stage.name,
            "color": stage.color,
            "order_index": stage.order_index,
            "count": counts.get(stage.id, 0),
        }
        for stage in stages
    ]


def compute_conversion_rate(stages: List[LeadStage], leads: List[Lead]) -> float:
    if not leads:
        return 0.0
    terminal = terminal_stage(stages)
    if terminal is None:
        return 0.0
    converted = sum(1 for lead in leads if lead.current_stage_id == terminal.id)
    return converted / len(leads)


def compute_leaderboard(stages: List[LeadStage], leads: Iterable[Lead], user_names: Dict[int, str]) -> List[Dict]:
    terminal = terminal_stage(stages)
    terminal_id = terminal.id if terminal else None
    lead_counts: Counter = Counter()
    conversions: Counter = Counter()
    for lead in leads:
        if lead.assigned_to_id is None:
            continue
        lead_counts[lead.assigned_to_id] += 1
        if lead.current_stage_id == terminal_id:
            conversions[lead.assigned_to_id] += 1

    rows = []
    for user_id, lead_count in lead_counts.items():
        conversion_count = conversions.get(user_id, 0)
        rows.append(
            {
                "user_id": user_id,
                "user_name": user_names.get(user_id, f"User {user_id}"),
                "lead_count": lead_count,
                "conversion_count": conversion_count,
                "conversion_rate": conversion_count / lead_count,
            }
        )
    rows.sort(key=lambda row: (-row["conversion_rate"], -row["lead_count"], row["user_id"]))
    return rows


def compute_visit_outcomes(visits: Iterable[Visit]) -> Dict[str, int]:
    counts = {status: 0 for status in VISIT_STATUSES}
    for visit in visits:
        if visit.status in counts:
            counts[visit.status] += 1
    return counts


def compute_visit_outcomes_by_day(visits: Iterable[Visit], start_date: date, end_date: date) -> List[Dict]:
    """One row per day of the inclusive range, zero-filled, for the visits chart."""
    by_day: Dict[date, List[Visit]] = {}
    for visit in visits:
        by_day.setdefault(visit.scheduled_at.date(), []).append(visit)
    rows = []
    day = start_date
    while day <= end_date:
        rows.append({"date": day, **compute_visit_outcomes(by_day.get(day, []))})
        day += timedelta(days=1)
    return rows


def compute_user_stage_breakdown(
    stages: List[LeadStage], leads: Iterable[Lead], user_names: Dict[int, str]
) -> List[Dict]:
    per_user: Dict[int, List[Lead]] = {}
    for lead in leads:
        if lead.assigned_to_id is not None:
            per_user.setdefault(lead.assigned_to_id, []).append(lead)
    rows = []
    for user_id in sorted(per_user):
        user_leads = per_user[user_id]
        rows.append(
            {
                "user_id": user_id,
                "user_name": user_names.get(user_id, f"User {user_id}"),
                "stages": compute_counts_by_stage(stages, user_leads),
                "total": len(user_leads),
            }
        )
    return rows


def _load_leads(db: Session, institution_id: int) -> List[Lead]:
    return db.query(Lead).filter(Lead.institution_id == institution_id).all()


def _user_names(db: Session, institution_id: int) -> Dict[int, str]:
    users = db.query(User).filter(User.institution_id == institution_id).all()
    return {user.id: user.display_name for user in users}


def counts_by_stage(db: Session, *, institution_id: int) -> List[Dict]:
    return compute_counts_by_stage(list_stages(db, institution_id=institution_id), _load_leads(db, institution_id))


def conversion_rate(db: Session, *, institution_id: int) -> float:
    return compute_conversion_rate(list_stages(db, institution_id=institution_id), _load_leads(db, institution_id))


def funnel_summary(db: Session, *, institution_id: int) -> Dict:
    stages = list_stages(db, institution_id=institution_id)
    leads = _load_leads(db, institution_id)
    return {
        "total_leads": len(leads),
        "conversion_rate": compute_conversion_rate(stages, leads),
        "stages": compute_counts_by_stage(stages, leads),
    }


def user_leaderboard(db: Session, *, institution_id: int) -> List[Dict]:
    return compute_leaderboard(
        list_stages(db, institution_id=institution_id),
        _load_leads(db, institution_id),
        _user_names(db, institution_id),
    )


def user_stage_breakdown(db: Session, *, institution_id: int) -> List[Dict]:
    return compute_user_stage_breakdown(
        list_stages(db, institution_id=institution_id),
        _load_leads(db, institution_id),
        _user_names(db, institution_id),
    )


def visit_outcome_stats(db: Session, *, institution_id: int, start_date: date, end_date: date) -> Dict:
    if start_date > end_date:
        raise InvalidArgument("start_date must not be after end_date")
    start_dt, end_dt = day_bounds(start_date, end_date)
    visits = (
        db.query(Visit)
        .filter(
            Visit.institution_id == institution_id,
            Visit.scheduled_at >= start_dt,
            Visit.scheduled_at <= end_dt,
        )
        .all()
    )
    return {
        "start_date": start_date,
        "end_date": end_date,
        **compute_visit_outcomes(visits),
        "daily": compute_visit_outcomes_by_day(visits, start_date, end_date),
    }
