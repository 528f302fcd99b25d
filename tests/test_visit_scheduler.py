from datetime import date, datetime, timedelta, timezone

import pytest

from inscribo.app.core.errors import InvalidArgument, NotFound, StaleWrite
from inscribo.app.db.base import Base
from inscribo.app.db.session import SessionLocal, engine
from inscribo.app.models.institution import Institution
from inscribo.app.models.lead import Lead
from inscribo.app.models.user import User
from inscribo.app.models.visit import Visit
from inscribo.app.services import funnel_aggregator, visit_scheduler


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_lead(db, name="Ana"):
    institution = Institution(name="Colégio Teste")
    db.add(institution)
    db.flush()
    user = User(email=f"{name.lower()}-owner@example.com", institution_id=institution.id)
    lead = Lead(institution_id=institution.id, student_name=name)
    db.add_all([user, lead])
    db.commit()
    return user, lead


def test_schedule_visit_defaults(db):
    user, lead = make_lead(db)
    visit = visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=60, acting_user=user
    )
    assert visit.status == "scheduled"
    assert visit.title == "Visit - Ana"
    assert visit.scheduled_by_id == user.id
    assert visit.version == 1


def test_aware_datetimes_are_stored_as_utc(db):
    user, lead = make_lead(db)
    local = datetime(2025, 3, 1, 11, 0, tzinfo=timezone(timedelta(hours=-3)))
    visit = visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=local, duration_minutes=30, acting_user=user
    )
    assert visit.scheduled_at == datetime(2025, 3, 1, 14, 0)


@pytest.mark.parametrize("duration", [0, -15, 1.5, True])
def test_invalid_duration_rejected(db, duration):
    user, lead = make_lead(db)
    with pytest.raises(InvalidArgument):
        visit_scheduler.schedule_visit(
            db, lead_id=lead.id, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=duration, acting_user=user
        )
    assert db.query(Visit).count() == 0


def test_missing_scheduled_at_rejected(db):
    user, lead = make_lead(db)
    with pytest.raises(InvalidArgument):
        visit_scheduler.schedule_visit(db, lead_id=lead.id, scheduled_at=None, duration_minutes=60, acting_user=user)
    assert db.query(Visit).count() == 0


def test_missing_lead_is_not_found(db):
    user, _ = make_lead(db)
    with pytest.raises(NotFound):
        visit_scheduler.schedule_visit(
            db, lead_id=999, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=60, acting_user=user
        )


def test_visit_outcome_counts_follow_status_updates(db):
    user, lead = make_lead(db)
    visit = visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=60, acting_user=user
    )

    stats = funnel_aggregator.visit_outcome_stats(
        db, institution_id=user.institution_id, start_date=date(2025, 3, 1), end_date=date(2025, 3, 31)
    )
    assert (stats["scheduled"], stats["completed"], stats["cancelled"], stats["no_show"]) == (1, 0, 0, 0)

    visit_scheduler.update_visit(db, visit_id=visit.id, changes={"status": "completed"}, acting_user=user)
    stats = funnel_aggregator.visit_outcome_stats(
        db, institution_id=user.institution_id, start_date=date(2025, 3, 1), end_date=date(2025, 3, 1)
    )
    assert (stats["scheduled"], stats["completed"], stats["cancelled"], stats["no_show"]) == (0, 1, 0, 0)


def test_update_visit_bumps_version_and_rejects_stale(db):
    user, lead = make_lead(db)
    visit = visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=60, acting_user=user
    )
    updated = visit_scheduler.update_visit(
        db, visit_id=visit.id, changes={"duration_minutes": 90}, acting_user=user, expected_version=1
    )
    assert updated.version == 2
    assert updated.duration_minutes == 90

    with pytest.raises(StaleWrite):
        visit_scheduler.update_visit(
            db, visit_id=visit.id, changes={"status": "cancelled"}, acting_user=user, expected_version=1
        )


def test_update_visit_validates_fields(db):
    user, lead = make_lead(db)
    visit = visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=60, acting_user=user
    )
    with pytest.raises(InvalidArgument):
        visit_scheduler.update_visit(db, visit_id=visit.id, changes={"status": "done"}, acting_user=user)
    with pytest.raises(InvalidArgument):
        visit_scheduler.update_visit(db, visit_id=visit.id, changes={"lead_id": 2}, acting_user=user)
    with pytest.raises(InvalidArgument):
        visit_scheduler.update_visit(db, visit_id=visit.id, changes={"title": "  "}, acting_user=user)


def test_unchanged_update_keeps_version(db):
    user, lead = make_lead(db)
    visit = visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=datetime(2025, 3, 1, 14, 0), duration_minutes=60, acting_user=user
    )
    same = visit_scheduler.update_visit(db, visit_id=visit.id, changes={"status": "scheduled"}, acting_user=user)
    assert same.version == 1


def test_list_visits_by_range_and_status(db):
    user, lead = make_lead(db)
    for day in (1, 15, 31):
        visit_scheduler.schedule_visit(
            db, lead_id=lead.id, scheduled_at=datetime(2025, 3, day, 23, 30), duration_minutes=60, acting_user=user
        )
    visit_scheduler.schedule_visit(
        db, lead_id=lead.id, scheduled_at=datetime(2025, 4, 1, 0, 0), duration_minutes=60, acting_user=user
    )

    march = visit_scheduler.list_visits(
        db, institution_id=user.institution_id, start_date=date(2025, 3, 1), end_date=date(2025, 3, 31)
    )
    assert [v.scheduled_at.day for v in march] == [1, 15, 31]

    with pytest.raises(InvalidArgument):
        visit_scheduler.list_visits(db, institution_id=user.institution_id, status="unknown")
