import pytest

from inscribo.app.core.errors import InvalidArgument, NotFound
from inscribo.app.db.base import Base
from inscribo.app.db.session import SessionLocal, engine
from inscribo.app.models.institution import Institution
from inscribo.app.models.lead import Lead
from inscribo.app.models.user import User
from inscribo.app.services import interaction_log


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


def make_lead(db):
    institution = Institution(name="Colégio Teste")
    db.add(institution)
    db.flush()
    user = User(email="user@example.com", institution_id=institution.id)
    lead = Lead(institution_id=institution.id, student_name="Ana")
    db.add_all([user, lead])
    db.commit()
    return user, lead


def test_append_and_list_newest_first(db):
    user, lead = make_lead(db)
    interaction_log.append_interaction(
        db, lead_id=lead.id, interaction_type="call", content="Called the family", acting_user=user
    )
    interaction_log.append_interaction(
        db, lead_id=lead.id, interaction_type="whatsapp", content="  Sent brochure  ", acting_user=user
    )

    items = interaction_log.list_interactions(db, institution_id=user.institution_id, lead_id=lead.id)
    assert [i.type for i in items] == ["whatsapp", "call"]
    assert items[0].content == "Sent brochure"
    assert items[0].user_id == user.id


def test_unknown_type_rejected(db):
    user, lead = make_lead(db)
    with pytest.raises(InvalidArgument):
        interaction_log.append_interaction(
            db, lead_id=lead.id, interaction_type="fax", content="hello", acting_user=user
        )


def test_blank_content_rejected(db):
    user, lead = make_lead(db)
    with pytest.raises(InvalidArgument):
        interaction_log.append_interaction(db, lead_id=lead.id, interaction_type="note", content="  ", acting_user=user)
    assert interaction_log.list_interactions(db, institution_id=user.institution_id, lead_id=lead.id) == []


def test_missing_lead_is_not_found(db):
    user, _ = make_lead(db)
    with pytest.raises(NotFound):
        interaction_log.append_interaction(db, lead_id=999, interaction_type="note", content="x", acting_user=user)
