import os

from sqlalchemy.orm import Session

from inscribo.app.core.security import get_password_hash
from inscribo.app.models.institution import Institution
from inscribo.app.models.user import User
from inscribo.app.services.stage_catalog import seed_default_stages


DEMO_INSTITUTION_NAME = "Colégio Demo"
DEMO_ADMIN_EMAIL = "admin@demo.test"
DEMO_PASSWORD = "Secret123!"


def ensure_demo_institution(db: Session) -> None:
    """
    Create a demo institution with the default funnel and an admin for local development.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return
    if db.query(User).filter(User.email == DEMO_ADMIN_EMAIL).first():
        return

    institution = Institution(name=DEMO_INSTITUTION_NAME)
    db.add(institution)
    db.flush()
    seed_default_stages(db, institution_id=institution.id)
    db.add(
        User(
            email=DEMO_ADMIN_EMAIL,
            full_name="Demo Admin",
            hashed_password=get_password_hash(DEMO_PASSWORD),
            role="admin",
            institution_id=institution.id,
            is_active=True,
        )
    )
    db.commit()
