"""Handles sign-up: a new institution with its default funnel and its first admin."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from inscribo.app.core.security import get_password_hash
from inscribo.app.db.session import get_db
from inscribo.app.models.institution import Institution
from inscribo.app.models.user import User
from inscribo.app.schemas.user import UserCreate, UserRead
from inscribo.app.services.stage_catalog import seed_default_stages

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == user_in.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    institution = Institution(name=(user_in.institution_name or "").strip() or f"{user_in.email} institution")
    db.add(institution)
    db.flush()
    seed_default_stages(db, institution_id=institution.id)
    hashed_password = get_password_hash(user_in.password)  # Hash password before storing
    user = User(
        email=user_in.email,
        full_name=user_in.full_name,
        hashed_password=hashed_password,
        role="admin",
        institution_id=institution.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
