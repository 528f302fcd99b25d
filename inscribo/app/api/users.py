"""Admin management of an institution's users."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from inscribo.app.core.security import get_password_hash
from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_admin
from inscribo.app.models.user import User
from inscribo.app.schemas.user import AdminUserCreate, AdminUserRead, AdminUserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _get_user(db: Session, institution_id: int, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id, User.institution_id == institution_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/", response_model=list[AdminUserRead])
async def list_users(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return (
        db.query(User)
        .filter(User.institution_id == current_admin.institution_id)
        .order_by(User.id.asc())
        .all()
    )


@router.post("/", response_model=AdminUserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: AdminUserCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if db.query(User).filter(User.email == user_in.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        email=user_in.email,
        full_name=user_in.full_name,
        hashed_password=get_password_hash(user_in.password),
        role=user_in.role,
        institution_id=current_admin.institution_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s added to institution %s by %s", user.id, user.institution_id, current_admin.id)
    return user


@router.get("/{user_id}", response_model=AdminUserRead)
async def get_user(user_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return _get_user(db, current_admin.institution_id, user_id)


@router.patch("/{user_id}", response_model=AdminUserRead)
async def update_user(
    user_id: int,
    update: AdminUserUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _get_user(db, current_admin.institution_id, user_id)
    if user_id == current_admin.id and update.is_active is False:
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")
    if user_id == current_admin.id and update.role is not None and update.role != current_admin.role:
        raise HTTPException(status_code=400, detail="Cannot change your own role")

    if update.full_name is not None:
        user.full_name = update.full_name
    if update.role is not None:
        user.role = update.role
    if update.is_active is not None:
        user.is_active = update.is_active
    db.commit()
    db.refresh(user)
    return user
