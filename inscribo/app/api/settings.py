from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_admin, get_current_user
from inscribo.app.models.institution import Institution
from inscribo.app.models.user import User
from inscribo.app.schemas.institution import InstitutionRead, InstitutionUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


def _get_institution(db: Session, institution_id: int) -> Institution:
    institution = db.query(Institution).filter(Institution.id == institution_id).first()
    if not institution:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Institution not found")
    return institution


@router.get("/", response_model=InstitutionRead)
async def get_institution_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_institution(db, current_user.institution_id)


@router.put("/", response_model=InstitutionRead)
async def update_institution_settings(
    payload: InstitutionUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    institution = _get_institution(db, current_admin.institution_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(institution, field, value)
    db.commit()
    db.refresh(institution)
    return institution
