from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.core.deps import get_current_subject
from taskboard.db.session import get_db
from taskboard.schemas.auth import UpdateProfileIn
from taskboard.services.users import get_profile_service, update_profile_service

router = APIRouter()


@router.get("/profile")
def get_profile(db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return get_profile_service(user_id, db)


@router.patch("/update-profile")
def update_profile(payload: UpdateProfileIn, db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return update_profile_service(user_id, payload, db)
