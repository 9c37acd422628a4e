from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.core.deps import get_current_subject
from taskboard.db.session import get_db
from taskboard.schemas.auth import LoginIn, RefreshTokenIn, RegisterIn
from taskboard.services.auth import login_service, logout_service, refresh_service, register_service

router = APIRouter()


@router.post("/register", status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    return register_service(payload, db)


@router.post("/login")
def login(payload: LoginIn, db: Session = Depends(get_db)):
    return login_service(payload, db)


@router.post("/refresh")
def refresh(payload: RefreshTokenIn, db: Session = Depends(get_db)):
    return refresh_service(payload, db)


@router.post("/logout")
def logout(db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return logout_service(user_id, db)
