from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from muchshop.api.deps import get_session
from muchshop.data.database import get_db
from muchshop.domain.errors import Unauthenticated
from muchshop.domain.schemas import ProfileIn, SessionContext, UserRead
from muchshop.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/me", response_model=UserRead)
def save_profile(
    payload: ProfileIn,
    session: SessionContext = Depends(get_session),
    db: Session = Depends(get_db),
):
    try:
        return UserService(db).save_profile(session, payload)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/me", response_model=UserRead)
def get_profile(
    session: SessionContext = Depends(get_session),
    db: Session = Depends(get_db),
):
    try:
        return UserService(db).get_profile(session)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
