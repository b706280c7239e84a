from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from cinema_api import crud, models
from cinema_api.database import get_db
from cinema_api.responses import Page, success
from cinema_api.security import is_admin_user

router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
)


@router.get("")
async def read_sessions(movie: Optional[str] = None, theater: Optional[str] = None,
                        day: Optional[date] = Query(None, alias="date"), page: int = 1, limit: int = 10,
                        db=Depends(get_db)):
    paging = Page(page, limit)
    sessions, total = await crud.get_sessions(db, paging, movie=movie, theater=theater, day=day)
    return success(sessions, count=len(sessions), pagination=paging.links(total))


@router.get("/{session_id}")
async def read_session(session_id: str, db=Depends(get_db)):
    session = await crud.get_session(db, session_id)
    if session is None:
        raise crud.not_found("Session")
    return success(session)


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(is_admin_user)])
async def create_session(payload: models.SessionCreate, db=Depends(get_db)):
    session = await crud.create_session(db, payload)
    return success(session)


@router.put("/{session_id}", dependencies=[Depends(is_admin_user)])
async def update_session(session_id: str, payload: models.SessionUpdate, db=Depends(get_db)):
    session = await crud.update_session(db, session_id, payload)
    if session is None:
        raise crud.not_found("Session")
    return success(session)


@router.delete("/{session_id}", dependencies=[Depends(is_admin_user)])
async def delete_session(session_id: str, db=Depends(get_db)):
    if not await crud.delete_session(db, session_id):
        raise crud.not_found("Session")
    return success(message="Session removed")


@router.put("/{session_id}/reset-seats", dependencies=[Depends(is_admin_user)])
async def reset_session_seats(session_id: str, db=Depends(get_db)):
    session = await crud.reset_session_seats(db, session_id)
    if session is None:
        raise crud.not_found("Session")
    return success(session, message="All seats reset to available status")
