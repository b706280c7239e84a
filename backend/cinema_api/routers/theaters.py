from fastapi import APIRouter, Depends

from cinema_api import crud
from cinema_api.database import get_db
from cinema_api.responses import success

router = APIRouter(
    prefix="/theaters",
    tags=["theaters"],
)


@router.get("")
async def read_theaters(db=Depends(get_db)):
    theaters = await crud.get_theaters(db)
    return success(theaters, count=len(theaters))


@router.get("/{theater_id}")
async def read_theater(theater_id: str, db=Depends(get_db)):
    theater = await crud.get_theater(db, theater_id)
    if theater is None:
        raise crud.not_found("Theater")
    return success(theater)
