from fastapi import APIRouter, Depends, HTTPException, status

from cinema_api import crud, models
from cinema_api.database import get_db
from cinema_api.responses import Page, success
from cinema_api.security import get_current_user, is_admin_user

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/me")
async def read_my_reservations(current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    reservations = await crud.get_user_reservations(db, current_user["_id"])
    return success(reservations, count=len(reservations))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_reservation(payload: models.ReservationCreate,
                             current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    reservation = await crud.create_reservation(db, current_user, payload)
    return success(reservation)


@router.get("", dependencies=[Depends(is_admin_user)])
async def read_reservations(page: int = 1, limit: int = 10, db=Depends(get_db)):
    paging = Page(page, limit)
    reservations, total = await crud.get_reservations(db, paging)
    return success(reservations, count=len(reservations), pagination=paging.links(total))


@router.get("/{reservation_id}")
async def read_reservation(reservation_id: str, current_user: dict = Depends(get_current_user),
                           db=Depends(get_db)):
    reservation = await crud.get_reservation(db, reservation_id)
    if reservation is None:
        raise crud.not_found("Reservation")

    owner = reservation["user"]["_id"] if reservation["user"] else None
    if owner != current_user["_id"] and current_user.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this reservation",
        )
    return success(reservation)


@router.put("/{reservation_id}", dependencies=[Depends(is_admin_user)])
async def update_reservation_status(reservation_id: str, payload: models.ReservationStatusUpdate,
                                    db=Depends(get_db)):
    reservation = await crud.update_reservation_status(db, reservation_id, payload.status)
    if reservation is None:
        raise crud.not_found("Reservation")
    return success(reservation)


@router.delete("/{reservation_id}", dependencies=[Depends(is_admin_user)])
async def delete_reservation(reservation_id: str, db=Depends(get_db)):
    if not await crud.delete_reservation(db, reservation_id):
        raise crud.not_found("Reservation")
    return success(message="Reservation removed")
