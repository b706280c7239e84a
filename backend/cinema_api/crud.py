import logging
import re
from datetime import date, datetime, time, timezone
from typing import Callable, List, Optional

from bson import ObjectId
from fastapi import HTTPException, status
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from cinema_api import config, seating
from cinema_api.database import MOVIES, RESERVATIONS, SESSIONS, THEATERS, USERS
from cinema_api.models import Reservation, ReservationCreate, Session, SessionCreate, SessionUpdate
from cinema_api.responses import Page

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: datetime) -> datetime:
    # MongoDB hands datetimes back as naive UTC, store them the same way
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def not_found(resource: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


def _projection(fields):
    return {field: 1 for field in fields} if fields else None


async def _find_by_id(db, collection: str, _id, fields=None):
    if _id is None:
        return None
    return await db[collection].find_one({"_id": _id}, _projection(fields))


async def _paginate(db, collection: str, query: dict, sort, page: Page, projection=None):
    total = await db[collection].count_documents(query)
    cursor = db[collection].find(query, projection, sort=[sort], skip=page.skip, limit=page.limit)
    return await cursor.to_list(length=page.limit), total


# ===============================
# Movies
# ===============================

MOVIE_LIST_FIELDS = (
    "customId", "title", "synopsis", "director", "genres",
    "duration", "classification", "poster", "releaseDate",
)


async def get_movies(db, page: Page, genre: Optional[str] = None):
    query = {}
    if genre:
        query["genres"] = {"$in": [genre]}
    return await _paginate(db, MOVIES, query, ("releaseDate", -1), page, _projection(MOVIE_LIST_FIELDS))


async def get_movie(db, movie_id: str):
    """Look a movie up by ObjectId, falling back to its customId or exact title."""
    if ObjectId.is_valid(movie_id):
        movie = await db[MOVIES].find_one({"_id": ObjectId(movie_id)})
    else:
        movie = await db[MOVIES].find_one({
            "$or": [
                {"customId": movie_id},
                {"title": {"$regex": f"^{re.escape(movie_id)}$", "$options": "i"}},
            ]
        })
    if movie is None:
        return None
    movie["sessions"] = await db[SESSIONS].find({"movie": movie["_id"]}, {"seats": 0}).to_list(length=None)
    return movie


# ===============================
# Theaters
# ===============================

async def get_theaters(db):
    return await db[THEATERS].find().to_list(length=None)


async def get_theater(db, theater_id: str):
    theater = await db[THEATERS].find_one({"_id": ObjectId(theater_id)})
    if theater is None:
        return None
    theater["sessions"] = await db[SESSIONS].find({"theater": theater["_id"]}, {"seats": 0}).to_list(length=None)
    return theater


# ===============================
# Sessions
# ===============================

async def populate_session(db, session: dict, movie_fields=None, theater_fields=None) -> dict:
    populated = dict(session)
    populated["movie"] = await _find_by_id(db, MOVIES, session.get("movie"), movie_fields)
    populated["theater"] = await _find_by_id(db, THEATERS, session.get("theater"), theater_fields)
    return populated


async def get_sessions(db, page: Page, movie: Optional[str] = None, theater: Optional[str] = None,
                       day: Optional[date] = None):
    query = {}
    if movie:
        query["movie"] = ObjectId(movie)
    if theater:
        query["theater"] = ObjectId(theater)
    if day:
        query["datetime"] = {
            "$gte": datetime.combine(day, time.min),
            "$lte": datetime.combine(day, time.max),
        }

    sessions, total = await _paginate(db, SESSIONS, query, ("datetime", 1), page)
    populated = [
        await populate_session(db, session, ("title", "poster", "duration"), ("name", "type"))
        for session in sessions
    ]
    return populated, total


async def get_session(db, session_id: str, populate: bool = True):
    session = await db[SESSIONS].find_one({"_id": ObjectId(session_id)})
    if session is None or not populate:
        return session
    return await populate_session(db, session)


async def create_session(db, payload: SessionCreate):
    movie = await db[MOVIES].find_one({"_id": ObjectId(payload.movie)})
    if movie is None:
        raise not_found("Movie")
    theater = await db[THEATERS].find_one({"_id": ObjectId(payload.theater)})
    if theater is None:
        raise not_found("Theater")

    now = utcnow()
    session = Session(
        movie=movie["_id"],
        theater=theater["_id"],
        starts_at=naive_utc(payload.starts_at),
        full_price=payload.full_price,
        half_price=payload.half_price,
        seats=seating.generate_seats(theater["capacity"]),
        created_at=now,
        updated_at=now,
    ).to_document()
    result = await db[SESSIONS].insert_one(session)
    session["_id"] = result.inserted_id
    logger.info("Session %s created for movie %s in theater %s with %d seats",
                result.inserted_id, movie["_id"], theater["_id"], len(session["seats"]))
    return session


async def update_session(db, session_id: str, payload: SessionUpdate):
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    for reference in ("movie", "theater"):
        if changes.get(reference) is not None:
            changes[reference] = ObjectId(changes[reference])
    if changes.get("datetime") is not None:
        changes["datetime"] = naive_utc(changes["datetime"])
    changes["updatedAt"] = utcnow()

    return await db[SESSIONS].find_one_and_update(
        {"_id": ObjectId(session_id)},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )


async def delete_session(db, session_id: str) -> bool:
    result = await db[SESSIONS].delete_one({"_id": ObjectId(session_id)})
    return result.deleted_count > 0


async def update_seats(db, session_id: ObjectId, change: Callable[[List[dict]], List[dict]]):
    """Apply ``change`` to a session's seat map and write it back.

    The write only lands if the seat map is still the one ``change`` saw, so a
    concurrent request cannot be overwritten. On conflict the session is re-read
    and ``change`` runs again. Returns the updated session, or None if it does
    not exist.
    """
    for attempt in range(1, config.SEAT_UPDATE_RETRIES + 1):
        session = await db[SESSIONS].find_one({"_id": session_id})
        if session is None:
            return None

        seats = change(session["seats"])
        result = await db[SESSIONS].update_one(
            {"_id": session_id, "seats": session["seats"]},
            {"$set": {"seats": seats, "updatedAt": utcnow()}},
        )
        if result.matched_count:
            session["seats"] = seats
            return session
        logger.warning("Seat map of session %s changed while updating (attempt %d)", session_id, attempt)

    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Seat map is being updated by another request, please try again",
    )


async def reset_session_seats(db, session_id: str):
    session = await update_seats(db, ObjectId(session_id), seating.reset)
    if session is not None:
        logger.info("All %d seats of session %s reset to available", len(session["seats"]), session_id)
    return session


async def release_seats(db, session_id: ObjectId, seats: List[dict]):
    """Put a reservation's seats back to available; a missing session is skipped."""
    session = await update_seats(
        db, session_id, lambda current: seating.set_status(current, seats, seating.AVAILABLE)
    )
    if session is None:
        logger.info("Session %s no longer exists, no seats to release", session_id)
    else:
        logger.info("Released seats %s of session %s",
                    ", ".join(seating.seat_label(seat) for seat in seats), session_id)
    return session


# ===============================
# Reservations
# ===============================

SESSION_SUMMARY = (("title", "poster"), ("name",))


async def populate_reservation(db, reservation: dict, with_user: bool = False) -> dict:
    populated = dict(reservation)
    if with_user:
        populated["user"] = await _find_by_id(db, USERS, reservation.get("user"), ("name", "email"))
    session = await _find_by_id(db, SESSIONS, reservation.get("session"), ("movie", "theater", "datetime"))
    if session is not None:
        session = await populate_session(db, session, *SESSION_SUMMARY)
    populated["session"] = session
    return populated


async def get_reservations(db, page: Page):
    reservations, total = await _paginate(db, RESERVATIONS, {}, ("createdAt", -1), page)
    populated = [await populate_reservation(db, reservation, with_user=True) for reservation in reservations]
    return populated, total


async def get_user_reservations(db, user_id: ObjectId):
    reservations = await db[RESERVATIONS].find({"user": user_id}, sort=[("createdAt", -1)]).to_list(length=None)
    return [await populate_reservation(db, reservation) for reservation in reservations]


async def get_reservation(db, reservation_id: str):
    reservation = await db[RESERVATIONS].find_one({"_id": ObjectId(reservation_id)})
    if reservation is None:
        return None
    return await populate_reservation(db, reservation, with_user=True)


async def create_reservation(db, user: dict, payload: ReservationCreate):
    """Book seats of a session for ``user``.

    Seats are claimed first with a conditional write on the seat map; the
    reservation is inserted afterwards and the seats are released again if
    that insert fails.
    """
    session_id = ObjectId(payload.session)
    requested = [seat.to_document() for seat in payload.seats]

    def claim(seats):
        unavailable = seating.unavailable_seats(seats, requested)
        if unavailable:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": f"The following seats are not available: {', '.join(unavailable)}",
                    "errors": {"seats": unavailable},
                },
            )
        return seating.set_status(seats, requested, seating.OCCUPIED)

    session = await update_seats(db, session_id, claim)
    if session is None:
        raise not_found("Session")

    now = utcnow()
    reservation = Reservation(
        user=user["_id"],
        session=session_id,
        seats=requested,
        total_price=seating.total_price(session["fullPrice"], session["halfPrice"], requested),
        status="confirmed",
        payment_status="completed",
        payment_method=payload.payment_method,
        payment_date=now,
        created_at=now,
        updated_at=now,
    ).to_document()

    try:
        result = await db[RESERVATIONS].insert_one(reservation)
    except PyMongoError:
        logger.error("Saving reservation for session %s failed, releasing claimed seats", session_id)
        await release_seats(db, session_id, requested)
        raise

    reservation["_id"] = result.inserted_id
    logger.info("Reservation %s confirmed for user %s: seats %s, total %s",
                result.inserted_id, user["_id"],
                ", ".join(seating.seat_label(seat) for seat in requested), reservation["totalPrice"])
    return await populate_reservation(db, reservation)


async def update_reservation_status(db, reservation_id: str, new_status: str):
    reservation = await db[RESERVATIONS].find_one({"_id": ObjectId(reservation_id)})
    if reservation is None:
        return None

    if new_status == "cancelled" and reservation["status"] != "cancelled":
        await release_seats(db, reservation["session"], reservation["seats"])

    now = utcnow()
    await db[RESERVATIONS].update_one(
        {"_id": reservation["_id"]},
        {"$set": {"status": new_status, "updatedAt": now}},
    )
    reservation.update(status=new_status, updatedAt=now)
    logger.info("Reservation %s status set to %s", reservation_id, new_status)
    return reservation


async def delete_reservation(db, reservation_id: str) -> bool:
    reservation = await db[RESERVATIONS].find_one({"_id": ObjectId(reservation_id)})
    if reservation is None:
        return False

    await release_seats(db, reservation["session"], reservation["seats"])
    await db[RESERVATIONS].delete_one({"_id": reservation["_id"]})
    logger.info("Reservation %s deleted", reservation_id)
    return True
