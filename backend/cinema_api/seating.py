"""Seat map operations for a session.

A session embeds its seats as ``{"row", "number", "status"}`` dicts and the
pair ``(row, number)`` identifies a seat. Everything here is pure: functions
take the seat list as read from MongoDB and return a new list to write back.
"""
import math
from typing import Iterable, List, Optional

from cinema_api.models import Seat

ROWS = ("A", "B", "C", "D", "E", "F", "G", "H")

AVAILABLE = "available"
RESERVED = "reserved"
OCCUPIED = "occupied"


def generate_seats(capacity: int) -> List[dict]:
    if capacity <= 0:
        raise ValueError("capacity must be a positive integer")

    seats_per_row = math.ceil(capacity / len(ROWS))
    seats = []
    for row in ROWS:
        for number in range(1, seats_per_row + 1):
            if len(seats) == capacity:
                return seats
            seats.append(Seat(row=row, number=number).to_document())
    return seats


def seat_label(seat) -> str:
    return f"{_get(seat, 'row')}{_get(seat, 'number')}"


def find_seat(seats: List[dict], row: str, number: int) -> Optional[dict]:
    for seat in seats:
        if seat["row"] == row and seat["number"] == number:
            return seat
    return None


def unavailable_seats(seats: List[dict], requested: Iterable) -> List[str]:
    """Labels of every requested seat that is missing or not available.

    A seat requested twice in the same list counts as unavailable the second time.
    """
    unavailable = []
    seen = set()
    for request in requested:
        key = (_get(request, "row"), _get(request, "number"))
        seat = find_seat(seats, *key)
        if seat is None or seat["status"] != AVAILABLE or key in seen:
            unavailable.append(seat_label(request))
        seen.add(key)
    return unavailable


def total_price(full_price: float, half_price: float, requested: Iterable) -> float:
    total = 0
    for request in requested:
        total += half_price if _get(request, "type") == "half" else full_price
    return total


def set_status(seats: List[dict], targets: Iterable, status: str) -> List[dict]:
    """Copy of ``seats`` with every seat matching a target set to ``status``.

    Targets with no matching seat are ignored.
    """
    keys = {(_get(target, "row"), _get(target, "number")) for target in targets}
    return [
        {**seat, "status": status} if (seat["row"], seat["number"]) in keys else dict(seat)
        for seat in seats
    ]


def reset(seats: List[dict]) -> List[dict]:
    return [{**seat, "status": AVAILABLE} for seat in seats]


def _get(item, key):
    if isinstance(item, dict):
        return item[key]
    return getattr(item, key)
