"""Thin client for the Cinema API and the seat picker that feeds its checkout."""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests

from cinema_api import seating

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, body: Optional[dict] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body or {}


class CinemaClient:
    """Wraps the REST resources; ``http`` may be any requests-compatible session."""

    def __init__(self, base_url: str = "http://localhost:3000/api/v1", http=None,
                 token_path: Optional[Path] = None, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.token_path = Path(token_path) if token_path else None
        self.timeout = timeout
        self.token = self._load_token()

    # token storage

    def _load_token(self) -> Optional[str]:
        if self.token_path is None or not self.token_path.exists():
            return None
        return json.loads(self.token_path.read_text(encoding="utf-8")).get("token")

    def set_token(self, token: str) -> None:
        self.token = token
        if self.token_path is not None:
            self.token_path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear_token(self) -> None:
        self.token = None
        if self.token_path is not None and self.token_path.exists():
            self.token_path.unlink()

    # transport

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(
            method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs
        )
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400 or not body.get("success", False):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.error("%s %s failed with %s: %s", method, path, response.status_code, message)
            if response.status_code == 401:
                self.clear_token()
            raise ApiError(response.status_code, message, body)
        return body

    # movies / theaters

    def get_movies(self, genre: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        params = {"page": page, "limit": limit}
        if genre:
            params["genre"] = genre
        return self._request("GET", "/movies", params=params)

    def get_movie(self, movie_id: str) -> dict:
        return self._request("GET", f"/movies/{movie_id}")["data"]

    def get_theaters(self) -> List[dict]:
        return self._request("GET", "/theaters")["data"]

    def get_theater(self, theater_id: str) -> dict:
        return self._request("GET", f"/theaters/{theater_id}")["data"]

    # sessions

    def get_sessions(self, **filters) -> dict:
        return self._request("GET", "/sessions", params=filters)

    def get_session(self, session_id: str) -> dict:
        return self._request("GET", f"/sessions/{session_id}")["data"]

    def reset_session_seats(self, session_id: str) -> dict:
        return self._request("PUT", f"/sessions/{session_id}/reset-seats")["data"]

    # reservations

    def create_reservation(self, session_id: str, seats: List[dict],
                           payment_method: str = "credit_card") -> dict:
        payload = {"session": session_id, "seats": seats, "paymentMethod": payment_method}
        return self._request("POST", "/reservations", json=payload)["data"]

    def get_my_reservations(self) -> List[dict]:
        return self._request("GET", "/reservations/me")["data"]

    def get_reservation(self, reservation_id: str) -> dict:
        return self._request("GET", f"/reservations/{reservation_id}")["data"]

    def update_reservation_status(self, reservation_id: str, status: str) -> dict:
        return self._request("PUT", f"/reservations/{reservation_id}", json={"status": status})["data"]

    def delete_reservation(self, reservation_id: str) -> None:
        self._request("DELETE", f"/reservations/{reservation_id}")


class SeatSelection:
    """Seats picked on a session's seat map before checkout.

    Only available seats can be selected; reserved and occupied seats are
    read-only. Nothing is sent to the server until ``checkout``.
    """

    def __init__(self, session: dict):
        self.session = session
        self._selected: Dict[Tuple[str, int], str] = {}

    def state(self, row: str, number: int) -> str:
        seat = seating.find_seat(self.session["seats"], row, number)
        if seat is None:
            raise ValueError(f"Seat {row}{number} does not exist")
        if (row, number) in self._selected:
            return "selected"
        return seat["status"]

    def toggle(self, row: str, number: int, ticket_type: str = "full") -> bool:
        """Select or unselect a seat; returns whether it is selected afterwards."""
        current = self.state(row, number)
        if current == "selected":
            del self._selected[(row, number)]
            return False
        if current != seating.AVAILABLE:
            raise ValueError(f"Seat {row}{number} is {current}")
        self._selected[(row, number)] = ticket_type
        return True

    def set_ticket_type(self, row: str, number: int, ticket_type: str) -> None:
        if (row, number) not in self._selected:
            raise ValueError(f"Seat {row}{number} is not selected")
        self._selected[(row, number)] = ticket_type

    @property
    def seats(self) -> List[dict]:
        return [
            {"row": row, "number": number, "type": ticket_type}
            for (row, number), ticket_type in self._selected.items()
        ]

    def total(self) -> float:
        return seating.total_price(self.session["fullPrice"], self.session["halfPrice"], self.seats)

    def clear(self) -> None:
        self._selected.clear()

    def checkout(self, client: CinemaClient, payment_method: str = "credit_card") -> dict:
        if not self._selected:
            raise ValueError("No seats selected")
        reservation = client.create_reservation(self.session["_id"], self.seats, payment_method)
        self.clear()
        return reservation
