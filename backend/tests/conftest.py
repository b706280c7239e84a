import asyncio
from datetime import datetime

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from cinema_api.database import MOVIES, SESSIONS, THEATERS, USERS, get_db
from cinema_api.main import app
from cinema_api.models import Movie, Theater, User
from cinema_api.security import create_access_token


def run(coro):
    return asyncio.run(coro)


def auth(user):
    token = create_access_token({"sub": str(user["_id"])})
    return {"Authorization": f"Bearer {token}"}


def seat_status(db, session_id, row, number):
    session = run(db[SESSIONS].find_one({"_id": ObjectId(session_id)}))
    for seat in session["seats"]:
        if seat["row"] == row and seat["number"] == number:
            return seat["status"]
    return None


@pytest.fixture
def db():
    return AsyncMongoMockClient()["cinema_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role="user", name="Test User"):
        user = User(
            name=name,
            email=f"{role}-{ObjectId()}@example.com",
            password="$2b$10$notarealhash",
            role=role,
        ).to_document()
        user["_id"] = run(db[USERS].insert_one(user)).inserted_id
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", name="Admin User")


@pytest.fixture
def make_movie(db):
    def _make(title="Central do Brasil", genres=("Drama",), release=datetime(1998, 4, 3), **extra):
        movie = Movie(
            title=title,
            synopsis="A retired schoolteacher helps a boy find his father.",
            director="Walter Salles",
            genres=list(genres),
            duration=113,
            classification="PG-13",
            release_date=release,
            **extra,
        ).to_document()
        movie["_id"] = run(db[MOVIES].insert_one(movie)).inserted_id
        return movie

    return _make


@pytest.fixture
def movie(make_movie):
    return make_movie()


@pytest.fixture
def make_theater(db):
    def _make(name="Sala 1", capacity=80, type="standard"):
        theater = Theater(name=name, capacity=capacity, type=type).to_document()
        theater["_id"] = run(db[THEATERS].insert_one(theater)).inserted_id
        return theater

    return _make


@pytest.fixture
def theater(make_theater):
    return make_theater()


@pytest.fixture
def make_session(client, admin):
    def _make(movie, theater, when="2026-11-20T19:30:00", full_price=20, half_price=10):
        response = client.post(
            "/api/v1/sessions",
            json={
                "movie": str(movie["_id"]),
                "theater": str(theater["_id"]),
                "datetime": when,
                "fullPrice": full_price,
                "halfPrice": half_price,
            },
            headers=auth(admin),
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def session(make_session, movie, theater):
    return make_session(movie, theater)
