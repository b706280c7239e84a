import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING

from cinema_api import config

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(config.MONGODB_URL)
db = client[config.DATABASE_NAME]

USERS = "users"
MOVIES = "movies"
THEATERS = "theaters"
SESSIONS = "sessions"
RESERVATIONS = "reservations"


def get_db():
    return db


async def ensure_indexes(database):
    """Create the unique and lookup indexes the collections rely on."""
    await database[USERS].create_index("email", unique=True)
    await database[THEATERS].create_index("name", unique=True)
    await database[MOVIES].create_index("customId")
    await database[SESSIONS].create_index(
        [("movie", ASCENDING), ("theater", ASCENDING), ("datetime", ASCENDING)]
    )
    await database[RESERVATIONS].create_index([("user", ASCENDING), ("session", ASCENDING)])
    await database[RESERVATIONS].create_index([("session", ASCENDING), ("status", ASCENDING)])
    logger.info("Indexes ensured on database %s", database.name)
