import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinema_api import config, database
from cinema_api.errors import register_exception_handlers
from cinema_api.routers import api_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Connecting to MongoDB database %s...", config.DATABASE_NAME)
    await database.ensure_indexes(database.db)
    logger.info("Cinema API ready (%s)", config.ENVIRONMENT)
    yield
    database.client.close()
    logger.info("MongoDB connection closed.")


app = FastAPI(title="Cinema API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
def read_root():
    return {
        "message": "Welcome to Cinema App API",
        "documentation": "/docs",
    }


app.include_router(api_router, prefix=config.API_PREFIX)
