from fastapi import APIRouter

from cinema_api.routers import movies, reservations, sessions, theaters

api_router = APIRouter()


@api_router.get("")
def api_index():
    return {
        "success": True,
        "message": "Cinema App API v1",
        "version": "1.0.0",
        "endpoints": {
            "movies": "/movies",
            "theaters": "/theaters",
            "sessions": "/sessions",
            "reservations": "/reservations",
        },
        "documentation": "/docs",
    }


api_router.include_router(movies.router)
api_router.include_router(theaters.router)
api_router.include_router(sessions.router)
api_router.include_router(reservations.router)
