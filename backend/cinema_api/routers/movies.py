from fastapi import APIRouter, Depends
from typing import Optional

from cinema_api import crud
from cinema_api.database import get_db
from cinema_api.responses import Page, success

router = APIRouter(
    prefix="/movies",
    tags=["movies"],
)


@router.get("")
async def read_movies(genre: Optional[str] = None, page: int = 1, limit: int = 10, db=Depends(get_db)):
    paging = Page(page, limit)
    movies, total = await crud.get_movies(db, paging, genre=genre)
    return success(movies, count=len(movies), pagination=paging.links(total))


@router.get("/{movie_id}")
async def read_movie(movie_id: str, db=Depends(get_db)):
    movie = await crud.get_movie(db, movie_id)
    if movie is None:
        raise crud.not_found("Movie")
    return success(movie)
