from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from redis import Redis
from typing import List

from .. import schemas, crud, cache
from ..auth import CurrentUserId
from ..database import get_db, get_redis_client

router = APIRouter(prefix="/hotels", tags=["Hotels"])


@router.post("/", response_model=schemas.HotelRead, status_code=status.HTTP_201_CREATED)
def create_hotel(
        hotel: schemas.HotelCreate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    db_hotel = crud.create_hotel(db=db, hotel=hotel)
    cache.invalidate(redis_client, prefixes=(cache.HOTEL_LIST_PREFIX,))
    return db_hotel


@router.get("/", response_model=List[schemas.HotelRead])
def read_hotels(
        skip: int = 0,
        limit: int = 100,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    cache_key = cache.list_key(cache.HOTEL_LIST_PREFIX, skip, limit)
    cached_hotels = cache.get_cached(redis_client, cache_key)
    if cached_hotels is not None:
        return cached_hotels

    hotels = crud.get_hotels(db, skip=skip, limit=limit)
    hotels_list = [schemas.HotelRead.model_validate(h).model_dump(mode="json") for h in hotels]
    cache.set_cached(redis_client, cache_key, hotels_list)
    return hotels_list


@router.get("/{hotel_id}", response_model=schemas.HotelRead)
def read_hotel(
        hotel_id: int,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    cache_key = cache.hotel_key(hotel_id)
    cached_hotel = cache.get_cached(redis_client, cache_key)
    if cached_hotel is not None:
        return cached_hotel

    db_hotel = crud.get_hotel(db, hotel_id=hotel_id)
    if db_hotel is None:
        raise HTTPException(status_code=404, detail="Hotel not found")

    hotel_data = schemas.HotelRead.model_validate(db_hotel).model_dump(mode="json")
    cache.set_cached(redis_client, cache_key, hotel_data)
    return hotel_data
