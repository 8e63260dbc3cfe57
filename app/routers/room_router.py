from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from redis import Redis
from typing import List

from .. import schemas, crud, cache
from ..auth import CurrentUserId
from ..database import get_db, get_redis_client

router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.post("/", response_model=schemas.RoomRead, status_code=status.HTTP_201_CREATED)
def create_room(
        room: schemas.RoomCreate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    if crud.get_hotel(db, hotel_id=room.hotel_id) is None:
        raise HTTPException(status_code=404, detail="Hotel not found")

    db_room = crud.create_room(db=db, room=room)
    # A new room changes every cached listing
    cache.invalidate(redis_client, prefixes=(cache.ROOM_LIST_PREFIX,))
    return db_room


@router.get("/", response_model=List[schemas.RoomRead])
def read_rooms(
        skip: int = 0,
        limit: int = 100,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    cache_key = cache.list_key(cache.ROOM_LIST_PREFIX, skip, limit)
    cached_rooms = cache.get_cached(redis_client, cache_key)
    if cached_rooms is not None:
        return cached_rooms

    rooms = crud.get_rooms(db, skip=skip, limit=limit)
    rooms_list = [schemas.RoomRead.model_validate(r).model_dump(mode="json") for r in rooms]
    cache.set_cached(redis_client, cache_key, rooms_list)
    return rooms_list


@router.get("/{room_id}", response_model=schemas.RoomRead)
def read_room(
        room_id: int,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    cache_key = cache.room_key(room_id)
    cached_room = cache.get_cached(redis_client, cache_key)
    if cached_room is not None:
        return cached_room

    db_room = crud.get_room(db, room_id=room_id)
    if db_room is None:
        raise HTTPException(status_code=404, detail="There is no room by this ID")

    room_data = schemas.RoomRead.model_validate(db_room).model_dump(mode="json")
    cache.set_cached(redis_client, cache_key, room_data)
    return room_data


@router.put("/{room_id}", response_model=schemas.RoomRead)
def update_room(
        room_id: int,
        room: schemas.RoomUpdate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    if not room.model_dump(exclude_none=True):
        raise HTTPException(status_code=400, detail="Please provide fields to update")

    db_room = crud.update_room(db, room_id=room_id, room=room)
    if db_room is None:
        raise HTTPException(status_code=404, detail="There is no room by this ID")

    cache.invalidate(redis_client, cache.room_key(room_id), prefixes=(cache.ROOM_LIST_PREFIX,))
    return db_room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
        room_id: int,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    if not crud.delete_room(db=db, room_id=room_id):
        raise HTTPException(status_code=404, detail="There is no room by this ID")

    cache.invalidate(redis_client, cache.room_key(room_id), prefixes=(cache.ROOM_LIST_PREFIX,))
