from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from redis import Redis
from typing import List

from .. import schemas, crud, cache, discount_lifecycle, models
from ..auth import CurrentUserId
from ..database import get_db, get_redis_client

router = APIRouter(prefix="/discounts", tags=["Discounts"])


@router.post("/", response_model=schemas.DiscountRead, status_code=status.HTTP_201_CREATED)
def create_discount(
        discount: schemas.DiscountCreate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    if crud.get_discount_by_code(db, discount.code) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A discount with code '{discount.code}' already exists."
        )
    db_discount = crud.create_discount(db=db, discount=discount)
    cache.invalidate_discount(redis_client)
    return db_discount


@router.get("/", response_model=List[schemas.DiscountRead])
def read_discounts(
        skip: int = 0,
        limit: int = 100,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    """
    Lists the discounts that can still be applied.
    """
    cache_key = cache.list_key(cache.DISCOUNT_LIST_PREFIX, skip, limit)
    cached_discounts = cache.get_cached(redis_client, cache_key)
    if cached_discounts is not None:
        return cached_discounts

    discounts = crud.get_active_discounts(db, skip=skip, limit=limit)
    discounts_list = [schemas.DiscountRead.model_validate(d).model_dump(mode="json") for d in discounts]
    cache.set_cached(redis_client, cache_key, discounts_list)
    return discounts_list


@router.post("/expire", response_model=schemas.DiscountSweepResult)
def expire_discounts(
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    """
    Runs the expiry sweep now instead of waiting for the hourly schedule.
    """
    deactivated = discount_lifecycle.sweep_expired(db)
    if deactivated:
        cache.invalidate_discount(redis_client)
    return schemas.DiscountSweepResult(deactivated=deactivated)


@router.get("/{discount_id}", response_model=schemas.DiscountRead)
def read_discount(
        discount_id: int,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    cache_key = cache.discount_key(discount_id)
    cached_discount = cache.get_cached(redis_client, cache_key)
    if cached_discount is not None:
        return cached_discount

    db_discount = crud.get_discount(db, discount_id=discount_id)
    if db_discount is None:
        raise HTTPException(status_code=404, detail="There is no discount by this ID")

    discount_data = schemas.DiscountRead.model_validate(db_discount).model_dump(mode="json")
    cache.set_cached(redis_client, cache_key, discount_data)
    return discount_data


@router.get("/{discount_id}/validate", response_model=schemas.DiscountValidation)
def validate_discount(
        discount_id: int,
        db: Session = Depends(get_db),
):
    """
    Answers 200 if the discount can be applied to a booking right now,
    otherwise the discount_not_found / discount_inactive error.
    """
    discount_lifecycle.check_active_or_inactive(db, discount_id)
    return schemas.DiscountValidation(id=discount_id)


@router.put("/{discount_id}", response_model=schemas.DiscountRead)
def update_discount(
        discount_id: int,
        discount: schemas.DiscountUpdate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    fields = discount.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="Please provide fields to update")

    db_discount = crud.get_discount(db, discount_id=discount_id)
    if db_discount is None:
        raise HTTPException(status_code=404, detail="There is no discount by this ID")

    if "code" in fields and fields["code"] != db_discount.code:
        if crud.get_discount_by_code(db, fields["code"]) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A discount with code '{fields['code']}' already exists."
            )

    start_date = fields.get("start_date", db_discount.start_date)
    end_date = fields.get("end_date", db_discount.end_date)
    if end_date <= start_date:
        raise HTTPException(status_code=400, detail="Discount end date must be after start date.")

    max_use = fields.pop("max_use", None)
    if max_use is not None and max_use != db_discount.max_use:
        if not discount_lifecycle.change_max_use(db, discount_id, max_use, commit=False):
            db.rollback()
            raise HTTPException(
                status_code=400,
                detail="Max use cannot be lower than the number of times the discount was already used."
            )

    crud.update_discount(db, db_discount, fields)
    db.commit()
    db.refresh(db_discount)

    cache.invalidate_discount(redis_client, discount_id)
    return db_discount


@router.delete("/{discount_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_discount(
        discount_id: int,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    in_use = db.query(models.Booking).filter(models.Booking.discount_id == discount_id).first()
    if in_use is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Discount is attached to existing bookings and cannot be deleted."
        )
    if not crud.delete_discount(db=db, discount_id=discount_id):
        raise HTTPException(status_code=404, detail="There is no discount by this ID")

    cache.invalidate_discount(redis_client, discount_id)
