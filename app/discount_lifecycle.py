"""
Discount lifecycle: the only code allowed to write a discount's status and
used_count.

Status only ever moves Active -> Inactive, either when used_count reaches
max_use or when the hourly sweep finds end_date in the past. Both
transitions are conditional UPDATE statements, so concurrent bookings
consuming the same discount can never lose an increment or push used_count
past max_use.
"""
import datetime
import logging

from sqlalchemy import case, literal, select, update
from sqlalchemy.orm import Session

from . import models
from .exceptions import DiscountNotFoundError, DiscountInactiveError, DiscountExhaustedError
from .models import DiscountStatus

logger = logging.getLogger("booking_service")

_STATUS_TYPE = models.Discount.__table__.c.status.type


def _get_discount(db: Session, discount_id) -> models.Discount:
    discount = db.get(models.Discount, discount_id, populate_existing=True)
    if discount is None:
        raise DiscountNotFoundError(discount_id)
    return discount


def check_active_or_inactive(db: Session, discount_id) -> None:
    """
    Guard: raises unless the discount exists and is Active. Never mutates.
    """
    discount = _get_discount(db, discount_id)
    if discount.status == DiscountStatus.INACTIVE:
        raise DiscountInactiveError(discount_id)


def increment_usage(db: Session, discount_id, commit: bool = True) -> models.Discount:
    """
    Consumes one use of a discount.

    The read-compare-write happens inside a single UPDATE guarded by
    ``used_count < max_use``; the row flips to Inactive in the same
    statement when the new count reaches max_use. When nothing matched the
    row is read back only to report why.

    With ``commit=False`` the increment stays in the caller's transaction,
    which lets a booking insert and its discount consumption commit or roll
    back together.
    """
    stmt = (
        update(models.Discount)
        .where(
            models.Discount.id == discount_id,
            models.Discount.status == DiscountStatus.ACTIVE,
            models.Discount.used_count < models.Discount.max_use,
        )
        .values(
            used_count=models.Discount.used_count + 1,
            # SET expressions see the pre-update row
            status=case(
                (
                    models.Discount.used_count + 1 >= models.Discount.max_use,
                    literal(DiscountStatus.INACTIVE, _STATUS_TYPE),
                ),
                else_=models.Discount.status,
            ),
            updated_at=models.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)

    if result.rowcount == 0:
        discount = _get_discount(db, discount_id)
        if discount.used_count >= discount.max_use:
            raise DiscountExhaustedError(discount_id)
        raise DiscountInactiveError(discount_id)

    if commit:
        db.commit()

    discount = _get_discount(db, discount_id)
    logger.info(
        f"Discount {discount_id} usage increased to {discount.used_count}/{discount.max_use} "
        f"(status={discount.status.value})"
    )
    return discount


def deactivate(db: Session, discount_id, commit: bool = True) -> bool:
    """
    Moves an Active discount to Inactive.

    Returns True if this call made the transition, False if the discount
    was already Inactive or does not exist.
    """
    stmt = (
        update(models.Discount)
        .where(
            models.Discount.id == discount_id,
            models.Discount.status == DiscountStatus.ACTIVE,
        )
        .values(status=DiscountStatus.INACTIVE, updated_at=models.utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if commit:
        db.commit()
    return result.rowcount > 0


def change_max_use(db: Session, discount_id, max_use: int, commit: bool = True) -> bool:
    """
    Moves the usage ceiling of a discount.

    Refused (returns False) when the discount has already been used more
    than ``max_use`` times. A ceiling equal to the current usage exhausts
    the discount and flips it to Inactive in the same statement.
    """
    stmt = (
        update(models.Discount)
        .where(
            models.Discount.id == discount_id,
            models.Discount.used_count <= max_use,
        )
        .values(
            max_use=max_use,
            status=case(
                (models.Discount.used_count >= max_use, literal(DiscountStatus.INACTIVE, _STATUS_TYPE)),
                else_=models.Discount.status,
            ),
            updated_at=models.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if commit:
        db.commit()
    return result.rowcount > 0


def sweep_expired(db: Session, now: datetime.datetime | None = None) -> int:
    """
    Deactivates every Active discount whose end_date has passed.

    Each discount is committed on its own. A failure on one discount is
    logged and rolled back and the sweep moves on; stragglers are picked up
    by the next run. Returns how many discounts were deactivated.
    """
    now = now or models.utcnow()

    active_discounts = db.execute(
        select(models.Discount).where(models.Discount.status == DiscountStatus.ACTIVE)
    ).scalars().all()

    if not active_discounts:
        logger.info("No active discounts found, nothing to expire.")
        return 0

    # Snapshot ids and dates first, a rollback below expires loaded instances
    candidates = [(d.id, d.end_date) for d in active_discounts]

    deactivated = 0
    for discount_id, end_date in candidates:
        if end_date >= now:
            continue
        try:
            if deactivate(db, discount_id):
                deactivated += 1
                logger.info(f"Discount {discount_id} expired on {end_date}, marked Inactive.")
        except Exception as e:
            logger.error(f"Failed to expire discount {discount_id}: {e}")
            db.rollback()
            continue

    logger.info(
        f"Checked and updated discount statuses for {len(candidates)} discounts "
        f"({deactivated} deactivated)."
    )
    return deactivated
