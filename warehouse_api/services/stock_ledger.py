"""
Stock ledger: the only code path that changes a product's stock level.

Every mutation appends to (or, for a reversal, removes from) ``stock_movements``
and updates ``products.current_stock`` in the same transaction, so the cached
balance always equals ``sum(stock_movements.qty_delta)`` for the product.

Each mutation runs its read-validate-write sequence while holding both the
in-process per-product lock and the product row lock (``SELECT ... FOR UPDATE``),
then commits. Any failure rolls the session back before the typed error is
raised; nothing is retried here.

Adjustment semantics: the quantity passed with an ``adjustment`` is the target
balance, not a change. The stored movement quantity is the magnitude of the
delta that was actually applied, which is why adjustments cannot be reversed
automatically.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from warehouse_api.core.errors import (
    InsufficientStock,
    InvalidArgument,
    LedgerError,
    NotFound,
    StoreFailure,
    UnsupportedOperation,
)
from warehouse_api.core.id_utils import generate_uuid
from warehouse_api.core.locks import product_locks
from warehouse_api.core.observability import ledger_logger, log_event
from warehouse_api.models.product import Product
from warehouse_api.models.stock_movement import MAX_QUANTITY, MOVEMENT_TYPES, StockMovement

__all__ = [
    "InsufficientStock",
    "InvalidArgument",
    "LedgerError",
    "MovementReceipt",
    "NotFound",
    "ReversalGrant",
    "ReversalReceipt",
    "StoreFailure",
    "UnsupportedOperation",
    "delete_product",
    "get_balance",
    "ledger_sum",
    "record_movement",
    "reverse_movement",
]


@dataclass(frozen=True)
class MovementReceipt:
    movement_id: str
    product_id: str
    movement_type: str
    quantity: int
    qty_delta: int
    new_balance: int


@dataclass(frozen=True)
class ReversalReceipt:
    movement_id: str
    product_id: str
    new_balance: int


@dataclass(frozen=True)
class ReversalGrant:
    """Issued by the API layer once it has decided the actor may reverse movements."""

    actor: str


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _normalize_movement_type(movement_type: str) -> str:
    normalized = str(movement_type or "").strip().lower()
    if normalized not in MOVEMENT_TYPES:
        raise InvalidArgument("Movement type must be in, out, or adjustment")
    return normalized


def _validate_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidArgument("Quantity must be a positive integer")
    if quantity > MAX_QUANTITY:
        raise InvalidArgument(f"Quantity cannot exceed {MAX_QUANTITY}")
    return quantity


def _validate_actor(actor: str) -> str:
    cleaned = _clean_optional(actor)
    if not cleaned:
        raise InvalidArgument("An actor is required to change stock")
    return cleaned


def _lock_product(db: Session, product_id: str) -> Product:
    product = db.execute(
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found")
    return product


def _check_ceiling(new_balance: int) -> None:
    if new_balance > MAX_QUANTITY:
        raise InvalidArgument(f"Stock level cannot exceed {MAX_QUANTITY}")


def _balance_change(movement_type: str, quantity: int, balance: int) -> int:
    if movement_type == "in":
        _check_ceiling(balance + quantity)
        return quantity
    if movement_type == "out":
        if balance < quantity:
            raise InsufficientStock("Insufficient stock for this movement")
        return -quantity
    delta = quantity - balance
    if delta == 0:
        raise InvalidArgument(
            f"Stock is already {balance}; an adjustment must change the level"
        )
    return delta


def _reject(db: Session, event: str, exc: LedgerError, **fields) -> None:
    db.rollback()
    log_event(ledger_logger, event, level=logging.WARNING, code=exc.code, reason=exc.message, **fields)


def record_movement(
    db: Session,
    product_id: str,
    movement_type: str,
    quantity: int,
    *,
    actor: str,
    reference_number: str | None = None,
    notes: str | None = None,
) -> MovementReceipt:
    """
    Append one movement and apply it to the product balance atomically.

    For ``adjustment`` the quantity is the target balance; the stored
    movement quantity is ``abs(target - previous balance)``.
    """
    try:
        movement_type = _normalize_movement_type(movement_type)
        quantity = _validate_quantity(quantity)
        actor = _validate_actor(actor)
    except InvalidArgument as exc:
        _reject(db, "stock_movement.rejected", exc, product_id=product_id)
        raise

    with product_locks.hold(product_id):
        try:
            product = _lock_product(db, product_id)
            qty_delta = _balance_change(movement_type, quantity, product.current_stock)
            new_balance = product.current_stock + qty_delta

            movement_id = generate_uuid()
            db.add(
                StockMovement(
                    id=movement_id,
                    product_id=product.id,
                    movement_type=movement_type,
                    quantity=abs(qty_delta),
                    qty_delta=qty_delta,
                    reference_number=_clean_optional(reference_number),
                    notes=_clean_optional(notes),
                    created_by=actor,
                )
            )
            product._current_stock = new_balance
            db.commit()
        except LedgerError as exc:
            _reject(db, "stock_movement.rejected", exc, product_id=product_id, movement_type=movement_type)
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreFailure("Stock movement could not be recorded") from exc

    log_event(
        ledger_logger,
        "stock_movement.recorded",
        movement_id=movement_id,
        product_id=product_id,
        movement_type=movement_type,
        qty_delta=qty_delta,
        new_balance=new_balance,
        actor=actor,
    )
    return MovementReceipt(
        movement_id=movement_id,
        product_id=product_id,
        movement_type=movement_type,
        quantity=abs(qty_delta),
        qty_delta=qty_delta,
        new_balance=new_balance,
    )


def reverse_movement(db: Session, movement_id: str, grant: ReversalGrant) -> ReversalReceipt:
    """Undo an ``in`` or ``out`` movement: restore the balance and delete the row."""
    if not isinstance(grant, ReversalGrant):
        raise InvalidArgument("Reversing a movement requires a reversal grant")

    product_id = db.execute(
        select(StockMovement.product_id).where(StockMovement.id == movement_id)
    ).scalar_one_or_none()
    if product_id is None:
        db.rollback()
        raise NotFound("Stock movement not found")

    with product_locks.hold(product_id):
        try:
            product = _lock_product(db, product_id)
            movement = db.execute(
                select(StockMovement)
                .where(StockMovement.id == movement_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if movement is None:
                raise NotFound("Stock movement not found")

            if movement.movement_type == "in":
                change = -movement.quantity
            elif movement.movement_type == "out":
                change = movement.quantity
            else:
                raise UnsupportedOperation("Cannot automatically reverse adjustment movements")

            new_balance = product.current_stock + change
            if new_balance < 0:
                raise InsufficientStock("Reversal would leave negative stock")
            _check_ceiling(new_balance)

            product._current_stock = new_balance
            db.delete(movement)
            db.commit()
        except LedgerError as exc:
            _reject(db, "stock_movement.reversal_rejected", exc, movement_id=movement_id)
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreFailure("Stock movement could not be reversed") from exc

    log_event(
        ledger_logger,
        "stock_movement.reversed",
        movement_id=movement_id,
        product_id=product_id,
        new_balance=new_balance,
        actor=grant.actor,
    )
    return ReversalReceipt(movement_id=movement_id, product_id=product_id, new_balance=new_balance)


def get_balance(db: Session, product_id: str) -> int:
    balance = db.execute(
        select(Product.current_stock).where(Product.id == product_id)
    ).scalar_one_or_none()
    if balance is None:
        raise NotFound("Product not found")
    return int(balance)


def ledger_sum(db: Session, product_id: str) -> int:
    q = select(func.coalesce(func.sum(StockMovement.qty_delta), 0)).where(
        StockMovement.product_id == product_id,
    )
    return int(db.execute(q).scalar_one())


def delete_product(db: Session, product_id: str, *, actor: str | None = None) -> int:
    """Delete a product together with its movement history. Returns the number of movements removed."""
    with product_locks.hold(product_id):
        try:
            product = _lock_product(db, product_id)
            removed = db.execute(
                delete(StockMovement).where(StockMovement.product_id == product.id)
            ).rowcount
            db.delete(product)
            db.commit()
        except LedgerError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreFailure("Product could not be deleted") from exc

    log_event(
        ledger_logger,
        "product.deleted",
        product_id=product_id,
        movements_removed=removed,
        actor=actor,
    )
    return int(removed or 0)
