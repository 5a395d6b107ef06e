"""
Persistence gateway for orders and shipments.

Thin wrappers over a SQLAlchemy session. Every query filters out
soft-deleted rows; writes are flushed (not committed) so the caller's
``transaction`` block decides when they become durable. Store failures are
translated into the domain error taxonomy here and nowhere else.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from ordership.domain.errors import DuplicateKeyError, IdentityAssignmentError, PersistenceError
from ordership.domain.models import Order, Shipment

_UNIQUE_MARKERS = ("unique", "duplicate")

@contextmanager
def store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        detail = str(e.orig).lower()
        if any(marker in detail for marker in _UNIQUE_MARKERS):
            raise DuplicateKeyError(f"{action}: a record with the same unique key already exists") from e
        raise PersistenceError(f"{action}: {e.orig}") from e
    except SQLAlchemyError as e:
        raise PersistenceError(f"{action}: {e}") from e

class ShipmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, shipment: Shipment) -> Shipment:
        with store_errors("Inserting shipment"):
            self.db.add(shipment)
            self.db.flush()  # assign id
        if not shipment.id:
            raise IdentityAssignmentError("Shipment insert succeeded but no generated id was returned")
        return shipment

    def save(self, shipment: Shipment) -> Shipment:
        with store_errors(f"Updating shipment {shipment.id}"):
            self.db.flush()
        return shipment

    def get_active(self, shipment_id: int) -> Optional[Shipment]:
        with store_errors(f"Loading shipment {shipment_id}"):
            return self.db.scalars(
                select(Shipment).where(Shipment.id == shipment_id, Shipment.deleted.is_(False))
            ).first()

    def list_active(self) -> List[Shipment]:
        with store_errors("Listing shipments"):
            return list(self.db.scalars(
                select(Shipment).where(Shipment.deleted.is_(False)).order_by(Shipment.id)
            ))

    def find_active_by_tracking(self, tracking_code: str) -> Optional[Shipment]:
        with store_errors(f"Looking up tracking code {tracking_code}"):
            return self.db.scalars(
                select(Shipment).where(Shipment.tracking_code == tracking_code, Shipment.deleted.is_(False))
            ).first()

    def soft_delete(self, shipment_id: int) -> bool:
        shipment = self.get_active(shipment_id)
        if shipment is None:
            return False
        with store_errors(f"Deleting shipment {shipment_id}"):
            shipment.deleted = True
            self.db.flush()
        return True

class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return select(Order).where(Order.deleted.is_(False))

    def add(self, order: Order) -> Order:
        with store_errors("Inserting order"):
            self.db.add(order)
            self.db.flush()  # assign id
        if not order.id:
            raise IdentityAssignmentError("Order insert succeeded but no generated id was returned")
        return order

    def save(self, order: Order) -> Order:
        with store_errors(f"Updating order {order.id}"):
            self.db.flush()
        return order

    def get_active(self, order_id: int) -> Optional[Order]:
        with store_errors(f"Loading order {order_id}"):
            return self.db.scalars(self._active().where(Order.id == order_id)).first()

    def list_active(self) -> List[Order]:
        with store_errors("Listing orders"):
            return list(self.db.scalars(self._active().order_by(Order.id)))

    def find_active_by_number(self, order_number: str) -> Optional[Order]:
        with store_errors(f"Looking up order number {order_number}"):
            return self.db.scalars(self._active().where(Order.order_number == order_number)).first()

    def search_by_customer_name(self, text: str, case_insensitive: bool = True) -> List[Order]:
        if case_insensitive:
            # Backend lower() is ASCII-only on SQLite, fold in Python instead
            needle = text.casefold()
            return [o for o in self.list_active() if needle in o.customer_name.casefold()]
        with store_errors(f"Searching orders for customer '{text}'"):
            stmt = self._active().where(
                Order.customer_name.contains(text, autoescape=True)
            ).order_by(Order.id)
            orders = list(self.db.scalars(stmt))
        # LIKE ignores ASCII case on some backends
        return [o for o in orders if text in o.customer_name]

    def list_active_by_shipment(self, shipment_id: int) -> List[Order]:
        with store_errors(f"Listing orders referencing shipment {shipment_id}"):
            return list(self.db.scalars(self._active().where(Order.shipment_id == shipment_id).order_by(Order.id)))

    def soft_delete(self, order_id: int) -> bool:
        order = self.get_active(order_id)
        if order is None:
            return False
        with store_errors(f"Deleting order {order_id}"):
            order.deleted = True
            self.db.flush()
        return True
