from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from ordership.core import get_logger
from ordership.domain.errors import DuplicateKeyError, NotFoundError, ValidationError
from ordership.domain.models import Order, Shipment
from ordership.infrastructure.db import transaction
from ordership.infrastructure.repositories import OrderRepository
from .schemas import OrderCreate, OrderRead, OrderUpdate, ShipmentCreate, ShipmentRead, ShipmentUpdate
from .shipment_service import ShipmentService, require_positive_id

logger = get_logger(__name__)

_MUTABLE_FIELDS = ("order_number", "order_date", "customer_name", "total", "status")
_SHIPMENT_FIELDS = {
    "tracking_code",
    "cost",
    "dispatch_date",
    "estimated_arrival_date",
    "carrier",
    "shipment_type",
    "status",
}

class OrderService:
    """
    Coordinates orders and the shipment each one may reference.

    Several orders may point at the same shipment, so nothing here deletes or
    rewrites a shipment as a side effect of an order operation. Shipment
    (re)association only happens through ``create``, ``attach_shipment`` and
    ``detach_and_delete_shipment``.
    """

    def __init__(self, db: Session, shipment_service: Optional[ShipmentService] = None):
        self.db = db
        self.orders = OrderRepository(db)
        self.shipment_service = shipment_service or ShipmentService(db)

    def list(self) -> List[Order]:
        return self.orders.list_active()

    def get(self, order_id: int) -> Optional[Order]:
        require_positive_id(order_id, "order id")
        return self.orders.get_active(order_id)

    def get_by_number(self, order_number: str) -> Optional[Order]:
        if order_number is None or not order_number.strip():
            raise ValidationError("Order number cannot be empty", field="order_number")
        return self.orders.find_active_by_number(order_number.strip())

    def search_by_customer_name(self, text: str, case_insensitive: bool = True) -> List[Order]:
        """Active orders whose customer name contains ``text``."""
        if text is None or not text.strip():
            raise ValidationError("Search text cannot be empty", field="customer_name")
        return self.orders.search_by_customer_name(text.strip(), case_insensitive=case_insensitive)

    def to_read(self, order: Order) -> OrderRead:
        """Snapshot of the order with the current data of its shipment, if any."""
        shipment = order.shipment
        read = OrderRead(
            id=order.id,
            order_number=order.order_number,
            order_date=order.order_date,
            customer_name=order.customer_name,
            total=order.total,
            status=order.status,
            shipment_id=order.shipment_id,
        )
        if order.shipment_id is None:
            return read
        if shipment is not None and not shipment.deleted:
            read.shipment = ShipmentRead.model_validate(shipment)
            read.shipment_data_status = "current"
        else:
            # Left behind by an unsafe shipment delete
            read.shipment_data_status = "deleted"
        return read

    def get_with_metadata(self, order_id: int) -> Optional[OrderRead]:
        order = self.get(order_id)
        if not order:
            return None
        return self.to_read(order)

    def list_with_metadata(self) -> List[OrderRead]:
        return [self.to_read(order) for order in self.list()]

    def create(self, data: OrderCreate) -> Order:
        """
        Insert an order, storing its shipment first when one is supplied.

        A shipment with ``id == 0`` is inserted to obtain its generated id; a
        positive id updates the existing shipment. The order is written last
        so its reference always points at a stored shipment. Everything runs
        in one transaction.
        """
        fields = self._normalize(data.model_dump(include=set(_MUTABLE_FIELDS)))
        self._validate(fields)

        with transaction(self.db):
            self._ensure_number_unique(fields["order_number"])

            shipment = None
            if data.shipment is not None:
                shipment = self._store_shipment(data.shipment, fields["order_date"])

            order = Order(**fields, deleted=False, shipment=shipment)
            self.orders.add(order)

            if shipment is not None and shipment.order_id is None:
                shipment.order_id = order.id
                self.shipment_service.shipments.save(shipment)

        logger.info(
            f"Order {order.id} created",
            extra={'extra_fields': {
                'order_id': order.id,
                'order_number': order.order_number,
                'shipment_id': order.shipment_id,
            }}
        )
        return order

    def update(self, order_id: int, data: OrderUpdate) -> Order:
        """Update the order's own fields; its shipment reference is left as is."""
        require_positive_id(order_id, "order id")

        with transaction(self.db):
            order = self.orders.get_active(order_id)
            if order is None:
                raise NotFoundError(f"Order {order_id} not found")

            changes = self._normalize(data.model_dump(exclude_unset=True, exclude_none=True))
            merged = {field: changes.get(field, getattr(order, field)) for field in _MUTABLE_FIELDS}
            self._validate(merged)
            self._ensure_number_unique(merged["order_number"], exclude_id=order.id)

            for key, value in changes.items():
                setattr(order, key, value)
            self.orders.save(order)

        logger.info(
            f"Order {order.id} updated",
            extra={'extra_fields': {'order_id': order.id, 'fields': sorted(changes)}}
        )
        return order

    def soft_delete(self, order_id: int) -> None:
        """Flag the order as deleted; its shipment stays active for other orders."""
        require_positive_id(order_id, "order id")
        with transaction(self.db):
            if not self.orders.soft_delete(order_id):
                raise NotFoundError(f"Order {order_id} not found")
        logger.info(f"Order {order_id} soft-deleted", extra={'extra_fields': {'order_id': order_id}})

    def attach_shipment(self, order_id: int, data: ShipmentCreate) -> Order:
        """Point the order at a new (``id == 0``) or existing shipment."""
        require_positive_id(order_id, "order id")

        with transaction(self.db):
            order = self.orders.get_active(order_id)
            if order is None:
                raise NotFoundError(f"Order {order_id} not found")

            if data.id == 0 and data.order_id is None:
                data = data.model_copy(update={"order_id": order.id})
            shipment = self._store_shipment(data, order.order_date)
            order.shipment = shipment
            self.orders.save(order)

        logger.info(
            f"Shipment {shipment.id} attached to order {order.id}",
            extra={'extra_fields': {'order_id': order.id, 'shipment_id': shipment.id}}
        )
        return order

    def update_order_shipment(self, order_id: int, data: ShipmentUpdate) -> Shipment:
        """Update the shipment an order points at (shared with any other order using it)."""
        order = self.get(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        if order.shipment_id is None:
            raise ValidationError(f"Order {order_id} has no shipment", field="shipment_id")
        return self.shipment_service.update(order.shipment_id, data)

    def detach_and_delete_shipment(self, order_id: int, shipment_id: int) -> None:
        """
        Safe shipment deletion: clear the order's reference, then soft-delete.

        Fails with ValidationError, leaving both records untouched, when the
        order does not currently point at ``shipment_id``. Both steps share
        one transaction, so the order can never end up referencing a deleted
        shipment.
        """
        require_positive_id(order_id, "order id")
        require_positive_id(shipment_id, "shipment id")

        with transaction(self.db):
            order = self.orders.get_active(order_id)
            if order is None:
                raise NotFoundError(f"Order {order_id} not found")
            if order.shipment_id != shipment_id:
                logger.warning(
                    f"Shipment {shipment_id} does not belong to order {order_id}",
                    extra={'extra_fields': {'order_id': order_id, 'current_shipment_id': order.shipment_id}}
                )
                raise ValidationError(
                    f"Shipment {shipment_id} does not belong to order {order_id}", field="shipment_id"
                )

            shipment = order.shipment
            order.shipment = None
            order.shipment_id = None
            self.orders.save(order)

            if shipment is not None and not shipment.deleted:
                self.shipment_service.soft_delete(shipment_id)
            else:
                logger.warning(
                    f"Shipment {shipment_id} was already deleted, only the reference was cleared",
                    extra={'extra_fields': {'order_id': order_id, 'shipment_id': shipment_id}}
                )

        logger.info(
            f"Shipment {shipment_id} detached from order {order_id} and deleted",
            extra={'extra_fields': {'order_id': order_id, 'shipment_id': shipment_id}}
        )

    def _store_shipment(self, data: ShipmentCreate, order_date: date) -> Shipment:
        if data.id == 0:
            return self.shipment_service.create(data, not_before=order_date)
        if data.id < 0:
            raise ValidationError("Shipment id cannot be negative", field="shipment_id")
        changes = ShipmentUpdate(**data.model_dump(include=_SHIPMENT_FIELDS, exclude_unset=True))
        return self.shipment_service.update(data.id, changes)

    def _ensure_number_unique(self, order_number: str, exclude_id: Optional[int] = None) -> None:
        existing = self.orders.find_active_by_number(order_number)
        if existing is not None and existing.id != exclude_id:
            logger.warning(f"Duplicate order number rejected: {order_number}")
            raise DuplicateKeyError(f"An order with number {order_number} already exists", field="order_number")

    @staticmethod
    def _normalize(fields: dict) -> dict:
        for key in ("order_number", "customer_name"):
            if isinstance(fields.get(key), str):
                fields[key] = fields[key].strip()
        return fields

    @staticmethod
    def _validate(fields: dict) -> None:
        if not fields.get("order_number"):
            raise ValidationError("Order number cannot be empty", field="order_number")
        if not fields.get("customer_name"):
            raise ValidationError("Customer name cannot be empty", field="customer_name")
        total = fields.get("total")
        if total is None:
            raise ValidationError("Total is required", field="total")
        if Decimal(total) < 0:
            raise ValidationError("Total cannot be negative", field="total")
        if fields.get("order_date") is None:
            raise ValidationError("Order date is required", field="order_date")
