from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from ordership.core import get_logger
from ordership.domain.errors import DuplicateKeyError, NotFoundError, ValidationError
from ordership.domain.models import Order, Shipment
from ordership.infrastructure.db import transaction
from ordership.infrastructure.repositories import OrderRepository, ShipmentRepository
from .schemas import ShipmentCreate, ShipmentUpdate

logger = get_logger(__name__)

_MUTABLE_FIELDS = (
    "tracking_code",
    "cost",
    "dispatch_date",
    "estimated_arrival_date",
    "carrier",
    "shipment_type",
    "status",
)

def require_positive_id(value: int, label: str) -> None:
    if value is None or value <= 0:
        raise ValidationError(f"{label} must be greater than 0", field=label)

class ShipmentService:
    def __init__(self, db: Session):
        self.db = db
        self.shipments = ShipmentRepository(db)
        self.orders = OrderRepository(db)

    def list(self) -> List[Shipment]:
        return self.shipments.list_active()

    def get(self, shipment_id: int) -> Optional[Shipment]:
        """Active shipment by id, or None when absent or soft-deleted."""
        require_positive_id(shipment_id, "shipment id")
        return self.shipments.get_active(shipment_id)

    def referencing_orders(self, shipment_id: int) -> List[Order]:
        """Active orders currently pointing at this shipment."""
        require_positive_id(shipment_id, "shipment id")
        return self.orders.list_active_by_shipment(shipment_id)

    def create(self, data: ShipmentCreate, not_before: Optional[date] = None) -> Shipment:
        """
        Validate and insert a new shipment.

        ``not_before`` is the placement date of the order the shipment is
        created for; the dispatch date may not precede it.
        """
        fields = data.model_dump(include=set(_MUTABLE_FIELDS))
        fields["tracking_code"] = (fields["tracking_code"] or "").strip()
        self._validate(fields, not_before)

        with transaction(self.db):
            self._ensure_tracking_unique(fields["tracking_code"])
            shipment = Shipment(**fields, order_id=data.order_id, deleted=False)
            self.shipments.add(shipment)

        logger.info(
            f"Shipment {shipment.id} created",
            extra={'extra_fields': {'shipment_id': shipment.id, 'tracking_code': shipment.tracking_code}}
        )
        return shipment

    def update(self, shipment_id: int, data: ShipmentUpdate) -> Shipment:
        """
        Update the mutable fields of an active shipment; ``deleted`` is never touched.

        The row is shared: every order referencing it sees the change.
        """
        require_positive_id(shipment_id, "shipment id")

        with transaction(self.db):
            shipment = self.shipments.get_active(shipment_id)
            if shipment is None:
                raise NotFoundError(f"Shipment {shipment_id} not found")

            changes = data.model_dump(exclude_unset=True, exclude_none=True)
            if "tracking_code" in changes:
                changes["tracking_code"] = changes["tracking_code"].strip()
            merged = {field: changes.get(field, getattr(shipment, field)) for field in _MUTABLE_FIELDS}
            self._validate(merged)
            if merged["tracking_code"] != shipment.tracking_code:
                self._ensure_tracking_unique(merged["tracking_code"], exclude_id=shipment.id)

            for key, value in changes.items():
                setattr(shipment, key, value)
            self.shipments.save(shipment)

        sharing = len(self.orders.list_active_by_shipment(shipment.id))
        logger.info(
            f"Shipment {shipment.id} updated",
            extra={'extra_fields': {'shipment_id': shipment.id, 'fields': sorted(changes), 'referencing_orders': sharing}}
        )
        return shipment

    def soft_delete(self, shipment_id: int) -> None:
        """
        Flag the shipment as deleted without looking at who references it.

        Orders pointing at it keep a dangling reference; use
        ``OrderService.detach_and_delete_shipment`` for the safe path.
        """
        require_positive_id(shipment_id, "shipment id")
        with transaction(self.db):
            if not self.shipments.soft_delete(shipment_id):
                raise NotFoundError(f"Shipment {shipment_id} not found")
        logger.info(f"Shipment {shipment_id} soft-deleted", extra={'extra_fields': {'shipment_id': shipment_id}})

    def _ensure_tracking_unique(self, tracking_code: str, exclude_id: Optional[int] = None) -> None:
        existing = self.shipments.find_active_by_tracking(tracking_code)
        if existing is not None and existing.id != exclude_id:
            logger.warning(f"Duplicate tracking code rejected: {tracking_code}")
            raise DuplicateKeyError(f"A shipment with tracking code {tracking_code} already exists", field="tracking_code")

    @staticmethod
    def _validate(fields: dict, not_before: Optional[date] = None) -> None:
        if not fields.get("tracking_code"):
            raise ValidationError("Tracking code cannot be empty", field="tracking_code")
        cost = fields.get("cost")
        if cost is None:
            raise ValidationError("Cost is required", field="cost")
        if Decimal(cost) < 0:
            raise ValidationError("Cost cannot be negative", field="cost")
        dispatch = fields.get("dispatch_date")
        if dispatch is None:
            raise ValidationError("Dispatch date is required", field="dispatch_date")
        arrival = fields.get("estimated_arrival_date")
        if arrival is None:
            raise ValidationError("Estimated arrival date is required", field="estimated_arrival_date")
        if arrival < dispatch:
            raise ValidationError("Estimated arrival date cannot precede the dispatch date", field="estimated_arrival_date")
        if not_before is not None and dispatch < not_before:
            raise ValidationError("Dispatch date cannot precede the order date", field="dispatch_date")
