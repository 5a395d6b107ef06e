"""Payload builders shared by the test modules."""
from datetime import date
from decimal import Decimal

from ordership.application.schemas import OrderCreate, ShipmentCreate
from ordership.domain.models import Carrier, OrderStatus, ShipmentStatus, ShipmentType


def make_shipment(**overrides) -> ShipmentCreate:
    data = dict(
        tracking_code="TRK-001",
        cost=Decimal("1500.00"),
        dispatch_date=date(2025, 4, 12),
        estimated_arrival_date=date(2025, 4, 15),
        carrier=Carrier.ANDREANI,
        shipment_type=ShipmentType.STANDARD,
        status=ShipmentStatus.PREPARING,
    )
    data.update(overrides)
    return ShipmentCreate(**data)


def make_order(**overrides) -> OrderCreate:
    data = dict(
        order_number="5",
        order_date=date(2025, 4, 10),
        customer_name="Pedro",
        total=Decimal("125.00"),
        status=OrderStatus.NEW,
    )
    data.update(overrides)
    return OrderCreate(**data)
