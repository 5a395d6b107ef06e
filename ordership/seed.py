"""Sample data so a fresh database has something to list."""
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session
from ordership.application.order_service import OrderService
from ordership.application.schemas import OrderCreate
from ordership.core import get_logger
from ordership.domain.models import OrderStatus

logger = get_logger(__name__)

SAMPLE_ORDERS = [
    OrderCreate(
        order_number="5",
        order_date=date(2025, 4, 10),
        customer_name="Pedro",
        total=Decimal("125.00"),
        status=OrderStatus.NEW,
    ),
]

def seed_sample_data(db: Session) -> int:
    """Insert the sample orders that are not there yet; returns how many were added."""
    service = OrderService(db)
    created = 0
    for data in SAMPLE_ORDERS:
        if service.get_by_number(data.order_number) is not None:
            logger.info(f"Sample order {data.order_number} already present, skipping")
            continue
        service.create(data)
        created += 1
    logger.info(f"Seeded {created} sample order(s)")
    return created
