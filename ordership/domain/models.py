from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Numeric, Date, Boolean, CheckConstraint, Enum as SAEnum
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

class OrderStatus(str, Enum):
    NEW = "NEW"
    BILLED = "BILLED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

class Carrier(str, Enum):
    ANDREANI = "ANDREANI"
    OCA = "OCA"
    CORREO_ARGENTINO = "CORREO_ARGENTINO"

class ShipmentType(str, Enum):
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"

class ShipmentStatus(str, Enum):
    PREPARING = "PREPARING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"

def _enum_column(enum_cls):
    # Stored as plain VARCHAR so adding a member never needs a type migration
    return SAEnum(enum_cls, native_enum=False, length=45, validate_strings=True)

class Base(DeclarativeBase):
    pass

class Shipment(Base):
    __tablename__ = "shipments"
    __table_args__ = (
        CheckConstraint("estimated_arrival_date >= dispatch_date", name="ck_shipments_arrival_after_dispatch"),
    )
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tracking_code: Mapped[str] = mapped_column(String(45), unique=True)
    cost: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    dispatch_date: Mapped[date] = mapped_column(Date)
    estimated_arrival_date: Mapped[date] = mapped_column(Date)
    shipment_type: Mapped[ShipmentType] = mapped_column(_enum_column(ShipmentType))
    carrier: Mapped[Carrier] = mapped_column(_enum_column(Carrier))
    status: Mapped[ShipmentStatus] = mapped_column(_enum_column(ShipmentStatus))
    # Order that first created the shipment; informational only (no
    # relationship, orders may share a shipment). Created after both tables.
    order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("orders.id", onupdate="CASCADE", use_alter=True, name="fk_shipments_order_id_orders"),
        nullable=True,
    )

class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_orders_total_non_negative"),
    )
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order_date: Mapped[date] = mapped_column(Date)
    customer_name: Mapped[str] = mapped_column(String(120))
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    status: Mapped[OrderStatus] = mapped_column(_enum_column(OrderStatus))
    # Many orders may point at the same shipment
    shipment_id: Mapped[Optional[int]] = mapped_column(ForeignKey("shipments.id"), nullable=True, index=True)
    shipment: Mapped[Optional[Shipment]] = relationship("Shipment", foreign_keys=[shipment_id], lazy="joined")
