from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import Optional
from ordership.domain.models import Carrier, OrderStatus, ShipmentStatus, ShipmentType

class ShipmentCreate(BaseModel):
    # 0 means "not persisted yet"; a positive id refers to an existing shipment
    id: int = 0
    tracking_code: Optional[str] = None
    cost: Optional[Decimal] = None
    dispatch_date: Optional[date] = None
    estimated_arrival_date: Optional[date] = None
    carrier: Carrier = Carrier.ANDREANI
    shipment_type: ShipmentType = ShipmentType.STANDARD
    status: ShipmentStatus = ShipmentStatus.PREPARING
    order_id: Optional[int] = None

class ShipmentUpdate(BaseModel):
    tracking_code: Optional[str] = None
    cost: Optional[Decimal] = None
    dispatch_date: Optional[date] = None
    estimated_arrival_date: Optional[date] = None
    carrier: Optional[Carrier] = None
    shipment_type: Optional[ShipmentType] = None
    status: Optional[ShipmentStatus] = None

class ShipmentRead(BaseModel):
    id: int
    tracking_code: str
    cost: Decimal
    dispatch_date: date
    estimated_arrival_date: date
    carrier: Carrier
    shipment_type: ShipmentType
    status: ShipmentStatus
    order_id: Optional[int] = None
    class Config:
        from_attributes = True

class OrderCreate(BaseModel):
    order_number: Optional[str] = None
    order_date: date = Field(default_factory=date.today)
    customer_name: Optional[str] = None
    total: Optional[Decimal] = None
    status: OrderStatus = OrderStatus.NEW
    shipment: Optional[ShipmentCreate] = None

class OrderUpdate(BaseModel):
    order_number: Optional[str] = None
    order_date: Optional[date] = None
    customer_name: Optional[str] = None
    total: Optional[Decimal] = None
    status: Optional[OrderStatus] = None

class OrderRead(BaseModel):
    id: int
    order_number: str
    order_date: date
    customer_name: str
    total: Decimal
    status: OrderStatus
    shipment_id: Optional[int] = None
    shipment: Optional[ShipmentRead] = None
    # Metadata (not in DB): "current" or "deleted" when a reference exists
    shipment_data_status: Optional[str] = None
