"""
Text menu over the order and shipment coordinators.

Each action runs in its own session and is logged as one operation. Every
coordinator error is caught here and reported to the operator; the loop
only ends on "0" or end of input.
"""

from datetime import date
from typing import Callable, Dict, List, Optional, Tuple
from sqlalchemy.orm import sessionmaker
from ordership.application.order_service import OrderService
from ordership.application.schemas import OrderCreate, OrderRead, OrderUpdate, ShipmentCreate, ShipmentUpdate
from ordership.core import get_logger, operation_logging
from ordership.domain.errors import OrderShipmentError
from ordership.domain.models import Carrier, Order, OrderStatus, Shipment, ShipmentStatus, ShipmentType
from ordership.infrastructure.db import session_scope
from .prompts import Prompter

logger = get_logger(__name__)

MENU_TEXT = """
========= ORDERS & SHIPMENTS =========
 1. Create order
 2. List / search orders
 3. Update order
 4. Delete order
 5. List shipments
 6. Update shipment by id
 7. Update shipment of an order
 8. Delete shipment by id (unsafe)
 9. Delete shipment of an order (safe)
10. Attach new shipment to order
11. Attach existing shipment to order
 0. Exit
======================================"""

class MenuHandler:
    def __init__(self, session_factory: sessionmaker, prompter: Optional[Prompter] = None, operator: Optional[str] = None):
        self.session_factory = session_factory
        self.prompt = prompter or Prompter()
        self.out = self.prompt.out
        self.operator = operator
        self.actions: Dict[str, Tuple[str, Callable[[OrderService], None]]] = {
            "1": ("create_order", self.create_order),
            "2": ("list_orders", self.list_orders),
            "3": ("update_order", self.update_order),
            "4": ("delete_order", self.delete_order),
            "5": ("list_shipments", self.list_shipments),
            "6": ("update_shipment", self.update_shipment),
            "7": ("update_order_shipment", self.update_order_shipment),
            "8": ("delete_shipment_unsafe", self.delete_shipment_unsafe),
            "9": ("detach_and_delete_shipment", self.detach_and_delete_shipment),
            "10": ("attach_new_shipment", self.attach_new_shipment),
            "11": ("attach_existing_shipment", self.attach_existing_shipment),
        }

    def run(self) -> None:
        while True:
            self.out(MENU_TEXT)
            try:
                option = self.prompt.ask_text("Option", optional=True) or ""
            except EOFError:
                break
            if option == "0":
                break
            try:
                self.dispatch(option)
            except EOFError:
                break
        self.out("Goodbye.")

    def dispatch(self, option: str) -> None:
        if option not in self.actions:
            self.out("Invalid option.")
            return
        name, handler = self.actions[option]
        try:
            with operation_logging(name, operator=self.operator), session_scope(self.session_factory) as db:
                handler(OrderService(db))
        except OrderShipmentError as e:
            self.out(f"Error ({e.kind.value}): {e}")
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            self.out(f"Invalid input: {e}")

    # Orders

    def create_order(self, orders: OrderService) -> None:
        data = OrderCreate(
            order_number=self.prompt.ask_text("Order number"),
            order_date=self.prompt.ask_date("Order date", default=date.today()),
            customer_name=self.prompt.ask_text("Customer name"),
            total=self.prompt.ask_decimal("Total"),
            status=self.prompt.ask_enum("Status", OrderStatus, default=OrderStatus.NEW),
        )
        if self.prompt.ask_yes_no("Add a shipment?"):
            data.shipment = self._collect_shipment()
        order = orders.create(data)
        self.out(f"Order created with ID: {order.id}")
        if order.shipment_id:
            self.out(f"Shipment created with ID: {order.shipment_id}")

    def list_orders(self, orders: OrderService) -> None:
        choice = self.prompt.ask_text("(1) list all, (2) search by customer name, (3) find by order number")
        if choice == "1":
            found = orders.list()
        elif choice == "2":
            found = orders.search_by_customer_name(self.prompt.ask_text("Text to search"))
        elif choice == "3":
            order = orders.get_by_number(self.prompt.ask_text("Order number"))
            found = [order] if order else []
        else:
            self.out("Invalid option.")
            return
        if not found:
            self.out("No orders found.")
            return
        for order in found:
            self._print_order(orders.to_read(order))

    def update_order(self, orders: OrderService) -> None:
        order = self._load_order(orders)
        if order is None:
            return
        data = OrderUpdate(
            order_number=self.prompt.ask_text("Order number", optional=True, current=order.order_number),
            order_date=self.prompt.ask_date("Order date", optional=True, current=order.order_date),
            customer_name=self.prompt.ask_text("Customer name", optional=True, current=order.customer_name),
            total=self.prompt.ask_decimal("Total", optional=True, current=order.total),
            status=self.prompt.ask_enum("Status", OrderStatus, optional=True, current=order.status),
        )
        orders.update(order.id, data)
        self.out("Order updated.")

    def delete_order(self, orders: OrderService) -> None:
        order_id = self.prompt.ask_int("Order ID to delete", min_value=1)
        orders.soft_delete(order_id)
        self.out(f"Order {order_id} deleted. Its shipment, if any, remains active.")

    # Shipments

    def list_shipments(self, orders: OrderService) -> None:
        shipments = orders.shipment_service.list()
        if not shipments:
            self.out("No shipments found.")
            return
        for shipment in shipments:
            sharing = len(orders.shipment_service.referencing_orders(shipment.id))
            self.out(f"ID: {shipment.id}, {_describe_shipment(shipment)}, referenced by {sharing} order(s)")

    def update_shipment(self, orders: OrderService) -> None:
        shipment_id = self.prompt.ask_int("Shipment ID to update", min_value=1)
        shipment = orders.shipment_service.get(shipment_id)
        if shipment is None:
            self.out("Shipment not found.")
            return
        self._warn_if_shared(orders.shipment_service.referencing_orders(shipment.id))
        orders.shipment_service.update(shipment.id, self._collect_shipment_changes(shipment))
        self.out("Shipment updated.")

    def update_order_shipment(self, orders: OrderService) -> None:
        order = self._load_order(orders)
        if order is None:
            return
        if order.shipment_id is None or order.shipment is None or order.shipment.deleted:
            self.out("The order has no active shipment.")
            return
        self._warn_if_shared(orders.shipment_service.referencing_orders(order.shipment_id))
        orders.update_order_shipment(order.id, self._collect_shipment_changes(order.shipment))
        self.out("Shipment updated.")

    def delete_shipment_unsafe(self, orders: OrderService) -> None:
        shipment_id = self.prompt.ask_int("Shipment ID to delete", min_value=1)
        referencing = orders.shipment_service.referencing_orders(shipment_id)
        if referencing:
            numbers = ", ".join(o.order_number for o in referencing)
            self.out(f"WARNING: orders {numbers} still reference this shipment and will be left pointing at a deleted record.")
            self.out("Use option 9 to detach the shipment from its order first.")
            if not self.prompt.ask_yes_no("Delete anyway?"):
                self.out("Cancelled.")
                return
            logger.warning(
                f"Unsafe delete of referenced shipment {shipment_id}",
                extra={'extra_fields': {'shipment_id': shipment_id, 'orders': [o.id for o in referencing]}}
            )
        orders.shipment_service.soft_delete(shipment_id)
        self.out(f"Shipment {shipment_id} deleted.")

    def detach_and_delete_shipment(self, orders: OrderService) -> None:
        order = self._load_order(orders)
        if order is None:
            return
        if order.shipment_id is None:
            self.out("The order has no shipment.")
            return
        orders.detach_and_delete_shipment(order.id, order.shipment_id)
        self.out("Shipment deleted and order reference cleared.")

    def attach_new_shipment(self, orders: OrderService) -> None:
        order = self._load_order(orders)
        if order is None:
            return
        orders.attach_shipment(order.id, self._collect_shipment())
        self.out(f"Shipment {order.shipment_id} attached to order {order.id}.")

    def attach_existing_shipment(self, orders: OrderService) -> None:
        order = self._load_order(orders)
        if order is None:
            return
        shipment_id = self.prompt.ask_int("Existing shipment ID", min_value=1)
        orders.attach_shipment(order.id, ShipmentCreate(id=shipment_id))
        self.out(f"Shipment {shipment_id} attached to order {order.id}.")

    # Helpers

    def _load_order(self, orders: OrderService) -> Optional[Order]:
        order = orders.get(self.prompt.ask_int("Order ID", min_value=1))
        if order is None:
            self.out("Order not found.")
        return order

    def _collect_shipment(self) -> ShipmentCreate:
        return ShipmentCreate(
            tracking_code=self.prompt.ask_text("Tracking code"),
            carrier=self.prompt.ask_enum("Carrier", Carrier),
            shipment_type=self.prompt.ask_enum("Shipment type", ShipmentType, default=ShipmentType.STANDARD),
            status=self.prompt.ask_enum("Shipment status", ShipmentStatus, default=ShipmentStatus.PREPARING),
            cost=self.prompt.ask_decimal("Cost"),
            dispatch_date=self.prompt.ask_date("Dispatch date"),
            estimated_arrival_date=self.prompt.ask_date("Estimated arrival date"),
        )

    def _collect_shipment_changes(self, shipment: Shipment) -> ShipmentUpdate:
        return ShipmentUpdate(
            tracking_code=self.prompt.ask_text("Tracking code", optional=True, current=shipment.tracking_code),
            carrier=self.prompt.ask_enum("Carrier", Carrier, optional=True, current=shipment.carrier),
            status=self.prompt.ask_enum("Shipment status", ShipmentStatus, optional=True, current=shipment.status),
            cost=self.prompt.ask_decimal("Cost", optional=True, current=shipment.cost),
            estimated_arrival_date=self.prompt.ask_date(
                "Estimated arrival date", optional=True, current=shipment.estimated_arrival_date
            ),
        )

    def _warn_if_shared(self, referencing: List[Order]) -> None:
        if len(referencing) > 1:
            numbers = ", ".join(o.order_number for o in referencing)
            self.out(f"Note: this shipment is shared by orders {numbers}; the change applies to all of them.")

    def _print_order(self, order: OrderRead) -> None:
        self.out(
            f"ID: {order.id}, Number: {order.order_number}, Date: {order.order_date.isoformat()}, "
            f"Customer: {order.customer_name}, Total: {order.total:.2f}, Status: {order.status.value}"
        )
        if order.shipment is not None:
            self.out(f"   Shipment {order.shipment.id}: {_describe_shipment(order.shipment)}")
        elif order.shipment_data_status == "deleted":
            self.out(f"   Shipment {order.shipment_id}: deleted (dangling reference)")

def _describe_shipment(shipment) -> str:
    return (
        f"{shipment.carrier.value} {shipment.tracking_code} ({shipment.shipment_type.value}, "
        f"{shipment.status.value}), cost {shipment.cost:.2f}, "
        f"{shipment.dispatch_date.isoformat()} -> {shipment.estimated_arrival_date.isoformat()}"
    )