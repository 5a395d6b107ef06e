"""
Tests for the console menu.

The menu is driven with scripted answers; running out of answers behaves
like the operator closing stdin.
"""
import logging
from datetime import date

import pytest

from factories import make_order, make_shipment
from ordership.application.order_service import OrderService
from ordership.cli.menu import MenuHandler
from ordership.cli.prompts import Prompter
from ordership.domain.models import Carrier, OrderStatus, ShipmentType


def scripted(*answers):
    remaining = iter(answers)

    def fake_input(prompt):
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError
    return fake_input


def run_menu(session_factory, *answers) -> str:
    lines = []
    MenuHandler(session_factory, Prompter(scripted(*answers), lines.append)).run()
    return "\n".join(lines)


@pytest.fixture
def order_with_shipment(order_service):
    return order_service.create(make_order(shipment=make_shipment()))


def test_exit_option(session_factory):
    output = run_menu(session_factory, "0")
    assert output.endswith("Goodbye.")


def test_end_of_input_exits(session_factory):
    assert run_menu(session_factory).endswith("Goodbye.")


def test_invalid_option(session_factory):
    assert "Invalid option." in run_menu(session_factory, "42", "0")


def test_create_order_without_shipment(session_factory):
    output = run_menu(
        session_factory,
        "1", "5", "2025-04-10", "Pedro", "125.00", "", "n",
        "0",
    )

    assert "Order created with ID: 1" in output
    with session_factory() as db:
        order = OrderService(db).get(1)
        assert order.customer_name == "Pedro"
        assert order.status is OrderStatus.NEW
        assert order.shipment_id is None


def test_create_order_with_shipment(session_factory):
    output = run_menu(
        session_factory,
        "1", "7", "2025-04-10", "Ana", "50,5", "1", "y",
        "TRK-9", "oca", "", "", "1200", "2025-04-11", "2025-04-14",
        "0",
    )

    assert "Shipment created with ID: 1" in output
    with session_factory() as db:
        order = OrderService(db).get_by_number("7")
        assert order.shipment.tracking_code == "TRK-9"
        assert order.shipment.carrier is Carrier.OCA
        assert order.shipment.shipment_type is ShipmentType.STANDARD
        assert order.shipment.estimated_arrival_date == date(2025, 4, 14)


def test_bad_answers_are_asked_again(session_factory):
    output = run_menu(
        session_factory,
        "1", "8", "10/04/2025", "2025-04-10", "Luis", "abc", "10", "", "maybe", "n",
        "0",
    )
    assert "Please enter a valid date as YYYY-MM-DD" in output
    assert "Please enter a valid amount (e.g. 125.50)" in output
    assert "Please enter 'y' or 'n'" in output
    assert "Order created with ID: 1" in output


def test_validation_error_is_reported_and_loop_continues(session_factory):
    output = run_menu(
        session_factory,
        "1", "5", "2025-04-10", "Pedro", "-3", "", "n",
        "0",
    )
    assert "Error (validation): Total cannot be negative" in output
    assert output.endswith("Goodbye.")


def test_duplicate_order_number_is_reported(session_factory, order_service):
    order_service.create(make_order(order_number="10"))
    output = run_menu(
        session_factory,
        "1", "10", "2025-04-10", "Ana", "1", "", "n",
        "0",
    )
    assert "Error (duplicate_key): An order with number 10 already exists" in output


def test_search_orders_by_customer(session_factory, order_with_shipment, order_service):
    order_service.create(make_order(order_number="6", customer_name="Maria"))
    output = run_menu(session_factory, "2", "2", "ped", "0")
    assert "Number: 5" in output
    assert "Customer: Pedro" in output
    assert "Shipment 1: ANDREANI TRK-001" in output
    assert "Number: 6" not in output


def test_find_order_by_number_with_no_match(session_factory):
    assert "No orders found." in run_menu(session_factory, "2", "3", "99", "0")


def test_update_order_keeps_blank_fields(session_factory, order_service):
    order = order_service.create(make_order())
    output = run_menu(session_factory, "3", str(order.id), "", "", "Pedro Gomez", "", "", "0")

    assert "Order updated." in output
    with session_factory() as db:
        updated = OrderService(db).get(order.id)
        assert updated.customer_name == "Pedro Gomez"
        assert updated.order_number == "5"


def test_update_missing_order(session_factory):
    assert "Order not found." in run_menu(session_factory, "3", "99", "0")


def test_delete_order_keeps_shipment(session_factory, order_with_shipment):
    output = run_menu(session_factory, "4", str(order_with_shipment.id), "0")

    assert "remains active" in output
    with session_factory() as db:
        service = OrderService(db)
        assert service.get(order_with_shipment.id) is None
        assert service.shipment_service.get(order_with_shipment.shipment_id) is not None


def test_list_shipments_shows_reference_count(session_factory, order_with_shipment):
    output = run_menu(session_factory, "5", "0")
    assert "ID: 1, ANDREANI TRK-001" in output
    assert "referenced by 1 order(s)" in output


def test_update_shipment_by_id_warns_when_shared(session_factory, order_with_shipment, order_service):
    second = order_service.create(make_order(order_number="6"))
    order_service.attach_shipment(second.id, make_shipment(id=order_with_shipment.shipment_id))

    output = run_menu(
        session_factory,
        "6", str(order_with_shipment.shipment_id), "TRK-777", "", "", "", "",
        "0",
    )

    assert "shared by orders 5, 6" in output
    assert "Shipment updated." in output
    with session_factory() as db:
        assert OrderService(db).get(second.id).shipment.tracking_code == "TRK-777"


def test_update_shipment_via_order(session_factory, order_with_shipment):
    output = run_menu(session_factory, "7", str(order_with_shipment.id), "", "", "IN_TRANSIT", "", "", "0")

    assert "Shipment updated." in output
    with session_factory() as db:
        shipment = OrderService(db).get(order_with_shipment.id).shipment
        assert shipment.status.value == "IN_TRANSIT"


def test_unsafe_delete_of_referenced_shipment_can_be_cancelled(session_factory, order_with_shipment):
    output = run_menu(session_factory, "8", str(order_with_shipment.shipment_id), "n", "0")

    assert "WARNING: orders 5 still reference this shipment" in output
    assert "Cancelled." in output
    with session_factory() as db:
        assert OrderService(db).shipment_service.get(order_with_shipment.shipment_id) is not None


def test_unsafe_delete_confirmed_leaves_dangling_reference(session_factory, order_with_shipment):
    run_menu(session_factory, "8", str(order_with_shipment.shipment_id), "y", "0")

    output = run_menu(session_factory, "2", "1", "0")
    assert "Shipment 1: deleted (dangling reference)" in output


def test_safe_delete_via_order(session_factory, order_with_shipment):
    output = run_menu(session_factory, "9", str(order_with_shipment.id), "0")

    assert "Shipment deleted and order reference cleared." in output
    with session_factory() as db:
        service = OrderService(db)
        assert service.get(order_with_shipment.id).shipment_id is None
        assert service.shipment_service.get(order_with_shipment.shipment_id) is None


def test_safe_delete_on_order_without_shipment(session_factory, order_service):
    order = order_service.create(make_order())
    assert "The order has no shipment." in run_menu(session_factory, "9", str(order.id), "0")


def test_attach_new_shipment(session_factory, order_service):
    order = order_service.create(make_order())
    output = run_menu(
        session_factory,
        "10", str(order.id), "TRK-5", "2", "2", "", "300", "2025-04-10", "2025-04-11",
        "0",
    )

    assert f"attached to order {order.id}" in output
    with session_factory() as db:
        shipment = OrderService(db).get(order.id).shipment
        assert shipment.tracking_code == "TRK-5"
        assert shipment.carrier is Carrier.OCA
        assert shipment.shipment_type is ShipmentType.EXPRESS


def test_attach_existing_missing_shipment_is_reported(session_factory, order_service):
    order = order_service.create(make_order())
    output = run_menu(session_factory, "11", str(order.id), "77", "0")
    assert "Error (not_found): Shipment 77 not found" in output


def test_actions_are_logged_with_the_operator(session_factory, caplog):
    handler = MenuHandler(session_factory, Prompter(scripted("5", "0"), [].append), operator="maria")
    with caplog.at_level(logging.INFO, logger="ordership.core.logging_config"):
        handler.run()
    started = next(r for r in caplog.records if r.name == "ordership.core.logging_config")
    assert started.getMessage() == "Operation started: list_shipments"
    assert started.operator == "maria"


def test_rejected_action_is_logged_without_stacktrace(session_factory, caplog):
    with caplog.at_level(logging.INFO, logger="ordership.core.logging_config"):
        run_menu(session_factory, "4", "99", "0")
    rejected = [
        r for r in caplog.records
        if r.name == "ordership.core.logging_config" and r.levelno >= logging.WARNING
    ]
    assert [r.getMessage() for r in rejected] == ["Operation rejected: delete_order"]
    assert rejected[0].exc_info is None
