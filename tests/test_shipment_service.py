from datetime import date
from decimal import Decimal

import pytest

from factories import make_order, make_shipment
from ordership.application.schemas import ShipmentUpdate
from ordership.domain.errors import DuplicateKeyError, ErrorKind, NotFoundError, ValidationError
from ordership.domain.models import Carrier, ShipmentStatus


def test_create_assigns_generated_id(shipment_service):
    shipment = shipment_service.create(make_shipment())
    assert shipment.id > 0
    assert shipment.deleted is False
    assert shipment_service.get(shipment.id).tracking_code == "TRK-001"


def test_create_strips_tracking_code(shipment_service):
    shipment = shipment_service.create(make_shipment(tracking_code="  TRK-009 "))
    assert shipment.tracking_code == "TRK-009"


@pytest.mark.parametrize("overrides, field", [
    ({"tracking_code": "   "}, "tracking_code"),
    ({"tracking_code": None}, "tracking_code"),
    ({"cost": Decimal("-0.01")}, "cost"),
    ({"cost": None}, "cost"),
    ({"dispatch_date": None}, "dispatch_date"),
    ({"estimated_arrival_date": date(2025, 4, 11)}, "estimated_arrival_date"),
])
def test_create_rejects_invalid_shipment(shipment_service, overrides, field):
    with pytest.raises(ValidationError) as exc:
        shipment_service.create(make_shipment(**overrides))
    assert exc.value.field == field
    assert exc.value.kind is ErrorKind.VALIDATION
    assert shipment_service.list() == []


def test_arrival_on_dispatch_day_is_allowed(shipment_service):
    shipment = shipment_service.create(make_shipment(
        dispatch_date=date(2025, 4, 12), estimated_arrival_date=date(2025, 4, 12)
    ))
    assert shipment.id > 0


def test_create_rejects_dispatch_before_order_date(shipment_service):
    with pytest.raises(ValidationError):
        shipment_service.create(make_shipment(dispatch_date=date(2025, 4, 1)), not_before=date(2025, 4, 10))


def test_create_rejects_duplicate_tracking_code(shipment_service):
    shipment_service.create(make_shipment())
    with pytest.raises(DuplicateKeyError):
        shipment_service.create(make_shipment())
    assert len(shipment_service.list()) == 1


def test_update_changes_fields_but_not_deleted_flag(shipment_service):
    shipment = shipment_service.create(make_shipment())
    updated = shipment_service.update(shipment.id, ShipmentUpdate(
        carrier=Carrier.OCA, status=ShipmentStatus.IN_TRANSIT, cost=Decimal("2000.00")
    ))
    assert updated.carrier is Carrier.OCA
    assert updated.status is ShipmentStatus.IN_TRANSIT
    assert updated.cost == Decimal("2000.00")
    assert updated.tracking_code == "TRK-001"
    assert updated.deleted is False


def test_update_revalidates_date_ordering(shipment_service):
    shipment = shipment_service.create(make_shipment())
    with pytest.raises(ValidationError):
        shipment_service.update(shipment.id, ShipmentUpdate(estimated_arrival_date=date(2025, 4, 1)))
    assert shipment_service.get(shipment.id).estimated_arrival_date == date(2025, 4, 15)


def test_update_does_not_check_dispatch_against_order_date(order_service, shipment_service):
    order = order_service.create(make_order(order_date=date(2025, 4, 10), shipment=make_shipment()))

    updated = shipment_service.update(order.shipment_id, ShipmentUpdate(dispatch_date=date(2025, 4, 1)))

    assert updated.dispatch_date == date(2025, 4, 1)


def test_update_has_no_order_date_argument(shipment_service):
    shipment = shipment_service.create(make_shipment())
    with pytest.raises(TypeError):
        shipment_service.update(shipment.id, ShipmentUpdate(), not_before=date(2025, 4, 20))


def test_update_keeping_own_tracking_code_does_not_collide(shipment_service):
    shipment = shipment_service.create(make_shipment())
    updated = shipment_service.update(shipment.id, ShipmentUpdate(tracking_code="TRK-001"))
    assert updated.tracking_code == "TRK-001"


def test_update_rejects_tracking_code_of_another_shipment(shipment_service):
    shipment_service.create(make_shipment(tracking_code="TRK-A"))
    other = shipment_service.create(make_shipment(tracking_code="TRK-B"))
    with pytest.raises(DuplicateKeyError):
        shipment_service.update(other.id, ShipmentUpdate(tracking_code="TRK-A"))


@pytest.mark.parametrize("shipment_id", [0, -3])
def test_update_requires_positive_id(shipment_service, shipment_id):
    with pytest.raises(ValidationError):
        shipment_service.update(shipment_id, ShipmentUpdate(carrier=Carrier.OCA))


def test_update_missing_shipment_raises_not_found(shipment_service):
    with pytest.raises(NotFoundError):
        shipment_service.update(99, ShipmentUpdate(carrier=Carrier.OCA))


def test_soft_delete_hides_shipment(shipment_service):
    shipment = shipment_service.create(make_shipment())
    shipment_service.soft_delete(shipment.id)
    assert shipment_service.get(shipment.id) is None
    assert shipment_service.list() == []


def test_soft_delete_twice_raises_not_found(shipment_service):
    shipment = shipment_service.create(make_shipment())
    shipment_service.soft_delete(shipment.id)
    with pytest.raises(NotFoundError):
        shipment_service.soft_delete(shipment.id)


def test_soft_delete_does_not_check_references(order_service, shipment_service):
    order = order_service.create(make_order(shipment=make_shipment()))
    shipment_id = order.shipment_id

    shipment_service.soft_delete(shipment_id)

    reloaded = order_service.get(order.id)
    assert reloaded.shipment_id == shipment_id
    assert order_service.to_read(reloaded).shipment_data_status == "deleted"


def test_tracking_code_of_deleted_shipment_is_reported_by_the_store(shipment_service):
    shipment = shipment_service.create(make_shipment())
    shipment_service.soft_delete(shipment.id)
    # Not an active duplicate, but the column is unique in the store
    with pytest.raises(DuplicateKeyError):
        shipment_service.create(make_shipment())


def test_get_returns_none_when_absent(shipment_service):
    assert shipment_service.get(42) is None


def test_referencing_orders_lists_every_sharing_order(order_service, shipment_service):
    first = order_service.create(make_order(order_number="1", shipment=make_shipment()))
    second = order_service.create(make_order(order_number="2"))
    order_service.attach_shipment(second.id, make_shipment(id=first.shipment_id))

    referencing = shipment_service.referencing_orders(first.shipment_id)

    assert [o.order_number for o in referencing] == ["1", "2"]
