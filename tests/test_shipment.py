import pytest

from wms.application.exceptions import InsufficientStock, OrderAlreadyShipped, OrderNotFound
from wms.application.order_service import OrderService
from wms.application.schemas import OrderCreate
from wms.domain.models import Order


def make_order(session_factory, lines):
    with session_factory() as session:
        payload = OrderCreate(
            name="Acme",
            address="1 Dock Road",
            products=[{"productId": pid, "quantity": qty} for pid, qty in lines],
        )
        return OrderService(session, shipment_guard=False).create(payload).id


def order_status(session_factory, order_id):
    with session_factory() as session:
        return session.get(Order, order_id).status


def test_shortage_on_one_line_deducts_nothing(db, session_factory, stock, quantity_of):
    p1 = stock("P1", 5)
    p2 = stock("P2", 1)
    order_id = make_order(session_factory, [(p1, 2), (p2, 3)])

    with pytest.raises(InsufficientStock) as excinfo:
        OrderService(db, shipment_guard=False).ship(order_id)
    assert excinfo.value.product_id == p2
    assert quantity_of(p1) == 5
    assert quantity_of(p2) == 1


def test_shipment_deducts_every_line(db, session_factory, stock, quantity_of):
    p1 = stock("P1", 5)
    p2 = stock("P2", 3)
    order_id = make_order(session_factory, [(p1, 2), (p2, 3)])

    OrderService(db, shipment_guard=False).ship(order_id)
    assert quantity_of(p1) == 3
    assert quantity_of(p2) == 0
    assert order_status(session_factory, order_id) == "pending"


def test_second_shipment_fails_when_stock_covers_one(db, session_factory, stock, quantity_of):
    p1 = stock("P1", 4)
    order_id = make_order(session_factory, [(p1, 3)])
    service = OrderService(db, shipment_guard=False)

    service.ship(order_id)
    with pytest.raises(InsufficientStock):
        service.ship(order_id)
    assert quantity_of(p1) == 1


def test_second_shipment_deducts_again_without_guard(db, session_factory, stock, quantity_of):
    p1 = stock("P1", 10)
    order_id = make_order(session_factory, [(p1, 3)])
    service = OrderService(db, shipment_guard=False)

    service.ship(order_id)
    service.ship(order_id)
    assert quantity_of(p1) == 4


def test_unknown_order(db):
    with pytest.raises(OrderNotFound):
        OrderService(db, shipment_guard=False).ship("missing")


def test_guard_records_status_and_blocks_repeat(db, session_factory, stock, quantity_of):
    p1 = stock("P1", 10)
    order_id = make_order(session_factory, [(p1, 3)])
    service = OrderService(db, shipment_guard=True)

    service.ship(order_id)
    assert order_status(session_factory, order_id) == "shipped"

    with pytest.raises(OrderAlreadyShipped):
        service.ship(order_id)
    assert quantity_of(p1) == 7


def test_guard_leaves_status_alone_on_shortage(db, session_factory, stock, quantity_of):
    p1 = stock("P1", 1)
    order_id = make_order(session_factory, [(p1, 3)])

    with pytest.raises(InsufficientStock):
        OrderService(db, shipment_guard=True).ship(order_id)
    assert order_status(session_factory, order_id) == "pending"
    assert quantity_of(p1) == 1
