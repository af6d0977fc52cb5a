from datetime import timedelta

import pytest
from sqlmodel import select

from core.clock import utc_now
from models.enums import CatalogKind, ItemStatus, OrderStatus, Priority, TableStatus
from models.orders import Order
from models.tables import TableStatusHistory
from schemas.order_items_schema import OrderItemCreate
from services.errors import (
    InvalidState,
    InvalidStatus,
    ItemNotFound,
    NoOpenOrders,
    OrderNotFound,
    TableNotFound,
)
from services.order_lifecycle import OrderLifecycle


def item(ref, quantity=1, kind=CatalogKind.MENU, notes=None):
    return OrderItemCreate(catalog_kind=kind, catalog_id=ref.id, quantity=quantity, special_instructions=notes)


@pytest.fixture
def lifecycle(session):
    return OrderLifecycle(session, release_table_on_close=True)


@pytest.fixture
def dishes(make_menu_item):
    return make_menu_item("Tacos", 8500.0), make_menu_item("Agua fresca", 4000.0)


# ─── Creación y total ──────────────────────────────────────────────────────────
def test_create_order_scenario_and_completion_signal(lifecycle, make_table, dishes):
    tacos, agua = dishes
    table = make_table()
    order = lifecycle.create_order(table.id, [item(tacos, 2), item(agua, 1)])

    assert order.total_value == 21000
    assert order.status == OrderStatus.PENDING
    assert [i.status for i in order.items] == [ItemStatus.PENDING, ItemStatus.PENDING]

    first = lifecycle.update_item_status(order.id, order.items[0].id, ItemStatus.READY)
    assert first.order.status == OrderStatus.PENDING
    assert first.order_completed is False

    second = lifecycle.update_item_status(order.id, order.items[1].id, "ready")
    assert second.order.status == OrderStatus.READY
    assert second.order_completed is True

    # Reenviar el mismo estado no vuelve a disparar la señal
    again = lifecycle.update_item_status(order.id, order.items[1].id, ItemStatus.READY)
    assert again.order_completed is False


def test_create_order_occupies_table(lifecycle, make_table, dishes, session):
    table = make_table()
    lifecycle.create_order(table.id, [item(dishes[0])])
    session.refresh(table)
    assert table.status == TableStatus.OCCUPIED


def test_create_order_without_items(lifecycle, make_table):
    order = lifecycle.create_order(make_table().id)
    assert order.total_value == 0
    assert order.items == []
    assert order.status == OrderStatus.PENDING


def test_create_order_unknown_reference_fails_and_persists_nothing(lifecycle, make_table, dishes, session):
    table = make_table()
    bad = OrderItemCreate(catalog_kind=CatalogKind.MENU, catalog_id=999, quantity=1)
    with pytest.raises(ItemNotFound):
        lifecycle.create_order(table.id, [item(dishes[0]), bad])

    assert session.exec(select(Order)).all() == []


def test_unavailable_dish_cannot_be_ordered(lifecycle, make_table, make_menu_item):
    sold_out = make_menu_item("Pozole", 9000.0, available=False)
    with pytest.raises(ItemNotFound):
        lifecycle.create_order(make_table().id, [item(sold_out)])


def test_unknown_table(lifecycle):
    with pytest.raises(TableNotFound):
        lifecycle.create_order(12345)


def test_catalog_namespaces_do_not_collide(lifecycle, make_table, make_menu_item, make_special):
    menu_dish = make_menu_item("Quesadilla", 5000.0)
    special = make_special("Chiles en nogada", 18000.0)
    assert menu_dish.id == special.id

    order = lifecycle.create_order(make_table().id, [
        item(menu_dish),
        item(special, kind=CatalogKind.SPECIAL),
    ])
    assert [i.unit_price for i in order.items] == [5000.0, 18000.0]
    assert order.total_value == 23000.0


def test_unit_price_is_captured_at_order_time(lifecycle, make_table, dishes, session):
    tacos = dishes[0]
    order = lifecycle.create_order(make_table().id, [item(tacos, 2)])

    tacos.price = 9999.0
    session.add(tacos)
    session.commit()

    session.refresh(order)
    assert order.items[0].unit_price == 8500.0
    assert order.total_value == 17000.0


# ─── Agregar ítems ─────────────────────────────────────────────────────────────
def test_total_tracks_items_after_adding(lifecycle, make_table, dishes):
    tacos, agua = dishes
    order = lifecycle.create_order(make_table().id, [item(tacos, 1)])
    lifecycle.add_items(order.id, [item(agua, 3)])
    order = lifecycle.add_items(order.id, [item(tacos, 2, notes="sin cebolla")])

    assert order.total_value == sum(i.quantity * i.unit_price for i in order.items)
    assert order.total_value == 8500 * 3 + 4000 * 3
    assert order.items[-1].special_instructions == "sin cebolla"


def test_adding_items_regresses_ready_order(lifecycle, make_table, dishes):
    tacos, agua = dishes
    order = lifecycle.create_order(make_table().id, [item(tacos)])
    lifecycle.update_item_status(order.id, order.items[0].id, ItemStatus.READY)

    order = lifecycle.add_items(order.id, [item(agua)])
    assert order.status == OrderStatus.PENDING
    assert order.items[-1].status == ItemStatus.PENDING


def test_add_items_to_missing_order(lifecycle, dishes):
    with pytest.raises(OrderNotFound):
        lifecycle.add_items(404, [item(dishes[0])])


def test_add_items_to_terminal_order(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    lifecycle.cancel_order(order.id)
    with pytest.raises(InvalidState):
        lifecycle.add_items(order.id, [item(dishes[1])])


# ─── Estados de ítems ──────────────────────────────────────────────────────────
def test_preparing_item_moves_order_to_preparing(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(d) for d in dishes])
    change = lifecycle.update_item_status(order.id, order.items[1].id, ItemStatus.PREPARING)
    assert change.order.status == OrderStatus.PREPARING
    assert change.item.status == ItemStatus.PREPARING


def test_confirmed_order_is_not_regressed_to_pending(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    lifecycle.update_order_status(order.id, OrderStatus.CONFIRMED)

    change = lifecycle.update_item_status(order.id, order.items[0].id, ItemStatus.PENDING)
    assert change.order.status == OrderStatus.CONFIRMED


def test_item_must_belong_to_order(lifecycle, make_table, dishes):
    table = make_table()
    first = lifecycle.create_order(table.id, [item(dishes[0])])
    second = lifecycle.create_order(table.id, [item(dishes[1])])
    with pytest.raises(ItemNotFound):
        lifecycle.update_item_status(first.id, second.items[0].id, ItemStatus.READY)


def test_invalid_item_status(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    with pytest.raises(InvalidStatus):
        lifecycle.update_item_status(order.id, order.items[0].id, "cancelled")


@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
def test_terminal_orders_reject_item_updates(lifecycle, make_table, dishes, session, terminal):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    order = lifecycle.update_order_status(order.id, terminal)
    item_status_before = order.items[0].status
    updated_before = order.updated_at

    with pytest.raises(InvalidState):
        lifecycle.update_item_status(order.id, order.items[0].id, ItemStatus.PREPARING)

    session.refresh(order)
    assert order.status == terminal
    assert order.items[0].status == item_status_before
    assert order.updated_at == updated_before


# ─── Cambio explícito de estado ────────────────────────────────────────────────
def test_delivered_override_forces_items_and_releases_table(lifecycle, make_table, dishes, session):
    table = make_table()
    order = lifecycle.create_order(table.id, [item(d) for d in dishes])
    order = lifecycle.update_order_status(order.id, "delivered")

    assert order.status == OrderStatus.DELIVERED
    assert {i.status for i in order.items} == {ItemStatus.DELIVERED}
    session.refresh(table)
    assert table.status == TableStatus.AVAILABLE


def test_table_stays_occupied_while_other_orders_are_open(lifecycle, make_table, dishes, session):
    table = make_table()
    first = lifecycle.create_order(table.id, [item(dishes[0])])
    lifecycle.create_order(table.id, [item(dishes[1])])

    lifecycle.update_order_status(first.id, OrderStatus.DELIVERED)
    session.refresh(table)
    assert table.status == TableStatus.OCCUPIED


def test_ready_override_marks_items_ready(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(d) for d in dishes])
    order = lifecycle.update_order_status(order.id, OrderStatus.READY)
    assert {i.status for i in order.items} == {ItemStatus.READY}


def test_invalid_order_status(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    with pytest.raises(InvalidStatus):
        lifecycle.update_order_status(order.id, "lista")


def test_override_on_terminal_order_fails(lifecycle, make_table, dishes):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    lifecycle.cancel_order(order.id)
    with pytest.raises(InvalidState):
        lifecycle.update_order_status(order.id, OrderStatus.PREPARING)


def test_update_status_of_missing_order(lifecycle):
    with pytest.raises(OrderNotFound):
        lifecycle.update_order_status(77, OrderStatus.READY)


# ─── Cierre de mesa ────────────────────────────────────────────────────────────
def test_close_table_delivers_every_open_order(lifecycle, make_table, dishes, session):
    tacos, agua = dishes
    table = make_table()
    first = lifecycle.create_order(table.id, [item(tacos, 2)])
    second = lifecycle.create_order(table.id, [item(agua, 1), item(tacos, 1)])

    closing = lifecycle.close_table(table.id, payment_method="card", tip=1000, discount=500)

    assert len(closing.orders) == 2
    assert closing.total_base == 17000 + 12500
    assert closing.total_final == 17000 + 12500 + 1000 - 500
    for order in (first, second):
        session.refresh(order)
        assert order.status == OrderStatus.DELIVERED
        assert order.payment_method == "card"
        assert {i.status for i in order.items} == {ItemStatus.DELIVERED}
    assert closing.table.status == TableStatus.AVAILABLE

    history = session.exec(
        select(TableStatusHistory)
        .where(TableStatusHistory.id_table == table.id)
        .order_by(TableStatusHistory.id)
    ).all()
    assert [(h.previous_status, h.new_status) for h in history] == [
        (TableStatus.AVAILABLE, TableStatus.OCCUPIED),
        (TableStatus.OCCUPIED, TableStatus.AVAILABLE),
    ]


def test_close_table_skips_terminal_orders(lifecycle, make_table, dishes):
    table = make_table()
    cancelled = lifecycle.create_order(table.id, [item(dishes[0])])
    lifecycle.cancel_order(cancelled.id)
    lifecycle.create_order(table.id, [item(dishes[1])])

    closing = lifecycle.close_table(table.id)
    assert len(closing.orders) == 1
    assert closing.total_base == 4000


def test_close_table_without_open_orders(lifecycle, make_table):
    with pytest.raises(NoOpenOrders):
        lifecycle.close_table(make_table().id)


def test_close_table_can_keep_table_occupied(session, make_table, dishes):
    lifecycle = OrderLifecycle(session, release_table_on_close=False)
    table = make_table()
    lifecycle.create_order(table.id, [item(dishes[0])])

    closing = lifecycle.close_table(table.id)
    assert closing.table.status == TableStatus.OCCUPIED


# ─── Lecturas ──────────────────────────────────────────────────────────────────
def test_active_orders_are_fifo_with_priority(lifecycle, make_table, dishes, session):
    table = make_table()
    newest = lifecycle.create_order(table.id, [item(dishes[0])])
    oldest = lifecycle.create_order(table.id, [item(dishes[1])])
    middle = lifecycle.create_order(table.id, [item(dishes[0])])
    done = lifecycle.create_order(table.id, [item(dishes[0])])
    lifecycle.update_order_status(done.id, OrderStatus.DELIVERED)

    now = utc_now()
    for order, minutes in ((newest, 2), (oldest, 45), (middle, 20)):
        order.created_at = now - timedelta(minutes=minutes)
        session.add(order)
    session.commit()

    active = lifecycle.list_active_orders(now=now)
    assert [o.id for o in active] == [oldest.id, middle.id, newest.id]
    assert [o.wait_minutes for o in active] == [45, 20, 2]
    assert [o.priority for o in active] == [Priority.HIGH, Priority.MEDIUM, Priority.NORMAL]
    assert active[0].items[0].name == "Agua fresca"


def test_orders_for_table_newest_first(lifecycle, make_table, dishes):
    table = make_table()
    other = make_table()
    first = lifecycle.create_order(table.id, [item(dishes[0])])
    second = lifecycle.create_order(table.id, [item(dishes[1])])
    lifecycle.create_order(other.id, [item(dishes[1])])

    orders = lifecycle.orders_for_table(table.id)
    assert {o.id for o in orders} == {first.id, second.id}
    assert orders[0].allowed_transitions == [
        OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.CANCELLED,
    ]


def test_timestamps_are_stored_from_aware_utc(lifecycle, make_table, dishes, session):
    order = lifecycle.create_order(make_table().id, [item(dishes[0])])
    order.created_at = utc_now() - timedelta(minutes=20, seconds=5)
    session.add(order)
    session.commit()

    [active] = lifecycle.list_active_orders()
    assert active.wait_minutes == 20
    assert active.priority == Priority.MEDIUM
