import itertools
import logging
from datetime import datetime, timedelta, timezone

import pytest

from core.clock import utc_now
from models.enums import ItemStatus, OrderStatus, Priority
from services.order_rules import (
    aggregate_item_statuses,
    allowed_transitions,
    can_transition,
    compute_priority,
    compute_wait_minutes,
)

ALL_ITEM_STATUSES = list(ItemStatus)
DONE = {ItemStatus.READY, ItemStatus.DELIVERED}


# ─── Agregación ────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("length", [1, 2, 3])
def test_aggregation_is_total_and_ready_iff_all_done(length):
    for seq in itertools.product(ALL_ITEM_STATUSES, repeat=length):
        result = aggregate_item_statuses(seq)
        assert result in {OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY}
        assert (result == OrderStatus.READY) == all(s in DONE for s in seq)


def test_aggregation_ignores_item_order():
    seq = [ItemStatus.READY, ItemStatus.PREPARING, ItemStatus.PENDING, ItemStatus.DELIVERED]
    results = {aggregate_item_statuses(p) for p in itertools.permutations(seq)}
    assert results == {OrderStatus.PREPARING}


def test_aggregation_tie_break():
    assert aggregate_item_statuses([ItemStatus.READY, ItemStatus.DELIVERED]) == OrderStatus.READY
    assert aggregate_item_statuses([ItemStatus.READY, ItemStatus.PREPARING]) == OrderStatus.PREPARING
    assert aggregate_item_statuses([ItemStatus.READY, ItemStatus.PENDING]) == OrderStatus.PENDING
    assert aggregate_item_statuses([ItemStatus.PENDING]) == OrderStatus.PENDING


def test_empty_order_is_pending():
    assert aggregate_item_statuses([]) == OrderStatus.PENDING


def test_raw_strings_are_accepted():
    assert aggregate_item_statuses(["ready", "delivered"]) == OrderStatus.READY


def test_unknown_and_null_statuses_count_as_pending(caplog):
    with caplog.at_level(logging.WARNING, logger="services.order_rules"):
        assert aggregate_item_statuses(["ready", None]) == OrderStatus.PENDING
        assert aggregate_item_statuses(["ready", "lista"]) == OrderStatus.PENDING
    assert "lista" in caplog.text


# ─── Espera y prioridad ────────────────────────────────────────────────────────
def test_wait_minutes_floors():
    created = datetime(2024, 5, 1, 12, 0, 0)
    assert compute_wait_minutes(created, created + timedelta(minutes=16, seconds=59)) == 16
    assert compute_wait_minutes(created, created + timedelta(seconds=59)) == 0


def test_wait_minutes_clamped_on_clock_skew():
    created = datetime(2024, 5, 1, 12, 0, 0)
    assert compute_wait_minutes(created, created - timedelta(minutes=5)) == 0


def test_wait_minutes_mixes_aware_and_naive():
    created = datetime(2024, 5, 1, 12, 0, 0)
    now = datetime(2024, 5, 1, 14, 20, 0, tzinfo=timezone(timedelta(hours=2)))
    assert compute_wait_minutes(created, now) == 20


def test_clock_is_utc_aware():
    now = utc_now()
    assert now.utcoffset() == timedelta(0)
    assert compute_wait_minutes(now.replace(tzinfo=None) - timedelta(minutes=3), now) == 3


@pytest.mark.parametrize("minutes, expected", [
    (0, Priority.NORMAL),
    (14, Priority.NORMAL),
    (15, Priority.NORMAL),
    (16, Priority.MEDIUM),
    (30, Priority.MEDIUM),
    (31, Priority.HIGH),
    (240, Priority.HIGH),
])
def test_priority_thresholds(minutes, expected):
    assert compute_priority(minutes) == expected


# ─── Transiciones ──────────────────────────────────────────────────────────────
def test_terminal_states_have_no_transitions():
    assert allowed_transitions(OrderStatus.DELIVERED) == []
    assert allowed_transitions(OrderStatus.CANCELLED) == []


def test_ready_can_regress_to_preparing():
    assert can_transition(OrderStatus.READY, OrderStatus.PREPARING)
    assert can_transition(OrderStatus.READY, OrderStatus.DELIVERED)
    assert not can_transition(OrderStatus.PENDING, OrderStatus.DELIVERED)


def test_allowed_transitions_are_in_declaration_order():
    assert allowed_transitions(OrderStatus.PENDING) == [
        OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.CANCELLED,
    ]
