"""
Dispatch planning without a database.

Tests cover:
- Greedy fill of a total quantity across sale lines
- Explicit per-line plans: duplicates, unknown lines, over-dispatch
- Remaining quantities once transports are dispatched or delivered
- Delivery lines built from details or from the dispatched total
"""
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from app.models.transport import TransportStatus
from app.services.dispatch import (
    EXCEEDS_REMAINING,
    EXCEEDS_SALE,
    EXCEEDS_SALE_DETAIL,
    delivery_lines,
    ensure_not_empty,
    greedy_fill,
    plan_from_details,
    plan_from_total,
    quantity_by_medicine,
    remaining_quantities,
)


def sale_detail(detail_id, quantity, medicine_id=1, rate=10.0):
    return SimpleNamespace(
        id=detail_id,
        quantity=quantity,
        medicine_id=medicine_id,
        batch_number=f"B{detail_id}",
        expiry_date=date(2030, 1, 1),
        rate=rate,
    )


def transport(transport_id, status, details=(), dispatched_quantity=None):
    return SimpleNamespace(
        id=transport_id,
        status=status,
        dispatched_quantity=dispatched_quantity,
        details=[
            SimpleNamespace(sale_detail_id=sale_detail_id, quantity=qty)
            for sale_detail_id, qty in details
        ],
    )


def requested(*lines):
    return [SimpleNamespace(sale_detail_id=sid, quantity=qty) for sid, qty in lines]


# ============================================================================
# Planning
# ============================================================================

class TestGreedyFill:
    def test_fills_lines_in_order(self):
        assert greedy_fill({1: 5, 2: 5, 3: 5}, 7) == {1: 5, 2: 2, 3: 0}

    def test_total_larger_than_lines_stops_at_limits(self):
        assert greedy_fill({1: 2, 2: 3}, 10) == {1: 2, 2: 3}

    def test_zero_total(self):
        assert greedy_fill({1: 2}, 0) == {1: 0}


class TestPlanFromTotal:
    def test_exceeding_total_is_rejected(self):
        with pytest.raises(HTTPException) as exc:
            plan_from_total({1: 3, 2: 2}, 6)
        assert exc.value.status_code == 400
        assert exc.value.detail == EXCEEDS_SALE

    def test_custom_message(self):
        with pytest.raises(HTTPException) as exc:
            plan_from_total({1: 1}, 2, EXCEEDS_REMAINING)
        assert exc.value.detail == EXCEEDS_REMAINING


class TestPlanFromDetails:
    def test_missing_lines_default_to_zero(self):
        assert plan_from_details({1: 5, 2: 5}, requested((2, 3))) == {1: 0, 2: 3}

    def test_duplicate_line(self):
        with pytest.raises(HTTPException) as exc:
            plan_from_details({1: 5}, requested((1, 1), (1, 2)))
        assert exc.value.detail == "Duplicate sale detail provided"

    def test_unknown_line(self):
        with pytest.raises(HTTPException) as exc:
            plan_from_details({1: 5}, requested((9, 1)))
        assert exc.value.detail == "Invalid sale detail for dispatch"

    def test_over_dispatch(self):
        with pytest.raises(HTTPException) as exc:
            plan_from_details({1: 5}, requested((1, 6)))
        assert exc.value.status_code == 400
        assert exc.value.detail == EXCEEDS_SALE_DETAIL

    def test_empty_plan_is_rejected(self):
        plan = plan_from_details({1: 5}, requested((1, 0)))
        with pytest.raises(HTTPException) as exc:
            ensure_not_empty(plan)
        assert exc.value.detail == "Dispatched details are required"


# ============================================================================
# Remaining quantities
# ============================================================================

class TestRemainingQuantities:
    def test_pending_transports_do_not_count(self):
        sale = SimpleNamespace(
            details=[sale_detail(1, 10), sale_detail(2, 4)],
            transports=[
                transport(1, TransportStatus.DELIVERED, [(1, 3)]),
                transport(2, TransportStatus.DISPATCHED, [(1, 2), (2, 4)]),
                transport(3, TransportStatus.PENDING, [(1, 5)]),
            ],
        )
        assert remaining_quantities(sale) == {1: 5, 2: 0}

    def test_excluded_transport(self):
        sale = SimpleNamespace(
            details=[sale_detail(1, 10)],
            transports=[transport(1, TransportStatus.DISPATCHED, [(1, 6)])],
        )
        assert remaining_quantities(sale, exclude_transport_id=1) == {1: 10}


# ============================================================================
# Delivery lines
# ============================================================================

class TestDeliveryLines:
    def test_lines_follow_transport_details(self):
        sale = SimpleNamespace(details=[sale_detail(1, 10, rate=12.5), sale_detail(2, 4, medicine_id=2)])
        lines = delivery_lines(transport(1, TransportStatus.DISPATCHED, [(1, 4)]), sale)

        assert len(lines) == 1
        assert lines[0].medicine_id == 1
        assert lines[0].batch_number == "B1"
        assert lines[0].quantity == 4
        assert lines[0].rate == 12.5

    def test_without_details_uses_dispatched_quantity(self):
        sale = SimpleNamespace(details=[sale_detail(1, 3), sale_detail(2, 5, medicine_id=2)])
        lines = delivery_lines(transport(1, TransportStatus.DISPATCHED, dispatched_quantity=5), sale)

        assert [(line.medicine_id, line.quantity) for line in lines] == [(1, 3), (2, 2)]

    def test_without_quantity_delivers_whole_sale(self):
        sale = SimpleNamespace(details=[sale_detail(1, 3), sale_detail(2, 5, medicine_id=1)])
        lines = delivery_lines(transport(1, TransportStatus.DISPATCHED), sale)

        assert quantity_by_medicine(lines) == {1: 8}

    def test_detail_above_sale_line(self):
        sale = SimpleNamespace(details=[sale_detail(1, 3)])
        with pytest.raises(HTTPException) as exc:
            delivery_lines(transport(1, TransportStatus.DISPATCHED, [(1, 4)]), sale)
        assert exc.value.detail == EXCEEDS_SALE_DETAIL
