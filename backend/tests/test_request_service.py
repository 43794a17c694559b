"""
Request lifecycle engine tests.

Verifies:
- Validation order and error codes on create/edit
- Stock conservation and full rollback on partial failure
- Annual allowance accounting (including edit-in-place exclusion)
- Cooldown anchoring on collection vs request time
- The linear REQUESTED -> DISPATCHED -> ARRIVED -> COLLECTED state machine
"""

from datetime import timedelta

import pytest
from sqlalchemy import update

from uniforms.errors import (
    AllowanceExceededError,
    CooldownActiveError,
    InsufficientStockError,
    IntegrityFaultError,
    InvalidStatusTransitionError,
    NotFoundError,
    RequestValidationError,
)
from uniforms.extensions import db
from uniforms.models import Staff, UniformItem, UniformRequest, UniformRequestItem
from uniforms.services import inventory_service, request_service, settings_service, staff_service
from uniforms.validation import RequestFilters, RequestLine

from conftest import NOW, line


def stock(item) -> int:
    return inventory_service.get_stock_on_hand(item.id)


def request_count() -> int:
    return db.session.query(UniformRequest).count()


def collect(request_id: int, collected_at):
    """Walk a request through the whole lifecycle, collecting at collected_at."""
    request_service.update_request_status(request_id, "DISPATCHED", now=collected_at - timedelta(days=2))
    request_service.update_request_status(request_id, "ARRIVED", now=collected_at - timedelta(days=1))
    request_service.update_request_status(request_id, "COLLECTED", now=collected_at)


# =============================================================================
# CREATE: VALIDATION
# =============================================================================


class TestCreateValidation:

    @pytest.mark.parametrize("staff_id", [0, -3, None, "1", True])
    def test_staff_id_must_be_positive_integer(self, manager, polo, staff_id):
        with pytest.raises(RequestValidationError):
            request_service.create_request(staff_id, [line(polo, 1)], now=NOW)

    def test_items_must_not_be_empty(self, manager):
        with pytest.raises(RequestValidationError):
            request_service.create_request(manager.id, [], now=NOW)

    @pytest.mark.parametrize("uniform_item_id,quantity", [(0, 1), (1, 0), (1, -2)])
    def test_each_line_needs_positive_ids_and_quantities(self, manager, uniform_item_id, quantity):
        with pytest.raises(RequestValidationError):
            request_service.create_request(
                manager.id, [RequestLine(uniform_item_id=uniform_item_id, quantity=quantity)], now=NOW
            )

    def test_duplicate_items_rejected_before_any_mutation(self, manager, polo):
        with pytest.raises(RequestValidationError) as exc:
            request_service.create_request(manager.id, [line(polo, 1), line(polo, 2)], now=NOW)

        assert "Duplicate" in exc.value.message
        assert stock(polo) == 10
        assert request_count() == 0

    def test_note_longer_than_500_characters_rejected(self, manager, polo):
        with pytest.raises(RequestValidationError):
            request_service.create_request(manager.id, [line(polo, 1)], "x" * 501, now=NOW)

    def test_note_must_be_text(self, manager, polo):
        with pytest.raises(RequestValidationError):
            request_service.create_request(manager.id, [line(polo, 1)], 42, now=NOW)

    def test_note_is_trimmed_and_blank_becomes_none(self, manager, polo, jacket):
        first = request_service.create_request(manager.id, [line(polo, 1)], "  lost my old one  ", now=NOW)
        second = request_service.create_request(manager.id, [line(jacket, 1)], "   ", now=NOW)

        assert first["note"] == "lost my old one"
        assert second["note"] is None

    def test_note_of_exactly_500_characters_after_trim_accepted(self, manager, polo):
        result = request_service.create_request(manager.id, [line(polo, 1)], "  " + "n" * 500 + "  ", now=NOW)
        assert len(result["note"]) == 500

    def test_unknown_staff_is_not_found(self, roles, polo):
        with pytest.raises(NotFoundError):
            request_service.create_request(999_999, [line(polo, 1)], now=NOW)

    def test_unknown_item_is_not_found(self, manager, polo):
        with pytest.raises(NotFoundError):
            request_service.create_request(
                manager.id, [line(polo, 1), RequestLine(uniform_item_id=999_999, quantity=1)], now=NOW
            )

    def test_quantity_above_stock_is_insufficient(self, manager, cap):
        with pytest.raises(InsufficientStockError):
            request_service.create_request(manager.id, [line(cap, 4)], now=NOW)
        assert stock(cap) == 3

    def test_unconfigured_role_is_validation_error(self, db_session, store, polo):
        temp = staff_service.create_staff("Terry Temp", store.name, "temp")

        with pytest.raises(RequestValidationError) as exc:
            request_service.create_request(temp.id, [line(polo, 1)], now=NOW)
        assert "not configured" in exc.value.message

    def test_stock_checked_before_allowance(self, casual, cap):
        # 4 > stock 3 and 4 > CASUAL limit 2: stock wins
        with pytest.raises(InsufficientStockError):
            request_service.create_request(casual.id, [line(cap, 4)], now=NOW)


# =============================================================================
# CREATE: STOCK
# =============================================================================


class TestCreateStock:

    def test_successful_create_reserves_exact_quantities(self, manager, polo, jacket, cap):
        result = request_service.create_request(
            manager.id, [line(polo, 2), line(jacket, 1), line(cap, 1)], "new starter", now=NOW
        )

        assert result["status"] == "REQUESTED"
        assert result["staff_id"] == manager.id
        assert result["note"] == "new starter"
        assert result["requested_at"] == "2026-03-01T09:00:00Z"
        assert (stock(polo), stock(jacket), stock(cap)) == (8, 4, 2)

        lines = db.session.query(UniformRequestItem).filter_by(request_id=result["id"]).all()
        assert sorted((l.uniform_item_id, l.quantity) for l in lines) == sorted(
            [(polo.id, 2), (jacket.id, 1), (cap.id, 1)]
        )

    def test_whole_stock_can_be_reserved(self, manager, cap):
        request_service.create_request(manager.id, [line(cap, 3)], now=NOW)
        assert stock(cap) == 0

    def test_failed_decrement_rolls_back_everything(self, manager, polo, jacket, cap, monkeypatch):
        """Stock for the 2nd of 3 items vanishes between pre-check and commit."""
        original = inventory_service.decrement_stock_if_available

        def racing_decrement(uniform_item_id, quantity):
            if uniform_item_id == jacket.id:
                return 0
            return original(uniform_item_id, quantity)

        monkeypatch.setattr(inventory_service, "decrement_stock_if_available", racing_decrement)

        with pytest.raises(InsufficientStockError):
            request_service.create_request(
                manager.id, [line(polo, 2), line(jacket, 1), line(cap, 1)], now=NOW
            )

        assert request_count() == 0
        assert db.session.query(UniformRequestItem).count() == 0
        assert (stock(polo), stock(jacket), stock(cap)) == (10, 5, 3)

    def test_concurrent_consumption_detected_at_commit(self, manager, cap, monkeypatch):
        """Stock drops below the requested quantity after the pre-check passed."""
        original = inventory_service.decrement_stock_if_available
        cap_id = cap.id

        def stock_taken_first(uniform_item_id, quantity):
            db.session.execute(
                update(UniformItem).where(UniformItem.id == cap_id).values(stock_on_hand=1)
            )
            return original(uniform_item_id, quantity)

        monkeypatch.setattr(inventory_service, "decrement_stock_if_available", stock_taken_first)

        with pytest.raises(InsufficientStockError):
            request_service.create_request(manager.id, [line(cap, 2)], now=NOW)

        assert request_count() == 0
        assert db.session.query(UniformRequestItem).count() == 0


# =============================================================================
# ALLOWANCE
# =============================================================================


class TestAllowance:

    def test_casual_limit_of_two(self, casual, polo, jacket):
        with pytest.raises(AllowanceExceededError):
            request_service.create_request(casual.id, [line(polo, 3)], now=NOW)

        request_service.create_request(casual.id, [line(polo, 2)], now=NOW)

        with pytest.raises(AllowanceExceededError):
            request_service.create_request(casual.id, [line(jacket, 1)], now=NOW)

    def test_rejection_is_repeatable_and_does_not_touch_stock(self, casual, polo):
        for _ in range(2):
            with pytest.raises(AllowanceExceededError):
                request_service.create_request(casual.id, [line(polo, 3)], now=NOW)
        assert stock(polo) == 10
        assert request_count() == 0

    def test_total_across_lines_counts(self, casual, polo, jacket):
        with pytest.raises(AllowanceExceededError):
            request_service.create_request(casual.id, [line(polo, 1), line(jacket, 2)], now=NOW)

    def test_collected_requests_still_count(self, casual, polo, jacket, make_request):
        make_request(
            casual,
            [(polo, 2)],
            requested_at=NOW - timedelta(days=40),
            status="COLLECTED",
            collected_at=NOW - timedelta(days=35),
        )
        with pytest.raises(AllowanceExceededError):
            request_service.create_request(casual.id, [line(jacket, 1)], now=NOW)

    def test_previous_year_usage_does_not_count(self, casual, polo, jacket, make_request):
        make_request(casual, [(polo, 2)], requested_at=NOW.replace(year=2025, month=12, day=31, hour=23))
        result = request_service.create_request(casual.id, [line(jacket, 2)], now=NOW)
        assert result["status"] == "REQUESTED"

    def test_persisted_limit_override_applies(self, casual, polo):
        staff_service.update_role_limit("casual", 4)
        request_service.create_request(casual.id, [line(polo, 4)], now=NOW)
        assert stock(polo) == 6

    def test_zero_limit_blocks_everything(self, casual, polo):
        staff_service.update_role_limit("CASUAL", 0)
        with pytest.raises(AllowanceExceededError):
            request_service.create_request(casual.id, [line(polo, 1)], now=NOW)


# =============================================================================
# COOLDOWN
# =============================================================================


class TestCooldown:

    def test_cooldown_anchors_on_collection(self, manager, polo):
        day_zero = NOW
        first = request_service.create_request(manager.id, [line(polo, 1)], now=day_zero - timedelta(days=10))
        collect(first["id"], day_zero)

        with pytest.raises(CooldownActiveError):
            request_service.create_request(manager.id, [line(polo, 1)], now=day_zero + timedelta(days=29))

        result = request_service.create_request(manager.id, [line(polo, 1)], now=day_zero + timedelta(days=30))
        assert result["status"] == "REQUESTED"

    def test_uncollected_request_anchors_on_request_time(self, manager, polo):
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW)

        with pytest.raises(CooldownActiveError):
            request_service.create_request(manager.id, [line(polo, 1)], now=NOW + timedelta(days=10))

        request_service.create_request(manager.id, [line(polo, 1)], now=NOW + timedelta(days=30))

    def test_cooldown_is_per_item(self, manager, polo, jacket):
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        result = request_service.create_request(manager.id, [line(jacket, 1)], now=NOW + timedelta(hours=1))
        assert result["status"] == "REQUESTED"

    def test_cooldown_is_per_staff_member(self, manager, casual, polo):
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        result = request_service.create_request(casual.id, [line(polo, 1)], now=NOW)
        assert result["status"] == "REQUESTED"

    def test_role_override_beats_global_setting(self, manager, polo):
        settings_service.update_cooldown_days(60)
        staff_service.update_role_cooldown("manager", 7)
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW)

        with pytest.raises(CooldownActiveError):
            request_service.create_request(manager.id, [line(polo, 1)], now=NOW + timedelta(days=6))
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW + timedelta(days=7))

    def test_global_setting_applies_without_role_override(self, manager, polo):
        settings_service.update_cooldown_days(10)
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW)

        with pytest.raises(CooldownActiveError):
            request_service.create_request(manager.id, [line(polo, 1)], now=NOW + timedelta(days=9))
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW + timedelta(days=10))

    def test_cooldown_checked_after_allowance(self, casual, polo):
        request_service.create_request(casual.id, [line(polo, 2)], now=NOW)
        with pytest.raises(AllowanceExceededError):
            request_service.create_request(casual.id, [line(polo, 1)], now=NOW + timedelta(days=1))


# =============================================================================
# EDIT
# =============================================================================


class TestUpdateRequestItems:

    def test_own_usage_excluded_from_allowance(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)

        detail = request_service.update_request_items(created["id"], [line(polo, 3)], now=NOW)

        assert detail["items"] == [
            {"uniform_item_id": polo.id, "item_name": "Polo Shirt", "size": "M", "quantity": 3}
        ]
        assert stock(polo) == 7

    def test_full_allowance_request_can_be_reshaped(self, manager, polo, jacket):
        created = request_service.create_request(manager.id, [line(polo, 5)], now=NOW)

        request_service.update_request_items(created["id"], [line(jacket, 5)], now=NOW)

        assert stock(polo) == 10
        assert stock(jacket) == 0

    def test_stock_checked_against_released_levels(self, manager, cap):
        created = request_service.create_request(manager.id, [line(cap, 3)], now=NOW)
        assert stock(cap) == 0

        detail = request_service.update_request_items(created["id"], [line(cap, 3)], "same again", now=NOW)

        assert detail["note"] == "same again"
        assert stock(cap) == 0

    def test_other_requests_still_count_against_allowance(self, manager, polo, cap):
        request_service.create_request(manager.id, [line(polo, 3)], now=NOW)
        second = request_service.create_request(manager.id, [line(cap, 2)], now=NOW)

        with pytest.raises(AllowanceExceededError):
            request_service.update_request_items(second["id"], [line(cap, 3)], now=NOW)

        # Released stock was restored by the rollback
        assert stock(cap) == 1
        assert stock(polo) == 7
        lines = db.session.query(UniformRequestItem).filter_by(request_id=second["id"]).all()
        assert [(l.uniform_item_id, l.quantity) for l in lines] == [(cap.id, 2)]

    def test_own_request_ignored_for_cooldown(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        request_service.update_request_items(created["id"], [line(polo, 2)], now=NOW + timedelta(days=1))
        assert stock(polo) == 8

    def test_other_requests_still_trigger_cooldown(self, manager, polo, jacket):
        request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        second = request_service.create_request(manager.id, [line(jacket, 1)], now=NOW)

        with pytest.raises(CooldownActiveError):
            request_service.update_request_items(second["id"], [line(polo, 1)], now=NOW + timedelta(days=1))
        assert stock(jacket) == 4

    def test_insufficient_stock_rolls_back_release(self, manager, jacket):
        staff_service.update_role_limit("MANAGER", 50)
        created = request_service.create_request(manager.id, [line(jacket, 2)], now=NOW)

        with pytest.raises(InsufficientStockError):
            request_service.update_request_items(created["id"], [line(jacket, 6)], now=NOW)
        assert stock(jacket) == 3

    def test_unknown_item_in_edit_rolls_back(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)
        with pytest.raises(NotFoundError):
            request_service.update_request_items(
                created["id"], [RequestLine(uniform_item_id=999_999, quantity=1)], now=NOW
            )
        assert stock(polo) == 8

    def test_duplicate_items_rejected(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        with pytest.raises(RequestValidationError):
            request_service.update_request_items(created["id"], [line(polo, 1), line(polo, 1)], now=NOW)
        assert stock(polo) == 9

    def test_only_requested_can_be_edited(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        request_service.update_request_status(created["id"], "DISPATCHED", now=NOW)

        with pytest.raises(RequestValidationError) as exc:
            request_service.update_request_items(created["id"], [line(polo, 2)], now=NOW)
        assert "Only REQUESTED" in exc.value.message

    def test_missing_request_is_not_found(self, manager, polo):
        with pytest.raises(NotFoundError):
            request_service.update_request_items(999_999, [line(polo, 1)], now=NOW)

    def test_release_fault_is_integrity_error(self, manager, polo, monkeypatch):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)
        monkeypatch.setattr(inventory_service, "increment_stock", lambda uniform_item_id, quantity: 0)

        with pytest.raises(IntegrityFaultError):
            request_service.update_request_items(created["id"], [line(polo, 1)], now=NOW)
        assert stock(polo) == 8


# =============================================================================
# DELETE
# =============================================================================


class TestDeleteRequest:

    def test_delete_releases_stock_and_allowance(self, casual, polo):
        created = request_service.create_request(casual.id, [line(polo, 2)], now=NOW)

        assert request_service.delete_request(created["id"]) == {"id": created["id"], "deleted": True}

        assert stock(polo) == 10
        assert request_count() == 0
        assert db.session.query(UniformRequestItem).count() == 0
        # Deleted requests leave neither allowance usage nor a cooldown anchor
        request_service.create_request(casual.id, [line(polo, 2)], now=NOW + timedelta(hours=1))

    def test_only_requested_can_be_deleted(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        request_service.update_request_status(created["id"], "DISPATCHED", now=NOW)

        with pytest.raises(RequestValidationError):
            request_service.delete_request(created["id"])
        assert stock(polo) == 9

    def test_missing_request_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            request_service.delete_request(999_999)

    def test_release_fault_keeps_request(self, manager, polo, monkeypatch):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)
        monkeypatch.setattr(inventory_service, "increment_stock", lambda uniform_item_id, quantity: 2)

        with pytest.raises(IntegrityFaultError):
            request_service.delete_request(created["id"])
        assert request_count() == 1
        assert stock(polo) == 8


# =============================================================================
# STATUS MACHINE
# =============================================================================


class TestStatusTransitions:

    @pytest.mark.parametrize("target", ["ARRIVED", "COLLECTED", "REQUESTED"])
    def test_requested_only_moves_to_dispatched(self, manager, polo, target):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        with pytest.raises(InvalidStatusTransitionError):
            request_service.update_request_status(created["id"], target, now=NOW)

    def test_full_walk_sets_each_timestamp_once(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)

        for days, status in enumerate(["DISPATCHED", "ARRIVED", "COLLECTED"], start=1):
            result = request_service.update_request_status(created["id"], status, now=NOW + timedelta(days=days))
            assert result == {"id": created["id"], "status": status}

        request = db.session.get(UniformRequest, created["id"])
        assert request.dispatched_at == NOW + timedelta(days=1)
        assert request.arrived_at == NOW + timedelta(days=2)
        assert request.collected_at == NOW + timedelta(days=3)

    @pytest.mark.parametrize("target", ["REQUESTED", "DISPATCHED", "ARRIVED", "COLLECTED"])
    def test_collected_is_terminal(self, manager, polo, target):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        collect(created["id"], NOW + timedelta(days=3))

        with pytest.raises(InvalidStatusTransitionError):
            request_service.update_request_status(created["id"], target, now=NOW + timedelta(days=4))

    def test_cannot_go_back(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        request_service.update_request_status(created["id"], "DISPATCHED", now=NOW)
        request_service.update_request_status(created["id"], "ARRIVED", now=NOW)

        with pytest.raises(InvalidStatusTransitionError):
            request_service.update_request_status(created["id"], "DISPATCHED", now=NOW)

    def test_status_changes_leave_stock_alone(self, manager, polo):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)
        collect(created["id"], NOW + timedelta(days=3))
        assert stock(polo) == 8

    @pytest.mark.parametrize("status", [None, "", "LOST", "dispatched"])
    def test_unknown_status_is_validation_error(self, manager, polo, status):
        created = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        with pytest.raises(RequestValidationError):
            request_service.update_request_status(created["id"], status, now=NOW)

    def test_missing_request_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            request_service.update_request_status(999_999, "DISPATCHED", now=NOW)


# =============================================================================
# READ PROJECTIONS
# =============================================================================


class TestReadProjections:

    def test_detail_includes_names_note_and_items_in_order(self, manager, polo, jacket, cap):
        created = request_service.create_request(
            manager.id, [line(jacket, 1), line(cap, 1), line(polo, 2)], "starter kit", now=NOW
        )

        detail = request_service.get_request_by_id(created["id"])

        assert detail["staff_name"] == "Morgan Manager"
        assert detail["store_name"] == "Sydney CBD"
        assert detail["note"] == "starter kit"
        assert detail["status"] == "REQUESTED"
        assert detail["requested_at"] == "2026-03-01T09:00:00Z"
        assert [i["item_name"] for i in detail["items"]] == ["Winter Jacket", "Cap", "Polo Shirt"]

    @pytest.mark.parametrize("request_id", [0, -1, "7", None])
    def test_bad_id_is_validation_error(self, db_session, request_id):
        with pytest.raises(RequestValidationError):
            request_service.get_request_by_id(request_id)

    def test_missing_request_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            request_service.get_request_by_id(999_999)

    def test_list_filters_and_orders_newest_first(self, db_session, manager, casual, other_store, roles, polo, jacket, cap):
        elsewhere = Staff(name="Ellis Elsewhere", store_id=other_store.id, role_id=roles["MANAGER"].id)
        db_session.add(elsewhere)
        db_session.commit()

        oldest = request_service.create_request(manager.id, [line(polo, 1)], now=NOW)
        middle = request_service.create_request(casual.id, [line(jacket, 1)], now=NOW + timedelta(hours=1))
        newest = request_service.create_request(elsewhere.id, [line(cap, 1)], now=NOW + timedelta(hours=2))
        request_service.update_request_status(middle["id"], "DISPATCHED", now=NOW)

        everything = request_service.list_requests()
        assert [r["id"] for r in everything] == [newest["id"], middle["id"], oldest["id"]]
        assert everything[0]["store_name"] == "Parramatta"

        dispatched = request_service.list_requests(RequestFilters(status="DISPATCHED"))
        assert [r["id"] for r in dispatched] == [middle["id"]]

        by_staff = request_service.list_requests(RequestFilters(staff_id=manager.id))
        assert [r["id"] for r in by_staff] == [oldest["id"]]

        by_store = request_service.list_requests(RequestFilters(store_id=other_store.id))
        assert [r["id"] for r in by_store] == [newest["id"]]

        combined = request_service.list_requests(RequestFilters(status="REQUESTED", store_id=manager.store_id))
        assert [r["id"] for r in combined] == [oldest["id"]]


# =============================================================================
# STATUS CHANGED BETWEEN PRE-CHECK AND TRANSACTION
# =============================================================================


def dispatch_after_lookup(monkeypatch):
    """Another writer dispatches the request right after the REQUESTED pre-check."""
    original = request_service._get_request_or_404

    def lookup_then_dispatch(request_id):
        request = original(request_id)
        db.session.execute(
            update(UniformRequest)
            .where(UniformRequest.id == request_id)
            .values(status="DISPATCHED")
            .execution_options(synchronize_session=False)
        )
        return request

    monkeypatch.setattr(request_service, "_get_request_or_404", lookup_then_dispatch)


class TestDispatchedMidFlight:

    def test_edit_refused_and_reservation_kept(self, manager, polo, jacket, monkeypatch):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)
        dispatch_after_lookup(monkeypatch)

        with pytest.raises(RequestValidationError):
            request_service.update_request_items(created["id"], [line(jacket, 1)], now=NOW)

        assert (stock(polo), stock(jacket)) == (8, 5)
        lines = db.session.query(UniformRequestItem).filter_by(request_id=created["id"]).all()
        assert [(l.uniform_item_id, l.quantity) for l in lines] == [(polo.id, 2)]

    def test_delete_refused_and_request_kept(self, manager, polo, monkeypatch):
        created = request_service.create_request(manager.id, [line(polo, 2)], now=NOW)
        dispatch_after_lookup(monkeypatch)

        with pytest.raises(RequestValidationError):
            request_service.delete_request(created["id"])

        assert request_count() == 1
        assert stock(polo) == 8
