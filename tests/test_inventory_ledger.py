"""
Tests for the Inventory Ledger: availability, soft holds and their lifecycle.
"""
import threading
from datetime import timedelta

from constants import HOLD_STATUS_CONVERTED
from models import Sign, SignAllocation
from services.inventory import InventoryLedger

TENANT = "agency-1"


def _free(ledger, sign_id):
    result = ledger.check_bulk_availability([sign_id], TENANT)
    return result.availability[0].available_quantity


def test_platform_stock_is_visible(ledger):
    assert _free(ledger, "letter-A") == 18
    assert _free(ledger, "bookend-left") == 4


def test_hold_reduces_availability(ledger):
    result = ledger.create_soft_hold([SignAllocation("letter-A", quantity=5)], TENANT, "sess-1")

    assert result.success is True
    assert result.hold_id.startswith("hold_")
    assert _free(ledger, "letter-A") == 13
    assert ledger.currently_held_quantity("letter-A", TENANT) == 5


def test_request_over_capacity_is_refused(ledger, hold_store):
    check = ledger.check_bulk_availability(["letter-A"], TENANT, quantities={"letter-A": 19})
    assert check.success is False
    assert check.availability[0].reasons == ["Requested 19, only 18 available"]

    result = ledger.create_soft_hold([SignAllocation("letter-A", quantity=19)], TENANT, "sess-1")
    assert result.success is False
    assert result.error == "One or more signs are not available"
    assert hold_store.list_holds() == []


def test_repeated_ids_count_as_extra_units(ledger):
    check = ledger.check_bulk_availability(["letter-B", "letter-B", "letter-C"], TENANT)

    by_id = {a.sign_id: a for a in check.availability}
    assert by_id["letter-B"].requested_quantity == 2
    assert check.total_width == 6
    assert check.fill_percentage == 6 / 30


def test_hold_is_all_or_nothing(ledger, hold_store):
    result = ledger.create_soft_hold(
        [SignAllocation("letter-A", quantity=2), SignAllocation("no-such-sign")],
        TENANT, "sess-1",
    )

    assert result.success is False
    assert hold_store.list_holds() == []
    assert _free(ledger, "letter-A") == 18


def test_unknown_and_exhausted_signs_have_reasons(ledger, catalog):
    catalog.add_sign(Sign(
        id="retired", name="Retired", category="decorations", width=2, height=2,
        total_quantity=3, available_quantity=3, available=False,
    ))
    ledger.create_soft_hold([SignAllocation("bookend-left", quantity=4)], TENANT, "sess-1")

    check = ledger.check_bulk_availability(["ghost", "retired", "bookend-left"], TENANT)
    reasons = {a.sign_id: a.reasons for a in check.availability}

    assert reasons == {
        "ghost": ["Sign not found"],
        "retired": ["Sign deactivated"],
        "bookend-left": ["Currently unavailable"],
    }
    assert check.success is False
    assert check.alternatives
    assert len(check.alternatives) <= 5


def test_concurrent_holds_never_oversell(ledger):
    results = []

    def book(n):
        results.append(ledger.create_soft_hold([SignAllocation("letter-Z")], TENANT, f"sess-{n}"))

    threads = [threading.Thread(target=book, args=(n,)) for n in range(30)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(1 for r in results if r.success) == 18
    assert _free(ledger, "letter-Z") == 0


def test_expired_holds_stop_counting_before_cleanup(ledger, clock, hold_store):
    ledger.create_soft_hold([SignAllocation("letter-A", quantity=10)], TENANT, "sess-1")
    assert _free(ledger, "letter-A") == 8

    clock.advance(minutes=59)
    assert _free(ledger, "letter-A") == 8

    clock.advance(minutes=1)
    assert _free(ledger, "letter-A") == 18
    assert len(hold_store.list_holds()) == 1

    assert ledger.cleanup_expired_holds() == 1
    assert hold_store.list_holds() == []
    assert ledger.cleanup_expired_holds() == 0


def test_release_returns_stock(ledger):
    before = _free(ledger, "number-4")
    hold = ledger.create_soft_hold([SignAllocation("number-4", quantity=3)], TENANT, "sess-1")

    assert ledger.release_hold(hold.hold_id) is True
    assert _free(ledger, "number-4") == before
    assert ledger.get_hold(hold.hold_id) is None
    assert ledger.release_hold(hold.hold_id) is False


def test_convert_deducts_stock_permanently(ledger, catalog):
    hold = ledger.create_soft_hold(
        [SignAllocation("ordinal-TH", quantity=2), SignAllocation("letter-Q")], TENANT, "sess-1",
    )

    assert ledger.release_hold(hold.hold_id, convert_to_order=True) is True

    stored = ledger.get_hold(hold.hold_id)
    assert stored.status == HOLD_STATUS_CONVERTED
    sign = catalog.get_signs_by_ids(["ordinal-TH"], TENANT)[0]
    assert sign.available_quantity == 6
    # Converted units are no longer double counted as held
    assert _free(ledger, "ordinal-TH") == 6
    assert ledger.release_hold(hold.hold_id, convert_to_order=True) is False


def test_expired_hold_cannot_convert(ledger, clock, catalog):
    hold = ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "sess-1")
    clock.advance(hours=2)

    assert ledger.release_hold(hold.hold_id, convert_to_order=True) is False
    assert catalog.get_signs_by_ids(["letter-A"], TENANT)[0].available_quantity == 18


def test_extend_hold_moves_expiry(ledger, clock):
    hold = ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "sess-1")
    original = ledger.get_hold(hold.hold_id).expires_at

    assert ledger.extend_hold(hold.hold_id, additional_hours=2) is True
    assert ledger.get_hold(hold.hold_id).expires_at == original + timedelta(hours=2)

    clock.advance(hours=2, minutes=30)
    assert ledger.currently_held_quantity("letter-A", TENANT) == 1
    assert ledger.extend_hold("hold_missing") is False


def test_hold_records_session_and_customer(ledger, clock):
    result = ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "sess-9", customer_id="cust-3")
    hold = ledger.get_hold(result.hold_id)

    assert hold.session_id == "sess-9"
    assert hold.customer_id == "cust-3"
    assert hold.created_at == clock.now
    assert hold.expires_at == clock.now + timedelta(hours=1)


def test_invalid_allocations_are_rejected(ledger):
    assert ledger.create_soft_hold([], TENANT, "sess-1").error == "At least one sign allocation is required"
    assert ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "").error == "session_id is required"
    bad_quantity = ledger.create_soft_hold([SignAllocation("letter-A", quantity=0)], TENANT, "sess-1")
    assert bad_quantity.success is False
    assert "positive integer" in bad_quantity.error


def test_catalog_failure_is_reported(mocker, hold_store):
    catalog = mocker.Mock()
    catalog.get_signs_by_ids.side_effect = RuntimeError("connection reset")
    ledger = InventoryLedger(catalog, hold_store)

    result = ledger.check_bulk_availability(["letter-A"], TENANT)
    assert result.success is False
    assert result.error == "Failed to check availability"

    hold = ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "sess-1")
    assert hold.success is False
    assert hold.error == "Failed to create inventory hold"


def test_store_failure_during_insert_is_reported(ledger, mocker):
    mocker.patch.object(ledger.store, "add", side_effect=RuntimeError("disk full"))
    result = ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "sess-1")

    assert result.success is False
    assert result.error == "Failed to create inventory hold"


def test_expired_hold_cannot_be_extended_back_to_life(ledger, clock):
    stale = ledger.create_soft_hold([SignAllocation("bookend-left", quantity=4)], TENANT, "sess-1")
    clock.advance(hours=2)
    fresh = ledger.create_soft_hold([SignAllocation("bookend-left", quantity=4)], TENANT, "sess-2")
    assert fresh.success is True

    assert ledger.extend_hold(stale.hold_id, additional_hours=5) is False
    assert ledger.currently_held_quantity("bookend-left", TENANT) == 4


def test_converted_hold_cannot_be_extended(ledger):
    hold = ledger.create_soft_hold([SignAllocation("letter-A")], TENANT, "sess-1")
    ledger.release_hold(hold.hold_id, convert_to_order=True)

    assert ledger.extend_hold(hold.hold_id) is False
    assert ledger.get_hold(hold.hold_id).status == HOLD_STATUS_CONVERTED


def test_convert_of_concurrently_released_hold_keeps_stock(ledger, mocker):
    hold = ledger.create_soft_hold([SignAllocation("bookend-right", quantity=2)], TENANT, "sess-1")
    snapshot = ledger.store.get(hold.hold_id)
    # Another request releases the hold between the first read and the lock
    ledger.store.delete(hold.hold_id)
    mocker.patch.object(ledger.store, "get", side_effect=[snapshot, None])

    assert ledger.release_hold(hold.hold_id, convert_to_order=True) is False
    assert ledger.catalog.get_signs_by_ids(["bookend-right"], TENANT)[0].available_quantity == 4


def test_second_conversion_does_not_deduct_twice(ledger, mocker):
    hold = ledger.create_soft_hold([SignAllocation("bookend-right", quantity=2)], TENANT, "sess-1")
    snapshot = ledger.store.get(hold.hold_id)
    assert ledger.release_hold(hold.hold_id, convert_to_order=True) is True

    real_get = ledger.store.get
    mocker.patch.object(ledger.store, "get", side_effect=[snapshot, real_get(hold.hold_id)])

    assert ledger.release_hold(hold.hold_id, convert_to_order=True) is False
    assert ledger.catalog.get_signs_by_ids(["bookend-right"], TENANT)[0].available_quantity == 2


def test_alternatives_skip_deactivated_and_empty_signs(ledger, catalog):
    catalog.add_sign(Sign(
        id="bookend-retired", name="Retired Bookend", category="bookends", width=1.5, height=3,
        total_quantity=2, available_quantity=2, available=False,
    ))
    catalog.add_sign(Sign(
        id="bookend-empty", name="Empty Bookend", category="bookends", width=1.5, height=3,
        total_quantity=2, available_quantity=0,
    ))
    ledger.create_soft_hold([SignAllocation("bookend-left", quantity=4)], TENANT, "sess-1")

    check = ledger.check_bulk_availability(["bookend-left"], TENANT)

    assert check.success is False
    alternative_ids = {s.id for s in check.alternatives}
    assert "bookend-right" in alternative_ids
    assert not alternative_ids & {"bookend-retired", "bookend-empty"}
