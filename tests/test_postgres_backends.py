"""
Postgres hold store and catalog, exercised against a mocked PostgresDB.
"""
from datetime import datetime, timedelta, timezone

import pytest

from models import InventoryHold, SignAllocation
from services.catalog import PostgresSignCatalog, build_platform_signs
from services.hold_store import PostgresHoldStore

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _hold():
    return InventoryHold(
        id="hold_abc",
        session_id="sess-1",
        tenant_id="agency-1",
        sign_allocations=[SignAllocation("letter-A", 2), SignAllocation("bookend-left")],
        created_at=NOW,
        expires_at=NOW + timedelta(hours=1),
    )


@pytest.fixture
def mock_db(mocker):
    return mocker.Mock()


@pytest.fixture
def store(mock_db):
    return PostgresHoldStore(db_factory=lambda: mock_db)


def _sql_calls(mock_db):
    return [c.args[0] for c in mock_db.execute.call_args_list]


def test_add_inserts_hold_and_items_then_commits(store, mock_db):
    store.add(_hold())

    sql = _sql_calls(mock_db)
    assert "INSERT INTO inventory_holds" in sql[0]
    assert all("INSERT INTO inventory_hold_items" in s for s in sql[1:])
    item_params = [c.args[1] for c in mock_db.execute.call_args_list[1:]]
    assert item_params == [
        ("hold_abc", "letter-A", 2, "soft", 0),
        ("hold_abc", "bookend-left", 1, "soft", 1),
    ]
    mock_db.commit.assert_called_once()


def test_writes_inside_lock_commit_once_at_scope_end(store, mock_db):
    with store.lock(["letter-B", "letter-A", "letter-A"]):
        store.add(_hold())
        mock_db.commit.assert_not_called()

    lock_sql, lock_params = mock_db.execute.call_args_list[0].args
    assert "FOR UPDATE" in lock_sql
    assert lock_params == (["letter-A", "letter-B"],)
    mock_db.commit.assert_called_once()


def test_lock_rolls_back_on_error(store, mock_db):
    with pytest.raises(RuntimeError):
        with store.lock(["letter-A"]):
            raise RuntimeError("boom")

    mock_db.rollback.assert_called_once()
    mock_db.commit.assert_not_called()

    # Depth is restored, so later writes commit again
    store.delete("hold_abc")
    mock_db.commit.assert_called_once()


def test_get_hydrates_hold_with_items(store, mock_db):
    hold_row = {
        "id": "hold_abc", "session_id": "sess-1", "tenant_id": "agency-1", "customer_id": None,
        "status": "active", "created_at": NOW, "expires_at": NOW + timedelta(hours=1),
    }
    item_rows = [
        {"hold_id": "hold_abc", "sign_id": "letter-A", "quantity": 2, "hold_type": "soft"},
    ]
    mock_db.execute.return_value.fetchone.return_value = hold_row
    mock_db.execute.return_value.fetchall.return_value = item_rows

    hold = store.get("hold_abc")

    assert hold.id == "hold_abc"
    assert hold.sign_allocations == [SignAllocation("letter-A", 2, "soft")]
    assert hold.expires_at == NOW + timedelta(hours=1)


def test_get_missing_hold(store, mock_db):
    mock_db.execute.return_value.fetchone.return_value = None
    assert store.get("hold_missing") is None


def test_save_missing_hold_raises(store, mock_db):
    mock_db.execute.return_value.rowcount = 0
    with pytest.raises(KeyError):
        store.save(_hold())


def test_purge_expired_returns_deleted_count(store, mock_db):
    mock_db.execute.return_value.fetchall.return_value = [{"id": "hold_1"}, {"id": "hold_2"}]

    assert store.purge_expired(NOW) == 2
    sql, params = mock_db.execute.call_args.args
    assert "DELETE FROM inventory_holds" in sql
    assert params == ("active", NOW)
    mock_db.commit.assert_called_once()


def test_held_quantity_filters_live_holds(store, mock_db):
    mock_db.execute.return_value.fetchone.return_value = {"held": 7}

    assert store.held_quantity("letter-A", "agency-1", NOW) == 7
    sql, params = mock_db.execute.call_args.args
    assert "expires_at > %s" in sql
    assert params == ("letter-A", "agency-1", "active", NOW)


def test_catalog_reads_rows_into_signs(mock_db):
    mock_db.execute.return_value.fetchall.return_value = [{
        "id": "letter-A", "tenant_id": None, "name": "Letter A", "category": "letters",
        "theme": "classic", "keywords": ["a"], "width": 2, "height": 2,
        "total_quantity": 20, "available_quantity": 18, "available": True,
        "zone": "zone1", "sign_type": "letter", "character": "A",
    }]
    signs = PostgresSignCatalog(db_factory=lambda: mock_db).get_available_signs("agency-1")

    assert signs[0].id == "letter-A"
    assert signs[0].width == 2.0
    assert signs[0].is_platform_sign is True


def test_catalog_deduct_missing_sign_raises(mock_db):
    mock_db.execute.return_value.fetchone.return_value = None
    with pytest.raises(KeyError):
        PostgresSignCatalog(db_factory=lambda: mock_db).deduct("ghost", 1)
    mock_db.commit.assert_not_called()


def test_catalog_upsert_commits_once(mock_db):
    signs = build_platform_signs()
    count = PostgresSignCatalog(db_factory=lambda: mock_db).upsert_signs(signs)

    assert count == len(signs) == mock_db.execute.call_count
    mock_db.commit.assert_called_once()
