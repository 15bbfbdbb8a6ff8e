"""
Persistence for inventory holds.

Stores keep InventoryHold records and expose a `lock(sign_ids)` scope.
The ledger runs its availability check and the hold insert inside that
scope so two bookings cannot both pass the check for the last unit of a
sign.
"""
import copy
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional

from constants import HOLD_STATUS_ACTIVE
from models import InventoryHold, SignAllocation

logger = logging.getLogger(__name__)


class HoldStore(ABC):

    @abstractmethod
    def list_holds(self) -> List[InventoryHold]:
        pass

    @abstractmethod
    def get(self, hold_id: str) -> Optional[InventoryHold]:
        pass

    @abstractmethod
    def add(self, hold: InventoryHold) -> None:
        pass

    @abstractmethod
    def save(self, hold: InventoryHold) -> None:
        """Persist status and expiry changes of an existing hold."""
        pass

    @abstractmethod
    def delete(self, hold_id: str) -> bool:
        pass

    @abstractmethod
    def lock(self, sign_ids: Iterable[str]):
        """Context manager serializing check-then-hold for the given signs."""
        pass

    def purge_expired(self, now: datetime) -> int:
        """Drop active holds whose expiry has passed. Returns count removed."""
        removed = 0
        for hold in self.list_holds():
            if hold.status == HOLD_STATUS_ACTIVE and hold.expires_at <= now:
                logger.info(f"[Holds] Cleaning up expired hold {hold.id}")
                if self.delete(hold.id):
                    removed += 1
        return removed

    def held_quantity(self, sign_id: str, tenant_id: str, now: datetime) -> int:
        """Quantity of sign_id reserved by live holds for the tenant."""
        return sum(
            hold.quantity_for(sign_id)
            for hold in self.list_holds()
            if hold.tenant_id == tenant_id and hold.is_live(now)
        )


class MemoryHoldStore(HoldStore):
    """
    Process-local store. Records are copied in and out so callers cannot
    mutate stored holds without going through save().
    """

    def __init__(self):
        self._holds = {}
        self._mutex = threading.RLock()

    def list_holds(self):
        with self._mutex:
            return [copy.deepcopy(h) for h in self._holds.values()]

    def get(self, hold_id):
        with self._mutex:
            hold = self._holds.get(hold_id)
            return copy.deepcopy(hold) if hold else None

    def add(self, hold):
        with self._mutex:
            if hold.id in self._holds:
                raise ValueError(f"Hold {hold.id} already exists")
            self._holds[hold.id] = copy.deepcopy(hold)

    def save(self, hold):
        with self._mutex:
            if hold.id not in self._holds:
                raise KeyError(f"Hold {hold.id} not found")
            self._holds[hold.id] = copy.deepcopy(hold)

    def delete(self, hold_id):
        with self._mutex:
            return self._holds.pop(hold_id, None) is not None

    @contextmanager
    def lock(self, sign_ids):
        with self._mutex:
            yield


class PostgresHoldStore(HoldStore):
    """
    Holds in `inventory_holds` + `inventory_hold_items`.

    lock() opens a transaction and takes row locks on the requested `signs`
    rows; writes made inside it are committed together when the scope exits.
    """

    def __init__(self, db_factory=None):
        if db_factory is None:
            from database import get_db
            db_factory = get_db
        self._db_factory = db_factory
        self._lock_depth = 0

    def _commit(self, db):
        if self._lock_depth == 0:
            db.commit()

    def _load_items(self, db, hold_ids):
        if not hold_ids:
            return {}
        rows = db.execute(
            """
            SELECT hold_id, sign_id, quantity, hold_type
            FROM inventory_hold_items
            WHERE hold_id = ANY(%s)
            ORDER BY hold_id, position
            """,
            (list(hold_ids),)
        ).fetchall()
        items = {}
        for r in rows:
            items.setdefault(r['hold_id'], []).append(
                SignAllocation(sign_id=r['sign_id'], quantity=int(r['quantity']), hold_type=r['hold_type'])
            )
        return items

    def _hydrate(self, row, allocations) -> InventoryHold:
        return InventoryHold.from_dict({
            "id": row['id'],
            "session_id": row['session_id'],
            "tenant_id": row['tenant_id'],
            "customer_id": row['customer_id'],
            "status": row['status'],
            "created_at": row['created_at'],
            "expires_at": row['expires_at'],
            "sign_allocations": [a.to_dict() for a in allocations],
        })

    def list_holds(self):
        db = self._db_factory()
        rows = db.execute("SELECT * FROM inventory_holds ORDER BY created_at").fetchall()
        items = self._load_items(db, [r['id'] for r in rows])
        return [self._hydrate(r, items.get(r['id'], [])) for r in rows]

    def get(self, hold_id):
        db = self._db_factory()
        row = db.execute("SELECT * FROM inventory_holds WHERE id = %s", (hold_id,)).fetchone()
        if not row:
            return None
        items = self._load_items(db, [hold_id])
        return self._hydrate(row, items.get(hold_id, []))

    def add(self, hold):
        db = self._db_factory()
        db.execute(
            """
            INSERT INTO inventory_holds (id, session_id, tenant_id, customer_id, status, created_at, expires_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (hold.id, hold.session_id, hold.tenant_id, hold.customer_id,
             hold.status, hold.created_at, hold.expires_at)
        )
        for position, allocation in enumerate(hold.sign_allocations):
            db.execute(
                """
                INSERT INTO inventory_hold_items (hold_id, sign_id, quantity, hold_type, position)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (hold.id, allocation.sign_id, allocation.quantity, allocation.hold_type, position)
            )
        self._commit(db)

    def save(self, hold):
        db = self._db_factory()
        cursor = db.execute(
            """
            UPDATE inventory_holds
            SET status = %s, expires_at = %s, updated_at = NOW()
            WHERE id = %s
            """,
            (hold.status, hold.expires_at, hold.id)
        )
        if cursor.rowcount == 0:
            raise KeyError(f"Hold {hold.id} not found")
        self._commit(db)

    def delete(self, hold_id):
        db = self._db_factory()
        row = db.execute(
            "DELETE FROM inventory_holds WHERE id = %s RETURNING id", (hold_id,)
        ).fetchone()
        self._commit(db)
        return row is not None

    def purge_expired(self, now):
        db = self._db_factory()
        rows = db.execute(
            """
            DELETE FROM inventory_holds
            WHERE status = %s AND expires_at <= %s
            RETURNING id
            """,
            (HOLD_STATUS_ACTIVE, now)
        ).fetchall()
        self._commit(db)
        for r in rows:
            logger.info(f"[Holds] Cleaned up expired hold {r['id']}")
        return len(rows)

    def held_quantity(self, sign_id, tenant_id, now):
        db = self._db_factory()
        row = db.execute(
            """
            SELECT COALESCE(SUM(i.quantity), 0) AS held
            FROM inventory_hold_items i
            JOIN inventory_holds h ON h.id = i.hold_id
            WHERE i.sign_id = %s
              AND h.tenant_id = %s
              AND h.status = %s
              AND h.expires_at > %s
            """,
            (sign_id, tenant_id, HOLD_STATUS_ACTIVE, now)
        ).fetchone()
        return int(row['held'])

    @contextmanager
    def lock(self, sign_ids):
        db = self._db_factory()
        ids = sorted(set(sign_ids))
        self._lock_depth += 1
        try:
            # Sorted ids keep lock acquisition order stable across requests.
            db.execute("SELECT id FROM signs WHERE id = ANY(%s) ORDER BY id FOR UPDATE", (ids,))
            yield
        except Exception:
            self._lock_depth -= 1
            db.rollback()
            raise
        else:
            self._lock_depth -= 1
            if self._lock_depth == 0:
                db.commit()
