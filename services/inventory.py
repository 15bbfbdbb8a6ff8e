"""
Inventory Ledger.

Single source of truth for how many units of each sign can still be promised
to a new booking. Availability is computed at read time as

    sign.available_quantity - (quantity held by live holds for the tenant)

where a hold is live when its status is active and its expiry is in the
future. Expired holds therefore stop counting the moment they expire, even
before cleanup_expired_holds() removes them.

Converted holds are folded into sign.available_quantity (a permanent
deduction) and are no longer counted as held.

Public operations never raise: failures come back as result objects,
False, 0 or None.
"""
import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from constants import (
    HOLD_DURATION_HOURS, HOLD_STATUS_ACTIVE, HOLD_STATUS_CONVERTED,
    MAX_ALTERNATIVES, MINIMUM_FILL_PERCENTAGE, YARD_WIDTH_FEET,
)
from models import (
    AllocationError, BulkAvailabilityResult, HoldResult, InventoryAvailability,
    InventoryHold, Sign, SignAllocation,
)
from services.catalog import SignCatalog
from services.hold_store import HoldStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_hold_id() -> str:
    return f"hold_{uuid.uuid4().hex}"


class InventoryLedger:

    def __init__(self, catalog: SignCatalog, store: HoldStore, clock: Callable[[], datetime] = utc_now):
        self.catalog = catalog
        self.store = store
        self.clock = clock

    # --- Reads ---

    def get_available_signs(self, tenant_id: str) -> List[Sign]:
        return self.catalog.get_available_signs(tenant_id)

    def currently_held_quantity(self, sign_id: str, tenant_id: str) -> int:
        return self.store.held_quantity(sign_id, tenant_id, self.clock())

    def get_hold(self, hold_id: str) -> Optional[InventoryHold]:
        try:
            return self.store.get(hold_id)
        except Exception:
            logger.exception(f"[Inventory] Failed to load hold {hold_id}")
            return None

    def check_bulk_availability(
        self,
        sign_ids: Iterable[str],
        tenant_id: str,
        quantities: Optional[Dict[str, int]] = None,
    ) -> BulkAvailabilityResult:
        """
        Check whether every requested sign can be promised.

        Repeated ids in sign_ids count as extra requested units; an explicit
        quantities map overrides that count per sign.
        """
        try:
            requested = Counter(sign_ids)
            for sid, qty in (quantities or {}).items():
                requested[sid] = qty

            signs = {s.id: s for s in self.catalog.get_signs_by_ids(requested.keys(), tenant_id)}
            availability = []
            total_width = 0
            available_signs = 0

            for sign_id, wanted in requested.items():
                sign = signs.get(sign_id)
                if sign is None:
                    availability.append(InventoryAvailability(
                        sign_id=sign_id, available=False, available_quantity=0,
                        max_quantity=0, requested_quantity=wanted, reasons=["Sign not found"],
                    ))
                    continue

                held = self.currently_held_quantity(sign_id, tenant_id)
                free = max(0, sign.available_quantity - held)

                reasons = []
                if not sign.available:
                    reasons.append("Sign deactivated")
                elif free <= 0:
                    reasons.append("Currently unavailable")
                elif wanted > free:
                    reasons.append(f"Requested {wanted}, only {free} available")

                is_available = not reasons
                availability.append(InventoryAvailability(
                    sign_id=sign_id, available=is_available, available_quantity=free,
                    max_quantity=sign.total_quantity, requested_quantity=wanted, reasons=reasons,
                ))

                if is_available:
                    total_width += sign.width * wanted
                    available_signs += 1

            fill_percentage = total_width / YARD_WIDTH_FEET
            all_available = all(a.available for a in availability)

            return BulkAvailabilityResult(
                success=all_available,
                availability=availability,
                total_signs=available_signs,
                total_width=total_width,
                fill_percentage=fill_percentage,
                meets_minimum_fill=fill_percentage >= MINIMUM_FILL_PERCENTAGE,
                alternatives=[] if all_available else self._similar_signs(list(requested), tenant_id),
            )
        except Exception:
            logger.exception(f"[Inventory] Bulk availability check failed for tenant {tenant_id}")
            return BulkAvailabilityResult(success=False, error="Failed to check availability")

    def _similar_signs(self, sign_ids: List[str], tenant_id: str) -> List[Sign]:
        all_signs = self.catalog.get_available_signs(tenant_id)
        requested = [s for s in all_signs if s.id in sign_ids]
        alternatives = []
        for sign in all_signs:
            if sign.id in sign_ids or not sign.in_stock:
                continue
            if any(
                sign.category == r.category or any(k in r.keywords for k in sign.keywords)
                for r in requested
            ):
                alternatives.append(sign)
            if len(alternatives) >= MAX_ALTERNATIVES:
                break
        return alternatives

    # --- Hold lifecycle ---

    def create_soft_hold(
        self,
        allocations: List[SignAllocation],
        tenant_id: str,
        session_id: str,
        customer_id: Optional[str] = None,
    ) -> HoldResult:
        """
        Reserve every allocation or nothing.

        The availability re-check and the insert share one store lock scope.
        """
        try:
            if not allocations:
                raise AllocationError("At least one sign allocation is required")
            if not session_id:
                raise AllocationError("session_id is required")
            for allocation in allocations:
                allocation.validate()
        except AllocationError as e:
            return HoldResult(success=False, error=str(e))

        quantities = Counter()
        for allocation in allocations:
            quantities[allocation.sign_id] += allocation.quantity

        try:
            with self.store.lock(quantities.keys()):
                check = self.check_bulk_availability(quantities.keys(), tenant_id, quantities=quantities)
                if check.error:
                    return HoldResult(success=False, error="Failed to create inventory hold")
                if not check.success:
                    unavailable = [a.sign_id for a in check.availability if not a.available]
                    logger.info(
                        f"[Inventory] Hold refused for session {session_id}: unavailable {unavailable}",
                        extra={"tenant_id": tenant_id},
                    )
                    return HoldResult(success=False, error="One or more signs are not available")

                now = self.clock()
                hold = InventoryHold(
                    id=new_hold_id(),
                    session_id=session_id,
                    tenant_id=tenant_id,
                    customer_id=customer_id,
                    sign_allocations=list(allocations),
                    created_at=now,
                    expires_at=now + timedelta(hours=HOLD_DURATION_HOURS),
                    status=HOLD_STATUS_ACTIVE,
                )
                self.store.add(hold)

            logger.info(
                f"[Inventory] Created soft hold {hold.id} for {sum(quantities.values())} units",
                extra={"tenant_id": tenant_id, "hold_id": hold.id},
            )
            return HoldResult(success=True, hold_id=hold.id)
        except Exception:
            logger.exception(f"[Inventory] Error creating soft hold for session {session_id}")
            return HoldResult(success=False, error="Failed to create inventory hold")

    def release_hold(self, hold_id: str, convert_to_order: bool = False) -> bool:
        """
        Convert a live hold into a permanent deduction, or drop the hold and
        return its quantities to the pool.

        The hold is re-read inside the store lock, so a hold released or
        converted by a concurrent request is never deducted.
        """
        try:
            hold = self.store.get(hold_id)
            if hold is None:
                logger.warning(f"[Inventory] Hold not found: {hold_id}")
                return False

            with self.store.lock(a.sign_id for a in hold.sign_allocations):
                hold = self.store.get(hold_id)
                if hold is None:
                    logger.warning(f"[Inventory] Hold {hold_id} was released concurrently")
                    return False

                if not convert_to_order:
                    deleted = self.store.delete(hold_id)
                    if deleted:
                        logger.info(f"[Inventory] Released hold {hold_id}", extra={"hold_id": hold_id})
                    return deleted

                if not hold.is_live(self.clock()):
                    logger.warning(f"[Inventory] Cannot convert hold {hold_id} with status {hold.status} (expired or used)")
                    return False

                for allocation in hold.sign_allocations:
                    self.catalog.deduct(allocation.sign_id, allocation.quantity)
                hold.status = HOLD_STATUS_CONVERTED
                self.store.save(hold)

            logger.info(f"[Inventory] Converted hold {hold_id} to order", extra={"hold_id": hold_id})
            return True
        except Exception:
            logger.exception(f"[Inventory] Error releasing hold {hold_id}")
            return False

    def extend_hold(self, hold_id: str, additional_hours: float = 1) -> bool:
        """Push back the expiry of a live hold. Expired or used holds stay dead."""
        try:
            hold = self.store.get(hold_id)
            if hold is None:
                return False

            with self.store.lock(a.sign_id for a in hold.sign_allocations):
                hold = self.store.get(hold_id)
                if hold is None or not hold.is_live(self.clock()):
                    logger.warning(f"[Inventory] Cannot extend hold {hold_id} (missing, expired or used)")
                    return False
                hold.expires_at = hold.expires_at + timedelta(hours=additional_hours)
                self.store.save(hold)

            logger.info(f"[Inventory] Extended hold {hold_id} to {hold.expires_at.isoformat()}")
            return True
        except Exception:
            logger.exception(f"[Inventory] Error extending hold {hold_id}")
            return False

    def cleanup_expired_holds(self) -> int:
        """Sweep active holds past expiry. Reads never depend on this running."""
        try:
            return self.store.purge_expired(self.clock())
        except Exception:
            logger.exception("[Inventory] Error cleaning up expired holds")
            return 0
