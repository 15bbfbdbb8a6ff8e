"""
Booking flow wiring.

Backend factories for the catalog, hold store and ledger, plus the
"lay out the display, then hold its signs" step the booking UI calls.
"""
import logging
import threading
from collections import OrderedDict
from typing import Dict, List, Optional

from constants import LAYOUT_MINIMUM_FILL
from models import LayoutCalculation, LayoutInput, SignAllocation
from services.catalog import MemorySignCatalog, PostgresSignCatalog, SignCatalog
from services.hold_store import HoldStore, MemoryHoldStore, PostgresHoldStore
from services.inventory import InventoryLedger
from services.layout_calculator import LayoutCalculator
from services.sign_selection import SignSelectionEngine

logger = logging.getLogger(__name__)

BACKEND_MEMORY = "memory"
BACKEND_POSTGRES = "postgres"

_memory_lock = threading.Lock()
_memory_catalog: Optional[MemorySignCatalog] = None
_memory_store: Optional[MemoryHoldStore] = None


def _backend() -> str:
    import config
    backend = (config.HOLD_STORE_BACKEND or BACKEND_MEMORY).lower()
    if backend not in (BACKEND_MEMORY, BACKEND_POSTGRES):
        raise ValueError(f"Unknown HOLD_STORE_BACKEND '{backend}'")
    return backend


def _memory_backends():
    global _memory_catalog, _memory_store
    with _memory_lock:
        if _memory_catalog is None:
            _memory_catalog = MemorySignCatalog()
            _memory_store = MemoryHoldStore()
        return _memory_catalog, _memory_store


def reset_memory_backends() -> None:
    """Forget process-wide memory backends (tests, dev reloads)."""
    global _memory_catalog, _memory_store
    with _memory_lock:
        _memory_catalog = None
        _memory_store = None


def get_catalog() -> SignCatalog:
    """Factory to return the configured catalog backend."""
    if _backend() == BACKEND_POSTGRES:
        return PostgresSignCatalog()
    return _memory_backends()[0]


def get_hold_store() -> HoldStore:
    """Factory to return the configured hold store backend."""
    if _backend() == BACKEND_POSTGRES:
        return PostgresHoldStore()
    return _memory_backends()[1]


def get_ledger() -> InventoryLedger:
    return InventoryLedger(get_catalog(), get_hold_store())


def get_calculator(catalog: Optional[SignCatalog] = None) -> LayoutCalculator:
    return LayoutCalculator(selector=SignSelectionEngine(catalog or get_catalog()))


def build_allocations(layout: LayoutCalculation) -> List[SignAllocation]:
    """One soft allocation per catalog sign, quantity = number of placements."""
    counts = OrderedDict()
    for zone in layout.zones():
        for zone_sign in zone.signs:
            counts[zone_sign.sign_id] = counts.get(zone_sign.sign_id, 0) + 1
    return [SignAllocation(sign_id=sign_id, quantity=qty) for sign_id, qty in counts.items()]


def preview_and_hold(
    layout_input: LayoutInput,
    session_id: str,
    customer_id: Optional[str] = None,
    ledger: Optional[InventoryLedger] = None,
    calculator: Optional[LayoutCalculator] = None,
) -> Dict:
    """
    Calculate the display and, when zone 3 meets the minimum fill, soft-hold
    every sign it uses.

    Raises LayoutInputError for invalid input. Unmet fill and refused holds
    come back as success False with the layout attached.
    """
    ledger = ledger or get_ledger()
    calculator = calculator or LayoutCalculator(selector=SignSelectionEngine(ledger.catalog))

    layout = calculator.calculate_layout(layout_input)
    result = {
        "success": False,
        "layout": layout.to_dict(),
        "hold_id": None,
    }

    if not layout.meets_minimum_fill:
        fill = layout.zone3.fill_percentage or 0
        result["warning"] = (
            f"Zone 3 fill requirement not met ({fill:.0%} < {LAYOUT_MINIMUM_FILL:.0%} minimum)"
        )
        logger.info(f"[Booking] Layout below minimum fill for session {session_id}",
                    extra={"tenant_id": layout_input.tenant_id})
        return result

    allocations = build_allocations(layout)
    hold = ledger.create_soft_hold(allocations, layout_input.tenant_id, session_id, customer_id=customer_id)
    result["allocations"] = [a.to_dict() for a in allocations]
    if not hold.success:
        result["error"] = hold.error
        return result

    result["success"] = True
    result["hold_id"] = hold.hold_id
    return result
