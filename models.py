from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional

from constants import (
    DEFAULT_MAX_SIGNS, DEFAULT_PREFERRED_WIDTH,
    HOLD_STATUS_ACTIVE, HOLD_STATUSES, HOLD_TYPE_SOFT, HOLD_TYPES,
)


class BookingInputError(ValueError):
    """Raised when caller-supplied booking input fails boundary validation."""


class LayoutInputError(BookingInputError):
    pass


class SelectionCriteriaError(BookingInputError):
    pass


class AllocationError(BookingInputError):
    pass


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace(' ', 'T').replace('Z', '+00:00'))
    # Make timezone aware if naive
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _clean_hobbies(hobbies) -> List[str]:
    if hobbies is None:
        return []
    if isinstance(hobbies, str) or not isinstance(hobbies, (list, tuple)):
        raise BookingInputError("hobbies must be a list of strings")
    return [str(h).strip() for h in hobbies if str(h).strip()]


@dataclass
class Sign:
    """
    Catalog entry for one physical sign design.

    tenant_id is None for platform-wide signs shared by every agency.
    available_quantity is total minus permanent allocations; active holds are
    subtracted at read time by the inventory ledger.
    """
    id: str
    name: str
    category: str
    width: float
    height: float
    total_quantity: int
    available_quantity: int
    tenant_id: Optional[str] = None
    theme: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    available: bool = True
    zone: Optional[str] = None
    sign_type: Optional[str] = None
    character: Optional[str] = None

    @property
    def is_platform_sign(self) -> bool:
        return self.tenant_id is None

    @property
    def in_stock(self) -> bool:
        return self.available and self.available_quantity > 0

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "category": self.category,
            "theme": self.theme,
            "keywords": list(self.keywords),
            "width": self.width,
            "height": self.height,
            "total_quantity": self.total_quantity,
            "available_quantity": self.available_quantity,
            "available": self.available,
            "is_platform_sign": self.is_platform_sign,
            "zone": self.zone,
            "sign_type": self.sign_type,
            "character": self.character,
        }

    @classmethod
    def from_row(cls, row) -> "Sign":
        row = dict(row)
        return cls(
            id=row['id'],
            tenant_id=row.get('tenant_id'),
            name=row['name'],
            category=row['category'],
            theme=row.get('theme'),
            keywords=list(row.get('keywords') or []),
            width=float(row['width']),
            height=float(row['height']),
            total_quantity=int(row['total_quantity']),
            available_quantity=int(row['available_quantity']),
            available=bool(row.get('available', True)),
            zone=row.get('zone'),
            sign_type=row.get('sign_type'),
            character=row.get('character'),
        )


@dataclass
class SignAllocation:
    sign_id: str
    quantity: int = 1
    hold_type: str = HOLD_TYPE_SOFT

    def validate(self) -> "SignAllocation":
        if not self.sign_id or not str(self.sign_id).strip():
            raise AllocationError("sign_id is required for every allocation")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise AllocationError(f"quantity for {self.sign_id} must be a positive integer")
        if self.hold_type not in HOLD_TYPES:
            raise AllocationError(f"Invalid hold_type '{self.hold_type}'")
        return self

    def to_dict(self) -> Dict:
        return {"sign_id": self.sign_id, "quantity": self.quantity, "hold_type": self.hold_type}

    @classmethod
    def from_dict(cls, data: Dict) -> "SignAllocation":
        if not isinstance(data, dict):
            raise AllocationError("Each allocation must be an object")
        return cls(
            sign_id=data.get('sign_id'),
            quantity=data.get('quantity', 1),
            hold_type=data.get('hold_type', HOLD_TYPE_SOFT),
        ).validate()


@dataclass
class InventoryHold:
    """Reservation of sign quantities for a single booking session."""
    id: str
    session_id: str
    tenant_id: str
    sign_allocations: List[SignAllocation]
    created_at: datetime
    expires_at: datetime
    status: str = HOLD_STATUS_ACTIVE
    customer_id: Optional[str] = None

    def is_live(self, now: datetime) -> bool:
        return self.status == HOLD_STATUS_ACTIVE and self.expires_at > now

    def quantity_for(self, sign_id: str) -> int:
        return sum(a.quantity for a in self.sign_allocations if a.sign_id == sign_id)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "tenant_id": self.tenant_id,
            "customer_id": self.customer_id,
            "sign_allocations": [a.to_dict() for a in self.sign_allocations],
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "InventoryHold":
        status = data.get('status', HOLD_STATUS_ACTIVE)
        if status not in HOLD_STATUSES:
            raise ValueError(f"Unknown hold status '{status}'")
        return cls(
            id=data['id'],
            session_id=data['session_id'],
            tenant_id=data['tenant_id'],
            customer_id=data.get('customer_id'),
            sign_allocations=[SignAllocation.from_dict(a) for a in data.get('sign_allocations') or []],
            created_at=_parse_timestamp(data['created_at']),
            expires_at=_parse_timestamp(data['expires_at']),
            status=status,
        )


@dataclass
class InventoryAvailability:
    sign_id: str
    available: bool
    available_quantity: int
    max_quantity: int
    requested_quantity: int = 1
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "sign_id": self.sign_id,
            "available": self.available,
            "available_quantity": self.available_quantity,
            "max_quantity": self.max_quantity,
            "requested_quantity": self.requested_quantity,
            "reasons": list(self.reasons),
        }


@dataclass
class BulkAvailabilityResult:
    success: bool
    availability: List[InventoryAvailability] = field(default_factory=list)
    total_signs: int = 0
    total_width: float = 0
    fill_percentage: float = 0.0
    meets_minimum_fill: bool = False
    alternatives: List[Sign] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "availability": [a.to_dict() for a in self.availability],
            "total_signs": self.total_signs,
            "total_width": self.total_width,
            "fill_percentage": self.fill_percentage,
            "meets_minimum_fill": self.meets_minimum_fill,
            "alternatives": [s.to_dict() for s in self.alternatives],
            "error": self.error,
        }


@dataclass
class HoldResult:
    success: bool
    hold_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {"success": self.success, "hold_id": self.hold_id, "error": self.error}


@dataclass
class SignSelectionCriteria:
    message: str
    tenant_id: str
    theme: Optional[str] = None
    event_type: Optional[str] = None
    hobbies: List[str] = field(default_factory=list)
    max_signs: int = DEFAULT_MAX_SIGNS
    preferred_width: float = DEFAULT_PREFERRED_WIDTH

    def validate(self) -> "SignSelectionCriteria":
        if not self.message or not str(self.message).strip():
            raise SelectionCriteriaError("message is required")
        if not self.tenant_id:
            raise SelectionCriteriaError("tenant_id is required")
        if isinstance(self.max_signs, bool) or not isinstance(self.max_signs, int) or self.max_signs < 1:
            raise SelectionCriteriaError("max_signs must be a positive integer")
        if isinstance(self.preferred_width, bool) or not isinstance(self.preferred_width, (int, float)) \
                or self.preferred_width <= 0:
            raise SelectionCriteriaError("preferred_width must be a positive number")
        return self

    @classmethod
    def from_dict(cls, data: Dict, tenant_id: str) -> "SignSelectionCriteria":
        try:
            hobbies = _clean_hobbies(data.get('hobbies'))
        except BookingInputError as e:
            raise SelectionCriteriaError(str(e))
        return cls(
            message=data.get('message') or "",
            tenant_id=tenant_id,
            theme=data.get('theme') or None,
            event_type=data.get('event_type') or None,
            hobbies=hobbies,
            max_signs=data.get('max_signs', DEFAULT_MAX_SIGNS),
            preferred_width=data.get('preferred_width', DEFAULT_PREFERRED_WIDTH),
        ).validate()


@dataclass
class SignSelectionResult:
    success: bool
    selected_signs: List[Sign] = field(default_factory=list)
    sign_allocations: List[SignAllocation] = field(default_factory=list)
    total_width: float = 0
    fill_percentage: float = 0.0
    alternatives: List[Sign] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "selected_signs": [s.to_dict() for s in self.selected_signs],
            "sign_allocations": [a.to_dict() for a in self.sign_allocations],
            "total_width": self.total_width,
            "fill_percentage": self.fill_percentage,
            "alternatives": [s.to_dict() for s in self.alternatives],
            "reasons": list(self.reasons),
        }


@dataclass
class ZoneSign:
    """One placed unit within a display zone."""
    sign_id: str
    zone: str
    sign_type: str
    position: int
    width: float
    character: Optional[str] = None
    is_ordinal: bool = False
    metadata: Dict = field(default_factory=dict)

    @property
    def placement_id(self) -> str:
        return f"{self.sign_id}@{self.zone}:{self.position}"

    def to_dict(self) -> Dict:
        return {
            "sign_id": self.sign_id,
            "placement_id": self.placement_id,
            "zone": self.zone,
            "type": self.sign_type,
            "position": self.position,
            "width": self.width,
            "character": self.character,
            "is_ordinal": self.is_ordinal,
            "metadata": dict(self.metadata),
        }


@dataclass
class DisplayZone:
    zone: str
    signs: List[ZoneSign] = field(default_factory=list)
    total_width: float = 0
    fill_percentage: Optional[float] = None

    def add(self, sign: ZoneSign) -> ZoneSign:
        self.signs.append(sign)
        self.total_width += sign.width
        return sign

    def to_dict(self) -> Dict:
        data = {
            "zone": self.zone,
            "signs": [s.to_dict() for s in self.signs],
            "total_width": self.total_width,
        }
        if self.fill_percentage is not None:
            data["fill_percentage"] = self.fill_percentage
        return data


@dataclass
class LayoutInput:
    message: str
    recipient_name: str
    tenant_id: str
    event_number: Optional[int] = None
    theme: Optional[str] = None
    hobbies: List[str] = field(default_factory=list)

    def validate(self) -> "LayoutInput":
        if not self.message or not str(self.message).strip():
            raise LayoutInputError("message is required")
        if not self.recipient_name or not str(self.recipient_name).strip():
            raise LayoutInputError("recipient_name is required")
        if not self.tenant_id:
            raise LayoutInputError("tenant_id is required")
        if self.event_number is not None:
            if isinstance(self.event_number, bool) or not isinstance(self.event_number, int) \
                    or self.event_number < 1:
                raise LayoutInputError("event_number must be a positive integer")
        return self

    @classmethod
    def from_dict(cls, data: Dict, tenant_id: str) -> "LayoutInput":
        try:
            hobbies = _clean_hobbies(data.get('hobbies'))
        except BookingInputError as e:
            raise LayoutInputError(str(e))
        return cls(
            message=data.get('message') or "",
            recipient_name=data.get('recipient_name') or "",
            tenant_id=tenant_id,
            event_number=data.get('event_number'),
            theme=data.get('theme') or None,
            hobbies=hobbies,
        ).validate()


@dataclass
class LayoutCalculation:
    zone1: DisplayZone
    zone2: DisplayZone
    zone3: DisplayZone
    zone4: DisplayZone
    zone5: DisplayZone
    total_width: float
    grid_columns: int
    meets_minimum_fill: bool

    def zones(self) -> Iterator[DisplayZone]:
        return iter((self.zone1, self.zone2, self.zone3, self.zone4, self.zone5))

    def to_dict(self) -> Dict:
        return {
            "zone1": self.zone1.to_dict(),
            "zone2": self.zone2.to_dict(),
            "zone3": self.zone3.to_dict(),
            "zone4": self.zone4.to_dict(),
            "zone5": self.zone5.to_dict(),
            "total_width": self.total_width,
            "grid_columns": self.grid_columns,
            "meets_minimum_fill": self.meets_minimum_fill,
        }
