"""
Sign catalog sources.

The catalog is read by the selection engine, the layout calculator and the
inventory ledger. The only write is `deduct`, which the ledger calls when a
hold converts into an order.
"""
import copy
import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from constants import (
    CATEGORY_BACKDROP, CATEGORY_BOOKENDS, CATEGORY_DECORATIONS, CATEGORY_LETTERS,
    CATEGORY_NUMBERS, CATEGORY_ORDINALS, BOOKEND_POSITIONS,
    ZONE_BACKDROP, ZONE_BOOKENDS, ZONE_DECORATIVE_FILL, ZONE_EVENT_MESSAGE,
    SIGN_TYPE_BACKDROP, SIGN_TYPE_BOOKEND, SIGN_TYPE_DECORATION, SIGN_TYPE_LETTER,
    SIGN_TYPE_NUMBER, SIGN_TYPE_ORDINAL,
)
from models import Sign

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    return re.sub(r'\s+', '-', (name or "").strip().lower())


def letter_sign_id(char: str) -> str:
    return f"letter-{char}"


def number_sign_id(digit: str) -> str:
    return f"number-{digit}"


def ordinal_sign_id(suffix: str) -> str:
    return f"ordinal-{suffix}"


def decoration_sign_id(name: str) -> str:
    return f"decoration-{slugify(name)}"


def backdrop_sign_id(name: str) -> str:
    return f"backdrop-{slugify(name)}"


def bookend_sign_id(position: str) -> str:
    return f"bookend-{position}"


# --- Platform default set ---
# Shared by every agency; agencies add their own signs on top.

PLATFORM_DECORATIONS = (
    ("Baseball", ("sports", "baseball", "games"), "sports"),
    ("Soccer Ball", ("sports", "soccer", "football"), "sports"),
    ("Basketball", ("sports", "basketball", "games"), "sports"),
    ("Gaming Controller", ("gaming", "games", "play"), "fun"),
    ("Music Notes", ("music", "songs", "melody"), "fun"),
    ("Art Palette", ("art", "painting", "creative"), "fun"),
    ("Crown", ("princess", "royal", "crown"), "princess"),
    ("Castle", ("princess", "castle", "fairy"), "princess"),
    ("Superhero Shield", ("superhero", "hero", "shield"), "superhero"),
    ("Stars", ("stars", "bright", "colorful"), "colorful"),
    ("Rainbow", ("rainbow", "colors", "bright"), "colorful"),
    ("Flowers", ("flowers", "garden", "pretty"), "colorful"),
)

PLATFORM_BACKDROPS = (
    ("Balloon Cluster", ("balloons", "party", "celebration")),
    ("Confetti", ("confetti", "party", "celebration")),
    ("Streamers", ("streamers", "party", "decoration")),
)


def build_platform_signs() -> List[Sign]:
    signs = []

    for letter in "ABCDEFGHIJKLMNOPQRSTUVWXYZ":
        signs.append(Sign(
            id=letter_sign_id(letter), name=f"Letter {letter}", category=CATEGORY_LETTERS,
            theme="classic", keywords=[letter.lower()], width=2, height=2,
            total_quantity=20, available_quantity=18,
            zone=ZONE_EVENT_MESSAGE, sign_type=SIGN_TYPE_LETTER, character=letter,
        ))

    for digit in "0123456789":
        signs.append(Sign(
            id=number_sign_id(digit), name=f"Number {digit}", category=CATEGORY_NUMBERS,
            theme="classic", keywords=[digit], width=2, height=2,
            total_quantity=15, available_quantity=12,
            zone=ZONE_EVENT_MESSAGE, sign_type=SIGN_TYPE_NUMBER, character=digit,
        ))

    for suffix in ("ST", "ND", "RD", "TH"):
        signs.append(Sign(
            id=ordinal_sign_id(suffix), name=f"Ordinal {suffix}", category=CATEGORY_ORDINALS,
            theme="classic", keywords=[suffix.lower()], width=1.5, height=1.5,
            total_quantity=10, available_quantity=8,
            zone=ZONE_EVENT_MESSAGE, sign_type=SIGN_TYPE_ORDINAL, character=suffix,
        ))

    for name, keywords, theme in PLATFORM_DECORATIONS:
        signs.append(Sign(
            id=decoration_sign_id(name), name=name, category=CATEGORY_DECORATIONS,
            theme=theme, keywords=list(keywords), width=2, height=2,
            total_quantity=8, available_quantity=6,
            zone=ZONE_DECORATIVE_FILL, sign_type=SIGN_TYPE_DECORATION,
        ))

    for name, keywords in PLATFORM_BACKDROPS:
        signs.append(Sign(
            id=backdrop_sign_id(name), name=name, category=CATEGORY_BACKDROP,
            theme="classic", keywords=list(keywords), width=1, height=1,
            total_quantity=15, available_quantity=12,
            zone=ZONE_BACKDROP, sign_type=SIGN_TYPE_BACKDROP,
        ))

    for position in BOOKEND_POSITIONS:
        signs.append(Sign(
            id=bookend_sign_id(position), name=f"{position.title()} Bookend", category=CATEGORY_BOOKENDS,
            theme="classic", keywords=["bookend", position], width=1.5, height=4,
            total_quantity=5, available_quantity=4,
            zone=ZONE_BOOKENDS, sign_type=SIGN_TYPE_BOOKEND,
        ))

    return signs


class SignCatalog(ABC):
    """
    Source of signs eligible for a tenant.
    """

    @abstractmethod
    def get_available_signs(self, tenant_id: str) -> List[Sign]:
        """
        All signs visible to the tenant: its own plus platform-wide signs.
        Deactivated and out-of-stock signs are included; callers filter.
        """
        pass

    @abstractmethod
    def deduct(self, sign_id: str, quantity: int) -> None:
        """
        Permanently remove quantity from a sign's available stock.
        Only the inventory ledger may call this.
        """
        pass

    def get_signs_by_ids(self, sign_ids: Iterable[str], tenant_id: str) -> List[Sign]:
        wanted = set(sign_ids)
        return [s for s in self.get_available_signs(tenant_id) if s.id in wanted]


class MemorySignCatalog(SignCatalog):
    def __init__(self, signs: Optional[Iterable[Sign]] = None):
        self._signs = {}
        self._lock = threading.RLock()
        for sign in (build_platform_signs() if signs is None else signs):
            self._signs[sign.id] = copy.deepcopy(sign)

    def get_available_signs(self, tenant_id):
        with self._lock:
            return [
                copy.deepcopy(s) for s in self._signs.values()
                if s.tenant_id is None or s.tenant_id == tenant_id
            ]

    def deduct(self, sign_id, quantity):
        with self._lock:
            sign = self._signs.get(sign_id)
            if sign is None:
                raise KeyError(f"Sign {sign_id} not found")
            sign.available_quantity = max(0, sign.available_quantity - quantity)
            logger.info(f"[Catalog] Deducted {quantity} x {sign_id} (available now {sign.available_quantity})")

    def add_sign(self, sign: Sign) -> None:
        with self._lock:
            self._signs[sign.id] = copy.deepcopy(sign)


class PostgresSignCatalog(SignCatalog):
    """
    Catalog backed by the `signs` table. Uses the request-scoped PostgresDB
    unless a connection factory is supplied.
    """

    def __init__(self, db_factory=None):
        if db_factory is None:
            from database import get_db
            db_factory = get_db
        self._db_factory = db_factory

    def get_available_signs(self, tenant_id):
        db = self._db_factory()
        rows = db.execute(
            """
            SELECT * FROM signs
            WHERE tenant_id IS NULL OR tenant_id = %s
            ORDER BY category, id
            """,
            (tenant_id,)
        ).fetchall()
        return [Sign.from_row(r) for r in rows]

    def get_signs_by_ids(self, sign_ids, tenant_id):
        ids = list(dict.fromkeys(sign_ids))
        if not ids:
            return []
        db = self._db_factory()
        rows = db.execute(
            """
            SELECT * FROM signs
            WHERE id = ANY(%s) AND (tenant_id IS NULL OR tenant_id = %s)
            """,
            (ids, tenant_id)
        ).fetchall()
        return [Sign.from_row(r) for r in rows]

    def deduct(self, sign_id, quantity):
        # Caller owns the transaction (the ledger commits with the hold update).
        db = self._db_factory()
        row = db.execute(
            """
            UPDATE signs
            SET available_quantity = GREATEST(available_quantity - %s, 0),
                updated_at = NOW()
            WHERE id = %s
            RETURNING available_quantity
            """,
            (quantity, sign_id)
        ).fetchone()
        if not row:
            raise KeyError(f"Sign {sign_id} not found")
        logger.info(f"[Catalog] Deducted {quantity} x {sign_id} (available now {row['available_quantity']})")

    def upsert_signs(self, signs: Iterable[Sign]) -> int:
        """Insert or refresh catalog rows. Stock counts of existing rows are left alone."""
        db = self._db_factory()
        count = 0
        for sign in signs:
            db.execute(
                """
                INSERT INTO signs (
                    id, tenant_id, name, category, theme, keywords, width, height,
                    total_quantity, available_quantity, available, zone, sign_type, character
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    name = EXCLUDED.name,
                    category = EXCLUDED.category,
                    theme = EXCLUDED.theme,
                    keywords = EXCLUDED.keywords,
                    width = EXCLUDED.width,
                    height = EXCLUDED.height,
                    zone = EXCLUDED.zone,
                    sign_type = EXCLUDED.sign_type,
                    character = EXCLUDED.character,
                    updated_at = NOW()
                """,
                (
                    sign.id, sign.tenant_id, sign.name, sign.category, sign.theme,
                    list(sign.keywords), sign.width, sign.height,
                    sign.total_quantity, sign.available_quantity, sign.available,
                    sign.zone, sign.sign_type, sign.character,
                )
            )
            count += 1
        db.commit()
        return count
