"""
Layout Calculator.

Turns a booking message, a recipient name, hobbies and a theme into the
five-zone yard display:

    zone1  event message, digits and ordinal suffix
    zone2  recipient name
    zone3  decorations split evenly to the left and right of zone2
    zone4  backdrop pieces, one per three decorations
    zone5  left and right bookends

Every ZoneSign carries the catalog id of the physical sign it uses, so a
layout can be turned straight into hold allocations.
"""
import logging
import math
import random
import re
from collections import Counter
from typing import List, Optional, Tuple

from constants import (
    BACKDROP_WIDTH, BOOKEND_POSITIONS, BOOKEND_WIDTH, DECORATION_WIDTH,
    DECORATIONS_PER_BACKDROP, DEFAULT_BACKDROP, DEFAULT_THEME, LAYOUT_MINIMUM_FILL,
    LAYOUT_TARGET_FILL, LETTER_WIDTH, MAX_DECORATIONS_PER_SIDE,
    MAX_HOBBY_DECORATIONS_PER_SIDE, NUMBER_INSERTION_PATTERNS, NUMBER_WIDTH,
    ORDINAL_WIDTH, SIGN_TYPE_BACKDROP, SIGN_TYPE_BOOKEND, SIGN_TYPE_DECORATION,
    SIGN_TYPE_LETTER, SIGN_TYPE_NUMBER, SIGN_TYPE_ORDINAL, THEME_DECORATIONS,
    ZONE_BACKDROP, ZONE_BOOKENDS, ZONE_DECORATIVE_FILL, ZONE_EVENT_MESSAGE,
    ZONE_RECIPIENT_NAME,
)
from models import DisplayZone, LayoutCalculation, LayoutInput, Sign, ZoneSign
from services.catalog import (
    backdrop_sign_id, bookend_sign_id, decoration_sign_id, letter_sign_id,
    number_sign_id, ordinal_sign_id,
)
from utils.numbers import get_ordinal_suffix

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r'(\d+)(ST|ND|RD|TH)?')

# (kind, value) where kind is letter, number or ordinal
Element = Tuple[str, str]


def clean_text(text: str) -> str:
    return re.sub(r'\s+', '', text or "").upper()


def _chars(text: str) -> List[Element]:
    return [(SIGN_TYPE_NUMBER if c.isdigit() else SIGN_TYPE_LETTER, c) for c in text]


def _number(value: str, ordinal: str) -> List[Element]:
    return [(SIGN_TYPE_NUMBER, d) for d in value] + [(SIGN_TYPE_ORDINAL, ordinal)]


def message_elements(message: str, event_number: Optional[int] = None) -> List[Element]:
    """
    Break a display message into letter, number and ordinal elements.

    A number already in the message is used as written (its suffix, when
    absent, is computed). An explicit event_number is inserted after the
    first matching prefix in NUMBER_INSERTION_PATTERNS, or appended.
    """
    text = clean_text(message)

    if event_number is not None:
        number = _number(str(event_number), get_ordinal_suffix(event_number))
        for pattern, prefix in NUMBER_INSERTION_PATTERNS:
            if text.startswith(pattern):
                cut = len(prefix)
                return _chars(text[:cut]) + number + _chars(text[cut:])
        return _chars(text) + number

    match = NUMBER_PATTERN.search(text)
    if match:
        digits, suffix = match.group(1), match.group(2)
        ordinal = suffix or get_ordinal_suffix(int(digits))
        return _chars(text[:match.start()]) + _number(digits, ordinal) + _chars(text[match.end():])

    return _chars(text)


class LayoutCalculator:
    """
    Computes LayoutCalculation records.

    `selector` (a SignSelectionEngine) resolves hobby and theme words to
    in-stock catalog decorations. Without one, decoration ids fall back to
    `decoration-<slug>` of the word. `rng` picks theme decorations and can
    be seeded for reproducible layouts.
    """

    def __init__(self, selector=None, rng: Optional[random.Random] = None):
        self.selector = selector
        self.rng = rng or random.Random()

    def calculate_layout(self, layout_input: LayoutInput) -> LayoutCalculation:
        layout_input.validate()

        zone1 = self._zone1(layout_input.message, layout_input.event_number)
        zone2 = self._zone2(layout_input.recipient_name)

        side_space = max(0, zone1.total_width - zone2.total_width) / 2
        zone3 = self._zone3(side_space, layout_input)
        zone4 = self._zone4(len(zone3.signs))
        zone5 = self._zone5()

        total_width = max(zone1.total_width, zone2.total_width + zone3.total_width)
        grid_columns = max(len(zone1.signs), len(zone2.signs) + len(zone3.signs))
        meets_minimum_fill = (zone3.fill_percentage or 0) >= LAYOUT_MINIMUM_FILL

        logger.info(
            f"[Layout] {len(zone1.signs)} message signs, {len(zone3.signs)} decorations, "
            f"fill {zone3.fill_percentage:.0%}",
            extra={"tenant_id": layout_input.tenant_id},
        )

        return LayoutCalculation(
            zone1=zone1,
            zone2=zone2,
            zone3=zone3,
            zone4=zone4,
            zone5=zone5,
            total_width=total_width,
            grid_columns=grid_columns,
            meets_minimum_fill=meets_minimum_fill,
        )

    # --- Zones ---

    def _zone1(self, message: str, event_number: Optional[int]) -> DisplayZone:
        zone = DisplayZone(zone=ZONE_EVENT_MESSAGE)
        for position, (kind, value) in enumerate(message_elements(message, event_number)):
            if kind == SIGN_TYPE_NUMBER:
                zone.add(ZoneSign(
                    sign_id=number_sign_id(value), zone=zone.zone, sign_type=kind,
                    position=position, width=NUMBER_WIDTH, character=value,
                ))
            elif kind == SIGN_TYPE_ORDINAL:
                zone.add(ZoneSign(
                    sign_id=ordinal_sign_id(value), zone=zone.zone, sign_type=kind,
                    position=position, width=ORDINAL_WIDTH, character=value, is_ordinal=True,
                ))
            else:
                zone.add(self._letter(zone.zone, value, position))
        return zone

    def _zone2(self, recipient_name: str) -> DisplayZone:
        zone = DisplayZone(zone=ZONE_RECIPIENT_NAME)
        for position, char in enumerate(clean_text(recipient_name)):
            zone.add(self._letter(zone.zone, char, position))
        return zone

    def _zone3(self, side_space: float, layout_input: LayoutInput) -> DisplayZone:
        zone = DisplayZone(zone=ZONE_DECORATIVE_FILL)
        min_fill = side_space * LAYOUT_MINIMUM_FILL
        target_fill = side_space * LAYOUT_TARGET_FILL
        theme = (layout_input.theme or DEFAULT_THEME).lower()
        words = THEME_DECORATIONS.get(theme, THEME_DECORATIONS[DEFAULT_THEME])
        resolver = _DecorationResolver(self.selector, layout_input)

        position = 0
        for side in BOOKEND_POSITIONS:
            side_width = 0
            placed = 0

            for hobby in layout_input.hobbies[:MAX_HOBBY_DECORATIONS_PER_SIDE]:
                if side_width >= target_fill:
                    break
                zone.add(self._decoration(resolver.resolve(hobby), hobby, side, position))
                side_width += DECORATION_WIDTH
                position += 1
                placed += 1

            while side_width < min_fill and placed < MAX_DECORATIONS_PER_SIDE:
                word = self.rng.choice(words)
                zone.add(self._decoration(resolver.resolve(word), word, side, position))
                side_width += DECORATION_WIDTH
                position += 1
                placed += 1

        zone.fill_percentage = zone.total_width / (side_space * 2) if side_space > 0 else 0.0
        return zone

    def _zone4(self, decoration_count: int) -> DisplayZone:
        zone = DisplayZone(zone=ZONE_BACKDROP)
        for position in range(math.ceil(decoration_count / DECORATIONS_PER_BACKDROP)):
            zone.add(ZoneSign(
                sign_id=backdrop_sign_id(DEFAULT_BACKDROP), zone=zone.zone, sign_type=SIGN_TYPE_BACKDROP,
                position=position, width=BACKDROP_WIDTH, metadata={"label": DEFAULT_BACKDROP},
            ))
        return zone

    def _zone5(self) -> DisplayZone:
        zone = DisplayZone(zone=ZONE_BOOKENDS)
        for position, side in enumerate(BOOKEND_POSITIONS):
            zone.add(ZoneSign(
                sign_id=bookend_sign_id(side), zone=zone.zone, sign_type=SIGN_TYPE_BOOKEND,
                position=position, width=BOOKEND_WIDTH, metadata={"side": side},
            ))
        return zone

    # --- Sign factories ---

    @staticmethod
    def _letter(zone: str, char: str, position: int) -> ZoneSign:
        return ZoneSign(
            sign_id=letter_sign_id(char), zone=zone, sign_type=SIGN_TYPE_LETTER,
            position=position, width=LETTER_WIDTH, character=char,
        )

    @staticmethod
    def _decoration(sign_id: str, label: str, side: str, position: int) -> ZoneSign:
        return ZoneSign(
            sign_id=sign_id, zone=ZONE_DECORATIVE_FILL, sign_type=SIGN_TYPE_DECORATION,
            position=position, width=DECORATION_WIDTH, metadata={"side": side, "label": label},
        )


class _DecorationResolver:
    """
    Maps decoration words to catalog ids for one layout, preferring signs
    this layout has not yet used up.
    """

    def __init__(self, selector, layout_input: LayoutInput):
        self.selector = selector
        self.tenant_id = layout_input.tenant_id
        self.theme = (layout_input.theme or "").lower() or None
        self.used = Counter()
        self._signs: Optional[List[Sign]] = None

    def _catalog_signs(self) -> List[Sign]:
        if self._signs is None:
            self._signs = self.selector.catalog.get_available_signs(self.tenant_id)
        return self._signs

    def resolve(self, word: str) -> str:
        if self.selector is None:
            return decoration_sign_id(word)

        ranked = self.selector.rank_decorations(
            word, self.tenant_id, theme=self.theme, signs=self._catalog_signs(),
        )
        for sign in ranked:
            if self.used[sign.id] < sign.available_quantity:
                self.used[sign.id] += 1
                return sign.id

        logger.debug(f"[Layout] No in-stock decoration left for '{word}'")
        return decoration_sign_id(word)
