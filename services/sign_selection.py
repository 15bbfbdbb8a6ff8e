"""
Sign Selection Engine.

Scores catalog signs against free-text criteria and greedily picks a
width-bounded combination.
"""
import logging
from typing import List, Optional, Tuple

from constants import (
    CATEGORY_DECORATIONS, CATEGORY_NUMBERS, MAX_ALTERNATIVES, MESSAGE_RELEVANCE_SCORE,
    MINIMUM_FILL_PERCENTAGE, SUGGESTED_MESSAGES, WIDTH_OVERFLOW_BUFFER,
)
from models import Sign, SignAllocation, SignSelectionCriteria, SignSelectionResult
from services.catalog import SignCatalog
from utils.numbers import extract_numbers

logger = logging.getLogger(__name__)

ScoredSign = Tuple[int, Sign]


def _bidirectional_match(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def _decoration_match_tier(word: str, sign: Sign) -> int:
    if sign.name.lower() == word.lower():
        return 0
    if any(_bidirectional_match(word, k) for k in sign.keywords):
        return 1
    if any(_bidirectional_match(w, sign.name) for w in word.split()):
        return 1
    return 2


def score_sign(sign: Sign, criteria: SignSelectionCriteria) -> int:
    score = 0
    message = criteria.message.lower()
    words = message.split()

    # Keyword vs. message words (highest priority)
    matching = [k for k in sign.keywords if any(_bidirectional_match(w, k) for w in words)]
    score += len(matching) * 10

    if any(k.lower() in message for k in sign.keywords):
        score += 20

    if criteria.theme and sign.theme == criteria.theme:
        score += 15

    if criteria.event_type and sign.category == criteria.event_type.lower():
        score += 12

    hobby_matches = [h for h in criteria.hobbies if any(_bidirectional_match(h, k) for k in sign.keywords)]
    score += len(hobby_matches) * 8

    if sign.in_stock:
        score += 5

    # Platform signs have more reliable inventory
    if sign.is_platform_sign:
        score += 2

    return score


def score_signs(signs: List[Sign], criteria: SignSelectionCriteria) -> List[ScoredSign]:
    scored = [(score_sign(s, criteria), s) for s in signs]
    # sorted() is stable, so equal scores keep catalog order
    return sorted(scored, key=lambda pair: pair[0], reverse=True)


class SignSelectionEngine:

    def __init__(self, catalog: SignCatalog):
        self.catalog = catalog

    def select_signs_for_message(self, criteria: SignSelectionCriteria) -> SignSelectionResult:
        try:
            criteria.validate()
            logger.info(
                f"[Selection] Selecting signs for '{criteria.message}'",
                extra={"tenant_id": criteria.tenant_id},
            )
            signs = self.catalog.get_available_signs(criteria.tenant_id)
            scored = score_signs(signs, criteria)
            selected = self._select_combination(scored, criteria)

            total_width = sum(s.width for s in selected)
            fill_percentage = total_width / criteria.preferred_width
            success = len(selected) > 0 and fill_percentage >= MINIMUM_FILL_PERCENTAGE

            return SignSelectionResult(
                success=success,
                selected_signs=selected,
                sign_allocations=[SignAllocation(sign_id=s.id) for s in selected],
                total_width=total_width,
                fill_percentage=fill_percentage,
                alternatives=[] if success else self._alternatives(signs),
                reasons=[] if success else self._failure_reasons(selected, criteria),
            )
        except Exception:
            logger.exception("[Selection] Error selecting signs for message")
            return SignSelectionResult(success=False, reasons=["Error occurred during sign selection"])

    def _select_combination(self, scored: List[ScoredSign], criteria: SignSelectionCriteria) -> List[Sign]:
        max_signs = criteria.max_signs
        target_width = criteria.preferred_width
        hard_limit = target_width + WIDTH_OVERFLOW_BUFFER
        selected = []
        selected_ids = set()
        width = 0

        def take(sign):
            nonlocal width
            selected.append(sign)
            selected_ids.add(sign.id)
            width += sign.width

        # Pass 1: message-relevant signs
        for score, sign in scored:
            if score < MESSAGE_RELEVANCE_SCORE:
                continue
            if len(selected) >= max_signs or width >= target_width:
                break
            if sign.in_stock and width + sign.width <= hard_limit:
                take(sign)

        # Pass 2: numbers mentioned in the message (ages, anniversaries)
        numbers = [str(n) for n in extract_numbers(criteria.message)]
        if numbers:
            for score, sign in scored:
                if sign.category != CATEGORY_NUMBERS or not any(n in sign.keywords for n in numbers):
                    continue
                if len(selected) >= max_signs or width >= target_width:
                    break
                if sign.in_stock and sign.id not in selected_ids and width + sign.width <= hard_limit:
                    take(sign)

        # Pass 3: complementary fill, allowing the overflow buffer
        for score, sign in scored:
            if len(selected) >= max_signs:
                break
            if sign.id in selected_ids or not sign.in_stock or score <= 0:
                continue
            if width + sign.width <= hard_limit:
                take(sign)

        logger.debug(f"[Selection] Selected {[s.name for s in selected]}")
        return selected

    def _alternatives(self, signs: List[Sign]) -> List[Sign]:
        return [s for s in signs if s.in_stock][:MAX_ALTERNATIVES]

    def _failure_reasons(self, selected: List[Sign], criteria: SignSelectionCriteria) -> List[str]:
        reasons = []
        if not selected:
            reasons.append("No matching signs found for your message")

        total_width = sum(s.width for s in selected)
        if total_width < criteria.preferred_width * MINIMUM_FILL_PERCENTAGE:
            reasons.append("Not enough signs to fill the minimum yard space")

        message = criteria.message.lower()
        if not any(k.lower() in message for s in selected for k in s.keywords):
            reasons.append("No signs directly match your message - consider a shorter or different message")

        return reasons

    def get_suggested_messages(self, tenant_id: str) -> List[str]:
        """Canned messages that at least one in-stock sign keyword can support."""
        try:
            keywords = {k for s in self.catalog.get_available_signs(tenant_id) if s.in_stock for k in s.keywords}
        except Exception:
            logger.exception("[Selection] Error loading catalog for suggestions")
            return []
        return [
            message for message in SUGGESTED_MESSAGES
            if any(_bidirectional_match(word, k) for word in message.lower().split() for k in keywords)
        ]

    def rank_decorations(self, word: str, tenant_id: str, theme: Optional[str] = None,
                         signs: Optional[List[Sign]] = None) -> List[Sign]:
        """
        In-stock decoration signs ordered by fit for a hobby or theme word.

        Exact name matches come first, then decorations whose keywords or
        name match the word, then every other decoration ranked by score for
        the theme.
        """
        if signs is None:
            signs = self.catalog.get_available_signs(tenant_id)
        decorations = [s for s in signs if s.category == CATEGORY_DECORATIONS and s.in_stock]
        criteria = SignSelectionCriteria(message=word, tenant_id=tenant_id, theme=theme, hobbies=[word])
        ranked = [sign for _, sign in score_signs(decorations, criteria)]
        return sorted(ranked, key=lambda sign: _decoration_match_tier(word, sign))

    def find_decoration(self, word: str, tenant_id: str, theme: Optional[str] = None,
                        signs: Optional[List[Sign]] = None) -> Optional[Sign]:
        """Closest matching decoration for the word, or None when none match it."""
        ranked = self.rank_decorations(word, tenant_id, theme=theme, signs=signs)
        if ranked and _decoration_match_tier(word, ranked[0]) < 2:
            return ranked[0]
        return None
