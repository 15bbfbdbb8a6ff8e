"""
Number helpers shared by the layout calculator and the selection engine.
"""
import re
from typing import List

WRITTEN_NUMBERS = {
    'one': 1, 'first': 1,
    'two': 2, 'second': 2,
    'three': 3, 'third': 3,
    'four': 4, 'fourth': 4,
    'five': 5, 'fifth': 5,
    'six': 6, 'sixth': 6,
    'seven': 7, 'seventh': 7,
    'eight': 8, 'eighth': 8,
    'nine': 9, 'ninth': 9,
    'ten': 10, 'tenth': 10,
    'eleven': 11, 'eleventh': 11,
    'twelve': 12, 'twelfth': 12,
    'thirteen': 13, 'thirteenth': 13,
    'fourteen': 14, 'fourteenth': 14,
    'fifteen': 15, 'fifteenth': 15,
    'sixteen': 16, 'sixteenth': 16,
    'seventeen': 17, 'seventeenth': 17,
    'eighteen': 18, 'eighteenth': 18,
    'nineteen': 19, 'nineteenth': 19,
    'twenty': 20, 'twentieth': 20,
    'twenty-one': 21, 'twenty-first': 21,
    'thirty': 30, 'thirtieth': 30,
    'forty': 40, 'fortieth': 40,
    'fifty': 50, 'fiftieth': 50,
    'sixty': 60, 'sixtieth': 60,
    'seventy': 70, 'seventieth': 70,
    'eighty': 80, 'eightieth': 80,
    'ninety': 90, 'ninetieth': 90,
}

MAX_EXTRACTED_NUMBER = 100

_NON_DIGITS = re.compile(r'\D')


def get_ordinal_suffix(number: int) -> str:
    """
    Ordinal suffix for a positive integer: 1 -> ST, 2 -> ND, 3 -> RD, 11 -> TH.
    """
    remainder = number % 100
    if 11 <= remainder <= 13:
        return "TH"
    return {1: "ST", 2: "ND", 3: "RD"}.get(number % 10, "TH")


def extract_numbers(message: str) -> List[int]:
    """
    Pull ages/anniversaries out of free text.

    Each whitespace-delimited word contributes its digits (e.g. "40th" -> 40)
    when they fall in 1..100, and written words ("forty", "fortieth") map
    through WRITTEN_NUMBERS. Duplicates are dropped, first occurrence wins.
    """
    words = (message or "").lower().split()
    numbers = []

    for word in words:
        digits = _NON_DIGITS.sub('', word)
        if digits:
            value = int(digits)
            if 0 < value <= MAX_EXTRACTED_NUMBER:
                numbers.append(value)

    for word in words:
        if word in WRITTEN_NUMBERS:
            numbers.append(WRITTEN_NUMBERS[word])

    return list(dict.fromkeys(numbers))
