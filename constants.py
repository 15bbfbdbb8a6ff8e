# Hold Status Constants
HOLD_STATUS_ACTIVE = "active"
HOLD_STATUS_EXPIRED = "expired"
HOLD_STATUS_CONVERTED = "converted"

HOLD_STATUSES = frozenset({
    HOLD_STATUS_ACTIVE,
    HOLD_STATUS_EXPIRED,
    HOLD_STATUS_CONVERTED,
})

HOLD_TYPE_SOFT = "soft"
HOLD_TYPE_HARD = "hard"
HOLD_TYPES = frozenset({HOLD_TYPE_SOFT, HOLD_TYPE_HARD})

# Soft holds expire one hour after creation
HOLD_DURATION_HOURS = 1

# Inventory Ledger / Selection Engine fill math
YARD_WIDTH_FEET = 30
MINIMUM_FILL_PERCENTAGE = 0.75
MAX_ALTERNATIVES = 5

# Selection Engine width limits
DEFAULT_MAX_SIGNS = 8
DEFAULT_PREFERRED_WIDTH = 30
WIDTH_OVERFLOW_BUFFER = 5
MESSAGE_RELEVANCE_SCORE = 10

# Layout Calculator fill math
LAYOUT_MINIMUM_FILL = 0.6
LAYOUT_TARGET_FILL = 0.9
MAX_HOBBY_DECORATIONS_PER_SIDE = 2
MAX_DECORATIONS_PER_SIDE = 20
DECORATIONS_PER_BACKDROP = 3

# Physical widths (feet)
LETTER_WIDTH = 2
NUMBER_WIDTH = 2
ORDINAL_WIDTH = 1.5
DECORATION_WIDTH = 2
BACKDROP_WIDTH = 1
BOOKEND_WIDTH = 1.5

# Display Zones
ZONE_EVENT_MESSAGE = "zone1"
ZONE_RECIPIENT_NAME = "zone2"
ZONE_DECORATIVE_FILL = "zone3"
ZONE_BACKDROP = "zone4"
ZONE_BOOKENDS = "zone5"

DISPLAY_ZONES = (
    ZONE_EVENT_MESSAGE,
    ZONE_RECIPIENT_NAME,
    ZONE_DECORATIVE_FILL,
    ZONE_BACKDROP,
    ZONE_BOOKENDS,
)

# Zone Sign Types
SIGN_TYPE_LETTER = "letter"
SIGN_TYPE_NUMBER = "number"
SIGN_TYPE_ORDINAL = "ordinal"
SIGN_TYPE_DECORATION = "decoration"
SIGN_TYPE_BACKDROP = "backdrop"
SIGN_TYPE_BOOKEND = "bookend"

SIGN_TYPES = frozenset({
    SIGN_TYPE_LETTER,
    SIGN_TYPE_NUMBER,
    SIGN_TYPE_ORDINAL,
    SIGN_TYPE_DECORATION,
    SIGN_TYPE_BACKDROP,
    SIGN_TYPE_BOOKEND,
})

# Catalog categories
CATEGORY_LETTERS = "letters"
CATEGORY_NUMBERS = "numbers"
CATEGORY_ORDINALS = "ordinals"
CATEGORY_DECORATIONS = "decorations"
CATEGORY_BACKDROP = "backdrop"
CATEGORY_BOOKENDS = "bookends"

# Theme decoration word lists (zone 3 fallback fill)
DEFAULT_THEME = "classic"
THEME_DECORATIONS = {
    "colorful": ("Stars", "Rainbow", "Flowers"),
    "sports": ("Soccer Ball", "Basketball", "Baseball"),
    "princess": ("Crown", "Castle", "Wand"),
    "superhero": ("Shield", "Cape", "Mask"),
    "classic": ("Balloon", "Gift", "Bow"),
}

DEFAULT_BACKDROP = "Balloon Cluster"
BOOKEND_POSITIONS = ("left", "right")

# Explicit event numbers are inserted after these message prefixes.
# Order matters: first match wins.
NUMBER_INSERTION_PATTERNS = (
    ("HAPPYBIRTHDAY", "HAPPY"),
    ("HAPPYANNIVERSARY", "HAPPY"),
    ("CONGRATULATIONS", "CONGRATULATIONS"),
    ("GRADUATION", ""),
)

SUGGESTED_MESSAGES = (
    "Happy Birthday",
    "Congratulations",
    "Welcome Home",
    "Get Well Soon",
    "Happy Anniversary",
    "Graduation Day",
    "Welcome Baby",
    "Good Luck",
)
