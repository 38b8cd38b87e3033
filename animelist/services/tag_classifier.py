"""
Tag classifier - canonical status names and tag color assignment.

Status, type and genre tags get a fixed color key so the UI stays readable
and reproducible. Every studio shares one key. Free-form user tags draw one
key at random from a separate custom palette when they are created; the key
is stored on the tag and never recomputed.

All colors are designed for white text.
"""

import random

from animelist.models.tag import TagCategory

DEFAULT_COLOR_KEY = "DEFAULT"
STUDIO_COLOR_KEY = "Studio"

COLOR_MAP: dict[str, str] = {
    # Default fallback
    "DEFAULT": "#4338ca",       # Indigo 700

    # Status tags
    "Watching": "#1d4ed8",      # Blue 700
    "Completed": "#15803d",     # Green 700
    "OnHold": "#b45309",        # Amber 700
    "Dropped": "#b91c1c",       # Red 700
    "PlanToWatch": "#334155",   # Slate 700

    # Type tags
    "TV": "#0369a1",            # Sky 700
    "Movie": "#6d28d9",         # Violet 700
    "OVA": "#be185d",           # Pink 700
    "ONA": "#0f766e",           # Teal 700
    "Special": "#c2410c",       # Orange 700
    "Music": "#047857",         # Emerald 700

    # Genre tags
    "Action": "#b91c1c",        # Red 700
    "Adventure": "#15803d",     # Green 700
    "AwardWinning": "#a16207",  # Yellow 700
    "Comedy": "#c2410c",        # Orange 700
    "Drama": "#6d28d9",         # Violet 700
    "Ecchi": "#be185d",         # Pink 700
    "Erotica": "#9f1239",       # Rose 800
    "Fantasy": "#7e22ce",       # Purple 700
    "GirlsLove": "#db2777",     # Pink 600
    "Gourmet": "#4d7c0f",       # Lime 700
    "Horror": "#1f2937",        # Gray 800
    "Mystery": "#4338ca",       # Indigo 700
    "Romance": "#e11d48",       # Rose 600
    "SciFi": "#0369a1",         # Sky 700
    "SliceOfLife": "#047857",   # Emerald 700
    "Sports": "#1d4ed8",        # Blue 700
    "Supernatural": "#5b21b6",  # Violet 800
    "Suspense": "#334155",      # Slate 700

    # Studio (all studios use same color)
    "Studio": "#7e22ce",        # Purple 700

    # Custom colors (randomly assigned to user-created tags)
    "Custom1": "#b91c1c",       # Red 700
    "Custom2": "#c2410c",       # Orange 700
    "Custom3": "#a16207",       # Yellow 700
    "Custom4": "#15803d",       # Green 700
    "Custom5": "#0f766e",       # Teal 700
    "Custom6": "#0369a1",       # Sky 700
    "Custom7": "#1d4ed8",       # Blue 700
    "Custom8": "#6d28d9",       # Violet 700
    "Custom9": "#7e22ce",       # Purple 700
    "Custom10": "#be185d",      # Pink 700
}

CUSTOM_COLOR_KEYS: tuple[str, ...] = tuple(f"Custom{n}" for n in range(1, 11))

# ===================
# Status vocabulary
# ===================

WATCHING = "Watching"
COMPLETED = "Completed"
ON_HOLD = "On-Hold"
DROPPED = "Dropped"
PLAN_TO_WATCH = "Plan to Watch"

CANONICAL_STATUSES: tuple[str, ...] = (WATCHING, COMPLETED, ON_HOLD, DROPPED, PLAN_TO_WATCH)
DEFAULT_STATUS = PLAN_TO_WATCH

STATUS_SYNONYMS: dict[str, str] = {
    "Watching": WATCHING,
    "Completed": COMPLETED,
    "On-Hold": ON_HOLD,
    "Dropped": DROPPED,
    "Plan to Watch": PLAN_TO_WATCH,
    # Variants seen in older exports
    "Currently Watching": WATCHING,
    "PlanToWatch": PLAN_TO_WATCH,
    "OnHold": ON_HOLD,
}

# ===================
# Name -> color key tables
# ===================

STATUS_COLOR_KEYS: dict[str, str] = {
    WATCHING: "Watching",
    COMPLETED: "Completed",
    ON_HOLD: "OnHold",
    DROPPED: "Dropped",
    PLAN_TO_WATCH: "PlanToWatch",
}

TYPE_COLOR_KEYS: dict[str, str] = {
    "TV": "TV",
    "Movie": "Movie",
    "OVA": "OVA",
    "ONA": "ONA",
    "Special": "Special",
    "Music": "Music",
}

GENRE_COLOR_KEYS: dict[str, str] = {
    "Action": "Action",
    "Adventure": "Adventure",
    "Award Winning": "AwardWinning",
    "Comedy": "Comedy",
    "Drama": "Drama",
    "Ecchi": "Ecchi",
    "Erotica": "Erotica",
    "Fantasy": "Fantasy",
    "Girls Love": "GirlsLove",
    "Gourmet": "Gourmet",
    "Horror": "Horror",
    "Mystery": "Mystery",
    "Romance": "Romance",
    "Sci-Fi": "SciFi",
    "Slice of Life": "SliceOfLife",
    "Sports": "Sports",
    "Supernatural": "Supernatural",
    "Suspense": "Suspense",
}

_CATEGORY_TABLES: dict[TagCategory, dict[str, str]] = {
    TagCategory.STATUS: STATUS_COLOR_KEYS,
    TagCategory.TYPE: TYPE_COLOR_KEYS,
    TagCategory.GENRE: GENRE_COLOR_KEYS,
}

# Names an import or enrichment links by category, whether or not the tag exists yet
RESERVED_NAME_CATEGORIES: dict[str, TagCategory] = {
    **{name: TagCategory.STATUS for name in (*CANONICAL_STATUSES, *STATUS_SYNONYMS)},
    **{name: TagCategory.TYPE for name in TYPE_COLOR_KEYS},
    **{name: TagCategory.GENRE for name in GENRE_COLOR_KEYS},
}


def resolve_color(color_key: str | None) -> str:
    """Hex color for a stored color key (unknown keys use the default)."""
    return COLOR_MAP.get(color_key or DEFAULT_COLOR_KEY, COLOR_MAP[DEFAULT_COLOR_KEY])


def is_valid_color_key(color_key: str) -> bool:
    return color_key in COLOR_MAP


def reserved_category(name: str) -> TagCategory | None:
    """Category that manages tags called `name`, None for a free name."""
    return RESERVED_NAME_CATEGORIES.get(name)


class TagClassifier:
    """
    Maps raw classification strings to canonical names and color keys.

    Args:
        rng: Random source for custom tag colors. Pass a seeded
            random.Random for reproducible colors.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def classify(self, status_label: str | None) -> str:
        """
        Canonical status for an export status label.

        Unrecognized or missing labels fall back to "Plan to Watch".
        """
        if not status_label:
            return DEFAULT_STATUS
        return STATUS_SYNONYMS.get(status_label.strip(), DEFAULT_STATUS)

    def color_for(self, category: TagCategory, label: str) -> str:
        """
        Color key for a tag about to be created.

        Deterministic for status/type/studio/genre; a random custom key for
        free-form tags.
        """
        if category == TagCategory.CUSTOM:
            return self.random_custom_color()
        if category == TagCategory.STUDIO:
            return STUDIO_COLOR_KEY
        table = _CATEGORY_TABLES[category]
        return table.get(label, DEFAULT_COLOR_KEY)

    def random_custom_color(self) -> str:
        return self._rng.choice(CUSTOM_COLOR_KEYS)
