"""
Fixed field tables for the supported keyword tools.

Header names are stored lowercase; lookups against incoming rows are
case-insensitive.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple


@dataclass(frozen=True)
class HeaderSignature:
    """Header set that identifies a tool export."""

    source: str  # Source tag value
    required: FrozenSet[str]
    any_of: FrozenSet[str] = frozenset()

    def matches(self, headers: FrozenSet[str]) -> bool:
        if not self.required.issubset(headers):
            return False
        if self.any_of and not (self.any_of & headers):
            return False
        return True


# Order matters: the first matching signature wins.
HEADER_SIGNATURES: List[HeaderSignature] = [
    HeaderSignature(
        source="rank_tool",
        required=frozenset({"kd", "volume", "cmp"})
    ),
    HeaderSignature(
        source="backlink_tool",
        required=frozenset({"search volume", "kd"})
    ),
    HeaderSignature(
        source="ad_planner",
        required=frozenset({"avg monthly searches"}),
        any_of=frozenset({"top of page bid (low range)", "competition"})
    ),
    HeaderSignature(
        source="ai_generated",
        required=frozenset({"searchvolume", "difficulty"})
    ),
]

# Merge precedence (higher = better)
SOURCE_QUALITY: Dict[str, int] = {
    "rank_tool": 4,
    "backlink_tool": 3,
    "ad_planner": 2,
    "ai_generated": 1,
    "manual": 0,
}

KEYWORD_FIELD = "keyword"

# Per-tool column names
RANK_TOOL_FIELDS: Dict[str, str] = {
    "volume": "volume",
    "difficulty": "kd",
    "competition": "cmp",
    "cpc": "cpc",
}

BACKLINK_TOOL_FIELDS: Dict[str, str] = {
    "volume": "search volume",
    "difficulty": "kd",
    "competition": "competition",
    "cpc": "cpc",
}

AD_PLANNER_FIELDS: Dict[str, str] = {
    "volume": "avg monthly searches",
    "competition": "competition",
    "bid_low": "top of page bid (low range)",
    "bid_high": "top of page bid (high range)",
}

AI_GENERATED_FIELDS: Dict[str, str] = {
    "volume": "searchvolume",
    "difficulty": "difficulty",
}

# Aliases tried in order for rows that match no tool
MANUAL_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "volume": ("volume", "searchvolume", "search volume", "avg monthly searches"),
    "difficulty": ("difficulty", "kd", "keyword difficulty"),
    "competition": ("competition", "cmp"),
    "cpc": ("cpc",),
}

# Ad planner competition tiers
COMPETITION_ANCHORS: Dict[str, float] = {
    "low": 0.33,
    "medium": 0.66,
    "high": 1.0,
}

VOLUME_MULTIPLIERS: Dict[str, int] = {
    "K": 1_000,
    "M": 1_000_000,
}

# Targets offered when columns are mapped by hand
MAPPABLE_FIELDS: Tuple[str, ...] = (
    "keyword", "volume", "difficulty", "competition", "cpc"
)
IGNORE_COLUMN = "ignore"

# Header spellings pre-selected for each target
COLUMN_MAPPING_HINTS: Dict[str, Tuple[str, ...]] = {
    "keyword": (
        "keyword", "keywords", "query", "queries", "search term",
        "search_term", "term", "keyphrase", "key phrase", "kw", "top queries"
    ),
    "volume": MANUAL_FIELD_ALIASES["volume"] + (
        "search_volume", "monthly searches", "msv", "sv"
    ),
    "difficulty": MANUAL_FIELD_ALIASES["difficulty"] + (
        "keyword_difficulty", "seo difficulty"
    ),
    "competition": MANUAL_FIELD_ALIASES["competition"] + ("comp",),
    "cpc": MANUAL_FIELD_ALIASES["cpc"] + ("cost per click",),
}
