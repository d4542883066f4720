"""
Reference-table rules.

Process-wide constants: dataset types, required-column manifests, header
synonyms, unit tokens and the built-in fallback tables. Nothing here is
mutated at runtime; core functions take these as defaulted parameters so
tests can swap in alternates.
"""

from __future__ import annotations

import re
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

TARGET_ENCODING = "utf-8"
NORMALIZED_DELIMITER = ","
QUOTE_CHAR = '"'


class DatasetType(str, Enum):
    ZONING = "zoning"
    PARKING = "parking"
    ADA = "ada"
    HEIGHT_LIMITS = "height-limits"
    STORY_LIMITS = "story-limits"
    AREA_LIMITS = "area-limits"
    FIRE_RATINGS = "fire-ratings"
    EGRESS = "egress"

    @classmethod
    def coerce(cls, value) -> Optional["DatasetType"]:
        """Resolve an enum member, its value, or a legacy alias. None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip()
        try:
            return cls(key)
        except ValueError:
            pass
        return _ALIASES.get(re.sub(r"[^a-z0-9]", "", key.lower()))

    @property
    def is_ibc_limit(self) -> bool:
        return self in IBC_LIMIT_TYPES


_ALIASES = {
    "zoning": DatasetType.ZONING,
    "zoningstandards": DatasetType.ZONING,
    "parking": DatasetType.PARKING,
    "parkingrequirements": DatasetType.PARKING,
    "ada": DatasetType.ADA,
    "adarequirements": DatasetType.ADA,
    "heightlimits": DatasetType.HEIGHT_LIMITS,
    "storylimits": DatasetType.STORY_LIMITS,
    "arealimits": DatasetType.AREA_LIMITS,
    "fireratings": DatasetType.FIRE_RATINGS,
    "egress": DatasetType.EGRESS,
    "egressrequirements": DatasetType.EGRESS,
}

IBC_LIMIT_TYPES = frozenset(
    {DatasetType.HEIGHT_LIMITS, DatasetType.STORY_LIMITS, DatasetType.AREA_LIMITS}
)

# Datasets scoped to a county; blank county cells may be filled from the caller's selection.
COUNTY_SCOPED_TYPES = frozenset({DatasetType.ZONING, DatasetType.PARKING})


_IBC_LIMIT_COLUMNS = ("occupancy", "type_of_construction", "ns", "s")

REQUIRED_COLUMNS: Mapping[DatasetType, Tuple[str, ...]] = MappingProxyType({
    DatasetType.ZONING: (
        "county",
        "zoning_district",
        "front_setback",
        "side_setback",
        "rear_setback",
        "max_height",
        "max_far",
        "max_lot_coverage",
    ),
    DatasetType.PARKING: ("county", "use_type", "parking_requirement"),
    DatasetType.ADA: ("total_parking_spaces_provided", "minimum_required_ada_stalls"),
    DatasetType.HEIGHT_LIMITS: _IBC_LIMIT_COLUMNS,
    DatasetType.STORY_LIMITS: _IBC_LIMIT_COLUMNS,
    DatasetType.AREA_LIMITS: _IBC_LIMIT_COLUMNS,
    DatasetType.FIRE_RATINGS: (
        "type_of_construction",
        "exterior_walls",
        "structural_frame",
        "bearing_walls",
        "floor_construction",
        "roof_construction",
    ),
    DatasetType.EGRESS: ("occupancy", "min_exits", "max_occupant_load", "max_travel_distance"),
})


# canonical key -> raw header spellings that denote it. Spellings are compared
# squashed (lower-case alphanumerics only), so "Front Setback" == "front_setback".
_IBC_LIMIT_SYNONYMS = {
    "occupancy": ("occupancy", "occupancy_group", "occupancy_classification", "group"),
    "type_of_construction": ("type_of_construction", "construction_type", "construction", "type"),
    "ns": ("ns", "non_sprinklered", "nonsprinklered", "unsprinklered", "not_sprinklered"),
    "s": ("s", "sprinklered", "sprinkled"),
}

COLUMN_SYNONYMS: Mapping[DatasetType, Mapping[str, Tuple[str, ...]]] = MappingProxyType({
    DatasetType.ZONING: MappingProxyType({
        "county": ("county", "jurisdiction", "municipality"),
        "zoning_district": ("zoning_district", "district", "zone", "zoning", "zoning_code", "district_code"),
        "front_setback": ("front_setback", "front", "front_yard", "front_yard_setback"),
        "side_setback": ("side_setback", "side", "side_yard", "side_yard_setback"),
        "rear_setback": ("rear_setback", "rear", "rear_yard", "rear_yard_setback"),
        "max_far": ("max_far", "far", "floor_area_ratio", "maximum_far"),
        "max_height": ("max_height", "height", "height_limit", "building_height", "maximum_height"),
        "max_lot_coverage": ("max_lot_coverage", "coverage", "lot_coverage", "max_coverage", "maximum_lot_coverage"),
        "parking_required": ("parking_required", "parking", "parking_requirement", "parking_ratio"),
        "ada_stalls_required": ("ada_stalls_required", "ada", "ada_stalls", "ada_parking"),
        "setbacks": ("setbacks", "setback", "yards", "yard_setbacks"),
    }),
    DatasetType.PARKING: MappingProxyType({
        "county": ("county", "jurisdiction", "municipality"),
        "use_type": ("use_type", "use", "usetype", "land_use", "occupancy"),
        "parking_requirement": (
            "parking_requirement",
            "parking_ratio",
            "ratio",
            "requirement",
            "parking_rate",
            "parking_required",
        ),
    }),
    DatasetType.ADA: MappingProxyType({
        "total_parking_spaces_provided": (
            "total_parking_spaces_provided",
            "total_parking_spaces",
            "total_spaces",
            "spaces_provided",
            "total",
        ),
        "minimum_required_ada_stalls": (
            "minimum_required_ada_stalls",
            "min_required_ada_stalls",
            "required_ada_stalls",
            "minimum_ada_stalls",
            "ada_stalls",
            "accessible_spaces",
        ),
    }),
    DatasetType.HEIGHT_LIMITS: MappingProxyType(_IBC_LIMIT_SYNONYMS),
    DatasetType.STORY_LIMITS: MappingProxyType(_IBC_LIMIT_SYNONYMS),
    DatasetType.AREA_LIMITS: MappingProxyType(_IBC_LIMIT_SYNONYMS),
    DatasetType.FIRE_RATINGS: MappingProxyType({
        "type_of_construction": ("type_of_construction", "construction_type", "construction", "type"),
        "exterior_walls": ("exterior_walls", "exterior_bearing_walls", "exterior_wall"),
        "structural_frame": ("structural_frame", "primary_structural_frame", "frame"),
        "bearing_walls": ("bearing_walls", "interior_bearing_walls", "bearing_wall"),
        "floor_construction": ("floor_construction", "floor", "floors"),
        "roof_construction": ("roof_construction", "roof"),
    }),
    DatasetType.EGRESS: MappingProxyType({
        "occupancy": ("occupancy", "occupancy_group", "group"),
        "min_exits": ("min_exits", "minimum_exits", "exits", "exits_required"),
        "max_occupant_load": ("max_occupant_load", "maximum_occupant_load", "occupant_load"),
        "max_travel_distance": ("max_travel_distance", "travel_distance", "exit_access_travel_distance"),
    }),
})

SETBACK_COLUMN = "setbacks"
SETBACK_PARTS = ("front_setback", "side_setback", "rear_setback")


# Numeric-with-units: tokens stripped before the number check. Longer spellings first.
UNIT_TOKEN_RE = re.compile(r"sq\.?\s*ft\.?|feet|ft|sf|['\"%\s]", re.IGNORECASE)
NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
BOOLEAN_VALUES = MappingProxyType({"true": True, "false": False})


# District-name canonicalization used by the substring/parenthetical strategies.
DISTRICT_WORD_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("residential", "r"),
    ("commercial", "c"),
    ("industrial", "i"),
    ("agricultural", "a"),
    ("apartment", "apt"),
    ("mixed", "mix"),
    ("use", ""),
    ("zone", ""),
)
DISTRICT_STRIP_RE = re.compile(r"[\s\-()\[\]/\\,.'\"]+")


# 2010 ADA Standards 208.2. (upper bound inclusive, stalls); None means formula.
ADA_FALLBACK_TIERS: Tuple[Tuple[int, Optional[int]], ...] = (
    (25, 1),
    (50, 2),
    (75, 3),
    (100, 4),
    (150, 5),
    (200, 6),
    (300, 7),
    (400, 8),
    (500, 9),
    (1000, None),
)
ADA_PERCENT_THRESHOLD = 501
ADA_PERCENT_RATE = 0.02
ADA_OVER_1000_THRESHOLDS = frozenset({1000, 1001})
ADA_OVER_1000_BASE = 20
ADA_OVER_1000_STEP = 100


# Square feet per occupant by occupancy group (simplified IBC Table 1004.5).
OCCUPANT_LOAD_FACTORS: Mapping[str, int] = MappingProxyType({
    "a1": 7,
    "a2": 15,
    "a3": 15,
    "b": 100,
    "e": 20,
    "f1": 100,
    "f2": 100,
    "m": 60,
    "r1": 200,
    "r2": 200,
})
DEFAULT_OCCUPANT_LOAD_FACTOR = 100

# (occupant load strictly above, exits required), checked top-down.
EXIT_THRESHOLDS: Tuple[Tuple[int, int], ...] = ((500, 3), (49, 2))
MIN_EXITS = 1
