"""
Constants and lookup tables for dotacoach.

Provides the role set, grade boundaries, static benchmark tiers,
role metric weights, and the text tables used for interpretations.
"""

from enum import Enum
from typing import Dict, List, Tuple


# =============================================================================
# ROLES
# =============================================================================

class Role(str, Enum):
    CARRY = "Carry"
    MID = "Mid"
    OFFLANE = "Offlane"
    SUPPORT = "Support"
    HARD_SUPPORT = "Hard Support"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, Role):
            return value
        text = str(value or "").strip().lower().replace("_", " ").replace("-", " ")
        for role in cls:
            if role.value.lower() == text or role.name.lower().replace("_", " ") == text:
                return role
        if text in ("hardsupport", "pos5", "position 5"):
            return cls.HARD_SUPPORT
        raise ValueError(f"Unknown role: {value!r}")

    @property
    def is_core(self) -> bool:
        return self in (Role.CARRY, Role.MID, Role.OFFLANE)

    @property
    def is_support(self) -> bool:
        return self in (Role.SUPPORT, Role.HARD_SUPPORT)


# Tie-break order for heuristic detection.
ROLE_PRECEDENCE: Tuple[Role, ...] = (
    Role.CARRY,
    Role.MID,
    Role.OFFLANE,
    Role.SUPPORT,
    Role.HARD_SUPPORT,
)

LANE_ROLE_HINTS: Dict[int, Role] = {
    1: Role.CARRY,
    2: Role.MID,
    3: Role.OFFLANE,
    4: Role.SUPPORT,
    5: Role.HARD_SUPPORT,
}

# Canonical draft position (1-5) per role.
ROLE_POSITIONS: Dict[Role, int] = {role: pos for pos, role in LANE_ROLE_HINTS.items()}

HINT_CONFIDENCE = 85

ROLE_DESCRIPTIONS: Dict[Role, str] = {
    Role.CARRY: "Primary farming core, responsible for late-game damage output",
    Role.MID: "Solo mid laner, tempo controller and playmaker",
    Role.OFFLANE: "Durable core, initiator and space creator",
    Role.SUPPORT: "Team enabler, provides vision and utility",
    Role.HARD_SUPPORT: "Primary support, ward provider and team protector",
}

TEAM_SIZE = 5
RADIANT_SLOT_LIMIT = 128


# =============================================================================
# ITEMS
# =============================================================================

SUPPORT_ITEMS = frozenset({
    "ward_observer",
    "ward_sentry",
    "ward_dispenser",
    "dust",
    "gem",
    "smoke_of_deceit",
    "force_staff",
    "glimmer_cape",
    "urn_of_shadows",
    "spirit_vessel",
    "mekansm",
    "guardian_greaves",
    "pipe",
    "medallion_of_courage",
    "solar_crest",
    "holy_locket",
    "arcane_boots",
    "tranquil_boots",
    "lotus_orb",
})

MAJOR_ITEMS: Tuple[str, ...] = (
    "blink",
    "black_king_bar",
    "butterfly",
    "heart",
    "satanic",
    "divine_rapier",
    "assault",
    "skadi",
    "abyssal_blade",
    "bfury",
    "manta",
    "greater_crit",
)

CONSUMABLE_ITEMS: Tuple[str, ...] = (
    "tango",
    "flask",
    "clarity",
    "enchanted_mango",
    "faerie_fire",
)


# =============================================================================
# GRADING
# =============================================================================

# (lower bound, grade), checked top down.
GRADE_BOUNDARIES: List[Tuple[float, str]] = [
    (90, "S"),
    (80, "A"),
    (70, "B"),
    (50, "C"),
]
LOWEST_GRADE = "D"

PERCENTILE_CAP = 99.0
EXTRAPOLATION_BONUS = 10.0

# Percentile assigned to each static tier.
STATIC_TIER_PERCENTILES: Dict[str, int] = {
    "excellent": 95,
    "good": 75,
    "average": 50,
    "poor": 25,
    "below": 10,
}

STATIC_BENCHMARKS: Dict[str, Dict[str, float]] = {
    "last_hits": {"excellent": 300, "good": 200, "average": 120, "poor": 60},
    "gold_per_min": {"excellent": 600, "good": 450, "average": 350, "poor": 250},
    "xp_per_min": {"excellent": 650, "good": 500, "average": 400, "poor": 300},
    "hero_damage": {"excellent": 40000, "good": 25000, "average": 15000, "poor": 8000},
    "tower_damage": {"excellent": 5000, "good": 2500, "average": 1200, "poor": 500},
    "hero_healing": {"excellent": 15000, "good": 8000, "average": 4000, "poor": 1000},
    "obs_placed": {"excellent": 20, "good": 12, "average": 8, "poor": 3},
    "sen_placed": {"excellent": 15, "good": 8, "average": 5, "poor": 2},
    "assists": {"excellent": 25, "good": 15, "average": 10, "poor": 5},
    "kills": {"excellent": 15, "good": 8, "average": 5, "poor": 2},
    "deaths": {"excellent": 3, "good": 5, "average": 8, "poor": 12, "inverse": True},
}

# Upstream benchmark series that can stand in for a total, as (key, per_minute).
BENCHMARK_ALIASES: Dict[str, Tuple[str, bool]] = {
    "last_hits": ("last_hits_per_min", True),
    "hero_damage": ("hero_damage_per_min", True),
    "hero_healing": ("hero_healing_per_min", True),
    "kills": ("kills_per_min", True),
}


# =============================================================================
# ROLE WEIGHTS
# =============================================================================

ROLE_METRIC_WEIGHTS: Dict[Role, Dict[str, float]] = {
    Role.CARRY: {
        "last_hits": 0.25,
        "gold_per_min": 0.25,
        "hero_damage": 0.20,
        "tower_damage": 0.15,
        "deaths": 0.15,
    },
    Role.MID: {
        "xp_per_min": 0.25,
        "hero_damage": 0.25,
        "kills": 0.20,
        "last_hits": 0.15,
        "gold_per_min": 0.15,
    },
    Role.OFFLANE: {
        "assists": 0.25,
        "tower_damage": 0.20,
        "hero_damage": 0.20,
        "deaths": 0.20,
        "gold_per_min": 0.15,
    },
    Role.SUPPORT: {
        "obs_placed": 0.30,
        "assists": 0.25,
        "hero_healing": 0.20,
        "sen_placed": 0.15,
        "deaths": 0.10,
    },
    Role.HARD_SUPPORT: {
        "obs_placed": 0.35,
        "sen_placed": 0.25,
        "assists": 0.20,
        "hero_healing": 0.15,
        "deaths": 0.05,
    },
}


# =============================================================================
# TEXT TABLES
# =============================================================================

# (lower bound, label), checked top down.
COMPARISON_LABELS: List[Tuple[float, str]] = [
    (95, "Exceptional"),
    (90, "Excellent"),
    (80, "Very Good"),
    (70, "Good"),
    (60, "Above Average"),
    (40, "Average"),
    (25, "Below Average"),
    (10, "Poor"),
]
LOWEST_COMPARISON = "Very Poor"

INTERPRETATIONS: Dict[str, Dict[str, str]] = {
    "last_hits": {
        "high": "Excellent farming efficiency - maintaining strong CS throughout the game",
        "medium": "Decent farming with room for improvement in CS consistency",
        "low": "Focus on improving last-hitting mechanics and farming patterns",
    },
    "gold_per_min": {
        "high": "Outstanding farm priority and resource acquisition",
        "medium": "Solid economy management with potential for optimization",
        "low": "Need to improve farming efficiency and resource utilization",
    },
    "xp_per_min": {
        "high": "Excellent positioning and experience gain optimization",
        "medium": "Good experience acquisition with room for improvement",
        "low": "Focus on staying in experience range and efficient rotations",
    },
    "hero_damage": {
        "high": "Exceptional damage output and team fight contribution",
        "medium": "Solid damage dealing with potential for higher impact",
        "low": "Need to improve positioning and damage output in fights",
    },
    "tower_damage": {
        "high": "Great objective focus and structure damage",
        "medium": "Good objective participation",
        "low": "Increase focus on taking towers and objectives",
    },
    "hero_healing": {
        "high": "Outstanding support contribution and teammate sustainability",
        "medium": "Good healing output for team preservation",
        "low": "Consider items or abilities that provide team healing",
    },
    "obs_placed": {
        "high": "Excellent vision control and map awareness",
        "medium": "Good vision contribution with room for more wards",
        "low": "Significantly increase ward placement for map control",
    },
    "sen_placed": {
        "high": "Great counter-warding and vision denial",
        "medium": "Decent dewarding efforts",
        "low": "Invest more in sentry wards to deny enemy vision",
    },
    "assists": {
        "high": "Exceptional team fight participation and support",
        "medium": "Good team contribution",
        "low": "Increase team fight participation and positioning",
    },
    "kills": {
        "high": "Outstanding kill securing and impact",
        "medium": "Good kill participation",
        "low": "Work on positioning for kill opportunities",
    },
    "deaths": {
        "high": "Excellent survival and positioning discipline",
        "medium": "Acceptable death count with room to tighten positioning",
        "low": "Too many deaths - prioritize map awareness and safe positioning",
    },
}

GENERIC_INTERPRETATION: Dict[str, str] = {
    "high": "Strong performance in this area",
    "medium": "Average performance with room for growth",
    "low": "Area needing significant improvement",
}
UNKNOWN_INTERPRETATION = "Unable to determine performance level"

METRIC_CATEGORIES: Dict[str, str] = {
    "last_hits": "Farming",
    "gold_per_min": "Economy",
    "xp_per_min": "Experience",
    "hero_damage": "Combat",
    "tower_damage": "Objectives",
    "hero_healing": "Support",
    "obs_placed": "Vision",
    "sen_placed": "Vision",
    "assists": "Team Fighting",
    "kills": "Combat",
    "deaths": "Survivability",
}

METRIC_RECOMMENDATIONS: Dict[str, Dict[str, object]] = {
    "last_hits": {
        "suggestion": "Practice last-hitting in demo mode daily. Focus on creep aggro mechanics and timing.",
        "actionable": [
            "Spend 10 minutes in demo mode before playing",
            "Learn creep wave manipulation",
            "Use audio cues for last-hit timing",
        ],
        "timeframe": "1-2 weeks of practice",
    },
    "gold_per_min": {
        "suggestion": "Improve farming patterns and efficiency. Focus on farming dangerous areas when safe.",
        "actionable": ["Farm jungle camps between waves", "Stack camps when possible", "Avoid idle time"],
        "timeframe": "2-3 weeks",
    },
    "xp_per_min": {
        "suggestion": "Stay in experience range more often. Avoid unnecessary rotations.",
        "actionable": [
            "Position safely in team fights",
            "Share experience in lane when possible",
            "Avoid deaths that lose experience",
        ],
        "timeframe": "1-2 weeks",
    },
    "hero_damage": {
        "suggestion": "Improve positioning in team fights. Build more damage-oriented items.",
        "actionable": [
            "Stay at maximum spell/attack range",
            "Focus priority targets",
            "Build damage items appropriate for role",
        ],
        "timeframe": "2-4 weeks",
    },
    "tower_damage": {
        "suggestion": "Convert won fights into objectives. Push lanes when the enemy is dead.",
        "actionable": ["Group after won fights", "Hit towers during enemy respawn timers"],
        "timeframe": "1-2 weeks",
    },
    "hero_healing": {
        "suggestion": "Invest in sustain items and use healing abilities proactively.",
        "actionable": ["Consider Mekansm or Holy Locket", "Heal before fights, not only after"],
        "timeframe": "1-2 weeks",
    },
    "obs_placed": {
        "suggestion": "Place wards more frequently. Focus on high-impact ward spots.",
        "actionable": ["Ward before objectives", "Place aggressive wards when ahead", "Maintain vision on key areas"],
        "timeframe": "1 week",
    },
    "sen_placed": {
        "suggestion": "Invest more in sentry wards for dewarding. Counter enemy vision.",
        "actionable": [
            "Buy sentries before taking objectives",
            "Deward common ward spots",
            "Use sentries to protect key areas",
        ],
        "timeframe": "1-2 weeks",
    },
    "assists": {
        "suggestion": "Participate more in team fights. Improve positioning to help teammates.",
        "actionable": ["Follow team rotations", "Use spells to help teammates escape", "Join fights earlier"],
        "timeframe": "1-2 weeks",
    },
    "kills": {
        "suggestion": "Look for pick-off opportunities and coordinate ganks.",
        "actionable": ["Use smoke with teammates", "Punish out-of-position enemies"],
        "timeframe": "1-2 weeks",
    },
    "deaths": {
        "suggestion": "Focus on positioning and map awareness. Avoid risky plays.",
        "actionable": [
            "Check minimap every 3-5 seconds",
            "Retreat when outnumbered",
            "Buy defensive items when behind",
        ],
        "timeframe": "2-3 weeks",
    },
}
