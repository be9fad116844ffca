"""Rule-based coaching insights.

Each rule pairs a predicate over an ``InsightContext`` with a builder for the
finding it emits. Rules are plain table entries so each one can be tested on
its own and the tables can be swapped per generator instance.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

from dotacoach.constants import MAJOR_ITEMS, METRIC_RECOMMENDATIONS, Role
from dotacoach.models.grading import round_half_up
from dotacoach.normalization import MatchRecord, PlayerRecord

logger = logging.getLogger(__name__)


# =============================================================================
# THRESHOLDS
# =============================================================================

# Minimum farm expected per role: (gold per minute, last hits).
_FARM_EXPECTATIONS: Dict[Role, Tuple[int, int]] = {
    Role.CARRY: (500, 200),
    Role.MID: (450, 150),
    Role.OFFLANE: (400, 120),
    Role.SUPPORT: (300, 50),
    Role.HARD_SUPPORT: (250, 30),
}

# Gold per minute worth calling out: (excellent, good).
_FARM_STRENGTHS: Dict[Role, Tuple[int, int]] = {
    Role.CARRY: (600, 500),
    Role.MID: (550, 450),
    Role.OFFLANE: (500, 400),
    Role.SUPPORT: (400, 320),
    Role.HARD_SUPPORT: (350, 280),
}

# Wards (observer + sentry) expected over a match.
_VISION_EXPECTATIONS: Dict[Role, int] = {
    Role.CARRY: 1,
    Role.MID: 3,
    Role.OFFLANE: 5,
    Role.SUPPORT: 13,
    Role.HARD_SUPPORT: 25,
}

MIN_TEAMFIGHT_PARTICIPATION = 0.6

NEUTRAL_AREA_SCORES: Dict[str, int] = {
    "farming": 50,
    "positioning": 60,
    "teamfighting": 55,
    "vision": 40,
    "itemization": 70,
}


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class Finding:
    kind: str
    category: str
    title: str
    description: str
    impact: str = ""
    improvement: str = ""
    priority: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.kind,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "improvement": self.improvement,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class CoachingPoint:
    category: str
    title: str
    description: str
    action_items: Tuple[str, ...] = ()
    priority: int = 3
    timeframe: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "action_items": list(self.action_items),
            "priority": self.priority,
            "timeframe": self.timeframe,
        }


@dataclass(frozen=True)
class OverallAssessment:
    result: str
    performance: str
    kda: str
    kda_ratio: float
    impact_score: int
    grade: str
    summary: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "result": self.result,
            "performance": self.performance,
            "kda": self.kda,
            "kda_ratio": round(self.kda_ratio, 2),
            "impact_score": self.impact_score,
            "grade": self.grade,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "OverallAssessment":
        return cls(
            result=str(data["result"]),
            performance=str(data["performance"]),
            kda=str(data["kda"]),
            kda_ratio=float(data["kda_ratio"]),
            impact_score=int(data["impact_score"]),
            grade=str(data["grade"]),
            summary=str(data["summary"]),
        )


@dataclass(frozen=True)
class Tip:
    category: str
    tip: str
    difficulty: str
    impact: str
    timeframe: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "category": self.category,
            "tip": self.tip,
            "difficulty": self.difficulty,
            "impact": self.impact,
            "timeframe": self.timeframe,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Tip":
        return cls(**{name: str(data[name]) for name in ("category", "tip", "difficulty", "impact", "timeframe")})


@dataclass(frozen=True)
class NextStep:
    timeframe: str
    focus: str
    goals: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {"timeframe": self.timeframe, "goals": list(self.goals), "focus": self.focus}

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "NextStep":
        return cls(timeframe=str(data["timeframe"]), focus=str(data["focus"]), goals=tuple(data.get("goals", ())))


@dataclass
class InsightReport:
    mistakes: List[Finding] = field(default_factory=list)
    strengths: List[Finding] = field(default_factory=list)
    coaching_points: List[CoachingPoint] = field(default_factory=list)
    improvement_score: int = 0
    improvement_areas: Dict[str, int] = field(default_factory=dict)
    assessment: Optional[OverallAssessment] = None
    actionable_tips: List[Tip] = field(default_factory=list)
    next_steps: List[NextStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "overall_assessment": self.assessment.to_dict() if self.assessment else None,
            "mistakes": [m.to_dict() for m in self.mistakes],
            "strengths": [s.to_dict() for s in self.strengths],
            "coaching_points": [c.to_dict() for c in self.coaching_points],
            "improvement_score": self.improvement_score,
            "improvement_areas": dict(self.improvement_areas),
            "actionable_tips": [t.to_dict() for t in self.actionable_tips],
            "next_steps": [s.to_dict() for s in self.next_steps],
        }


@dataclass(frozen=True)
class InsightContext:
    player: PlayerRecord
    match: MatchRecord
    role: Role
    participation: Optional[float]

    @property
    def farm_expectation(self) -> Tuple[int, int]:
        return _FARM_EXPECTATIONS[self.role]

    @property
    def farm_strength(self) -> Tuple[int, int]:
        return _FARM_STRENGTHS[self.role]


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[InsightContext], bool]
    build: Callable[[InsightContext], object]


# =============================================================================
# MISTAKES
# =============================================================================

MISTAKE_RULES: Tuple[Rule, ...] = (
    Rule(
        "excessive_deaths",
        lambda c: c.player.deaths >= 10,
        lambda c: Finding(
            kind="critical",
            category="Positioning",
            title="Excessive Deaths",
            description=f"{c.player.deaths} deaths indicates severe positioning issues and poor decision making",
            impact="High MMR Loss Risk",
            improvement="Focus on map awareness, safe positioning, and avoiding unnecessary risks",
            priority=1,
        ),
    ),
    Rule(
        "high_deaths",
        lambda c: 7 <= c.player.deaths < 10,
        lambda c: Finding(
            kind="major",
            category="Positioning",
            title="High Death Count",
            description=f"{c.player.deaths} deaths suggests positioning improvements needed",
            impact="Moderate Impact",
            improvement="Work on staying with team and checking minimap more frequently",
            priority=2,
        ),
    ),
    Rule(
        "low_gold_per_min",
        lambda c: c.player.gold_per_min < c.farm_expectation[0],
        lambda c: Finding(
            kind="major",
            category="Economy",
            title="Low Farm Efficiency",
            description=(
                f"{c.player.gold_per_min} GPM is below expected {c.farm_expectation[0]} for {c.role.value}"
            ),
            impact="Reduced item timings and team contribution",
            improvement="Focus on farming patterns, jungle efficiency, and minimizing downtime",
            priority=2,
        ),
    ),
    Rule(
        "low_last_hits",
        lambda c: c.role in (Role.CARRY, Role.MID) and c.player.last_hits < c.farm_expectation[1],
        lambda c: Finding(
            kind="major",
            category="Farming",
            title="Poor Last-Hit Efficiency",
            description=(
                f"{c.player.last_hits} last hits is below expected {c.farm_expectation[1]} for {c.role.value}"
            ),
            impact="Significant gold deficit",
            improvement="Practice last-hitting mechanics and creep aggro control",
            priority=2,
        ),
    ),
    Rule(
        "low_teamfight_participation",
        lambda c: c.participation is not None and c.participation < MIN_TEAMFIGHT_PARTICIPATION,
        lambda c: Finding(
            kind="major",
            category="Team Fighting",
            title="Low Team Fight Participation",
            description=f"{c.participation * 100:.0f}% team fight participation is too low",
            impact="Reduced team coordination and fight outcomes",
            improvement="Stay closer to team and participate in more fights",
            priority=2,
        ),
    ),
    Rule(
        "insufficient_wards",
        lambda c: c.role.is_support and c.player.wards_placed < 10,
        lambda c: Finding(
            kind="major",
            category="Vision",
            title="Insufficient Ward Placement",
            description=f"Only {c.player.wards_placed} total wards placed throughout the match",
            impact="Poor map vision and team positioning",
            improvement="Place wards more frequently, especially before objectives",
            priority=2,
        ),
    ),
    Rule(
        "low_carry_damage",
        lambda c: c.role is Role.CARRY and c.player.hero_damage < 20000,
        lambda c: Finding(
            kind="major",
            category="Damage Output",
            title="Low Damage Output",
            description="Carry should deal more damage in team fights",
            improvement="Focus on positioning and target prioritization",
            priority=2,
        ),
    ),
    Rule(
        "low_support_assists",
        lambda c: c.role.is_support and c.player.assists < 10,
        lambda c: Finding(
            kind="major",
            category="Team Support",
            title="Low Assist Count",
            description="Support should have higher team fight participation",
            improvement="Stay close to team and help with kills",
            priority=2,
        ),
    ),
)


# =============================================================================
# STRENGTHS
# =============================================================================

def _strength(category: str, title: str, description: str, impact: str, keep: str) -> Finding:
    return Finding(
        kind="strength",
        category=category,
        title=title,
        description=description,
        impact=impact,
        improvement=keep,
    )


STRENGTH_RULES: Tuple[Rule, ...] = (
    Rule(
        "excellent_kda",
        lambda c: c.player.kda >= 3.0,
        lambda c: _strength(
            "Combat",
            "Excellent KDA Ratio",
            f"Outstanding {c.player.kda:.1f} KDA shows strong kill participation and low deaths",
            "Positive team contribution",
            "Continue focusing on positioning and smart aggression",
        ),
    ),
    Rule(
        "good_kda",
        lambda c: 2.0 <= c.player.kda < 3.0,
        lambda c: _strength(
            "Combat",
            "Good KDA Management",
            f"Solid {c.player.kda:.1f} KDA demonstrates effective combat participation",
            "Good individual performance",
            "Maintain current positioning habits",
        ),
    ),
    Rule(
        "excellent_farm",
        lambda c: c.player.gold_per_min >= c.farm_strength[0],
        lambda c: _strength(
            "Economy",
            "Excellent Farm Efficiency",
            f"Outstanding {c.player.gold_per_min} GPM for {c.role.value} role",
            "Strong item progression and team contribution",
            "Continue current farming patterns and efficiency",
        ),
    ),
    Rule(
        "good_farm",
        lambda c: c.farm_strength[1] <= c.player.gold_per_min < c.farm_strength[0],
        lambda c: _strength(
            "Economy",
            "Good Farm Management",
            f"Solid {c.player.gold_per_min} GPM shows effective resource acquisition",
            "Good economic foundation",
            "Maintain farming priorities and patterns",
        ),
    ),
    Rule(
        "high_damage",
        lambda c: c.player.hero_damage >= 25000,
        lambda c: _strength(
            "Combat",
            "High Damage Output",
            "Exceptional damage contribution to team fights",
            "Strong team fight presence",
            "Continue aggressive positioning and target focus",
        ),
    ),
    Rule(
        "objective_focus",
        lambda c: c.player.tower_damage >= 3000,
        lambda c: _strength(
            "Objectives",
            "Strong Objective Focus",
            "Excellent structure damage and objective participation",
            "Good map control contribution",
            "Continue prioritizing objectives",
        ),
    ),
    Rule(
        "excellent_vision",
        lambda c: c.role.is_support and c.player.wards_placed >= 20,
        lambda c: _strength(
            "Vision",
            "Excellent Vision Control",
            f"Outstanding {c.player.wards_placed} total wards provide great map awareness",
            "Superior team positioning and map control",
            "Continue prioritizing vision and ward placement",
        ),
    ),
    Rule(
        "good_vision",
        lambda c: c.role.is_support and 15 <= c.player.wards_placed < 20,
        lambda c: _strength(
            "Vision",
            "Good Vision Contribution",
            f"Solid {c.player.wards_placed} wards help team positioning",
            "Good map awareness support",
            "Maintain current warding patterns",
        ),
    ),
    Rule(
        "carry_last_hits",
        lambda c: c.role is Role.CARRY and c.player.last_hits >= 250,
        lambda c: _strength(
            "Farming",
            "Excellent CS Performance",
            "Outstanding last-hit efficiency for carry role",
            "Strong economic advantage",
            "Continue focusing on farm efficiency",
        ),
    ),
    Rule(
        "support_healing",
        lambda c: c.role.is_support and c.player.hero_healing >= 8000,
        lambda c: _strength(
            "Support",
            "Excellent Team Healing",
            "Outstanding healing contribution keeps team healthy",
            "Strong team sustainability",
            "Continue prioritizing team healing",
        ),
    ),
)


# =============================================================================
# COACHING
# =============================================================================

def _coaching(metric: str, category: str, title: str, priority: int) -> Callable[[InsightContext], CoachingPoint]:
    advice = METRIC_RECOMMENDATIONS[metric]

    def build(c: InsightContext) -> CoachingPoint:
        return CoachingPoint(
            category=category,
            title=title,
            description=str(advice["suggestion"]),
            action_items=tuple(advice["actionable"]),
            priority=priority,
            timeframe=str(advice["timeframe"]),
        )

    return build


COACHING_RULES: Tuple[Rule, ...] = (
    Rule(
        "reduce_deaths",
        lambda c: c.player.deaths >= 7,
        _coaching("deaths", "Positioning", "Cut Down Deaths", 1),
    ),
    Rule(
        "farm_patterns",
        lambda c: c.player.gold_per_min < c.farm_expectation[0],
        _coaching("gold_per_min", "Farming", "Tighten Farming Patterns", 2),
    ),
    Rule(
        "last_hit_practice",
        lambda c: c.role in (Role.CARRY, Role.MID) and c.player.last_hits < c.farm_expectation[1],
        _coaching("last_hits", "Farming", "Last-Hit Practice", 2),
    ),
    Rule(
        "ward_more",
        lambda c: c.role.is_support and c.player.wards_placed < 10,
        _coaching("obs_placed", "Vision", "Ward Before Objectives", 2),
    ),
    Rule(
        "join_fights",
        lambda c: c.participation is not None and c.participation < MIN_TEAMFIGHT_PARTICIPATION,
        _coaching("assists", "Team Fighting", "Join Fights Earlier", 3),
    ),
    Rule(
        "carry_damage",
        lambda c: c.role is Role.CARRY and c.player.hero_damage < 20000,
        _coaching("hero_damage", "Combat", "Convert Farm Into Damage", 3),
    ),
    Rule(
        "carry_jungle",
        lambda c: c.role is Role.CARRY,
        lambda c: CoachingPoint(
            category="Farming",
            title="Farm Between Waves",
            description="Farm jungle camps between creep waves",
            action_items=("Clear a nearby camp while the next wave walks to lane",),
            priority=4,
            timeframe="1 week",
        ),
    ),
    Rule(
        "support_objective_wards",
        lambda c: c.role.is_support,
        lambda c: CoachingPoint(
            category="Vision",
            title="Vision Ahead of Objectives",
            description="Place wards before objectives spawn",
            action_items=("Ward Roshan and outer towers a minute before you take them",),
            priority=4,
            timeframe="Immediate",
        ),
    ),
    Rule(
        "map_awareness",
        lambda c: True,
        lambda c: CoachingPoint(
            category="Map Awareness",
            title="Minimap Habit",
            description="Check minimap every 3-5 seconds",
            action_items=("Glance at the minimap after every last hit",),
            priority=5,
            timeframe="Immediate",
        ),
    ),
)


# =============================================================================
# IMPROVEMENT AREAS
# =============================================================================

def _clamp(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def _farming_area(c: InsightContext) -> Optional[int]:
    if not (c.player.has("gold_per_min") or c.player.has("last_hits")):
        return None
    return _clamp(100.0 * c.player.gold_per_min / c.farm_strength[0])


def _positioning_area(c: InsightContext) -> Optional[int]:
    if not c.player.has("deaths"):
        return None
    score = 50 + c.player.assists * 2 + (c.participation or 0.0) * 30 - c.player.deaths * 8
    return _clamp(score)


def _teamfighting_area(c: InsightContext) -> Optional[int]:
    if c.participation is None:
        return None
    return _clamp(c.participation * 100)


def _vision_area(c: InsightContext) -> Optional[int]:
    if not (c.player.has("obs_placed") or c.player.has("sen_placed")):
        return None
    return _clamp(100.0 * c.player.wards_placed / _VISION_EXPECTATIONS[c.role])


def _itemization_area(c: InsightContext) -> Optional[int]:
    if not c.player.purchase_log:
        return None
    bought = {
        str(event.get("key", ""))
        for event in c.player.purchase_log
        if any(item in str(event.get("key", "")) for item in MAJOR_ITEMS)
    }
    return _clamp(40 + 15 * len(bought))


IMPROVEMENT_AREAS: Tuple[Tuple[str, Callable[[InsightContext], Optional[int]]], ...] = (
    ("farming", _farming_area),
    ("positioning", _positioning_area),
    ("teamfighting", _teamfighting_area),
    ("vision", _vision_area),
    ("itemization", _itemization_area),
)


# =============================================================================
# OVERALL ASSESSMENT
# =============================================================================

IMPACT_BASE = 50

# Role impact terms: (stat, points, per units of the stat).
IMPACT_TERMS: Dict[Role, Tuple[Tuple[str, float, float], ...]] = {
    Role.CARRY: (("hero_damage", 1, 1000), ("gold_per_min", 1, 15), ("deaths", -5, 1)),
    Role.MID: (("hero_damage", 1, 800), ("kills", 3, 1), ("xp_per_min", 1, 20)),
    Role.OFFLANE: (("assists", 2, 1), ("tower_damage", 1, 200), ("deaths", -3, 1)),
    Role.SUPPORT: (("obs_placed", 3, 1), ("assists", 2, 1), ("hero_healing", 1, 500)),
    Role.HARD_SUPPORT: (("obs_placed", 3, 1), ("assists", 2, 1), ("hero_healing", 1, 500)),
}

# Impact score grades sit below the percentile grades.
ASSESSMENT_GRADES: Tuple[Tuple[int, str], ...] = ((85, "S"), (75, "A"), (65, "B"), (50, "C"))
PERFORMANCE_LEVELS: Tuple[Tuple[int, str], ...] = (
    (85, "Outstanding"),
    (75, "Excellent"),
    (65, "Good"),
    (50, "Average"),
    (35, "Below Average"),
)

# (won, minimum impact, summary); first match wins.
SUMMARY_RULES: Tuple[Tuple[bool, int, str], ...] = (
    (True, 80, "Excellent {role} performance that significantly contributed to the victory. "
               "Strong execution across multiple areas."),
    (True, 60, "Solid {role} performance that helped secure the win. Some areas for improvement identified."),
    (True, 40, "Average {role} performance in a winning match. Focus on consistency and impact."),
    (False, 60, "Good individual {role} performance despite the loss. Work on team coordination."),
    (False, 40, "Mixed {role} performance in a losing match. Several areas need attention."),
)
FALLBACK_SUMMARY = "Challenging {role} performance with significant room for improvement across multiple areas."


def _first_label(score: float, table: Sequence[Tuple[int, str]], lowest: str) -> str:
    for lower, label in table:
        if score >= lower:
            return label
    return lowest


def impact_score(player: PlayerRecord, role: Union[Role, str]) -> int:
    score = float(IMPACT_BASE)
    for stat, points, per in IMPACT_TERMS[Role.parse(role)]:
        score += getattr(player, stat) * points / per
    return _clamp(score)


def overall_assessment(ctx: InsightContext) -> OverallAssessment:
    won = ctx.match.player_won(ctx.player)
    impact = impact_score(ctx.player, ctx.role)
    summary = FALLBACK_SUMMARY
    for needs_win, minimum, text in SUMMARY_RULES:
        if won == needs_win and impact >= minimum:
            summary = text
            break
    return OverallAssessment(
        result="Victory" if won else "Defeat",
        performance=_first_label(impact, PERFORMANCE_LEVELS, "Poor"),
        kda=f"{ctx.player.kills}/{ctx.player.deaths}/{ctx.player.assists}",
        kda_ratio=ctx.player.kda,
        impact_score=impact,
        grade=_first_label(impact, ASSESSMENT_GRADES, "D"),
        summary=summary.format(role=ctx.role.value),
    )


# =============================================================================
# ACTIONABLE TIPS
# =============================================================================

MAX_TIPS = 8

TIP_RULES: Tuple[Rule, ...] = (
    Rule(
        "minimap",
        lambda c: True,
        lambda c: Tip("Map Awareness", "Check minimap every 3-5 seconds", "Easy", "High", "Immediate"),
    ),
    Rule(
        "carry_jungle",
        lambda c: c.role is Role.CARRY,
        lambda c: Tip("Farming", "Farm jungle camps between creep waves", "Medium", "High", "1 week"),
    ),
    Rule(
        "mid_runes",
        lambda c: c.role is Role.MID,
        lambda c: Tip("Rune Control", "Contest every early power rune", "Medium", "High", "1 week"),
    ),
    Rule(
        "offlane_pressure",
        lambda c: c.role is Role.OFFLANE,
        lambda c: Tip("Space Creation", "Draw enemy attention off your carry", "Medium", "High", "2 weeks"),
    ),
    Rule(
        "support_objective_wards",
        lambda c: c.role.is_support,
        lambda c: Tip("Vision", "Place wards before objectives spawn", "Easy", "High", "Immediate"),
    ),
    Rule(
        "escape_route",
        lambda c: c.player.deaths >= 7,
        lambda c: Tip("Positioning", "Pick an escape route before every fight", "Medium", "High", "1 week"),
    ),
    Rule(
        "idle_time",
        lambda c: c.player.gold_per_min < c.farm_expectation[0],
        lambda c: Tip("Farming", "Always move toward a wave or camp", "Medium", "High", "2 weeks"),
    ),
    Rule(
        "last_hit_drill",
        lambda c: c.role in (Role.CARRY, Role.MID) and c.player.last_hits < c.farm_expectation[1],
        lambda c: Tip("Last Hitting", "Warm up with last hits in a demo lobby", "Easy", "Medium", "2 weeks"),
    ),
    Rule(
        "restock_wards",
        lambda c: c.role.is_support and c.player.wards_placed < 10,
        lambda c: Tip("Vision", "Buy observer wards whenever they are in stock", "Easy", "High", "Immediate"),
    ),
    Rule(
        "group_up",
        lambda c: c.participation is not None and c.participation < MIN_TEAMFIGHT_PARTICIPATION,
        lambda c: Tip("Team Fighting", "Move with your team once the first tower falls", "Medium", "High", "1 week"),
    ),
    Rule(
        "target_choice",
        lambda c: c.role is Role.CARRY and c.player.hero_damage < 20000,
        lambda c: Tip("Combat", "Hit the closest reachable target instead of chasing", "Hard", "Medium", "2 weeks"),
    ),
)


# =============================================================================
# NEXT STEPS
# =============================================================================

SHORT_TERM_GOALS: Tuple[Rule, ...] = (
    Rule("map_awareness", lambda c: True, lambda c: "Improve map awareness"),
    Rule("fewer_deaths", lambda c: c.player.deaths > 0, lambda c: "Reduce deaths by 20%"),
    Rule(
        "last_hit_target",
        lambda c: c.role in (Role.CARRY, Role.MID) and c.player.last_hits < c.farm_expectation[1],
        lambda c: f"Reach {c.farm_expectation[1]} last hits in a full-length game",
    ),
    Rule(
        "ward_target",
        lambda c: c.role.is_support and c.player.wards_placed < 10,
        lambda c: "Place at least 10 wards every game",
    ),
)

MEDIUM_TERM_GOALS: Tuple[Rule, ...] = (
    Rule("farm_efficiency", lambda c: True, lambda c: "Increase farm efficiency"),
    Rule("fight_positioning", lambda c: True, lambda c: "Better team fight positioning"),
)

LONG_TERM_GOALS: Tuple[Rule, ...] = (
    Rule("role_mechanics", lambda c: True, lambda c: "Master role-specific mechanics"),
    Rule("game_sense", lambda c: True, lambda c: "Develop game sense"),
)

NEXT_STEP_PLANS: Tuple[Tuple[str, str, Tuple[Rule, ...]], ...] = (
    ("Short-term (1-2 weeks)", "Immediate skill improvements and habit formation", SHORT_TERM_GOALS),
    ("Medium-term (1 month)", "Consistent performance and advanced techniques", MEDIUM_TERM_GOALS),
    ("Long-term (2-3 months)", "Mastery and leadership development", LONG_TERM_GOALS),
)


def next_steps(ctx: InsightContext) -> List[NextStep]:
    return [
        NextStep(timeframe=timeframe, focus=focus, goals=tuple(_evaluate(goals, ctx)))
        for timeframe, focus, goals in NEXT_STEP_PLANS
    ]


class InsightGenerator:
    def __init__(
        self,
        mistake_rules: Sequence[Rule] = MISTAKE_RULES,
        strength_rules: Sequence[Rule] = STRENGTH_RULES,
        coaching_rules: Sequence[Rule] = COACHING_RULES,
        tip_rules: Sequence[Rule] = TIP_RULES,
        max_tips: int = MAX_TIPS,
    ) -> None:
        self.mistake_rules = tuple(mistake_rules)
        self.strength_rules = tuple(strength_rules)
        self.coaching_rules = tuple(coaching_rules)
        self.tip_rules = tuple(tip_rules)
        self.max_tips = max_tips

    def context(self, player: PlayerRecord, match: MatchRecord, role: Union[Role, str]) -> InsightContext:
        return InsightContext(
            player=player,
            match=match,
            role=Role.parse(role),
            participation=match.teamfight_participation(player),
        )

    def generate(self, player: PlayerRecord, match: MatchRecord, role: Union[Role, str]) -> InsightReport:
        ctx = self.context(player, match, role)
        mistakes = sorted(_evaluate(self.mistake_rules, ctx), key=lambda f: f.priority or 0)
        strengths = _evaluate(self.strength_rules, ctx)
        coaching = sorted(_evaluate(self.coaching_rules, ctx), key=lambda p: p.priority)
        areas = improvement_areas(ctx)
        return InsightReport(
            mistakes=mistakes,
            strengths=strengths,
            coaching_points=coaching,
            improvement_score=round_half_up(sum(areas.values()) / len(areas)),
            improvement_areas=areas,
            assessment=overall_assessment(ctx),
            actionable_tips=_evaluate(self.tip_rules, ctx)[: self.max_tips],
            next_steps=next_steps(ctx),
        )


def _evaluate(rules: Sequence[Rule], ctx: InsightContext) -> List:
    findings = []
    for rule in rules:
        if rule.predicate(ctx):
            findings.append(rule.build(ctx))
    logger.debug("%d of %d rules fired", len(findings), len(rules))
    return findings


def improvement_areas(ctx: InsightContext) -> Dict[str, int]:
    """Sub-area scores, each falling back to its neutral default."""
    areas = {}
    for name, scorer in IMPROVEMENT_AREAS:
        score = scorer(ctx)
        areas[name] = NEUTRAL_AREA_SCORES[name] if score is None else score
    return areas
