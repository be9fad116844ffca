"""Role detection from positional and economic signals.

An upstream ``lane_role`` hint of 1-5 is trusted as-is (confidence 85).
Without one, each role gets a non-negative score and the highest wins,
ties going to the earlier role in ``ROLE_PRECEDENCE``. The heuristic path
reports no confidence.

Per-role score terms:

    Carry         4 * gold ratio
                  + 3 if at most 2 wards placed
                  + hero damage / 10k (max 3)
                  + last hits per minute / 3 (max 3)
    Mid           4 * xp ratio
                  + xp per minute / 200 (max 4)
                  + last hits at 10 minutes / 40 (max 2)
    Offlane       tower damage / 1500 (max 3)
                  + assists / 8 (max 2)
                  + 2 * farm priority (max 2.4)
    Support       3 * (2 - farm priority), floored at 0
                  + support activity / 4 (max 5)
    Hard Support  4 * (2 - farm priority), floored at 0
                  + support activity / 3 (max 6)

Every role also gets +2 when the player's slot position matches it.
"""

from dataclasses import dataclass, field
from statistics import mean
from typing import Dict, List, Mapping, Optional, Tuple, Union
import logging

from dotacoach.constants import (
    HINT_CONFIDENCE,
    LANE_ROLE_HINTS,
    ROLE_DESCRIPTIONS,
    ROLE_POSITIONS,
    ROLE_PRECEDENCE,
    SUPPORT_ITEMS,
    Role,
)
from dotacoach.normalization import MatchRecord, PlayerRecord

logger = logging.getLogger(__name__)

POSITION_BONUS = 2.0


@dataclass(frozen=True)
class RoleDetection:
    role: Role
    confidence: Optional[int]
    source: str
    scores: Dict[str, float] = field(default_factory=dict, hash=False, compare=False)
    farm_priority: float = 1.0
    support_activity: float = 0.0
    position: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "role": self.role.value,
            "confidence": self.confidence,
            "source": self.source,
            "scores": dict(self.scores),
            "farm_priority": round(self.farm_priority, 3),
            "support_activity": round(self.support_activity, 2),
            "position": self.position,
        }


def role_description(role: Union[Role, str]) -> str:
    return ROLE_DESCRIPTIONS[Role.parse(role)]


def _ratio(value: float, others: List[float]) -> Optional[float]:
    if not others:
        return None
    baseline = mean(others)
    if baseline <= 0:
        return None
    return value / baseline


def farm_ratios(player: PlayerRecord, match: MatchRecord) -> Tuple[Optional[float], Optional[float], float]:
    """(gold ratio, xp ratio, farm priority) against same-side teammates.

    A ratio is None when the teammates' mean is zero or there are no
    teammates; farm priority averages whichever ratios exist, else 1.0.
    """
    teammates = match.teammates(player)
    gold = _ratio(player.gold_per_min, [p.gold_per_min for p in teammates])
    xp = _ratio(player.xp_per_min, [p.xp_per_min for p in teammates])
    available = [r for r in (gold, xp) if r is not None]
    priority = mean(available) if available else 1.0
    return gold, xp, priority


def count_support_items(player: PlayerRecord, item_names: Optional[Mapping[int, str]] = None) -> int:
    if not item_names:
        return 0
    count = 0
    for item_id in player.inventory():
        name = item_names.get(item_id, "")
        if name.startswith("item_"):
            name = name[len("item_"):]
        if name in SUPPORT_ITEMS:
            count += 1
    return count


def support_activity(player: PlayerRecord, item_names: Optional[Mapping[int, str]] = None) -> float:
    return (
        2.0 * player.wards_placed
        + 1.5 * player.wards_destroyed
        + min(player.hero_healing / 1000.0, 10.0)
        + 0.25 * player.assists
        + 3.0 * count_support_items(player, item_names)
    )


class RoleDetector:
    def __init__(self, item_names: Optional[Mapping[int, str]] = None) -> None:
        self.item_names = dict(item_names or {})

    def detect(
        self,
        player: PlayerRecord,
        match: MatchRecord,
        item_names: Optional[Mapping[int, str]] = None,
    ) -> RoleDetection:
        names = item_names if item_names is not None else self.item_names
        gold_ratio, xp_ratio, priority = farm_ratios(player, match)
        activity = support_activity(player, names)
        position = player.position(match.team_size)

        hinted = LANE_ROLE_HINTS.get(player.lane_role) if player.lane_role is not None else None
        if hinted is not None:
            return RoleDetection(
                role=hinted,
                confidence=HINT_CONFIDENCE,
                source="hint",
                farm_priority=priority,
                support_activity=activity,
                position=position,
            )

        scores = self._score_roles(
            player,
            gold_ratio if gold_ratio is not None else priority,
            xp_ratio if xp_ratio is not None else priority,
            priority,
            activity,
            position,
            match.duration_minutes,
        )
        best = ROLE_PRECEDENCE[0]
        for role in ROLE_PRECEDENCE[1:]:
            if scores[role] > scores[best]:
                best = role
        logger.debug(
            "Detected %s for slot %d (farm priority %.2f, support %.1f)",
            best.value,
            player.player_slot,
            priority,
            activity,
        )
        return RoleDetection(
            role=best,
            confidence=None,
            source="heuristic",
            scores={role.value: round(score, 3) for role, score in scores.items()},
            farm_priority=priority,
            support_activity=activity,
            position=position,
        )

    @staticmethod
    def _score_roles(
        player: PlayerRecord,
        gold_ratio: float,
        xp_ratio: float,
        priority: float,
        activity: float,
        position: int,
        minutes: float,
    ) -> Dict[Role, float]:
        lh_per_min = player.last_hits / minutes if minutes > 0 else 0.0
        early = player.lh_t[:10]
        lh_at_10 = early[-1] if early else 0
        support_need = max(0.0, 2.0 - priority)

        scores = {
            Role.CARRY: (
                4.0 * gold_ratio
                + (3.0 if player.wards_placed <= 2 else 0.0)
                + min(player.hero_damage / 10000.0, 3.0)
                + min(lh_per_min / 3.0, 3.0)
            ),
            Role.MID: (
                4.0 * xp_ratio
                + min(player.xp_per_min / 200.0, 4.0)
                + min(lh_at_10 / 40.0, 2.0)
            ),
            Role.OFFLANE: (
                min(player.tower_damage / 1500.0, 3.0)
                + min(player.assists / 8.0, 2.0)
                + 2.0 * min(priority, 1.2)
            ),
            Role.SUPPORT: 3.0 * support_need + min(activity / 4.0, 5.0),
            Role.HARD_SUPPORT: 4.0 * support_need + min(activity / 3.0, 6.0),
        }
        for role in scores:
            if ROLE_POSITIONS[role] == position:
                scores[role] += POSITION_BONUS
        return scores
