"""Per-phase breakdowns: laning, economy, combat and vision.

All functions return JSON-ready dicts. Missing time series or logs give
empty progressions and zero counts rather than estimates.
"""

from typing import Any, Dict, List, Optional, Union

import pandas as pd

from dotacoach.constants import CONSUMABLE_ITEMS, MAJOR_ITEMS, Role
from dotacoach.models.grading import round_half_up
from dotacoach.normalization import MatchRecord, PlayerRecord


LANING_MINUTES = 10
LANING_SECONDS = 600

OBSERVER_LIFETIME = 420
SENTRY_LIFETIME = 300
SENTRY_COST = 50

NET_WORTH_TARGETS = (5000, 10000, 15000, 20000)

GOLD_REASONS = {
    "0": "Other",
    "1": "Death",
    "2": "Buyback",
    "3": "Abandon",
    "11": "Structures",
    "12": "Heroes",
    "13": "Creeps",
    "14": "Neutrals",
    "15": "Roshan",
}

# Minimum observers, sentries and dewards expected per role.
VISION_EXPECTATIONS: Dict[Role, Dict[str, int]] = {
    Role.HARD_SUPPORT: {"min_obs": 15, "min_sen": 10, "min_dewarding": 5},
    Role.SUPPORT: {"min_obs": 8, "min_sen": 5, "min_dewarding": 3},
    Role.OFFLANE: {"min_obs": 3, "min_sen": 2, "min_dewarding": 1},
    Role.MID: {"min_obs": 2, "min_sen": 1, "min_dewarding": 1},
    Role.CARRY: {"min_obs": 1, "min_sen": 0, "min_dewarding": 0},
}

_PROGRESSION_COLUMNS = {
    "last_hits": "lh_t",
    "xp": "xp_t",
    "gold": "gold_t",
    "denies": "dn_t",
}


# =============================================================================
# LANING
# =============================================================================

def laning_progression(player: PlayerRecord, minutes: int = LANING_MINUTES) -> pd.DataFrame:
    """Per-minute samples for the first ``minutes`` minutes, indexed 1..n.

    Only series the upstream supplied become columns; with none at all the
    frame is empty.
    """
    columns = {}
    for column, attr in _PROGRESSION_COLUMNS.items():
        series = getattr(player, attr)[:minutes]
        if series:
            columns[column] = pd.Series(series, index=range(1, len(series) + 1), dtype="float64")
    if not columns:
        return pd.DataFrame(columns=list(_PROGRESSION_COLUMNS))
    frame = pd.DataFrame(columns)
    frame.index.name = "minute"
    return frame


def _value_at(frame: pd.DataFrame, column: str, minute: int) -> int:
    if column not in frame.columns or minute not in frame.index:
        return 0
    value = frame.at[minute, column]
    return 0 if pd.isna(value) else int(value)


def _per_minute(frame: pd.DataFrame, column: str, decimals: int = 0) -> float:
    if column not in frame.columns:
        return 0
    series = frame[column].dropna()
    if series.empty:
        return 0
    rate = float(series.iloc[-1]) / len(series)
    return round(rate, decimals) if decimals else round_half_up(rate)


def count_deaths_between(player: PlayerRecord, start: float, end: float) -> int:
    return sum(1 for event in player.deaths_log if start <= float(event.get("time", -1)) <= end)


def lane_score(cs_at_10: int, xp_at_10: int, deaths_in_lane: int, first_blood: bool) -> int:
    score = 50
    if cs_at_10 >= 80:
        score += 25
    elif cs_at_10 >= 60:
        score += 15
    elif cs_at_10 >= 40:
        score += 5
    elif cs_at_10 < 20:
        score -= 15

    if xp_at_10 >= 4000:
        score += 20
    elif xp_at_10 >= 3000:
        score += 10
    elif xp_at_10 < 2000:
        score -= 10

    score -= deaths_in_lane * 15
    if first_blood:
        score += 10
    return max(0, min(100, score))


def lane_outcome(score: int) -> str:
    if score >= 70:
        return "Won"
    if score >= 45:
        return "Drew"
    return "Lost"


def analyze_laning(player: PlayerRecord) -> Dict[str, Any]:
    frame = laning_progression(player)
    cs_at_10 = _value_at(frame, "last_hits", LANING_MINUTES)
    xp_at_10 = _value_at(frame, "xp", LANING_MINUTES)
    gold_at_10 = _value_at(frame, "gold", LANING_MINUTES)
    deaths_in_lane = count_deaths_between(player, 0, LANING_SECONDS)
    score = lane_score(cs_at_10, xp_at_10, deaths_in_lane, player.firstblood_claimed)

    return {
        "outcome": lane_outcome(score),
        "score": score,
        "cs_at_10": cs_at_10,
        "xp_at_10": xp_at_10,
        "gold_at_10": gold_at_10,
        "deaths_in_lane": deaths_in_lane,
        "first_blood": player.firstblood_claimed,
        "efficiency": {
            "cs": _per_minute(frame, "last_hits", decimals=1),
            "xp": _per_minute(frame, "xp"),
            "gold": _per_minute(frame, "gold"),
        },
        "progression": {
            column: [int(v) for v in frame[column].dropna()] if column in frame.columns else []
            for column in _PROGRESSION_COLUMNS
        },
    }


# =============================================================================
# ECONOMY
# =============================================================================

def gold_sources(player: PlayerRecord) -> Dict[str, int]:
    sources: Dict[str, int] = {}
    for reason, amount in player.gold_reasons.items():
        name = GOLD_REASONS.get(str(reason), "Unknown")
        sources[name] = sources.get(name, 0) + amount
    return sources


def farm_distribution(sources: Dict[str, int]) -> Dict[str, int]:
    total = sum(sources.values())
    if total <= 0:
        return {}
    return {name: round_half_up(amount / total * 100) for name, amount in sources.items()}


def item_timings(player: PlayerRecord) -> List[Dict[str, Any]]:
    timings = []
    for event in player.purchase_log:
        key = str(event.get("key", ""))
        if any(item in key for item in MAJOR_ITEMS):
            timings.append({
                "item": key,
                "minute": int(float(event.get("time", 0)) // 60),
                "cost": int(event.get("cost") or 0),
            })
    return sorted(timings, key=lambda t: t["minute"])


def _count_purchases(player: PlayerRecord, names) -> int:
    return sum(
        1 for event in player.purchase_log
        if any(name in str(event.get("key", "")) for name in names)
    )


def economy_milestones(player: PlayerRecord, timings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    milestones = []
    for target in NET_WORTH_TARGETS:
        minute = next((i for i, gold in enumerate(player.gold_t) if gold >= target), None)
        if minute is not None:
            milestones.append({
                "type": "networth",
                "target": target,
                "minute": minute,
                "description": f"Reached {target} net worth",
            })
    for timing in timings:
        milestones.append({
            "type": "item",
            "target": timing["item"],
            "minute": timing["minute"],
            "description": f"Acquired {timing['item']}",
        })
    return sorted(milestones, key=lambda m: m["minute"])


def compare_economy_to_team(player: PlayerRecord, match: MatchRecord) -> Dict[str, Any]:
    side = match.side_players(player.is_radiant)
    team_average = sum(p.gold_per_min for p in side) / len(side) if side else 0.0
    ranked = sorted(side, key=lambda p: p.gold_per_min, reverse=True)
    rank = next(
        (i + 1 for i, p in enumerate(ranked) if p.player_slot == player.player_slot),
        0,
    )
    return {
        "team_average": round_half_up(team_average),
        "player_gpm": player.gold_per_min,
        "relative_performance": (
            round_half_up(player.gold_per_min / team_average * 100) if team_average > 0 else 100
        ),
        "rank": rank,
    }


def analyze_economy(player: PlayerRecord, match: MatchRecord) -> Dict[str, Any]:
    sources = gold_sources(player)
    timings = item_timings(player)
    gold_spent = player.gold_spent
    if not player.has("gold_spent"):
        gold_spent = sum(int(event.get("cost") or 0) for event in player.purchase_log)

    return {
        "gold_sources": sources,
        "item_timings": timings,
        "net_worth_progression": list(player.gold_t),
        "resource_allocation": {
            "buybacks": player.buyback_count,
            "consumables": _count_purchases(player, CONSUMABLE_ITEMS),
            "tp_scrolls": _count_purchases(player, ("tpscroll",)),
        },
        "efficiency": {
            "gold_per_min": player.gold_per_min,
            "gold_spent": gold_spent,
            "damage_per_net_worth": (
                round(player.hero_damage / player.net_worth, 2) if player.net_worth > 0 else 0
            ),
            "farm_distribution": farm_distribution(sources),
        },
        "milestones": economy_milestones(player, timings),
        "comparison": compare_economy_to_team(player, match),
    }


# =============================================================================
# COMBAT
# =============================================================================

def teamfight_impact(entry: Dict[str, Any]) -> int:
    impact = (
        float(entry.get("damage") or 0) / 1000
        + float(entry.get("healing") or 0) / 500
        + float(entry.get("kills") or 0) * 10
        + float(entry.get("assists") or 0) * 5
        - float(entry.get("deaths") or 0) * 15
    )
    return max(0, round_half_up(impact))


def player_teamfights(player: PlayerRecord, match: MatchRecord) -> List[Dict[str, Any]]:
    """The player's line from each teamfight, matched by roster index."""
    try:
        index = match.players.index(player)
    except ValueError:
        return []
    fights = []
    for fight in match.teamfights:
        entries = fight.get("players") or []
        entry = entries[index] if index < len(entries) and isinstance(entries[index], dict) else {}
        start = int(fight.get("start") or 0)
        end = int(fight.get("end") or start)
        fights.append({
            "start": start,
            "end": end,
            "duration": end - start,
            "damage": int(entry.get("damage") or 0),
            "healing": int(entry.get("healing") or 0),
            "gold_delta": int(entry.get("gold_delta") or 0),
            "xp_delta": int(entry.get("xp_delta") or 0),
            "deaths": int(entry.get("deaths") or 0),
            "impact": teamfight_impact(entry),
        })
    return fights


def damage_distribution(player: PlayerRecord) -> Dict[str, int]:
    creep = player.last_hits * 50  # rough per-creep estimate
    total = player.hero_damage + player.tower_damage + creep
    if total <= 0:
        return {}
    return {
        "hero": round_half_up(player.hero_damage / total * 100),
        "tower": round_half_up(player.tower_damage / total * 100),
        "creep": round_half_up(creep / total * 100),
        "total": total,
    }


def positioning_score(player: PlayerRecord, participation: Optional[float]) -> int:
    score = 50 + player.assists * 2 + (participation or 0.0) * 30 - player.deaths * 8
    return max(0, min(100, round_half_up(score)))


def safety_rating(deaths: int, duration_seconds: int) -> str:
    minutes = duration_seconds / 60 if duration_seconds > 0 else 30.0
    per_minute = deaths / minutes
    if per_minute <= 0.1:
        return "Excellent"
    if per_minute <= 0.2:
        return "Good"
    if per_minute <= 0.3:
        return "Average"
    return "Poor"


def kill_participation(player: PlayerRecord, match: MatchRecord) -> int:
    team_kills = match.team_kills(player.is_radiant)
    if team_kills <= 0:
        return 0
    return round_half_up((player.kills + player.assists) / team_kills * 100)


def analyze_combat(player: PlayerRecord, match: MatchRecord) -> Dict[str, Any]:
    fights = player_teamfights(player, match)
    deaths_in_fights = sum(f["deaths"] for f in fights)
    survival = round_half_up((len(fights) - deaths_in_fights) / len(fights) * 100) if fights else 100

    strengths = []
    if player.hero_damage >= 25000:
        strengths.append("High damage output")
    if player.assists >= 15:
        strengths.append("Strong team fight participation")
    if player.deaths <= 3:
        strengths.append("Excellent positioning")

    weaknesses = []
    if player.deaths >= 10:
        weaknesses.append("Poor positioning and deaths")
    if player.hero_damage < 10000:
        weaknesses.append("Low damage output")
    if player.assists < 5:
        weaknesses.append("Poor team fight participation")

    return {
        "teamfights": fights,
        "damage_distribution": damage_distribution(player),
        "positioning": {
            "score": positioning_score(player, match.teamfight_participation(player)),
            "safety_rating": safety_rating(player.deaths, match.duration),
        },
        "efficiency": {
            "kill_participation": kill_participation(player, match),
            "damage_per_gold": round(player.hero_damage / (player.net_worth or 1), 2),
            "survival_rate": survival,
        },
        "strengths": strengths,
        "weaknesses": weaknesses,
    }


# =============================================================================
# VISION
# =============================================================================

def ward_metrics(player: PlayerRecord) -> Dict[str, int]:
    return {
        "obs_placed": player.obs_placed,
        "sen_placed": player.sen_placed,
        "obs_kills": player.observer_kills,
        "sen_kills": player.sentry_kills,
        "total_wards": player.wards_placed,
        "total_dewarding": player.wards_destroyed,
    }


def vision_score(player: PlayerRecord, duration_seconds: int) -> int:
    """Weighted ward activity, normalized to a 45 minute game."""
    score = (
        player.obs_placed * 10
        + player.sen_placed * 8
        + player.observer_kills * 15
        + player.sentry_kills * 12
    )
    minutes = duration_seconds / 60
    if minutes > 0:
        score = score / minutes * 45
    return round_half_up(score)


def vision_grade(score: int) -> str:
    if score >= 150:
        return "S"
    if score >= 100:
        return "A"
    if score >= 70:
        return "B"
    if score >= 40:
        return "C"
    return "D"


def ward_uptime(player: PlayerRecord, duration_seconds: int) -> int:
    if duration_seconds <= 0:
        return 0
    return min(100, round_half_up(player.obs_placed * OBSERVER_LIFETIME / duration_seconds * 100))


def vision_coverage(total_wards: int) -> str:
    if total_wards >= 30:
        return "Excellent"
    if total_wards >= 20:
        return "Good"
    if total_wards >= 10:
        return "Average"
    return "Poor"


def ward_timeline(player: PlayerRecord) -> List[Dict[str, Any]]:
    timeline = []
    for kind, log, lifetime in (
        ("observer", player.obs_log, OBSERVER_LIFETIME),
        ("sentry", player.sen_log, SENTRY_LIFETIME),
    ):
        for ward in log:
            timeline.append({
                "type": kind,
                "time": ward.get("time"),
                "x": ward.get("x"),
                "y": ward.get("y"),
                "lifetime": lifetime,
            })
    return sorted(timeline, key=lambda w: w["time"] or 0)


def vision_recommendations(metrics: Dict[str, int]) -> List[Dict[str, str]]:
    recommendations = []
    if metrics["obs_placed"] < 5:
        recommendations.append({
            "priority": "High",
            "category": "Ward Placement",
            "suggestion": "Place more observer wards to provide vision for your team",
        })
    if metrics["total_dewarding"] < 3:
        recommendations.append({
            "priority": "Medium",
            "category": "Dewarding",
            "suggestion": "Invest in sentry wards to deward enemy vision",
        })
    return recommendations


def analyze_vision(player: PlayerRecord, match: MatchRecord, role: Union[Role, str] = Role.SUPPORT) -> Dict[str, Any]:
    role = Role.parse(role)
    metrics = ward_metrics(player)
    score = vision_score(player, match.duration)
    expected = VISION_EXPECTATIONS[role]
    sentries_bought = player.purchase.get("ward_sentry", 0)
    involvement = player.kills + player.assists

    return {
        "vision_score": score,
        "grade": vision_grade(score),
        "ward_metrics": metrics,
        "map_control": {
            "objective_control": (
                "High" if player.tower_damage > 2000 else "Medium" if player.tower_damage > 1000 else "Low"
            ),
            "jungle_control": (
                "High" if player.neutral_kills > 100 else "Medium" if player.neutral_kills > 50 else "Low"
            ),
            "map_presence": "High" if involvement >= 20 else "Medium" if involvement >= 12 else "Low",
        },
        "timeline": ward_timeline(player),
        "efficiency": {
            "ward_uptime": ward_uptime(player, match.duration),
            "deward_efficiency": (
                round_half_up(player.wards_destroyed / sentries_bought * 100) if sentries_bought > 0 else 0
            ),
            "coverage": vision_coverage(player.wards_placed),
            "gold_investment": player.sen_placed * SENTRY_COST,
        },
        "comparison": {
            "role": role.value,
            "expected": dict(expected),
            "meets_observer_target": player.obs_placed >= expected["min_obs"],
            "meets_sentry_target": player.sen_placed >= expected["min_sen"],
            "meets_dewarding_target": player.wards_destroyed >= expected["min_dewarding"],
        },
        "recommendations": vision_recommendations(metrics),
    }


def analyze_phases(player: PlayerRecord, match: MatchRecord, role: Union[Role, str]) -> Dict[str, Dict[str, Any]]:
    return {
        "laning": analyze_laning(player),
        "economy": analyze_economy(player, match),
        "combat": analyze_combat(player, match),
        "vision": analyze_vision(player, match, role),
    }
