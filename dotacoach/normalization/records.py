"""Typed records built from raw OpenDota payloads.

Raw match JSON is loosely shaped: most fields may be missing depending on
whether the replay was parsed. Records fill absent numbers with 0 and absent
collections with empty tuples, and remember which keys were actually
supplied in ``present_fields`` so callers can tell "zero" from "unknown".
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from dotacoach.constants import RADIANT_SLOT_LIMIT, TEAM_SIZE
from dotacoach.exceptions import MalformedDataError, NotFoundError


_INT_FIELDS = (
    "kills",
    "deaths",
    "assists",
    "gold",
    "total_gold",
    "total_xp",
    "gold_per_min",
    "xp_per_min",
    "net_worth",
    "last_hits",
    "denies",
    "gold_spent",
    "buyback_count",
    "hero_damage",
    "tower_damage",
    "hero_healing",
    "obs_placed",
    "sen_placed",
    "observer_kills",
    "sentry_kills",
    "neutral_kills",
)

_SERIES_FIELDS = ("lh_t", "xp_t", "gold_t", "dn_t")

_LOG_FIELDS = (
    "purchase_log",
    "obs_log",
    "sen_log",
    "kills_log",
    "buyback_log",
    "runes_log",
    "deaths_log",
)

_ITEM_SLOTS = tuple(f"item_{i}" for i in range(6))
_BACKPACK_SLOTS = tuple(f"backpack_{i}" for i in range(3))


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_series(value: Any) -> Tuple[int, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(_as_int(v) for v in value)


def _as_log(value: Any) -> Tuple[Dict[str, Any], ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(dict(event) for event in value if isinstance(event, Mapping))


def _slot_items(payload: Mapping[str, Any], slots: Tuple[str, ...]) -> Tuple[int, ...]:
    items = []
    for slot in slots:
        item_id = _as_int(payload.get(slot))
        if item_id:
            items.append(item_id)
    return tuple(items)


@dataclass(frozen=True)
class PlayerRecord:
    player_slot: int
    account_id: Optional[int] = None
    hero_id: int = 0

    kills: int = 0
    deaths: int = 0
    assists: int = 0

    gold: int = 0
    total_gold: int = 0
    total_xp: int = 0
    gold_per_min: int = 0
    xp_per_min: int = 0
    net_worth: int = 0
    last_hits: int = 0
    denies: int = 0
    gold_spent: int = 0
    buyback_count: int = 0

    hero_damage: int = 0
    tower_damage: int = 0
    hero_healing: int = 0
    teamfight_participation: Optional[float] = None

    obs_placed: int = 0
    sen_placed: int = 0
    observer_kills: int = 0
    sentry_kills: int = 0
    neutral_kills: int = 0

    items: Tuple[int, ...] = ()
    backpack: Tuple[int, ...] = ()
    purchase: Dict[str, int] = field(default_factory=dict, hash=False, compare=False)
    lane_role: Optional[int] = None

    lh_t: Tuple[int, ...] = ()
    xp_t: Tuple[int, ...] = ()
    gold_t: Tuple[int, ...] = ()
    dn_t: Tuple[int, ...] = ()

    purchase_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)
    obs_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)
    sen_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)
    kills_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)
    buyback_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)
    runes_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)
    deaths_log: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)

    gold_reasons: Dict[str, int] = field(default_factory=dict, hash=False, compare=False)
    firstblood_claimed: bool = False
    present_fields: FrozenSet[str] = frozenset()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PlayerRecord":
        if not isinstance(payload, Mapping):
            raise MalformedDataError("player", f"expected an object, got {type(payload).__name__}")
        if payload.get("player_slot") is None:
            raise MalformedDataError("player", "missing player_slot")

        present = frozenset(k for k, v in payload.items() if v is not None)
        values: Dict[str, Any] = {name: _as_int(payload.get(name)) for name in _INT_FIELDS}
        values.update({name: _as_series(payload.get(name)) for name in _SERIES_FIELDS})
        values.update({name: _as_log(payload.get(name)) for name in _LOG_FIELDS})

        account_id = payload.get("account_id")
        lane_role = payload.get("lane_role")
        purchase = payload.get("purchase") if isinstance(payload.get("purchase"), Mapping) else {}
        gold_reasons = payload.get("gold_reasons") if isinstance(payload.get("gold_reasons"), Mapping) else {}

        return cls(
            player_slot=_as_int(payload.get("player_slot")),
            account_id=_as_int(account_id) if account_id is not None else None,
            hero_id=_as_int(payload.get("hero_id")),
            teamfight_participation=_as_float(payload.get("teamfight_participation")),
            items=_slot_items(payload, _ITEM_SLOTS),
            backpack=_slot_items(payload, _BACKPACK_SLOTS),
            purchase={str(k): _as_int(v) for k, v in purchase.items()},
            lane_role=_as_int(lane_role) if lane_role is not None else None,
            gold_reasons={str(k): _as_int(v) for k, v in gold_reasons.items()},
            firstblood_claimed=bool(payload.get("firstblood_claimed")),
            present_fields=present,
            **values,
        )

    def has(self, name: str) -> bool:
        return name in self.present_fields

    @property
    def is_radiant(self) -> bool:
        return self.player_slot < RADIANT_SLOT_LIMIT

    def position(self, team_size: int = TEAM_SIZE) -> int:
        """Normalized 1-based position within the player's side."""
        team_size = max(1, team_size)
        return (self.player_slot % RADIANT_SLOT_LIMIT) % team_size + 1

    @property
    def kda(self) -> float:
        if self.deaths > 0:
            return (self.kills + self.assists) / self.deaths
        return float(self.kills + self.assists)

    @property
    def wards_placed(self) -> int:
        return self.obs_placed + self.sen_placed

    @property
    def wards_destroyed(self) -> int:
        return self.observer_kills + self.sentry_kills

    def metric(self, name: str) -> float:
        """Raw value for a benchmark metric name, 0 when unknown."""
        value = getattr(self, name, 0)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return 0.0

    def inventory(self) -> Tuple[int, ...]:
        return self.items + self.backpack


@dataclass(frozen=True)
class MatchRecord:
    match_id: int
    duration: int
    radiant_win: bool
    players: Tuple[PlayerRecord, ...]
    start_time: Optional[int] = None
    game_mode: Optional[int] = None
    teamfights: Tuple[Dict[str, Any], ...] = field(default=(), hash=False, compare=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MatchRecord":
        if not isinstance(payload, Mapping):
            raise MalformedDataError("match", f"expected an object, got {type(payload).__name__}")
        missing = [name for name in ("match_id", "duration") if payload.get(name) is None]
        if missing:
            raise MalformedDataError("match", f"missing {', '.join(missing)}")
        raw_players = payload.get("players")
        if not isinstance(raw_players, list) or not raw_players:
            raise MalformedDataError("match", "missing players")

        start_time = payload.get("start_time")
        game_mode = payload.get("game_mode")
        return cls(
            match_id=_as_int(payload["match_id"]),
            duration=_as_int(payload["duration"]),
            radiant_win=bool(payload.get("radiant_win")),
            players=tuple(PlayerRecord.from_payload(p) for p in raw_players),
            start_time=_as_int(start_time) if start_time is not None else None,
            game_mode=_as_int(game_mode) if game_mode is not None else None,
            teamfights=_as_log(payload.get("teamfights")),
        )

    @property
    def duration_minutes(self) -> float:
        return self.duration / 60.0

    @property
    def team_size(self) -> int:
        radiant = sum(1 for p in self.players if p.is_radiant)
        return max(1, radiant, len(self.players) - radiant)

    def side_players(self, radiant: bool) -> List[PlayerRecord]:
        return [p for p in self.players if p.is_radiant == radiant]

    def teammates(self, player: PlayerRecord) -> List[PlayerRecord]:
        return [
            p for p in self.side_players(player.is_radiant)
            if p.player_slot != player.player_slot
        ]

    def player_for_account(self, account_id: int) -> PlayerRecord:
        for player in self.players:
            if player.account_id == account_id:
                return player
        raise NotFoundError("player", f"{account_id} in match {self.match_id}")

    def player_won(self, player: PlayerRecord) -> bool:
        return self.radiant_win == player.is_radiant

    def team_kills(self, radiant: bool) -> int:
        return sum(p.kills for p in self.side_players(radiant))

    def teamfight_participation(self, player: PlayerRecord) -> Optional[float]:
        """Upstream value when supplied, else (kills + assists) / team kills."""
        if player.teamfight_participation is not None:
            return player.teamfight_participation
        team_kills = self.team_kills(player.is_radiant)
        if team_kills <= 0:
            return None
        return min(1.0, (player.kills + player.assists) / team_kills)


# =============================================================================
# BENCHMARKS
# =============================================================================

@dataclass(frozen=True)
class BenchmarkPoint:
    percentile: float
    value: float


@dataclass(frozen=True)
class BenchmarkDistribution:
    metric: str
    points: Tuple[BenchmarkPoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def as_pairs(self) -> List[Tuple[float, float]]:
        return [(p.percentile, p.value) for p in self.points]


def parse_distribution(metric: str, raw_points: Any) -> BenchmarkDistribution:
    """Normalize one metric's ``[{percentile, value}, ...]`` list.

    Fractional percentiles (all <= 1.0) are scaled to 0-100. Points are
    ordered by percentile and values forced non-decreasing.
    """
    if not isinstance(raw_points, list):
        raise MalformedDataError("benchmarks", f"{metric}: expected a list of points")
    pairs = []
    for raw in raw_points:
        if not isinstance(raw, Mapping):
            raise MalformedDataError("benchmarks", f"{metric}: point is not an object")
        percentile = _as_float(raw.get("percentile"))
        value = _as_float(raw.get("value"))
        if percentile is None or value is None:
            raise MalformedDataError("benchmarks", f"{metric}: point missing percentile or value")
        pairs.append((percentile, value))

    if pairs and max(p for p, _ in pairs) <= 1.0:
        pairs = [(p * 100.0, v) for p, v in pairs]
    pairs.sort(key=lambda pair: pair[0])

    points = []
    running_max = None
    for percentile, value in pairs:
        running_max = value if running_max is None else max(running_max, value)
        points.append(BenchmarkPoint(percentile=round(percentile, 4), value=running_max))
    return BenchmarkDistribution(metric=metric, points=tuple(points))


def parse_benchmarks(payload: Mapping[str, Any]) -> Dict[str, BenchmarkDistribution]:
    """Parse ``{result: {metric: [...]}}`` into distributions keyed by metric."""
    if not isinstance(payload, Mapping):
        raise MalformedDataError("benchmarks", "expected an object")
    result = payload.get("result")
    if not isinstance(result, Mapping):
        raise MalformedDataError("benchmarks", "missing result")
    distributions = {}
    for metric, raw_points in result.items():
        distribution = parse_distribution(str(metric), raw_points)
        if distribution.points:
            distributions[str(metric)] = distribution
    return distributions
