"""Configuration for the analysis pipeline."""

from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Optional, Dict
import json
import os

from dotacoach.exceptions import ConfigurationError


_DEFAULT_BASE_URL = "https://api.opendota.com/api"
_DEFAULT_TIMEOUT = 15.0
_DEFAULT_MAX_RETRIES = 1
_DEFAULT_RATE_LIMIT_BACKOFF = 5.0
_DEFAULT_MAX_CONCURRENT = 4

# Free tier is ~60 req/min; a key lifts that to ~1200 req/min.
_DEFAULT_DELAY_WITHOUT_KEY = 1.0
_DEFAULT_DELAY_WITH_KEY = 0.06

# Cache TTLs (seconds)
_DEFAULT_CACHE_TTL = 300
_DEFAULT_SWEEP_INTERVAL = 60.0
_DEFAULT_ANALYSIS_TTL = 600
_DEFAULT_CACHE_TTL_PREFIXES = {
    "/matches/": 1800,
    "/players/": 600,
    "/benchmarks": 1800,
    "/heroes": 7200,
    "/constants/": 7200,
    "analysis:": _DEFAULT_ANALYSIS_TTL,
}


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _coerce_float(value: Optional[str], default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _coerce_optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_ttl_map(value: Optional[str], default: Dict[str, int]) -> Dict[str, int]:
    """Parse ``prefix=seconds,prefix=seconds`` into a TTL table."""
    if value is None or value == "":
        return dict(default)
    if isinstance(value, dict):
        return {str(k): int(v) for k, v in value.items()}
    table = dict(default)
    for chunk in str(value).split(","):
        chunk = chunk.strip()
        if not chunk or "=" not in chunk:
            continue
        prefix, ttl = chunk.rsplit("=", 1)
        try:
            table[prefix.strip()] = int(float(ttl))
        except ValueError:
            raise ConfigurationError("DOTACOACH_CACHE_TTL_PREFIXES", f"invalid TTL for {prefix!r}: {ttl!r}")
    return table


def _parse_env_file(path: Path) -> Dict[str, str]:
    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = _strip_quotes(value.strip())
    return data


def _load_config_data(path: Path) -> Dict[str, str]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.suffix.lower() == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        # null means "not set" so the environment value stays in effect.
        return {
            str(k): v if isinstance(v, dict) else str(v)
            for k, v in payload.items()
            if v is not None
        }
    return _parse_env_file(path)


def _build(source: Dict[str, str], base: Optional["Config"] = None) -> "Config":
    """Build a config from a flat key/value mapping, falling back to ``base``."""
    api_key = source.get("OPENDOTA_API_KEY", base.api_key if base else "")
    delay_override = _coerce_optional_float(source.get("OPENDOTA_REQUEST_DELAY"))
    if delay_override is None:
        if base is not None and base.request_delay_override is not None:
            delay_override = base.request_delay_override

    return Config(
        base_url=source.get("OPENDOTA_API_URL", base.base_url if base else _DEFAULT_BASE_URL),
        api_key=api_key,
        request_timeout=_coerce_float(
            source.get("OPENDOTA_TIMEOUT"),
            base.request_timeout if base else _DEFAULT_TIMEOUT,
        ),
        request_delay_override=delay_override,
        max_retries=_coerce_int(
            source.get("OPENDOTA_MAX_RETRIES"),
            base.max_retries if base else _DEFAULT_MAX_RETRIES,
        ),
        rate_limit_backoff=_coerce_float(
            source.get("OPENDOTA_RATE_LIMIT_BACKOFF"),
            base.rate_limit_backoff if base else _DEFAULT_RATE_LIMIT_BACKOFF,
        ),
        max_concurrent_requests=_coerce_int(
            source.get("OPENDOTA_MAX_CONCURRENT"),
            base.max_concurrent_requests if base else _DEFAULT_MAX_CONCURRENT,
        ),
        cache_default_ttl=_coerce_int(
            source.get("DOTACOACH_CACHE_TTL"),
            base.cache_default_ttl if base else _DEFAULT_CACHE_TTL,
        ),
        cache_ttl_prefixes=_coerce_ttl_map(
            source.get("DOTACOACH_CACHE_TTL_PREFIXES"),
            base.cache_ttl_prefixes if base else _DEFAULT_CACHE_TTL_PREFIXES,
        ),
        sweep_interval=_coerce_float(
            source.get("DOTACOACH_SWEEP_INTERVAL"),
            base.sweep_interval if base else _DEFAULT_SWEEP_INTERVAL,
        ),
        analysis_ttl=_coerce_int(
            source.get("DOTACOACH_ANALYSIS_TTL"),
            base.analysis_ttl if base else _DEFAULT_ANALYSIS_TTL,
        ),
        cache_dir=source.get("DOTACOACH_CACHE_DIR", base.cache_dir if base else ""),
        log_level=source.get("DOTACOACH_LOG_LEVEL", base.log_level if base else "INFO"),
    )


@dataclass
class Config:
    # Upstream API
    base_url: str = _DEFAULT_BASE_URL
    api_key: str = ""
    request_timeout: float = _DEFAULT_TIMEOUT
    request_delay_override: Optional[float] = None
    max_retries: int = _DEFAULT_MAX_RETRIES
    rate_limit_backoff: float = _DEFAULT_RATE_LIMIT_BACKOFF
    max_concurrent_requests: int = _DEFAULT_MAX_CONCURRENT

    # Cache
    cache_default_ttl: int = _DEFAULT_CACHE_TTL
    cache_ttl_prefixes: Dict[str, int] = field(
        default_factory=lambda: dict(_DEFAULT_CACHE_TTL_PREFIXES)
    )
    sweep_interval: float = _DEFAULT_SWEEP_INTERVAL
    analysis_ttl: int = _DEFAULT_ANALYSIS_TTL
    cache_dir: str = ""

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError("OPENDOTA_API_URL", f"not an http(s) URL: {self.base_url!r}")
        if self.max_retries < 0:
            raise ConfigurationError("OPENDOTA_MAX_RETRIES", "must be >= 0")
        if self.max_concurrent_requests < 1:
            self.max_concurrent_requests = 1

    @property
    def min_request_delay(self) -> float:
        """Minimum spacing between dispatched requests."""
        if self.request_delay_override is not None:
            return max(0.0, self.request_delay_override)
        return _DEFAULT_DELAY_WITH_KEY if self.api_key else _DEFAULT_DELAY_WITHOUT_KEY

    @classmethod
    def from_env(cls) -> "Config":
        return _build(dict(os.environ))

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        env_config = cls.from_env()
        if not config_path:
            return env_config
        file_data = _load_config_data(Path(config_path))
        return _build(file_data, base=env_config)

    def to_dict(self) -> Dict[str, str]:
        data = {k: str(v) for k, v in asdict(self).items()}
        if self.api_key:
            data["api_key"] = "***"
        return data
