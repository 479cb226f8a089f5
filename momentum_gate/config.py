"""momentum-gate — application configuration.

Loads .env variables into a typed config object and reads strategy
definitions from YAML. Every strategy is validated before any is evaluated.
"""

import logging
import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from momentum_gate.models.strategy_definition import WEEKDAY_NAMES, StrategyDefinition

logger = logging.getLogger("momentum_gate")

_WEEKDAY_LOOKUP: dict[str, int] = {}
for _index, _name in enumerate(WEEKDAY_NAMES):
    _WEEKDAY_LOOKUP[_name.lower()] = _index
    _WEEKDAY_LOOKUP[_name[:3].lower()] = _index


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    strategies_path: str
    binance_base_url: str
    candle_interval: str
    candle_limit: int
    request_timeout_seconds: float
    log_level: str


def _env_number(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for environment variable {name}: {raw!r}")


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when a numeric setting cannot
    be parsed or is not positive.
    """
    load_dotenv(dotenv_path=env_path)

    candle_limit = _env_number("CANDLE_LIMIT", "1000", int)
    if candle_limit <= 0:
        raise ValueError("CANDLE_LIMIT must be positive")
    timeout = _env_number("REQUEST_TIMEOUT_SECONDS", "30", float)
    if timeout <= 0:
        raise ValueError("REQUEST_TIMEOUT_SECONDS must be positive")

    return Config(
        strategies_path=os.environ.get(
            "STRATEGIES_PATH", "configuration/configuration.yaml"
        ),
        binance_base_url=os.environ.get(
            "BINANCE_BASE_URL", "https://www.binance.com"
        ).rstrip("/"),
        candle_interval=os.environ.get("CANDLE_INTERVAL", "5m"),
        candle_limit=candle_limit,
        request_timeout_seconds=timeout,
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


# ── Strategy definitions ─────────────────────────────────────────────────


def parse_weekday(value: Any) -> int:
    """Map a weekday name (``"Monday"`` or ``"mon"``) to ``weekday()`` numbering."""
    key = str(value).strip().lower()
    if key not in _WEEKDAY_LOOKUP:
        raise ValueError(f"Unknown weekday: {value!r}")
    return _WEEKDAY_LOOKUP[key]


def parse_time_of_day(value: Any) -> time:
    """Parse an ``HH:MM`` time of day.

    PyYAML reads an unquoted ``14:00`` as the base-60 integer 840, so integers
    are taken as minutes since midnight.
    """
    if isinstance(value, time):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        minutes = value
    else:
        text = str(value).strip()
        hours_part, sep, minutes_part = text.partition(":")
        if not sep:
            raise ValueError(f"Invalid time of day: {value!r}")
        try:
            minutes = int(hours_part) * 60 + int(minutes_part)
        except ValueError:
            raise ValueError(f"Invalid time of day: {value!r}")
    if not 0 <= minutes < 24 * 60:
        raise ValueError(f"Time of day out of range: {value!r}")
    return time(hour=minutes // 60, minute=minutes % 60)


def _optional_float(raw: dict, key: str) -> Optional[float]:
    value = raw.get(key)
    if value is None:
        return None
    return float(value)


def _build_strategy(raw: dict) -> StrategyDefinition:
    """Convert one YAML mapping into a ``StrategyDefinition``."""
    offset = raw.get("offset", 0)
    if isinstance(offset, bool) or not isinstance(offset, int):
        raise ValueError(f"offset must be an integer, got {offset!r}")
    up = raw.get("up", False)
    if not isinstance(up, bool):
        raise ValueError(f"up must be true or false, got {up!r}")
    return StrategyDefinition(
        name=str(raw.get("name") or ""),
        instrument=str(raw.get("currency") or ""),
        offset_hours=offset,
        greater_than=_optional_float(raw, "greaterThan"),
        less_than=_optional_float(raw, "lessThan"),
        active_weekdays=frozenset(parse_weekday(w) for w in raw.get("weekdays") or []),
        active_times=tuple(parse_time_of_day(t) for t in raw.get("times") or []),
        up=up,
    )


def validate_strategies(strategies: list[StrategyDefinition]) -> None:
    """Check every strategy and raise one ``ValueError`` listing all problems."""
    errors: list[str] = []
    seen: set[str] = set()
    for strategy in strategies:
        if not strategy.name:
            errors.append("Missing strategy name")
            continue
        if strategy.name in seen:
            errors.append(f"Duplicate strategy name {strategy.name}")
        seen.add(strategy.name)
        if not strategy.instrument:
            errors.append(f"Missing currency name for strategy {strategy.name}")
        if strategy.offset_hours <= 0:
            errors.append(f"Invalid offset for strategy {strategy.name}")
        if strategy.greater_than is None and strategy.less_than is None:
            errors.append(f"Missing momentum constraint for strategy {strategy.name}")
        if not strategy.active_weekdays:
            logger.warning("Strategy '%s' has no weekdays and will never match", strategy.name)
    if errors:
        raise ValueError("Invalid strategy configuration: " + "; ".join(errors))


def load_strategies(path: str | Path) -> tuple[StrategyDefinition, ...]:
    """Load and validate strategy definitions from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML is malformed or any strategy is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Strategy file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in strategy file {path}: {exc}")

    entries = data.get("strategies") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"Strategy file {path} has no 'strategies' list")

    strategies: list[StrategyDefinition] = []
    for i, raw in enumerate(entries):
        if not isinstance(raw, dict):
            raise ValueError(f"Strategy #{i + 1} in {path} is not a mapping")
        try:
            strategies.append(_build_strategy(raw))
        except (TypeError, ValueError) as exc:
            label = raw.get("name") or f"#{i + 1}"
            raise ValueError(f"Invalid strategy {label}: {exc}")

    validate_strategies(strategies)
    logger.debug("Loaded %d strategy definition(s) from %s", len(strategies), path)
    return tuple(strategies)
