"""Momentum evaluator — combines the session gate and momentum test.

Pure function of ``(series, now, strategy)``; no I/O and no shared state.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from momentum_gate.broker.models import Bar
from momentum_gate.models.strategy_definition import StrategyDefinition
from momentum_gate.strategy.models import EvaluationResult
from momentum_gate.strategy.momentum import (
    calculate_momentum,
    find_anchor_bar,
    momentum_matches,
    momentum_target_instant,
)
from momentum_gate.strategy.session_filter import is_active_time, is_active_weekday

logger = logging.getLogger("momentum_gate")


def evaluate_strategy(
    series: Sequence[Bar],
    now: datetime,
    strategy: StrategyDefinition,
) -> EvaluationResult:
    """Evaluate *strategy* against *series* at instant *now*.

    Args:
        series: Bars ordered oldest-first. Must not be empty.
        now: Evaluation instant; naive values are taken as UTC.
        strategy: A validated ``StrategyDefinition``.

    Raises:
        ValueError: If *series* is empty.
    """
    if not series:
        raise ValueError(f"Empty bar series for strategy {strategy.name}")
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    latest = series[-1]
    target = momentum_target_instant(now, strategy.offset_hours)
    anchor = find_anchor_bar(series, target)

    momentum = None
    if anchor is None:
        logger.info(
            "Strategy '%s': no bar at or before %s (%d bars, oldest %s)",
            strategy.name, target.isoformat(), len(series),
            series[0].timestamp.isoformat(),
        )
    else:
        momentum = calculate_momentum(latest, anchor)

    return EvaluationResult(
        now=now,
        target_instant=target,
        weekday_matches=is_active_weekday(now, strategy.active_weekdays),
        time_matches=is_active_time(now, strategy.active_times),
        momentum=momentum,
        momentum_matches=momentum_matches(
            momentum, strategy.greater_than, strategy.less_than
        ),
        latest_bar=latest,
        anchor_bar=anchor,
    )
