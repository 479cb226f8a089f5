"""EvaluationEngine — runs the selected strategies once against live bars.

Bar series for every selected strategy are fetched concurrently; each
strategy is then evaluated against its own series. Results keep the order
of the strategy file.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from momentum_gate.broker.binance_client import BinanceClient
from momentum_gate.models.strategy_definition import StrategyDefinition
from momentum_gate.strategy.evaluator import evaluate_strategy
from momentum_gate.strategy.models import EvaluationResult

logger = logging.getLogger("momentum_gate.engine")


@dataclass(frozen=True)
class StrategyEvaluation:
    """An ``EvaluationResult`` paired with the definition it came from."""

    strategy: StrategyDefinition
    result: EvaluationResult


@dataclass(frozen=True)
class EvaluationReport:
    """Every evaluation of one run, plus the instant they were taken at."""

    now: datetime
    evaluations: tuple[StrategyEvaluation, ...]


def select_strategies(
    strategies: Sequence[StrategyDefinition],
    strategy_name: str = "",
) -> list[StrategyDefinition]:
    """Return *strategies* restricted to an exact name match (empty = all)."""
    if not strategy_name:
        return list(strategies)
    return [s for s in strategies if s.name == strategy_name]


class EvaluationEngine:
    """Evaluates validated strategies against bars from a client.

    Args:
        client:     A ``BinanceClient`` (or compatible duck-type / mock).
        strategies: Validated strategy definitions, in file order.
    """

    def __init__(
        self,
        client: BinanceClient,
        strategies: Sequence[StrategyDefinition],
    ) -> None:
        self._client = client
        self._strategies = tuple(strategies)

    @property
    def strategy_names(self) -> list[str]:
        return [s.name for s in self._strategies]

    async def run(
        self,
        strategy_name: str = "",
        now: Optional[datetime] = None,
    ) -> EvaluationReport:
        """Fetch bars and evaluate every selected strategy once.

        Args:
            strategy_name: Exact strategy name to restrict to; empty for all.
            now: Evaluation instant; defaults to the current UTC time.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        else:
            now = now.astimezone(timezone.utc)
        selected = select_strategies(self._strategies, strategy_name)
        if strategy_name and not selected:
            logger.warning(
                "No strategy named '%s'. Available: %s",
                strategy_name, ", ".join(self.strategy_names),
            )

        series_list = await asyncio.gather(
            *(self._client.fetch_bars(s.instrument, end_time=now) for s in selected)
        )

        evaluations: list[StrategyEvaluation] = []
        for strategy, series in zip(selected, series_list):
            result = evaluate_strategy(series, now, strategy)
            logger.info(
                "Evaluated '%s' on %s: weekday=%s time=%s momentum=%s all=%s",
                strategy.name, strategy.instrument,
                result.weekday_matches, result.time_matches,
                result.momentum_matches, result.all_match,
            )
            evaluations.append(StrategyEvaluation(strategy=strategy, result=result))

        return EvaluationReport(now=now, evaluations=tuple(evaluations))
