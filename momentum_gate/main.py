"""momentum-gate — application entry point.

Loads the strategy file, evaluates the selected strategies once against the
latest bars and prints the report.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

import httpx

from momentum_gate.broker.binance_client import BinanceClient
from momentum_gate.cli.report import print_report
from momentum_gate.config import load_config, load_strategies
from momentum_gate.engine import EvaluationEngine

logger = logging.getLogger("momentum_gate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check momentum strategies against recent price bars"
    )
    parser.add_argument(
        "--strategy",
        default="",
        help="Restrict evaluation of strategies to the one matching this string",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the strategies YAML file (default: $STRATEGIES_PATH)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colours in the report",
    )
    parser.add_argument(
        "--show-inactive",
        action="store_true",
        help="Also report strategies outside their active weekdays",
    )
    return parser


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse CLI arguments, evaluate strategies and print the report.

    Returns the process exit status.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", exc)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    strategies_path = args.config or config.strategies_path
    try:
        strategies = load_strategies(strategies_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    engine = EvaluationEngine(client=BinanceClient(config), strategies=strategies)
    try:
        report = asyncio.run(engine.run(strategy_name=args.strategy))
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Evaluation failed: %s", exc)
        return 1

    color = not args.no_color and sys.stdout.isatty()
    print_report(report, color=color, show_inactive=args.show_inactive)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
