"""CLI report — prints strategy evaluations to the console."""

from datetime import datetime

from momentum_gate.engine import EvaluationReport, StrategyEvaluation
from momentum_gate.models.strategy_definition import WEEKDAY_NAMES

_BLUE = "\033[34m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_RESET = "\033[0m"


class _Palette:
    def __init__(self, color: bool) -> None:
        self._color = color

    def paint(self, text: str, code: str) -> str:
        if not self._color:
            return text
        return f"{code}{text}{_RESET}"

    def flag(self, value: bool) -> str:
        return self.paint(str(value).lower(), _GREEN if value else _RED)


def _time_string(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def format_evaluation(evaluation: StrategyEvaluation, color: bool = True) -> str:
    """Format one strategy evaluation as an indented block."""
    palette = _Palette(color)
    strategy = evaluation.strategy
    result = evaluation.result
    now = result.now

    side = palette.paint(strategy.direction, _GREEN if strategy.up else _RED)
    times = ", ".join(t.strftime("%H:%M") for t in strategy.active_times)

    lines = [
        f"{strategy.name}:",
        f"\tCurrency: {palette.paint(strategy.instrument, _BLUE)}",
        f"\tWeekdays: {', '.join(strategy.weekday_names)}",
        f"\tTimes: {times}",
        f"\tMomentum offset: {strategy.offset_hours}h",
    ]
    if strategy.greater_than is not None:
        lines.append(f"\tGreater than: {strategy.greater_than:.2f}%")
    if strategy.less_than is not None:
        lines.append(f"\tLess than: {strategy.less_than:.2f}%")
    lines.append(f"\tSide: {side}")
    lines.append(f"\tCurrent price: {result.latest_bar.close:.4f}")

    if result.anchor_bar is not None:
        lines.append(f"\tMomentum price: {result.anchor_bar.close:.4f}")
        lines.append(
            f"\tMomentum time: {_time_string(result.anchor_bar.timestamp)} UTC"
        )
    else:
        lines.append(f"\tMomentum price: {palette.paint('missing', _RED)}")

    lines.append(
        f"\tCurrent weekday: {WEEKDAY_NAMES[now.weekday()]} "
        f"({palette.flag(result.weekday_matches)})"
    )
    lines.append(
        f"\tCurrent time of day: {now.hour:02d}:{now.minute:02d} UTC "
        f"({palette.flag(result.time_matches)})"
    )
    if result.momentum_defined:
        momentum_str = f"{result.momentum:+.2f}%"
    else:
        momentum_str = palette.paint("undefined", _RED)
    lines.append(
        f"\tCurrent momentum: {momentum_str} ({palette.flag(result.momentum_matches)})"
    )

    if result.all_match:
        lines.append("")
        lines.append(f'\tAll conditions match, open "{side}" position')
    return "\n".join(lines)


def format_report(
    report: EvaluationReport,
    color: bool = True,
    show_inactive: bool = False,
) -> str:
    """Format every evaluation in *report*.

    Strategies outside their active weekdays are left out unless
    *show_inactive* is set.
    """
    blocks = [
        format_evaluation(e, color=color)
        for e in report.evaluations
        if show_inactive or e.result.weekday_matches
    ]
    return "\n" + "".join(block + "\n\n" for block in blocks)


def print_report(
    report: EvaluationReport,
    color: bool = True,
    show_inactive: bool = False,
) -> str:
    """Format and print *report*.

    Returns:
        The formatted string (also printed to stdout).
    """
    output = format_report(report, color=color, show_inactive=show_inactive)
    print(output, end="")
    return output
