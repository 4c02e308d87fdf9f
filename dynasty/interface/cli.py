"""
Command-line interface for the regime simulation.

Runs a seeded game headlessly on the default map and prints where it ended
up. Useful for checking balance changes without a front end:

    python -m dynasty --turns 40 --seed 7 --pressure 3
    python -m dynasty --config balance.yaml --briefing
"""

import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import BalanceConfig, load_balance_config
from ..scenarios import new_regime
from ..state import RegimeState, StatId
from ..state.schemas import TurnResult
from ..systems import TurnOrchestrator

console = Console()
logger = logging.getLogger(__name__)


def run_simulation(
    turns: int,
    seed: int,
    config: BalanceConfig,
    pressure: int = 0,
) -> tuple[RegimeState, list[TurnResult], TurnOrchestrator]:
    """
    Play up to `turns` turns with no decisions besides a flat stability drain.

    Stops early when a verdict is returned.
    """
    state = new_regime(seed=seed)
    orchestrator = TurnOrchestrator(state, config)
    results = []

    def drain(s: RegimeState) -> None:
        if pressure:
            s.apply_stat(StatId.STABILITY, -pressure)
            s.apply_stat(StatId.POPULAR_SUPPORT, -pressure // 2)

    for _ in range(turns):
        result = orchestrator.run_turn(drain)
        results.append(result)
        if result.game_over:
            break

    return state, results, orchestrator


def render_provinces(state: RegimeState) -> Table:
    table = Table(title=f"{state.name}, turn {state.turn_number}")
    table.add_column("Province")
    table.add_column("Status")
    table.add_column("Secession", justify="right")
    table.add_column("Stability", justify="right")
    table.add_column("Autonomy", justify="right")

    for province in state.provinces:
        style = "red" if province.is_dangerous else ""
        table.add_row(
            province.name,
            province.status.display_name,
            f"{province.secession_progress}%",
            str(province.stability_score),
            str(province.autonomy_desire),
            style=style,
        )
    return table


def render_summary(state: RegimeState, results: list[TurnResult]) -> Table:
    table = Table(title="Outcome", show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    last = results[-1] if results else None
    if last is not None and last.verdict is not None:
        verdict = last.verdict
        table.add_row("Verdict", f"[bold red]{verdict.display_title}[/bold red]")
        table.add_row("Cause", verdict.cause)
        table.add_row("Category", verdict.category.display_name)
        table.add_row("Turn", str(verdict.turn_occurred))
    else:
        table.add_row("Verdict", "[green]Regime survives[/green]")

    table.add_row("Stability", str(state.stat(StatId.STABILITY)))
    table.add_row("Popular support", str(state.stat(StatId.POPULAR_SUPPORT)))
    table.add_row(
        "Consolidation",
        f"{state.consolidation.score} ({state.consolidation.display_level}, "
        f"removal needs {state.consolidation.removal_threshold}%)",
    )
    table.add_row("Seceded", str(len(state.seceded_provinces())))
    return table


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run a headless regime simulation")
    parser.add_argument("--turns", "-t", type=int, default=30, help="Maximum turns to play")
    parser.add_argument("--seed", "-s", type=int, default=0, help="Run seed")
    parser.add_argument(
        "--pressure", "-p",
        type=int,
        default=0,
        help="Stability lost each turn (simulates a failing government)",
    )
    parser.add_argument("--config", "-c", type=Path, help="Balance YAML file")
    parser.add_argument(
        "--briefing", "-b",
        action="store_true",
        help="List conditions close to ending the run",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    config = load_balance_config(args.config)
    state, results, orchestrator = run_simulation(
        args.turns, args.seed, config, pressure=args.pressure
    )
    logger.info(f"Played {len(results)} turns with seed {args.seed}")

    console.print(render_provinces(state))
    console.print(render_summary(state, results))

    if args.briefing:
        warnings = orchestrator.risk.diagnose(state)
        if not warnings:
            console.print("[dim]No conditions near their thresholds.[/dim]")
        for warning in warnings:
            suffix = " (an heir would carry on)" if warning.heir_would_save else ""
            console.print(
                f"[yellow]{warning.condition.display_title}[/yellow]: {warning.message}{suffix}"
            )

    return 1 if orchestrator.verdict is not None else 0
