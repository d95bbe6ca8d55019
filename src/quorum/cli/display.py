"""Rich display for consensus rounds.

Renders votes, decisions, performance snapshots and monitor adjustments
as styled panels. Used by the ``propose`` and ``simulate`` commands.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from quorum.consensus.models import Decision, StrategyConfig, Vote
    from quorum.monitor.performance import Adjustment, PerformanceMetrics

_TRUNCATE_LEN = 300

_VOTE_STYLES = {
    "approve": "bold green",
    "reject": "bold red",
    "abstain": "bold yellow",
}


def _truncate(text: str, limit: int = _TRUNCATE_LEN) -> str:
    """Truncate text to *limit* characters with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + " ..."


class DecisionDisplay:
    """Rich rendering of consensus output.

    Accepts an optional :class:`~rich.console.Console` for dependency
    injection in tests.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    # ── Rounds ────────────────────────────────────────────────

    def round_header(self, round_num: int, total: int, label: str) -> None:
        self._console.print()
        self._console.rule(
            f"[bold]Round {round_num}/{total}[/bold] ({label})",
            style="cyan",
        )

    def show_votes(self, votes: Sequence[Vote]) -> None:
        """Display each participant's vote in a single panel."""
        if not votes:
            self._console.print(
                Panel(
                    "No votes were cast.",
                    title="[bold cyan]VOTES[/bold cyan]",
                    border_style="cyan",
                )
            )
            return

        parts: list[Text] = []
        for i, vote in enumerate(votes):
            if i > 0:
                parts.append(Text())  # blank line separator
            header = Text(vote.participant_id, style="bold")
            header.append("  ")
            header.append(
                vote.value.value.upper(), style=_VOTE_STYLES[vote.value.value]
            )
            header.append(f"  {vote.confidence:.0f}%", style="dim")
            parts.append(header)
            if vote.reasoning:
                parts.append(Text(_truncate(vote.reasoning)))

        self._console.print(
            Panel(
                Text("\n").join(parts),
                title=f"[bold cyan]VOTES[/bold cyan] ({len(votes)})",
                border_style="cyan",
            )
        )

    def show_decision(self, decision: Decision) -> None:
        """Display the outcome of a round and the executed action, if any."""
        if decision.consensus:
            verdict = "[bold green]CONSENSUS[/bold green]"
            border = "green"
        else:
            verdict = "[bold red]NO CONSENSUS[/bold red]"
            border = "red"

        lines = [
            f"{verdict}  {escape(_truncate(decision.proposal))}",
            (
                f"Approvals: {decision.approvals}/{len(decision.votes)} | "
                f"Simple: {decision.simple_ratio:.0%} | "
                f"Weighted: {decision.weighted_ratio:.0%} | "
                f"Threshold: {decision.threshold:.0%}"
            ),
        ]
        if decision.action is not None:
            lines.append(
                f"Action: {decision.action.action_type.value} "
                f"(executed: {'yes' if decision.action.executed else 'no'})"
            )
            lines.append(escape(_truncate(_dumps(decision.action.details))))

        self._console.print(
            Panel(
                "\n".join(lines),
                title=f"[bold]Decision[/bold] {decision.id}",
                border_style=border,
            )
        )

    def show_flow_result(self, flow: str, result: Mapping[str, Any]) -> None:
        self._console.print(f"[dim]{flow}:[/dim] {escape(_truncate(_dumps(result)))}")

    # ── Performance ───────────────────────────────────────────

    def show_performance(self, metrics: PerformanceMetrics) -> None:
        """Display a performance snapshot as a two-column table."""
        table = Table(title=f"Performance: {metrics.strategy}", show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value")
        table.add_row("Decisions", str(metrics.total_decisions))
        table.add_row("Successful actions", str(metrics.successful_actions))
        table.add_row("Avg consensus time", f"{metrics.avg_consensus_time_ms:.0f} ms")
        table.add_row("Risk score", f"{metrics.risk_score:.2f}")
        if metrics.profitability is not None:
            table.add_row("Profitability", f"{metrics.profitability:.4f}")
        self._console.print()
        self._console.print(table)

    def show_adjustments(self, adjustments: Sequence[Adjustment]) -> None:
        if not adjustments:
            self._console.print("[dim]No strategy adjustments.[/dim]")
            return
        parts = [
            f"{adj.parameter}: {adj.old:g} -> {adj.new:g}  ({escape(adj.reason)})"
            for adj in adjustments
        ]
        self._console.print(
            Panel(
                "\n".join(parts),
                title="[bold yellow]Adjustments[/bold yellow]",
                border_style="yellow",
            )
        )

    # ── Strategy ──────────────────────────────────────────────

    def show_strategy(
        self, strategy: StrategyConfig, participants: Sequence[tuple[str, str, str]]
    ) -> None:
        """Display the effective strategy and its participants.

        *participants* holds ``(id, role, provider:model)`` rows.
        """
        rules = strategy.rules
        roles = strategy.roles
        lines = [
            f"Type: {strategy.type.value}",
            f"Consensus threshold: {rules.consensus_threshold:.0%}",
            f"Max simultaneous actions: {rules.max_simultaneous_actions}",
            f"Risk tolerance: {rules.risk_tolerance.value}",
            f"Coordinator: {roles.coordinator or '-'}",
            f"Specialists: {', '.join(roles.specialists) or '-'}",
            f"Executors: {', '.join(roles.executors) or '-'}",
        ]
        if strategy.description:
            lines.insert(0, strategy.description)
        self._console.print(
            Panel(
                "\n".join(lines),
                title=f"[bold magenta]Strategy[/bold magenta] {strategy.name}",
                border_style="magenta",
            )
        )

        table = Table(title="Participants")
        table.add_column("Id", style="bold")
        table.add_column("Role")
        table.add_column("Oracle")
        for row in participants:
            table.add_row(*row)
        self._console.print(table)


def _dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(dict(data), default=str, sort_keys=True)
