"""Main CLI application.

Click commands for the quorum coordinator: propose, simulate, run,
strategy. Every command runs offline against simulated oracles and a
dry-run dispatcher built from the loaded configuration.
"""

from __future__ import annotations

import asyncio
import json as json_mod
import random
import sys
from typing import TYPE_CHECKING, Any

import click

from quorum import __version__
from quorum.config.loader import load_config
from quorum.core.errors import ConfigError, DispatchError, QuorumError

if TYPE_CHECKING:
    from quorum.cli.display import DecisionDisplay
    from quorum.config.schema import QuorumConfig
    from quorum.consensus.engine import ConsensusEngine
    from quorum.consensus.models import StrategyConfig
    from quorum.core.events import EventSink


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> QuorumConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def build_strategy(config: QuorumConfig) -> StrategyConfig:
    """Live strategy from config.

    When no roles are configured, they are taken from the participants'
    own ``role`` fields.
    """
    from quorum.config.schema import RolesConfig
    from quorum.consensus.models import StrategyConfig

    settings = config.strategy
    roles = settings.roles
    if not (roles.coordinator or roles.specialists or roles.executors):
        coordinators = [p.id for p in config.participants if p.role == "coordinator"]
        roles = RolesConfig(
            coordinator=coordinators[0] if coordinators else "",
            specialists=[p.id for p in config.participants if p.role == "specialist"],
            executors=[p.id for p in config.participants if p.role == "executor"],
        )
        settings = settings.model_copy(update={"roles": roles})
    return StrategyConfig.from_settings(settings)


async def build_engine(
    config: QuorumConfig,
    *,
    seed: int | None = None,
    sink: EventSink | None = None,
    latency: float = 0.0,
) -> ConsensusEngine:
    """Engine with one simulated oracle per configured participant."""
    from quorum.agents.participant import Participant
    from quorum.consensus.engine import ConsensusEngine
    from quorum.dispatch.simulated import SimulatedDispatcher
    from quorum.oracle.base import OracleBinding
    from quorum.oracle.simulated import SimulatedOracle

    engine = ConsensusEngine(
        build_strategy(config),
        SimulatedDispatcher(),
        config=config,
        sink=sink,
    )
    for i, pc in enumerate(config.participants):
        oracle = SimulatedOracle(
            pc.provider,
            pc.model,
            seed=None if seed is None else seed + i,
            latency=latency,
        )
        participant = Participant(
            pc.id,
            oracle,
            role=pc.role,
            binding=OracleBinding(provider=pc.provider, model=pc.model),
            sink=sink,
            settings=config.participant_defaults,
        )
        await engine.add_participant(participant)
    return engine


def _setup_logging(config: QuorumConfig) -> None:
    from quorum.core.log import configure_logging

    configure_logging(config.logging)


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="quorum")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """quorum - Swarm consensus coordinator.

    A group of LLM-backed participants votes on proposals; approved
    proposals are dispatched as actions.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── propose ──────────────────────────────────────────────────────


@cli.command()
@click.argument("description")
@click.option(
    "--context",
    "context_json",
    type=str,
    default=None,
    help="Proposal context as a JSON object.",
)
@click.option(
    "--type",
    "action_type",
    type=click.Choice(["arbitrage", "governance", "research", "generic"]),
    default=None,
    help="Dispatch path (sets context.type).",
)
@click.option("--seed", type=int, default=None, help="Seed for simulated oracles.")
@click.pass_context
def propose(
    ctx: click.Context,
    description: str,
    context_json: str | None,
    action_type: str | None,
    seed: int | None,
) -> None:
    """Run one consensus round on DESCRIPTION.

    Every participant votes; on consensus the proposal is dispatched.
    """
    config = _load_config(ctx.obj["config_path"])

    context: dict[str, Any] = {}
    if context_json:
        try:
            loaded = json_mod.loads(context_json)
        except json_mod.JSONDecodeError as e:
            _error(f"--context is not valid JSON: {e}")
            return  # unreachable
        if not isinstance(loaded, dict):
            _error("--context must be a JSON object")
            return  # unreachable
        context = loaded
    if action_type is not None:
        context["type"] = action_type

    from quorum.cli.display import DecisionDisplay

    display = DecisionDisplay()
    _setup_logging(config)
    try:
        asyncio.run(_propose_async(description, context, config, display, seed))
    except DispatchError as e:
        _error(str(e))
    except QuorumError as e:
        _error(str(e))


async def _propose_async(
    description: str,
    context: dict[str, Any],
    config: QuorumConfig,
    display: DecisionDisplay,
    seed: int | None,
) -> None:
    """Async implementation for the propose command."""
    engine = await build_engine(config, seed=seed)
    try:
        decision = await engine.propose_decision(description, context)
    except DispatchError as e:
        if e.decision is not None:
            display.show_votes(e.decision.votes)
            display.show_decision(e.decision)
        raise
    finally:
        await engine.shutdown()
    display.show_votes(decision.votes)
    display.show_decision(decision)


# ── simulate ─────────────────────────────────────────────────────

_OPPORTUNITY_PAIRS = ("USDC/WETH", "WBTC/WETH", "DAI/USDC", "LINK/WETH")
_EXCHANGES = ("uniswap", "sushiswap", "balancer", "curve")
_GOVERNANCE_TITLES = (
    "Adjust collateral factor parameter for WBTC",
    "Allocate treasury funds to liquidity mining",
    "Upgrade oracle integration",
    "Reduce reserve factor parameter for USDC",
)
_RESEARCH_TOPICS = (
    ("bridge liquidity", ("ethereum", "polygon")),
    ("lending rates", ("ethereum", "solana")),
    ("stablecoin depegs", ("ethereum", "polygon", "solana")),
)


def _simulated_flow(rng: random.Random, round_num: int) -> tuple[str, Any]:
    """Pick the flow and its input for one simulated round."""
    from quorum import strategies

    kind = ("arbitrage", "governance", "research")[round_num % 3]
    if kind == "arbitrage":
        buy, sell = rng.sample(_EXCHANGES, 2)
        opportunity = {
            "pair": rng.choice(_OPPORTUNITY_PAIRS),
            "buy_exchange": buy,
            "sell_exchange": sell,
            "estimated_profit": round(rng.uniform(0.001, 0.08), 4),
        }
        return kind, lambda engine: strategies.execute_arbitrage(engine, opportunity)
    if kind == "governance":
        proposal = {"title": rng.choice(_GOVERNANCE_TITLES), "dao": "compound"}
        return kind, lambda engine: strategies.execute_governance(engine, proposal)
    topic, chains = rng.choice(_RESEARCH_TOPICS)
    return kind, lambda engine: strategies.execute_research(engine, topic, chains)


@cli.command()
@click.option("--rounds", type=int, default=6, show_default=True, help="Rounds to run.")
@click.option("--seed", type=int, default=7, show_default=True, help="Random seed.")
@click.pass_context
def simulate(ctx: click.Context, rounds: int, seed: int) -> None:
    """Run simulated arbitrage, governance and research rounds.

    Prints each decision, the performance snapshot, and any adjustments
    the monitor made to the strategy.
    """
    if rounds < 1:
        _error("--rounds must be at least 1")
    config = _load_config(ctx.obj["config_path"])

    from quorum.cli.display import DecisionDisplay

    display = DecisionDisplay()
    _setup_logging(config)
    try:
        asyncio.run(_simulate_async(config, display, rounds, seed))
    except QuorumError as e:
        _error(str(e))


async def _simulate_async(
    config: QuorumConfig,
    display: DecisionDisplay,
    rounds: int,
    seed: int,
) -> None:
    """Async implementation for the simulate command."""
    rng = random.Random(seed)
    engine = await build_engine(config, seed=seed)
    try:
        for i in range(rounds):
            kind, flow = _simulated_flow(rng, i)
            display.round_header(i + 1, rounds, kind)
            try:
                result = await flow(engine)
            except DispatchError as e:
                click.echo(f"Dispatch failed: {e}", err=True)
                if e.decision is not None:
                    display.show_decision(e.decision)
                continue
            display.show_decision(engine.decisions[-1])
            display.show_flow_result(kind, result)

        display.show_performance(engine.get_performance())
        display.show_adjustments(await engine.optimize_performance())
    finally:
        await engine.shutdown()


# ── run ──────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--duration",
    type=float,
    default=10.0,
    show_default=True,
    help="Seconds to keep the loops running.",
)
@click.option("--seed", type=int, default=None, help="Seed for simulated oracles.")
@click.pass_context
def run(ctx: click.Context, duration: float, seed: int | None) -> None:
    """Run the coordination loop and participant loops for a while."""
    if duration <= 0:
        _error("--duration must be positive")
    config = _load_config(ctx.obj["config_path"])

    from quorum.cli.display import DecisionDisplay

    display = DecisionDisplay()
    _setup_logging(config)
    try:
        asyncio.run(_run_async(config, display, duration, seed))
    except QuorumError as e:
        _error(str(e))


async def _run_async(
    config: QuorumConfig,
    display: DecisionDisplay,
    duration: float,
    seed: int | None,
) -> None:
    """Async implementation for the run command."""
    engine = await build_engine(config, seed=seed)
    for participant in engine.participants:
        participant.start()
    engine.start()
    try:
        await asyncio.sleep(duration)
    finally:
        statuses = [p.status() for p in engine.participants]
        await engine.shutdown()

    for status in statuses:
        click.echo(
            f"{status['id']}: {status['experience_count']} experiences, "
            f"{status['task_queue_length']} queued, "
            f"{status['oracle_calls']} oracle calls"
        )
    display.show_performance(engine.get_performance())


# ── strategy ─────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def strategy(ctx: click.Context) -> None:
    """Show the effective strategy and participants."""
    config = _load_config(ctx.obj["config_path"])

    from quorum.cli.display import DecisionDisplay

    rows = [(p.id, p.role, f"{p.provider}:{p.model}") for p in config.participants]
    DecisionDisplay().show_strategy(build_strategy(config), rows)
