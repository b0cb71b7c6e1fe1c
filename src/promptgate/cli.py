"""CLI entry point for promptgate.

The CLI plays the role of the mobile client for one local installation,
driving a persisted engagement record:
- promptgate validate: Validate configuration
- promptgate status: Show the record and the current prompt decision
- promptgate boot: Count a cold boot and show where the app would route
- promptgate decide: Evaluate the prompt policy without changing anything
- promptgate event <name>: Apply a transition (sign-in, guest, ...)
- promptgate reset: Delete the record

Exit codes:
- 0: Success
- 1: Configuration error
- 4: Fatal error
"""

from __future__ import annotations

import asyncio
import sqlite3
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from promptgate import __version__
from promptgate.clock import now_ms, to_datetime
from promptgate.config import load_config
from promptgate.config.loader import ConfigError
from promptgate.logging import configure_logging, get_logger, log_prompt_decision
from promptgate.persistence import SQLitePersistence, create_persistence
from promptgate.policy import (
    evaluate_prompt,
    guest_stage,
    launch_route,
    should_show_account_banner,
    splash_duration_ms,
)
from promptgate.state import EngagementStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from promptgate.config.schema import Config
    from promptgate.persistence.base import PersistenceAdapter
    from promptgate.state.model import EngagementState


class ExitCode(IntEnum):
    """CLI exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1
    FATAL_ERROR = 4


app = typer.Typer(
    name="promptgate",
    help="Engagement gating engine - decide when guests see a sign-up prompt.",
    add_completion=False,
    no_args_is_help=True,
)

event_app = typer.Typer(
    help="Apply a state transition to the local record.",
    no_args_is_help=True,
)
app.add_typer(event_app, name="event")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to configuration file."),
]
StateDirOption = Annotated[
    Path | None,
    typer.Option("--state-dir", help="State directory path."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"promptgate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """promptgate - engagement gating engine."""


# =============================================================================
# Helpers
# =============================================================================


def _load(config: Path | None, state_dir: Path | None) -> Config:
    """Load configuration, applying a --state-dir override."""
    try:
        cfg = load_config(config, allow_missing=True)
    except ConfigError as e:
        typer.echo(
            typer.style(f"✗ Configuration error: {e}", fg=typer.colors.RED),
            err=True,
        )
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e

    if state_dir is not None:
        storage = cfg.storage.model_copy(update={"directory": str(state_dir)})
        cfg = cfg.model_copy(update={"storage": storage})
    return cfg


def _run(
    cfg: Config,
    operation: Callable[[EngagementStore], Awaitable[None]],
) -> None:
    """Open the configured store, load it, run one operation, close it."""
    log = get_logger("promptgate.cli")
    try:
        persistence: PersistenceAdapter = create_persistence(cfg.storage)
    except (OSError, RuntimeError, sqlite3.Error) as e:
        typer.echo(
            typer.style(f"✗ Cannot open state storage: {e}", fg=typer.colors.RED),
            err=True,
        )
        raise typer.Exit(ExitCode.FATAL_ERROR) from e

    store = EngagementStore(persistence, key=cfg.storage.key)

    async def _main() -> None:
        await store.load()
        await operation(store)

    try:
        asyncio.run(_main())
    finally:
        if isinstance(persistence, SQLitePersistence):
            persistence.close()
    log.debug("Command complete", backend=cfg.storage.backend.value)


def _echo_state(state: EngagementState) -> None:
    last_prompt = to_datetime(state.last_prompt_timestamp)
    typer.echo(typer.style("Engagement record:", bold=True))
    typer.echo(f"  First launch: {state.is_first_launch}")
    typer.echo(f"  Onboarding completed: {state.has_completed_onboarding}")
    typer.echo(f"  Has account: {state.has_account}")
    typer.echo(f"  Sessions: {state.session_count}")
    typer.echo(f"  Prompts: {state.prompt_count}")
    typer.echo(f"  High-intent actions: {state.high_intent_actions}")
    typer.echo(f"  Last prompt: {last_prompt.isoformat() if last_prompt else '(never)'}")
    if state.display_name:
        typer.echo(f"  Name: {state.display_name}")
    if state.email:
        typer.echo(f"  Email: {state.email}")


def _echo_decision(state: EngagementState, cfg: Config, now: int) -> None:
    decision = evaluate_prompt(state, cfg.prompt, now)
    log_prompt_decision(
        show=decision.show,
        rule=decision.rule.value,
        reason=decision.reason,
        variant=decision.variant.value,
        session_count=state.session_count,
        prompt_count=state.prompt_count,
    )
    typer.echo(typer.style("Prompt decision:", bold=True))
    if decision.show:
        typer.echo(
            typer.style(f"  ✓ show ({decision.variant.value})", fg=typer.colors.GREEN)
        )
    else:
        typer.echo(typer.style("  ✗ do not show", fg=typer.colors.YELLOW))
    typer.echo(f"  Rule: {decision.rule.value}")
    typer.echo(f"  Reason: {decision.reason}")
    typer.echo(f"  Stage: {guest_stage(state, cfg.prompt).value}")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def validate(config: ConfigOption = None, verbose: VerboseOption = False) -> None:
    """Validate configuration without touching state.

    Exits with code 0 if valid, or code 1 if there are errors.
    """
    configure_logging(verbose=verbose, json_output=False)

    try:
        cfg = load_config(config)
    except ConfigError as e:
        typer.echo(typer.style(f"✗ {e}", fg=typer.colors.RED), err=True)
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e

    typer.echo(typer.style("✓ Configuration is valid", fg=typer.colors.GREEN))
    if verbose:
        prompt = cfg.prompt
        typer.echo("\nConfiguration summary:")
        typer.echo(f"  Storage: {cfg.storage.backend.value} ({cfg.storage.get_directory()})")
        typer.echo(f"  Prompt ceiling: {prompt.max_prompt_count}")
        typer.echo(f"  Early stage: sessions 2-{prompt.early_stage_sessions}")
        typer.echo(
            f"  Reduced frequency: from session {prompt.reduced_frequency_session_start}, "
            f"{prompt.high_intent_actions_threshold} high-intent actions, "
            f"every {prompt.reduced_frequency_days:g} day(s)"
        )
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def status(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the engagement record and the current prompt decision."""
    configure_logging(verbose=verbose, json_output=False)
    cfg = _load(config, state_dir)

    async def _status(store: EngagementStore) -> None:
        _echo_state(store.state)
        typer.echo()
        _echo_decision(store.state, cfg, now_ms())

    _run(cfg, _status)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def boot(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Simulate a cold boot: count the session, then route.

    Prints the screen the app would open after the splash, the splash
    length, whether the account banner shows, and the prompt decision.
    """
    configure_logging(verbose=verbose, json_output=False)
    cfg = _load(config, state_dir)

    async def _boot(store: EngagementStore) -> None:
        state = await store.init_session()
        typer.echo(
            typer.style(f"🚀 Session {state.session_count} started", bold=True)
        )
        typer.echo(f"  Route: {launch_route(state, cfg.prompt).value}")
        typer.echo(f"  Splash: {splash_duration_ms(state, cfg.launch)}ms")
        typer.echo(f"  Account banner: {should_show_account_banner(state)}")
        typer.echo()
        _echo_decision(state, cfg, now_ms())

    _run(cfg, _boot)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def decide(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    at: Annotated[
        int | None,
        typer.Option("--at", help="Evaluate at this epoch-ms time instead of now."),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Evaluate the prompt policy without changing the record."""
    configure_logging(verbose=verbose, json_output=False)
    cfg = _load(config, state_dir)

    async def _decide(store: EngagementStore) -> None:
        _echo_decision(store.state, cfg, at if at is not None else now_ms())

    _run(cfg, _decide)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def reset(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation."),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Delete the engagement record (account deletion or developer reset)."""
    configure_logging(verbose=verbose, json_output=False)
    cfg = _load(config, state_dir)

    if not yes:
        typer.confirm("Reset the engagement record?", abort=True)

    async def _reset(store: EngagementStore) -> None:
        await store.reset_onboarding()
        typer.echo(typer.style("✓ Engagement record reset", fg=typer.colors.GREEN))

    _run(cfg, _reset)
    raise typer.Exit(ExitCode.SUCCESS)


# =============================================================================
# Transitions
# =============================================================================


def _apply(
    config: Path | None,
    state_dir: Path | None,
    verbose: bool,
    transition: Callable[[EngagementStore], Awaitable[object]],
    label: str,
) -> None:
    configure_logging(verbose=verbose, json_output=False)
    cfg = _load(config, state_dir)

    async def _transition(store: EngagementStore) -> None:
        await transition(store)
        typer.echo(typer.style(f"✓ {label}", fg=typer.colors.GREEN))
        _echo_state(store.state)

    _run(cfg, _transition)
    raise typer.Exit(ExitCode.SUCCESS)


@event_app.command("complete-onboarding")
def event_complete_onboarding(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Mark the onboarding carousel as completed."""
    _apply(
        config, state_dir, verbose,
        lambda store: store.complete_onboarding(),
        "Onboarding completed",
    )


@event_app.command("sign-in")
def event_sign_in(
    method: Annotated[str, typer.Argument(help="Provider tag: apple, google, email, ...")],
    name: Annotated[str | None, typer.Option("--name", help="Display name.")] = None,
    email: Annotated[str | None, typer.Option("--email", help="Email address.")] = None,
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Record a successful sign-in."""
    _apply(
        config, state_dir, verbose,
        lambda store: store.sign_in(method, name, email),
        f"Signed in with {method}",
    )


@event_app.command("guest")
def event_guest(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Dismiss the prompt and continue as a guest."""
    _apply(
        config, state_dir, verbose,
        lambda store: store.continue_as_guest(),
        "Continued as guest",
    )


@event_app.command("sign-out")
def event_sign_out(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Sign out; counters are kept."""
    _apply(
        config, state_dir, verbose,
        lambda store: store.sign_out(),
        "Signed out",
    )


@event_app.command("high-intent")
def event_high_intent(
    count: Annotated[
        int,
        typer.Option("--count", "-n", min=1, help="Number of actions to record."),
    ] = 1,
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Record high-intent actions (likes, saves, follows)."""

    async def _track(store: EngagementStore) -> None:
        for _ in range(count):
            await store.track_high_intent_action()

    _apply(config, state_dir, verbose, _track, f"Recorded {count} high-intent action(s)")


@event_app.command("prompt-shown")
def event_prompt_shown(
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Record that a sign-up prompt was displayed."""
    _apply(
        config, state_dir, verbose,
        lambda store: store.record_prompt_shown(),
        "Prompt recorded",
    )
