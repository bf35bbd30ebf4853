"""CLI for the deal scoring and revenue forecasting engine.

Commands:
- forecast: Pipeline totals, three-point forecast, at-risk deals and drivers
- rep-performance: Per-owner leaderboard ranked by forecasted revenue
- scenario: What-if re-simulation of the forecast with deal adjustments
- score: Score breakdown for a single deal
- settings show/defaults/put: Read, inspect or replace the scoring settings
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich import print_json

from . import __version__
from .application.payloads import (
    deal_score_payload,
    deals_frame,
    forecast_payload,
    rep_performance_payload,
    reps_frame,
    scenario_payload,
)
from .application.revenue_intelligence import (
    run_forecast,
    run_rep_performance,
    run_scenario,
    score_deal,
)
from .application.settings_store import SettingsStore
from .config import EngineConfig
from .config_file import load_engine_config_file
from .domain.opportunity import ScenarioAdjustment
from .domain.settings import settings_to_document
from .exceptions import ForecastEngineError
from .infrastructure.io.validation import parse_scenario_adjustments
from .protocols import FileSystem, OpportunitySource, OwnerDirectory


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: EngineConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    fs: FileSystem
    opportunities: OpportunitySource
    owners: OwnerDirectory | None
    settings_store: SettingsStore


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: EngineConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: EngineConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the deal-forecast entry point.")


class IsoDateOptionError(typer.BadParameter):
    """Raised when a date option is not an ISO calendar date."""

    def __init__(self, option: str, value: str) -> None:
        super().__init__(f"{option} must be an ISO date (YYYY-MM-DD), got '{value}'.")


class IncompleteRangeError(typer.BadParameter):
    """Raised when only one end of a custom range is supplied."""

    def __init__(self) -> None:
        super().__init__("--start and --end must be given together.")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _parse_iso_date(option: str, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise IsoDateOptionError(option, value) from exc


def _custom_range(start: str | None, end: str | None) -> tuple[date | None, date | None]:
    start_date = _parse_iso_date("--start", start)
    end_date = _parse_iso_date("--end", end)
    if (start_date is None) != (end_date is None):
        raise IncompleteRangeError()
    return start_date, end_date


class InputFileError(typer.BadParameter):
    """Raised when an input JSON file is missing or unreadable."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Cannot read {path}: {detail}")


def _read_json_input(path: Path, fs: FileSystem) -> object:
    if not fs.exists(path):
        raise InputFileError(path, "file not found")
    try:
        return fs.read_json(path)
    except json.JSONDecodeError as exc:
        raise InputFileError(path, f"invalid JSON ({exc.msg})") from exc


def _load_adjustments(path: Path, fs: FileSystem) -> list[ScenarioAdjustment]:
    payload = _read_json_input(path, fs)
    if isinstance(payload, dict) and "adjustments" in payload:
        payload = payload["adjustments"]
    return parse_scenario_adjustments(payload)


@contextmanager
def _engine_errors() -> Iterator[None]:
    """Report engine errors as a red message and exit code 1."""
    try:
        yield
    except ForecastEngineError as exc:
        rprint(f"[red]✗ {exc}[/red]")
        raise typer.Exit(code=1) from exc


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"deal-forecast {__version__}")
        raise typer.Exit()


PeriodOption = Annotated[
    str | None,
    typer.Option(
        "--period",
        "-p",
        help=(
            "current_month, next_month, current_quarter, next_quarter, current_year or "
            "next_year (default: FORECAST_DEFAULT_PERIOD)"
        ),
    ),
]
StartOption = Annotated[
    str | None,
    typer.Option("--start", help="Custom range start (YYYY-MM-DD, inclusive)"),
]
EndOption = Annotated[
    str | None,
    typer.Option("--end", help="Custom range end (YYYY-MM-DD, inclusive)"),
]
TodayOption = Annotated[
    str | None,
    typer.Option("--today", help="Evaluate as of this date (YYYY-MM-DD, default: today)"),
]
CsvOption = Annotated[
    Path | None,
    typer.Option("--csv", help="Also write the table to this CSV path"),
]


def _today(value: str | None) -> date:
    return _parse_iso_date("--today", value) or date.today()


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Deal scoring and revenue forecasting: score → forecast → rank → simulate",
    )
    settings_app = typer.Typer(add_completion=False, help="Inspect or replace scoring settings")
    app.add_typer(settings_app, name="settings")

    @app.callback()
    def main(
        ctx: typer.Context,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                callback=_version_callback,
                is_eager=True,
                help="Show the package version and exit",
            ),
        ] = False,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="TOML config file ([engine] table)"),
        ] = None,
        data_path: Annotated[
            Path | None,
            typer.Option("--data", help="CRM data JSON (default: FORECAST_CRM_DATA_PATH)"),
        ] = None,
        settings_path: Annotated[
            Path | None,
            typer.Option(
                "--settings-file",
                help="Scoring settings JSON (default: FORECAST_SETTINGS_PATH)",
            ),
        ] = None,
    ) -> None:
        """Initialise CLI context."""
        _ = version
        config = EngineConfig.from_env()
        if config_path is not None:
            bootstrap = deps_builder(config=config)
            with _engine_errors():
                file_config = load_engine_config_file(path=config_path, fs=bootstrap.fs)
            config = config.with_file_overrides(file_config)
        if data_path is not None or settings_path is not None:
            config = config.with_overrides(
                crm_data_path=str(data_path) if data_path is not None else None,
                settings_path=str(settings_path) if settings_path is not None else None,
            )
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def forecast(
        ctx: typer.Context,
        period: PeriodOption = None,
        start: StartOption = None,
        end: EndOption = None,
        owner: Annotated[
            str | None,
            typer.Option("--owner", "-o", help="Restrict to one owner ID ('Unassigned' for none)"),
        ] = None,
        exclude_overdue: Annotated[
            bool | None,
            typer.Option(
                "--exclude-overdue/--include-overdue",
                help="Drop open deals whose close date has passed (default: config)",
            ),
        ] = None,
        today: TodayOption = None,
        csv_path: CsvOption = None,
    ) -> None:
        """Forecast revenue for a period from scored open deals and closed-won revenue."""
        state = _get_context(ctx)
        config = state.config
        deps = state.build_dependencies()
        start_date, end_date = _custom_range(start, end)
        with _engine_errors():
            report = run_forecast(
                source=deps.opportunities,
                settings_store=deps.settings_store,
                today=_today(today),
                period=period or config.default_period,
                start=start_date,
                end=end_date,
                owner_id=owner,
                exclude_overdue=config.exclude_overdue
                if exclude_overdue is None
                else exclude_overdue,
                at_risk_limit=config.at_risk_limit,
            )
        print_json(data=forecast_payload(report))
        if csv_path is not None:
            deps.fs.write_csv(deals_frame(report), csv_path)
            rprint(f"[green]✓ Deals written:[/green] {csv_path}")

    @app.command(name="rep-performance")
    def rep_performance(
        ctx: typer.Context,
        period: PeriodOption = None,
        start: StartOption = None,
        end: EndOption = None,
        today: TodayOption = None,
        csv_path: CsvOption = None,
    ) -> None:
        """Rank owners by forecasted revenue over the period's deals."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        start_date, end_date = _custom_range(start, end)
        with _engine_errors():
            report = run_rep_performance(
                source=deps.opportunities,
                settings_store=deps.settings_store,
                owners=deps.owners,
                today=_today(today),
                period=period or state.config.default_period,
                start=start_date,
                end=end_date,
            )
        print_json(data=rep_performance_payload(report))
        if csv_path is not None:
            deps.fs.write_csv(reps_frame(report), csv_path)
            rprint(f"[green]✓ Reps written:[/green] {csv_path}")

    @app.command()
    def scenario(
        ctx: typer.Context,
        adjustments_path: Annotated[
            Path,
            typer.Option(
                "--adjustments",
                "-a",
                help="JSON list of {opportunityId, newStage?, newValue?, newCloseDate?}",
            ),
        ],
        period: PeriodOption = None,
        start: StartOption = None,
        end: EndOption = None,
        exclude_overdue: Annotated[
            bool | None,
            typer.Option(
                "--exclude-overdue/--include-overdue",
                help="Drop open deals whose close date has passed (default: config)",
            ),
        ] = None,
        today: TodayOption = None,
    ) -> None:
        """Compare the forecast with and without the given deal adjustments."""
        state = _get_context(ctx)
        config = state.config
        deps = state.build_dependencies()
        start_date, end_date = _custom_range(start, end)
        with _engine_errors():
            adjustments = _load_adjustments(adjustments_path, deps.fs)
            report = run_scenario(
                source=deps.opportunities,
                settings_store=deps.settings_store,
                adjustments=adjustments,
                today=_today(today),
                period=period or config.default_period,
                start=start_date,
                end=end_date,
                exclude_overdue=config.exclude_overdue
                if exclude_overdue is None
                else exclude_overdue,
            )
        print_json(data=scenario_payload(report))

    @app.command()
    def score(
        ctx: typer.Context,
        deal_id: Annotated[str, typer.Argument(help="Opportunity ID")],
        today: TodayOption = None,
    ) -> None:
        """Show the score, confidence and factor breakdown for one deal."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        with _engine_errors():
            scored = score_deal(
                source=deps.opportunities,
                settings_store=deps.settings_store,
                opportunity_id=deal_id,
                today=_today(today),
            )
        print_json(data=deal_score_payload(scored))

    @settings_app.command("show")
    def settings_show(ctx: typer.Context) -> None:
        """Print the active scoring settings (stored values over defaults)."""
        deps = _get_context(ctx).build_dependencies()
        with _engine_errors():
            settings = deps.settings_store.get()
        print_json(data=settings_to_document(settings))

    @settings_app.command("defaults")
    def settings_defaults(ctx: typer.Context) -> None:
        """Print the recommended default scoring settings."""
        deps = _get_context(ctx).build_dependencies()
        print_json(data=settings_to_document(deps.settings_store.get_defaults()))

    @settings_app.command("put")
    def settings_put(
        ctx: typer.Context,
        document_path: Annotated[Path, typer.Argument(help="Complete settings JSON document")],
    ) -> None:
        """Validate and store a complete scoring settings document."""
        deps = _get_context(ctx).build_dependencies()
        with _engine_errors():
            candidate = _read_json_input(document_path, deps.fs)
            deps.settings_store.put(candidate)
        rprint(f"[green]✓ Scoring settings saved:[/green] {document_path}")

    _ = (
        main,
        forecast,
        rep_performance,
        scenario,
        score,
        settings_show,
        settings_defaults,
        settings_put,
    )

    return app
