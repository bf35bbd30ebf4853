"""Tests for CLI wiring and overrides."""

import json
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner, Result

from deal_forecaster import cli
from deal_forecaster.application.settings_store import SettingsStore
from deal_forecaster.cli import CliDependencies
from deal_forecaster.config import EngineConfig
from deal_forecaster.domain.periods import ForecastPeriod
from deal_forecaster.domain.settings import default_scoring_settings, settings_to_document
from deal_forecaster.infrastructure import JsonFileCrmSource
from tests.fakes import InMemoryFileSystem, InMemoryOpportunitySource, InMemorySettingsRepository
from tests.support.opportunities import make_opportunity, scenario_a

runner = CliRunner()
_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")
TODAY = date(2026, 5, 15)


def _strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE_RE.sub("", text)


def _json_output(text: str) -> dict[str, object]:
    payload: dict[str, object] = json.loads(_strip_ansi(text))
    return payload


@dataclass
class CliHarness:
    fs: InMemoryFileSystem
    source: InMemoryOpportunitySource
    repository: InMemorySettingsRepository
    configs: list[EngineConfig]

    def app(self) -> typer.Typer:
        deps = CliDependencies(
            fs=self.fs,
            opportunities=self.source,
            owners=self.source,
            settings_store=SettingsStore(self.repository),
        )

        def build_with_shared_deps(*, config: EngineConfig) -> CliDependencies:
            self.configs.append(config)
            return deps

        return cli.create_app(build_with_shared_deps)

    def invoke(self, *args: str) -> Result:
        return runner.invoke(self.app(), list(args))


@pytest.fixture
def harness(monkeypatch: pytest.MonkeyPatch) -> CliHarness:
    def fake_from_env(cls: type[EngineConfig], dotenv_path: str | None = None) -> EngineConfig:
        _ = (cls, dotenv_path)
        return EngineConfig()

    monkeypatch.setattr(cli.EngineConfig, "from_env", classmethod(fake_from_env))
    source = InMemoryOpportunitySource(
        opportunities=[
            scenario_a(TODAY),
            make_opportunity("Q", amount=4_000, owner_id="rep-2", close_date=date(2026, 6, 20)),
            make_opportunity(
                "LATE", amount=9_000, stage="Proposal", close_date=date(2026, 5, 2)
            ),
            make_opportunity("NEXT", amount=20_000, close_date=date(2026, 8, 1)),
        ],
        owner_names={"rep-1": "Ana Lopez"},
    )
    return CliHarness(
        fs=InMemoryFileSystem(),
        source=source,
        repository=InMemorySettingsRepository(),
        configs=[],
    )


def test_cli_version_option_prints_package_version(
    harness: CliHarness, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(cli, "__version__", "9.9.9", raising=False)

    result = harness.invoke("--version")

    assert result.exit_code == 0
    assert "9.9.9" in _strip_ansi(result.output)


def test_cli_forecast_prints_payload(harness: CliHarness) -> None:
    result = harness.invoke("forecast", "--today", "2026-05-15")

    assert result.exit_code == 0, result.output
    payload = _json_output(result.stdout)
    assert payload["period"] == "current_quarter"
    deals = payload["deals"]
    assert isinstance(deals, list)
    assert [deal["id"] for deal in deals] == ["A", "Q", "LATE"]
    at_risk = payload["atRisk"]
    assert isinstance(at_risk, dict)
    assert at_risk["overdueCount"] == 1


def test_cli_forecast_custom_range_and_owner(harness: CliHarness) -> None:
    result = harness.invoke(
        "forecast",
        "--start",
        "2026-06-01",
        "--end",
        "2026-08-31",
        "--owner",
        "rep-2",
        "--today",
        "2026-05-15",
    )

    assert result.exit_code == 0, result.output
    payload = _json_output(result.stdout)
    assert payload["period"] == "custom"
    assert harness.source.queries[0].owner_id == "rep-2"
    assert harness.source.queries[0].end_exclusive == date(2026, 9, 1)


def test_cli_forecast_exclude_overdue_flag(harness: CliHarness) -> None:
    result = harness.invoke("forecast", "--exclude-overdue", "--today", "2026-05-15")

    assert result.exit_code == 0, result.output
    summary = _json_output(result.stdout)["summary"]
    assert isinstance(summary, dict)
    assert summary["totalPipeline"] == 54_000


def test_cli_forecast_writes_csv(harness: CliHarness) -> None:
    result = harness.invoke("forecast", "--today", "2026-05-15", "--csv", "out/deals.csv")

    assert result.exit_code == 0, result.output
    df = harness.fs.read_csv(Path("out/deals.csv"))
    assert df["id"].tolist() == ["A", "Q", "LATE"]
    assert "Deals written" in _strip_ansi(result.output)


def test_cli_forecast_rejects_half_range(harness: CliHarness) -> None:
    result = harness.invoke("forecast", "--start", "2026-06-01")

    assert result.exit_code != 0
    assert "--start and --end must be given together" in _strip_ansi(result.output)


def test_cli_forecast_rejects_unknown_period(harness: CliHarness) -> None:
    result = harness.invoke("forecast", "--period", "fortnight")

    assert result.exit_code == 1
    assert "Unknown forecast period 'fortnight'" in _strip_ansi(result.output)


def test_cli_rep_performance_includes_owner_names(harness: CliHarness) -> None:
    result = harness.invoke("rep-performance", "--today", "2026-05-15")

    assert result.exit_code == 0, result.output
    reps = _json_output(result.stdout)["reps"]
    assert isinstance(reps, list)
    assert {rep["ownerId"]: rep["ownerName"] for rep in reps} == {
        "rep-1": "Ana Lopez",
        "rep-2": "rep-2",
    }


def test_cli_scenario_reads_adjustments(harness: CliHarness) -> None:
    harness.fs.write_json_payload(
        {"adjustments": [{"opportunityId": "Q", "newStage": "Closed Won"}]},
        Path("adjustments.json"),
    )

    result = harness.invoke(
        "scenario", "--adjustments", "adjustments.json", "--today", "2026-05-15"
    )

    assert result.exit_code == 0, result.output
    payload = _json_output(result.stdout)
    assert payload["adjustedDealIds"] == ["Q"]
    scenario = payload["scenario"]
    assert isinstance(scenario, dict)
    assert scenario["closedWon"] == 4_000


def test_cli_scenario_reports_invalid_adjustments(harness: CliHarness) -> None:
    harness.fs.write_json_payload([{"newStage": "Closed Won"}], Path("adjustments.json"))

    result = harness.invoke("scenario", "-a", "adjustments.json")

    assert result.exit_code == 1
    assert "opportunityId is required" in _strip_ansi(result.output)


def test_cli_scenario_missing_file(harness: CliHarness) -> None:
    result = harness.invoke("scenario", "-a", "missing.json")

    assert result.exit_code != 0
    assert "file not found" in _strip_ansi(result.output)


def test_cli_score_prints_breakdown(harness: CliHarness) -> None:
    result = harness.invoke("score", "A", "--today", "2026-05-15")

    assert result.exit_code == 0, result.output
    payload = _json_output(result.stdout)
    assert payload["aiScore"] == 72
    assert payload["scoreBand"] == "hot"


def test_cli_score_unknown_deal_exits_with_error(harness: CliHarness) -> None:
    result = harness.invoke("score", "nope")

    assert result.exit_code == 1
    assert "Opportunity not found: nope" in _strip_ansi(result.output)


def test_cli_settings_put_then_show(harness: CliHarness) -> None:
    document = settings_to_document(default_scoring_settings())
    account = document["account"]
    assert isinstance(account, dict)
    account["matureImpact"] = 12
    harness.fs.write_json(document, Path("settings.json"))

    put_result = harness.invoke("settings", "put", "settings.json")
    show_result = harness.invoke("settings", "show")

    assert put_result.exit_code == 0, put_result.output
    assert harness.repository.writes == 1
    shown = _json_output(show_result.stdout)
    shown_account = shown["account"]
    assert isinstance(shown_account, dict)
    assert shown_account["matureImpact"] == 12


def test_cli_settings_put_rejects_invalid_document(harness: CliHarness) -> None:
    harness.fs.write_json({"schemaVersion": 1, "dealAge": {"warnDays": "soon"}}, Path("bad.json"))

    result = harness.invoke("settings", "put", "bad.json")

    assert result.exit_code == 1
    assert "Invalid scoring settings" in _strip_ansi(result.output)
    assert harness.repository.writes == 0


def test_cli_settings_defaults(harness: CliHarness) -> None:
    result = harness.invoke("settings", "defaults")

    assert result.exit_code == 0, result.output
    assert _json_output(result.stdout) == settings_to_document(default_scoring_settings())


def test_cli_global_config_file_overrides_env(harness: CliHarness) -> None:
    harness.fs.write_text(
        """
schema_version = 1
[engine]
default_period = "next_quarter"
crm_data_path = "exports/crm.json"
exclude_overdue = true
""".strip(),
        Path("config/forecast.toml"),
    )

    result = harness.invoke("--config", "config/forecast.toml", "forecast", "--today", "2026-05-15")

    assert result.exit_code == 0, result.output
    config = harness.configs[-1]
    assert config.default_period is ForecastPeriod.NEXT_QUARTER
    assert config.crm_data_path == "exports/crm.json"
    assert config.exclude_overdue is True
    assert _json_output(result.stdout)["period"] == "next_quarter"


def test_cli_options_override_config_file(harness: CliHarness) -> None:
    harness.fs.write_text(
        'schema_version = 1\n[engine]\ncrm_data_path = "exports/crm.json"\n',
        Path("config/forecast.toml"),
    )

    result = harness.invoke(
        "--config",
        "config/forecast.toml",
        "--data",
        "other/crm.json",
        "--settings-file",
        "other/settings.json",
        "settings",
        "defaults",
    )

    assert result.exit_code == 0, result.output
    config = harness.configs[-1]
    assert config.crm_data_path == "other/crm.json"
    assert config.settings_path == "other/settings.json"


def test_cli_missing_config_file_exits(harness: CliHarness) -> None:
    result = harness.invoke("--config", "nope.toml", "settings", "defaults")

    assert result.exit_code == 1
    assert "Config file not found: nope.toml" in _strip_ansi(result.output)


@pytest.mark.parametrize("content", ["{not json", "[]"])
def test_cli_forecast_reports_unparseable_crm_file(
    monkeypatch: pytest.MonkeyPatch, content: str
) -> None:
    def fake_from_env(cls: type[EngineConfig], dotenv_path: str | None = None) -> EngineConfig:
        _ = (cls, dotenv_path)
        return EngineConfig()

    monkeypatch.setattr(cli.EngineConfig, "from_env", classmethod(fake_from_env))
    fs = InMemoryFileSystem()
    fs.write_text(content, Path("crm.json"))
    crm_source = JsonFileCrmSource(Path("crm.json"), fs)
    deps = CliDependencies(
        fs=fs,
        opportunities=crm_source,
        owners=crm_source,
        settings_store=SettingsStore(InMemorySettingsRepository()),
    )

    def build_with_shared_deps(*, config: EngineConfig) -> CliDependencies:
        _ = config
        return deps

    result = runner.invoke(
        cli.create_app(build_with_shared_deps), ["forecast", "--today", "2026-05-15"]
    )

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "Could not parse CRM data at crm.json" in _strip_ansi(result.output)
