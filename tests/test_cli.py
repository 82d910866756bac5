"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from sitediff.cli import cli
from sitediff.errors import ReportWriteFailure
from sitediff.models.config import SiteDiffConfig


def _summary(strategy="bytes", different=0):
    return {
        "run_id": "run_test",
        "duration": 1.0,
        "strategy": strategy,
        "environments": ("production", "development"),
        "results": {
            "pages": 2, "device_types": 2, "total": 4,
            "identical": 4 - different, "different": different, "errors": 0, "baselines": 0,
        },
        "reports": {"json": "test-results/screenshots/multi-page-comparison-report.json"},
    }


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestInit:
    def test_creates_config(self, runner, tmp_path: Path):
        path = tmp_path / "sitediff.json"
        result = runner.invoke(cli, ["init", "-c", str(path),
                                     "--production", "https://example.com",
                                     "--development", "https://dev.example.com"])
        assert result.exit_code == 0
        cfg = SiteDiffConfig.load(path)
        assert cfg.environments[1].base_url == "https://dev.example.com"

    def test_declines_overwrite(self, runner, temp_config_file):
        before = temp_config_file.read_text()
        result = runner.invoke(cli, ["init", "-c", str(temp_config_file)], input="n\n")
        assert result.exit_code == 0
        assert temp_config_file.read_text() == before


class TestPageCommands:
    def test_add_and_list(self, runner, temp_config_file):
        result = runner.invoke(cli, ["page", "add", "/about/", "-c", str(temp_config_file)])
        assert result.exit_code == 0
        assert "/about/" in SiteDiffConfig.load(temp_config_file).pages

        result = runner.invoke(cli, ["page", "list", "-c", str(temp_config_file)])
        assert "/about/" in result.output

    def test_add_colliding_path_rejected(self, runner, temp_config_file):
        result = runner.invoke(cli, ["page", "add", "/communities_eagle/", "-c", str(temp_config_file)])
        assert result.exit_code == 1
        assert "/communities_eagle/" not in SiteDiffConfig.load(temp_config_file).pages

    def test_remove(self, runner, temp_config_file):
        result = runner.invoke(cli, ["page", "remove", "/communities/eagle/", "-c", str(temp_config_file)])
        assert result.exit_code == 0
        assert SiteDiffConfig.load(temp_config_file).pages == ["/"]

    def test_cannot_remove_last_page(self, runner, temp_config_file):
        runner.invoke(cli, ["page", "remove", "/communities/eagle/", "-c", str(temp_config_file)])
        result = runner.invoke(cli, ["page", "remove", "/", "-c", str(temp_config_file)])
        assert result.exit_code == 1


class TestRun:
    def test_missing_config(self, runner, tmp_path: Path):
        result = runner.invoke(cli, ["run", "-c", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_invalid_config(self, runner, tmp_path: Path):
        path = tmp_path / "sitediff.json"
        path.write_text(json.dumps({"pages": ["no-slash"]}))
        result = runner.invoke(cli, ["run", "-c", str(path)])
        assert result.exit_code == 1

    def test_bytes_difference_exits_zero(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = _summary(different=2)
            result = runner.invoke(cli, ["run", "-c", str(temp_config_file)])
        assert result.exit_code == 0
        assert "Comparison Complete" in result.output

    def test_fail_on_diff(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = _summary(different=2)
            result = runner.invoke(cli, ["run", "-c", str(temp_config_file), "--fail-on-diff"])
        assert result.exit_code == 1

    def test_perceptual_difference_exits_non_zero(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = _summary(strategy="perceptual", different=1)
            result = runner.invoke(cli, ["run", "-c", str(temp_config_file), "-s", "perceptual"])
        assert result.exit_code == 1
        assert orch_cls.call_args.kwargs["strategy"] == "perceptual"

    def test_perceptual_clean_exits_zero(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = _summary(strategy="perceptual")
            result = runner.invoke(cli, ["run", "-c", str(temp_config_file), "-s", "perceptual"])
        assert result.exit_code == 0

    def test_report_write_failure(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.run.side_effect = ReportWriteFailure("disk full")
            result = runner.invoke(cli, ["run", "-c", str(temp_config_file)])
        assert result.exit_code == 2

    def test_passes_filters(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = _summary()
            runner.invoke(cli, ["run", "-c", str(temp_config_file), "-p", "/", "--viewport", "mobile",
                                "--against", "development", "--update-baselines"])
        kwargs = orch_cls.call_args.kwargs
        assert kwargs["pages"] == ["/"]
        assert kwargs["viewports"] == ["mobile"]
        assert kwargs["candidate"] == "development"
        assert kwargs["update_baselines"] is True

    def test_bad_filter_exits(self, runner, temp_config_file):
        result = runner.invoke(cli, ["run", "-c", str(temp_config_file), "--against", "production"])
        assert result.exit_code == 1
        assert "with itself" in result.output


class TestBaselineCommands:
    def test_list_empty(self, runner, temp_config_file):
        result = runner.invoke(cli, ["baseline", "list", "-c", str(temp_config_file)])
        assert result.exit_code == 0
        assert "No baselines stored" in result.output

    def test_reset_confirmed(self, runner, temp_config_file, site_config):
        registry = Path(site_config.baselines_dir) / "registry.json"
        registry.parent.mkdir(parents=True)
        registry.write_text(json.dumps({"base_url": "https://example.com"}))

        result = runner.invoke(cli, ["baseline", "reset", "-c", str(temp_config_file), "--yes"])
        assert result.exit_code == 0
        assert not registry.exists()


class TestReportCommand:
    def test_no_records(self, runner, temp_config_file):
        result = runner.invoke(cli, ["report", "-c", str(temp_config_file)])
        assert result.exit_code == 1
        assert "No result records" in result.output

    def test_rebuild(self, runner, temp_config_file):
        with patch("sitediff.cli.Orchestrator") as orch_cls:
            orch_cls.return_value.rebuild_report.return_value = _summary(different=1)
            result = runner.invoke(cli, ["report", "-c", str(temp_config_file)])
        assert result.exit_code == 0
        assert "Different" in result.output
