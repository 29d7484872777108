"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from rating_system.cli import main as cli
from rating_system.data_management.schemas import Figure, PlatformKind, PlatformMetrics, PlatformPresence

runner = CliRunner()


@pytest.fixture
def figure_file(tmp_path):
    figure = Figure(
        id="fig_cli",
        name="Grace Hopper",
        professions={"scientist"},
        platforms=[
            PlatformPresence(
                platform=PlatformKind.GITHUB,
                handle="grace",
                metrics=PlatformMetrics(followers=500, longevity_days=1825, consistency=60),
            )
        ],
    )
    path = tmp_path / "grace.json"
    path.write_text(figure.model_dump_json())
    return path


@pytest.fixture
def store_path(tmp_path, monkeypatch):
    path = tmp_path / "store" / "figures.json"
    monkeypatch.setattr(cli.settings, "store_path", str(path))
    return path


class TestStatus:
    """Tests for the status command."""

    def test_status_table(self):
        """Status lists the configured components."""
        result = runner.invoke(cli.app, ["status"])
        assert result.exit_code == 0
        assert "Rating Engine Status" in result.output
        assert "NewsAPI" in result.output


class TestEvaluate:
    """Tests for the evaluate command."""

    def test_offline_evaluation(self, figure_file, store_path):
        """Offline runs score the document without persisting it."""
        result = runner.invoke(cli.app, ["evaluate", str(figure_file), "--offline"])

        assert result.exit_code == 0, result.output
        assert "Grace Hopper" in result.output
        assert "unsupported" in result.output
        assert not store_path.exists()

    def test_save_and_output(self, figure_file, store_path, tmp_path):
        """--save persists the figure and --output writes the projection."""
        output = tmp_path / "projection.json"
        result = runner.invoke(
            cli.app,
            ["evaluate", str(figure_file), "--offline", "--save", "--output", str(output)],
        )

        assert result.exit_code == 0, result.output
        document = json.loads(store_path.read_text())
        assert "fig_cli" in document["figures"]
        assert len(document["snapshots"]["fig_cli"]) == 1
        projection = json.loads(output.read_text())
        assert projection["id"] == "fig_cli"
        assert 0 <= projection["overall"] <= 100

    def test_invalid_document(self, tmp_path, store_path):
        """A malformed document exits with status 1."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"platforms": []}))

        result = runner.invoke(cli.app, ["evaluate", str(bad), "--offline"])

        assert result.exit_code == 1


class TestTop:
    """Tests for the top command."""

    def test_lists_saved_figures(self, figure_file, store_path):
        """Saved figures appear in the ranking."""
        runner.invoke(cli.app, ["evaluate", str(figure_file), "--offline", "--save"])

        result = runner.invoke(cli.app, ["top", "--profession", "scientist"])

        assert result.exit_code == 0, result.output
        assert "Grace Hopper" in result.output

    def test_invalid_sort(self, store_path):
        """Unknown sort fields exit with status 1."""
        result = runner.invoke(cli.app, ["top", "--sort-by", "name"])
        assert result.exit_code == 1
