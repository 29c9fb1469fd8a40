"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from heirloom.cli import __version__, main


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def _detach_console_handler():
    """Drop handlers bound to the runner's streams after each command."""
    logger = logging.getLogger("heirloom")
    saved = list(logger.handlers)
    yield
    logger.handlers[:] = saved


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def profile_file(tmp_path, profile_data):
    """Write the standard household to a temporary JSON file."""
    path = tmp_path / "household.json"
    with open(path, "w") as f:
        json.dump(profile_data, f)
    return path


@pytest.fixture
def invalid_profile_file(tmp_path, profile_data):
    profile_data["core_identity"]["age"] = 12
    path = tmp_path / "invalid.json"
    with open(path, "w") as f:
        json.dump(profile_data, f)
    return path


# ============================================================================
# MAIN GROUP
# ============================================================================

class TestMain:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "project" in result.output
        assert "validate" in result.output
        assert "life-expectancy" in result.output


# ============================================================================
# VALIDATE
# ============================================================================

class TestValidateCommand:
    def test_valid_profile(self, runner, profile_file):
        result = runner.invoke(main, ["validate", str(profile_file)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_invalid_profile(self, runner, invalid_profile_file):
        result = runner.invoke(main, ["validate", str(invalid_profile_file)])
        assert result.exit_code == 1
        assert "core_identity.age" in result.output

    def test_quiet(self, runner, profile_file):
        result = runner.invoke(main, ["--quiet", "validate", str(profile_file)])
        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["validate", str(tmp_path / "nope.json")])
        assert result.exit_code != 0

    def test_malformed_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(main, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Error loading profile" in result.output


# ============================================================================
# PROJECT
# ============================================================================

class TestProjectCommand:
    def test_project_quiet(self, runner, profile_file):
        result = runner.invoke(
            main,
            ["--quiet", "project", str(profile_file), "-T", "30", "-n", "20", "-s", "7", "--no-outlooks"],
        )
        assert result.exit_code == 0, result.output
        assert "Extinction Year" in result.output
        assert "Seed: 7" in result.output
        assert "Protected Extinction Year" in result.output
        assert "Tail Risk" in result.output

    def test_project_writes_bundle(self, runner, profile_file, tmp_path):
        output = tmp_path / "results" / "bundle.json"
        result = runner.invoke(
            main,
            ["project", str(profile_file), "-T", "25", "-n", "15", "-s", "3",
             "--deterministic", "--no-outlooks", "-o", str(output)],
        )
        assert result.exit_code == 0, result.output
        assert output.exists()

        with open(output) as f:
            data = json.load(f)
        assert data["seed"] == 3
        assert data["config"]["stochastic"] is False
        assert data["current_wealth"] == 5_000_000
        assert data["tail_risk"]["assessment"] in ("LOW", "MEDIUM", "HIGH", "EXTREME")
        assert data["recommendations"]["immediate"]

    def test_project_invalid_profile(self, runner, invalid_profile_file):
        result = runner.invoke(main, ["project", str(invalid_profile_file), "-n", "5"])
        assert result.exit_code == 1
        assert "Invalid profile" in result.output

    def test_project_invalid_options(self, runner, profile_file):
        result = runner.invoke(main, ["project", str(profile_file), "-n", "0"])
        assert result.exit_code == 1
        assert "Invalid run options" in result.output


# ============================================================================
# LIFE EXPECTANCY
# ============================================================================

class TestLifeExpectancyCommand:
    def test_example(self, runner):
        result = runner.invoke(main, ["life-expectancy", "--age", "25"])
        assert result.exit_code == 0
        assert "76.4" in result.output

    def test_quiet(self, runner):
        result = runner.invoke(main, ["-q", "life-expectancy", "--age", "25", "--gender", "female"])
        assert result.exit_code == 0
        assert "Expected remaining years" not in result.output

    def test_invalid_choice(self, runner):
        result = runner.invoke(main, ["life-expectancy", "--age", "25", "--health", "superb"])
        assert result.exit_code == 2
