"""Tests for the cli module."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from epcontam.cli import cli
from epcontam.source import BuildingModel


@pytest.fixture(scope="function")
def runner() -> CliRunner:
    """A click test runner."""
    return CliRunner()


def test_element_command(runner: CliRunner):
    """Test that the element command prints the derived coefficients."""
    result = runner.invoke(cli, ["element", "--flow", "27.1"])
    assert result.exit_code == 0
    assert "turbulent: 0.000499" in result.output
    assert "laminar: 6.13" in result.output


def test_translate_command(
    runner: CliRunner, tmp_path: Path, two_story_model: BuildingModel
):
    """Test that the translate command writes a project file from an IDF."""
    idf_path = tmp_path / "in.idf"
    idf_path.write_text("")
    output = tmp_path / "out.prj"
    with (
        patch("archetypal.idfclass.IDF") as mock_idf,
        patch(
            "epcontam.idf_source.building_model_from_idf",
            return_value=two_story_model,
        ) as mock_builder,
    ):
        result = runner.invoke(
            cli,
            [
                "translate",
                str(idf_path),
                str(output),
                "--leakage",
                "tight",
                "--no-hvac",
                "--wind-speed",
                "3",
                "--wind-direction",
                "90",
            ],
        )
    assert result.exit_code == 0, result.output
    assert mock_idf.called
    assert mock_builder.call_args.kwargs["results"] is None
    text = output.read_text()
    assert text.startswith("ContamW 3.1  0")
    assert "\n6 293.15 101325 3 90\n" in text


def test_translate_failure_exits_nonzero(runner: CliRunner, tmp_path: Path):
    """Test that a failed translation reports its errors and exits with 1."""
    idf_path = tmp_path / "in.idf"
    idf_path.write_text("")
    output = tmp_path / "out.prj"
    with (
        patch("archetypal.idfclass.IDF"),
        patch(
            "epcontam.idf_source.building_model_from_idf",
            return_value=BuildingModel(),
        ),
    ):
        result = runner.invoke(cli, ["translate", str(idf_path), str(output)])
    assert result.exit_code == 1
    assert "Failed to find building stories in model" in result.output
    assert not output.exists()


def test_exclusive_leakage_options(runner: CliRunner, tmp_path: Path):
    """Test that a descriptor and a leakage rate cannot be combined."""
    idf_path = tmp_path / "in.idf"
    idf_path.write_text("")
    result = runner.invoke(
        cli,
        [
            "translate",
            str(idf_path),
            str(tmp_path / "out.prj"),
            "--leakage",
            "Leaky",
            "--leakage-rate",
            "10",
        ],
    )
    assert result.exit_code == 1
    assert "exclusive" in result.output


def test_element_command_defaults_to_average_leakage(runner: CliRunner):
    """Test that without a flow the average exterior leakage rate is used."""
    default = runner.invoke(cli, ["element"])
    explicit = runner.invoke(cli, ["element", "--flow", "27.1"])
    assert default.exit_code == 0
    assert default.output == explicit.output


def test_non_positive_leakage_rate_is_a_usage_error(runner: CliRunner, tmp_path: Path):
    """Test that the CLI refuses a leakage rate that is not positive."""
    idf_path = tmp_path / "in.idf"
    idf_path.write_text("")
    result = runner.invoke(
        cli,
        ["translate", str(idf_path), str(tmp_path / "out.prj"), "--leakage-rate", "0"],
    )
    assert result.exit_code == 2
    assert not (tmp_path / "out.prj").exists()
