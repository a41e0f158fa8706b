"""Tests for the prj module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from epcontam.data import DefaultTemplatePath
from epcontam.exceptions import TemplateLoadError
from epcontam.prj import EXTERIOR, AHS_S, VAR_C, VAR_P, WIND, FlowPath, NetworkData, Zone


@pytest.fixture(scope="function")
def template() -> NetworkData:
    """The packaged baseline template."""
    return NetworkData.from_yaml(DefaultTemplatePath)


def test_template_loads(template: NetworkData):
    """Test that the template holds the twelve graded elements and the wind profiles."""
    assert len(template.airflow_elements) == 12
    assert len(template.wind_profiles) == 5
    index = template.element_index()
    assert index["ExtWallAvg"] == 2
    assert index["IntWallAvg"] == 5
    assert index["FloorAvg"] == 8
    assert index["RoofAvg"] == 11
    assert template.levels == []
    assert template.zones == []
    assert template.paths == []
    assert template.ahs == []


def test_missing_template_raises(tmp_path: Path):
    """Test that an unreadable template raises a TemplateLoadError."""
    with pytest.raises(TemplateLoadError):
        NetworkData.from_yaml(tmp_path / "missing.yaml")


def test_malformed_template_raises(tmp_path: Path):
    """Test that YAML that does not describe a network raises a TemplateLoadError."""
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(TemplateLoadError):
        NetworkData.from_yaml(path)
    path.write_text("airflow_elements:\n  - nr: 2\n    name: X\n")
    with pytest.raises(TemplateLoadError):
        NetworkData.from_yaml(path)


def test_numbering_must_be_contiguous():
    """Test that gaps in numbering are rejected."""
    with pytest.raises(ValidationError):
        NetworkData(
            levels=[],
            zones=[
                Zone(nr=1, level=1, name="Zone_1"),
                Zone(nr=3, level=1, name="Zone_3"),
            ],
        )


def test_wind_fields_only_on_envelope_paths():
    """Test that interior paths cannot carry wind data."""
    with pytest.raises(ValidationError):
        FlowPath(nr=1, role="interior", from_zone=1, to_zone=2, level=1, wind_profile=4)
    with pytest.raises(ValidationError):
        FlowPath(nr=1, role="exhaust", from_zone=1, to_zone=EXTERIOR, level=1, ahs=1)


def test_flags():
    """Test the zone and path flag bit fields."""
    zone = Zone(nr=1, level=1, name="Zone_1")
    assert zone.flags == VAR_P | VAR_C
    envelope = FlowPath(nr=1, role="envelope", from_zone=1, to_zone=EXTERIOR, level=1)
    assert envelope.flags == WIND
    assert envelope.wind_driven
    supply = FlowPath(nr=2, role="supply", from_zone=2, to_zone=1, level=1, ahs=1)
    assert supply.flags == AHS_S
    assert not supply.wind_driven


def test_to_prj_sections(template: NetworkData):
    """Test that every section is written with its count and terminator."""
    template.zones.append(Zone(nr=1, level=1, name="Zone_1", volume=30.0))
    text = template.to_prj()
    lines = text.splitlines()
    assert lines[0] == "ContamW 3.1  0"
    assert lines[1] == "Airflow network template"
    assert lines[-1] == "* end project file."
    assert lines.count("-999") == 7
    assert "5 ! wind pressure profiles:" in lines
    assert "12 ! flow elements:" in lines
    assert "0 ! levels:" in lines
    assert "1 ! zones:" in lines
    assert "1 9 1 30 293.15 Zone_1" in lines
    assert "0 ! simple AHS:" in lines
