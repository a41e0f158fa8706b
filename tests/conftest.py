"""Fixtures for the tests."""

import pytest

from epcontam.source import (
    AirLoop,
    BuildingModel,
    BuildingStory,
    Space,
    Surface,
    ThermalZone,
)


def south_wall(
    handle: str,
    space: str | None,
    z0: float,
    z1: float,
    boundary: str = "Outdoors",
    adjacent: str | None = None,
    width: float = 10.0,
) -> Surface:
    """A wall in the y=0 plane facing south (outward normal -y)."""
    return Surface(
        handle=handle,
        name=f"{handle} wall",
        space=space,
        surface_type="Wall",
        outside_boundary_condition=boundary,
        adjacent_surface=adjacent,
        vertices=[(0, 0, z1), (0, 0, z0), (width, 0, z0), (width, 0, z1)],
    )


def horizontal(
    handle: str,
    space: str | None,
    z: float,
    surface_type: str,
    boundary: str,
    adjacent: str | None = None,
    facing_up: bool = True,
) -> Surface:
    """A 10 m x 10 m horizontal surface at height z."""
    vertices = [(0, 0, z), (10, 0, z), (10, 10, z), (0, 10, z)]
    if not facing_up:
        vertices = vertices[::-1]
    return Surface(
        handle=handle,
        name=f"{handle} {surface_type.lower()}",
        space=space,
        surface_type=surface_type,  # pyright: ignore [reportArgumentType]
        outside_boundary_condition=boundary,
        adjacent_surface=adjacent,
        vertices=vertices,
    )


def two_story_kwargs() -> dict:
    """The parts of a two story building with one zone and one exterior wall per story."""
    return {
        "Name": "Two story",
        "Stories": [
            BuildingStory(handle="S1", name="Story 1", nominal_floor_to_floor_height=3.0),
            BuildingStory(handle="S2", name="Story 2", nominal_floor_to_floor_height=3.0),
        ],
        "Spaces": [
            Space(
                handle="SP1",
                name="Space 1",
                story="S1",
                thermal_zone="Z1",
                volume=300.0,
                floor_area=100.0,
            ),
            Space(
                handle="SP2",
                name="Space 2",
                story="S2",
                thermal_zone="Z2",
                volume=300.0,
                floor_area=100.0,
            ),
        ],
        "ThermalZones": [
            ThermalZone(handle="Z1", name="Zone One"),
            ThermalZone(handle="Z2", name="Zone Two"),
        ],
        "Surfaces": [
            south_wall("W1", "SP1", 0.0, 3.0),
            south_wall("W2", "SP2", 3.0, 6.0),
        ],
    }


@pytest.fixture(scope="function")
def two_story_model() -> BuildingModel:
    """Two stories of 3 m, one zone each, one south-facing exterior wall each."""
    return BuildingModel(**two_story_kwargs())


@pytest.fixture(scope="function")
def stacked_model() -> BuildingModel:
    """The two story building with a ceiling/floor pair between the zones and a roof and ground floor."""
    kwargs = two_story_kwargs()
    kwargs["Surfaces"] = [
        *kwargs["Surfaces"],
        horizontal("G1", "SP1", 0.0, "Floor", "Ground", facing_up=False),
        horizontal("C1", "SP1", 3.0, "RoofCeiling", "Surface", adjacent="F2"),
        horizontal("F2", "SP2", 3.0, "Floor", "Surface", adjacent="C1", facing_up=False),
        horizontal("R2", "SP2", 6.0, "RoofCeiling", "Outdoors"),
    ]
    return BuildingModel(**kwargs)


@pytest.fixture(scope="function")
def hvac_model() -> BuildingModel:
    """The two story building with one air loop serving both zones."""
    kwargs = two_story_kwargs()
    kwargs["AirLoops"] = [
        AirLoop(handle="L1", name="Main loop", thermal_zones=["Z1", "Z2"]),
        AirLoop(handle="L2", name="Idle loop", thermal_zones=[]),
    ]
    return BuildingModel(**kwargs)


@pytest.fixture(scope="function")
def two_story_parts() -> dict:
    """Fresh keyword arguments for the two story building, for tests that modify it."""
    return two_story_kwargs()


@pytest.fixture(scope="function")
def make_wall():
    """The south wall surface factory."""
    return south_wall
