"""A library for translating building energy models into multizone airflow networks."""

from epcontam.settings import ContamSettings, contam_settings
from epcontam.source import BuildingModel
from epcontam.translator import NetworkAssembler

__all__ = ["BuildingModel", "ContamSettings", "NetworkAssembler", "contam_settings"]
