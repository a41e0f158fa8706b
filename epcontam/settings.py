"""Configuration settings for epcontam, loaded from environment variables."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from epcontam.data import DefaultTemplatePath

WindTerrain = Literal["flat", "country", "suburban", "city"]

KNOWN_LEAKAGE_DESCRIPTORS = ("Average", "Tight", "Leaky")


def _normalize_leakage_descriptor(value: str) -> str:
    """Normalize a leakage descriptor to its canonical capitalization.

    Accepts formats like "tight", " LEAKY ", "Average".
    """
    normalized = value.strip()
    if not normalized:
        return normalized
    return normalized[0].upper() + normalized[1:].lower()


class ContamSettings(BaseSettings):
    """Default options for translating a building model into an airflow network.

    Every value can be overridden per call; these only supply the defaults used by
    the CLI and by translators created without explicit arguments.
    """

    model_config = SettingsConfigDict(
        env_prefix="EPCONTAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    leakage_descriptor: str = Field(
        default="Average",
        description="Envelope tightness grade used to pick the template airflow elements.",
    )
    include_hvac: bool = Field(
        default=True,
        description="Whether air loops are translated into air handling systems.",
    )
    template_path: Path = Field(
        default=DefaultTemplatePath,
        description="The YAML file holding the baseline network template.",
    )
    wind_terrain: WindTerrain = Field(
        default="country",
        description="Terrain class used for the wind pressure modifier of envelope paths.",
    )

    @field_validator("leakage_descriptor", mode="before")
    @classmethod
    def normalize_descriptor(cls, v: Any) -> str:
        """Normalize the descriptor string from env (e.g. tight -> Tight)."""
        if v is None:
            return "Average"
        if not isinstance(v, str):
            return v
        return _normalize_leakage_descriptor(v)


# Singleton instance for application-wide use
contam_settings = ContamSettings()
