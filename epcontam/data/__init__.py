"""This module provides the paths to the packaged network template."""

from pathlib import Path

ContamArtifactDir = Path(__file__).parent

DefaultTemplatePath = ContamArtifactDir / "template.yaml"

__all__ = [
    "ContamArtifactDir",
    "DefaultTemplatePath",
]
