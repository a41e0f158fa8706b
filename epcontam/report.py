"""Warnings and errors collected while translating a model."""

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LogMessage(BaseModel, frozen=True):
    """A single translation message."""

    level: int = Field(..., title="Severity, as a logging level")
    message: str
    channel: str = Field(default="epcontam", title="Logger the message was sent to")

    @property
    def level_name(self) -> str:
        """Return the name of the severity level."""
        return logging.getLevelName(self.level)

    def __str__(self) -> str:
        """Render the message as `LEVEL: message`."""
        return f"{self.level_name}: {self.message}"


class TranslationReport:
    """Append-only log of the anomalies found during one translation.

    Every entry is also sent to the logger it is recorded under, so the report and
    the application log agree.
    """

    def __init__(self, channel: logging.Logger | None = None):
        """Create an empty report.

        Args:
            channel (logging.Logger | None): The logger entries are forwarded to.
        """
        self.channel = channel or logger
        self._messages: list[LogMessage] = []

    def record(self, level: int, message: str):
        """Record a message at an arbitrary severity."""
        self._messages.append(
            LogMessage(level=level, message=message, channel=self.channel.name)
        )
        self.channel.log(level, message)

    def warning(self, message: str):
        """Record a recoverable problem."""
        self.record(logging.WARNING, message)

    def error(self, message: str):
        """Record a fatal problem."""
        self.record(logging.ERROR, message)

    def warnings(self) -> list[LogMessage]:
        """Return every recorded message below error severity, in order."""
        return [m for m in self._messages if m.level < logging.ERROR]

    def errors(self) -> list[LogMessage]:
        """Return the recorded errors, in order."""
        return [m for m in self._messages if m.level >= logging.ERROR]

    @property
    def messages(self) -> list[LogMessage]:
        """All recorded messages, in order."""
        return list(self._messages)

    def clear(self):
        """Forget every recorded message."""
        self._messages.clear()

    def __len__(self) -> int:
        """Return the number of recorded messages."""
        return len(self._messages)
