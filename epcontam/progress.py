"""Progress reporting for long translations."""

from typing import Protocol, runtime_checkable

from tqdm.autonotebook import tqdm


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives phase changes and step increments from a translation.

    Calls are made synchronously from the translating thread.
    """

    def start_phase(self, title: str, maximum: int) -> None:
        """Begin a new phase with a known number of steps."""
        ...

    def advance(self) -> None:
        """Mark one step of the current phase as done."""
        ...


class TqdmProgress:
    """Shows one tqdm bar per translation phase."""

    def __init__(self, leave: bool = False):
        """Create the observer.

        Args:
            leave (bool): Keep finished bars on screen.
        """
        self.leave = leave
        self._bar: tqdm | None = None

    def start_phase(self, title: str, maximum: int) -> None:
        """Close the previous bar and open a new one."""
        self.close()
        self._bar = tqdm(total=maximum, desc=title, leave=self.leave)

    def advance(self) -> None:
        """Advance the current bar."""
        if self._bar is not None:
            self._bar.update(1)

    def close(self) -> None:
        """Close the current bar, if any."""
        if self._bar is not None:
            self._bar.close()
            self._bar = None
