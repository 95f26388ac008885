"""Scan session tokens and the authoritative generation counter.

A ``ScanSession`` is an immutable token naming one scan invocation. The
``GenerationCounter`` it references is the only mutable piece: it is
shared by reference with every worker of the scan and only advanced by
``ScanEngine.new_session`` and ``ScanEngine.cancel``. A session is
cancelled as soon as the counter no longer equals its generation.
"""

import threading
from dataclasses import dataclass, field

from vacctl.errors import ScanCancelled


class GenerationCounter:
    """Thread-safe monotonically increasing generation number."""

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._current = start

    @property
    def current(self) -> int:
        """The authoritative generation."""
        return self._current

    def advance(self) -> int:
        """Increment the generation and return the new value."""
        with self._lock:
            self._current += 1
            return self._current

    def advance_if(self, generation: int) -> bool:
        """Advance only if ``generation`` is still current.

        Returns:
            True if the counter was advanced.
        """
        with self._lock:
            if self._current != generation:
                return False
            self._current += 1
            return True


@dataclass(frozen=True, slots=True)
class ScanSession:
    """Identity of one scan invocation.

    Attributes:
        generation: Generation number assigned when the session was created.
    """

    generation: int
    counter: GenerationCounter = field(repr=False, compare=False)

    @property
    def cancelled(self) -> bool:
        """True once a newer session or an explicit cancel superseded this one."""
        return self.counter.current != self.generation

    def checkpoint(self) -> None:
        """Raise ``ScanCancelled`` if the session has been superseded."""
        if self.cancelled:
            raise ScanCancelled(self.generation)
