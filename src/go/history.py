"""
Bounded window of position fingerprints used for the (positional) superko rule.

NOTE only the most recent `capacity` positions are remembered; older ones are evicted first-in-first-out.
So superko detection has a finite lookback. For realistic game lengths the default window covers the whole game.
"""

from collections import deque
from typing import Iterable, Self

DEFAULT_CAPACITY = 2048


class PositionHistory:
    def __init__(self, fingerprints: Iterable[str] = (), capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._window: deque[str] = deque(fingerprints, maxlen=capacity)
        self._seen = set(self._window)

    @classmethod
    def from_list(cls, fingerprints: list[str], capacity: int = DEFAULT_CAPACITY) -> Self:
        return cls(fingerprints, capacity)

    def to_list(self) -> list[str]:
        return list(self._window)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def __len__(self) -> int:
        return len(self._window)

    def append(self, fingerprint: str) -> None:
        """Record a new position, evicting the oldest one when the window is full."""
        if len(self._window) == self.capacity:
            evicted = self._window.popleft()
            if evicted not in self._window:
                self._seen.discard(evicted)
        self._window.append(fingerprint)
        self._seen.add(fingerprint)
