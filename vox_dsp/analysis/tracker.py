from __future__ import annotations

from collections import deque
from typing import Literal, Optional

Smoothing = Literal["median", "last"]


class PitchTracker:
    """
    État de suivi d'un flux de détection (une session d'enregistrement).

    Garde les dernières fréquences acceptées dans un buffer circulaire et la
    « fréquence précédente » utilisée pour lever les ambiguïtés d'octave.
    Une instance par flux : deux détecteurs ne doivent jamais partager la
    même instance.

    smoothing="median" : previous = médiane du buffer dès 3 valeurs (Basic)
    smoothing="last"   : previous = dernière valeur acceptée (Pro)
    """

    def __init__(self, history_size: int = 5, smoothing: Smoothing = "median"):
        if history_size < 1:
            raise ValueError(f"history_size must be >= 1, got {history_size}")
        if smoothing not in ("median", "last"):
            raise ValueError(f"Unknown smoothing '{smoothing}'")
        self.history_size = history_size
        self.smoothing = smoothing
        self._history: deque[float] = deque(maxlen=history_size)
        self._previous: Optional[float] = None

    @property
    def previous_frequency(self) -> Optional[float]:
        return self._previous

    @property
    def history(self) -> tuple[float, ...]:
        return tuple(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def push(self, frequency: float) -> None:
        self._history.append(float(frequency))
        if self.smoothing == "median" and len(self._history) >= 3:
            ordered = sorted(self._history)
            self._previous = ordered[len(ordered) // 2]
        else:
            self._previous = float(frequency)

    def reset(self) -> None:
        self._history.clear()
        self._previous = None

    def __repr__(self) -> str:
        return (
            f"PitchTracker(history_size={self.history_size}, smoothing={self.smoothing!r}, "
            f"previous={self._previous}, history={list(self._history)})"
        )
