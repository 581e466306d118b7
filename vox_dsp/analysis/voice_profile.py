from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Optional

import numpy as np

from vox_dsp.types.schemas import VoiceProfile, VoiceProfileState

LOGGER = logging.getLogger(__name__)

MAX_RECENT_F0S = 1000
MIN_SAMPLES_FOR_PROFILE = 50
DEFAULT_COMFORTABLE_F0 = 200.0
VALID_F0_MIN = 50.0
VALID_F0_MAX = 2500.0


class VoiceProfileBuilder:
    """
    Construit un VoiceProfile à partir des hauteurs acceptées d'un chanteur.

    La persistance reste à la charge de l'appelant (snapshot() / from_snapshot()).
    """

    def __init__(self, max_recent: int = MAX_RECENT_F0S, min_samples: int = MIN_SAMPLES_FOR_PROFILE):
        self.max_recent = max_recent
        self.min_samples = min_samples
        self._recent: deque[float] = deque(maxlen=max_recent)
        self.min_f0: Optional[float] = None
        self.max_f0: Optional[float] = None
        self.sample_count = 0

    def add_pitch(self, frequency: float) -> bool:
        """Ajoute une hauteur ; False si elle sort de la plage vocale plausible."""
        if not (VALID_F0_MIN <= frequency <= VALID_F0_MAX):
            return False
        f = float(frequency)
        self._recent.append(f)
        self.min_f0 = f if self.min_f0 is None else min(self.min_f0, f)
        self.max_f0 = f if self.max_f0 is None else max(self.max_f0, f)
        self.sample_count += 1
        return True

    def add_pitches(self, frequencies: Iterable[float]) -> int:
        return sum(1 for f in frequencies if self.add_pitch(f))

    def comfortable_f0(self) -> float:
        if not self._recent:
            return DEFAULT_COMFORTABLE_F0
        return float(np.median(np.fromiter(self._recent, dtype=np.float64)))

    @property
    def has_enough_data(self) -> bool:
        return self.sample_count >= self.min_samples

    def profile(self) -> Optional[VoiceProfile]:
        if not self.has_enough_data:
            return None
        return VoiceProfile(
            min_f0=self.min_f0,
            max_f0=self.max_f0,
            comfortable_f0=self.comfortable_f0(),
            sample_count=self.sample_count,
        )

    def reset(self) -> None:
        self._recent.clear()
        self.min_f0 = None
        self.max_f0 = None
        self.sample_count = 0

    # ---------- sérialisation ----------
    def snapshot(self) -> VoiceProfileState:
        return VoiceProfileState(
            min_f0=self.min_f0,
            max_f0=self.max_f0,
            recent_f0s=list(self._recent),
            sample_count=self.sample_count,
        )

    @classmethod
    def from_snapshot(cls, state: VoiceProfileState, **kwargs) -> "VoiceProfileBuilder":
        builder = cls(**kwargs)
        builder._recent.extend(state.recent_f0s)
        builder.min_f0 = state.min_f0
        builder.max_f0 = state.max_f0
        builder.sample_count = state.sample_count
        LOGGER.debug("Voice profile restored: %d samples", builder.sample_count)
        return builder
