from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from vox_dsp.types.dataclasses import PitchSample, VibratoResult

MIN_TOTAL_SAMPLES = 10
MIN_WINDOW_SAMPLES = 5


def detect_vibrato(
    samples: Sequence[PitchSample],
    window_ms: float = 500.0,
    now: Optional[float] = None,
) -> Optional[VibratoResult]:
    """
    Estime le vibrato (taux en Hz, amplitude en cents) sur les échantillons
    récents d'un historique de hauteurs.

    - now : instant de référence (s) ; par défaut le timestamp le plus récent
    - fenêtre : échantillons tels que now - timestamp < window_ms, triés par timestamp
    - taux : passages par zéro de (f - moyenne) / 2 / durée couverte
    - amplitude : (max - min) / moyenne · 1200
    """
    if len(samples) < MIN_TOTAL_SAMPLES:
        return None

    ref = max(s.timestamp for s in samples) if now is None else now
    window_s = window_ms / 1000.0
    recent = sorted((s for s in samples if ref - s.timestamp < window_s), key=lambda s: s.timestamp)
    if len(recent) < MIN_WINDOW_SAMPLES:
        return None

    freqs = np.array([s.frequency for s in recent], dtype=np.float64)
    mean = float(np.mean(freqs))
    above = (freqs - mean) >= 0
    crossings = int(np.count_nonzero(above[1:] != above[:-1]))

    duration = recent[-1].timestamp - recent[0].timestamp
    rate = crossings / 2.0 / duration if duration > 0 else 0.0
    extent = float((freqs.max() - freqs.min()) / mean * 1200.0)
    return VibratoResult(rate=float(rate), extent=extent)
