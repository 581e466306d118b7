# vox_dsp/analysis/yin.py — noyau YIN partagé par les détecteurs Basic et Pro
from __future__ import annotations

import math
from typing import List

import numba
import numpy as np

from vox_dsp.types.dataclasses import Candidate
from vox_dsp.types.exceptions import InvalidFrameError

PARABOLA_EPS = 1e-4


def as_frame(frame) -> np.ndarray:
    return np.ascontiguousarray(frame, dtype=np.float64)


def frame_rms(frame: np.ndarray) -> float:
    if frame.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(frame))))


def period_bounds(sample_rate: float, min_frequency: float, max_frequency: float) -> tuple[int, int]:
    """(min_period, max_period) en échantillons pour la bande [min_frequency, max_frequency]."""
    return int(math.floor(sample_rate / max_frequency)), int(math.floor(sample_rate / min_frequency))


def validate_frame(frame: np.ndarray, sample_rate: float, min_frequency: float, max_frequency: float) -> tuple[int, int]:
    """
    Vérifie qu'une trame est analysable et retourne (min_period, max_period).
    Lève InvalidFrameError plutôt que de lire hors du buffer.
    """
    if not np.isfinite(sample_rate) or sample_rate <= 0:
        raise InvalidFrameError(f"Sample rate must be positive, got {sample_rate}")
    if min_frequency <= 0 or min_frequency >= max_frequency:
        raise InvalidFrameError(
            f"Invalid frequency band [{min_frequency}, {max_frequency}] Hz"
        )
    if frame.ndim != 1:
        raise InvalidFrameError(f"Expected a mono (1-D) frame, got shape {frame.shape}")

    min_period, max_period = period_bounds(sample_rate, min_frequency, max_frequency)
    if min_period < 1:
        raise InvalidFrameError(
            f"max_frequency {max_frequency} Hz is too high for sample rate {sample_rate} Hz"
        )
    if frame.size < max_period:
        raise InvalidFrameError(
            f"Frame of {frame.size} samples is shorter than the {max_period}-sample period "
            f"implied by min_frequency={min_frequency} Hz at {sample_rate} Hz",
            frame_length=int(frame.size),
            required_length=max_period,
        )
    return min_period, max_period


@numba.jit(nopython=True)
def difference_function(x, max_period):
    """d[tau] = sum_{i < max_period, i+tau < N} (x[i] - x[i+tau])^2"""
    n = x.size
    d = np.zeros(max_period)
    for tau in range(max_period):
        acc = 0.0
        for i in range(max_period):
            if i + tau >= n:
                break
            delta = x[i] - x[i + tau]
            acc += delta * delta
        d[tau] = acc
    return d


def cmnd(d: np.ndarray) -> np.ndarray:
    """Différence moyenne cumulée normalisée : d'[0] = 1, d'[tau] = d[tau]·tau / sum(d[1..tau])."""
    out = np.ones_like(d, dtype=np.float64)
    if d.size < 2:
        return out
    running = np.cumsum(d[1:])
    taus = np.arange(1, d.size, dtype=np.float64)
    valid = running > 0
    out[1:][valid] = d[1:][valid] * taus[valid] / running[valid]
    return out


def parabolic_refine(yin: np.ndarray, tau: int) -> float:
    """Interpolation parabolique du minimum autour de tau (tau inchangé si dégénéré)."""
    if tau <= 0 or tau >= yin.size - 1:
        return float(tau)
    s0, s1, s2 = yin[tau - 1], yin[tau], yin[tau + 1]
    denom = 2.0 * (2.0 * s1 - s2 - s0)
    if abs(denom) <= PARABOLA_EPS:
        return float(tau)
    return float(tau + (s2 - s0) / denom)


def find_candidates(yin: np.ndarray, sample_rate: float, min_period: int, threshold: float) -> List[Candidate]:
    """
    Tous les minima locaux de d' sous le seuil, par lag croissant.
    Chaque candidat porte déjà sa période raffinée.
    """
    candidates: List[Candidate] = []
    for tau in range(max(min_period, 1), yin.size - 1):
        value = yin[tau]
        if value < threshold and value < yin[tau - 1] and value <= yin[tau + 1]:
            period = parabolic_refine(yin, tau)
            candidates.append(Candidate(
                tau=tau,
                period=period,
                frequency=sample_rate / period,
                difference=float(value),
            ))
    return candidates


def yin_candidates(
    frame: np.ndarray,
    sample_rate: float,
    min_period: int,
    max_period: int,
    threshold: float,
) -> tuple[np.ndarray, List[Candidate]]:
    """Fonction de différence + CMND + recherche des minima. Retourne (d', candidats)."""
    yin = cmnd(difference_function(frame, max_period))
    return yin, find_candidates(yin, sample_rate, min_period, threshold)
