# vox_dsp/analysis/pitch_pro.py — F0 multi-hypothèses (« Pro ») : YIN + notation fusionnée
"""
Détection multi-hypothèses
==========================
YIN (seuil large, sans filtrage) génère les hypothèses ; chacune est notée sur :
  - cohérence harmonique : f0 explique-t-elle le spectre mieux que f0/2 et 2·f0 ?
  - stabilité temporelle : proximité des dernières hauteurs acceptées
  - tessiture : adéquation au VoiceProfile du chanteur (si assez d'échantillons)
  - confiance YIN : 1 - d'[tau]

Gagnant = meilleur score fusionné (ni la plus forte énergie, ni le plus petit d').
"""

from __future__ import annotations

import logging
import math
import time
from typing import List, Optional, Sequence

import numpy as np

from vox_dsp.analysis.spectrum import Spectrum, compute_spectrum, harmonic_energy
from vox_dsp.analysis.tracker import PitchTracker
from vox_dsp.analysis.yin import as_frame, frame_rms, validate_frame, yin_candidates
from vox_dsp.types.dataclasses import (
    Candidate,
    DetectionResult,
    PitchEstimate,
    ProPitchSample,
    ScoredCandidate,
)
from vox_dsp.types.enums import DetectionMode, NoPitchReason
from vox_dsp.types.schemas import ProDetectorConfig, ScoringWeights, VoiceProfile
from vox_dsp.utils.note_utils import frequency_to_note, semitone_distance

LOGGER = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5
MIN_STABILITY_HISTORY = 3
SUBHARMONIC_MIN_F0 = 100.0      # f0/2 n'est testée qu'au-dessus de 100 Hz
SUBHARMONIC_RATIO = 1.2
OCTAVE_ABOVE_RATIO = 1.5
SUBHARMONIC_SCORE = 0.3
OCTAVE_TOO_LOW_SCORE = 0.4
ENERGY_FLOOR = 1e-3
IN_RANGE_FLOOR = 0.3
MIN_PROFILE_SAMPLES = 50


# ---------- Scores ----------
def harmonic_consistency_score(spectrum: Spectrum, f0: float, num_harmonics: int = 6) -> float:
    energy = harmonic_energy(spectrum, f0, num_harmonics)
    sub_energy = harmonic_energy(spectrum, f0 / 2.0, num_harmonics) if f0 >= SUBHARMONIC_MIN_F0 else 0.0
    octave_above_energy = harmonic_energy(spectrum, f0 * 2.0, num_harmonics)

    if sub_energy > energy * SUBHARMONIC_RATIO:
        return SUBHARMONIC_SCORE        # probablement un sous-harmonique
    if octave_above_energy > energy * OCTAVE_ABOVE_RATIO:
        return OCTAVE_TOO_LOW_SCORE     # probablement une octave trop bas

    top = max(energy, sub_energy, octave_above_energy, ENERGY_FLOOR)
    return float(np.clip(energy / top, 0.0, 1.0))


def temporal_stability_score(f0: float, history: Sequence[float]) -> float:
    if len(history) < MIN_STABILITY_HISTORY:
        return NEUTRAL_SCORE
    avg = sum(semitone_distance(f0, prev) for prev in history) / len(history)
    return max(0.0, 1.0 - avg / 12.0)


def range_match_score(
    f0: float,
    profile: Optional[VoiceProfile],
    min_samples: int = MIN_PROFILE_SAMPLES,
) -> float:
    if profile is None or profile.sample_count < min_samples:
        return NEUTRAL_SCORE

    if profile.min_f0 <= f0 <= profile.max_f0:
        from_center = semitone_distance(f0, profile.comfortable_f0)
        return max(IN_RANGE_FLOOR, 1.0 - from_center / 24.0)

    if f0 < profile.min_f0:
        outside = 12.0 * math.log2(profile.min_f0 / f0)
    else:
        outside = 12.0 * math.log2(f0 / profile.max_f0)
    return max(0.0, IN_RANGE_FLOOR - outside / 12.0)


def rank_candidates(
    candidates: Sequence[Candidate],
    spectrum: Spectrum,
    history: Sequence[float] = (),
    profile: Optional[VoiceProfile] = None,
    weights: ScoringWeights | None = None,
    num_harmonics: int = 6,
    min_profile_samples: int = MIN_PROFILE_SAMPLES,
) -> List[ScoredCandidate]:
    """Note chaque hypothèse et retourne la liste triée par score final décroissant."""
    w = weights or ScoringWeights()
    scored: List[ScoredCandidate] = []
    for cand in candidates:
        harmonic = harmonic_consistency_score(spectrum, cand.frequency, num_harmonics)
        stability = temporal_stability_score(cand.frequency, history)
        range_score = range_match_score(cand.frequency, profile, min_profile_samples)
        confidence = float(np.clip(cand.confidence, 0.0, 1.0))
        final = (
            w.harmonic * harmonic
            + w.stability * stability
            + w.range * range_score
            + w.confidence * confidence
        )
        scored.append(ScoredCandidate(
            frequency=cand.frequency,
            confidence=confidence,
            harmonic_score=harmonic,
            stability_score=stability,
            range_score=range_score,
            final_score=final,
        ))
    scored.sort(key=lambda s: s.final_score, reverse=True)
    return scored


# ---------- API ----------
class ProPitchDetector:
    """
    Détecteur « Pro » multi-hypothèses.

    Possède son propre PitchTracker (10 valeurs) ; voice_profile peut être
    remplacé entre deux trames par le code appelant.
    """

    def __init__(
        self,
        config: ProDetectorConfig | None = None,
        voice_profile: VoiceProfile | None = None,
        tracker: PitchTracker | None = None,
    ):
        self.config = config or ProDetectorConfig()
        self.voice_profile = voice_profile
        self.tracker = tracker or PitchTracker(self.config.history_size, smoothing="last")

    def reset_tracking(self) -> None:
        self.tracker.reset()

    def _reject(self, reason: NoPitchReason, detail: str = "") -> DetectionResult:
        if self.config.debug:
            LOGGER.debug("[pro] no pitch: %s %s", reason.value, detail)
        return DetectionResult.rejected(reason)

    def detect(self, frame, sample_rate: float) -> DetectionResult:
        cfg = self.config
        x = as_frame(frame)
        min_period, max_period = validate_frame(x, sample_rate, cfg.min_frequency, cfg.max_frequency)

        rms = frame_rms(x)
        if rms < cfg.rms_threshold:
            return self._reject(NoPitchReason.SILENCE, f"rms={rms:.5f}")

        _, raw = yin_candidates(x, sample_rate, min_period, max_period, cfg.threshold)
        candidates = [c for c in raw if cfg.min_frequency <= c.frequency <= cfg.max_frequency]
        if not candidates:
            return self._reject(NoPitchReason.NO_CANDIDATE)

        spectrum = compute_spectrum(x, sample_rate, cfg.fft_size)
        ranked = rank_candidates(
            candidates,
            spectrum,
            history=self.tracker.history,
            profile=self.voice_profile,
            weights=cfg.weights,
            num_harmonics=cfg.num_harmonics,
            min_profile_samples=cfg.min_profile_samples,
        )
        winner = ranked[0]

        if winner.confidence < cfg.confidence_gate:
            return self._reject(NoPitchReason.LOW_CONFIDENCE, f"conf={winner.confidence:.2f}")

        self.tracker.push(winner.frequency)
        if cfg.debug:
            for s in ranked[: cfg.top_candidates]:
                LOGGER.debug(
                    "[pro] %.2f Hz final=%.3f harm=%.2f stab=%.2f range=%.2f conf=%.2f",
                    s.frequency, s.final_score, s.harmonic_score,
                    s.stability_score, s.range_score, s.confidence,
                )
        return DetectionResult(estimate=PitchEstimate(
            frequency=winner.frequency,
            confidence=winner.confidence,
            candidates=tuple(ranked[: cfg.top_candidates]),
        ))

    def detect_pitch(self, frame, sample_rate: float, timestamp: float | None = None) -> Optional[ProPitchSample]:
        result = self.detect(frame, sample_rate)
        if not result:
            return None
        est = result.estimate
        info = frequency_to_note(est.frequency)
        return ProPitchSample(
            frequency=est.frequency,
            note=info.note,
            octave=info.octave,
            cents=info.cents,
            confidence=est.confidence,
            timestamp=time.time() if timestamp is None else timestamp,
            candidates=est.candidates,
            detection_mode=DetectionMode.PRO,
        )
