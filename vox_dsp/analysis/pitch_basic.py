# vox_dsp/analysis/pitch_basic.py — détecteur mono-hypothèse (YIN + gardes d'octave)
from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

import numpy as np

from vox_dsp.analysis.tracker import PitchTracker
from vox_dsp.analysis.yin import as_frame, frame_rms, validate_frame, yin_candidates
from vox_dsp.types.dataclasses import Candidate, DetectionResult, PitchEstimate, PitchSample
from vox_dsp.types.enums import NoPitchReason
from vox_dsp.types.schemas import BasicDetectorConfig
from vox_dsp.utils.note_utils import frequency_to_note, semitone_distance

LOGGER = logging.getLogger(__name__)

HARMONIC_MULTIPLES = (2, 3, 4)
MULTIPLE_TOL = 0.05        # tolérance sur le rapport de périodes (filtre)
VALUE_TOL = 0.05           # écart de d' considéré « similaire »
JUMP_RATIO_TOL = 0.08      # veto a posteriori
MAX_HARMONIC_JUMP_SEMITONES = 5.0
OCTAVE_PENALTY = 15.0
DISTANCE_WEIGHT = 3.0
DIFFERENCE_WEIGHT = 20.0


def _is_period_multiple(ratio: float) -> bool:
    k = round(ratio)
    return k >= 2 and abs(ratio - k) < MULTIPLE_TOL


# ---------- Étapes ----------
def filter_harmonic_candidates(candidates: Sequence[Candidate]) -> List[Candidate]:
    """
    Retire les sous-multiples : en parcourant par lag croissant, un candidat
    dont le lag vaut ~k fois celui d'un candidat déjà gardé (k >= 2, donc une
    fréquence f/2, f/3, f/4...) est écarté, sauf s'il est nettement plus
    périodique (d' plus bas de plus de VALUE_TOL).

    Volontairement plus large que la règle 2x/3x/4x stricte, exception
    « plus périodique » comprise : au-delà de 4x le lag reste dans la
    fenêtre dès que f0 > ~330 Hz, et la règle « plus basse fréquence »
    choisirait alors f0/5.
    """
    kept: List[Candidate] = []
    for cand in candidates:
        is_sub = False
        for ref in kept:
            if _is_period_multiple(cand.period / ref.period):
                if cand.difference >= ref.difference - VALUE_TOL:
                    is_sub = True
                    break
        if not is_sub:
            kept.append(cand)
    return kept


def octave_penalized_distance(freq: float, previous: float) -> float:
    """Distance en demi-tons, gonflée quand le saut ressemble à une (ou plusieurs) octave(s)."""
    distance = semitone_distance(freq, previous)
    remainder = distance % 12.0
    if remainder < 1.0 or remainder > 11.0:
        octaves = round(distance / 12.0)
        if octaves > 0:
            distance = remainder + octaves * OCTAVE_PENALTY
        else:
            distance = min(remainder, 12.0 - remainder)
    return distance


def choose_candidate(candidates: Sequence[Candidate], previous: Optional[float]) -> Candidate:
    if previous is not None and len(candidates) >= 2:
        return min(
            candidates,
            key=lambda c: octave_penalized_distance(c.frequency, previous) * DISTANCE_WEIGHT
            + c.difference * DIFFERENCE_WEIGHT,
        )
    # Pas d'historique : la plus basse fréquence parmi les quasi-meilleurs
    best = min(c.difference for c in candidates)
    similar = [c for c in candidates if c.difference - best < VALUE_TOL]
    return min(similar, key=lambda c: c.frequency)


def is_harmonic_jump(freq: float, previous: Optional[float]) -> bool:
    """Saut 2x/3x/4x (ou inverse) de plus de 5 demi-tons par rapport à la fréquence précédente."""
    if previous is None:
        return False
    ratio = freq / previous
    inverse = previous / freq
    looks_harmonic = any(
        abs(ratio - k) < JUMP_RATIO_TOL or abs(inverse - k) < JUMP_RATIO_TOL
        for k in HARMONIC_MULTIPLES
    )
    return looks_harmonic and semitone_distance(freq, previous) > MAX_HARMONIC_JUMP_SEMITONES


# ---------- API ----------
class BasicPitchDetector:
    """
    Détecteur « Basic » : un seul candidat YIN retenu par trame.

    Possède son propre PitchTracker (5 valeurs, médiane) ; appeler
    reset_tracking() au début de chaque session d'enregistrement.
    """

    def __init__(self, config: BasicDetectorConfig | None = None, tracker: PitchTracker | None = None):
        self.config = config or BasicDetectorConfig()
        self.tracker = tracker or PitchTracker(self.config.history_size, smoothing="median")

    def reset_tracking(self) -> None:
        self.tracker.reset()

    def _reject(self, reason: NoPitchReason, detail: str = "") -> DetectionResult:
        if self.config.debug:
            LOGGER.debug("[basic] no pitch: %s %s", reason.value, detail)
        return DetectionResult.rejected(reason)

    def detect(self, frame, sample_rate: float) -> DetectionResult:
        cfg = self.config
        x = as_frame(frame)
        min_period, max_period = validate_frame(x, sample_rate, cfg.min_frequency, cfg.max_frequency)

        rms = frame_rms(x)
        if rms < cfg.rms_threshold:
            return self._reject(NoPitchReason.SILENCE, f"rms={rms:.5f}")

        yin, candidates = yin_candidates(x, sample_rate, min_period, max_period, cfg.threshold)
        if not candidates:
            return self._reject(NoPitchReason.NO_CANDIDATE)

        filtered = filter_harmonic_candidates(candidates)
        previous = self.tracker.previous_frequency
        best = choose_candidate(filtered, previous)
        frequency = best.frequency

        if frequency < cfg.min_frequency or frequency > cfg.max_frequency:
            return self._reject(NoPitchReason.OUT_OF_RANGE, f"f={frequency:.2f}Hz")

        if is_harmonic_jump(frequency, previous):
            return self._reject(NoPitchReason.HARMONIC_JUMP, f"f={frequency:.2f}Hz prev={previous:.2f}Hz")

        confidence = float(np.clip(1.0 - yin[best.tau], 0.0, 1.0))
        if confidence < cfg.confidence_gate:
            return self._reject(NoPitchReason.LOW_CONFIDENCE, f"conf={confidence:.2f}")

        self.tracker.push(frequency)
        if cfg.debug:
            LOGGER.debug(
                "[basic] → %.2f Hz conf=%.2f (%d candidats, %d après filtre)",
                frequency, confidence, len(candidates), len(filtered),
            )
        return DetectionResult(estimate=PitchEstimate(frequency=frequency, confidence=confidence))

    def detect_pitch(self, frame, sample_rate: float, timestamp: float | None = None) -> Optional[PitchSample]:
        """detect() + conversion en note ; None si aucune hauteur fiable."""
        result = self.detect(frame, sample_rate)
        if not result:
            return None
        info = frequency_to_note(result.estimate.frequency)
        return PitchSample(
            frequency=result.estimate.frequency,
            note=info.note,
            octave=info.octave,
            cents=info.cents,
            confidence=result.estimate.confidence,
            timestamp=time.time() if timestamp is None else timestamp,
        )
