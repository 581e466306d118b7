from dataclasses import dataclass, field
from typing import Optional, Tuple

from vox_dsp.types.enums import DetectionMode, NoPitchReason


@dataclass(frozen=True)
class NoteInfo:
    note: str      # classe de hauteur, table chromatique en dièses ("C", "C#", ...)
    octave: int
    cents: int     # écart à la note tempérée la plus proche, [-50, 50]


@dataclass(frozen=True)
class Candidate:
    tau: int            # lag entier du minimum CMND
    period: float       # lag raffiné (interpolation parabolique), en échantillons
    frequency: float
    difference: float   # d'[tau]

    @property
    def confidence(self) -> float:
        return 1.0 - self.difference


@dataclass(frozen=True)
class ScoredCandidate:
    frequency: float
    confidence: float
    harmonic_score: float
    stability_score: float
    range_score: float
    final_score: float


@dataclass(frozen=True)
class PitchEstimate:
    frequency: float
    confidence: float
    candidates: Tuple[ScoredCandidate, ...] = ()


@dataclass(frozen=True)
class DetectionResult:
    estimate: Optional[PitchEstimate] = None
    reason: Optional[NoPitchReason] = None

    def __bool__(self) -> bool:
        return self.estimate is not None

    @property
    def frequency(self) -> Optional[float]:
        return self.estimate.frequency if self.estimate else None

    @property
    def confidence(self) -> Optional[float]:
        return self.estimate.confidence if self.estimate else None

    @classmethod
    def rejected(cls, reason: NoPitchReason) -> "DetectionResult":
        return cls(estimate=None, reason=reason)


@dataclass(frozen=True)
class PitchSample:
    frequency: float
    note: str
    octave: int
    cents: int
    confidence: float
    timestamp: float   # secondes

    @property
    def label(self) -> str:
        return f"{self.note}{self.octave}"


@dataclass(frozen=True)
class ProPitchSample(PitchSample):
    candidates: Tuple[ScoredCandidate, ...] = field(default_factory=tuple)
    detection_mode: DetectionMode = DetectionMode.PRO


@dataclass(frozen=True)
class VibratoResult:
    rate: float     # Hz
    extent: float   # cents crête-à-crête
