"""
vox_dsp — Real-time vocal pitch detection
-----------------------------------------

Estimation de la fréquence fondamentale d'une voix chantée, trame par trame,
avec deux niveaux de qualité :
- Basic : YIN mono-hypothèse + gardes anti-sauts d'octave + lissage médian,
- Pro   : hypothèses YIN multiples notées (cohérence harmonique, stabilité,
          tessiture du chanteur, confiance).

Structure :
    utils/note_utils.py       → Hz ↔ (note, octave, cents)
    analysis/spectrum.py      → spectre fenêtré + énergie harmonique
    analysis/yin.py           → fonction de différence, CMND, candidats
    analysis/tracker.py       → état de suivi par flux (PitchTracker)
    analysis/pitch_basic.py   → BasicPitchDetector
    analysis/pitch_pro.py     → ProPitchDetector
    analysis/vibrato.py       → taux / amplitude du vibrato
    analysis/voice_profile.py → construction du VoiceProfile
"""

from .analysis.pitch_basic import BasicPitchDetector
from .analysis.pitch_pro import ProPitchDetector, rank_candidates
from .analysis.tracker import PitchTracker
from .analysis.vibrato import detect_vibrato
from .analysis.voice_profile import VoiceProfileBuilder
from .types.dataclasses import (
    Candidate,
    DetectionResult,
    NoteInfo,
    PitchEstimate,
    PitchSample,
    ProPitchSample,
    ScoredCandidate,
    VibratoResult,
)
from .types.enums import DetectionMode, NoPitchReason, PitchAccuracy
from .types.exceptions import InvalidFrameError
from .types.schemas import BasicDetectorConfig, ProDetectorConfig, ScoringWeights, VoiceProfile
from .utils.note_utils import frequency_to_note, note_to_frequency, pitch_accuracy

__all__ = [
    "BasicPitchDetector",
    "ProPitchDetector",
    "rank_candidates",
    "PitchTracker",
    "detect_vibrato",
    "VoiceProfileBuilder",
    "Candidate",
    "DetectionResult",
    "NoteInfo",
    "PitchEstimate",
    "PitchSample",
    "ProPitchSample",
    "ScoredCandidate",
    "VibratoResult",
    "DetectionMode",
    "NoPitchReason",
    "PitchAccuracy",
    "InvalidFrameError",
    "BasicDetectorConfig",
    "ProDetectorConfig",
    "ScoringWeights",
    "VoiceProfile",
    "frequency_to_note",
    "note_to_frequency",
    "pitch_accuracy",
]
