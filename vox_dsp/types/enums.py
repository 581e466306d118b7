from enum import Enum


class DetectionMode(Enum):
    BASIC = "basic"
    PRO = "pro"


class NoPitchReason(Enum):
    SILENCE = "silence"              # RMS sous le seuil
    NO_CANDIDATE = "no_candidate"    # aucun minimum CMND sous le seuil
    LOW_CONFIDENCE = "low_confidence"
    HARMONIC_JUMP = "harmonic_jump"  # saut 2x/3x/4x vs fréquence précédente (Basic)
    OUT_OF_RANGE = "out_of_range"    # hors bande vocale après interpolation


class PitchAccuracy(Enum):
    PERFECT = "perfect"   # |cents| <= 10
    GOOD = "good"         # |cents| <= 25
    OFF = "off"
