# vox_dsp/types/schemas.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List

from vox_dsp.config import VOX_DSP_DEBUG


# ────────────────────────────────────────────────────────────────────────────
# Voice profile (built elsewhere, read-only for the Pro detector)
# ────────────────────────────────────────────────────────────────────────────
class VoiceProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_f0: float = Field(..., gt=0, description="Lowest F0 observed for this singer (Hz)")
    max_f0: float = Field(..., gt=0, description="Highest F0 observed for this singer (Hz)")
    comfortable_f0: float = Field(..., gt=0, description="Median of recent F0s (Hz)")
    sample_count: int = Field(0, ge=0, description="Number of pitches the profile was built from")

    @model_validator(mode="after")
    def _check_bounds(self) -> "VoiceProfile":
        if self.min_f0 > self.max_f0:
            raise ValueError(f"min_f0 ({self.min_f0}) must not exceed max_f0 ({self.max_f0})")
        return self


class VoiceProfileState(BaseModel):
    """Serializable state of a VoiceProfileBuilder (persisted by the caller)."""
    min_f0: float | None = None
    max_f0: float | None = None
    recent_f0s: List[float] = Field(default_factory=list)
    sample_count: int = Field(0, ge=0)


# ────────────────────────────────────────────────────────────────────────────
# Detector configuration
# ────────────────────────────────────────────────────────────────────────────
class ScoringWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    harmonic: float = Field(0.4, ge=0.0, le=1.0)
    stability: float = Field(0.3, ge=0.0, le=1.0)
    range: float = Field(0.2, ge=0.0, le=1.0)
    confidence: float = Field(0.1, ge=0.0, le=1.0)


class _DetectorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    rms_threshold: float = Field(0.001, ge=0.0, description="Silence gate on frame RMS")
    min_frequency: float = Field(65.0, gt=0, description="Lowest reportable F0 (Hz), ~C2")
    max_frequency: float = Field(2100.0, gt=0, description="Highest reportable F0 (Hz), ~C7")
    history_size: int = Field(5, ge=1, description="Tracker ring buffer size")
    debug: bool = Field(default=VOX_DSP_DEBUG, description="Per-frame DEBUG logging")

    @model_validator(mode="after")
    def _check_band(self):
        if self.min_frequency >= self.max_frequency:
            raise ValueError(
                f"min_frequency ({self.min_frequency}) must be below max_frequency ({self.max_frequency})"
            )
        return self


class BasicDetectorConfig(_DetectorConfig):
    threshold: float = Field(0.25, gt=0.0, lt=1.0, description="CMND threshold for candidates")
    confidence_gate: float = Field(0.7, ge=0.0, le=1.0)


class ProDetectorConfig(_DetectorConfig):
    # Seuil volontairement plus large que Basic : le scorer fait le tri
    threshold: float = Field(0.35, gt=0.0, lt=1.0, description="CMND threshold for hypotheses")
    confidence_gate: float = Field(0.6, ge=0.0, le=1.0)
    history_size: int = Field(10, ge=1)
    fft_size: int = Field(2048, ge=64)
    num_harmonics: int = Field(6, ge=1)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    top_candidates: int = Field(3, ge=1, description="Scored candidates kept for diagnostics")
    min_profile_samples: int = Field(50, ge=0, description="Below this, range scoring is neutral")

    @field_validator("fft_size")
    @classmethod
    def validate_fft_size(cls, v: int) -> int:
        if v & (v - 1):
            raise ValueError(f"fft_size must be a power of two: {v}")
        return v
