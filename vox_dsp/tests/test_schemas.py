import pytest
from pydantic import ValidationError

from vox_dsp import config
from vox_dsp.types.dataclasses import DetectionResult, PitchEstimate, ProPitchSample
from vox_dsp.types.enums import DetectionMode, NoPitchReason
from vox_dsp.types.schemas import BasicDetectorConfig, ProDetectorConfig, ScoringWeights, VoiceProfile


def test_default_configs():
    basic = BasicDetectorConfig()
    assert (basic.threshold, basic.confidence_gate, basic.history_size) == (0.25, 0.7, 5)
    assert (basic.min_frequency, basic.max_frequency, basic.rms_threshold) == (65.0, 2100.0, 0.001)

    pro = ProDetectorConfig()
    assert (pro.threshold, pro.confidence_gate, pro.history_size) == (0.35, 0.6, 10)
    assert pro.fft_size == 2048
    assert pro.weights == ScoringWeights(harmonic=0.4, stability=0.3, range=0.2, confidence=0.1)
    assert pro.top_candidates == 3


@pytest.mark.parametrize("kwargs", [
    {"threshold": 0.0},
    {"threshold": 1.5},
    {"min_frequency": 500.0, "max_frequency": 100.0},
    {"history_size": 0},
    {"fft_size": 1000},
])
def test_invalid_pro_config(kwargs):
    with pytest.raises(ValidationError):
        ProDetectorConfig(**kwargs)


def test_configs_are_frozen():
    cfg = BasicDetectorConfig()
    with pytest.raises(ValidationError):
        cfg.threshold = 0.5


def test_voice_profile_validation():
    with pytest.raises(ValidationError):
        VoiceProfile(min_f0=300.0, max_f0=200.0, comfortable_f0=250.0)
    with pytest.raises(ValidationError):
        VoiceProfile(min_f0=0.0, max_f0=200.0, comfortable_f0=100.0)
    p = VoiceProfile(min_f0=100.0, max_f0=300.0, comfortable_f0=180.0)
    assert p.sample_count == 0


def test_detection_result_truthiness():
    rejected = DetectionResult.rejected(NoPitchReason.SILENCE)
    assert not rejected
    assert rejected.frequency is None and rejected.confidence is None

    ok = DetectionResult(estimate=PitchEstimate(frequency=220.0, confidence=0.9))
    assert ok
    assert ok.frequency == 220.0
    assert ok.reason is None


def test_pro_sample_defaults():
    s = ProPitchSample(frequency=440.0, note="A", octave=4, cents=0, confidence=0.8, timestamp=0.0)
    assert s.detection_mode is DetectionMode.PRO
    assert s.candidates == ()
    assert s.label == "A4"


@pytest.mark.parametrize("value,expected", [
    ("1", True), ("true", True), ("YES", True), (" on ", True),
    ("0", False), ("false", False), ("", False),
])
def test_env_flag(monkeypatch, value, expected):
    monkeypatch.setenv("VOX_DSP_TEST_FLAG", value)
    assert config._env_flag("VOX_DSP_TEST_FLAG") is expected


def test_env_flag_default(monkeypatch):
    monkeypatch.delenv("VOX_DSP_TEST_FLAG", raising=False)
    assert config._env_flag("VOX_DSP_TEST_FLAG") is False
    assert config._env_flag("VOX_DSP_TEST_FLAG", "true") is True
