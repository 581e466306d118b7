import numpy as np
import pytest

from vox_dsp.analysis.pitch_basic import (
    BasicPitchDetector,
    choose_candidate,
    filter_harmonic_candidates,
    is_harmonic_jump,
    octave_penalized_distance,
)
from vox_dsp.types.dataclasses import Candidate, PitchSample
from vox_dsp.types.enums import NoPitchReason
from vox_dsp.types.exceptions import InvalidFrameError
from vox_dsp.types.schemas import BasicDetectorConfig

SR = 48000
N = 2048


def _tones(partials, n=N, sr=SR):
    t = np.arange(n) / sr
    return sum(a * np.sin(2 * np.pi * f * t) for f, a in partials)


def _cand(period, difference, sr=SR):
    return Candidate(tau=int(round(period)), period=float(period), frequency=sr / period, difference=difference)


# ---------- étapes ----------
def test_filter_removes_period_multiples():
    cands = [_cand(100, 0.10), _cand(200, 0.12), _cand(250, 0.10), _cand(300, 0.11), _cand(500, 0.12)]
    kept = filter_harmonic_candidates(cands)
    assert [c.tau for c in kept] == [100, 250]


def test_filter_keeps_clearly_better_multiple():
    cands = [_cand(100, 0.20), _cand(200, 0.01)]
    assert [c.tau for c in filter_harmonic_candidates(cands)] == [100, 200]


def test_octave_penalized_distance():
    assert octave_penalized_distance(440.0, 220.0) == pytest.approx(15.0)
    assert octave_penalized_distance(880.0, 220.0) == pytest.approx(30.0)
    assert octave_penalized_distance(220.0 * 2 ** (3 / 12), 220.0) == pytest.approx(3.0)
    # une octave pèse plus qu'une quinte
    assert octave_penalized_distance(440.0, 220.0) > octave_penalized_distance(330.0, 220.0)


def test_choose_without_history_prefers_lowest_of_best():
    cands = [_cand(120, 0.10), _cand(240, 0.12), _cand(480, 0.30)]
    assert choose_candidate(cands, None).tau == 240


def test_choose_with_history_avoids_octave_flip():
    cands = [_cand(120, 0.02), _cand(240, 0.10)]   # 400 Hz / 200 Hz
    assert choose_candidate(cands, 198.0).tau == 240


@pytest.mark.parametrize("freq,previous,expected", [
    (392.0, 196.0, True),
    (98.0, 196.0, True),
    (588.0, 196.0, True),
    (300.0, 196.0, False),
    (200.0, 196.0, False),
    (392.0, None, False),
])
def test_harmonic_jump(freq, previous, expected):
    assert is_harmonic_jump(freq, previous) is expected


# ---------- détecteur ----------
def test_pure_tone():
    det = BasicPitchDetector()
    res = det.detect(_tones([(220.0, 0.5)]), SR)
    assert res
    assert res.reason is None
    assert res.frequency == pytest.approx(220.0, rel=2e-3)
    assert res.confidence > 0.9


def test_high_tone_does_not_fall_to_subharmonic():
    res = BasicPitchDetector().detect(_tones([(480.0, 0.5)]), SR)
    assert res.frequency == pytest.approx(480.0, rel=2e-3)


def test_strong_second_harmonic_keeps_fundamental():
    res = BasicPitchDetector().detect(_tones([(220.0, 0.3), (440.0, 0.5)]), SR)
    assert res.frequency == pytest.approx(220.0, rel=2e-3)


def test_float32_input_is_accepted():
    frame = _tones([(330.0, 0.5)]).astype(np.float32)
    res = BasicPitchDetector().detect(frame, SR)
    assert res.frequency == pytest.approx(330.0, rel=2e-3)


def test_silence():
    res = BasicPitchDetector().detect(np.zeros(N), SR)
    assert not res
    assert res.reason is NoPitchReason.SILENCE
    assert res.frequency is None


def test_noise_has_no_candidate():
    rng = np.random.default_rng(0)
    res = BasicPitchDetector().detect(rng.normal(0.0, 0.1, N), SR)
    assert res.reason is NoPitchReason.NO_CANDIDATE


def test_low_confidence_gate():
    rng = np.random.default_rng(1)
    frame = _tones([(220.0, 0.5)]) + rng.normal(0.0, 0.1, N)
    det = BasicPitchDetector(BasicDetectorConfig(confidence_gate=0.99))
    res = det.detect(frame, SR)
    assert res.reason is NoPitchReason.LOW_CONFIDENCE
    assert det.tracker.previous_frequency is None


def test_out_of_range():
    # période ~22.3 échantillons : au-dessus de max_frequency malgré min_period = 22
    res = BasicPitchDetector().detect(_tones([(2150.0, 0.5)]), SR)
    assert res.reason is NoPitchReason.OUT_OF_RANGE


def test_short_frame_raises():
    with pytest.raises(InvalidFrameError) as exc:
        BasicPitchDetector().detect(np.zeros(500), SR)
    assert exc.value.required_length == 738


def test_tracking_resolves_ambiguous_frame():
    det = BasicPitchDetector()
    for _ in range(10):
        det.detect(_tones([(196.0, 0.5)]), SR)
    # 392 Hz dominant, 196 Hz faible : la période longue reste la plus périodique
    res = det.detect(_tones([(196.0, 0.15), (392.0, 0.5)]), SR)
    assert res.frequency == pytest.approx(196.0, rel=2e-3)


def test_octave_jump_is_vetoed_then_accepted_after_reset():
    det = BasicPitchDetector()
    for _ in range(10):
        det.detect(_tones([(196.0, 0.5)]), SR)
    res = det.detect(_tones([(392.0, 0.5)]), SR)
    assert res.reason is NoPitchReason.HARMONIC_JUMP
    assert det.tracker.previous_frequency == pytest.approx(196.0, rel=2e-3)

    det.reset_tracking()
    res = det.detect(_tones([(392.0, 0.5)]), SR)
    assert res.frequency == pytest.approx(392.0, rel=2e-3)


def test_detectors_do_not_share_tracking():
    a, b = BasicPitchDetector(), BasicPitchDetector()
    a.detect(_tones([(196.0, 0.5)]), SR)
    assert a.tracker.previous_frequency is not None
    assert b.tracker.previous_frequency is None


def test_detect_pitch_returns_sample():
    sample = BasicPitchDetector().detect_pitch(_tones([(196.0, 0.5)]), SR, timestamp=1.5)
    assert isinstance(sample, PitchSample)
    assert sample.label == "G3"
    assert abs(sample.cents) <= 2
    assert sample.timestamp == 1.5
    assert BasicPitchDetector().detect_pitch(np.zeros(N), SR) is None


def test_reset_matches_fresh_detector():
    ambiguous = _tones([(196.0, 0.15), (392.0, 0.5)])
    used = BasicPitchDetector()
    for _ in range(10):
        used.detect(_tones([(220.0, 0.5)]), SR)
    used.reset_tracking()
    assert used.detect(ambiguous, SR) == BasicPitchDetector().detect(ambiguous, SR)
