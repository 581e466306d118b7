import math

import numpy as np
import librosa

from vox_dsp.types.dataclasses import NoteInfo
from vox_dsp.types.enums import PitchAccuracy

A4_FREQUENCY = 440.0
A4_MIDI = 69

# Table chromatique de référence (sortie de frequency_to_note)
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Noms acceptés en entrée, enharmoniques compris
NOTE_TO_INDEX = {
    "C": 0,
    "C#": 1, "C♯": 1, "Db": 1, "D♭": 1,
    "D": 2,
    "D#": 3, "D♯": 3, "Eb": 3, "E♭": 3,
    "E": 4,
    "F": 5,
    "F#": 6, "F♯": 6, "Gb": 6, "G♭": 6,
    "G": 7,
    "G#": 8, "G♯": 8, "Ab": 8, "A♭": 8,
    "A": 9,
    "A#": 10, "A♯": 10, "Bb": 10, "B♭": 10,
    "B": 11,
}

PERFECT_CENTS = 10
GOOD_CENTS = 25


def freq_to_midi(freq: float) -> float:
    """Numéro MIDI flottant (non arrondi) d'une fréquence."""
    return float(librosa.hz_to_midi(freq))


def midi_to_freq(midi: float) -> float:
    """Convertit un numéro MIDI (éventuellement fractionnaire) en Hz."""
    return float(librosa.midi_to_hz(midi))


def frequency_to_note(freq: float) -> NoteInfo:
    """
    Convertit une fréquence en (note, octave, cents).

        frequency_to_note(440.0)   # NoteInfo("A", 4, 0)
        frequency_to_note(445.0)   # NoteInfo("A", 4, 20)
        frequency_to_note(261.63)  # NoteInfo("C", 4, 0)
    """
    if not np.isfinite(freq) or freq <= 0:
        raise ValueError(f"Fréquence invalide: {freq}")

    note_number = freq_to_midi(freq)
    # arrondi au demi supérieur : 70.5 → B4 -50, pas A#4 +50
    rounded = math.floor(note_number + 0.5)
    cents = math.floor((note_number - rounded) * 100 + 0.5)
    octave = math.floor(rounded / 12) - 1
    return NoteInfo(note=NOTE_NAMES[rounded % 12], octave=octave, cents=cents)


def note_to_frequency(note: str, octave: int) -> float:
    """Fréquence tempérée (A4 = 440 Hz) ; 0.0 si le nom de note est inconnu."""
    index = NOTE_TO_INDEX.get(note)
    if index is None:
        return 0.0
    note_number = (octave + 1) * 12 + index
    return midi_to_freq(note_number)


def semitone_distance(f1: float, f2: float) -> float:
    """Distance absolue en demi-tons entre deux fréquences."""
    return abs(12.0 * math.log2(f1 / f2))


def cents_between(f1: float, f2: float) -> float:
    return 1200.0 * math.log2(f2 / f1)


def pitch_accuracy(cents: float) -> PitchAccuracy:
    abs_cents = abs(cents)
    if abs_cents <= PERFECT_CENTS:
        return PitchAccuracy.PERFECT
    if abs_cents <= GOOD_CENTS:
        return PitchAccuracy.GOOD
    return PitchAccuracy.OFF
