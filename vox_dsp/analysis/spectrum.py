from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.fft import rfft
from scipy.signal import get_window

DEFAULT_FFT_SIZE = 2048
DEFAULT_HARMONICS = 6
EPS = 1e-10


@dataclass(frozen=True)
class Spectrum:
    magnitudes: np.ndarray   # bins 0..N/2
    sample_rate: float
    fft_size: int

    @property
    def bin_width(self) -> float:
        return self.sample_rate / self.fft_size


def compute_magnitudes(frame: np.ndarray, fft_size: int = DEFAULT_FFT_SIZE) -> np.ndarray:
    """
    Spectre d'amplitude fenêtré (Hann symétrique sur fft_size points).

    La trame est tronquée à fft_size, ou complétée par des zéros si plus
    courte ; la fenêtre reste définie sur fft_size points dans les deux cas.
    Amplitudes normalisées par fft_size.
    """
    x = np.asarray(frame, dtype=np.float64).reshape(-1)
    n = min(x.size, fft_size)
    window = get_window("hann", fft_size, fftbins=False)
    windowed = np.zeros(fft_size, dtype=np.float64)
    windowed[:n] = x[:n] * window[:n]
    return np.abs(rfft(windowed)) / fft_size


def compute_spectrum(frame: np.ndarray, sample_rate: float, fft_size: int = DEFAULT_FFT_SIZE) -> Spectrum:
    return Spectrum(
        magnitudes=compute_magnitudes(frame, fft_size),
        sample_rate=float(sample_rate),
        fft_size=int(fft_size),
    )


def magnitude_at_frequency(spectrum: Spectrum, freq: float) -> float:
    """Amplitude à une fréquence continue, interpolée linéairement entre bins."""
    mags = spectrum.magnitudes
    bin_pos = freq * spectrum.fft_size / spectrum.sample_rate
    lower = int(np.floor(bin_pos))
    upper = int(np.ceil(bin_pos))
    if lower < 0 or upper >= mags.size:
        return 0.0
    if lower == upper:
        return float(mags[lower])
    frac = bin_pos - lower
    return float(mags[lower] * (1.0 - frac) + mags[upper] * frac)


def harmonic_peaks(spectrum: Spectrum, f0: float, num_harmonics: int = DEFAULT_HARMONICS) -> list[float]:
    """
    Amplitude de crête de chaque harmonique n·f0 (n = 1..num_harmonics).

    Recherche du maximum sur ±1 bin autour de la fréquence exacte, par pas
    d'un demi-bin, pour tolérer un léger désaccord. On s'arrête à Nyquist.
    """
    nyquist = spectrum.sample_rate / 2.0
    offsets = np.array([-1.0, -0.5, 0.0, 0.5, 1.0]) * spectrum.bin_width
    peaks: list[float] = []
    for n in range(1, num_harmonics + 1):
        target = f0 * n
        if target >= nyquist:
            break
        peaks.append(max(magnitude_at_frequency(spectrum, target + off) for off in offsets))
    return peaks


def harmonic_energy(spectrum: Spectrum, f0: float, num_harmonics: int = DEFAULT_HARMONICS) -> float:
    """Somme pondérée 1/n des crêtes harmoniques (les premiers rangs comptent plus)."""
    peaks = harmonic_peaks(spectrum, f0, num_harmonics)
    return float(sum(p / (i + 1) for i, p in enumerate(peaks)))


def harmonic_ratio(spectrum: Spectrum, f0: float, num_harmonics: int = DEFAULT_HARMONICS) -> float:
    """Part de l'énergie spectrale totale expliquée par la série harmonique de f0."""
    total = float(np.sum(spectrum.magnitudes ** 2))
    if total < EPS:
        return 0.0
    peaks = np.asarray(harmonic_peaks(spectrum, f0, num_harmonics))
    return float(np.sum(peaks ** 2) / total)
