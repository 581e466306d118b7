"""Runtime flags for vox_dsp (lus depuis l'environnement)."""

from __future__ import annotations

import os


def _env_flag(name: str, default: str = "false") -> bool:
    value = os.getenv(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


# Active les traces DEBUG par trame (rejets, candidats gagnants)
VOX_DSP_DEBUG = _env_flag("VOX_DSP_DEBUG", "false")
