"""
Core rendering utilities with debug outputs and fingerprinting.
Used by canonical render.py tool.
"""
import sys
import os
import json
import hashlib
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch
import numpy as np

from retrovox.core.io import AudioIO
from retrovox.core.types import SampleBuffer
from retrovox.qc import analyze, band_energy
from retrovox.vintage import AuthenticityLevel, ProcessingConfig


def _get_git_hash() -> str:
    """Get short git commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        )
    except (OSError, subprocess.SubprocessError):
        return "unknown"
    if result.returncode == 0:
        return result.stdout.strip()
    return "unknown"


def compute_fingerprint(buffer: SampleBuffer) -> Dict:
    """Compute fingerprint: SHA256, peak, RMS, band energies."""
    audio_1d = buffer.samples.reshape(-1).float()
    sha256 = hashlib.sha256(audio_1d.numpy().tobytes()).hexdigest()

    if audio_1d.numel() == 0:
        return {"sha256": sha256, "peak": 0.0, "rms": 0.0, "low_energy": 0.0, "mid_energy": 0.0, "high_energy": 0.0}

    sr = buffer.sample_rate
    # Low: 20-300Hz, Mid: 300-5000Hz (the vintage speech band), High: above
    return {
        "sha256": sha256,
        "peak": float(torch.max(torch.abs(audio_1d))),
        "rms": float(torch.sqrt(torch.mean(audio_1d ** 2) + 1e-12)),
        "low_energy": band_energy(buffer, sr, 20.0, 300.0),
        "mid_energy": band_energy(buffer, sr, 300.0, 5000.0),
        "high_energy": band_energy(buffer, sr, 5000.0, sr / 2.0),
    }


def save_render(
    buffer: SampleBuffer,
    output_dir: Path,
    filename: str,
    seed: Optional[int] = None,
    qc: bool = False,
    qc_level: Optional[Union[AuthenticityLevel, str, ProcessingConfig]] = None,
    debug: bool = False,
    script_name: str = "unknown",
    extra: Optional[Dict] = None,
) -> Dict:
    """
    Save a rendered buffer as WAV, with optional QC and debug JSON.

    Returns:
        debug_info dict (wav_path, fingerprint, qc_result, ...)
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    wav_path = output_dir / f"{filename}.wav"
    AudioIO.save_wav(buffer, buffer.sample_rate, str(wav_path))

    qc_result = analyze(buffer, qc_level) if qc else None

    debug_info = {
        "script_name": script_name,
        "timestamp": datetime.now().isoformat(),
        "git_hash": _get_git_hash(),
        "seed": seed,
        "sample_rate": buffer.sample_rate,
        "frames": buffer.frame_count,
        "fingerprint": compute_fingerprint(buffer),
        "qc_result": qc_result,
        "wav_path": str(wav_path),
    }
    if extra:
        debug_info.update(extra)

    if debug:
        json_path = output_dir / f"{filename}.render.json"
        with open(json_path, "w") as f:
            json.dump(debug_info, f, indent=2, default=_json_default)

    return debug_info


def _json_default(value):
    if isinstance(value, (np.floating, np.integer)):
        return value.item()
    return str(value)


def get_unique_output_dir(base_name: str) -> Path:
    """
    Generate unique output directory: renders/{base_name}/YYYYMMDD_HHMMSS_{gitshort}/
    """
    now = datetime.now()
    git_hash = _get_git_hash()
    short_hash = git_hash[:8] if git_hash != "unknown" else "unknown"
    return Path("renders") / base_name / f"{now.strftime('%Y%m%d')}_{now.strftime('%H%M%S')}_{short_hash}"
