"""
Quality Control module for processed and synthesized audio.
"""
from retrovox.qc.qc import analyze, band_energy, band_energy_ratio, distinct_levels, dominant_frequency, peak_dbfs, rms
from retrovox.qc.thresholds import QC_THRESHOLDS

__all__ = [
    "QC_THRESHOLDS",
    "analyze",
    "band_energy",
    "band_energy_ratio",
    "distinct_levels",
    "dominant_frequency",
    "peak_dbfs",
    "rms",
]
