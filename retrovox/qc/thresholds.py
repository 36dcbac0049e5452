"""
Default QC thresholds per authenticity level ("default" for unprocessed audio).
"""
QC_THRESHOLDS = {
    "default": {
        "peak_dbfs_min": -60.0,  # below this the buffer is effectively silent
        "peak_dbfs_max": 0.0,
    },
    "modern": {
        "peak_dbfs_min": -60.0,
        "peak_dbfs_max": 0.0,
    },
    "subtle": {
        "peak_dbfs_min": -60.0,
        "peak_dbfs_max": 0.0,
        "out_of_band_ratio_max": 0.25,  # energy above high_cutoff vs in-band
    },
    "authentic": {
        "peak_dbfs_min": -60.0,
        "peak_dbfs_max": 0.0,
        "out_of_band_ratio_max": 0.25,
    },
    "ultra": {
        "peak_dbfs_min": -60.0,
        "peak_dbfs_max": 0.0,
        "out_of_band_ratio_max": 0.5,  # injected aliasing noise is broadband
    },
}
