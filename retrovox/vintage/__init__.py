"""
Vintage speech pipeline and its authenticity presets.
"""
from retrovox.vintage.presets import (
    AUTHENTICITY_PRESETS,
    AuthenticityLevel,
    ProcessingConfig,
    describe_level,
    get_preset_config,
    level_specs,
)
from retrovox.vintage.processor import VintageProcessor, inject_artifacts, process

__all__ = [
    "AUTHENTICITY_PRESETS",
    "AuthenticityLevel",
    "ProcessingConfig",
    "VintageProcessor",
    "describe_level",
    "get_preset_config",
    "inject_artifacts",
    "level_specs",
    "process",
]
