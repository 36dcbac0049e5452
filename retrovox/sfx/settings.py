"""
SoundSettings: owned and persisted by the host. The core only reads it and
merges partial updates; raw values are kept as given and clamped only when
they reach a gain node.
"""
import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from retrovox.core.params import merge_partial
from retrovox.sfx.recipes import DEFAULT_SOUND_PACK, get_sound_pack


@dataclass
class SoundSettings:
    ui_sounds_enabled: bool = True
    ambience_enabled: bool = False
    ui_volume: float = 0.5  # 0-1
    ambience_volume: float = 0.3  # 0-1
    selected_sound_pack: str = DEFAULT_SOUND_PACK
    keyboard_clicks_enabled: bool = True
    system_beeps_enabled: bool = True
    boot_sounds_enabled: bool = True

    def merged(self, partial: Optional[Mapping[str, Any]]) -> "SoundSettings":
        """Copy with partial applied. Unknown keys or pack ids raise ConfigError."""
        result = merge_partial(self, partial)
        get_sound_pack(result.selected_sound_pack)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SoundSettings":
        return cls().merged(data)
