import io
import json
import zipfile
from datetime import datetime
from typing import Optional

from retrovox.config import SAMPLE_RATE
from retrovox.core.io import AudioIO
from retrovox.sfx.cache import SoundCache
from retrovox.sfx.generator import SoundGenerator
from retrovox.sfx.recipes import SoundEffectKind, get_sound_pack


class Exporter:
    @staticmethod
    def create_pack_zip(
        pack_id: str,
        sample_rate: int = SAMPLE_RATE,
        cache: Optional[SoundCache] = None,
        generator: Optional[SoundGenerator] = None,
    ) -> bytes:
        """
        ZIP of a sound pack: pack_info.json plus <kind>.wav for every effect.
        Buffers come from (and fill) `cache` when one is given.
        """
        pack = get_sound_pack(pack_id)
        cache = cache if cache is not None else SoundCache()
        generator = generator or SoundGenerator()

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zip_file:
            files = {}
            for kind in SoundEffectKind:
                audio = cache.get_or_create(
                    (kind.value, pack.id),
                    lambda kind=kind: generator.synthesize(kind, pack, sample_rate),
                )
                name = f"{kind.value}.wav"
                zip_file.writestr(name, AudioIO.to_bytes(audio, audio.sample_rate))
                files[kind.value] = {"file": name, "duration_s": round(audio.duration_s, 4)}

            meta = {
                "pack_id": pack.id,
                "pack_name": pack.name,
                "description": pack.description,
                "waveform": pack.waveform,
                "sample_rate": sample_rate,
                "created_at": datetime.now().isoformat(),
                "sounds": files,
            }
            zip_file.writestr("pack_info.json", json.dumps(meta, indent=2))

        return buffer.getvalue()
