from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import logging

from retrovox.config import DEV, LOG_LEVEL

# Configure Logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("retrovox")

app = FastAPI(
    title="RetroVox Audio Engine",
    version="1.0.0",
    description="Vintage speech processing, retro UI sounds and chiptune music"
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if DEV else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from retrovox.core.errors import ConfigError, DecodeError


@app.exception_handler(DecodeError)
async def decode_error_handler(request: Request, exc: DecodeError):
    logger.warning("Rejected payload on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"status": "error", "message": str(exc)})


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    return JSONResponse(status_code=422, content={"status": "error", "message": str(exc)})


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "retrovox-audio-engine"}

from typing import Dict

from fastapi import Response
import base64
import torch

from retrovox.config import (
    MAX_CHANNELS,
    MAX_RENDER_BEATS,
    SAMPLE_RATE,
    SUPPORTED_SAMPLE_RATES,
    TTS_CHANNELS,
    TTS_SAMPLE_RATE,
)
from retrovox.core.decoder import decode_base64_audio, encode_pcm16
from retrovox.core.io import AudioIO
from retrovox.qc import analyze
from retrovox.vintage import get_preset_config, level_specs, process


def _wav_b64(buffer) -> str:
    return base64.b64encode(AudioIO.to_bytes(buffer, buffer.sample_rate)).decode("utf-8")


def _int_param(params: dict, key: str, default: int, low: int, high: int) -> int:
    value = params.get(key, default)
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if not low <= number <= high:
        raise ConfigError(f"{key} must be between {low} and {high}, got {number}")
    return number


def _output_rate(params: dict) -> int:
    """Rate for rendered sounds; restricted so the per-rate caches stay bounded."""
    sample_rate = _int_param(params, "sample_rate", SAMPLE_RATE, 1, max(SUPPORTED_SAMPLE_RATES))
    if sample_rate not in SUPPORTED_SAMPLE_RATES:
        raise ConfigError(
            f"Unsupported sample_rate {sample_rate}; use one of {sorted(SUPPORTED_SAMPLE_RATES)}"
        )
    return sample_rate


@app.post("/process/vintage")
async def process_vintage(payload: dict):
    """
    Degrades a TTS utterance.
    Body: { audio: base64 PCM16, level, sample_rate?, channels?, seed?, overrides?, qc? }
    Returns JSON with base64 WAV and base64 PCM16 of the result.
    """
    buffer = decode_base64_audio(
        payload.get("audio", ""),
        _int_param(payload, "sample_rate", TTS_SAMPLE_RATE, 1000, 192000),
        _int_param(payload, "channels", TTS_CHANNELS, 1, MAX_CHANNELS),
    )
    level = payload.get("level", "authentic")
    config = get_preset_config(level)
    if payload.get("overrides"):
        config = config.with_overrides(**payload["overrides"])

    rng = None
    if payload.get("seed") is not None:
        rng = torch.Generator()
        rng.manual_seed(_int_param(payload, "seed", 0, 0, 2 ** 63 - 1))

    out = process(buffer, config, rng=rng)
    result = {
        "audio": _wav_b64(out),
        "pcm16": encode_pcm16(out),
        "sample_rate": out.sample_rate,
        "frames": out.frame_count,
        "level": config.level.value,
        "specs": level_specs(config.level),
    }
    if payload.get("qc"):
        result["qc"] = analyze(out, config)
    return result

from retrovox.sfx import SoundCache, SoundEffectKind, SoundGenerator, get_sound_pack

# One cache per output rate; keys are (kind, pack)
sound_caches: Dict[int, SoundCache] = {}
generator = SoundGenerator()


@app.post("/render/sfx/{kind}")
async def render_sfx(kind: str, params: dict):
    """
    Renders one UI sound effect.
    Body: { pack?, sample_rate? }
    """
    sound = SoundEffectKind.parse(kind)
    pack = get_sound_pack(params.get("pack", "dos-pc"))
    sample_rate = _output_rate(params)

    cache = sound_caches.setdefault(sample_rate, SoundCache())
    audio = cache.get_or_create(
        (sound.value, pack.id), lambda: generator.synthesize(sound, pack, sample_rate)
    )
    return {
        "audio": _wav_b64(audio),
        "kind": sound.value,
        "pack": pack.id,
        "duration_s": audio.duration_s,
    }

from retrovox.music import render_offline
from retrovox.music.scales import PATTERN_LENGTH


@app.post("/render/music")
async def render_music(params: dict):
    """
    Renders the chiptune loop offline.
    Body: { mood?, tempo?, volume?, beats?, sample_rate? }
    """
    settings = {k: params[k] for k in ("mood", "tempo", "volume") if k in params}
    beats = _int_param(params, "beats", PATTERN_LENGTH, 1, MAX_RENDER_BEATS)
    sample_rate = _output_rate(params)

    audio = render_offline(settings, beats=beats, sample_rate=sample_rate)
    logger.info("Rendered %d beats of music (%.2f s)", beats, audio.duration_s)
    return {
        "audio": _wav_b64(audio),
        "beats": beats,
        "duration_s": audio.duration_s,
    }

from retrovox.export.exporter import Exporter


@app.post("/export/pack")
async def export_pack(pack_data: dict):
    """
    Generates a ZIP file for a sound pack.
    """
    pack_id = pack_data.get("pack_id", "dos-pc")
    sample_rate = _output_rate(pack_data)
    zip_bytes = Exporter.create_pack_zip(
        pack_id, sample_rate, cache=sound_caches.setdefault(sample_rate, SoundCache()), generator=generator
    )
    return Response(
        content=zip_bytes,
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename=retrovox_{pack_id}.zip"}
    )

if __name__ == "__main__":
    uvicorn.run("retrovox.main:app", host="0.0.0.0", port=8000, reload=DEV)
