"""
Tests for the HTTP service (retrovox/main.py).
Run from project root: python -m pytest tests/test_api.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import base64
import io
import zipfile

import numpy as np
from fastapi.testclient import TestClient

from retrovox.core.io import AudioIO
from retrovox.config import SUPPORTED_SAMPLE_RATES
from retrovox.main import app, sound_caches

client = TestClient(app)


def _pcm_b64(seconds: float = 0.5, sr: int = 24000) -> str:
    t = np.arange(int(seconds * sr)) / sr
    pcm = np.round(0.5 * np.sin(2 * np.pi * 440 * t) * 32767).astype("<i2")
    return base64.b64encode(pcm.tobytes()).decode()


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_process_vintage_authentic():
    response = client.post("/process/vintage", json={"audio": _pcm_b64(), "level": "authentic", "qc": True})
    assert response.status_code == 200
    body = response.json()
    assert body["sample_rate"] == 11025
    assert body["frames"] == 5513
    assert body["specs"] == "11.0 kHz, 8-bit, 300-5000 Hz"
    assert body["qc"]["status"] in ("PASS", "WARN")

    wav = AudioIO.load_wav(io.BytesIO(base64.b64decode(body["audio"])))
    assert wav.sample_rate == 11025
    assert len(base64.b64decode(body["pcm16"])) == 2 * 5513


def test_process_vintage_seeded_ultra_is_reproducible():
    payload = {"audio": _pcm_b64(0.2), "level": "ultra", "seed": 7}
    a = client.post("/process/vintage", json=payload).json()
    b = client.post("/process/vintage", json=payload).json()
    assert a["pcm16"] == b["pcm16"]


def test_process_vintage_bad_base64():
    response = client.post("/process/vintage", json={"audio": "not*base64"})
    assert response.status_code == 400
    assert response.json()["status"] == "error"


def test_process_vintage_unknown_level():
    response = client.post("/process/vintage", json={"audio": _pcm_b64(0.1), "level": "cassette"})
    assert response.status_code == 422


def test_render_sfx():
    response = client.post("/render/sfx/keypress", json={"pack": "apple-ii", "sample_rate": 8000})
    assert response.status_code == 200
    body = response.json()
    assert body["kind"] == "keypress"
    assert body["pack"] == "apple-ii"
    assert body["duration_s"] == 0.05


def test_render_sfx_unknown_kind():
    response = client.post("/render/sfx/whistle", json={})
    assert response.status_code == 422


def test_render_music():
    response = client.post("/render/music", json={"mood": "sad", "beats": 2, "sample_rate": 8000})
    assert response.status_code == 200
    body = response.json()
    assert body["beats"] == 2
    assert body["duration_s"] == 1.5


def test_export_pack():
    response = client.post("/export/pack", json={"pack_id": "dos-pc", "sample_rate": 8000})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert "pack_info.json" in zf.namelist()
        assert "boot-start.wav" in zf.namelist()


def test_non_numeric_sample_rate_is_rejected():
    for path in ("/render/sfx/keypress", "/render/music", "/export/pack"):
        response = client.post(path, json={"sample_rate": "fast"})
        assert response.status_code == 422, path
        assert response.json()["status"] == "error"
    response = client.post("/process/vintage", json={"audio": _pcm_b64(0.1), "sample_rate": "fast"})
    assert response.status_code == 422


def test_unsupported_output_rate_creates_no_cache():
    before = set(sound_caches)
    for rate in (12345, 0, -8000, 8000.5, 10 ** 12):
        response = client.post("/render/sfx/keypress", json={"sample_rate": rate})
        assert response.status_code == 422, rate
    assert set(sound_caches) == before


def test_sound_caches_stay_within_supported_rates():
    for rate in (8000, 11025, 22050, 8000, 11025):
        assert client.post("/render/sfx/error", json={"sample_rate": rate}).status_code == 200
    assert set(sound_caches) <= SUPPORTED_SAMPLE_RATES


def test_render_music_rejects_bad_beats():
    for beats in ("many", 0, -3, 100000, 1.5, None):
        response = client.post("/render/music", json={"beats": beats, "sample_rate": 8000})
        assert response.status_code == 422, beats


def test_process_vintage_rejects_bad_channels_and_seed():
    audio = _pcm_b64(0.1)
    assert client.post("/process/vintage", json={"audio": audio, "channels": 0}).status_code == 422
    assert client.post("/process/vintage", json={"audio": audio, "channels": "two"}).status_code == 422
    assert client.post("/process/vintage", json={"audio": audio, "seed": "abc"}).status_code == 422
