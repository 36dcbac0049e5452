#!/usr/bin/env python3
"""
Canonical renderer tool with QC and fingerprinting.

Usage:
    python tools/render.py <subcommand> [options]

Subcommands:
    vintage <input>              Degrade a WAV (or a base64 PCM16 .b64 file) at an authenticity level
    sfx <kind>                   Render one UI sound effect
    music                        Render the chiptune loop offline
    pack <pack_id>               Export a sound pack ZIP

Options:
    --seed <int>          Fixed seed for artifact injection (default: random)
    --debug               Save render.json next to the WAV
    --qc                  Run QC analysis
    --output-dir <path>   Output directory (default: unique timestamped dir)
"""
import sys
import os
import argparse
import logging
import random
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch

from tools.render_core import get_unique_output_dir, save_render
from retrovox.config import LOG_LEVEL, SAMPLE_RATE
from retrovox.core.decoder import decode_base64_audio
from retrovox.core.errors import RetroVoxError
from retrovox.core.io import AudioIO
from retrovox.export.exporter import Exporter
from retrovox.music import render_offline
from retrovox.music.scales import MOOD_SCALES, PATTERN_LENGTH, TEMPO_BPM
from retrovox.sfx import SOUND_PACKS, SoundEffectKind, SoundGenerator, get_sound_pack
from retrovox.vintage import AuthenticityLevel, get_preset_config, level_specs, process

logger = logging.getLogger("retrovox.tools.render")


def _output_dir(args, base_name: str) -> Path:
    return Path(args.output_dir) if args.output_dir else get_unique_output_dir(base_name)


def _print_summary(title: str, info: dict) -> None:
    print(f"\n=== {title} ===")
    print(f"Output: {info['wav_path']}")
    if info.get("seed") is not None:
        print(f"Seed: {info['seed']}")
    fp = info["fingerprint"]
    print(f"Fingerprint SHA256: {fp['sha256'][:16]}...")
    print(f"Peak: {fp['peak']:.4f}, RMS: {fp['rms']:.4f}")

    qc = info.get("qc_result")
    if qc:
        print(f"QC Status: {qc['status']}")
        if qc["failures"]:
            print("  FAILURES:")
            for f in qc["failures"]:
                print(f"    - {f}")
        if qc["warnings"]:
            print("  WARNINGS:")
            for w in qc["warnings"]:
                print(f"    - {w}")


def _exit_code(info: dict) -> int:
    qc = info.get("qc_result")
    return 1 if qc and qc["status"] == "FAIL" else 0


def cmd_vintage(args):
    """Degrade a recorded utterance."""
    path = Path(args.input)
    if path.suffix == ".b64":
        buffer = decode_base64_audio(path.read_text(), args.sample_rate)
    else:
        buffer = AudioIO.load_wav(str(path))

    config = get_preset_config(args.level)
    seed = args.seed if args.seed is not None else random.randint(0, 2**31 - 1)
    rng = torch.Generator()
    rng.manual_seed(seed)

    out = process(buffer, config, rng=rng)
    info = save_render(
        out, _output_dir(args, "vintage"), f"{path.stem}_{config.level.value}",
        seed=seed, qc=args.qc, qc_level=config, debug=args.debug,
        script_name="render.py vintage", extra={"level": config.level.value, "specs": level_specs(config.level)},
    )
    _print_summary(f"Vintage ({level_specs(config.level)})", info)
    return _exit_code(info)


def cmd_sfx(args):
    """Render one UI sound."""
    kind = SoundEffectKind.parse(args.kind)
    pack = get_sound_pack(args.pack)
    audio = SoundGenerator().synthesize(kind, pack, args.sample_rate)
    info = save_render(
        audio, _output_dir(args, "sfx"), f"{pack.id}_{kind.value}",
        qc=args.qc, debug=args.debug, script_name="render.py sfx",
        extra={"kind": kind.value, "pack": pack.id},
    )
    _print_summary(f"SFX {kind.value} ({pack.name})", info)
    return _exit_code(info)


def cmd_music(args):
    """Render the chiptune loop."""
    settings = {"mood": args.mood, "tempo": args.tempo, "volume": args.volume}
    audio = render_offline(settings, beats=args.beats, sample_rate=args.sample_rate)
    info = save_render(
        audio, _output_dir(args, "music"), f"music_{args.mood}_{args.tempo}",
        qc=args.qc, debug=args.debug, script_name="render.py music", extra={"settings": settings},
    )
    _print_summary(f"Music ({args.beats} beats @ {TEMPO_BPM[args.tempo]} bpm)", info)
    return _exit_code(info)


def cmd_pack(args):
    """Export a sound pack ZIP."""
    output_dir = _output_dir(args, "packs")
    output_dir.mkdir(parents=True, exist_ok=True)
    zip_path = output_dir / f"retrovox_{args.pack_id}.zip"
    zip_path.write_bytes(Exporter.create_pack_zip(args.pack_id, args.sample_rate))
    print(f"\n=== Pack Exported ===\nOutput: {zip_path}")
    return 0


def main():
    logging.basicConfig(level=LOG_LEVEL)
    parser = argparse.ArgumentParser(
        description="Canonical renderer tool with QC and fingerprinting"
    )

    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    # Common arguments
    def add_common_args(p):
        p.add_argument("--seed", type=int, default=None, help="Fixed seed (default: random)")
        p.add_argument("--debug", action="store_true", help="Save render.json with fingerprint and QC")
        p.add_argument("--qc", action="store_true", help="Run QC analysis")
        p.add_argument("--sample-rate", type=int, default=SAMPLE_RATE, help="Output sample rate")
        p.add_argument("--output-dir", type=str, help="Output directory (default: unique timestamped)")

    p_vin = subparsers.add_parser("vintage", help="Degrade a WAV or base64 PCM16 file")
    p_vin.add_argument("input", help="Input .wav (any rate) or .b64 (PCM16 mono, --sample-rate)")
    p_vin.add_argument("--level", choices=[lvl.value for lvl in AuthenticityLevel], default="authentic")
    add_common_args(p_vin)
    p_vin.set_defaults(sample_rate=24000)

    p_sfx = subparsers.add_parser("sfx", help="Render one UI sound effect")
    p_sfx.add_argument("kind", choices=[k.value for k in SoundEffectKind])
    p_sfx.add_argument("--pack", choices=sorted(SOUND_PACKS), default="dos-pc")
    add_common_args(p_sfx)

    p_music = subparsers.add_parser("music", help="Render the chiptune loop")
    p_music.add_argument("--mood", choices=sorted(MOOD_SCALES), default="auto")
    p_music.add_argument("--tempo", choices=sorted(TEMPO_BPM), default="normal")
    p_music.add_argument("--volume", type=float, default=50.0)
    p_music.add_argument("--beats", type=int, default=PATTERN_LENGTH)
    add_common_args(p_music)

    p_pack = subparsers.add_parser("pack", help="Export a sound pack ZIP")
    p_pack.add_argument("pack_id", choices=sorted(SOUND_PACKS))
    add_common_args(p_pack)

    args = parser.parse_args()

    commands = {
        "vintage": cmd_vintage,
        "sfx": cmd_sfx,
        "music": cmd_music,
        "pack": cmd_pack,
    }
    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args)
    except RetroVoxError as e:
        logger.error("%s failed: %s", args.command, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
