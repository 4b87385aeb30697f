#!/usr/bin/env python3
"""Generate a rhythm-game chart from an audio file or URL.

Usage:
    uv run python scripts/generate_chart.py song.mp3 --output song.json
    uv run python scripts/generate_chart.py https://example.com/song.ogg --seed 7
    uv run python scripts/generate_chart.py song.wav --drum-bands --markers
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from beatchart.analysis.engine import ChartEngine
from beatchart.api.schemas import chart_to_response
from beatchart.audio.loader import AudioLoadError
from beatchart.config import Settings


def main():
    parser = argparse.ArgumentParser(description="Generate a 4-lane chart from audio")
    parser.add_argument("source", help="Audio file path or http(s) URL")
    parser.add_argument("--title", default=None, help="Chart title (default: file name)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for lane/long-note decisions (default: random)")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Write JSON here instead of stdout")
    parser.add_argument("--markers", action="store_true",
                        help="Include playable-region marker notes")
    parser.add_argument("--drum-bands", action="store_true",
                        help="Detect onsets on kick + snare band energy")
    parser.add_argument("--frame-size", type=int, default=None,
                        help="Samples per energy frame")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.drum_bands:
        overrides["use_drum_bands"] = True
    if args.frame_size:
        overrides["frame_size"] = args.frame_size
    config = Settings(**overrides)

    engine = ChartEngine(config=config, rng=np.random.default_rng(args.seed))
    try:
        chart = engine.analyze_source(args.source, title=args.title, include_markers=args.markers)
    except AudioLoadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    payload = chart_to_response(chart).model_dump(exclude_none=True)
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(text + "\n")
        print(f"  {chart.bpm} BPM, {len(chart.hard)} hard / {len(chart.easy)} easy notes -> {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    main()
