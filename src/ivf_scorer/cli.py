"""
ivf-scorer Command Line
=======================

Usage:
    ivf-scorer score /data/run-42 --preview
    ivf-scorer repair alice-send_1.ivf ./out
    ivf-scorer inspect ./out/Participant-000001.ivf
    ivf-scorer serve --port 8002

All commands accept --config to point at a config.yaml.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from ivf_scorer import config
from ivf_scorer.container import header_frame_count, parse_ivf, read_header
from ivf_scorer.errors import IvfScorerError
from ivf_scorer.models.report import ScoreReport
from ivf_scorer.recognition import create_recognizer
from ivf_scorer.recovery import TimestampRecovery
from ivf_scorer.repair import repair_ivf
from ivf_scorer.scoring import VmafScorer


logger = logging.getLogger(__name__)


async def run_score(settings: config.Settings, args: argparse.Namespace) -> int:
    recognizer = create_recognizer(settings)
    try:
        scorer = VmafScorer.from_settings(
            settings,
            recognizer,
            preview=args.preview or None,
            keep_intermediate_files=args.keep or None,
        )
        report = await scorer.calculate(args.path)
    finally:
        recognizer.close()

    print(ScoreReport(report).model_dump_json(indent=2))
    return 0


async def run_repair(settings: config.Settings, args: argparse.Namespace) -> int:
    recognizer = create_recognizer(settings)
    try:
        recovery = TimestampRecovery(
            recognizer,
            workers=settings.worker_count,
            confidence_threshold=settings.recognition.confidence_threshold,
            clock_charset=settings.recognition.clock_charset,
            name_charset=settings.recognition.name_charset,
        )
        repaired = await repair_ivf(
            args.file, args.out_dir, recovery, settings.repair.max_gap_seconds
        )
    finally:
        recognizer.close()

    print(json.dumps(repaired.to_dict(), indent=2))
    return 0


def run_inspect(args: argparse.Namespace) -> int:
    info = parse_ivf(args.file)
    with open(args.file, "rb") as fh:
        declared = header_frame_count(read_header(fh))
    pts = info.pts_index
    gaps = sum(1 for a, b in zip(pts, pts[1:]) if b - a > 1)
    print(json.dumps({
        "width": info.width,
        "height": info.height,
        "frame_rate": info.frame_rate,
        "frames": len(pts),
        "header_frame_count": declared,
        "first_pts": pts[0] if pts else None,
        "last_pts": pts[-1] if pts else None,
        "gaps": gaps,
    }, indent=2))
    return 0


def run_serve(settings: config.Settings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "ivf_scorer.main:app",
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        reload=False,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ivf-scorer",
        description="Timing repair and VMAF scoring for WebRTC test captures",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--log-level", default=None, help="Override log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    score = subparsers.add_parser("score", help="Repair, pair and score a capture directory")
    score.add_argument("path", help="Directory containing capture files")
    score.add_argument("--preview", action="store_true", help="Render side-by-side previews")
    score.add_argument("--keep", action="store_true", help="Keep repaired IVF files")

    repair = subparsers.add_parser("repair", help="Repair a single capture file")
    repair.add_argument("file", help="Capture IVF file")
    repair.add_argument("out_dir", help="Output directory")

    inspect = subparsers.add_parser("inspect", help="Print IVF header and timeline summary")
    inspect.add_argument("file", help="IVF file")

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = config.load_config(args.config) if args.config else config.settings
    if args.log_level:
        settings.logging.level = args.log_level
    config.setup_logging(settings)

    try:
        if args.command == "score":
            return asyncio.run(run_score(settings, args))
        if args.command == "repair":
            return asyncio.run(run_repair(settings, args))
        if args.command == "inspect":
            return run_inspect(args)
        return run_serve(settings, args)
    except (IvfScorerError, OSError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
