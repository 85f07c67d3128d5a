#!/usr/bin/env python3
"""
Console runner for the Growth Path roadmap.

Fills the questionnaire from command-line flags, generates the roadmap through
the API proxy and narrates it on the default audio device while later phases
keep generating in the background.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from growthpath.audio import PlaybackEngine, encode_wav  # noqa: E402
from growthpath.client import RemoteGenerationClient  # noqa: E402
from growthpath.config.settings import settings  # noqa: E402
from growthpath.domain import AuditDepth, GrowthRoadmap, StrategyFocus  # noqa: E402
from growthpath.pipelines.roadmap import GenerationPolicy, RoadmapPipeline  # noqa: E402
from growthpath.session import RoadmapSession  # noqa: E402

POLL_SECONDS = 0.25


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate and narrate a growth roadmap.")
    parser.add_argument("--company", required=True, help="Company name")
    parser.add_argument("--bottleneck", required=True, help="Current bottleneck")
    parser.add_argument("--goal", required=True, help="Desired growth goal")
    parser.add_argument(
        "--focus",
        choices=[focus.value for focus in StrategyFocus],
        default=StrategyFocus.LEAD_GEN.value,
    )
    parser.add_argument(
        "--depth",
        choices=[depth.value for depth in AuditDepth],
        default=AuditDepth.STANDARD.value,
    )
    parser.add_argument("--api-url", default=settings.client.api_url)
    parser.add_argument(
        "--eager",
        action="store_true",
        help="Generate every phase immediately instead of staying a few phases ahead.",
    )
    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Print the roadmap without playing it (implies --eager).",
    )
    parser.add_argument("--save-dir", type=Path, help="Write each phase as a WAV file here.")
    return parser.parse_args(argv)


def _save_wavs(roadmap: GrowthRoadmap, target: Path, saved: set[int]) -> None:
    target.mkdir(parents=True, exist_ok=True)
    for step in roadmap.steps:
        if step.index in saved or step.audio is None:
            continue
        pcm = (np.clip(step.audio.samples, -1.0, 1.0) * 32767.0).astype("<i2")
        path = target / f"phase_{step.index:02d}.wav"
        path.write_bytes(encode_wav(pcm.tobytes(), step.audio.sample_rate))
        saved.add(step.index)


async def _run(args: argparse.Namespace) -> int:
    policy = GenerationPolicy.eager() if (args.eager or args.no_audio) else None
    printed: set[int] = set()
    saved: set[int] = set()

    async with RemoteGenerationClient(args.api_url) as client:
        pipeline = RoadmapPipeline(client, policy=policy)
        session = RoadmapSession(pipeline, PlaybackEngine())

        def on_roadmap(roadmap: GrowthRoadmap) -> None:
            for step in roadmap.steps:
                if step.index not in printed:
                    printed.add(step.index)
                    print(f"\n[{step.index}/{roadmap.total_steps}] {step.title}\n{step.text}")
            if args.save_dir:
                _save_wavs(roadmap, args.save_dir, saved)

        pipeline.subscribe(on_roadmap)

        ok = await session.start(
            {
                "companyName": args.company,
                "currentBottleneck": args.bottleneck,
                "growthGoal": args.goal,
                "strategyFocus": args.focus,
                "auditDepth": args.depth,
            }
        )
        if not ok:
            print(session.error_message, file=sys.stderr)
            return 1

        print(f"\nExecutive summary: {session.roadmap.executive_summary}")

        try:
            if args.no_audio:
                await pipeline.wait_idle()
            else:
                session.play()
                while (session.is_playing or pipeline.generating) and not session.error_message:
                    await asyncio.sleep(POLL_SECONDS)
            stall_message = session.stall_message
        finally:
            session.back_to_planning()

        if session.error_message:
            print(session.error_message, file=sys.stderr)
            return 1
        if stall_message:
            print(stall_message, file=sys.stderr)
            return 2
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
