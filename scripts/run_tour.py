#!/usr/bin/env python
"""
Play a whole tour offline.

Loads the theme and its items through the content client (local data when
the backend is down), builds the spots, and narrates them on a simulated
speech engine in real time, logging every spot change and progress step.

Run:  python scripts/run_tour.py --theme jinju_museum
      python scripts/run_tour.py --theme imjin_war --age child --ms-per-char 20
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(".env.local")

from docent import config
from docent.content import ContentRepositoryClient
from docent.narration import NarrationController, NarrationState, build_spots
from docent.speech import SimulatedSpeechEngine, SpeechSynthesisAdapter
from docent.timing import LoopScheduler

logger = logging.getLogger("run_tour")


async def run(theme_id: str, age: str, ms_per_char: float) -> int:
    async with ContentRepositoryClient() as client:
        themes = await client.get_themes()
        theme = next((t for t in themes if t.id == theme_id), None)
        if theme is None:
            logger.error(
                "Unknown theme %s (available: %s)",
                theme_id,
                ", ".join(t.id for t in themes),
            )
            return 1
        items = await client.get_items(theme_id)

    spots = build_spots(theme, items, age)
    if not spots:
        logger.error("Theme %s has nothing to narrate", theme_id)
        return 1
    logger.info("Touring %s: %d spots", theme.title, len(spots))

    scheduler = LoopScheduler()
    engine = SimulatedSpeechEngine(scheduler, ms_per_char=ms_per_char)
    speech = SpeechSynthesisAdapter(engine, "docent")
    controller = NarrationController(speech, scheduler, spots)

    done = asyncio.get_running_loop().create_future()
    last_logged: dict[int, int] = {}

    def on_state(state: NarrationState) -> None:
        index = state.active_index
        percent = state.active_progress
        # Log every 25% step per spot
        if percent // 25 != last_logged.get(index, -1) // 25:
            last_logged[index] = percent
            spot = controller.active_spot
            logger.info(
                "[%d/%d] %s %3d%% (%s)",
                index + 1,
                len(spots),
                spot.title if spot else "-",
                percent,
                state.status.value,
            )
        if state.is_completed and not done.done():
            done.set_result(0)

    def on_error(message: str) -> None:
        if not done.done():
            done.set_result(1)

    controller.subscribe(on_state)
    controller.on_error(on_error)
    controller.play()
    try:
        return await done
    finally:
        controller.unmount()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Narrate a tour on a simulated voice")
    parser.add_argument("--theme", required=True, help="Theme id, e.g. jinju_museum")
    parser.add_argument("--age", choices=["child", "adult"], default="adult")
    parser.add_argument(
        "--ms-per-char",
        type=float,
        default=40.0,
        help="Simulated speaking time per character",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run(args.theme, args.age, args.ms_per_char)))
