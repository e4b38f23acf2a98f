#!/usr/bin/env python
"""
Probe the museum backend and print what each endpoint returns.

Checks /api/themes, query-style and path-style /api/items and /api/quizzes
for a few theme ids, and /api/recipient.

Run:  python scripts/probe_api.py
      python scripts/probe_api.py --base http://localhost:8080 --theme-id jinju_museum
"""

import argparse
import asyncio
import sys
from pathlib import Path
from urllib.parse import quote

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(".env.local")

from docent import config
from docent.content import ContentRepositoryClient

DEFAULT_THEME_IDS = ["jinju_museum", "thm_cannon_004", "nonexistent_test"]


def probe_paths(theme_ids: list[str]) -> list[str]:
    paths = ["/api/themes"]
    for theme_id in theme_ids:
        encoded = quote(theme_id, safe="")
        paths += [
            f"/api/items?theme_id={encoded}",
            f"/api/items/{encoded}",
            f"/api/quizzes?theme_id={encoded}",
            f"/api/quizzes/{encoded}",
        ]
    paths.append("/api/recipient")
    return paths


async def main(base: str, theme_ids: list[str]) -> None:
    print(f"Probing API base: {base}")
    async with ContentRepositoryClient(base_url=base, fallback_url=None) as client:
        for path in probe_paths(theme_ids):
            result = await client.probe(path)
            if result.status == 0:
                print(f"\n[ERR] {base}{path} -> {result.status_text}")
                continue
            print(f"\n[OK] {base}{path} -> {result.status} {result.status_text}")
            data = result.json
            if isinstance(data, dict):
                print("Sample JSON keys:", list(data)[:10])
                print("First item preview:", data)
            elif isinstance(data, list):
                print("Items:", len(data))
                print("First item preview:", data[0] if data else None)
            else:
                print("Response text preview:", result.body_text[:200])


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Probe the museum backend API")
    parser.add_argument("--base", default=config.MUSEUM_API_BASE, help="API base URL")
    parser.add_argument(
        "--theme-id",
        action="append",
        dest="theme_ids",
        help="Theme id to probe (repeatable)",
    )
    args = parser.parse_args()
    asyncio.run(main(args.base.rstrip("/"), args.theme_ids or DEFAULT_THEME_IDS))
