from __future__ import annotations

import argparse
import asyncio
import logging

import helix.db as db
from helix.db.models import Activity, Base
from helix.logging_config import configure_logging, log_with_fields
from helix.settings import Settings, get_settings

logger = logging.getLogger("helix.cli")


async def _init_db() -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _seed_activities(settings: Settings) -> int:
    """Insert catalog activities that are missing by name; return how many were added."""
    added = 0
    async with db.open_data_service() as data:
        for entry in settings.predefined_activities:
            existing = await data.activities.get_by_name(entry.name)
            if existing is not None:
                if not existing.is_predefined:
                    existing.is_predefined = True
                continue
            await data.activities.add(
                Activity(
                    name=entry.name,
                    color_hex=entry.color_hex,
                    goal=entry.goal,
                    is_predefined=True,
                )
            )
            added += 1
        rows = await data.commit()
    log_with_fields(logger, logging.INFO, "seeded predefined activities", added=added, rows=rows)
    return added


async def _stats() -> dict[str, int]:
    async with db.open_data_service() as data:
        return {
            "users": await data.users.count(),
            "activities": await data.activities.count(),
            "sessions": await data.sessions.count(),
        }


def main() -> None:
    parser = argparse.ArgumentParser(prog="helix")
    sub = parser.add_subparsers(dest="cmd", required=True)
    settings = get_settings()

    sub.add_parser("init-db")
    sub.add_parser("seed-activities")
    sub.add_parser("stats")

    args = parser.parse_args()
    configure_logging(settings)

    if args.cmd == "init-db":
        asyncio.run(_init_db())
    elif args.cmd == "seed-activities":
        added = asyncio.run(_seed_activities(settings))
        print(f"Added {added} predefined activities")
    elif args.cmd == "stats":
        counts = asyncio.run(_stats())
        print(" ".join(f"{name}={count}" for name, count in counts.items()))
    else:
        raise SystemExit(2)
