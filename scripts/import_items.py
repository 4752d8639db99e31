from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError
from tqdm import tqdm

from skindb.config import settings
from skindb.db import backend_from_settings
from skindb.jobs.ingest import IngestStats, ingest
from skindb.logging import configure_logging
from skindb.models.item import ItemObservation
from skindb.store import ItemStore


def read_observations(path: Path) -> Iterator[ItemObservation]:
    """One feed observation per line; malformed lines are reported and skipped."""
    with path.open("r", encoding="utf-8") as handle:
        for lineno, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                yield ItemObservation.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as exc:
                print(f"{path}:{lineno}: skipped ({exc.__class__.__name__})")


async def run(path: Path, concurrency: int) -> IngestStats:
    observations = list(read_observations(path))
    store = ItemStore(backend_from_settings())
    try:
        with tqdm(total=len(observations), desc="Importing", unit="item") as bar:
            return await ingest(
                store,
                observations,
                concurrency=concurrency,
                on_done=lambda _result: bar.update(1),
            )
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Import inspect-feed observations into the skin store")
    ap.add_argument("--input", required=True, help="JSON-lines file, one observation per line")
    ap.add_argument(
        "--concurrency", type=int, default=settings.INGEST_CONCURRENCY, help="Concurrent upserts"
    )
    return ap


def main() -> None:
    args = build_parser().parse_args()

    configure_logging()
    stats = asyncio.run(run(Path(args.input), max(1, args.concurrency)))
    for outcome in ("create", "supersede", "ignore", "skipped", "failed"):
        print(f"{outcome:>10}: {stats[outcome]}")


if __name__ == "__main__":
    main()
