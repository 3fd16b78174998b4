"""
Async script to load a flat catalog file into the image database.

Each line is ``url[, tag, tag...]``; URLs already in the catalog are skipped,
so running it twice is harmless. The service does the same on startup when
the catalog is empty, this script is for loading more files later.

Usage:
    uv run python scripts/import_catalog.py data/image_urls.txt
    DATABASE_URL=sqlite+aiosqlite:///./rangpic.db uv run python scripts/import_catalog.py urls.txt
"""
import argparse
import asyncio
import sys
from pathlib import Path

from rangpic.core import AsyncDBPool, setup_logging
from rangpic.main_config import catalog_config, database_config
from rangpic.repository import ImageRepository
from rangpic.services import import_catalog


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import image URLs and tags into the catalog.")
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=catalog_config.seed_file,
        help=f"catalog file (default: {catalog_config.seed_file})",
    )
    return parser.parse_args(argv)


async def main(path: Path) -> int:
    if not path.is_file():
        print(f"✗ Catalog file not found: {path}", file=sys.stderr)
        return 1

    await AsyncDBPool.init(database_config)
    try:
        await AsyncDBPool.create_all()

        async with AsyncDBPool.get_session() as session:
            summary = await import_catalog(session, path)
            total = await ImageRepository(session).count()

        print("=" * 60)
        print(f"Imported: {summary.imported}")
        print(f"Skipped:  {summary.skipped}")
        print(f"Catalog now holds {total} image(s)")
        print("=" * 60)
    finally:
        await AsyncDBPool.dispose()
    return 0


if __name__ == "__main__":
    setup_logging()
    args = parse_args()
    sys.exit(asyncio.run(main(args.path)))
