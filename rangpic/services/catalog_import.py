"""
One-time catalog import from a flat text file.

Each non-blank line is ``url[, tag, tag, ...]``. Fields are trimmed and empty
tags dropped. URLs already present in the catalog, or repeated further down
the file, are skipped.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rangpic.repository.image_repository import ImageRepository

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0


def parse_catalog_line(line: str) -> tuple[str, list[str]] | None:
    """Split one catalog line into its URL and tags; None for blank lines."""
    line = line.strip()
    if not line:
        return None
    url, *rest = (part.strip() for part in line.split(","))
    if not url:
        return None
    return url, [tag for tag in rest if tag]


async def import_catalog(session: AsyncSession, path: Path) -> ImportSummary:
    """Load ``path`` into the catalog and commit.

    Every row is committed on its own, so a row that fails to insert is
    logged and skipped without losing the rows before it.
    """
    repo = ImageRepository(session)
    summary = ImportSummary()
    seen: set[str] = set()

    logger.info("Importing image catalog from %s", path)
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            parsed = parse_catalog_line(line)
            if parsed is None:
                continue
            url, tags = parsed
            if url in seen or await repo.url_exists(url):
                summary.skipped += 1
                continue
            seen.add(url)
            try:
                await repo.add(url, tags)
                await repo.commit()
            except SQLAlchemyError as e:
                logger.warning("Skipping catalog line %d (%r): %s", lineno, line.strip(), e)
                summary.skipped += 1
                continue
            summary.imported += 1

    logger.info("Catalog import finished: %d imported, %d skipped", summary.imported, summary.skipped)
    return summary
