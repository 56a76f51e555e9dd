# game_reviewer/services/opening_book_service.py
"""
Loads opening-book partitions from disk.

Each partition is a JSON object keyed by FEN (the ECO files map a FEN to an
opening name and its moves). Only the keys are used. A partition that cannot
be read or decoded is logged and skipped so one bad file does not disable
the whole book.
"""

import json
from pathlib import Path
from typing import Iterable, List, Set

import aiofiles
import structlog

from game_reviewer.core.opening_book import PartitionedOpeningBook
from game_reviewer.exceptions import OpeningBookError

logger = structlog.get_logger(__name__)


async def _read_partition(path: Path) -> Set[str]:
    async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
        data = json.loads(await f.read())
    if isinstance(data, dict):
        return set(data.keys())
    if isinstance(data, list):
        # A plain list of FENs is accepted too.
        return {str(entry) for entry in data}
    raise ValueError(f"unsupported top-level JSON type {type(data).__name__}")


async def load_opening_book(paths: Iterable[Path], strict: bool = False) -> PartitionedOpeningBook:
    """
    Builds a `PartitionedOpeningBook` with one partition per readable file.

    Args:
        paths: The partition files.
        strict: Raise instead of returning an empty book when paths were given
                but none of them loaded.

    Raises:
        OpeningBookError: In strict mode, if no partition could be loaded.
    """
    path_list = [Path(p) for p in paths]
    partitions: List[Set[str]] = []
    for path in path_list:
        try:
            partitions.append(await _read_partition(path))
        except (OSError, ValueError) as e:
            logger.warning("Skipping unreadable opening-book partition.", path=str(path), error=str(e))

    if strict and path_list and not partitions:
        raise OpeningBookError("No opening-book partition could be loaded.")

    book = PartitionedOpeningBook(partitions)
    logger.info("Opening book loaded.", partitions=book.partition_count, positions=len(book))
    return book
