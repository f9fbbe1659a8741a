from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from .formatter import OUTPUT_COLUMNS

logger = logging.getLogger(__name__)


def default_output_path(
    source_pdf: str | Path,
    output_dir: str | Path | None = None,
    *,
    now: datetime | None = None,
) -> Path:
    """Return ``<output_dir>/<stem>_copyedit_<YYYYmmdd_HHMMSS>.csv``.

    ``output_dir`` defaults to the directory holding the source PDF.
    """
    source = Path(source_pdf)
    directory = Path(output_dir) if output_dir is not None else source.parent
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return directory / f"{source.stem}_copyedit_{stamp}.csv"


def export_results(rows: Iterable[dict[str, Any]], output_path: str | Path) -> Path:
    """Write formatted rows to CSV, replacing any existing file atomically."""
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    temp_file = output_file.with_suffix(".tmp")
    count = 0
    try:
        with open(temp_file, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(
                f, fieldnames=OUTPUT_COLUMNS, extrasaction="ignore"
            )
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
                count += 1

        temp_file.replace(output_file)

    except OSError as e:
        logger.error("Error writing to %s: %s", output_file, e)
        if temp_file.exists():
            temp_file.unlink()
        raise

    logger.info("Wrote %d row(s) to %s", count, output_file)
    return output_file
