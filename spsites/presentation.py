"""Output projections of a Summary for the page, the API and the CLI."""

from __future__ import annotations

import csv
import io
import math
from typing import Iterable, List

from .models import ExtractionResult, UniqueEntry

INVALID_PREFIX = '[INVALID]'


def ordered_line(result: ExtractionResult) -> str:
    if result.is_error:
        return f'{INVALID_PREFIX} {result.display_value}'
    return result.site_collection or ''


def ordered_lines(results: Iterable[ExtractionResult]) -> List[str]:
    """One line per input: the site collection, or ``[INVALID] <best effort>``."""
    return [ordered_line(r) for r in results]


def ordered_text(results: Iterable[ExtractionResult]) -> str:
    return '\n'.join(ordered_lines(results))


def unique_copy_text(unique: Iterable[UniqueEntry]) -> str:
    """Newline-joined site collections, counts left out."""
    return '\n'.join(u.site_collection for u in unique)


def unique_csv(unique: Iterable[UniqueEntry]) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator='\n')
    writer.writerow(['site_collection', 'count'])
    for u in unique:
        writer.writerow([u.site_collection, u.count])
    return out.getvalue()


def progress_percent(processed: int, total: int) -> int:
    """Percentage done, rounding halves up (49.5 -> 50)."""
    if total <= 0:
        return 0
    return int(math.floor(processed * 100 / total + 0.5))


def should_show_progress(total: int, threshold: int) -> bool:
    return total > threshold


def count_title(count: int) -> str:
    return f"{count:,} URL{'s' if count != 1 else ''} map to this site collection"
