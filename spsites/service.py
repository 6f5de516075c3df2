from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from . import metrics
from .config import AppConfig
from .exceptions import InputTooLargeError, ValidationError
from .extraction.aggregator import ProgressCallback, aggregate, canonical_lines, split_text
from .models import Summary
from .summary_store import SummaryStore

logger = logging.getLogger('spsites.service')


def lines_from_payload(data: Any) -> List[str]:
    """Canonical lines from a JSON body: ``{"text": "..."}`` or ``{"urls": [...]}``."""
    if not isinstance(data, dict):
        raise ValidationError('invalid JSON body')
    if 'urls' in data:
        urls = data.get('urls')
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise ValidationError('urls must be a list of strings')
        # a list entry may itself hold several pasted lines
        return split_text('\n'.join(urls))
    text = data.get('text')
    if not isinstance(text, str):
        raise ValidationError('missing text or urls field')
    return split_text(text)


def check_input_size(lines: List[str], config: AppConfig) -> None:
    if len(lines) > config.max_input_lines:
        raise InputTooLargeError(len(lines), config.max_input_lines)


def run_sync(lines: Iterable[str], config: AppConfig, mode: str = 'sync',
             on_progress: Optional[ProgressCallback] = None) -> Summary:
    """Aggregate ``lines`` on the calling thread and record metrics."""
    canonical = canonical_lines(lines)
    check_input_size(canonical, config)
    with metrics.track_active_run() as run:
        summary = aggregate(canonical, config.chunk_size, on_progress)
    metrics.record_summary(summary)
    metrics.record_run(mode, 'completed', run.duration)
    logger.info('%s run lines=%d valid=%d errors=%d unique=%d distinct_inputs=%d seconds=%.3f',
                mode, summary.total, summary.valid_count, summary.error_count,
                len(summary.unique), summary.unique_input_count, run.duration)
    return summary


def run_and_store(lines: Iterable[str], config: AppConfig, store: SummaryStore) -> Tuple[Summary, str]:
    summary = run_sync(lines, config)
    return summary, store.save(summary)
