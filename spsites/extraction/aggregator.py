"""Chunked aggregation of extraction results.

An :class:`AggregationRun` holds the state of one pass over the canonical
input and processes one chunk per :meth:`AggregationRun.step`. The
:func:`aggregate` driver loops over the steps, reports progress after every
chunk, checks for cancellation and yields the thread between chunks so a
long run does not starve request threads polling its progress.

Per-line problems end up as error results, never as exceptions.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from ..config import AppConfig, DEFAULT_CHUNK_SIZE
from ..logging_utils import log_suppressed
from ..models import ExtractionResult, Summary, UniqueEntry
from .extractor import extract_site_collection, trim

logger = logging.getLogger('spsites.aggregator')

ProgressCallback = Callable[[int, int], None]


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def canonical_lines(lines: Iterable[str]) -> List[str]:
    """Trim every line and drop the blank ones, keeping order."""
    out: List[str] = []
    for line in lines:
        stripped = trim(line)
        if stripped:
            out.append(stripped)
    return out


def split_text(text: str) -> List[str]:
    """Canonical lines of a pasted block of text."""
    return canonical_lines((text or '').split('\n'))


def build_unique(counts: Dict[str, int]) -> List[UniqueEntry]:
    # sorted() is stable, so entries equal after lower() keep first-seen order
    ordered = sorted(counts.items(), key=lambda item: item[0].lower())
    return [UniqueEntry(site_collection=sc, count=n) for sc, n in ordered]


class AggregationRun:
    """State of one aggregation pass, advanced one chunk at a time."""

    def __init__(self, lines: Iterable[str], chunk_size: int = DEFAULT_CHUNK_SIZE,
                 extractor: Callable[[str], ExtractionResult] = extract_site_collection):
        if chunk_size < 1:
            raise ValueError(f'chunk_size must be >= 1, got {chunk_size}')
        self.lines = canonical_lines(lines)
        self.chunk_size = chunk_size
        self._extract = extractor
        self._results: List[ExtractionResult] = []
        self._counts: Dict[str, int] = {}
        self._seen_inputs: set = set()
        self._position = 0

    @property
    def total(self) -> int:
        return len(self.lines)

    @property
    def processed(self) -> int:
        return self._position

    @property
    def done(self) -> bool:
        return self._position >= self.total

    def step(self) -> Tuple[int, int]:
        """Process the next chunk; return cumulative ``(processed, total)``."""
        chunk = self.lines[self._position:self._position + self.chunk_size]
        for line in chunk:
            self._seen_inputs.add(line.lower())
            result = self._extract(line)
            self._results.append(result)
            if not result.is_error and result.site_collection:
                self._counts[result.site_collection] = self._counts.get(result.site_collection, 0) + 1
        self._position += len(chunk)
        return self._position, self.total

    def summary(self, cancelled: bool = False) -> Summary:
        return Summary(
            results=list(self._results),
            unique=build_unique(self._counts),
            unique_input_count=len(self._seen_inputs),
            cancelled=cancelled,
        )


def _default_yield() -> None:
    time.sleep(0)


def aggregate(
    lines: Iterable[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: Optional[ProgressCallback] = None,
    *,
    cancel_event: Optional[CancelToken] = None,
    yield_control: Optional[Callable[[], None]] = None,
) -> Summary:
    """Run the extractor over ``lines`` in chunks and fold the results.

    ``on_progress(processed, total)`` fires once per chunk. Empty input
    returns an empty Summary without any callback. When ``cancel_event`` is
    set at a chunk boundary the partial Summary comes back with
    ``cancelled=True``.
    """
    run = AggregationRun(lines, chunk_size)
    if run.total == 0:
        return Summary()
    pause = yield_control or _default_yield
    while not run.done:
        if cancel_event is not None and cancel_event.is_set():
            logger.info('aggregation cancelled processed=%d total=%d', run.processed, run.total)
            return run.summary(cancelled=True)
        processed, total = run.step()
        if on_progress is not None:
            try:
                on_progress(processed, total)
            except Exception as exc:
                log_suppressed(logger, exc, 'aggregate.on_progress')
        if not run.done:
            pause()
    summary = run.summary()
    logger.debug('aggregation finished total=%d unique=%d distinct_inputs=%d',
                 summary.total, len(summary.unique), summary.unique_input_count)
    return summary


class BatchAggregator:
    """Aggregator bound to an :class:`AppConfig` (chunk size)."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()

    def run(self, lines: Iterable[str], on_progress: Optional[ProgressCallback] = None,
            cancel_event: Optional[CancelToken] = None) -> Summary:
        return aggregate(lines, self.config.chunk_size, on_progress, cancel_event=cancel_event)

    def run_text(self, text: str, on_progress: Optional[ProgressCallback] = None,
                 cancel_event: Optional[CancelToken] = None) -> Summary:
        return self.run(split_text(text), on_progress, cancel_event)
