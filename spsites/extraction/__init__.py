"""Site-collection extraction package.

Modules:
- patterns: domain/typo regexes, path prefixes, failure reasons
- extractor: single URL -> ExtractionResult
- aggregator: chunked batch processing and unique counting
"""

from .aggregator import AggregationRun, BatchAggregator, aggregate, canonical_lines, split_text
from .extractor import extract_site_collection, normalize_line
from .patterns import FAILURE_REASONS, SITE_PREFIXES

__all__ = [
    'AggregationRun',
    'BatchAggregator',
    'FAILURE_REASONS',
    'SITE_PREFIXES',
    'aggregate',
    'canonical_lines',
    'extract_site_collection',
    'normalize_line',
    'split_text',
]
