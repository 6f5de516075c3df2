"""Site-collection extractor CLI.

Reads SharePoint URLs (one per line) from a file or stdin and prints the
extracted site collections.
Usage:
  spsites urls.txt --view unique > sites.txt
  cat urls.txt | spsites - --view json
Views:
  ordered   one line per input, invalid lines as "[INVALID] ..." (default)
  unique    sorted unique site collections
  counts    sorted unique site collections with "<count>\t<url>"
  json      full summary as JSON
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional, TextIO

from .config import load_config
from .exceptions import SiteExtractorException
from .extraction.aggregator import split_text
from .logging_utils import configure_logging
from .presentation import ordered_text, progress_percent, should_show_progress, unique_copy_text
from .service import run_sync

VIEWS = ('ordered', 'unique', 'counts', 'json')


def read_lines(path: str, stdin: Optional[TextIO] = None) -> List[str]:
    if path == '-':
        return split_text((stdin or sys.stdin).read())
    # utf-8-sig drops the byte-order mark Windows editors write
    with open(path, 'r', encoding='utf-8-sig') as fh:
        return split_text(fh.read())


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='spsites', description='Extract SharePoint site collection URLs')
    ap.add_argument('file', nargs='?', default='-', help='File with one URL per line ("-" for stdin)')
    ap.add_argument('--chunk-size', type=int, help='URLs per batch (default from SPSITES_CHUNK_SIZE or 1000)')
    ap.add_argument('--view', choices=VIEWS, default='ordered')
    ap.add_argument('-q', '--quiet', action='store_true', help='No progress output on stderr')
    return ap


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None,
         stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> int:
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args = build_parser().parse_args(argv)
    try:
        config = load_config()
    except SiteExtractorException as e:
        print(f'Error: {e.message}', file=err)
        return 2
    if args.chunk_size is not None:
        if args.chunk_size < 1:
            print('Error: --chunk-size must be >= 1', file=err)
            return 2
        config = config.with_overrides(chunk_size=args.chunk_size)
    configure_logging(config.with_overrides(log_level='WARNING') if args.quiet else config)

    try:
        lines = read_lines(args.file, stdin)
    except (OSError, UnicodeDecodeError) as e:
        print(f'Error: cannot read {args.file}: {e}', file=err)
        return 2
    if not lines:
        print('No URLs in input', file=err)
        return 1

    show = not args.quiet and should_show_progress(len(lines), config.progress_threshold)

    def on_progress(processed: int, total: int):
        if show:
            print(f'Processing {processed:,} of {total:,} URLs... {progress_percent(processed, total)}%', file=err)

    try:
        summary = run_sync(lines, config, mode='cli', on_progress=on_progress)
    except SiteExtractorException as e:
        print(f'Error: {e.message}', file=err)
        return 2

    if args.view == 'json':
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2), file=out)
    elif args.view == 'unique':
        print(unique_copy_text(summary.unique), file=out)
    elif args.view == 'counts':
        for entry in summary.unique:
            print(f'{entry.count}\t{entry.site_collection}', file=out)
    else:
        print(ordered_text(summary.results), file=out)
    if not args.quiet:
        print(f'{summary.total:,} URLs, {summary.unique_input_count:,} unique inputs, '
              f'{len(summary.unique):,} site collections, {summary.error_count:,} invalid', file=err)
    return 0


if __name__ == '__main__':
    sys.exit(main())
