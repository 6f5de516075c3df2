from flask import Blueprint, render_template, request
import logging

from ..exceptions import InputTooLargeError
from ..extensions import get_config, get_store
from ..extraction.aggregator import split_text
from ..presentation import count_title, ordered_text
from ..service import run_and_store

ui_bp = Blueprint('ui', __name__)
_log = logging.getLogger('spsites.ui')


@ui_bp.app_template_filter('count_title')
def _count_title(count):
    return count_title(count)


@ui_bp.route('/', methods=['GET', 'POST'])
def home():
    config = get_config()
    text = request.form.get('urls', '') if request.method == 'POST' else ''
    lines = split_text(text)
    summary = None
    summary_id = None
    error = None
    if lines:
        try:
            summary, summary_id = run_and_store(lines, config, get_store())
        except InputTooLargeError as e:
            _log.warning('page input rejected lines=%d limit=%d', len(lines), config.max_input_lines)
            error = e.message
    return render_template(
        'index.html',
        text=text,
        input_count=len(lines),
        summary=summary,
        summary_id=summary_id,
        ordered=ordered_text(summary.results) if summary else '',
        error=error,
        version=config.version,
    ), (413 if error else 200)
