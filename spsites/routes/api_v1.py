"""API v1 Blueprint - JSON endpoints under /api/v1/.

Synchronous extraction for small pastes, background jobs with progress
polling for large ones, and text/CSV exports of stored summaries.
"""

from flask import Blueprint, Response, jsonify, request
import logging

from ..exceptions import SummaryNotFoundError, ValidationError
from ..extensions import extract_rate_limit, get_config, get_jobs, get_store, limiter
from ..job_queue import STATUS_COMPLETED
from ..presentation import ordered_lines, ordered_text, unique_copy_text, unique_csv
from ..service import check_input_size, lines_from_payload, run_and_store

api_v1 = Blueprint('api_v1', __name__, url_prefix='/api/v1')
_log = logging.getLogger('spsites.api')

EXPORT_VIEWS = ('unique', 'ordered', 'csv')


def _summary_payload(summary, summary_id):
    body = summary.to_dict()
    body['summary_id'] = summary_id
    body['ordered'] = ordered_lines(summary.results)
    body['copy_unique'] = unique_copy_text(summary.unique)
    return body


def _require_summary(summary_id):
    summary = get_store().get(summary_id)
    if summary is None:
        raise SummaryNotFoundError(summary_id)
    return summary


# ============ Extraction ============

@api_v1.route('/extract', methods=['POST'])
@limiter.limit(extract_rate_limit)
def extract():
    """Extract site collections synchronously.

    JSON body:
        text: newline separated URLs, or
        urls: list of URLs
    """
    lines = lines_from_payload(request.get_json(silent=True))
    summary, summary_id = run_and_store(lines, get_config(), get_store())
    return jsonify(_summary_payload(summary, summary_id))


# ============ Jobs ============

@api_v1.route('/jobs', methods=['POST'])
@limiter.limit(extract_rate_limit)
def submit_job():
    """Queue a background extraction.

    JSON body: same as /extract, plus optional ``client`` key; a new job for
    the same client supersedes the previous one.
    """
    data = request.get_json(silent=True)
    lines = lines_from_payload(data)
    check_input_size(lines, get_config())
    client = data.get('client')
    if client is not None and (not isinstance(client, str) or not client.strip()):
        raise ValidationError('client must be a non-empty string')
    job_id = get_jobs().submit(lines, client=client.strip() if client else None)
    return jsonify({'job_id': job_id, 'status': 'pending', 'total': len(lines)}), 202


@api_v1.route('/jobs', methods=['GET'])
def recent_jobs():
    try:
        limit = max(1, min(100, int(request.args.get('limit', 20))))
    except ValueError:
        raise ValidationError('limit must be an integer')
    return jsonify({'jobs': get_jobs().get_recent_jobs(limit)})


@api_v1.route('/jobs/<job_id>', methods=['GET'])
def job_status(job_id: str):
    job = get_jobs().require_job(job_id)
    if job['status'] == STATUS_COMPLETED and job.get('summary_id'):
        summary = get_store().get(job['summary_id'])
        if summary is not None:
            job['summary'] = _summary_payload(summary, job['summary_id'])
    return jsonify(job)


@api_v1.route('/jobs/<job_id>', methods=['DELETE'])
def cancel_job(job_id: str):
    """Request cancellation; 409 with the final status when the job already finished."""
    job = get_jobs().cancel(job_id)
    body = {'job_id': job_id, 'status': job['status'], 'cancel_requested': job['cancel_requested']}
    return jsonify(body), (202 if job['cancel_requested'] else 409)


@api_v1.route('/clients/<client>/latest', methods=['GET'])
def client_latest(client: str):
    """Latest published summary for a client (newest run wins)."""
    summary_id = get_jobs().latest_summary_id(client)
    if summary_id is None:
        raise SummaryNotFoundError(f'latest:{client}')
    return jsonify(_summary_payload(_require_summary(summary_id), summary_id))


# ============ Summaries ============

@api_v1.route('/summaries/<summary_id>', methods=['GET'])
def get_summary(summary_id: str):
    return jsonify(_summary_payload(_require_summary(summary_id), summary_id))


@api_v1.route('/summaries/<summary_id>/export', methods=['GET'])
def export_summary(summary_id: str):
    """Copy/export text of a stored summary.

    Query params:
        view: unique (default, site collections only), ordered, or csv
    """
    view = request.args.get('view', 'unique')
    if view not in EXPORT_VIEWS:
        raise ValidationError(f'view must be one of {", ".join(EXPORT_VIEWS)}')
    summary = _require_summary(summary_id)
    if view == 'csv':
        return Response(unique_csv(summary.unique), mimetype='text/csv',
                        headers={'Content-disposition': f'attachment; filename=site_collections_{summary_id}.csv'})
    text = unique_copy_text(summary.unique) if view == 'unique' else ordered_text(summary.results)
    _log.debug('export summary=%s view=%s bytes=%d', summary_id, view, len(text))
    return Response(text, mimetype='text/plain')
