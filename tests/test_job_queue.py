import pytest

from spsites.config import AppConfig
from spsites.exceptions import JobNotFoundError
from spsites.extraction import aggregate
from spsites.job_queue import (
    ExtractionJobQueue,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_SUPERSEDED,
)
from spsites.summary_store import SummaryStore


def urls(n, site='A'):
    return [f'https://contoso.sharepoint.com/sites/{site}/f{i}.docx' for i in range(n)]


@pytest.fixture
def store():
    return SummaryStore()


@pytest.fixture
def queue(store):
    return ExtractionJobQueue(AppConfig(chunk_size=2, progress_threshold=3), store)


def test_submit_and_complete(queue, store):
    job_id = queue.submit(urls(5) + ['', '  '])
    job = queue.get_job(job_id)
    assert job['status'] == STATUS_PENDING
    assert job['total'] == 5
    assert job['show_progress'] is True

    assert queue.run_pending() == 1
    job = queue.get_job(job_id)
    assert job['status'] == STATUS_COMPLETED
    assert job['processed'] == 5
    assert job['percent'] == 100
    assert job['summary_id'] == job_id
    assert job['finished_at'] is not None
    assert store.get(job_id).unique[0].count == 5


def test_small_job_hides_progress(queue):
    job_id = queue.submit(urls(3))
    assert queue.get_job(job_id)['show_progress'] is False


def test_newer_job_for_same_client_supersedes_pending_one(queue):
    old = queue.submit(urls(4), client='tab-1')
    new = queue.submit(urls(2, site='B'), client='tab-1')
    queue.run_pending()
    assert queue.get_job(old)['status'] == STATUS_SUPERSEDED
    assert queue.get_job(old)['summary_id'] is None
    assert queue.get_job(new)['status'] == STATUS_COMPLETED
    assert queue.latest_summary_id('tab-1') == new


def test_newer_job_supersedes_running_one(store):
    submitted = []
    holder = {}

    def hooked(lines, chunk_size, on_progress, cancel_event=None):
        def progress(processed, total):
            on_progress(processed, total)
            if not submitted:
                submitted.append(holder['queue'].submit(urls(1, site='New'), client='tab-1'))
        return aggregate(lines, chunk_size, progress, cancel_event=cancel_event)

    queue = ExtractionJobQueue(AppConfig(chunk_size=2), store, aggregate_fn=hooked)
    holder['queue'] = queue
    old = queue.submit(urls(10), client='tab-1')
    assert queue.run_pending() == 2

    old_job = queue.get_job(old)
    assert old_job['status'] == STATUS_SUPERSEDED
    # stopped at the first chunk boundary after the newer submission
    assert old_job['processed'] == 2
    assert store.get(old) is None
    assert queue.get_job(submitted[0])['status'] == STATUS_COMPLETED
    assert queue.latest_summary_id('tab-1') == submitted[0]


def test_jobs_without_client_do_not_interfere(queue):
    a = queue.submit(urls(2))
    b = queue.submit(urls(2))
    queue.run_pending()
    assert queue.get_job(a)['status'] == STATUS_COMPLETED
    assert queue.get_job(b)['status'] == STATUS_COMPLETED


def test_cancel_pending_job(queue, store):
    job_id = queue.submit(urls(4))
    job = queue.cancel(job_id)
    assert job['status'] == STATUS_CANCELLED
    queue.run_pending()
    assert queue.get_job(job_id)['status'] == STATUS_CANCELLED
    assert store.get(job_id) is None


def test_cancel_running_job_stops_at_chunk_boundary(store):
    holder = {}

    def hooked(lines, chunk_size, on_progress, cancel_event=None):
        def progress(processed, total):
            on_progress(processed, total)
            if processed == 2:
                holder['queue'].cancel(holder['job'])
        return aggregate(lines, chunk_size, progress, cancel_event=cancel_event)

    queue = ExtractionJobQueue(AppConfig(chunk_size=2), store, aggregate_fn=hooked)
    holder['queue'] = queue
    holder['job'] = queue.submit(urls(8), client='tab-9')
    queue.run_pending()
    job = queue.get_job(holder['job'])
    assert job['status'] == STATUS_CANCELLED
    assert job['processed'] == 2
    assert queue.latest_summary_id('tab-9') is None


def test_cancel_unknown_job(queue):
    with pytest.raises(JobNotFoundError):
        queue.cancel('job_missing')
    with pytest.raises(JobNotFoundError):
        queue.require_job('job_missing')


def test_failed_job_is_recorded(store):
    def broken(*args, **kwargs):
        raise RuntimeError('boom')

    queue = ExtractionJobQueue(AppConfig(), store, aggregate_fn=broken)
    job_id = queue.submit(urls(1))
    assert queue.process_next() == job_id
    job = queue.get_job(job_id)
    assert job['status'] == STATUS_FAILED
    assert job['error'] == 'boom'


def test_process_next_idle(queue):
    assert queue.process_next() is None
    assert queue.run_pending() == 0


def test_recent_jobs_and_pruning(store):
    queue = ExtractionJobQueue(AppConfig(), store, max_jobs=2)
    first = queue.submit(urls(1))
    queue.run_pending()
    queue.submit(urls(1))
    queue.submit(urls(1))
    assert queue.get_job(first) is None
    recent = queue.get_recent_jobs(10)
    assert len(recent) == 2
    assert len(queue.get_recent_jobs(1)) == 1


def test_worker_thread_processes_jobs(store):
    queue = ExtractionJobQueue(AppConfig(), store)
    queue.start_worker()
    try:
        job_id = queue.submit(urls(3))
        for _ in range(100):
            if queue.get_job(job_id)['status'] == STATUS_COMPLETED:
                break
            queue._stop_event.wait(0.05)
        assert queue.get_job(job_id)['status'] == STATUS_COMPLETED
    finally:
        queue.stop_worker()


def test_finished_jobs_without_client_leave_no_run_state(store):
    queue = ExtractionJobQueue(AppConfig(), store, max_jobs=5)
    for _ in range(50):
        queue.submit(urls(1))
        queue.run_pending()
    assert len(queue.get_recent_jobs(100)) == 5
    assert queue.tracker.keys() == []


def test_client_run_state_dropped_once_summary_expires():
    store = SummaryStore(ttl=0, max_entries=2)
    queue = ExtractionJobQueue(AppConfig(), store)
    for i in range(10):
        queue.submit(urls(1), client=f'tab-{i}')
        queue.run_pending()
    assert len(queue.tracker.keys()) <= 3
    assert queue.latest_summary_id('tab-9') is not None
    assert queue.latest_summary_id('tab-0') is None


def test_cancel_finished_job_is_not_requested(queue):
    job_id = queue.submit(urls(1))
    queue.run_pending()
    job = queue.cancel(job_id)
    assert job['cancel_requested'] is False
    assert job['status'] == STATUS_COMPLETED
