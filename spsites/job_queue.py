"""Background job queue for extraction runs.

Large pastes run on a single worker thread while the page polls progress.
Jobs are processed one at a time in submission order. Jobs that share a
client key supersede each other: submitting a new one cancels the older run
at its next chunk boundary and only the newest may publish its Summary.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from . import metrics
from .config import AppConfig
from .exceptions import JobNotFoundError
from .extraction.aggregator import aggregate, canonical_lines
from .presentation import progress_percent, should_show_progress
from .runs import RunToken, RunTracker
from .summary_store import SummaryStore

logger = logging.getLogger('spsites.job_queue')

# Job statuses
STATUS_PENDING = 'pending'
STATUS_RUNNING = 'running'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
STATUS_SUPERSEDED = 'superseded'
STATUS_FAILED = 'failed'

FINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_SUPERSEDED, STATUS_FAILED)


def generate_job_id() -> str:
    """Generate unique job ID."""
    return f"job_{uuid.uuid4().hex[:12]}_{int(time.time())}"


class ExtractionJobQueue:
    """Queue of aggregation runs executed by one background worker."""

    def __init__(self, config: AppConfig, store: SummaryStore, tracker: Optional[RunTracker] = None,
                 aggregate_fn: Callable = aggregate, max_jobs: int = 200):
        self.config = config
        self.store = store
        self.tracker = tracker or RunTracker()
        self._aggregate = aggregate_fn
        self.max_jobs = max_jobs
        self._jobs: Dict[str, dict] = {}
        self._inputs: Dict[str, List[str]] = {}
        self._tokens: Dict[str, RunToken] = {}
        self._jobs_lock = threading.Lock()
        self._job_queue: List[str] = []
        self._queue_lock = threading.Lock()
        self._worker_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._started = False

    # --- worker lifecycle ---

    def start_worker(self):
        """Start background worker thread."""
        if self._started:
            return
        self._stop_event.clear()
        self._worker_thread = threading.Thread(target=self._worker_loop, name='spsites-jobs', daemon=True)
        self._worker_thread.start()
        self._started = True
        logger.info("Job queue worker started")

    def stop_worker(self):
        """Stop background worker thread."""
        if not self._started:
            return
        self._stop_event.set()
        if self._worker_thread:
            self._worker_thread.join(timeout=5.0)
        self._started = False
        logger.info("Job queue worker stopped")

    def _worker_loop(self):
        logger.info("Worker loop started")
        while not self._stop_event.is_set():
            if self.process_next() is None:
                self._stop_event.wait(0.2)
        logger.info("Worker loop stopped")

    # --- submission / lookup ---

    def submit(self, lines: Iterable[str], client: Optional[str] = None) -> str:
        """Queue an aggregation run and return its job id immediately.

        With ``client`` set, any earlier run for the same client is
        superseded.
        """
        job_id = generate_job_id()
        canonical = canonical_lines(lines)
        now = time.time()
        with self._jobs_lock:
            # begin under the jobs lock so tracker pruning never sees a key without its job
            token = self.tracker.begin(client or job_id)
            job = self._new_job(job_id, client, token, len(canonical), now)
            self._jobs[job_id] = job
            self._inputs[job_id] = canonical
            self._tokens[job_id] = token
            self._prune_locked()
        with self._queue_lock:
            self._job_queue.append(job_id)
        logger.info("Extraction job submitted: %s lines=%d client=%s generation=%d",
                    job_id, len(canonical), client, token.generation)
        return job_id

    def _new_job(self, job_id: str, client: Optional[str], token: RunToken, total: int, now: float) -> dict:
        return {
            'id': job_id,
            'client': client,
            'generation': token.generation,
            'status': STATUS_PENDING,
            'processed': 0,
            'total': total,
            'percent': 0,
            'show_progress': should_show_progress(total, self.config.progress_threshold),
            'summary_id': None,
            'error': None,
            'created_at': now,
            'updated_at': now,
            'finished_at': None,
        }

    def get_job(self, job_id: str) -> Optional[dict]:
        with self._jobs_lock:
            job = self._jobs.get(job_id)
            return dict(job) if job else None

    def require_job(self, job_id: str) -> dict:
        job = self.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def get_recent_jobs(self, limit: int = 20) -> List[dict]:
        with self._jobs_lock:
            jobs = [dict(j) for j in self._jobs.values()]
        jobs.sort(key=lambda j: j.get('created_at', 0), reverse=True)
        return jobs[:limit]

    def latest_summary_id(self, client: str) -> Optional[str]:
        return self.tracker.latest(client)

    def cancel(self, job_id: str) -> dict:
        """Request cancellation; a running job stops at its next chunk boundary.

        The returned copy carries ``cancel_requested``, False when the job had
        already finished.
        """
        with self._jobs_lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            if job['status'] in FINAL_STATUSES:
                return dict(job, cancel_requested=False)
            token = self._tokens.get(job_id)
            if token is not None:
                token.cancel_event.set()
            if job['status'] == STATUS_PENDING:
                self._finish_locked(job_id, STATUS_CANCELLED)
            logger.info("Cancellation requested job=%s status=%s", job_id, job['status'])
            return dict(job, cancel_requested=True)

    # --- processing ---

    def process_next(self) -> Optional[str]:
        """Run the next queued job on the calling thread; None when idle."""
        with self._queue_lock:
            job_id = self._job_queue.pop(0) if self._job_queue else None
        if job_id is None:
            return None
        try:
            self._process_job(job_id)
        except Exception as e:
            logger.error("Job %s failed: %s", job_id, e, exc_info=True)
            metrics.record_run('job', STATUS_FAILED, 0.0)
            with self._jobs_lock:
                if job_id in self._jobs:
                    self._jobs[job_id]['error'] = str(e)
                    self._finish_locked(job_id, STATUS_FAILED)
        return job_id

    def run_pending(self) -> int:
        """Drain the queue synchronously; returns the number of jobs handled."""
        handled = 0
        while self.process_next() is not None:
            handled += 1
        return handled

    def _process_job(self, job_id: str):
        with self._jobs_lock:
            job = self._jobs.get(job_id)
            if job is None or job['status'] != STATUS_PENDING:
                return
            lines = self._inputs.get(job_id, [])
            token = self._tokens[job_id]
            if token.cancelled:
                self._finish_locked(job_id, self._stopped_status(token))
                return
            job['status'] = STATUS_RUNNING
            job['updated_at'] = time.time()

        def on_progress(processed: int, total: int):
            with self._jobs_lock:
                job['processed'] = processed
                job['percent'] = progress_percent(processed, total)
                job['updated_at'] = time.time()

        with metrics.track_active_run() as run:
            summary = self._aggregate(lines, self.config.chunk_size, on_progress,
                                      cancel_event=token.cancel_event)
        metrics.record_summary(summary)

        if summary.cancelled:
            status = self._stopped_status(token)
        elif self.tracker.is_current(token):
            self.store.store(job_id, summary)
            status = STATUS_COMPLETED if self.tracker.publish(token, job_id) else STATUS_SUPERSEDED
        else:
            status = STATUS_SUPERSEDED
        metrics.record_run('job', status, run.duration)
        with self._jobs_lock:
            if status == STATUS_COMPLETED:
                job['summary_id'] = job_id
            self._finish_locked(job_id, status)
        logger.info("Extraction job %s finished status=%s lines=%d unique=%d seconds=%.3f",
                    job_id, status, summary.total, len(summary.unique), run.duration)

    def _stopped_status(self, token: RunToken) -> str:
        return STATUS_CANCELLED if self.tracker.is_current(token) else STATUS_SUPERSEDED

    def _finish_locked(self, job_id: str, status: str):
        job = self._jobs[job_id]
        now = time.time()
        job['status'] = status
        job['updated_at'] = now
        job['finished_at'] = now
        self._inputs.pop(job_id, None)
        self._tokens.pop(job_id, None)
        if job['client'] is None:
            # only client keys have a latest result worth keeping
            self.tracker.forget(job_id)

    def _prune_locked(self):
        if len(self._jobs) > self.max_jobs:
            finished = sorted((j for j in self._jobs.values() if j['status'] in FINAL_STATUSES),
                              key=lambda j: j['created_at'])
            for j in finished[:len(self._jobs) - self.max_jobs]:
                self._jobs.pop(j['id'], None)
        self._prune_tracker_locked()

    def _prune_tracker_locked(self):
        """Forget idle run keys whose published summary has left the store."""
        active = {j['client'] or j['id'] for j in self._jobs.values() if j['status'] not in FINAL_STATUSES}
        for key in self.tracker.keys():
            if key in active:
                continue
            summary_id = self.tracker.latest(key)
            if summary_id is None or self.store.get(summary_id) is None:
                self.tracker.forget(key)
