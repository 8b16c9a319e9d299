"""
Worker pool for the SoundPrint engine.

Each worker is an isolated execution context: a dedicated thread with its
own dispatcher and engine, fed through a bounded request queue and
answering through futures. Parallelism comes from running several
workers; no analyzer state is shared between them.
"""

import itertools
import logging
import queue
import threading
import time
import uuid
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from soundprint.core.dispatcher import ByteSource, TaskDispatcher
from soundprint.core.engine import create_analysis_engine
from soundprint.core.protocol import Response
from soundprint.utils.errors import RequestTimeout

DispatcherFactory = Callable[[], TaskDispatcher]

# Queue sentinel that ends a worker loop
_STOP = object()

logger = logging.getLogger(__name__)


class AnalysisWorker:
    """
    One request at a time, in submission order.

    A request that has started always runs to completion; only requests
    still waiting in the queue can be cancelled.
    """

    def __init__(
        self,
        dispatcher: TaskDispatcher,
        queue_size: int = 16,
        name: str = "soundprint-worker"
    ):
        """
        Initialize worker.

        Args:
            dispatcher: Dispatcher owned exclusively by this worker
            queue_size: Maximum number of waiting requests
            name: Thread name
        """
        self.dispatcher = dispatcher
        self.name = name
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger(f"worker.{name}")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending(self) -> int:
        """Requests waiting in the queue."""
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker thread."""
        with self._lock:
            if self.is_running:
                return
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
            self.logger.debug("Worker started")

    def submit(
        self,
        message: Any,
        block: bool = True,
        timeout: Optional[float] = None
    ) -> Future:
        """
        Queue a request message.

        Returns:
            Future resolving to the response message

        Raises:
            RuntimeError: Worker is not running
            queue.Full: Queue stayed full past ``timeout``
        """
        if not self.is_running:
            raise RuntimeError(f"Worker {self.name} is not running")

        future: Future = Future()
        self._queue.put((message, future), block=block, timeout=timeout)
        return future

    def stop(self, wait: bool = True) -> None:
        """Finish queued requests, then end the worker thread."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put(_STOP)
            if wait:
                thread.join()
            self._thread = None
            self.logger.debug("Worker stopped")

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                message, future = item
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    future.set_result(self.dispatcher.handle(message))
                except Exception as e:
                    self.logger.exception(f"Dispatcher raised: {e}")
                    future.set_exception(e)
            finally:
                self._queue.task_done()


class WorkerPool:
    """
    Round-robin pool of independent workers.

    Every submitted message gets a ``requestId`` (a fresh one when the
    caller did not provide it), so concurrent callers can correlate
    responses safely.
    """

    def __init__(
        self,
        dispatcher_factory: DispatcherFactory,
        workers: int = 2,
        queue_size: int = 16,
        timeout: Optional[float] = None
    ):
        """
        Initialize worker pool.

        Args:
            dispatcher_factory: Builds one dispatcher (and engine) per worker
            workers: Number of workers
            queue_size: Queue capacity per worker
            timeout: Default deadline in seconds for request(); None waits forever
        """
        if workers <= 0:
            raise ValueError(f"Worker count must be positive, got {workers}")

        self.timeout = timeout
        self.workers: List[AnalysisWorker] = [
            AnalysisWorker(dispatcher_factory(), queue_size, name=f"soundprint-worker-{i}")
            for i in range(workers)
        ]
        self._next_worker = itertools.cycle(self.workers)
        self._lock = threading.Lock()
        self.logger = logging.getLogger('worker_pool')

    def start(self) -> "WorkerPool":
        for worker in self.workers:
            worker.start()
        self.logger.info(f"Worker pool started with {len(self.workers)} workers")
        return self

    def shutdown(self, wait: bool = True) -> None:
        """Stop every worker after its queued requests are answered."""
        self.logger.info("Shutting down worker pool")
        for worker in self.workers:
            worker.stop(wait=wait)

    def submit(self, message: Any, timeout: Optional[float] = None) -> Future:
        """
        Queue a request on the next worker.

        Raises:
            queue.Full: The worker's queue stayed full past ``timeout``
        """
        message = with_request_id(message)
        with self._lock:
            worker = next(self._next_worker)
        return worker.submit(message, timeout=timeout)

    def request(self, message: Any, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Submit a request and wait for its response.

        The deadline covers waiting for queue space as well as waiting
        for the answer.

        Args:
            message: Request message
            timeout: Deadline in seconds; the pool default when None

        Returns:
            dict: Response message, or an error response when the
                  deadline passes first
        """
        message = with_request_id(message)
        request_id = message.get('requestId') if isinstance(message, Mapping) else None
        deadline = self.timeout if timeout is None else timeout
        start_time = time.monotonic()

        try:
            future = self.submit(message, timeout=deadline)
        except queue.Full:
            self.logger.warning(f"Request {request_id} found no queue space within {deadline}s")
            return self._timeout_response(deadline, request_id)

        remaining = None
        if deadline is not None:
            remaining = max(deadline - (time.monotonic() - start_time), 0.0)

        try:
            return future.result(timeout=remaining)
        except FutureTimeoutError:
            future.cancel()
            self.logger.warning(f"Request {request_id} timed out after {deadline}s")
            return self._timeout_response(deadline, request_id)

    def map(
        self,
        messages: Iterable[Any],
        timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Run many requests across the pool; responses in input order."""
        futures = [self.submit(m) for m in messages]
        deadline = self.timeout if timeout is None else timeout
        responses = []
        for future in futures:
            try:
                responses.append(future.result(timeout=deadline))
            except FutureTimeoutError:
                future.cancel()
                responses.append(self._timeout_response(deadline))
        return responses

    @staticmethod
    def _timeout_response(
        deadline: Optional[float],
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        error = RequestTimeout(f"No response within {deadline} seconds", timeout=deadline)
        return Response.failure(error, request_id).to_message()

    def __enter__(self) -> "WorkerPool":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


def with_request_id(message: Any) -> Any:
    """Copy of ``message`` guaranteed to carry a ``requestId``."""
    if not isinstance(message, Mapping):
        return message
    if message.get('requestId') is not None:
        return message
    return {**message, 'requestId': uuid.uuid4().hex}


def create_worker_pool(
    config: Optional[Dict[str, Any]] = None,
    byte_source: Optional[ByteSource] = None
) -> WorkerPool:
    """
    Factory function to create a worker pool from configuration.

    Args:
        config: Configuration dict
        byte_source: Optional collaborator resolving ``audioRef`` values

    Returns:
        WorkerPool: Configured, not yet started
    """
    config = config or {}
    workers_config = config.get('workers', {})

    def dispatcher_factory() -> TaskDispatcher:
        return TaskDispatcher(create_analysis_engine(config), byte_source)

    return WorkerPool(
        dispatcher_factory,
        workers=workers_config.get('count', 2),
        queue_size=workers_config.get('queue_size', 16),
        timeout=workers_config.get('timeout'),
    )
