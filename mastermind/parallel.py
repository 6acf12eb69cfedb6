"""
parallel.py

Bounded fan-out / fan-in on top of multiprocessing pools.

A Limiter accepts units of work with go(), runs them on a pool of
`workers` threads or processes, and never lets more than `limit` units be
pending at once. Results are folded into shared state by on_result
callbacks, which run in the submitting process while holding the
limiter's lock, so the accumulator only ever has one writer.

wait() uses run-to-completion semantics: it returns once every submitted
unit has run, and only then re-raises the first error recorded since the
previous wait(). A Limiter can be reused for several batches; close() (or
leaving the with block) shuts the pool down.
"""

import multiprocessing as mp
import threading
from contextlib import contextmanager
from multiprocessing.pool import ThreadPool
from typing import Callable, Iterator, List, Optional, Sequence

from .config import CONFIG

BACKENDS = ("thread", "process")


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class Limiter:
    def __init__(
        self,
        limit: int = CONFIG["limiter_size"],
        workers: int = CONFIG["workers"],
        backend: str = CONFIG["parallel_backend"],
    ):
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if workers <= 0:
            raise ValueError(f"workers must be positive, got {workers}")
        if backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}, got {backend!r}")

        self.limit = limit
        self.workers = workers
        self.backend = backend

        self._slots = threading.BoundedSemaphore(limit)
        self._lock = threading.RLock()
        self._idle = threading.Condition()
        self._pool = None
        self._closed = False
        self._errors: List[BaseException] = []

        # Diagnostics
        self.submitted = 0
        self.completed = 0
        self.pending = 0
        self.peak_pending = 0

    # ------------- Context manager -------------

    def __enter__(self) -> "Limiter":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._shutdown(terminate=True)
            return False
        try:
            self.wait()
        finally:
            self.close()
        return False

    # ------------- Public -------------

    @contextmanager
    def locked(self):
        """
        The mutually exclusive region shared with on_result callbacks.

        Never call wait() inside it: the callbacks that would finish the
        pending units need this same lock, so wait() would block forever.
        """
        with self._lock:
            yield

    def go(self, fn: Callable, *args, on_result: Optional[Callable] = None) -> None:
        """
        Submit fn(*args). Blocks while `limit` units are still pending.

        With the "process" backend fn and args must be picklable.
        """
        if self._closed:
            raise RuntimeError("limiter is closed")

        self._slots.acquire()
        self._started()

        def done(value):
            try:
                if on_result is not None:
                    with self._lock:
                        on_result(value)
            except Exception as exc:
                self._record(exc)
            finally:
                self._finished()

        def failed(exc):
            self._record(exc)
            self._finished()

        try:
            self._ensure_pool().apply_async(fn, args, callback=done, error_callback=failed)
        except Exception:
            self._finished()
            raise

    def wait(self) -> None:
        """Block until every submitted unit has completed; re-raise the first error."""
        with self._idle:
            while self.pending > 0:
                self._idle.wait()
            errors, self._errors = self._errors, []
        if errors:
            raise errors[0]

    def close(self) -> None:
        if not self._closed:
            self._shutdown(terminate=False)

    # ------------- Internals -------------

    def _ensure_pool(self):
        if self._pool is None:
            if self.backend == "process":
                self._pool = mp.Pool(processes=self.workers)
            else:
                self._pool = ThreadPool(processes=self.workers)
        return self._pool

    def _shutdown(self, terminate: bool) -> None:
        self._closed = True
        if self._pool is None:
            return
        if terminate:
            self._pool.terminate()
        else:
            self._pool.close()
        self._pool.join()
        self._pool = None

    def _started(self) -> None:
        with self._idle:
            self.submitted += 1
            self.pending += 1
            if self.pending > self.peak_pending:
                self.peak_pending = self.pending

    def _finished(self) -> None:
        with self._idle:
            self.completed += 1
            self.pending -= 1
            if self.pending == 0:
                self._idle.notify_all()
        self._slots.release()

    def _record(self, exc: BaseException) -> None:
        with self._idle:
            self._errors.append(exc)
