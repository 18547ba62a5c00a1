import queue
import threading
from functools import partial
from threading import BrokenBarrierError

from ..exceptions import InvalidConfigurationError

_STOP = object()


class Barrier:
    """Reusable generational barrier for a fixed number of threads.

    Every ``wait`` blocks until ``parties`` threads have arrived; the last one
    bumps ``generation`` and releases the whole group, after which the barrier
    is immediately ready for the next round.

    ``abort`` breaks the barrier: current and future waiters raise
    ``threading.BrokenBarrierError`` until ``reset`` is called.
    """

    def __init__(self, parties: int):
        if parties < 1:
            raise InvalidConfigurationError(f"barrier needs at least one party, got {parties}")
        self._cond = threading.Condition()
        self._parties = parties
        self._remaining = parties
        self._generation = 0
        self._broken = False

    @property
    def parties(self) -> int:
        return self._parties

    @property
    def generation(self) -> int:
        """Number of rounds completed so far."""
        return self._generation

    @property
    def broken(self) -> bool:
        return self._broken

    def wait(self) -> int:
        """Block until all parties arrive; returns the generation just completed."""
        with self._cond:
            if self._broken:
                raise BrokenBarrierError
            gen = self._generation
            self._remaining -= 1
            if self._remaining == 0:
                self._generation += 1
                self._remaining = self._parties
                self._cond.notify_all()
                return gen
            self._cond.wait_for(lambda: gen != self._generation or self._broken)
            if gen == self._generation:
                raise BrokenBarrierError
            return gen

    def abort(self):
        """Break the barrier and wake every waiter with BrokenBarrierError."""
        with self._cond:
            self._broken = True
            self._cond.notify_all()

    def reset(self, parties: int | None = None):
        """Restore a fresh barrier, optionally with a new party count.

        Must not be called while threads are waiting.
        """
        with self._cond:
            if parties is not None:
                if parties < 1:
                    raise InvalidConfigurationError(f"barrier needs at least one party, got {parties}")
                self._parties = parties
            self._remaining = self._parties
            self._generation = 0
            self._broken = False

    def __repr__(self):
        return f"Barrier(parties={self._parties}, generation={self._generation}, broken={self._broken})"


class WorkerPool:
    """Fixed pool of ``count`` workers; the calling thread is worker 0.

    Workers ``1..count-1`` are persistent daemon threads, each fed through its
    own queue. ``run`` hands one job to every worker, executes job 0 inline and
    returns once all jobs have finished.

    Parameters
    --
    count : int, default 4
        Total number of workers, including the caller.

    Raises
    --
    InvalidConfigurationError
        If ``count < 1``.

    Examples
    --
    >>> with WorkerPool(2) as pool:
    ...     out = [0, 0]
    ...     pool.for_each(lambda i: out.__setitem__(i, i * 10))
    >>> out
    [0, 10]

    """

    def __init__(self, count: int = 4):
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidConfigurationError(f"worker count must be a positive integer, got {count!r}")
        self._count = count
        self._done = Barrier(count)
        self._run_lock = threading.Lock()
        self._errors_lock = threading.Lock()
        self._errors: list = []
        self._closed = False
        self._queues = [queue.Queue() for _ in range(count - 1)]
        self._threads = [
            threading.Thread(target=self._worker, args=(q,), name=f"dyngraph-worker-{i + 1}", daemon=True)
            for i, q in enumerate(self._queues)
        ]
        for th in self._threads:
            th.start()

    @property
    def count(self) -> int:
        return self._count

    @property
    def closed(self) -> bool:
        return self._closed

    # ==================== Execution ====================

    def run(self, jobs):
        """Run ``jobs[i]`` on worker ``i`` and wait for all of them.

        Parameters
        --
        jobs : sequence of callable or None
            Exactly ``count`` entries; ``None`` leaves a worker idle.

        Raises
        --
        ValueError
            If the number of jobs differs from ``count``.
        RuntimeError
            If the pool is closed.
        Exception
            The first error raised by a job, after every job has finished.
            Errors caused only by a broken barrier rank after the original
            failure.

        """
        jobs = list(jobs)
        if len(jobs) != self._count:
            raise ValueError(f"expected {self._count} jobs, got {len(jobs)}")
        with self._run_lock:
            if self._closed:
                raise RuntimeError("WorkerPool is closed")
            self._errors = []
            for q, job in zip(self._queues, jobs[1:]):
                q.put(job)
            self._execute(jobs[0])
            self._done.wait()
            errors = self._errors
        if errors:
            primary = [e for e in errors if not isinstance(e, BrokenBarrierError)]
            raise (primary or errors)[0]

    def for_each(self, func):
        """Run ``func(worker)`` on every worker."""
        self.run([partial(func, i) for i in range(self._count)])

    def for_each_chunk(self, size: int, func):
        """Split ``range(size)`` into contiguous ranges; run ``func(begin, end)`` per worker."""
        self.run([partial(func, *self.chunk(i, size)) for i in range(self._count)])

    def for_each_interleaved(self, func):
        """Run ``func(begin, step)`` per worker; worker ``i`` owns ``i, i+count, ...``."""
        self.run([partial(func, i, self._count) for i in range(self._count)])

    def chunk(self, worker: int, size: int) -> tuple:
        """``[begin, end)`` of ``worker``'s contiguous share of ``size`` items.

        Every worker gets ``size // count`` items; the last one also takes the
        remainder.
        """
        if not 0 <= worker < self._count:
            raise IndexError(f"worker {worker} out of range for a pool of {self._count}")
        base = size // self._count
        begin = worker * base
        end = size if worker == self._count - 1 else begin + base
        return begin, end

    def _execute(self, job):
        if job is None:
            return
        try:
            job()
        except Exception as e:
            with self._errors_lock:
                self._errors.append(e)

    def _worker(self, jobs: queue.Queue):
        while True:
            job = jobs.get()
            if job is _STOP:
                break
            self._execute(job)
            self._done.wait()

    # ==================== Lifecycle ====================

    def close(self):
        """Stop the worker threads (idempotent)."""
        with self._run_lock:
            if self._closed:
                return
            self._closed = True
            for q in self._queues:
                q.put(_STOP)
        for th in self._threads:
            th.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"WorkerPool(count={self._count}, {state})"
