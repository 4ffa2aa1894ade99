"""Fixed-size pool of worker threads executing queued invocations."""

from __future__ import annotations

import logging
import threading

from pxargs.backend import InvocationRunner
from pxargs.models import Invocation, InvocationOutcome
from pxargs.queues import ClosableQueue, QueueClosed

logger = logging.getLogger(__name__)


class WorkerPool:
    """Run ``size`` workers that pull invocations and push outcomes.

    Each worker executes one invocation at a time, so no more than ``size``
    commands are alive at once. With ``stop_on_failure`` the first failed
    outcome cancels the run: pending invocations are discarded, idle workers
    stop, and commands already running are left to finish.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        runner: InvocationRunner,
        work_queue: ClosableQueue[Invocation],
        results: ClosableQueue[InvocationOutcome],
        size: int,
        stop_on_failure: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if size < 1:
            raise ValueError("Worker pool size must be >= 1.")
        self.runner = runner
        self.work_queue = work_queue
        self.results = results
        self.size = size
        self.stop_on_failure = stop_on_failure
        self.cancel_event = cancel_event or threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Worker pool already started.")
        for number in range(1, self.size + 1):
            thread = threading.Thread(
                target=self._worker_loop,
                name=f"pxargs-worker-{number}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()
        logger.debug("Started %d workers", self.size)

    def join(self) -> None:
        """Wait until every worker has returned."""

        for thread in self._threads:
            thread.join()
        logger.debug("All workers stopped")

    def cancel(self) -> None:
        """Stop handing out queued invocations; running ones are not interrupted."""

        self.cancel_event.set()
        dropped = self.work_queue.close(discard=True)
        if dropped:
            logger.debug("Discarded %d pending invocation(s)", dropped)

    def _worker_loop(self) -> None:
        while not self.cancelled:
            try:
                invocation = self.work_queue.get()
            except QueueClosed:
                return
            if self.cancelled:
                return

            logger.info("%s", invocation.display())
            try:
                outcome = self.runner.run(invocation)
            except Exception as error:  # noqa: BLE001
                logger.exception("Runner error for invocation #%d", invocation.index)
                outcome = InvocationOutcome.failure(
                    invocation,
                    f"{invocation.program}: {error}".encode(errors="surrogateescape"),
                    exit_code=None,
                )
            failed = not outcome.ok
            if failed:
                logger.debug(
                    "Invocation #%d failed (exit code %s)",
                    invocation.index,
                    outcome.exit_code,
                )
                if self.stop_on_failure:
                    self.cancel()

            self.results.put(outcome)
            if failed and self.stop_on_failure:
                return
