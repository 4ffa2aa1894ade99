"""Wire input, batching, the worker pool and output together for one run."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import BinaryIO

from pxargs.backend import InvocationRunner, SubprocessRunner
from pxargs.batcher import iter_invocations
from pxargs.config import RunConfiguration
from pxargs.models import Invocation, InvocationOutcome, RunSummary
from pxargs.output import OutputMultiplexer
from pxargs.pool import WorkerPool
from pxargs.queues import ClosableQueue
from pxargs.tokenizer import iter_tokens

logger = logging.getLogger(__name__)

FEEDER_JOIN_TIMEOUT_SECONDS = 5.0


class RunCoordinator:
    """Execute one run: feed invocations to the pool and drain its outcomes.

    Queues close in a fixed order: the work queue once input is exhausted (or
    the run is cancelled), then the result queue once every worker returned.
    The run is over when the result queue is closed and drained.
    """

    def __init__(
        self,
        config: RunConfiguration,
        *,
        output: OutputMultiplexer,
        runner: InvocationRunner | None = None,
    ) -> None:
        self.config = config
        self.output = output
        self.runner = runner or SubprocessRunner()

    def run(self, stream: BinaryIO) -> RunSummary:
        """Read tokens from ``stream`` and run every resulting invocation."""

        summary = RunSummary()
        cancel_event = threading.Event()
        tokens = _counted(iter_tokens(stream, self.config.delimiter), summary, cancel_event)
        return self.run_invocations(
            iter_invocations(tokens, self.config),
            summary=summary,
            cancel_event=cancel_event,
        )

    def run_invocations(
        self,
        invocations: Iterable[Invocation],
        *,
        summary: RunSummary | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RunSummary:
        summary = summary or RunSummary()
        work_queue: ClosableQueue[Invocation] = ClosableQueue(maxsize=self.config.max_procs)
        results: ClosableQueue[InvocationOutcome] = ClosableQueue(maxsize=self.config.max_procs)
        pool = WorkerPool(
            runner=self.runner,
            work_queue=work_queue,
            results=results,
            size=self.config.max_procs,
            stop_on_failure=self.config.exit_on_error,
            cancel_event=cancel_event,
        )
        error_holder: list[Exception] = []

        pool.start()
        feeder = threading.Thread(
            target=_feed,
            args=(invocations, work_queue, pool, summary, error_holder),
            name="pxargs-feeder",
            daemon=True,
        )
        feeder.start()
        watcher = threading.Thread(
            target=_close_when_done,
            args=(pool, results),
            name="pxargs-watcher",
            daemon=True,
        )
        watcher.start()

        try:
            for outcome in results:
                self.output.emit(outcome)
                summary.record(outcome)
        except BaseException:
            pool.cancel()
            results.close(discard=True)
            raise

        watcher.join()
        # a cancelled feeder may still be blocked in a read of the input stream
        feeder.join(timeout=FEEDER_JOIN_TIMEOUT_SECONDS if pool.cancelled else None)
        if feeder.is_alive():
            logger.debug("Input reader still blocked after cancellation")

        if error_holder:
            raise error_holder[0]

        summary.cancelled = pool.cancelled
        summary.skipped = max(0, summary.emitted - summary.executed)
        _log_summary(summary)
        return summary


def _counted(
    tokens: Iterable[str],
    summary: RunSummary,
    cancel_event: threading.Event,
) -> Iterator[str]:
    """Count tokens and stop pulling from the input once the run is cancelled."""

    iterator = iter(tokens)
    while not cancel_event.is_set():
        try:
            token = next(iterator)
        except StopIteration:
            return
        summary.tokens += 1
        yield token


def _feed(
    invocations: Iterable[Invocation],
    work_queue: ClosableQueue[Invocation],
    pool: WorkerPool,
    summary: RunSummary,
    error_holder: list[Exception],
) -> None:
    try:
        for invocation in invocations:
            if pool.cancelled:
                break
            summary.emitted += 1
            if not work_queue.put(invocation):
                break
    except Exception as exc:  # noqa: BLE001
        logger.exception("Feeding invocations failed")
        error_holder.append(exc)
        pool.cancel()
    finally:
        work_queue.close()


def _close_when_done(pool: WorkerPool, results: ClosableQueue[InvocationOutcome]) -> None:
    pool.join()
    results.close()


def _log_summary(summary: RunSummary) -> None:
    if summary.cancelled and summary.first_failure is not None:
        logger.error(
            "Stopped after failed command: %s (%d pending invocation(s) skipped)",
            summary.first_failure.invocation.display(),
            summary.skipped,
        )
    logger.info(
        "Run finished: tokens=%d invocations=%d executed=%d succeeded=%d failed=%d skipped=%d",
        summary.tokens,
        summary.emitted,
        summary.executed,
        summary.succeeded,
        summary.failed,
        summary.skipped,
    )
