from __future__ import annotations

import io
import time
from collections.abc import Iterator

import allure
import pytest

from pxargs.config import RunConfiguration
from pxargs.coordinator import RunCoordinator
from pxargs.models import Invocation
from pxargs.output import OutputMultiplexer

pytestmark = [
    allure.epic("Dispatch"),
    allure.feature("Run Coordinator"),
]


def _coordinator(config: RunConfiguration, runner=None):
    stdout, stderr = io.BytesIO(), io.BytesIO()
    coordinator = RunCoordinator(
        config,
        output=OutputMultiplexer(stdout=stdout, stderr=stderr),
        runner=runner,
    )
    return coordinator, stdout, stderr


class _SlowStream:
    """Endless-looking input that yields one token per read."""

    def __init__(self, limit: int = 100) -> None:
        self.limit = limit
        self.reads = 0

    def read(self, _size: int = -1) -> bytes:
        if self.reads >= self.limit:
            return b""
        self.reads += 1
        time.sleep(0.01)
        return b"t\n"


def test_continue_on_error_runs_everything_and_exits_zero(make_runner) -> None:
    config = RunConfiguration.build(command=["check"], max_procs=3)
    runner = make_runner(fail_when=lambda invocation: invocation.argv[1].startswith("bad"))
    coordinator, stdout, stderr = _coordinator(config, runner)

    summary = coordinator.run(io.BytesIO(b"ok1\nbad1\nok2\nbad2\nok3\n"))

    assert len(runner.executed) == 5
    assert (summary.tokens, summary.emitted, summary.executed) == (5, 5, 5)
    assert (summary.succeeded, summary.failed, summary.skipped) == (3, 2, 0)
    assert summary.exit_code(exit_on_error=False) == 0
    assert sorted(stdout.getvalue().splitlines()) == [b"ok1", b"ok2", b"ok3"]
    assert sorted(stderr.getvalue().splitlines()) == [b"failed: bad1", b"failed: bad2"]


def test_exit_on_error_stops_after_first_failure(make_runner) -> None:
    config = RunConfiguration.build(command=["check"], exit_on_error=True)
    runner = make_runner(fail_when=lambda invocation: invocation.index == 0)
    coordinator, stdout, stderr = _coordinator(config, runner)

    summary = coordinator.run(io.BytesIO(b"".join(f"t{i}\n".encode() for i in range(50))))

    assert [invocation.index for invocation in runner.executed] == [0]
    assert summary.cancelled
    assert summary.failed == 1
    assert summary.exit_code(exit_on_error=True) == 1
    assert summary.first_failure is not None
    assert summary.first_failure.invocation.argv == ("check", "t0")
    assert stdout.getvalue() == b""
    assert stderr.getvalue() == b"failed: t0\n"


def test_exit_on_error_only_finishes_work_already_dispatched(make_runner) -> None:
    config = RunConfiguration.build(command=["check"], max_procs=3, exit_on_error=True)
    runner = make_runner(
        fail_when=lambda invocation: invocation.index == 0,
        delay_seconds=lambda invocation: 0.0 if invocation.index == 0 else 0.1,
    )
    coordinator, _stdout, _stderr = _coordinator(config, runner)

    summary = coordinator.run(io.BytesIO(b"".join(f"t{i}\n".encode() for i in range(100))))

    assert summary.executed == len(runner.executed)
    assert summary.executed <= config.max_procs
    assert summary.exit_code(exit_on_error=True) == 1


def test_exit_on_error_without_failures_exits_zero(make_runner) -> None:
    config = RunConfiguration.build(command=["check"], max_procs=2, exit_on_error=True)
    coordinator, stdout, _stderr = _coordinator(config, make_runner())

    summary = coordinator.run(io.BytesIO(b"a\nb\nc"))

    assert summary.executed == 3
    assert not summary.cancelled
    assert summary.exit_code(exit_on_error=True) == 0
    assert sorted(stdout.getvalue().splitlines()) == [b"a", b"b", b"c"]


def test_empty_input_never_runs_the_command(make_runner) -> None:
    runner = make_runner()
    coordinator, stdout, stderr = _coordinator(RunConfiguration.build(command=["x"]), runner)

    summary = coordinator.run(io.BytesIO(b""))

    assert runner.executed == []
    assert summary.executed == 0
    assert stdout.getvalue() == stderr.getvalue() == b""


def test_single_worker_preserves_input_order(make_runner) -> None:
    config = RunConfiguration.build(command=["echo"], max_args=2)
    coordinator, stdout, _stderr = _coordinator(config, make_runner())

    coordinator.run(io.BytesIO(b"a\nb\nc"))

    assert stdout.getvalue() == b"a b\nc\n"


def test_concurrency_is_bounded_by_max_procs(make_runner) -> None:
    config = RunConfiguration.build(command=["work"], max_procs=4)
    runner = make_runner(delay_seconds=0.01)
    coordinator, _stdout, _stderr = _coordinator(config, runner)

    summary = coordinator.run(io.BytesIO(b"\n".join(b"%d" % i for i in range(40))))

    assert summary.executed == 40
    assert runner.max_active <= 4


def test_feeder_error_is_raised_after_workers_stop(make_runner) -> None:
    def _broken() -> Iterator[Invocation]:
        yield Invocation(index=0, argv=("echo", "fine"))
        raise RuntimeError("input exploded")

    runner = make_runner()
    coordinator, _stdout, _stderr = _coordinator(RunConfiguration.build(command=["echo"]), runner)

    with pytest.raises(RuntimeError, match="input exploded"):
        coordinator.run_invocations(_broken())


def test_runs_real_subprocesses(python_cmd) -> None:
    config = RunConfiguration.build(
        command=python_cmd("import sys; print(','.join(sys.argv[1:]))"),
        max_procs=2,
        max_args=2,
    )
    coordinator, stdout, _stderr = _coordinator(config)

    summary = coordinator.run(io.BytesIO(b"a\nb\nc\nd\ne"))

    assert summary.succeeded == 3
    assert sorted(stdout.getvalue().splitlines()) == [b"a,b", b"c,d", b"e"]


def test_exit_on_error_stops_reading_input(make_runner) -> None:
    config = RunConfiguration.build(command=["check"], max_args=10, exit_on_error=True)
    runner = make_runner(fail_when=lambda invocation: invocation.index == 0)
    coordinator, _stdout, _stderr = _coordinator(config, runner)
    stream = _SlowStream()

    summary = coordinator.run(stream)
    reads_at_return = stream.reads
    time.sleep(0.1)

    assert reads_at_return < 20
    assert stream.reads == reads_at_return
    assert [invocation.index for invocation in runner.executed] == [0]
    assert summary.exit_code(exit_on_error=True) == 1
    assert summary.skipped == summary.emitted - summary.executed
