import os
import signal
import time

import psutil
import pytest

import utils.readiness as readiness
from utils.readiness import LogSentinelMonitor, ReadinessState, poll_until, wait_for_health

from fakes import FakeLogProcess, FakePopen

SENTINEL = 'Initializing finished'
COMMAND = ['docker', 'compose', 'logs', '-f', 'nextcloud-app']


class TestLogSentinelMonitor:

    def test_sentinel_found(self):
        process = FakeLogProcess(['Configuring Redis', 'Initializing finished', 'after'])
        monitor = LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, kill_group=False, popen=FakePopen(process))

        result = monitor.wait()

        assert result.state is ReadinessState.FOUND
        assert result.found
        assert result.detail == 'Initializing finished'
        assert monitor.terminations == 1
        assert process.terminate_calls == 1

    def test_stop_is_idempotent(self):
        process = FakeLogProcess([SENTINEL])
        monitor = LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, kill_group=False, popen=FakePopen(process))

        monitor.wait()
        monitor.stop()
        monitor.stop()

        assert monitor.terminations == 1
        assert process.terminate_calls == 1

    def test_timeout_without_sentinel(self):
        process = FakeLogProcess(['Configuring Redis', 'Still installing'])
        monitor = LogSentinelMonitor(COMMAND, SENTINEL, timeout=0.3, kill_group=False, popen=FakePopen(process))

        started = time.monotonic()
        result = monitor.wait()
        elapsed = time.monotonic() - started

        assert result.state is ReadinessState.TIMED_OUT
        assert not result.found
        assert elapsed < 0.3 + 2.0
        assert monitor.terminations == 1
        assert process.terminate_calls == 1

    def test_closed_stream_is_reopened(self):
        first = FakeLogProcess(['container restarting'], follow=False)
        second = FakeLogProcess(['Initializing finished'])
        popen = FakePopen(first, second)
        monitor = LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, reopen_delay=0.01, kill_group=False, popen=popen)

        result = monitor.wait()

        assert result.found
        assert len(popen.calls) == 2
        assert first.terminate_calls == 0
        assert second.terminate_calls == 1

    def test_lines_are_passed_to_callback(self):
        seen = []
        process = FakeLogProcess(['one', 'two', SENTINEL])
        monitor = LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, on_line=seen.append, kill_group=False, popen=FakePopen(process))

        monitor.wait()

        assert seen == ['one', 'two', SENTINEL]

    def test_wait_only_once(self):
        monitor = LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, kill_group=False, popen=FakePopen(FakeLogProcess([SENTINEL])))
        monitor.wait()
        with pytest.raises(RuntimeError):
            monitor.wait()

    def test_popen_receives_command(self):
        popen = FakePopen(FakeLogProcess([SENTINEL]))
        LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, kill_group=False, popen=popen).wait()
        assert popen.calls == [COMMAND]

    @pytest.mark.skipif(not hasattr(os, 'killpg'), reason='process groups are POSIX only')
    def test_process_group_signalled(self, monkeypatch):
        process = FakeLogProcess([SENTINEL])
        process.pid = 4242
        signalled = []

        def killpg(pid, sig):
            signalled.append((pid, sig))
            process.terminate()

        monkeypatch.setattr(readiness.os, 'killpg', killpg)
        popen = FakePopen(process)

        assert LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, popen=popen).wait().found
        assert popen.options[0]['start_new_session'] is True
        assert signalled == [(4242, signal.SIGTERM)]

    def test_single_process_terminated_without_group(self):
        popen = FakePopen(FakeLogProcess([SENTINEL]))
        LogSentinelMonitor(COMMAND, SENTINEL, timeout=5, kill_group=False, popen=popen).wait()
        assert popen.options[0]['start_new_session'] is False

    @pytest.mark.skipif(not hasattr(os, 'killpg'), reason='process groups are POSIX only')
    def test_children_of_log_command_terminated_on_timeout(self):
        seen = []
        command = ['sh', '-c', 'sleep 30 & echo child $!; wait']
        monitor = LogSentinelMonitor(command, SENTINEL, timeout=1, on_line=seen.append)

        started = time.monotonic()
        result = monitor.wait()
        elapsed = time.monotonic() - started

        assert result.state is ReadinessState.TIMED_OUT
        assert elapsed < 1 + 2.0
        child_pid = int(seen[0].split()[1])

        deadline = time.monotonic() + 3
        while not process_gone(child_pid) and time.monotonic() < deadline:
            time.sleep(0.05)
        assert process_gone(child_pid)


def process_gone(pid):
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


class FakeClock:

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestPollUntil:

    def test_backoff_until_success(self):
        clock = FakeClock()
        answers = iter([False, False, False, True])

        result = poll_until(lambda: next(answers), timeout=100, sleep=clock.sleep, clock=clock)

        assert result.found
        assert clock.sleeps == [2.0, 4.0, 8.0]
        assert result.elapsed == 14.0

    def test_delay_is_capped_and_deadline_respected(self):
        clock = FakeClock()

        result = poll_until(lambda: False, timeout=100, sleep=clock.sleep, clock=clock)

        assert result.state is ReadinessState.TIMED_OUT
        assert clock.sleeps == [2.0, 4.0, 8.0, 16.0, 30.0, 30.0, 10.0]
        assert clock.now == 100.0

    def test_check_errors_count_as_not_ready(self):
        clock = FakeClock()
        calls = []

        def check():
            calls.append(1)
            if len(calls) < 2:
                raise OSError("connection refused")
            return True

        assert poll_until(check, timeout=10, sleep=clock.sleep, clock=clock).found
        assert len(calls) == 2


def test_wait_for_health_reports_changes(monkeypatch):
    statuses = iter(['starting', 'starting', 'healthy'])
    monkeypatch.setattr(readiness, 'container_health', lambda name: next(statuses))
    reported = []

    result = wait_for_health('nextcloud-app', 60, on_status=reported.append, sleep=lambda seconds: None)

    assert result.found
    assert result.detail == 'healthy'
    assert reported == ['starting', 'healthy']


def test_wait_for_health_timeout_keeps_last_status(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(readiness, 'container_health', lambda name: 'unhealthy')

    result = wait_for_health('nextcloud-traefik', 10, sleep=clock.sleep, clock=clock)

    assert not result.found
    assert result.detail == 'unhealthy'
