# NCSTACK v1.0
'''Readiness signals: log sentinel watcher and backoff pollers.'''

import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import requests

_log = logging.getLogger(__name__)


class ReadinessState(Enum):
    WAITING = "WAITING"
    FOUND = "FOUND"
    TIMED_OUT = "TIMED_OUT"


@dataclass
class ReadinessResult:
    state: ReadinessState
    elapsed: float
    detail: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.state is ReadinessState.FOUND


class LogSentinelMonitor:
    """
    Follow a log stream until a sentinel substring appears or a deadline passes.

    A reader thread consumes the output of `command` line by line while the
    caller blocks on an event bounded by `timeout`. Whichever side finishes
    first stops the other: the log subprocess is terminated exactly once.
    If the stream ends before the sentinel shows up (container restarted,
    compose not ready yet) it is reopened after `reopen_delay` seconds, so
    only the deadline can end an unsuccessful wait.

    With `kill_group` the log command runs in its own session and the whole
    process group is signalled, so the compose plugin started by `docker
    compose logs` goes away together with its parent.
    """

    def __init__(
        self,
        command: List[str],
        sentinel: str,
        timeout: float = 600,
        on_line: Optional[Callable[[str], None]] = None,
        reopen_delay: float = 2.0,
        popen: Callable = subprocess.Popen,
        cwd=None,
        kill_group: bool = True
    ):
        self.command = command
        self.sentinel = sentinel
        self.timeout = timeout
        self.on_line = on_line
        self.reopen_delay = reopen_delay
        self._popen = popen
        self._cwd = cwd
        self.kill_group = kill_group and hasattr(os, "killpg")

        self.state = ReadinessState.WAITING
        self.matched_line = None
        self.terminations = 0

        self._found = threading.Event()
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._process = None
        self._thread = None

    def wait(self) -> ReadinessResult:
        '''Block until FOUND or TIMED_OUT. Can only be called once.'''
        if self.state is not ReadinessState.WAITING or self._thread is not None:
            raise RuntimeError("LogSentinelMonitor.wait() called twice")

        started = time.monotonic()
        self._thread = threading.Thread(target=self._read_loop, name="log-sentinel", daemon=True)
        self._thread.start()

        try:
            found = self._found.wait(self.timeout)
        except KeyboardInterrupt:
            self.stop()
            raise
        elapsed = time.monotonic() - started

        self.state = ReadinessState.FOUND if found else ReadinessState.TIMED_OUT
        self.stop()

        if found:
            _log.info("Sentinel %r found after %.1fs", self.sentinel, elapsed)
        else:
            _log.warning("Sentinel %r not seen within %ss", self.sentinel, self.timeout)

        return ReadinessResult(self.state, elapsed, self.matched_line)

    def stop(self):
        '''Stop the reader and terminate the log process. Safe to call repeatedly.'''
        self._stop.set()
        self._terminate_current()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)

    def _terminate_current(self):
        with self._lock:
            process = self._process
            self._process = None
        if process is None:
            return
        if process.poll() is None:
            self._send_signal(process)
            self.terminations += 1
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._send_signal(process, force=True)
                process.wait()

    def _send_signal(self, process, force=False):
        if not self.kill_group:
            if force:
                process.kill()
            else:
                process.terminate()
            return
        try:
            os.killpg(process.pid, signal.SIGKILL if force else signal.SIGTERM)
        except ProcessLookupError:
            _log.debug("Process group %s already gone", process.pid)

    def _read_loop(self):
        while not self._stop.is_set():
            try:
                process = self._popen(
                    self.command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    bufsize=1,
                    encoding='utf-8',
                    errors='ignore',
                    cwd=self._cwd,
                    start_new_session=self.kill_group
                )
            except OSError as e:
                _log.error("Could not start log stream %s: %s", self.command, e)
                self._stop.wait(self.reopen_delay)
                continue

            with self._lock:
                self._process = process

            # stop() may have run while the process was starting
            if self._stop.is_set():
                self._terminate_current()
                return

            for line in process.stdout:
                line = line.rstrip('\n')
                if self.on_line:
                    self.on_line(line)
                if self.sentinel in line:
                    self.matched_line = line
                    self._found.set()
                    return
                if self._stop.is_set():
                    return

            # Stream closed without the sentinel
            with self._lock:
                if self._process is process:
                    self._process = None
            process.wait()
            _log.debug("Log stream ended (exit %s), reopening", process.returncode)
            self._stop.wait(self.reopen_delay)


def poll_until(
    check: Callable[[], bool],
    timeout: float,
    initial_delay: float = 2.0,
    max_delay: float = 30.0,
    factor: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic
) -> ReadinessResult:
    '''Call `check` with exponential backoff until it returns True or `timeout` elapses.'''
    started = clock()
    deadline = started + timeout
    delay = initial_delay
    attempts = 0

    while True:
        attempts += 1
        try:
            ok = check()
        except Exception as e:
            _log.debug("Check raised %s on attempt %d", e, attempts)
            ok = False

        now = clock()
        if ok:
            return ReadinessResult(ReadinessState.FOUND, now - started, f"{attempts} attempts")

        remaining = deadline - now
        if remaining <= 0:
            return ReadinessResult(ReadinessState.TIMED_OUT, now - started, f"{attempts} attempts")

        sleep(min(delay, remaining))
        delay = min(delay * factor, max_delay)


def container_health(container_name):
    '''Docker health status of a container: healthy, starting, unhealthy, none or missing'''
    try:
        result = subprocess.run(
            ['docker', 'inspect', container_name, '--format', '{{if .State.Health}}{{.State.Health.Status}}{{else}}none{{end}}'],
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='ignore',
            timeout=15
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return 'missing'

    if result.returncode != 0:
        return 'missing'
    return result.stdout.strip() or 'none'


def wait_for_health(container_name, timeout, on_status=None, **poll_kwargs) -> ReadinessResult:
    '''Poll the container's health check until it reports healthy'''
    last = {'status': None}

    def check():
        status = container_health(container_name)
        if status != last['status'] and on_status:
            on_status(status)
        last['status'] = status
        return status == 'healthy'

    result = poll_until(check, timeout, **poll_kwargs)
    result.detail = last['status']
    return result


def wait_for_http(url, timeout, expected_status=200, **poll_kwargs) -> ReadinessResult:
    '''Poll an HTTP endpoint until it answers with the expected status code'''

    def check():
        try:
            response = requests.get(url, timeout=5)
        except requests.exceptions.RequestException:
            return False
        return response.status_code == expected_status

    return poll_until(check, timeout, **poll_kwargs)
