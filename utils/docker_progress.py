import logging
import subprocess
import time
from rich.console import Console
from rich.spinner import Spinner
from rich.live import Live
from typing import List

_log = logging.getLogger(__name__)

console = Console()

# Lines docker compose prints to stderr while pulling and starting containers
PROGRESS_KEYWORDS = [
    'Pulling', 'Download', 'Extracting', 'Pull complete',
    'Waiting', 'Verifying', 'Already exists', 'Digest:',
    'Status:', 'Image is up to date', 'Downloaded newer image',
    'Creating', 'Created', 'Starting', 'Started', 'Running', 'Healthy',
    'Recreate', 'Recreated',
]


class DockerProgressMonitor:
    """Spinner shown while a docker command runs; reports result and duration."""

    def __init__(self, message: str = "Docker operation in progress"):
        self.message = message
        self.spinner = Spinner("dots", text=f"│     {message}")
        self.live = None
        self.result = None
        self.started = None

    def __enter__(self):
        self.started = time.monotonic()
        self.live = Live(self.spinner, console=console, refresh_per_second=10)
        self.live.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.live:
            self.live.stop()

        elapsed = time.monotonic() - self.started
        if exc_type is not None:
            console.print(f"  │     ❌ {self.message} - Failed ({exc_type.__name__})", style="bold red")
        elif self.result is not None and self.result.returncode == 0:
            console.print(f"  │     ✅ {self.message} - Complete ({elapsed:.0f}s)", style="bold green")
        elif self.result is not None:
            console.print(f"  │     ❌ {self.message} - Failed (exit {self.result.returncode})", style="bold red")

    def set_result(self, result):
        self.result = result


def run_docker_with_progress(
    command: List[str],
    message: str,
    cwd=None,
    capture_output: bool = True,
    text: bool = True,
    encoding: str = 'utf-8',
    errors: str = 'ignore'
) -> subprocess.CompletedProcess:
    """Run a Docker command with progress spinner.

    A missing docker binary is reported as exit code 127 instead of raising.
    """
    _log.info("Running %s", ' '.join(command))
    with DockerProgressMonitor(message) as monitor:
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=capture_output,
                text=text,
                encoding=encoding,
                errors=errors
            )
        except FileNotFoundError as e:
            result = subprocess.CompletedProcess(command, 127, '', str(e))
        monitor.set_result(result)

    _log.info("%s exited with %s", command[0], result.returncode)
    return result


def filter_docker_errors(stderr: str) -> str:
    """Drop pull/start progress lines from docker stderr, keep the real errors."""
    if not stderr:
        return ""

    error_lines = [
        line for line in stderr.splitlines()
        if line.strip() and not any(keyword in line for keyword in PROGRESS_KEYWORDS)
    ]
    return '\n'.join(error_lines)
