import queue
import subprocess


class FakeLogProcess:
    """Stands in for `docker compose logs -f`.

    Lines are served from a queue. With follow=True the stream stays open
    after the last line until terminate() is called, like a real -f stream.
    """

    def __init__(self, lines, follow=True):
        self._lines = queue.Queue()
        for line in lines:
            self._lines.put(line + '\n')
        if not follow:
            self._lines.put(None)
        self.returncode = None
        self.terminate_calls = 0
        self.stdout = iter(self._lines.get, None)

    def poll(self):
        return self.returncode

    def terminate(self):
        self.terminate_calls += 1
        self.returncode = -15
        self._lines.put(None)

    def kill(self):
        self.terminate()

    def wait(self, timeout=None):
        if self.returncode is None:
            self.returncode = 0
        return self.returncode


class FakePopen:
    """Returns the prepared processes in order, one per call."""

    def __init__(self, *processes):
        self.processes = list(processes)
        self.calls = []
        self.options = []

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        self.options.append(kwargs)
        if len(self.calls) > len(self.processes):
            return FakeLogProcess([], follow=True)
        return self.processes[len(self.calls) - 1]


def completed(args, returncode=0, stdout='', stderr=''):
    return subprocess.CompletedProcess(args, returncode, stdout, stderr)
