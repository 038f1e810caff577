import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))


# Each stub logs every stdin line it receives to ``received.log`` next to it.
STUB_PRELUDE = """\
#!{python}
import sys, time
LOG = {log!r}

def received(line):
    with open(LOG, "a") as f:
        f.write(line + "\\n")

def send(line):
    print(line, flush=True)
"""

ECHO_ENGINE = """
for raw in sys.stdin:
    line = raw.strip()
    received(line)
    if line == "uci":
        send("id name Stub")
        send("uciok")
    elif line == "isready":
        send("readyok")
    elif line == "quit":
        sys.exit(0)
"""

STUBBORN_ENGINE = """
for raw in sys.stdin:
    line = raw.strip()
    received(line)
    if line == "quit":
        time.sleep(10)
"""

FLOOD_ENGINE = """
for raw in sys.stdin:
    line = raw.strip()
    received(line)
    if line == "uci":
        for i in range(1000):
            print("info string line %d" % i)
        sys.stdout.flush()
    elif line == "quit":
        sys.exit(0)
"""

FAILING_ENGINE = """
for raw in sys.stdin:
    line = raw.strip()
    received(line)
    if line == "quit":
        sys.exit(3)
"""


class StubEngine:
    def __init__(self, path: Path, log: Path):
        self.path = str(path)
        self.log = log

    def received(self):
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()


@pytest.fixture
def make_engine(tmp_path):
    """Write an executable Python stub engine and return a :class:`StubEngine`."""

    def _make(body: str = ECHO_ENGINE, name: str = "engine") -> StubEngine:
        script = tmp_path / name
        log = tmp_path / f"{name}.received.log"
        prelude = STUB_PRELUDE.format(python=sys.executable, log=str(log))
        script.write_text(prelude + textwrap.dedent(body))
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return StubEngine(script, log)

    return _make


def open_fd_count() -> int:
    return len(os.listdir("/proc/self/fd"))


needs_proc_fd = pytest.mark.skipif(
    not os.path.isdir("/proc/self/fd"), reason="needs /proc/self/fd"
)
