import ast
import os
import sys
import threading
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, Set

import pytest

from initunlock import console, executil
from initunlock.executil import Result

_ROOT_DIR = Path(__file__).absolute().parent.parent
_PACKAGE_DIR = (_ROOT_DIR / "initunlock").absolute()

_EXECUTED_LINES: Dict[Path, Set[int]] = defaultdict(set)
_CANDIDATE_LINES: Dict[Path, Set[int]] = {}
_PREVIOUS_TRACE = None
_PREVIOUS_THREAD_TRACE = None
_TRACE_ACTIVE = False


def _iter_python_files(directory: Path) -> Iterable[Path]:
    for path in directory.rglob("*.py"):
        if path.is_file():
            yield path.absolute()


def _statement_lines(path: Path) -> Set[int]:
    source = path.read_text(encoding="utf-8")
    try:
        tree = ast.parse(source, filename=str(path))
    except SyntaxError:
        return set()
    return {node.lineno for node in ast.walk(tree) if isinstance(node, ast.stmt)}


for file_path in _iter_python_files(_PACKAGE_DIR):
    _CANDIDATE_LINES[file_path] = _statement_lines(file_path)


def _trace(frame, event, arg):
    if event != "line":
        return _trace
    resolved = Path(frame.f_code.co_filename)
    if resolved in _CANDIDATE_LINES:
        _EXECUTED_LINES[resolved].add(frame.f_lineno)
    return _trace


def pytest_sessionstart(session):
    global _PREVIOUS_TRACE, _PREVIOUS_THREAD_TRACE, _TRACE_ACTIVE
    if _TRACE_ACTIVE:
        return
    _TRACE_ACTIVE = True
    _PREVIOUS_TRACE = sys.gettrace()
    _PREVIOUS_THREAD_TRACE = threading.gettrace()
    sys.settrace(_trace)
    threading.settrace(_trace)


def pytest_sessionfinish(session, exitstatus):
    global _TRACE_ACTIVE
    if not _TRACE_ACTIVE:
        return
    _TRACE_ACTIVE = False
    sys.settrace(_PREVIOUS_TRACE)
    threading.settrace(_PREVIOUS_THREAD_TRACE)

    terminal = session.config.pluginmanager.get_plugin("terminalreporter")
    write_line = terminal.write_line if terminal else print
    write_line("")
    write_line("Statement coverage for 'initunlock':")
    total = hit = 0
    for path in sorted(_CANDIDATE_LINES):
        candidates = _CANDIDATE_LINES[path]
        if not candidates:
            continue
        covered = len(_EXECUTED_LINES.get(path, set()) & candidates)
        total += len(candidates)
        hit += covered
        write_line(f"{str(path.relative_to(_ROOT_DIR)):<40} {covered:>4}/{len(candidates):<4} {covered / len(candidates) * 100:6.1f}%")
    if total:
        write_line(f"{'TOTAL':<40} {hit:>4}/{total:<4} {hit / total * 100:6.1f}%")


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.setattr(executil, "LOG_DIRS", [str(tmp_path / "logs")])
    monkeypatch.setattr(executil, "LOG_PATH", None)
    monkeypatch.setattr(console, "COLOR", False)
    for key in list(os.environ):
        if key.startswith("INITUNLOCK_"):
            monkeypatch.delenv(key)


class Recorder:
    """Stand-in for ``executil.run`` answering from a table of command prefixes."""

    def __init__(self, responses=None):
        self.calls = []
        self.kwargs = []
        self.responses = list((responses or {}).items())

    def add(self, prefix, rc=0, out="", err=""):
        self.responses.insert(0, (tuple(prefix), (rc, out, err)))

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        self.kwargs.append(kwargs)
        for prefix, answer in self.responses:
            if tuple(cmd[: len(prefix)]) == tuple(prefix):
                rc, out, err = answer
                return Result(rc, out, err, 0.0)
        return Result(0, "", "", 0.0)

    def commands(self, name):
        return [c for c in self.calls if c and c[0] == name]


@pytest.fixture
def recorder():
    return Recorder()
