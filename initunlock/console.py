"""Colorized operator output."""

from __future__ import annotations

import os
import sys

GREEN = "\033[32m"; YELLOW = "\033[33m"; RED = "\033[31m"; CLR = "\033[0m"

COLOR = "NO_COLOR" not in os.environ
RULE = "=" * 55


def set_color(enabled: bool) -> None:
    global COLOR
    COLOR = enabled


def paint(color: str, text: str) -> str:
    if not COLOR:
        return text
    return f"{color}{text}{CLR}"


def emit(text: str = "", end: str = "\n") -> None:
    sys.stdout.write(text + end)
    sys.stdout.flush()


def step(msg: str, end: str = "\n") -> None:
    emit(f" {paint(GREEN, '*')} {msg}", end=end)


def warn(msg: str) -> None:
    emit(f" {paint(YELLOW, '*')} {msg}")


def error(msg: str) -> None:
    print(f" {paint(RED, '*')} {msg}", file=sys.stderr, flush=True)


def rule() -> None:
    emit(f" {paint(YELLOW, RULE)}")


def success(text: str = "SUCCESS") -> str:
    return paint(GREEN, text)


def failure(text: str = "FAILED") -> str:
    return paint(RED, text)


def highlight(text: str) -> str:
    return paint(YELLOW, text)
