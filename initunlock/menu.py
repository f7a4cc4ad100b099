"""Boot/shell decision menu rendered with dialog(1)."""

from __future__ import annotations

from .executil import run, trace, warn
from .model import Continuation

TTY = "/dev/tty"
HEIGHT, WIDTH, CHOICE_HEIGHT = 15, 40, 4
BACKTITLE = "LUKS initramfs unlocker"
TITLE = "initramfs options"
MENU = "Choose one of the following options:"

CHOICES = {
    "1": ("unlock and boot", Continuation.PROCEED),
    "2": ("unlock and return to shell", Continuation.STOP),
}


def dialog_command() -> list[str]:
    cmd = [
        "dialog", "--clear",
        "--backtitle", BACKTITLE,
        "--title", TITLE,
        "--menu", MENU,
        str(HEIGHT), str(WIDTH), str(CHOICE_HEIGHT),
    ]
    for tag, (label, _) in CHOICES.items():
        cmd += [tag, label]
    return cmd


def parse_choice(text: str | None) -> Continuation:
    entry = CHOICES.get((text or "").strip())
    return entry[1] if entry else Continuation.STOP


def show_menu(tty: str = TTY, dry_run: bool = False) -> Continuation:
    """Block until the operator picks an entry; anything but "1" means STOP."""

    if dry_run:
        trace("menu.dry_run", choice=Continuation.STOP.value)
        return Continuation.STOP
    try:
        with open(tty, "w") as screen:
            res = run(dialog_command(), check=False, stdout=screen)
    except OSError as exc:
        warn("menu.tty_unavailable", tty=tty, error=str(exc))
        return Continuation.STOP
    run(["clear"], check=False, interactive=True)
    choice = parse_choice(res.err if res.ok else None)
    trace("menu.choice", rc=res.rc, answer=(res.err or "").strip(), choice=choice.value)
    return choice
