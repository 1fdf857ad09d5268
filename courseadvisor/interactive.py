"""
Terminal runtime for the dialogue engine.

The robot side (ask/say/gesture) is rendered with rich; every typed line is
classified into an Event and handed to the engine. An empty line counts as
silence. While the engine sits in WAITING, a reply that arrives after the
state's timeout first delivers the TIMEOUT event. "quit" or "exit" leaves
the loop while no planning session is open (IDLE or WAITING).
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from courseadvisor.dialogue import DialogueEngine, State
from courseadvisor.intents import Event, Intent, classify
from courseadvisor.model import ScheduledCourse

QUIT_WORDS = {"quit", "exit"}


class ConsoleConversation:
    """
    Conversation collaborator printing to a rich console.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def ask(self, prompt: str) -> None:
        self.console.print(f"[bold cyan]advisor>[/] {prompt}")

    def say(self, prompt: str) -> None:
        self.console.print(f"[cyan]advisor>[/] {prompt}")

    def gesture(self, kind: str) -> None:
        self.console.print(f"[dim italic]*{kind}*[/]")

    def listen(self) -> None:
        # the input prompt of the loop is the listening cue
        pass


def cart_table(entries: Iterable[ScheduledCourse], title: str = "Your schedule") -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Period")
    table.add_column("Code")
    table.add_column("Course")
    table.add_column("Credits", justify="right")

    total = 0.0
    for e in sorted(entries, key=lambda x: x.period):
        table.add_row(e.period, f"[bold cyan]{e.code}[/]", e.name, f"{e.credits:g}")
        total += e.credits
    table.add_row("", "", "[bold]Total[/]", f"[yellow]{total:g}[/]")
    return table


def run_interactive(
    engine: DialogueEngine,
    console: Optional[Console] = None,
    read_line: Optional[Callable[[str], str]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """
    Drive `engine` from terminal input until the session ends or the user quits.
    """
    console = console or Console()
    read = read_line or console.input

    engine.start()

    while True:
        prompt_shown = clock()
        try:
            line = read("[bold green]you>[/] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            if engine.state not in (State.IDLE, State.TERMINAL):
                engine.sink.persist_cart(engine.cart.entries)
            return

        timeout = engine.timeout()
        if timeout is not None and clock() - prompt_shown >= timeout:
            engine.handle(Event(Intent.TIMEOUT))

        if engine.state in (State.IDLE, State.WAITING) and line.strip().lower() in QUIT_WORDS:
            return

        if engine.state is State.IDLE:
            engine.handle(Event(Intent.USER_ENTER))
            continue

        event = classify(line, engine.filter_step, engine.resolver)
        engine.handle(event)

        if event.intent is Intent.CHECK_CART and len(engine.cart):
            console.print(cart_table(engine.cart.entries))

        if engine.finished:
            if len(engine.cart):
                console.print(cart_table(engine.cart.entries, title="Final schedule"))
            return
