"""
CLI (Command Line Interface).

This module provides quick terminal commands, e.g.:

    courseadvisor resolve "deep learning"
    courseadvisor list
    courseadvisor cart
    courseadvisor dump course_dump.txt
    courseadvisor fetch DD2424 DT2212
    courseadvisor chat

Note:
- The dialogue runtime lives in courseadvisor/interactive.py
- Paths default to courseadvisor/config.py and can be overridden per call
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from courseadvisor import config
from courseadvisor.cart import Cart
from courseadvisor.catalog import CourseCatalog
from courseadvisor.diagnostics import DialogueLog
from courseadvisor.export import export_course_dump
from courseadvisor.resolver import CourseResolver
from courseadvisor.storage import JsonStateSink, load_schedule

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_catalog(args: argparse.Namespace) -> CourseCatalog:
    path = Path(args.catalog) if args.catalog else config.catalog_path()
    return CourseCatalog.load(path)


def _sink(args: argparse.Namespace) -> JsonStateSink:
    return JsonStateSink(Path(args.state_dir) if args.state_dir else None)


def _cmd_resolve(args: argparse.Namespace) -> int:
    """
    Show what a spoken query would resolve to, and why.
    """
    query = (args.text or "").strip()
    if not query:
        console.print("Please provide a query text.")
        return 1

    catalog = _load_catalog(args)
    result = CourseResolver(catalog).explain(query)
    if not result.found:
        console.print(f"No confident match for {query!r}.")
        return 0

    record = result.record
    assert record is not None
    how = "code match" if result.phase == "code" else f"name match, score {result.score:.2f}"
    console.print(f"[bold cyan]{record.code}[/] | {record.name} | {record.credits:g} hp | {'/'.join(record.available_periods)} ({how})")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args)
    if not len(catalog):
        console.print("Catalog is empty.")
        return 1 if catalog.load_error else 0

    table = Table(title=f"Catalog ({len(catalog)} courses)", box=box.SIMPLE)
    table.add_column("Code")
    table.add_column("Course")
    table.add_column("Credits", justify="right")
    table.add_column("Periods")
    for record in catalog.all()[: args.limit]:
        table.add_row(f"[bold cyan]{record.code}[/]", record.name, f"{record.credits:g}", "/".join(record.available_periods))
    console.print(table)
    if len(catalog) > args.limit:
        console.print(f"... and {len(catalog) - args.limit} more courses")
    return 0


def _cmd_cart(args: argparse.Namespace) -> int:
    from courseadvisor.interactive import cart_table

    entries = load_schedule(_sink(args).schedule_path)
    if not entries:
        console.print("No courses scheduled.")
        return 0
    console.print(cart_table(entries))
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    out_path = (args.out or "").strip()
    if not out_path:
        console.print("Please provide an output path.")
        return 1

    catalog = _load_catalog(args)
    if not len(catalog):
        console.print("Catalog is empty, nothing to dump.")
        return 1

    n = export_course_dump(catalog, out_path)
    console.print(f"Exported {n} courses to: {out_path}")
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    from courseadvisor.fetch import fetch_courses, write_catalog

    out = Path(args.catalog) if args.catalog else config.catalog_path()
    descriptors = fetch_courses(args.codes, refresh=args.refresh)
    if not descriptors:
        console.print("Nothing fetched.")
        return 1
    write_catalog(descriptors, out)
    console.print(f"Catalog written: {len(descriptors)} courses -> {out}")
    return 0


def _cmd_chat(args: argparse.Namespace) -> int:
    from courseadvisor.dialogue import DialogueEngine
    from courseadvisor.interactive import ConsoleConversation, run_interactive

    catalog = _load_catalog(args)
    if catalog.load_error is not None:
        console.print("[yellow]Warning:[/] catalog could not be loaded, no course will be found.")

    sink = _sink(args)
    log_path = Path(args.log_file) if args.log_file else config.dialogue_log_path()
    cart = Cart(load_schedule(sink.schedule_path)) if args.resume else Cart()

    engine = DialogueEngine(
        resolver=CourseResolver(catalog),
        conversation=ConsoleConversation(console),
        sink=sink,
        log=DialogueLog(log_path),
        cart=cart,
    )
    run_interactive(engine, console=console)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="courseadvisor", description="Course advisor CLI")
    parser.add_argument("--catalog", type=str, default=None, help="Catalog JSON file")
    parser.add_argument("--state-dir", type=str, default=None, help="Directory for my_schedule.json / filter_criteria.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_resolve = sub.add_parser("resolve", help="Resolve a spoken query to a course")
    p_resolve.add_argument("text", type=str, help="Query text (e.g. 'DD 2424' or 'deep learning')")

    p_list = sub.add_parser("list", help="List catalog courses")
    p_list.add_argument("--limit", type=int, default=50, help="Max rows to show")

    sub.add_parser("cart", help="Show the saved schedule")

    p_dump = sub.add_parser("dump", help="Write a plain-text catalog listing")
    p_dump.add_argument("out", type=str, help="Output file path (e.g. course_dump.txt)")

    p_fetch = sub.add_parser("fetch", help="Download course data into the catalog file")
    p_fetch.add_argument("codes", nargs="+", help="Course codes")
    p_fetch.add_argument("--refresh", action="store_true", help="Ignore cached downloads")

    p_chat = sub.add_parser("chat", help="Plan a schedule in a dialogue")
    p_chat.add_argument("--resume", action="store_true", help="Start from the saved schedule")
    p_chat.add_argument("--log-file", type=str, default=None, help="Dialogue log file")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    handlers = {
        "resolve": _cmd_resolve,
        "list": _cmd_list,
        "cart": _cmd_cart,
        "dump": _cmd_dump,
        "fetch": _cmd_fetch,
        "chat": _cmd_chat,
    }
    handler = handlers.get(args.command)
    if handler is None:
        raise SystemExit(2)
    raise SystemExit(handler(args))
