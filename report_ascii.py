#!/usr/bin/env python3
"""
canido — report_ascii.py
Render a Report for the terminal (human and short modes) or as JSON.
"""

from __future__ import annotations

import contextlib
import io
import json
from typing import List

from colorama import Fore, Style

from policy_document import pretty_json
from report_builder import PolicyEntry, Report, report_to_json

# ---- Presentation config ----------------------------------------------------

BANNER = "=" * 50
SEPARATOR = "-" * 50

MANAGED_TITLE = "1. Managed Policies"
INLINE_TITLE = "2. Inline Policies"
NO_MANAGED = "(No managed policies attached)"
NO_INLINE = "(No inline policies attached)"

# ---- Helpers ----------------------------------------------------------------

def paint(text: str, *styles: str, color: bool = True) -> str:
    if not color or not styles:
        return text
    return "".join(styles) + text + Style.RESET_ALL


def render_section_header(title: str, color: bool = True) -> None:
    print(paint(BANNER, Fore.BLUE, color=color))
    print(paint(f"  {title}", Fore.BLUE, Style.BRIGHT, color=color))
    print(paint(BANNER, Fore.BLUE, color=color))


def render_documents(entries: List[PolicyEntry], tag: str, empty: str, color: bool = True) -> None:
    if not entries:
        print(paint(empty, Style.DIM, color=color))
        return

    for e in entries:
        print(f"[{tag}]: {paint(e.label, Fore.CYAN, color=color)}")
        if e.ok:
            print(e.text if e.text is not None else pretty_json(e.document))
        else:
            print(f"{paint('Error', Fore.RED, color=color)}: {e.error}")
        print(paint(SEPARATOR, Style.DIM, color=color))


def render_names(names: List[str], empty: str, color: bool = True) -> None:
    if not names:
        print(paint(empty, Style.DIM, color=color))
        return
    for name in names:
        print(name)

# ---- Main rendering ---------------------------------------------------------

def render_human(report: Report, color: bool = True) -> None:
    render_section_header(MANAGED_TITLE, color)
    render_documents(report.managed, "Policy ARN", NO_MANAGED, color)
    print()
    render_section_header(INLINE_TITLE, color)
    render_documents(report.inline, "Policy Name", NO_INLINE, color)


def render_short(report: Report, color: bool = True) -> None:
    render_section_header(MANAGED_TITLE, color)
    render_names([e.name for e in report.managed], NO_MANAGED, color)
    print()
    render_section_header(INLINE_TITLE, color)
    render_names([e.name for e in report.inline], NO_INLINE, color)


def compose_json(report: Report) -> str:
    return json.dumps(report_to_json(report), indent=2, ensure_ascii=False) + "\n"


def compose_report(report: Report, mode: str = "human", color: bool = True) -> str:
    """
    Build the full report text for one mode: "human", "short" or "json".
    """
    if mode == "json":
        return compose_json(report)

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        if mode == "short":
            render_short(report, color)
        else:
            render_human(report, color)
    return buf.getvalue()
