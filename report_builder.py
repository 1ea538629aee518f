#!/usr/bin/env python3
"""
canido — report builder

Provides:
  - build_report(iam, role_name, fetch_documents=True, workers=4) -> Report
  - report_to_json(report) -> dict

Both policy lists are fetched before any document, so a role whose policies
cannot be listed fails before anything is rendered. Document fetches are
independent and each failure stays on its own entry.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import collect_policies as collect_mod
from policy_document import DocumentError, parse_document, pretty_json

DEFAULT_WORKERS = 4


@dataclass
class PolicyEntry:
    label: str          # ARN for managed, policy name for inline
    name: str
    document: Optional[Any] = None
    text: Optional[str] = None      # pretty-printed document
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Report:
    role_name: str
    managed: List[PolicyEntry] = field(default_factory=list)
    inline: List[PolicyEntry] = field(default_factory=list)


# ---- Per-item resolution ----------------------------------------------------

def resolve_entry(label: str, name: str, fetch: Callable[[], Any]) -> PolicyEntry:
    """Fetch and parse one document; any DocumentError is kept on the entry."""
    try:
        document = parse_document(fetch())
        text = pretty_json(document)
    except DocumentError as e:
        return PolicyEntry(label=label, name=name, error=str(e))
    return PolicyEntry(label=label, name=name, document=document, text=text)


def _resolve_all(jobs: List[Callable[[], PolicyEntry]], workers: int) -> List[PolicyEntry]:
    # map() keeps listing order regardless of completion order
    if workers <= 1 or len(jobs) <= 1:
        return [job() for job in jobs]
    with ThreadPoolExecutor(max_workers=min(workers, len(jobs))) as executor:
        return list(executor.map(lambda job: job(), jobs))


# ---- Pipeline ---------------------------------------------------------------

def build_report(iam, role_name: str, fetch_documents: bool = True,
                 workers: int = DEFAULT_WORKERS) -> Report:
    if not fetch_documents:
        # names come straight from the listings, no document lookups
        managed_names = collect_mod.list_managed_names(iam, role_name)
        inline_names = collect_mod.list_inline(iam, role_name)
        return Report(
            role_name=role_name,
            managed=[PolicyEntry(label=name, name=name) for name in managed_names],
            inline=[PolicyEntry(label=name, name=name) for name in inline_names],
        )

    managed_refs = collect_mod.list_managed(iam, role_name)
    inline_names = collect_mod.list_inline(iam, role_name)

    def managed_job(ref: collect_mod.ManagedPolicyRef) -> Callable[[], PolicyEntry]:
        return lambda: resolve_entry(ref.arn, ref.name,
                                     lambda: collect_mod.fetch_managed_document(iam, ref.arn))

    def inline_job(name: str) -> Callable[[], PolicyEntry]:
        return lambda: resolve_entry(name, name,
                                     lambda: collect_mod.fetch_inline_document(iam, role_name, name))

    jobs = [managed_job(ref) for ref in managed_refs] + [inline_job(name) for name in inline_names]
    entries = _resolve_all(jobs, workers)

    return Report(
        role_name=role_name,
        managed=entries[:len(managed_refs)],
        inline=entries[len(managed_refs):],
    )


# ---- JSON shape -------------------------------------------------------------

def report_to_json(report: Report) -> Dict[str, Any]:
    """
    Failed items are left out of the policy arrays and listed under "errors"
    so nothing disappears silently.
    """
    managed: List[Dict[str, Any]] = []
    inline: List[Dict[str, Any]] = []
    errors: List[Dict[str, Any]] = []

    for e in report.managed:
        if e.ok:
            managed.append({"arn": e.label, "name": e.name, "document": e.document})
        else:
            errors.append({"type": "managed", "arn": e.label, "name": e.name, "error": e.error})

    for e in report.inline:
        if e.ok:
            inline.append({"name": e.name, "document": e.document})
        else:
            errors.append({"type": "inline", "name": e.name, "error": e.error})

    return {
        "role_name": report.role_name,
        "managed_policies": managed,
        "inline_policies": inline,
        "errors": errors,
    }
