#!/usr/bin/env python3
"""
canido — what can the current AWS role do?

Looks up the IAM role behind the current credentials and prints every policy
attached to it (managed and inline).

Usage examples
--------------
# Human-readable report for the ambient credentials
canido

# Another profile, JSON output saved to a file
canido --profile defender-readonly --json --out out/policies.json

# Only the policy names
canido --short

# Offline run against a canned snapshot
canido --demo demo/sample_role.json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Tuple

import boto3
import colorama
from botocore.config import Config as BotoConfig

import caller_identity as identity_mod
import collect_policies as collect_mod
import report_ascii as report_mod
import report_builder as builder_mod
import snapshot_clients as snapshot_mod

__version__ = "0.1.0"

FATAL_ERRORS = (
    identity_mod.IdentityUnavailable,
    identity_mod.MalformedIdentity,
    collect_mod.PolicyListFailure,
)


# ---------------------------- helpers ----------------------------------------

class Status:
    """[*]/[+] progress lines on stderr, so stdout only carries the report."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def info(self, msg: str) -> None:
        if not self.quiet:
            print(f"[*] {msg}", file=sys.stderr)

    def ok(self, msg: str) -> None:
        if not self.quiet:
            print(f"[+] {msg}", file=sys.stderr)

    def error(self, msg: str) -> None:
        print(f"[!] {msg}", file=sys.stderr)


def _write_text(text: str, path: Optional[str | Path]) -> None:
    if not path:
        return
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")


def make_clients(profile: Optional[str] = None):
    """One session, STS + IAM clients with botocore's standard transport retries."""
    session = boto3.Session(profile_name=profile) if profile else boto3.Session()
    cfg = BotoConfig(retries={"max_attempts": 10, "mode": "standard"})
    return session.client("sts", config=cfg), session.client("iam", config=cfg)


def select_mode(args: argparse.Namespace) -> str:
    # --short is checked first and wins over --json
    if args.short:
        return "short"
    if args.json:
        return "json"
    return "human"


def positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


# ---------------------------- pipeline core ----------------------------------

def run_report(sts, iam, mode: str = "human", workers: int = builder_mod.DEFAULT_WORKERS,
               color: bool = True, status: Optional[Status] = None) -> str:
    """
    Resolve the role, collect its policies and return the rendered report.
    Raises one of FATAL_ERRORS before anything is rendered.
    """
    status = status or Status(quiet=True)

    status.info("Checking AWS credentials...")
    role_name = identity_mod.resolve_role_name(sts)
    status.ok(f"Target role: {role_name}")

    fetch_documents = mode != "short"
    if fetch_documents:
        status.info(f"Fetching policy documents (workers={workers})...")
    report = builder_mod.build_report(iam, role_name, fetch_documents=fetch_documents, workers=workers)

    failed = sum(1 for e in report.managed + report.inline if not e.ok)
    if failed:
        status.error(f"{failed} policy document(s) could not be retrieved")

    return report_mod.compose_report(report, mode=mode, color=color)


def load_clients(args: argparse.Namespace, status: Status) -> Tuple[object, object]:
    if args.demo:
        status.info(f"Loading demo snapshot {args.demo}...")
        return snapshot_mod.load_snapshot_clients(args.demo)
    return make_clients(args.profile)


# ---------------------------- main -------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="canido",
        description="View IAM policies attached to the current AWS role",
    )
    p.add_argument("-j", "--json", action="store_true", help="Show output in JSON format")
    p.add_argument("-s", "--short", action="store_true", help="Show only policy names")
    p.add_argument("--profile", help="AWS profile name to use", default=None)
    p.add_argument("--demo", help="Snapshot JSON to read instead of calling AWS (offline)", default=None)
    p.add_argument("--workers", type=positive_int, default=builder_mod.DEFAULT_WORKERS,
                   help="Policy documents fetched in parallel (1 = sequential)")
    p.add_argument("--out", help="Write the report to this file instead of stdout", default=None)
    p.add_argument("--no-color", dest="color", action="store_false", help="Disable colored output")
    p.add_argument("-q", "--quiet", action="store_true", help="Hide [*]/[+] progress lines")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    status = Status(quiet=args.quiet)
    mode = select_mode(args)
    # never put ANSI codes in JSON or in a file
    color = args.color and mode != "json" and not args.out

    try:
        if color:
            colorama.just_fix_windows_console()
        sts, iam = load_clients(args, status)
        text = run_report(sts, iam, mode=mode, workers=args.workers, color=color, status=status)
        if args.out:
            _write_text(text, args.out)
            status.ok(f"Wrote report to {args.out}")
        else:
            sys.stdout.write(text)
    except FATAL_ERRORS as e:
        status.error(str(e))
        return 1
    except KeyboardInterrupt:
        status.error("Aborted by user.")
        return 130
    except Exception as e:
        status.error(f"Error: {e}")
        return 1
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
