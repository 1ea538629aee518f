#!/usr/bin/env python3
"""
canido — snapshot clients (offline demo mode)

Purpose:
  Serve the STS/IAM calls canido makes from a canned JSON snapshot, so the
  whole report runs without AWS credentials.

Snapshot format:
  {
    "caller_arn": "arn:aws:sts::123456789012:assumed-role/DeployRole/session-1",
    "managed_policies": [
      {"PolicyArn": "...", "PolicyName": "...", "DefaultVersionId": "v1",
       "Document": "<percent-encoded JSON or object>"}
    ],
    "inline_policies": {"InlineA": "<percent-encoded JSON or object>"},
    "page_size": 100
  }

Missing pieces fail the way IAM would: no DefaultVersionId -> get_policy
NoSuchEntity, no Document -> get_policy_version NoSuchEntity, no caller_arn
-> get_caller_identity ExpiredToken.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from botocore.exceptions import ClientError

DEFAULT_PAGE_SIZE = 100


def read_json(path: str | Path) -> Any:
    """Load and return JSON data from a file."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class SnapshotPaginator:
    def __init__(self, pages: List[Dict[str, Any]]):
        self._pages = pages

    def paginate(self, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        return iter(self._pages)


class SnapshotStsClient:
    def __init__(self, snapshot: Dict[str, Any]):
        self.snapshot = snapshot

    def get_caller_identity(self) -> Dict[str, Any]:
        arn = self.snapshot.get("caller_arn")
        if not arn:
            raise client_error("ExpiredToken", "The security token included in the request is expired",
                               "GetCallerIdentity")
        return {"Arn": arn, "Account": arn.split(":")[4] if arn.count(":") >= 5 else ""}


class SnapshotIamClient:
    def __init__(self, snapshot: Dict[str, Any]):
        self.snapshot = snapshot
        self.page_size = max(1, int(snapshot.get("page_size") or DEFAULT_PAGE_SIZE))
        self.managed: List[Dict[str, Any]] = list(snapshot.get("managed_policies") or [])
        self.inline: Dict[str, Any] = dict(snapshot.get("inline_policies") or {})

    # ---- pagination ---------------------------------------------------------

    def _pages(self, key: str, items: List[Any]) -> List[Dict[str, Any]]:
        if not items:
            return [{key: [], "IsTruncated": False}]
        chunks = [items[i:i + self.page_size] for i in range(0, len(items), self.page_size)]
        return [{key: chunk, "IsTruncated": n < len(chunks) - 1} for n, chunk in enumerate(chunks)]

    def get_paginator(self, op_name: str) -> SnapshotPaginator:
        if op_name == "list_attached_role_policies":
            attached = [{"PolicyArn": p.get("PolicyArn"), "PolicyName": p.get("PolicyName")}
                        for p in self.managed]
            return SnapshotPaginator(self._pages("AttachedPolicies", attached))
        if op_name == "list_role_policies":
            return SnapshotPaginator(self._pages("PolicyNames", list(self.inline)))
        raise ValueError(f"Snapshot client cannot paginate {op_name}")

    # ---- documents ----------------------------------------------------------

    def _find_managed(self, policy_arn: str, operation: str) -> Dict[str, Any]:
        for p in self.managed:
            if p.get("PolicyArn") == policy_arn:
                return p
        raise client_error("NoSuchEntity", f"Policy {policy_arn} does not exist", operation)

    def get_policy(self, PolicyArn: str) -> Dict[str, Any]:
        p = self._find_managed(PolicyArn, "GetPolicy")
        if not p.get("DefaultVersionId"):
            raise client_error("NoSuchEntity", f"Policy {PolicyArn} has no default version", "GetPolicy")
        return {"Policy": {"Arn": PolicyArn, "PolicyName": p.get("PolicyName"),
                           "DefaultVersionId": p["DefaultVersionId"]}}

    def get_policy_version(self, PolicyArn: str, VersionId: str) -> Dict[str, Any]:
        p = self._find_managed(PolicyArn, "GetPolicyVersion")
        if VersionId != p.get("DefaultVersionId") or "Document" not in p:
            raise client_error("NoSuchEntity", f"Policy {PolicyArn} version {VersionId} does not exist",
                               "GetPolicyVersion")
        return {"PolicyVersion": {"Document": p["Document"], "VersionId": VersionId, "IsDefaultVersion": True}}

    def get_role_policy(self, RoleName: str, PolicyName: str) -> Dict[str, Any]:
        if PolicyName not in self.inline:
            raise client_error("NoSuchEntity", f"The role policy with name {PolicyName} cannot be found.",
                               "GetRolePolicy")
        return {"RoleName": RoleName, "PolicyName": PolicyName, "PolicyDocument": self.inline[PolicyName]}


def load_snapshot_clients(path: str | Path) -> Tuple[SnapshotStsClient, SnapshotIamClient]:
    snapshot = read_json(path)
    if not isinstance(snapshot, dict):
        raise ValueError(f"Unrecognized snapshot format in {path}")
    return SnapshotStsClient(snapshot), SnapshotIamClient(snapshot)
