#!/usr/bin/env python3
"""
canido — policy collector (read-only)

Purpose:
  List the managed and inline policies attached to one IAM role and fetch
  their documents.

Safety:
  - Read-only (list/get) IAM APIs only.
  - Listing failures are fatal (PolicyListFailure). Document failures are
    per-policy (DocumentUnavailable) and left to the caller to report.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError, OperationNotPageableError

from policy_document import DocumentError


@dataclass(frozen=True)
class ManagedPolicyRef:
    arn: str
    name: str


class PolicyListFailure(Exception):
    def __init__(self, role_name: str, kind: str, reason: Any):
        self.role_name = role_name
        self.kind = kind
        super().__init__(f"Failed to list {kind} policies for role {role_name}: {reason}")


class DocumentUnavailable(DocumentError):
    def __init__(self, ref: str, step: str, reason: Any):
        self.ref = ref
        self.step = step
        super().__init__(f"Failed to {step} for {ref}: {reason}")


# ---- Helpers ----------------------------------------------------------------

def get_paginator(client, op_name: str):
    try:
        return client.get_paginator(op_name)
    except OperationNotPageableError:
        return None


def iter_items(client, op_name: str, result_key: str, **kwargs: Any) -> Iterator[Any]:
    """Yield every item under result_key across all pages of op_name."""
    paginator = get_paginator(client, op_name)
    if paginator:
        for page in paginator.paginate(**kwargs):
            yield from page.get(result_key, [])
    else:
        yield from getattr(client, op_name)(**kwargs).get(result_key, [])


# ---- Listing ----------------------------------------------------------------

def list_managed(iam, role_name: str) -> List[ManagedPolicyRef]:
    """Attached managed policies, in the order IAM returns them."""
    refs: List[ManagedPolicyRef] = []
    try:
        for ap in iter_items(iam, "list_attached_role_policies", "AttachedPolicies", RoleName=role_name):
            arn = ap.get("PolicyArn")
            if not arn:
                continue
            refs.append(ManagedPolicyRef(arn=arn, name=ap.get("PolicyName") or arn))
    except (ClientError, BotoCoreError) as e:
        raise PolicyListFailure(role_name, "managed", e) from e
    return refs


def list_managed_names(iam, role_name: str) -> List[str]:
    """Attached managed policy names only, taken from the listing itself."""
    try:
        return [ap["PolicyName"]
                for ap in iter_items(iam, "list_attached_role_policies", "AttachedPolicies", RoleName=role_name)
                if ap.get("PolicyName")]
    except (ClientError, BotoCoreError) as e:
        raise PolicyListFailure(role_name, "managed", e) from e


def list_inline(iam, role_name: str) -> List[str]:
    try:
        return list(iter_items(iam, "list_role_policies", "PolicyNames", RoleName=role_name))
    except (ClientError, BotoCoreError) as e:
        raise PolicyListFailure(role_name, "inline", e) from e


# ---- Documents --------------------------------------------------------------

class ManagedDocumentLookup:
    """
    Two dependent calls: get_policy for the default version id, then
    get_policy_version for that version's document.
    """

    def __init__(self, iam, policy_arn: str):
        self.iam = iam
        self.policy_arn = policy_arn
        self.version_id: Optional[str] = None

    def default_version_id(self) -> str:
        try:
            policy_meta = self.iam.get_policy(PolicyArn=self.policy_arn)
        except (ClientError, BotoCoreError) as e:
            raise DocumentUnavailable(self.policy_arn, "get policy", e) from e

        version_id = policy_meta.get("Policy", {}).get("DefaultVersionId")
        if not version_id:
            raise DocumentUnavailable(self.policy_arn, "get default version ID", "no DefaultVersionId in response")
        return version_id

    def version_document(self, version_id: str) -> Any:
        try:
            policy_ver = self.iam.get_policy_version(PolicyArn=self.policy_arn, VersionId=version_id)
        except (ClientError, BotoCoreError) as e:
            raise DocumentUnavailable(self.policy_arn, f"get policy version {version_id}", e) from e

        document = policy_ver.get("PolicyVersion", {}).get("Document")
        if document is None:
            raise DocumentUnavailable(self.policy_arn, "get policy document", "no Document in response")
        return document

    def fetch(self) -> Any:
        self.version_id = self.default_version_id()
        return self.version_document(self.version_id)


def fetch_managed_document(iam, policy_arn: str) -> Any:
    return ManagedDocumentLookup(iam, policy_arn).fetch()


def fetch_inline_document(iam, role_name: str, policy_name: str) -> Any:
    try:
        rp = iam.get_role_policy(RoleName=role_name, PolicyName=policy_name)
    except (ClientError, BotoCoreError) as e:
        raise DocumentUnavailable(policy_name, "get inline policy", e) from e

    document = rp.get("PolicyDocument")
    if document is None:
        raise DocumentUnavailable(policy_name, "get inline policy", "no PolicyDocument in response")
    return document
