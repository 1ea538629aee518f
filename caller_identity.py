#!/usr/bin/env python3
"""
canido — caller_identity.py
Work out which IAM role the current credentials are running as.

Read-only: a single sts:GetCallerIdentity call, no sts:AssumeRole.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

CREDENTIALS_HINT = "Please check your AWS credentials (e.g., run 'aws sso login')."


class IdentityUnavailable(Exception):
    pass


class MalformedIdentity(Exception):
    pass


def role_name_from_arn(arn: Any) -> str:
    """
    Return the role name from a caller ARN.

    arn:aws:sts::123456789012:assumed-role/RoleName/SessionName -> RoleName
    """
    if not isinstance(arn, str) or not arn:
        raise MalformedIdentity("ARN not found in caller identity")

    parts = arn.split("/")
    if len(parts) < 2 or not parts[1]:
        raise MalformedIdentity(f"Failed to extract role name from ARN: {arn}")
    return parts[1]


def resolve_role_name(sts) -> str:
    """Ask STS who we are and return the role name in effect."""
    try:
        identity = sts.get_caller_identity()
    except (ClientError, BotoCoreError) as e:
        raise IdentityUnavailable(f"Failed to get caller identity. {CREDENTIALS_HINT} ({e})") from e

    return role_name_from_arn(identity.get("Arn"))
