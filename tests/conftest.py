import json
from pathlib import Path
from urllib.parse import quote

import pytest

from snapshot_clients import SnapshotIamClient, SnapshotStsClient

DEMO_SNAPSHOT = Path(__file__).resolve().parent.parent / "demo" / "sample_role.json"

CALLER_ARN = "arn:aws:sts::123456789012:assumed-role/DeployRole/session-1"

READ_ONLY_DOC = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Action": ["s3:Get*", "s3:List*"], "Resource": "*"}],
}

ARTIFACTS_DOC = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Action": "s3:PutObject", "Resource": "arn:aws:s3:::deploy-artifacts/*"}],
}

INLINE_DOC = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Action": "iam:PassRole", "Resource": "*"}],
}


def encode(doc):
    """Percent-encode a policy document the way IAM returns it."""
    return quote(json.dumps(doc))


@pytest.fixture
def snapshot():
    """A role with two good managed policies, one broken one and one inline policy."""
    return {
        "caller_arn": CALLER_ARN,
        "page_size": 1,
        "managed_policies": [
            {
                "PolicyArn": "arn:aws:iam::aws:policy/ReadOnlyAccess",
                "PolicyName": "ReadOnlyAccess",
                "DefaultVersionId": "v3",
                "Document": encode(READ_ONLY_DOC),
            },
            {
                "PolicyArn": "arn:aws:iam::123456789012:policy/retired-policy",
                "PolicyName": "retired-policy",
            },
            {
                "PolicyArn": "arn:aws:iam::123456789012:policy/deploy-artifacts",
                "PolicyName": "deploy-artifacts",
                "DefaultVersionId": "v1",
                "Document": ARTIFACTS_DOC,
            },
        ],
        "inline_policies": {"InlineA": encode(INLINE_DOC)},
    }


@pytest.fixture
def sts(snapshot):
    return SnapshotStsClient(snapshot)


@pytest.fixture
def iam(snapshot):
    return SnapshotIamClient(snapshot)


@pytest.fixture
def empty_iam():
    """A role with nothing attached."""
    return SnapshotIamClient({"caller_arn": CALLER_ARN})


@pytest.fixture
def write_snapshot(tmp_path):
    """Write a snapshot dict to a temp file and return its path as a string."""
    def _write(data):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def encode_doc():
    return encode


@pytest.fixture
def demo_snapshot_path():
    return str(DEMO_SNAPSHOT)
