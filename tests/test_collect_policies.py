from unittest.mock import MagicMock

import pytest
from botocore.exceptions import EndpointConnectionError, OperationNotPageableError

from collect_policies import (
    DocumentUnavailable,
    ManagedDocumentLookup,
    ManagedPolicyRef,
    PolicyListFailure,
    fetch_inline_document,
    fetch_managed_document,
    list_inline,
    list_managed,
    list_managed_names,
)
from policy_document import DocumentError
from snapshot_clients import client_error


def paged_iam(op_pages):
    """MagicMock IAM client whose paginators return canned pages per operation."""
    iam = MagicMock()

    def get_paginator(op_name):
        paginator = MagicMock()
        paginator.paginate.return_value = iter(op_pages.get(op_name, []))
        return paginator

    iam.get_paginator.side_effect = get_paginator
    return iam


class TestListManaged:
    """Tests for list_managed."""

    def test_drains_all_pages_in_order(self, iam):
        refs = list_managed(iam, "DeployRole")
        assert [r.name for r in refs] == ["ReadOnlyAccess", "retired-policy", "deploy-artifacts"]
        assert refs[0] == ManagedPolicyRef(arn="arn:aws:iam::aws:policy/ReadOnlyAccess", name="ReadOnlyAccess")

    def test_empty(self, empty_iam):
        assert list_managed(empty_iam, "DeployRole") == []

    def test_items_without_arn_skipped(self):
        iam = paged_iam({"list_attached_role_policies": [
            {"AttachedPolicies": [{"PolicyName": "NoArn"}, {"PolicyArn": "arn:aws:iam::aws:policy/A",
                                                            "PolicyName": "A"}]},
            {"AttachedPolicies": [{"PolicyArn": "arn:aws:iam::aws:policy/B"}]},
        ]})
        refs = list_managed(iam, "DeployRole")
        assert [r.arn for r in refs] == ["arn:aws:iam::aws:policy/A", "arn:aws:iam::aws:policy/B"]
        # name falls back to the ARN
        assert refs[1].name == "arn:aws:iam::aws:policy/B"

    def test_list_failure_is_fatal(self):
        iam = MagicMock()
        iam.get_paginator.return_value.paginate.side_effect = client_error(
            "AccessDenied", "not authorized", "ListAttachedRolePolicies")
        with pytest.raises(PolicyListFailure) as exc:
            list_managed(iam, "DeployRole")
        assert exc.value.role_name == "DeployRole"
        assert exc.value.kind == "managed"
        assert "AccessDenied" in str(exc.value)


class TestListManagedNames:
    """Tests for list_managed_names (short mode)."""

    def test_names_from_listing(self):
        iam = paged_iam({"list_attached_role_policies": [
            {"AttachedPolicies": [{"PolicyName": "NoArn"}, {"PolicyArn": "arn:aws:iam::aws:policy/B"}]},
            {"AttachedPolicies": [{"PolicyArn": "arn:aws:iam::aws:policy/A", "PolicyName": "A"}]},
        ]})
        assert list_managed_names(iam, "DeployRole") == ["NoArn", "A"]

    def test_list_failure_is_fatal(self):
        iam = MagicMock()
        iam.get_paginator.return_value.paginate.side_effect = client_error(
            "AccessDenied", "not authorized", "ListAttachedRolePolicies")
        with pytest.raises(PolicyListFailure) as exc:
            list_managed_names(iam, "DeployRole")
        assert exc.value.kind == "managed"


class TestListInline:
    """Tests for list_inline."""

    def test_drains_pages(self):
        iam = paged_iam({"list_role_policies": [{"PolicyNames": ["A", "B"]}, {"PolicyNames": ["C"]}]})
        assert list_inline(iam, "DeployRole") == ["A", "B", "C"]
        iam.get_paginator.assert_called_with("list_role_policies")

    def test_empty(self, empty_iam):
        assert list_inline(empty_iam, "DeployRole") == []

    def test_falls_back_to_single_call(self):
        iam = MagicMock()
        iam.get_paginator.side_effect = OperationNotPageableError(operation_name="list_role_policies")
        iam.list_role_policies.return_value = {"PolicyNames": ["OnlyOne"]}
        assert list_inline(iam, "DeployRole") == ["OnlyOne"]
        iam.list_role_policies.assert_called_once_with(RoleName="DeployRole")

    def test_network_failure_is_fatal(self):
        iam = MagicMock()
        iam.get_paginator.return_value.paginate.side_effect = EndpointConnectionError(
            endpoint_url="https://iam.amazonaws.com")
        with pytest.raises(PolicyListFailure) as exc:
            list_inline(iam, "DeployRole")
        assert exc.value.kind == "inline"


class TestManagedDocumentLookup:
    """Tests for the get_policy -> get_policy_version lookup."""

    def test_fetch(self, iam):
        lookup = ManagedDocumentLookup(iam, "arn:aws:iam::123456789012:policy/deploy-artifacts")
        document = lookup.fetch()
        assert lookup.version_id == "v1"
        assert document["Statement"][0]["Action"] == "s3:PutObject"

    def test_version_lookup_failure_skips_document_call(self):
        iam = MagicMock()
        iam.get_policy.side_effect = client_error("NoSuchEntity", "gone", "GetPolicy")
        with pytest.raises(DocumentUnavailable) as exc:
            fetch_managed_document(iam, "arn:aws:iam::aws:policy/Gone")
        assert exc.value.step == "get policy"
        assert exc.value.ref == "arn:aws:iam::aws:policy/Gone"
        iam.get_policy_version.assert_not_called()

    def test_missing_default_version(self):
        iam = MagicMock()
        iam.get_policy.return_value = {"Policy": {}}
        with pytest.raises(DocumentUnavailable, match="default version ID"):
            ManagedDocumentLookup(iam, "arn:aws:iam::aws:policy/X").fetch()
        iam.get_policy_version.assert_not_called()

    def test_document_call_uses_default_version(self):
        iam = MagicMock()
        iam.get_policy.return_value = {"Policy": {"DefaultVersionId": "v7"}}
        iam.get_policy_version.return_value = {"PolicyVersion": {"Document": "%7B%7D"}}
        assert fetch_managed_document(iam, "arn:aws:iam::aws:policy/X") == "%7B%7D"
        iam.get_policy_version.assert_called_once_with(PolicyArn="arn:aws:iam::aws:policy/X", VersionId="v7")

    def test_document_call_failure(self):
        iam = MagicMock()
        iam.get_policy.return_value = {"Policy": {"DefaultVersionId": "v2"}}
        iam.get_policy_version.side_effect = client_error("Throttling", "slow down", "GetPolicyVersion")
        with pytest.raises(DocumentUnavailable) as exc:
            fetch_managed_document(iam, "arn:aws:iam::aws:policy/X")
        assert exc.value.step == "get policy version v2"
        assert isinstance(exc.value, DocumentError)


class TestFetchInlineDocument:
    """Tests for fetch_inline_document."""

    def test_fetch(self, iam):
        raw = fetch_inline_document(iam, "DeployRole", "InlineA")
        assert raw.startswith("%7B")

    def test_missing_policy(self, iam):
        with pytest.raises(DocumentUnavailable) as exc:
            fetch_inline_document(iam, "DeployRole", "Nope")
        assert exc.value.ref == "Nope"
        assert "NoSuchEntity" in str(exc.value)
