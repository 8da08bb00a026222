"""Tests for action-to-module routing and read-only detection."""

from __future__ import annotations

import pytest

from codingops.client import UNKNOWN_MODULE, is_read_only_action, module_for_action


@pytest.mark.parametrize(("action", "module"), [
    ("DescribeCdDeployBranch", "cd-devops"),
    ("CreateCdPipeline", "cd-devops"),
    ("DescribeDeployTasks", "cd-devops"),
    ("DescribeGitDepots", "git-management"),
    ("CreateBranch", "git-management"),
    ("DescribeIssueList", "issue-management"),
    ("TriggerCodingCIBuild", "ci-build"),
    ("DescribeBuildLog", "ci-build"),
    ("DescribeArtifactRepositoryList", "artifact-registry"),
    ("CreateWiki", "wiki-docs"),
    ("DescribeCodingCurrentUser", "user-team"),
    ("DescribeTeamMembers", "user-team"),
    ("DescribeProjects", "user-team"),
    ("CreateServiceHook", "service-hooks"),
    ("DescribeMergeRequest", "merge-requests"),
    ("ModifyMRReviewers", "merge-requests"),
    ("FooBar", UNKNOWN_MODULE),
    ("", UNKNOWN_MODULE),
])
def test_module_for_action(action: str, module: str) -> None:
    assert module_for_action(action) == module


def test_first_matching_rule_wins() -> None:
    # Contains both "Issue" and "Project"; the issue rule is listed first
    assert module_for_action("DescribeProjectIssues") == "issue-management"
    # "Depot" precedes "Project" too
    assert module_for_action("DescribeProjectDepotInfoList") == "git-management"


def test_matching_is_case_sensitive() -> None:
    assert module_for_action("describegitdepots") == UNKNOWN_MODULE


@pytest.mark.parametrize(("action", "read_only"), [
    ("DescribeIssue", True),
    ("GetSomething", True),
    ("ListThings", True),
    ("CheckPermission", True),
    ("CreateIssue", False),
    ("ModifyIssue", False),
    ("DeleteGitBranch", False),
    ("describeIssue", False),
])
def test_is_read_only_action(action: str, read_only: bool) -> None:
    assert is_read_only_action(action) is read_only
