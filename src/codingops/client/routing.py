"""Action classification: owning module and read-only detection.

Module resolution is an ordered rule table evaluated top to bottom with a
case-sensitive substring test against the action name; the first matching
rule wins and unmatched actions fall through to ``unknown``. The order is
significant: ``DescribeCdDeployBranch`` belongs to cd-devops, not
git-management, because the Cd/Deploy rule comes first.
"""

from __future__ import annotations

UNKNOWN_MODULE = "unknown"

READ_ONLY_PREFIXES: tuple[str, ...] = ("Describe", "Get", "List", "Check")

MODULE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("Cd", "Deploy"), "cd-devops"),
    (("Git", "Depot", "Branch"), "git-management"),
    (("Issue",), "issue-management"),
    (("CodingCI", "Build"), "ci-build"),
    (("Artifact",), "artifact-registry"),
    (("Wiki",), "wiki-docs"),
    (("User", "Team", "Project"), "user-team"),
    (("ServiceHook", "Hook"), "service-hooks"),
    (("MergeRequest", "MR"), "merge-requests"),
)


def module_for_action(action: str) -> str:
    """Owning module for an action name. Total: never raises, falls back to ``unknown``."""
    for keywords, module in MODULE_RULES:
        if any(k in action for k in keywords):
            return module
    return UNKNOWN_MODULE


def is_read_only_action(action: str) -> bool:
    """Whether the action only retrieves data and is safe to cache."""
    return action.startswith(READ_ONLY_PREFIXES)
