"""Module/tool registry with enable flags and permission tags.

A ModuleRegistry is an explicit object owned by whoever builds the client
and passed by reference to its consumers. Nothing here is global, so tests
can build independent registries.

A tool is only effectively enabled when its owning module is enabled too.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from ..errors import ConfigError, JsonDict


class ToolConfig(BaseModel):
    """Descriptor for one tool exposed by a module."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(min_length=1)
    description: str = ""
    module: str = Field(min_length=1)
    enabled: bool = True
    permissions: frozenset[str] = frozenset()

    @field_validator("permissions", mode="before")
    @classmethod
    def _to_frozenset(cls, v: Iterable[str]) -> frozenset[str]:
        return v if isinstance(v, frozenset) else frozenset(v)

    @field_serializer("permissions")
    def _sorted_permissions(self, v: frozenset[str]) -> list[str]:
        return sorted(v)


class ModuleConfig(BaseModel):
    """Descriptor for a module: a named group of related tools."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(min_length=1)
    description: str = ""
    enabled: bool = True
    tools: list[ToolConfig] = Field(default_factory=list)

    def tool(self, name: str) -> ToolConfig | None:
        return next((t for t in self.tools if t.name == name), None)


class ModuleRegistry:
    """Mutable registry of modules keyed by name, in registration order.

    Example:
        >>> registry = default_registry()
        >>> registry.set_module_enabled("wiki-docs", False)
        True
        >>> registry.is_tool_enabled("wiki-docs", "wiki_pages")
        False
    """

    __slots__ = ("_modules",)

    def __init__(self, modules: Iterable[ModuleConfig] = ()) -> None:
        self._modules: dict[str, ModuleConfig] = {}
        for module in modules:
            self.register(module)

    def register(self, module: ModuleConfig) -> None:
        """Add or replace a module."""
        self._modules[module.name] = module

    def get(self, name: str) -> ModuleConfig | None:
        return self._modules.get(name)

    def all(self) -> list[ModuleConfig]:
        return list(self._modules.values())

    def enabled(self) -> list[ModuleConfig]:
        return [m for m in self._modules.values() if m.enabled]

    def names(self) -> list[str]:
        return list(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __iter__(self) -> Iterator[ModuleConfig]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    # ─────────────────────────────────────────────────────────────────
    # Enablement
    # ─────────────────────────────────────────────────────────────────

    def set_module_enabled(self, name: str, enabled: bool) -> bool:
        """Toggle a module. Returns False if the module is unknown."""
        if (module := self._modules.get(name)) is None:
            return False
        module.enabled = enabled
        return True

    def set_tool_enabled(self, module_name: str, tool_name: str, enabled: bool) -> bool:
        """Toggle a tool. Returns False if the module or tool is unknown."""
        module = self._modules.get(module_name)
        tool = module.tool(tool_name) if module else None
        if tool is None:
            return False
        tool.enabled = enabled
        return True

    def is_tool_enabled(self, module_name: str, tool_name: str) -> bool:
        module = self._modules.get(module_name)
        if module is None or not module.enabled:
            return False
        tool = module.tool(tool_name)
        return tool is not None and tool.enabled

    def tool_permissions(self, module_name: str, tool_name: str) -> frozenset[str]:
        module = self._modules.get(module_name)
        tool = module.tool(tool_name) if module else None
        return tool.permissions if tool else frozenset()

    # ─────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────

    def status(self) -> list[JsonDict]:
        """Serializable snapshot of every module and its tools."""
        return [m.model_dump(mode="json") for m in self._modules.values()]

    def export_json(self) -> str:
        return orjson.dumps({"modules": self.status()}, option=orjson.OPT_INDENT_2).decode()

    def import_json(self, data: str | bytes) -> None:
        """Replace all modules with those in ``data`` (as produced by export_json).

        Raises:
            ConfigError: if ``data`` is not valid JSON or does not describe modules
        """
        try:
            raw = orjson.loads(data)
            modules = [ModuleConfig.model_validate(m) for m in raw["modules"]]
        except (orjson.JSONDecodeError, ValidationError, KeyError, TypeError) as e:
            raise ConfigError(f"Invalid module registry data: {e}") from e
        self._modules = {m.name: m for m in modules}


# ═══════════════════════════════════════════════════════════════════════════════
# Stock modules
# ═══════════════════════════════════════════════════════════════════════════════

# (module, description, ((tool, description, permissions), ...))
_DEFAULT_MODULES: tuple[tuple[str, str, tuple[tuple[str, str, tuple[str, ...]], ...]], ...] = (
    ("cd-devops", "Continuous deployment", (
        ("cd_host_server_groups", "Host server groups", ("cd:host:read", "cd:host:write")),
        ("cd_cloud_accounts", "Cloud accounts", ("cd:cloud:read", "cd:cloud:write")),
        ("cd_pipelines", "Deployment pipelines", ("cd:pipeline:read", "cd:pipeline:write")),
        ("cd_applications", "Application deployment", ("cd:app:read", "cd:app:write")),
        ("cd_tasks", "Deployment tasks", ("cd:task:read", "cd:task:write")),
    )),
    ("git-management", "Git repository management", (
        ("git_repositories", "Repositories", ("git:repo:read", "git:repo:write")),
        ("git_commits", "Commits", ("git:commit:read", "git:commit:write")),
        ("git_branches", "Branches", ("git:branch:read", "git:branch:write")),
        ("git_files", "Files", ("git:file:read", "git:file:write")),
        ("git_tags", "Tags", ("git:tag:read", "git:tag:write")),
    )),
    ("issue-management", "Issue tracking", (
        ("issues", "Issues", ("issue:read", "issue:write")),
        ("issue_comments", "Issue comments", ("issue:comment:read", "issue:comment:write")),
        ("issue_modules", "Issue modules", ("issue:module:read", "issue:module:write")),
        ("issue_filters", "Issue filters", ("issue:filter:read",)),
    )),
    ("ci-build", "Continuous integration builds", (
        ("ci_jobs", "Build jobs", ("ci:job:read", "ci:job:write")),
        ("ci_builds", "Build records", ("ci:build:read", "ci:build:write")),
        ("ci_logs", "Build logs", ("ci:log:read",)),
    )),
    ("artifact-registry", "Artifact repositories", (
        ("artifact_repositories", "Artifact repositories", ("artifact:repo:read", "artifact:repo:write")),
        ("artifact_packages", "Artifact packages", ("artifact:package:read", "artifact:package:write")),
        ("artifact_versions", "Artifact versions", ("artifact:version:read", "artifact:version:write")),
    )),
    ("wiki-docs", "Wiki documents", (
        ("wiki_pages", "Wiki pages", ("wiki:read", "wiki:write")),
    )),
    ("user-team", "Users, teams and projects", (
        ("users", "Users", ("user:read", "user:write")),
        ("teams", "Teams", ("team:read", "team:write")),
        ("projects", "Projects", ("project:read", "project:write")),
    )),
    ("service-hooks", "Service hooks", (
        ("service_hooks", "Service hooks", ("hook:read", "hook:write")),
    )),
    ("merge-requests", "Merge requests", (
        ("merge_requests", "Merge requests", ("mr:read", "mr:write")),
    )),
    ("monitoring-stats", "Health and metrics", (
        ("health_check", "Health check", ("monitor:read",)),
        ("metrics", "Metrics", ("monitor:read",)),
    )),
)


def default_registry() -> ModuleRegistry:
    """Build a fresh registry holding the stock modules, all enabled."""
    return ModuleRegistry(
        ModuleConfig(
            name=name,
            description=description,
            tools=[
                ToolConfig(name=tool, description=tool_desc, module=name, permissions=perms)
                for tool, tool_desc, perms in tools
            ],
        )
        for name, description, tools in _DEFAULT_MODULES
    )
