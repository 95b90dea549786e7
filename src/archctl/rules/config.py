from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CONFIG_FILENAME = "archctl.toml"

RuleSeverity = Literal["error", "warning", "info"]


class _ConfigModel(BaseModel):
    """Strict config model accepting snake_case or camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class LayerConfig(_ConfigModel):
    """Conceptual layer definition (no file paths)."""

    name: str = Field(description="Layer name (e.g., 'domain', 'infrastructure')")
    description: str = Field(default="", description="Human description")


class LayerMapping(_ConfigModel):
    """Mapping from file paths to a layer using glob patterns."""

    layer: str = Field(description="Name of a declared layer")
    include: list[str] = Field(description="Glob patterns that map to this layer")
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns that veto an otherwise matching include",
    )
    priority: int = Field(
        default=0,
        description="Higher values win when multiple mappings match",
    )


class ContextMapping(_ConfigModel):
    """Mapping from file paths to a bounded context."""

    context: str = Field(description="Context name")
    include: list[str] = Field(description="Glob patterns owned by this context")
    exclude: list[str] = Field(default_factory=list)
    priority: int = Field(default=0)
    public: list[str] = Field(
        default_factory=list,
        description="Glob patterns forming this context's public API",
    )


class CapabilityPattern(_ConfigModel):
    """Imports and calls that indicate a capability."""

    type: str = Field(description="Capability type (user-defined, e.g. 'network')")
    imports: list[str] = Field(default_factory=list)
    calls: list[str] = Field(default_factory=list)
    description: str = Field(default="")


class _RuleBase(_ConfigModel):
    id: str
    title: str = ""
    description: str = ""


class ForbiddenLayerImportRuleConfig(_RuleBase):
    kind: Literal["forbidden-layer-import"]
    from_layer: str
    to_layer: str


class AllowedLayerImportRuleConfig(_RuleBase):
    kind: Literal["allowed-layer-import"]
    from_layer: str
    allowed_layers: list[str] = Field(default_factory=list)


class FilePatternLayerRuleConfig(_RuleBase):
    kind: Literal["file-pattern-layer"]
    pattern: str
    required_layer: str


class MaxDependenciesRuleConfig(_RuleBase):
    kind: Literal["max-dependencies"]
    max_dependencies: int = Field(ge=0)
    layer: str | None = None


class CyclicDependencyRuleConfig(_RuleBase):
    kind: Literal["cyclic-dependency"]


class ExternalDependencyRuleConfig(_RuleBase):
    kind: Literal["external-dependency"]
    allowed_packages: list[str] = Field(default_factory=list)
    layer: str | None = None


class AllowedCapabilityRuleConfig(_RuleBase):
    kind: Literal["allowed-capability"]
    allowed_capabilities: list[str] = Field(default_factory=list)
    layer: str | None = None


class ForbiddenCapabilityRuleConfig(_RuleBase):
    kind: Literal["forbidden-capability"]
    forbidden_capabilities: list[str] = Field(default_factory=list)
    layer: str | None = None


class ContextVisibilityEntry(_ConfigModel):
    """Declared dependencies of one context; ``None`` means unrestricted."""

    context: str
    can_depend_on: list[str] | None = None


class ContextVisibilityRuleConfig(_RuleBase):
    kind: Literal["context-visibility"]
    contexts: list[ContextVisibilityEntry] = Field(default_factory=list)


class NaturalLanguageRuleConfig(_RuleBase):
    kind: Literal["natural-language"]
    prompt: str = ""
    severity: RuleSeverity = "warning"


RuleConfig = Annotated[
    ForbiddenLayerImportRuleConfig
    | AllowedLayerImportRuleConfig
    | FilePatternLayerRuleConfig
    | MaxDependenciesRuleConfig
    | CyclicDependencyRuleConfig
    | ExternalDependencyRuleConfig
    | AllowedCapabilityRuleConfig
    | ForbiddenCapabilityRuleConfig
    | ContextVisibilityRuleConfig
    | NaturalLanguageRuleConfig,
    Field(discriminator="kind"),
]


class ArchctlConfig(_ConfigModel):
    """Configuration for an archctl project."""

    name: str = Field(default="", description="Project name")
    output_dir: str = Field(
        default=".archctl",
        description="Directory for the baseline and scan cache",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all sources)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    nested_gitignore: bool = Field(
        default=False,
        description="Enable nested .gitignore composition (default: root-only)",
    )
    layers: list[LayerConfig] = Field(default_factory=list)
    layer_mappings: list[LayerMapping] = Field(default_factory=list)
    contexts: list[str] | None = Field(
        default=None,
        description="Declared context names; None accepts any mapped context",
    )
    context_mappings: list[ContextMapping] = Field(default_factory=list)
    capabilities: list[CapabilityPattern] = Field(default_factory=list)
    rules: list[RuleConfig] = Field(default_factory=list)
    cache: bool = Field(default=True, description="Reuse cached extraction results")
    max_workers: int = Field(default=1, ge=1, description="Extraction worker threads")
    max_history_size: int = Field(default=50, ge=1)

    @property
    def layer_names(self) -> list[str]:
        return [layer.name for layer in self.layers]


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the repo root.

    The config output_dir must be a non-empty relative path that remains
    within the repository root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if output_dir.startswith("~"):
        msg = "output_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_path.is_absolute():
        msg = "output_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"output_dir '{output_dir}' escapes the repository root"
        raise ConfigError(msg) from exc

    return resolved_output


def load_config(root: Path) -> ArchctlConfig:
    """Load configuration from archctl.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return ArchctlConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return ArchctlConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e


__all__ = [
    "CONFIG_FILENAME",
    "AllowedCapabilityRuleConfig",
    "AllowedLayerImportRuleConfig",
    "ArchctlConfig",
    "CapabilityPattern",
    "ConfigError",
    "ContextMapping",
    "ContextVisibilityEntry",
    "ContextVisibilityRuleConfig",
    "CyclicDependencyRuleConfig",
    "ExternalDependencyRuleConfig",
    "FilePatternLayerRuleConfig",
    "ForbiddenCapabilityRuleConfig",
    "ForbiddenLayerImportRuleConfig",
    "LayerConfig",
    "LayerMapping",
    "MaxDependenciesRuleConfig",
    "NaturalLanguageRuleConfig",
    "RuleConfig",
    "RuleSeverity",
    "load_config",
    "resolve_output_dir",
]
