"""Configuration models for the reference documentation build.

ProjectConfig

`name` (`str | None`)
: Root project name. Used for the default PDF filename and the `${name}`
  template variable. Defaults to the project directory name.

`version` (`str`)
: Project version substituted for `${version}` in the entry-point file.

`build_dir` (`Path`)
: Build directory, relative to the project directory unless absolute.

ReferenceSettings

`source_dir` (`Path | None`)
: DocBook source tree inherited by every format task that does not set one.

`output_dir` (`Path | None`)
: Output root inherited by the format tasks. Work files land in
  `reference-work`, unpacked resources in `docbook-resources`, and artifacts in
  `reference/<format>`.

`pdf_filename` (`str | None`)
: File name of the rendered PDF. Defaults to `<name>-reference.pdf`.

`syntax_highlighting` (`bool`)
: Pass the `highlight.*` parameters to the stylesheets.

`variables` (`dict[str, str]`)
: Extra `${...}` variables expanded in the entry-point file.

TaskOverrides

`source_dir`, `output_dir` (`Path | None`)
: Explicit directories for a single format task. Explicit values win over the
  inherited ones.

`stylesheet` (`str | None`)
: Stylesheet file name looked up in `xsl/` of the sources, then of the bundled
  resources.

`source_file_name` (`str | None`)
: Entry-point file name (default `index.xml`).

FopConfig

`command` (`str | None`)
: Apache FOP executable. Falls back to `$DOCBOOK_FOP`, then `fop` on `PATH`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import yaml

from .exceptions import ConfigurationError


DEFAULT_CONFIG_NAME = "docbook-reference.yml"


class ProjectConfig(BaseModel):
    """Identity and layout of the documented project."""

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    name: str | None = None
    version: str = "unspecified"
    build_dir: Path = Path("build")


class ReferenceSettings(BaseModel):
    """Settings of the aggregate task, inherited by unset format tasks."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, coerce_numbers_to_str=True)

    source_dir: Path | None = None
    output_dir: Path | None = None
    pdf_filename: str | None = None
    syntax_highlighting: bool = True
    variables: dict[str, str] = Field(default_factory=dict)


class TaskOverrides(BaseModel):
    """Explicit settings for a single format task."""

    model_config = ConfigDict(extra="forbid")

    source_dir: Path | None = None
    output_dir: Path | None = None
    stylesheet: str | None = None
    source_file_name: str | None = None


class FopConfig(BaseModel):
    """Formatting-object renderer settings."""

    model_config = ConfigDict(extra="forbid")

    command: str | None = None


class ReferenceConfig(BaseModel):
    """Configuration taken from ``docbook-reference.yml``."""

    model_config = ConfigDict(extra="forbid")

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    reference: ReferenceSettings = Field(default_factory=ReferenceSettings)
    tasks: dict[str, TaskOverrides] = Field(default_factory=dict)
    fop: FopConfig = Field(default_factory=FopConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ReferenceConfig:
        """Load a configuration file, returning defaults when it does not exist."""
        config_path = Path(path)
        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level.")

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc


def load_config(project_dir: Path, config_file: Path | None = None) -> ReferenceConfig:
    """Load ``config_file`` or the default configuration file of ``project_dir``."""
    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_file}")
        return ReferenceConfig.from_yaml(config_file)
    return ReferenceConfig.from_yaml(project_dir / DEFAULT_CONFIG_NAME)


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "FopConfig",
    "ProjectConfig",
    "ReferenceConfig",
    "ReferenceSettings",
    "TaskOverrides",
    "load_config",
]
