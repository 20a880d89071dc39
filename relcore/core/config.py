"""Typed configuration loading and access.

relcore reads ``release.toml`` from the project root. Every section is
optional; a project with only a ``pyproject.toml`` works with the defaults.

    [[version.files]]
    path = "pyproject.toml"
    markers = ["pyproject"]

    [[version.files]]
    path = "src/pkg/_version.py"
    patterns = [
        { regex = '(?P<prefix>VERSION = ")(?P<version>[0-9.]+)(?P<suffix>")', strategy = "prefix_suffix" },
    ]

    [headers]
    directories = ["src"]
    extensions = [".py"]
    exclude = ["__pycache__"]

    [git]
    remote = "origin"
    commit_message = "Release version {version}"

    [build]
    command = ["python", "-m", "build"]
    artifacts = "dist/*"

    [runtime]
    min_python = "3.12"

The registry is validated while loading, so a release never starts with a
rule that cannot rewrite its file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relcore.version.registry import (
    DEFAULT_REGISTRY,
    FileVersionRule,
    MarkerShape,
    PatternRule,
    RewriteStrategy,
    VersionRegistry,
    validate_registry,
)

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_list, get_str, get_str_list, get_table

__all__ = [
    "BuildConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "GitConfig",
    "HeaderScanConfig",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "release.toml"

DEFAULT_COMMIT_MESSAGE = "Release version {version}"
DEFAULT_TAG_MESSAGE = "Version {version}"
DEFAULT_BUILD_COMMAND = ("python", "-m", "build")
DEFAULT_ARTIFACTS = "dist/*"
DEFAULT_BUILD_TIMEOUT_SECONDS = 30 * 60
DEFAULT_MIN_PYTHON = (3, 12)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class HeaderScanConfig:
    """Directories scanned for ad hoc ``@version`` header tags."""

    directories: tuple[str, ...] = ("src",)
    extensions: tuple[str, ...] = (".py",)
    exclude: tuple[str, ...] = ("__pycache__", "build", "dist", "node_modules", ".venv")
    files: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GitConfig:
    remote: str = "origin"
    # None means "whatever branch is checked out when pushing".
    branch: str | None = None
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    tag_message: str = DEFAULT_TAG_MESSAGE

    def format_commit_message(self, version: str) -> str:
        return self.commit_message.replace("{version}", version)

    def format_tag_message(self, version: str) -> str:
        return self.tag_message.replace("{version}", version)


@dataclass(frozen=True, slots=True)
class BuildConfig:
    command: tuple[str, ...] = DEFAULT_BUILD_COMMAND
    artifacts: str = DEFAULT_ARTIFACTS
    timeout: int = DEFAULT_BUILD_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Main configuration container."""

    registry: VersionRegistry = DEFAULT_REGISTRY
    headers: HeaderScanConfig = field(default_factory=HeaderScanConfig)
    git: GitConfig = field(default_factory=GitConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    min_python: tuple[int, int] = DEFAULT_MIN_PYTHON


def _parse_rules(entry: StrDict, *, path: str) -> Result[tuple[PatternRule, ...], str]:
    rules: list[PatternRule] = []

    markers = get_str_list(entry, "markers")
    if markers is None and "markers" in entry:
        return Err(f"{path}: 'markers' must be a list of names")
    for name in markers or ():
        try:
            shape = MarkerShape(name)
        except ValueError:
            known = ", ".join(m.value for m in MarkerShape)
            return Err(f"{path}: unknown marker '{name}' (known: {known})")
        rules.append(PatternRule.for_marker(shape))

    for raw in get_list(entry, "patterns") or []:
        item = as_str_dict(raw)
        if item is None:
            return Err(f"{path}: each pattern must be a table")
        regex = item.get("regex")
        if not isinstance(regex, str) or not regex:
            return Err(f"{path}: pattern is missing 'regex'")
        strategy_name = get_str(item, "strategy") or RewriteStrategy.PREFIX_SUFFIX.value
        try:
            strategy = RewriteStrategy(strategy_name)
        except ValueError:
            return Err(f"{path}: unknown strategy '{strategy_name}'")
        rules.append(PatternRule(regex=regex, strategy=strategy))

    return Ok(tuple(rules))


def _parse_registry(data: Mapping[str, object]) -> Result[VersionRegistry, str]:
    version: StrDict = get_table(data, "version") or {}
    files = get_list(version, "files")
    if files is None:
        return Ok(DEFAULT_REGISTRY)

    entries: list[FileVersionRule] = []
    for raw in files:
        entry = as_str_dict(raw)
        if entry is None:
            return Err("[[version.files]] entries must be tables")
        path = get_str(entry, "path")
        if path is None:
            return Err("[[version.files]] entry is missing 'path'")
        rules = _parse_rules(entry, path=path)
        if isinstance(rules, Err):
            return rules
        entries.append(FileVersionRule(path=path, patterns=rules.value))

    registry = tuple(entries)
    valid = validate_registry(registry)
    if isinstance(valid, Err):
        where = f"{valid.error.path}: " if valid.error.path else ""
        return Err(f"{where}{valid.error.message}")
    return Ok(registry)


def _parse_min_python(value: str | None) -> tuple[int, int] | None:
    if value is None:
        return DEFAULT_MIN_PYTHON
    parts = value.split(".")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return None
    return (int(parts[0]), int(parts[1]))


def config_from_dict(data: Mapping[str, object]) -> Result[ReleaseConfig, str]:
    """Build a ReleaseConfig from parsed TOML."""
    registry = _parse_registry(data)
    if isinstance(registry, Err):
        return registry

    headers: StrDict = get_table(data, "headers") or {}
    git: StrDict = get_table(data, "git") or {}
    build: StrDict = get_table(data, "build") or {}
    runtime: StrDict = get_table(data, "runtime") or {}

    defaults = HeaderScanConfig()
    header_cfg = HeaderScanConfig(
        directories=get_str_list(headers, "directories") or defaults.directories,
        extensions=get_str_list(headers, "extensions") or defaults.extensions,
        exclude=get_str_list(headers, "exclude") or defaults.exclude,
        files=get_str_list(headers, "files") or defaults.files,
    )

    git_cfg = GitConfig(
        remote=get_str(git, "remote") or "origin",
        branch=get_str(git, "branch"),
        commit_message=get_str(git, "commit_message") or DEFAULT_COMMIT_MESSAGE,
        tag_message=get_str(git, "tag_message") or DEFAULT_TAG_MESSAGE,
    )

    command = get_str_list(build, "command")
    if "command" in build and not command:
        return Err("[build] command must be a non-empty list of strings")
    timeout = get_int(build, "timeout")
    if timeout is not None and timeout <= 0:
        return Err("[build] timeout must be a positive number of seconds")
    build_cfg = BuildConfig(
        command=command or DEFAULT_BUILD_COMMAND,
        artifacts=get_str(build, "artifacts") or DEFAULT_ARTIFACTS,
        timeout=timeout or DEFAULT_BUILD_TIMEOUT_SECONDS,
    )

    min_python = _parse_min_python(get_str(runtime, "min_python"))
    if min_python is None:
        return Err("[runtime] min_python must look like '3.12'")

    return Ok(
        ReleaseConfig(
            registry=registry.value,
            headers=header_cfg,
            git=git_cfg,
            build=build_cfg,
            min_python=min_python,
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and validate ``release.toml``.

    Args:
        path: Path to the config file

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    config = config_from_dict(result.value)
    if isinstance(config, Err):
        return Err(ConfigError(f"Invalid config: {config.error}", path=path))
    return Ok(config.value)


def load_config_or_default(root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load ``<root>/release.toml``, or the defaults when it does not exist.

    A present but broken file is still an error.
    """
    path = root / CONFIG_FILENAME
    if not path.exists():
        return Ok(ReleaseConfig())
    return load_config(path)
