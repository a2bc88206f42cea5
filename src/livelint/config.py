# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Linter settings and the layered loader that resolves them."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import Any, Final, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigError
from .logging import LogLevel
from .process import Invocation

PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "livelint"
CONFIG_FILE_NAME: Final[str] = ".livelint.toml"
_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class RunTrigger(str, Enum):
    """When linting re-runs for a document."""

    ON_TYPE = "onType"
    ON_SAVE = "onSave"
    NEVER = "never"

    @classmethod
    def parse(cls, value: object) -> RunTrigger:
        """Return the trigger named by ``value``; unknown values disable linting."""

        if isinstance(value, RunTrigger):
            return value
        for member in cls:
            if value == member.value or value == member.name:
                return member
        return cls.NEVER


class ProcessMode(str, Enum):
    """How the tool's stdout is turned into findings."""

    LINE = "line"
    ALL = "all"

    @classmethod
    def parse(cls, value: object) -> ProcessMode:
        """Return the mode named by ``value``; unknown values process the whole output."""

        if isinstance(value, ProcessMode):
            return value
        return cls.LINE if value == cls.LINE.value else cls.ALL


class LinterSettings(BaseModel):
    """Run configuration for the linting provider.

    Field names accept both ``snake_case`` and the editor-style ``camelCase``
    spelling (``executablePath``, ``ignoreSeverity`` ...).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    executable_path: str = "hlint"
    run: RunTrigger = RunTrigger.ON_TYPE
    process: ProcessMode = ProcessMode.ALL
    file_args: tuple[str, ...] = ("--json",)
    buffer_args: tuple[str, ...] = ("-", "--json")
    args: tuple[str, ...] = Field(default_factory=tuple)
    hints: tuple[str, ...] = Field(default_factory=tuple)
    ignore: tuple[str, ...] = Field(default_factory=tuple)
    ignore_severity: bool = False
    log_level: LogLevel = LogLevel.ERROR
    language_id: str = "haskell"
    debounce_ms: int = Field(default=250, ge=0)

    @field_validator("run", mode="before")
    @classmethod
    def _parse_run(cls, value: object) -> RunTrigger:
        return RunTrigger.parse(value)

    @field_validator("process", mode="before")
    @classmethod
    def _parse_process(cls, value: object) -> ProcessMode:
        return ProcessMode.parse(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> LogLevel:
        return LogLevel.parse(value)

    @field_validator("file_args", "buffer_args", "args", "hints", "ignore", mode="before")
    @classmethod
    def _coerce_string_list(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        return value

    @field_serializer("log_level")
    def _serialise_log_level(self, value: LogLevel) -> str:
        return value.name.lower()

    @property
    def delay_seconds(self) -> float:
        """Return the debounce interval: the configured value on type, none on save."""

        return self.debounce_ms / 1000 if self.run is RunTrigger.ON_TYPE else 0.0

    @property
    def hint_args(self) -> list[str]:
        """Return ``--hint=`` arguments for the configured hint files."""

        return [f"--hint={hint}" for hint in self.hints]

    @property
    def ignore_args(self) -> list[str]:
        """Return ``--ignore=`` arguments for the configured ignore rules."""

        return [f"--ignore={rule}" for rule in self.ignore]

    def command_args(self, file_path: str | None = None) -> list[str]:
        """Return the tool arguments for one invocation.

        Args:
            file_path: Saved file to lint (file mode); ``None`` selects buffer mode,
                where the live text is written to stdin.

        Returns:
            list[str]: ``[baseArgs...] [hints...] [ignores...] [extra...] [filePath?]``.
        """

        base = self.file_args if file_path is not None else self.buffer_args
        command = [*base, *self.hint_args, *self.ignore_args, *self.args]
        if file_path is not None:
            command.append(file_path)
        return command

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly snapshot keyed by field name."""

        return self.model_dump(mode="json")

    def build_invocation(
        self,
        *,
        text: str | None = None,
        file_path: str | None = None,
        cwd: Path | None = None,
    ) -> Invocation:
        """Return the tool invocation for one lint pass.

        Args:
            text: Live buffer written to stdin (buffer mode).
            file_path: Saved file passed as the last argument (file mode).
            cwd: Working directory for the tool.

        Returns:
            Invocation: Command ready for :func:`~livelint.process.run_invocation`.

        Raises:
            ConfigError: If both or neither of ``text`` and ``file_path`` are given.
        """

        if (text is None) == (file_path is None):
            raise ConfigError("exactly one of text or file_path is required")
        return Invocation(
            executable=self.executable_path,
            args=tuple(self.command_args(file_path)),
            cwd=cwd,
            stdin_text=text,
        )


class SettingsLoadResult(BaseModel):
    """Resolved settings together with the problems met while loading them."""

    settings: LinterSettings
    warnings: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


def _field_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for name, info in LinterSettings.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


_FIELD_LOOKUP: Final[dict[str, str]] = _field_lookup()


def normalise_keys(raw: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Map alias spellings onto field names.

    Args:
        raw: Settings mapping using field names or camelCase aliases.

    Returns:
        tuple[dict[str, Any], list[str]]: Normalised mapping and the unknown keys dropped.
    """

    normalised: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in raw.items():
        name = _FIELD_LOOKUP.get(str(key))
        if name is None:
            unknown.append(str(key))
            continue
        normalised[name] = value
    return normalised, unknown


def load_settings(raw: Mapping[str, Any] | None) -> SettingsLoadResult:
    """Validate ``raw`` into :class:`LinterSettings` without ever failing.

    Unknown keys are ignored and keys with invalid values fall back to their
    defaults; both are reported as warnings.

    Args:
        raw: Settings mapping, possibly partial or ``None``.

    Returns:
        SettingsLoadResult: Settings in effect plus warnings.
    """

    data, unknown = normalise_keys(raw or {})
    warnings = [f"Ignoring unknown setting '{key}'" for key in unknown]
    while True:
        try:
            settings = LinterSettings.model_validate(data)
        except ValidationError as exc:
            rejected = {
                _FIELD_LOOKUP.get(str(error["loc"][0]), str(error["loc"][0])) for error in exc.errors() if error["loc"]
            }
            rejected &= set(data)
            if not rejected:
                warnings.append(f"Invalid settings ignored: {exc.error_count()} error(s)")
                return SettingsLoadResult(settings=LinterSettings(), warnings=warnings)
            for key in sorted(rejected):
                warnings.append(f"Invalid value for setting '{key}': {data.pop(key)!r}; using default")
            continue
        return SettingsLoadResult(settings=settings, warnings=warnings)


class SettingsSource(Protocol):
    """Source of a raw settings fragment."""

    name: str

    def load(self) -> Mapping[str, Any]:
        """Return the fragment contributed by this source."""

        raise NotImplementedError


class DefaultSettingsSource:
    """Return the built-in defaults as a settings fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        return LinterSettings().to_dict()


class MappingSettingsSource:
    """Serve an in-memory mapping, typically command-line overrides."""

    def __init__(self, data: Mapping[str, Any], *, name: str = "overrides") -> None:
        self._data = dict(data)
        self.name = name

    def load(self) -> Mapping[str, Any]:
        return dict(self._data)


class TomlSettingsSource:
    """Load settings from a TOML document; a missing file contributes nothing."""

    def __init__(self, path: Path, *, env: Mapping[str, str] | None = None) -> None:
        self._path = path
        self.name = str(path)
        self._env = env if env is not None else os.environ

    def load(self) -> Mapping[str, Any]:
        data = self._read()
        return _expand_env(data, self._env)

    def _read(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            with self._path.open("rb") as handle:
                return tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Cannot read settings from {self._path}: {exc}") from exc


class PyProjectSettingsSource(TomlSettingsSource):
    """Read settings from ``[tool.livelint]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        data = super().load()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return dict(section)


class SettingsLoader:
    """Apply layered settings sources with predictable precedence."""

    def __init__(self, sources: Sequence[SettingsSource]) -> None:
        """Create a loader; later sources override earlier ones.

        Args:
            sources: Ordered collection of settings sources.

        Raises:
            ConfigError: If ``sources`` is empty.
        """

        if not sources:
            raise ConfigError("at least one settings source is required")
        self._sources = list(sources)

    @classmethod
    def for_root(
        cls,
        root: Path,
        *,
        user_config: Path | None = None,
        project_config: Path | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> SettingsLoader:
        """Build a loader honouring defaults, user, pyproject, project and override layers.

        Args:
            root: Workspace root used to discover configuration files.
            user_config: Optional path to a user-level settings file.
            project_config: Optional explicit project settings file.
            overrides: Optional mapping applied last.

        Returns:
            SettingsLoader: Loader configured with the default precedence ordering.
        """

        resolved = root.resolve()
        home_config = user_config if user_config is not None else Path.home() / CONFIG_FILE_NAME
        project_file = project_config if project_config is not None else resolved / CONFIG_FILE_NAME
        sources: list[SettingsSource] = [
            DefaultSettingsSource(),
            TomlSettingsSource(home_config),
            PyProjectSettingsSource(resolved / "pyproject.toml"),
            TomlSettingsSource(project_file),
        ]
        if overrides:
            sources.append(MappingSettingsSource(overrides))
        return cls(sources)

    def load(self) -> SettingsLoadResult:
        """Merge every source and validate the result.

        Unreadable sources are skipped with a warning, so loading never fails.

        Returns:
            SettingsLoadResult: Settings in effect, warnings and contributing sources.
        """

        merged: dict[str, Any] = {}
        warnings: list[str] = []
        used: list[str] = []
        for source in self._sources:
            try:
                fragment = source.load()
            except ConfigError as exc:
                warnings.append(str(exc))
                continue
            if not fragment:
                continue
            normalised, unknown = normalise_keys(fragment)
            warnings.extend(f"Ignoring unknown setting '{key}' in {source.name}" for key in unknown)
            # Settings are flat; a later layer replaces whole values.
            merged.update(normalised)
            used.append(source.name)
        result = load_settings(merged)
        return SettingsLoadResult(
            settings=result.settings,
            warnings=[*warnings, *result.warnings],
            sources=used,
        )


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _ENV_VAR_PATTERN.sub(lambda match: env.get(match.group(1) or match.group(2), match.group(0)), value)
    if isinstance(value, Mapping):
        return {key: _expand_env_value(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(item, env) for item in value]
    return value


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DefaultSettingsSource",
    "LinterSettings",
    "MappingSettingsSource",
    "ProcessMode",
    "PyProjectSettingsSource",
    "RunTrigger",
    "SettingsLoadResult",
    "SettingsLoader",
    "SettingsSource",
    "TomlSettingsSource",
    "load_settings",
    "normalise_keys",
]
