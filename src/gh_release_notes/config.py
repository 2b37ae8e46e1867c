"""Run configuration: YAML defaults, environment, and command-line flags.

Settings are layered, lowest precedence first:
1. An optional YAML file passed with --config, e.g.

       owner: myorg
       repository: api
       branch: main
       host: https://github.example.com/api/v3
       per_page: 50

2. Environment variables (GITHUB_TOKEN, GITHUB_API_URL), which may come
   from a .env file loaded by the CLI
3. Command-line flags

resolve_settings() merges the layers and checks that the chosen action
has everything it needs, raising ConfigurationError otherwise.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gh_release_notes.github import DEFAULT_HOST
from gh_release_notes.schemas import Action, NotesConfig


class ConfigurationError(ValueError):
    """The run cannot start: unknown action, missing option or bad config file."""


# ---------------------------------------------------------------------------
# YAML File
# ---------------------------------------------------------------------------


class FileConfig(BaseModel):
    """Defaults loaded from YAML. Keys match the long flag names."""

    model_config = ConfigDict(extra="forbid")

    token: str | None = None
    host: str | None = None
    owner: str | None = None
    repository: str | None = None
    action: str | None = None
    hours: float | None = Field(None, gt=0)
    milestone: str | None = None
    branch: str | None = None
    input: Path | None = None
    output: Path | None = None
    name: str | None = None
    per_page: int | None = Field(None, ge=1, le=100)


def load_file_config(path: str | Path) -> FileConfig:
    """Load and validate a YAML config file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A validated FileConfig.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or
            contains unknown or ill-typed keys.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    try:
        return FileConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config in {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Merged Settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """Everything one run needs: which action, how to reach GitHub, and
    the action's parameters."""

    model_config = ConfigDict(frozen=True)

    action: Action
    token: str | None = None
    host: str = DEFAULT_HOST
    per_page: int | None = None
    notes: NotesConfig


# Options each action cannot run without, as (attribute, flag) pairs.
REQUIRED_OPTIONS: dict[Action, list[tuple[str, str]]] = {
    Action.RECENT: [("hours", "--hours")],
    Action.MILESTONE: [("milestone", "--milestone")],
    Action.UPDATE: [("name", "--name")],
}


def _pick(flag_value: Any, file_value: Any) -> Any:
    return flag_value if flag_value is not None else file_value


def resolve_settings(
    args: argparse.Namespace,
    file_config: FileConfig | None = None,
) -> Settings:
    """Merge flags, environment and file defaults into Settings.

    Args:
        args: Parsed command-line arguments
        file_config: Defaults from --config, if one was given

    Returns:
        Validated settings for the requested action

    Raises:
        ConfigurationError: If the action is missing or unknown, or an
            option the action requires is missing or invalid
    """
    defaults = file_config or FileConfig()

    action_name = _pick(args.action, defaults.action)
    if action_name is None:
        raise ConfigurationError("Missing action argument (recent, milestone or update)")
    try:
        action = Action(action_name)
    except ValueError:
        raise ConfigurationError(f"Unknown action argument: {action_name}") from None

    owner = _pick(args.owner, defaults.owner)
    repo = _pick(args.repository, defaults.repository)
    if not owner or not repo:
        raise ConfigurationError("Both --owner and --repository are required")

    try:
        notes = NotesConfig(
            owner=owner,
            repo=repo,
            branch=_pick(args.branch, defaults.branch),
            hours=_pick(args.hours, defaults.hours),
            milestone=_pick(args.milestone, defaults.milestone),
            input=_pick(args.input, defaults.input),
            output=_pick(args.output, defaults.output),
            name=_pick(args.name, defaults.name),
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid options: {exc}") from exc

    for attribute, flag in REQUIRED_OPTIONS[action]:
        if getattr(notes, attribute) is None:
            raise ConfigurationError(f"{flag} is required for the {action} action")

    return Settings(
        action=action,
        token=args.token or os.environ.get("GITHUB_TOKEN") or defaults.token,
        host=args.host or os.environ.get("GITHUB_API_URL") or defaults.host or DEFAULT_HOST,
        per_page=defaults.per_page,
        notes=notes,
    )
