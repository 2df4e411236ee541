"""
config.py

Responsibility: Load project settings and validate user input before any network call.

Settings come from three places, in increasing priority:
- Built-in defaults (`ProjectSettings()`)
- An optional YAML file (`--config` or `SKT_CONFIG`)
- Environment credentials (`GITHUB_TOKEN`, `SKT_LICENSE_TOKEN`), never from files or source

The orchestrator should treat the returned objects as the single source of truth.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
LICENSE_TOKEN_ENV = "SKT_LICENSE_TOKEN"
CONFIG_PATH_ENV = "SKT_CONFIG"


class ConfigurationError(ValueError):
    pass


class CredentialMissingError(ConfigurationError):
    def __init__(self, variable: str) -> None:
        super().__init__(f"{variable} environment variable is not set")
        self.variable = variable


@dataclass(frozen=True)
class TemplateRepo:
    """A tracked template repository and the local subdirectory it is cloned into."""

    slot: str
    name: str


def _default_templates() -> tuple[TemplateRepo, ...]:
    return (
        TemplateRepo(slot="backend", name="saas.service"),
        TemplateRepo(slot="frontend", name="starterkit.client"),
    )


@dataclass(frozen=True)
class ProjectSettings:
    """Tunable settings for `skt init`."""

    upstream_owner: str = "saltandpepperstudios"
    templates: tuple[TemplateRepo, ...] = field(default_factory=_default_templates)
    project_prefix: str = "saasstarter-"
    license_endpoint: str = "https://sheetdb.io/api/v1/ju2p5lmgeed0j/search"
    license_timeout: float = 10.0
    poll_attempts: int = 3
    poll_interval: float = 10.0
    github_api_base: str = "https://api.github.com"
    support_contact: str = "support@saasstarter.live"


@dataclass(frozen=True)
class InitConfig:
    """User input for `skt init`."""

    name: str
    key: str
    path: str
    org: str = ""

    def validate(self) -> None:
        missing = [flag for flag, value in (("--name", self.name), ("--key", self.key), ("--path", self.path)) if not value.strip()]
        if missing:
            raise ConfigurationError(f"Required flags are missing: {', '.join(missing)}")


@dataclass(frozen=True)
class Credentials:
    github_token: str
    license_token: str


def load_credentials(environ: Mapping[str, str] | None = None) -> Credentials:
    """
    Read both API credentials from the environment, failing on the first one absent.
    """
    env = os.environ if environ is None else environ
    github_token = (env.get(GITHUB_TOKEN_ENV) or "").strip()
    if not github_token:
        raise CredentialMissingError(GITHUB_TOKEN_ENV)
    license_token = (env.get(LICENSE_TOKEN_ENV) or "").strip()
    if not license_token:
        raise CredentialMissingError(LICENSE_TOKEN_ENV)
    return Credentials(github_token=github_token, license_token=license_token)


def _parse_templates(raw: Any) -> tuple[TemplateRepo, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError("`templates` must be a non-empty list when provided.")
    templates: list[TemplateRepo] = []
    seen: set[str] = set()
    seen_repos: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            raise ConfigurationError("Each `templates` entry must be a mapping with `slot` and `repo`.")
        slot = str(item.get("slot") or "").strip()
        name = str(item.get("repo") or item.get("name") or "").strip()
        if not slot or not name:
            raise ConfigurationError("Each `templates` entry needs both `slot` and `repo`.")
        if slot in seen:
            raise ConfigurationError(f"Duplicate template slot: {slot}")
        if name in seen_repos:
            raise ConfigurationError(f"Duplicate template repo: {name}")
        seen.add(slot)
        seen_repos.add(name)
        templates.append(TemplateRepo(slot=slot, name=name))
    return tuple(templates)


def _positive(data: dict[str, Any], key: str, cast: type, default: Any) -> Any:
    if key not in data or data[key] is None:
        return default
    if isinstance(data[key], bool):
        raise ConfigurationError(f"`{key}` must be a number.")
    try:
        value = cast(data[key])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"`{key}` must be a number.") from e
    if value <= 0:
        raise ConfigurationError(f"`{key}` must be greater than zero.")
    return value


def load_settings(config_path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> ProjectSettings:
    """
    Build `ProjectSettings` from defaults, overlaid with an optional YAML file.

    Recognised YAML keys:
    - upstream_owner: str
    - templates: list of {slot, repo}
    - project_prefix: str
    - license.endpoint / license.timeout
    - poll.attempts / poll.interval
    - github.api_base
    """
    env = os.environ if environ is None else environ
    if config_path is None:
        config_path = env.get(CONFIG_PATH_ENV) or None
    defaults = ProjectSettings()
    if config_path is None:
        return defaults

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Config file does not exist: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("Config file must be a mapping/object at the top level.")

    license_raw = data.get("license") or {}
    poll_raw = data.get("poll") or {}
    github_raw = data.get("github") or {}
    for key, section in (("license", license_raw), ("poll", poll_raw), ("github", github_raw)):
        if not isinstance(section, dict):
            raise ConfigurationError(f"`{key}` must be an object/mapping when provided.")

    templates = defaults.templates
    if "templates" in data:
        templates = _parse_templates(data["templates"])

    return ProjectSettings(
        upstream_owner=str(data.get("upstream_owner") or defaults.upstream_owner).strip(),
        templates=templates,
        project_prefix=str(data.get("project_prefix", defaults.project_prefix) or ""),
        license_endpoint=str(license_raw.get("endpoint") or defaults.license_endpoint).strip(),
        license_timeout=_positive(license_raw, "timeout", float, defaults.license_timeout),
        poll_attempts=_positive(poll_raw, "attempts", int, defaults.poll_attempts),
        poll_interval=_positive(poll_raw, "interval", float, defaults.poll_interval),
        github_api_base=str(github_raw.get("api_base") or defaults.github_api_base).strip(),
        support_contact=str(data.get("support_contact") or defaults.support_contact).strip(),
    )
