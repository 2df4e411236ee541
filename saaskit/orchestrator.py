"""
orchestrator.py

Responsibility: Run `skt init` end to end.

Stages, each gated on the previous one:
1) config   - required inputs and environment credentials (no network yet)
2) license  - license key check
3) fork     - fork every tracked template; the first failure aborts
4) poll     - wait until every fork is readable
5) clone    - clone the ready forks under the project directory

Failures are returned as an `ExitOutcome`, never raised, so the CLI can print them
without a traceback. Directories already created are left in place.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

from saaskit.config import (
    ConfigurationError,
    InitConfig,
    ProjectSettings,
    load_credentials,
)
from saaskit.github_client import (
    ForkError,
    ForkRequest,
    ForkResult,
    GitHubClient,
    RepositoryRef,
)
from saaskit.license import LicenseCheckResult, LicenseStatus, check_license
from saaskit.materializer import CloneError, Cloner, GitCloner, MaterializationPlan, materialize
from saaskit.poller import PollFailure, await_all_ready

logger = logging.getLogger(__name__)

LicenseCheck = Callable[..., LicenseCheckResult]
GitHubFactory = Callable[[str, str], GitHubClient]


@dataclass
class ExitOutcome:
    success: bool
    stage: str
    message: str
    project_dir: Path | None = None
    next_steps: list[str] = field(default_factory=list)
    ready_urls: dict[str, str] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


class Orchestrator:
    def __init__(
        self,
        settings: ProjectSettings | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        license_check: LicenseCheck = check_license,
        github_factory: GitHubFactory = GitHubClient,
        cloner: Cloner | None = None,
        sleep: Callable[[float], None] = time.sleep,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.settings = settings or ProjectSettings()
        self._environ = os.environ if environ is None else environ
        self._license_check = license_check
        self._github_factory = github_factory
        self._cloner = cloner or GitCloner()
        self._sleep = sleep
        self._echo = echo or (lambda _msg: None)

    def project_dir(self, config: InitConfig) -> Path:
        return Path(config.path).expanduser().resolve() / f"{self.settings.project_prefix}{config.name}"

    def run(self, config: InitConfig) -> ExitOutcome:
        settings = self.settings

        try:
            config.validate()
            credentials = load_credentials(self._environ)
        except ConfigurationError as e:
            return self._fail("config", str(e))

        self._echo("Verifying license key...")
        result = self._license_check(
            config.key,
            endpoint=settings.license_endpoint,
            token=credentials.license_token,
            timeout=settings.license_timeout,
        )
        if result.status is LicenseStatus.INVALID:
            return self._fail(
                "license",
                f"Invalid license key. Please contact {settings.support_contact} to obtain a valid license key",
            )
        if result.status is LicenseStatus.TRANSPORT_ERROR:
            return self._fail("license", f"License validation failed: {result.detail}")
        self._echo("License key verified successfully!")

        client = self._github_factory(credentials.github_token, settings.github_api_base)
        forks: list[ForkResult] = []
        for template in settings.templates:
            source = RepositoryRef(settings.upstream_owner, template.name)
            self._echo(f"Forking {template.slot} template {source.full_name}...")
            try:
                forks.append(client.fork(ForkRequest(source=source, destination_namespace=config.org)))
            except ForkError as e:
                return self._fail("fork", f"Failed to fork {template.slot} template {source.full_name}: {e.cause}")

        owner = config.org or forks[0].owner_login
        self._echo(f"Waiting for forks under {owner} to be ready...")
        repos = [RepositoryRef(owner, fork.forked_repository.name) for fork in forks]
        try:
            urls = await_all_ready(
                client,
                owner,
                repos,
                settings.poll_attempts,
                settings.poll_interval,
                sleep=self._sleep,
            )
        except PollFailure as e:
            ready = ", ".join(f"{name} ({url})" for name, url in e.ready.items()) or "none"
            failed = ", ".join(f"{name} ({error})" for name, error in sorted(e.failed.items()))
            return self._fail(
                "poll",
                f"Forks not ready under {owner}. Ready: {ready}. Not ready: {failed}",
                ready_urls=dict(e.ready),
            )

        project_dir = self.project_dir(config)
        plan = MaterializationPlan()
        for template, fork in zip(settings.templates, forks):
            plan.add(f"{urls[fork.forked_repository.name]}.git", project_dir / template.slot)

        self._echo(f"Cloning repositories to {project_dir}...")
        try:
            materialize(plan, self._cloner)
        except CloneError as e:
            return self._fail("clone", f"Failed to clone repository: {e}", project_dir=project_dir, ready_urls=urls)

        logger.info("Project initialized at %s", project_dir)
        return ExitOutcome(
            success=True,
            stage="done",
            message="Project initialized successfully!",
            project_dir=project_dir,
            next_steps=[f"cd {project_dir}", "Follow the setup instructions in README.md"],
            ready_urls=urls,
        )

    def _fail(self, stage: str, message: str, **kwargs) -> ExitOutcome:
        logger.warning("init stopped at %s stage: %s", stage, message)
        return ExitOutcome(success=False, stage=stage, message=message, **kwargs)
