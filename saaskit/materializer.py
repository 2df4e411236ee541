"""
materializer.py

Responsibility: Turn ready remote repositories into local working copies.

- Destination directories for the whole plan are created before the first clone.
- Clones run in plan order; the first failure stops the rest.
- Nothing is cleaned up on failure so partial state can be inspected.

This module intentionally does NOT know about GitHub, licenses, or CLI parsing.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class CloneError(RuntimeError):
    def __init__(self, message: str, *, remote_url: str = "", destination: Path | None = None) -> None:
        super().__init__(message)
        self.remote_url = remote_url
        self.destination = destination


@dataclass(frozen=True)
class PlanEntry:
    remote_url: str
    destination: Path


@dataclass
class MaterializationPlan:
    entries: list[PlanEntry] = field(default_factory=list)

    def add(self, remote_url: str, destination: str | Path) -> None:
        self.entries.append(PlanEntry(remote_url=remote_url, destination=Path(destination)))

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class Cloner(Protocol):
    def clone(self, remote_url: str, destination: Path) -> None: ...


class GitCloner:
    """Clone with the `git` executable, streaming its output to ours."""

    def __init__(self, git: str = "git") -> None:
        self._git = git

    def clone(self, remote_url: str, destination: Path) -> None:
        cmd = [self._git, "clone", remote_url, str(destination)]
        try:
            subprocess.run(cmd, check=True)
        except subprocess.CalledProcessError as e:
            raise CloneError(
                f"Command failed: {' '.join(cmd)} (exit code {e.returncode})",
                remote_url=remote_url,
                destination=destination,
            ) from e
        except OSError as e:
            raise CloneError(f"Could not run {self._git}: {e}", remote_url=remote_url, destination=destination) from e


def materialize(plan: MaterializationPlan, cloner: Cloner) -> list[Path]:
    """
    Clone every entry of `plan` in order and return the populated destinations.
    """
    for entry in plan:
        try:
            entry.destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneError(
                f"Failed to create directory {entry.destination}: {e}",
                remote_url=entry.remote_url,
                destination=entry.destination,
            ) from e

    done: list[Path] = []
    for entry in plan:
        logger.info("Cloning %s into %s", entry.remote_url, entry.destination)
        cloner.clone(entry.remote_url, entry.destination)
        done.append(entry.destination)
    return done
