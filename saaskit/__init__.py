"""
saaskit package

This package implements the SaaSKit CLI (`skt`), which bootstraps a SaaS starter project.

Key responsibilities are split across modules:
- `config.py`: settings (defaults + optional YAML), init inputs, environment credentials
- `license.py`: license key check against the license API
- `github_client.py`: isolated GitHub REST API interactions (fork / repo lookup)
- `poller.py`: bounded polling until forks are readable
- `materializer.py`: clone plans and `git clone`
- `orchestrator.py`: the `init` flow (license -> fork -> poll -> clone)
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
