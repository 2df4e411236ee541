"""
cli.py

Responsibility: CLI entrypoint for the SaaSKit CLI (`skt`).

Subcommands:
- `print`: hello message
- `help`: command overview
- `clone`: clone one repository into a directory
- `init`: license check -> fork templates -> wait for forks -> clone (see `orchestrator.py`)

This module should only parse arguments and print results. The work itself lives in:
- Settings / credentials: `config.py`
- Orchestration: `orchestrator.py`
- Cloning: `materializer.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from saaskit import __version__
from saaskit.config import ConfigurationError, InitConfig, load_settings
from saaskit.materializer import CloneError, GitCloner, MaterializationPlan, materialize
from saaskit.orchestrator import Orchestrator

BANNER = r"""
   _____ _  _______
  / ____| |/ /_   _|
 | (___ | ' /  | |
  \___ \|  <   | |
  ____) | . \ _| |_
 |_____/|_|\_\_____|

Welcome to SaaSKit CLI!"""


class CLIError(RuntimeError):
    pass


def _print_next_steps(steps: list[str]) -> None:
    print("Next steps:")
    for i, step in enumerate(steps, start=1):
        print(f"{i}. {step}")


def root_cmd(args: argparse.Namespace) -> int:
    print(BANNER)
    print("Type 'skt init --name <name> --key <your-key> --path <dir>' to get started")
    return 0


def print_cmd(args: argparse.Namespace) -> int:
    print("Hello from SaaSKit CLI! 👋")
    return 0


def help_cmd(args: argparse.Namespace) -> int:
    print("Bot Help:")
    print("1. Use 'skt print' to print a hello message")
    print("2. Use 'skt help' to see this help message")
    print("3. Use 'skt init' to initialize a new project")
    print("4. Use 'skt clone' to clone a repository")
    print("\nFor more detailed information, visit our documentation.")
    return 0


def clone_cmd(args: argparse.Namespace) -> int:
    if not args.repo or not args.path:
        raise CLIError(
            "Required flags are missing:\n"
            "   --repo: URL of the repository to clone\n"
            "   --path: Path where to clone the repository"
        )

    destination = Path(args.path).expanduser().resolve()
    plan = MaterializationPlan()
    plan.add(args.repo, destination)
    print(f"Cloning repository to {destination}...")
    try:
        materialize(plan, GitCloner())
    except CloneError as e:
        raise CLIError(f"Failed to clone repository: {e}") from e

    print("Repository cloned successfully!")
    _print_next_steps([f"cd {destination}", "Follow the repository's setup instructions"])
    return 0


def init_cmd(args: argparse.Namespace) -> int:
    config = InitConfig(name=args.name or "", key=args.key or "", path=args.path or "", org=args.org or "")
    try:
        config.validate()
    except ConfigurationError as e:
        raise CLIError(
            f"{e}\n"
            "   --name: Name of your SaaS project\n"
            "   --key: License key for verification\n"
            "   --path: Directory to create the project in\n"
            "   --org: Organization to fork the repositories into (optional)"
        ) from e

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        raise CLIError(str(e)) from e

    outcome = Orchestrator(settings, echo=print).run(config)
    if not outcome.success:
        raise CLIError(outcome.message)

    print(outcome.message)
    _print_next_steps(outcome.next_steps)
    return outcome.exit_code


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="skt", description="SaaSKit CLI - bootstrap a SaaS starter project", add_help=True)
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command")

    sub.add_parser("print", help="Print a hello message").set_defaults(func=print_cmd)
    sub.add_parser("help", help="Get help from the bot").set_defaults(func=help_cmd)

    c = sub.add_parser("clone", help="Clone a repository into a specified directory")
    c.add_argument("--repo", default="", help="URL of the repository to clone (required)")
    c.add_argument("--path", default="", help="Path where to clone the repository (required)")
    c.set_defaults(func=clone_cmd)

    i = sub.add_parser("init", help="Initialize a new SaaS project")
    i.add_argument("--name", default="", help="Name of your SaaS project (required)")
    i.add_argument("--key", default="", help="License key for verification (required)")
    i.add_argument("--path", default="", help="Directory to create the project in (required)")
    i.add_argument("--org", default="", help="Organization to fork the repositories into (optional)")
    i.add_argument("--config", default=None, help="YAML settings file (or set env SKT_CONFIG)")
    i.set_defaults(func=init_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(getattr(args, "func", root_cmd)(args))
    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
