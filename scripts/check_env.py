"""Verify the deployment environment before the handlers go live.

Two checks are available:

1. Load ``AppSettings`` from the given ``.env`` file and confirm the GitHub
   token is present, so a missing credential is caught before the first
   request returns a 500.
2. Record and later verify a checksum of the ``.env`` file to detect edits
   made outside the deploy process.

Example usages::

    # Validate settings and record the expected checksum.
    python -m scripts.check_env record --env-file /srv/loan-bridge/.env \
        --hash-file /srv/loan-bridge/.env.sha256

    # Run later (e.g. from cron) to alert on drift.
    python -m scripts.check_env verify --env-file /srv/loan-bridge/.env \
        --hash-file /srv/loan-bridge/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.core.config import AppSettings, ConfigurationError, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _validate_settings(env_file: Path) -> AppSettings:
    """Load settings from ``env_file`` and require the GitHub token."""
    _load_env_file(str(env_file))
    settings = AppSettings()  # type: ignore[call-arg]
    settings.github.require_token()
    return settings

def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    """Compare the current checksum to the recorded baseline."""
    if not hash_file.exists():
        print(
            f"Checksum baseline {hash_file} is missing. "
            "Run the 'record' command first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}\n"
        "Review the .env changes before redeploying the handlers.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _report_settings(settings: AppSettings) -> int:
    print(
        f"Settings OK: dispatching to {settings.github.owner}/{settings.github.repo} "
        f"via {settings.github.api_url}"
    )
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate the loan automation settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, help_text: str, *, with_hash: bool) -> None:
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the working directory).",
        )
        if with_hash:
            subparser.add_argument(
                "--hash-file",
                required=True,
                type=Path,
                help="Checksum baseline location.",
            )

    add_command("record", "Validate settings and store the checksum baseline.", with_hash=True)
    add_command("verify", "Validate settings and compare against the baseline.", with_hash=True)
    add_command("check", "Validate settings only.", with_hash=False)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _validate_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except ConfigurationError as exc:
        print(f"Settings validation failed: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error during validation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: _report_settings(settings),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
