"""Tests for the environment validation and drift detection script."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from scripts import check_env

MANAGED_ENV_KEYS = ["GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO", "BATCH_MAX_PAGES"]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_managed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # The script's .env loader writes straight into os.environ; setting each
    # key first makes monkeypatch restore it at teardown.
    for key in MANAGED_ENV_KEYS:
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    argv = [command, "--env-file", str(tmp_path / ".missing-env")]
    if command != "check":
        argv.extend(["--hash-file", str(tmp_path / ".env.sha256")])

    assert check_env.main(argv) == check_env.EXIT_RUNTIME_ERROR


def test_check_reports_target_repository(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    _clear_managed_env(monkeypatch)
    _write_env(env_file, GITHUB_TOKEN="ghp_example", GITHUB_OWNER="acme", GITHUB_REPO="loans")

    assert check_env.main(["check", "--env-file", str(env_file)]) == check_env.EXIT_OK
    assert "acme/loans" in capsys.readouterr().out


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"
    argv = ["--env-file", str(env_file), "--hash-file", str(hash_file)]

    _clear_managed_env(monkeypatch)
    _write_env(env_file, GITHUB_TOKEN="ghp_example")
    assert check_env.main(["record", *argv]) == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()

    _clear_managed_env(monkeypatch)
    assert check_env.main(["verify", *argv]) == check_env.EXIT_OK

    _write_env(env_file, GITHUB_TOKEN="ghp_rotated")
    _clear_managed_env(monkeypatch)
    assert check_env.main(["verify", *argv]) == check_env.EXIT_CHECKSUM_ERROR


def test_verify_without_baseline_is_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_managed_env(monkeypatch)
    _write_env(env_file, GITHUB_TOKEN="ghp_example")

    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(tmp_path / "absent")]
    )
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_missing_token_fails_validation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    _clear_managed_env(monkeypatch)
    _write_env(env_file, GITHUB_OWNER="acme")

    assert check_env.main(["check", "--env-file", str(env_file)]) == check_env.EXIT_VALIDATION_ERROR


def test_malformed_value_fails_validation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    _clear_managed_env(monkeypatch)
    _write_env(env_file, GITHUB_TOKEN="ghp_example", BATCH_MAX_PAGES="several")

    assert check_env.main(["check", "--env-file", str(env_file)]) == check_env.EXIT_VALIDATION_ERROR


def test_loaded_values_do_not_outlive_the_test(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    with monkeypatch.context() as scoped:
        _clear_managed_env(scoped)
        _write_env(env_file, GITHUB_TOKEN="ghp_example", BATCH_MAX_PAGES="several")
        check_env.main(["check", "--env-file", str(env_file)])
        assert os.environ["BATCH_MAX_PAGES"] == "several"

    assert os.environ.get("BATCH_MAX_PAGES") != "several"
    assert os.environ.get("GITHUB_TOKEN") != "ghp_example"
