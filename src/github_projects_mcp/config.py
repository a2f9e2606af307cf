"""Configuration loading for github-projects-mcp.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
Credentials (token, private key path, installation id) are treated as secrets and must never
be emitted to agents, logs, or audit reasons.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import SafeError

DEFAULT_CALL_TIMEOUT_S = 60.0


@dataclass(frozen=True, slots=True)
class GitHubAppConfig:
    """App + installation binding used to mint installation tokens."""

    app_id: int
    installation_id: int
    private_key_path: Path


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Non-functional limits."""

    # Deadline for a whole tool call; None disables it.
    call_timeout_s: float | None = DEFAULT_CALL_TIMEOUT_S


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration."""

    personal_access_token: str
    github_app: GitHubAppConfig | None

    audit_log_path: Path | None
    audit_max_bytes: int
    audit_max_backups: int
    limits: LimitsConfig


def _load_github_app_config() -> GitHubAppConfig | None:
    app_id_raw = os.getenv("GITHUB_APP_ID")
    installation_id_raw = os.getenv("GITHUB_APP_INSTALLATION_ID")
    private_key_path_raw = os.getenv("GITHUB_APP_PRIVATE_KEY_PATH")

    provided = [v for v in (app_id_raw, installation_id_raw, private_key_path_raw) if v]
    if not provided:
        return None
    if len(provided) != 3:
        raise SafeError(
            code="Config",
            message="GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID and GITHUB_APP_PRIVATE_KEY_PATH must be set together",
        )

    try:
        app_id = int(app_id_raw)
        installation_id = int(installation_id_raw)
    except ValueError as exc:
        raise SafeError(code="Config", message="GITHUB_APP_ID and GITHUB_APP_INSTALLATION_ID must be integers") from exc

    key_path = Path(private_key_path_raw)
    if not key_path.is_absolute():
        raise SafeError(code="Config", message="GITHUB_APP_PRIVATE_KEY_PATH must be an absolute path")

    # Fail fast if unreadable; never echo the path.
    try:
        if not key_path.is_file():
            raise SafeError(code="Config", message="GitHub App private key file is missing or not a file")
        _ = key_path.read_bytes()
    except SafeError:
        raise
    except OSError as exc:
        raise SafeError(code="Config", message="GitHub App private key file is unreadable") from exc

    return GitHubAppConfig(app_id=app_id, installation_id=installation_id, private_key_path=key_path)


def _parse_timeout(value: str | None) -> float | None:
    if value is None or not value.strip():
        return DEFAULT_CALL_TIMEOUT_S
    try:
        timeout = float(value)
    except ValueError as exc:
        raise SafeError(code="Config", message="GITHUB_PROJECTS_MCP_CALL_TIMEOUT_S must be a number") from exc
    if timeout < 0:
        raise SafeError(code="Config", message="GITHUB_PROJECTS_MCP_CALL_TIMEOUT_S must be >= 0")
    return timeout or None


def load_config_from_env() -> AppConfig:
    """Load and validate configuration from environment variables.

    Raises:
        SafeError: If configuration is missing/invalid.
    """
    token = (os.getenv("GITHUB_PERSONAL_ACCESS_TOKEN") or "").strip()
    github_app = _load_github_app_config()

    if not token and github_app is None:
        raise SafeError(
            code="Config",
            message="Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN or GITHUB_APP_* settings)",
        )

    audit_path_raw = os.getenv("GITHUB_PROJECTS_MCP_AUDIT_LOG_PATH")
    audit_path: Path | None = None
    if audit_path_raw:
        p = Path(audit_path_raw)
        if not p.is_absolute():
            raise SafeError(
                code="Config", message="GITHUB_PROJECTS_MCP_AUDIT_LOG_PATH must be an absolute path when set"
            )
        audit_path = p

    return AppConfig(
        personal_access_token=token,
        github_app=github_app,
        audit_log_path=audit_path,
        audit_max_bytes=5 * 1024 * 1024,
        audit_max_backups=2,
        limits=LimitsConfig(call_timeout_s=_parse_timeout(os.getenv("GITHUB_PROJECTS_MCP_CALL_TIMEOUT_S"))),
    )
