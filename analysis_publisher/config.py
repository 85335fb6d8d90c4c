"""Configuration loading and validation.

Usage:
    config = load("analysis-publisher.yaml")     # raises ConfigError on bad config
    config = load("analysis-publisher.yaml", head_sha=sha)  # CLI overrides
    generate_template("analysis-publisher.yaml")  # writes example file to disk
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

from analysis_publisher.client import DEFAULT_API_URL

DEFAULT_CONFIG_PATH = "analysis-publisher.yaml"
DEFAULT_CHECK_NAME = "Static analysis"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CheckRunConfig:
    api_url: str
    token: str
    repository: str
    head_sha: str
    check_name: str = DEFAULT_CHECK_NAME
    check_title: str = DEFAULT_CHECK_NAME
    workspace_path: str | None = None
    swallow_transport_errors: bool = False
    timeout: int = 30

    def with_overrides(self, **overrides) -> "CheckRunConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = DEFAULT_CONFIG_PATH, **overrides) -> CheckRunConfig:
    """Load and validate configuration from a YAML file.

    Environment variables GITHUB_API_URL, GITHUB_TOKEN, GITHUB_REPOSITORY,
    GITHUB_SHA and GITHUB_WORKSPACE override file values. Keyword
    *overrides* (e.g. from the CLI) win over both; None values are ignored.

    Raises:
        ConfigError: if the file is missing, malformed, or required fields
                     are absent.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `analysis-publisher init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    github = raw.get("github") or {}
    check  = raw.get("check") or {}

    api_url    = os.environ.get("GITHUB_API_URL")    or github.get("api_url", DEFAULT_API_URL)
    token      = os.environ.get("GITHUB_TOKEN")      or github.get("token", "")
    repository = os.environ.get("GITHUB_REPOSITORY") or github.get("repository", "")
    head_sha   = os.environ.get("GITHUB_SHA")        or raw.get("head_sha", "")
    workspace  = os.environ.get("GITHUB_WORKSPACE")  or raw.get("workspace")

    check_name = str(check.get("name") or DEFAULT_CHECK_NAME).strip()

    try:
        timeout = int(raw.get("timeout", 30))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'timeout' must be an integer in '{config_path}'") from exc

    swallow = raw.get("swallow_transport_errors", False)
    if not isinstance(swallow, bool):
        raise ConfigError(
            f"'swallow_transport_errors' must be true or false in '{config_path}', got {swallow!r}"
        )

    config = CheckRunConfig(
        api_url=str(api_url).strip(),
        token=str(token).strip(),
        repository=str(repository).strip(),
        head_sha=str(head_sha).strip(),
        check_name=check_name,
        check_title=str(check.get("title") or check_name).strip(),
        workspace_path=str(workspace).strip() if workspace else None,
        swallow_transport_errors=swallow,
        timeout=timeout,
    ).with_overrides(**overrides)
    validate(config)
    return config


def validate(config: CheckRunConfig) -> None:
    """Raise ConfigError if required fields are missing."""
    errors: list[str] = []

    if not config.api_url.startswith(("http://", "https://")):
        errors.append(
            f"  - 'github.api_url' must start with http:// or https://, got '{config.api_url}'"
        )
    if not config.token:
        errors.append(
            "  - 'github.token' is missing (or set the GITHUB_TOKEN environment variable)"
        )
    if not config.repository:
        errors.append(
            "  - 'github.repository' is missing (or set the GITHUB_REPOSITORY environment variable)"
        )
    elif config.repository.count("/") != 1 or config.repository.startswith("/") \
            or config.repository.endswith("/"):
        errors.append(
            f"  - 'github.repository' must look like 'owner/name', got '{config.repository}'"
        )
    if not config.head_sha:
        errors.append(
            "  - 'head_sha' is missing (or set the GITHUB_SHA environment variable, or pass --sha)"
        )
    if config.timeout <= 0:
        errors.append("  - 'timeout' must be a positive number of seconds")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
github:
  api_url: "https://api.github.com"
  token: "ghp_xxxxxxxxxxxx"       # Or set GITHUB_TOKEN
  repository: "owner/name"        # Or set GITHUB_REPOSITORY

check:
  name: "Static analysis"
  title: "Static analysis report"

# Absolute paths under this directory are reported relative to it.
# GITHUB_WORKSPACE overrides it on GitHub Actions.
workspace: "/path/to/checkout"

# Log and ignore timeouts, connection errors and 5xx responses instead of failing.
swallow_transport_errors: false
timeout: 30
"""


def generate_template(output_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a template config file to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
