from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer

from relpr import __version__
from relpr.core.config import (
    ActionConfig,
    ConfigError,
    RunEnvironment,
    load_action_config,
    load_environment,
)
from relpr.core.result import Err
from relpr.output.console import ConsoleProtocol, RichConsole
from relpr.output.errors import print_release_error, release_error_exit_code
from relpr.platform.http import HttpClient, RealHttpClient
from relpr.services.release.errors import ReleaseError
from relpr.services.release.github import GitHubApi
from relpr.services.release.reconcile import ReconcileContext
from relpr.services.release.timeouts import GH_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ActionConfig
    env: RunEnvironment
    api: GitHubApi
    console: ConsoleProtocol

    def reconcile_context(self) -> ReconcileContext:
        return ReconcileContext(
            config=self.config,
            repository=self.env.repository,
            api=self.api,
            console=self.console,
            server_url=self.env.server_url,
        )


def _config_failed(error: ConfigError, console: ConsoleProtocol) -> NoReturn:
    release_error = ReleaseError(
        kind="config_invalid",
        message=error.message,
        hint=str(error.path) if error.path else None,
    )
    print_release_error(release_error, console)
    raise typer.Exit(code=release_error_exit_code(release_error))


def build_context(
    *,
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
    http: HttpClient | None = None,
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    """Load config and environment; exit before any network call if invalid."""
    env_map = os.environ if environ is None else environ
    out = console or RichConsole(annotations=env_map.get("GITHUB_ACTIONS") == "true")

    config = load_action_config(env_map, config_file)
    if isinstance(config, Err):
        _config_failed(config.error, out)

    run_env = load_environment(env_map)
    if isinstance(run_env, Err):
        _config_failed(run_env.error, out)

    client = http or RealHttpClient(
        run_env.value.token,
        timeout=GH_TIMEOUT_SECONDS,
        user_agent=f"relpr/{__version__}",
    )
    api = GitHubApi(client, run_env.value.repository, api_url=run_env.value.api_url)
    return CLIContext(config=config.value, env=run_env.value, api=api, console=out)
