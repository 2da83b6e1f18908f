"""CLI entry point: soos-sca.

    soos-sca --project-name my-app --source-code-path ./src
    soos-sca --project-name my-app --file-match-type ManifestAndFileHash --output-format SARIF
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
import structlog

from soos_sca import __version__
from soos_sca.core.config import Settings, load_settings
from soos_sca.core.logging import setup_logging
from soos_sca.enums import (
    FileMatchTypeEnum,
    IntegrationName,
    IntegrationType,
    LogLevel,
    OnFailure,
    OutputFormat,
)
from soos_sca.models import ScanSetupParams
from soos_sca.runner import ScaScanOptions, ScaScanResult, ScaScanRunner
from soos_sca.services import SoosError
from soos_sca.services.analysis_service import AnalysisService

log = structlog.get_logger("soos_sca.cli")

_DEFAULT_DIRECTORIES_TO_EXCLUDE = "**/node_modules/**"


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _choice(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls], case_sensitive=False)


async def _run_scan(
    api_key: str,
    api_url: str,
    settings: Settings,
    options: ScaScanOptions,
) -> ScaScanResult:
    async with AnalysisService.create(
        api_key,
        api_url,
        timeout=settings.http_timeout,
        status_delay=settings.status_delay,
    ) as service:
        return await ScaScanRunner(service).run(options)


@click.command()
@click.option("--api-key", default=None, help="SOOS API key (env: SOOS_API_KEY)")
@click.option("--client-id", default=None, help="SOOS client id (env: SOOS_CLIENT_ID)")
@click.option("--api-url", default=None, help="SOOS API base URL (env: SOOS_API_URL)")
@click.option("--project-name", required=True, help="Project name shown in SOOS")
@click.option("--branch-name", default=None, help="Branch name from the SCM system")
@click.option("--branch-uri", default=None, help="URI of the branch in the SCM system")
@click.option("--build-version", default=None, help="Version of the build artifacts")
@click.option("--build-uri", default=None, help="URI of the CI build")
@click.option("--commit-hash", default=None, help="Commit hash from the SCM system")
@click.option("--operating-environment", default="", help="Operating system or environment")
@click.option("--app-version", default=None, help="Version of the calling application")
@click.option(
    "--integration-name",
    type=_choice(IntegrationName),
    default=IntegrationName.SoosSca.value,
    show_default=True,
)
@click.option(
    "--integration-type",
    type=_choice(IntegrationType),
    default=IntegrationType.Script.value,
    show_default=True,
)
@click.option(
    "--source-code-path",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Root of the source tree to search",
)
@click.option(
    "--working-directory",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory upload paths are relative to and output is written to",
)
@click.option("--files-to-exclude", default="", help="Comma-separated file globs to skip")
@click.option(
    "--directories-to-exclude",
    default=_DEFAULT_DIRECTORIES_TO_EXCLUDE,
    show_default=True,
    help="Comma-separated directory globs to skip",
)
@click.option("--package-managers", default="", help="Comma-separated package managers to search")
@click.option(
    "--file-match-type",
    type=_choice(FileMatchTypeEnum),
    default=FileMatchTypeEnum.Manifest.value,
    show_default=True,
)
@click.option("--output-format", type=_choice(OutputFormat), default=None)
@click.option(
    "--on-failure",
    type=_choice(OnFailure),
    default=OnFailure.Continue.value,
    show_default=True,
)
@click.option("--log-level", type=_choice(LogLevel), default=None, help="Default: INFO")
@click.option("--no-color", is_flag=True, help="Disable coloured output")
def main(
    api_key: str | None,
    client_id: str | None,
    api_url: str | None,
    project_name: str,
    branch_name: str | None,
    branch_uri: str | None,
    build_version: str | None,
    build_uri: str | None,
    commit_hash: str | None,
    operating_environment: str,
    app_version: str | None,
    integration_name: str,
    integration_type: str,
    source_code_path: str,
    working_directory: str,
    files_to_exclude: str,
    directories_to_exclude: str,
    package_managers: str,
    file_match_type: str,
    output_format: str | None,
    on_failure: str,
    log_level: str | None,
    no_color: bool,
) -> None:
    """Run a SOOS software composition analysis scan."""
    settings = load_settings()
    api_key = api_key or settings.api_key
    client_id = client_id or settings.client_id
    if not api_key:
        raise click.UsageError("Missing API key: pass --api-key or set SOOS_API_KEY.")
    if not client_id:
        raise click.UsageError("Missing client id: pass --client-id or set SOOS_CLIENT_ID.")

    setup_logging(log_level, colors=not no_color)

    # Choice(case_sensitive=False) returns the canonical value.
    options = ScaScanOptions(
        setup=ScanSetupParams(
            client_id=client_id,
            project_name=project_name,
            branch_name=branch_name,
            commit_hash=commit_hash,
            build_version=build_version,
            build_uri=build_uri,
            branch_uri=branch_uri,
            integration_type=IntegrationType(integration_type),
            operating_environment=operating_environment,
            integration_name=IntegrationName(integration_name),
            app_version=app_version,
            script_version=__version__,
        ),
        source_code_path=Path(source_code_path),
        working_directory=Path(working_directory),
        files_to_exclude=_split_csv(files_to_exclude),
        directories_to_exclude=_split_csv(directories_to_exclude),
        package_managers=_split_csv(package_managers),
        file_match_type=FileMatchTypeEnum(file_match_type),
        output_format=OutputFormat(output_format) if output_format else None,
        colorize=not no_color,
    )

    try:
        result = asyncio.run(
            _run_scan(api_key, api_url or settings.api_url, settings, options)
        )
    # OSError: unreadable files; ValueError: rules this client cannot apply.
    except (SoosError, OSError, ValueError) as exc:
        log.error("cli.scan_error", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not result.is_success and OnFailure(on_failure) is OnFailure.Fail:
        click.echo(f"Scan finished with status {result.status.value}; failing the build.", err=True)
        sys.exit(1)
