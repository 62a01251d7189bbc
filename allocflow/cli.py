"""Typer based command line entry points for AllocFlow."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from allocflow.core.errors import AllocFlowError
from allocflow.core.logger import get_logger, set_level
from allocflow.core.profiles import ensure_work_dirs
from allocflow.services.backend.client import BackendClient
from allocflow.services.teacher_import import (
    ImportSession,
    UploadedFile,
    load_import_settings,
    render_summary,
    validation_errors_frame,
    write_error_report,
)

LOGGER = get_logger()

app = typer.Typer(help="Utility CLI for the teacher allocation system.")
teachers_app = typer.Typer(name="teachers", help="Bulk teacher import from spreadsheets.")
app.add_typer(teachers_app, name="teachers")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    try:
        set_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    LOGGER.debug("Log level set to %s", log_level.upper())


class ConsoleNotifier:
    """Prints session notifications to the terminal."""

    def success(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.GREEN)

    def error(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.RED, err=True)

    def warning(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.YELLOW, err=True)


def _resolve_client(profile: str) -> BackendClient:
    client = BackendClient.from_profile(profile)
    return client


def _open_session(profile: str, import_profile: str) -> tuple[BackendClient, ImportSession]:
    try:
        client = _resolve_client(profile)
    except AllocFlowError as exc:
        typer.secho(f"Unable to load backend configuration: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    session = ImportSession(
        client,
        notifier=ConsoleNotifier(),
        settings=load_import_settings(import_profile),
    )
    return client, session


def _prepare(session: ImportSession, file: Path) -> bool:
    """Run parse + validate and print the preview; ``True`` when the preview was reached."""

    asyncio.run(session.select_file(UploadedFile.from_path(file)))
    result = session.validation_result
    if session.step != "preview" or result is None:
        return False
    typer.echo(render_summary(result))
    return True


@teachers_app.command("validate")
def cmd_validate(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Teacher spreadsheet"),
    profile: str = typer.Option("default", "--profile", help="Backend profile name"),
    import_profile: str = typer.Option("default", "--import-profile", help="Import settings profile name"),
    export: Optional[Path] = typer.Option(None, "--export", help="Write validation findings to this CSV file"),
) -> None:
    """Parse and validate a spreadsheet without importing it."""

    client, session = _open_session(profile, import_profile)
    try:
        if not _prepare(session, file):
            raise typer.Exit(code=1)
        result = session.validation_result
        if export is not None:
            export.parent.mkdir(parents=True, exist_ok=True)
            validation_errors_frame(result).to_csv(export, index=False)
            typer.echo(f"Findings: {export}")
        if result.has_blocking_errors:
            raise typer.Exit(code=1)
    finally:
        client.close()


@teachers_app.command("import")
def cmd_import(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Teacher spreadsheet"),
    profile: str = typer.Option("default", "--profile", help="Backend profile name"),
    import_profile: str = typer.Option("default", "--import-profile", help="Import settings profile name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Import without asking for confirmation"),
    report_dir: Optional[Path] = typer.Option(
        None, "--report-dir", help="Directory for the CSV error report", resolve_path=True
    ),
) -> None:
    """Validate a spreadsheet and submit it for bulk import."""

    client, session = _open_session(profile, import_profile)
    try:
        if not _prepare(session, file):
            raise typer.Exit(code=1)
        if not session.can_import:
            typer.secho("Nothing was imported.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=1)

        count = len(session.validation_result.valid_rows)
        if not yes and not typer.confirm(f"Import {count} teachers?"):
            typer.echo("Import cancelled")
            raise typer.Exit(code=0)

        asyncio.run(session.confirm_import())
        response = session.import_results
        if response is None:
            raise typer.Exit(code=1)

        progress = session.import_progress
        typer.echo(f"Total rows: {response.total_rows}")
        typer.echo(f"Imported: {response.successful_rows}")
        typer.echo(f"Failed: {response.failed_rows}")
        typer.echo(f"Progress: {progress.percentage}%")

        target_dir = report_dir or ensure_work_dirs()["reports"]
        report = write_error_report(response, target_dir)
        if report is not None:
            typer.echo(f"Error report: {report}")
            LOGGER.info("CLI teacher import wrote error report: %s", report)
            raise typer.Exit(code=1)
    finally:
        client.close()


if __name__ == "__main__":
    app()
