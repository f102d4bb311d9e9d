"""CLI entrypoint for commit-scribe."""

import logging
import sys
from pathlib import Path

import rich_click as click

from commit_scribe import __version__
from commit_scribe.controllers import (
    EXIT_OK,
    CommitCliController,
    FilesCommand,
    GenerateCommand,
    SettingsOverrides,
)
from commit_scribe.git import GitCommandError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = CommitCliController()


@click.group()
@click.version_option(version=__version__, prog_name="commit-scribe")
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr.")
def commit_scribe(verbose: bool) -> None:
    """Generate git commit messages for staged changes with CLI LLM agents."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@commit_scribe.command("generate")
@click.option(
    "--repo",
    type=click.Path(path_type=Path, file_okay=False, exists=True),
    default=None,
    help="Path inside the git repository. Defaults to the current directory.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write the message to this file (e.g. from a prepare-commit-msg hook).",
)
@click.option("--analysis-model", default=None, help="Model for per-file analysis agents.")
@click.option("--synthesis-model", default=None, help="Model for the synthesis agent.")
@click.option("--single-call-model", default=None, help="Model for single-call generation.")
@click.option(
    "--threshold",
    type=click.IntRange(min=1),
    default=None,
    help="Staged file count at which map/reduce generation is used.",
)
@click.option(
    "--max-agents",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of analysis agents running at once.",
)
@click.option(
    "--file-context/--no-file-context",
    "include_file_context",
    default=None,
    help="Include staged file contents alongside the diff.",
)
@click.option("--quiet", "-q", is_flag=True, help="Do not print progress messages.")
def generate(  # noqa: PLR0913
    repo: Path | None,
    output_path: Path | None,
    analysis_model: str | None,
    synthesis_model: str | None,
    single_call_model: str | None,
    threshold: int | None,
    max_agents: int | None,
    include_file_context: bool | None,
    quiet: bool,
) -> None:
    """Generate a commit message for the staged changes."""

    command = GenerateCommand(
        repo=repo,
        output_path=output_path,
        quiet=quiet,
        overrides=SettingsOverrides(
            analysis_model=analysis_model,
            synthesis_model=synthesis_model,
            single_call_model=single_call_model,
            parallel_file_threshold=threshold,
            max_concurrent_agents=max_agents,
            include_file_context=include_file_context,
        ),
    )
    try:
        result = CONTROLLER.generate(command)
    except (GitCommandError, ValueError) as error:
        raise click.ClickException(str(error)) from error

    if result.exit_code != EXIT_OK:
        _emit_lines(result.lines, err=True)
        sys.exit(result.exit_code)
    _emit_lines(result.lines, err=output_path is not None)


@commit_scribe.command("files")
@click.option(
    "--repo",
    type=click.Path(path_type=Path, file_okay=False, exists=True),
    default=None,
    help="Path inside the git repository. Defaults to the current directory.",
)
@click.option(
    "--threshold",
    type=click.IntRange(min=1),
    default=None,
    help="Staged file count at which map/reduce generation is used.",
)
def files(repo: Path | None, threshold: int | None) -> None:
    """List staged files and the generation path they would take."""

    command = FilesCommand(
        repo=repo,
        overrides=SettingsOverrides(parallel_file_threshold=threshold),
    )
    try:
        lines = CONTROLLER.list_files(command)
    except (GitCommandError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str], *, err: bool = False) -> None:
    for line in lines:
        click.echo(line, err=err)


if __name__ == "__main__":  # pragma: no cover
    commit_scribe()
