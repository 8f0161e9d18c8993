"""Typer application factory and CLI entry point for swagpipe.

This module wires together the top-level Typer application and its three
commands:

* ``build`` -- run the full pipeline over one or more documents and write
  the resolved JSON or the generated code.
* ``validate`` -- resolve external references and report conformance
  findings, without writing anything.
* ``schemas`` -- print the per-operation schema index of a document.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`swagpipe.config`: Option precedence and configuration checks.
    :mod:`swagpipe.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from swagpipe import __version__
from swagpipe.exit_codes import EXIT_GENERIC_FAILURE
from swagpipe.models import CodegenMode


app = typer.Typer(
    name="swagpipe",
    help="Resolve, validate and generate code from Swagger 2.0 documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"swagpipe {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Report findings and data as JSON."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~swagpipe.output.OutputManager` from
    CLI flags.
    """
    from swagpipe.output import OutputFormat, OutputManager, set_output

    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)


@app.command("build")
def build_command(
    sources: list[str] = typer.Argument(
        ..., help="Swagger documents (paths, URLs, or '-' for stdin)."
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Artifact file name, or '-' for stdout."
    ),
    out_dir: str = typer.Option(
        ".", "--out-dir", "-d", help="Directory the artifact is written to."
    ),
    codegen: Optional[CodegenMode] = typer.Option(
        None, "--codegen", "-g", help="Generate code instead of JSON."
    ),
    template: Optional[str] = typer.Option(
        None, "--template", "-t", help="Single class template file."
    ),
    class_template: Optional[str] = typer.Option(
        None, "--class-template", help="Class template file."
    ),
    method_template: Optional[str] = typer.Option(
        None, "--method-template", help="Method template file."
    ),
    request_template: Optional[str] = typer.Option(
        None, "--request-template", help="Request template file."
    ),
    module_name: Optional[str] = typer.Option(
        None, "--module-name", help="Module name used by the templates."
    ),
    class_name: Optional[str] = typer.Option(
        None, "--class-name", help="Class name used by the templates."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Project config file (JSON or YAML)."
    ),
) -> None:
    """Resolve, validate and emit each document.

    Every document goes through its own independent pipeline run. The first
    failing document stops the command with that failure's exit code.
    Several documents share one output name, so they can only be built
    together onto stdout (``-o -``).

    Example::

        swagpipe build api/swagger.yaml -o swagger.json
        swagpipe build api/swagger.yaml -o client.js --codegen node
        swagpipe build api/swagger.yaml -o client.ts -t templates/client.j2
    """
    from swagpipe.config import configure, resolve_options
    from swagpipe.exceptions import InvalidUsageError, SwagpipeError
    from swagpipe.output import error, info, success
    from swagpipe.pipeline import SwaggerPipeline
    from swagpipe.sinks import FileSink, StdoutSink

    fragments = {
        "class": class_template,
        "method": method_template,
        "request": request_template,
    }
    cli_codegen: dict[str, Any] = {
        "type": codegen.value if codegen else None,
        "module_name": module_name,
        "class_name": class_name,
        "template": template or ({k: v for k, v in fragments.items() if v} or None),
    }

    try:
        if template and any(fragments.values()):
            raise InvalidUsageError(
                "Use either --template or --class/--method/--request-template, not both"
            )
        options = resolve_options(
            cli_filename=output, cli_codegen=cli_codegen, config_path=config_path
        )
        config = configure(options)
        to_stdout = config.filename == "-"
        if len(sources) > 1 and not to_stdout:
            raise InvalidUsageError(
                f"{len(sources)} documents would all be written to {config.filename}; "
                "build them one at a time or use -o -"
            )
        sink = StdoutSink() if to_stdout else FileSink(out_dir)
        pipeline = SwaggerPipeline(config, sink=sink)

        for source in sources:
            info(f"Processing {source}")
            pipeline.run(source)
            if isinstance(sink, FileSink):
                success(f"Wrote {sink.written[-1]}")
    except SwagpipeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@app.command("validate")
def validate_command(
    source: str = typer.Argument(..., help="Swagger document to check."),
) -> None:
    """Resolve external references and report conformance findings.

    Exits with status 6 when the document has errors; warnings alone exit 0.
    """
    from swagpipe.exceptions import SwagpipeError
    from swagpipe.models import PipelineConfig
    from swagpipe.output import error, success, warning
    from swagpipe.pipeline import SwaggerPipeline
    from swagpipe.validation import GateOutcome

    try:
        outcome = SwaggerPipeline(PipelineConfig(filename=source)).start(source).validate()
    except SwagpipeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if outcome is GateOutcome.WARNINGS:
        warning(f"{source} is valid, with warnings")
    else:
        success(f"{source} is valid")


@app.command("schemas")
def schemas_command(
    source: str = typer.Argument(..., help="Swagger document to index."),
) -> None:
    """Print the request/response schema of every operation as JSON."""
    from swagpipe.exceptions import SwagpipeError
    from swagpipe.models import PipelineConfig
    from swagpipe.output import error, format_response
    from swagpipe.pipeline import SwaggerPipeline

    run = SwaggerPipeline(PipelineConfig(filename=source)).start(source)
    try:
        run.resolve()
    except SwagpipeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(run.schema_index())


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from swagpipe.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``swagpipe`` console script.

    Unhandled :class:`~swagpipe.exceptions.SwagpipeError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from swagpipe.exceptions import SwagpipeError
        from swagpipe.output import error

        if isinstance(exc, SwagpipeError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
