"""Exception hierarchy for swagpipe.

All exceptions inherit from :class:`SwagpipeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`swagpipe.exit_codes`.
The top-level error handler in :func:`swagpipe.app.main` catches
``SwagpipeError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SwagpipeError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 3)
    +-- ResolutionError     (exit 4)
    +-- CheckerError        (exit 5)
    +-- SchemaInvalidError  (exit 6)
    +-- CodegenError        (exit 7)
    +-- PipelineError       (exit code of the wrapped cause)
"""

from __future__ import annotations

from typing import Optional

from swagpipe.exit_codes import (
    EXIT_CHECKER_ERROR,
    EXIT_CODEGEN_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RESOLUTION_ERROR,
    EXIT_SCHEMA_INVALID,
)

DIAGNOSTIC_TAG = "swagpipe"
"""Tag prefixed to every error surfaced by the pipeline."""


class SwagpipeError(Exception):
    """Base exception for all swagpipe errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`swagpipe.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SwagpipeError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SwagpipeError):
    """Raised for configuration problems detected before any document is read.

    Examples are a missing output filename, a custom codegen without
    templates, or a template file that cannot be loaded.
    """

    exit_code = EXIT_CONFIG_ERROR


class ResolutionError(SwagpipeError):
    """Raised when a document cannot be loaded or a ``$ref`` cannot be resolved."""

    exit_code = EXIT_RESOLUTION_ERROR


class CheckerError(SwagpipeError):
    """Raised when the conformance checker itself fails to run."""

    exit_code = EXIT_CHECKER_ERROR


class SchemaInvalidError(SwagpipeError):
    """Raised by the validation gate when the document has conformance errors."""

    exit_code = EXIT_SCHEMA_INVALID


class CodegenError(SwagpipeError):
    """Raised for unknown generation modes and template rendering failures."""

    exit_code = EXIT_CODEGEN_ERROR


class PipelineError(SwagpipeError):
    """Diagnostic-tagged wrapper for any failure of a single pipeline run.

    The pipeline never lets a stage error escape bare: it is wrapped here so
    that callers receive one error type whatever stage failed. The exit code
    is copied from the wrapped cause when it is a :class:`SwagpipeError`.

    Args:
        message: Message of the underlying failure.
        stage: Name of the pipeline state that was being left when the
            failure happened (e.g. ``"partially_resolved"``).
        cause: The original exception, also available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        exit_code = cause.exit_code if isinstance(cause, SwagpipeError) else None
        super().__init__(message, exit_code=exit_code)
        self.message = message
        self.stage = stage
        self.cause = cause

    @property
    def tag(self) -> str:
        return DIAGNOSTIC_TAG

    def __str__(self) -> str:
        return f"[{DIAGNOSTIC_TAG}] {self.message}"
