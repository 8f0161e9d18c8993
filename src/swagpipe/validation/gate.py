"""Validation gate between partial and full reference resolution.

The gate runs the conformance checker exactly once, prints what it found,
and tells the pipeline whether to continue. Warnings are always shown but
never stop a build; a single error does.
"""

from __future__ import annotations

import enum
from typing import Any, Callable

from swagpipe.models import ValidationResult
from swagpipe.output import findings
from swagpipe.validation.checker import check_document

INVALID_SCHEMA_MESSAGE = "The Swagger schema is invalid"

Checker = Callable[[dict[str, Any]], ValidationResult]


class GateOutcome(str, enum.Enum):
    """Classification of one conformance check."""

    CLEAN = "clean"
    WARNINGS = "warnings"
    ERRORS = "errors"

    @property
    def should_abort(self) -> bool:
        return self is GateOutcome.ERRORS


def run_gate(document: dict[str, Any], checker: Checker = check_document) -> GateOutcome:
    """Check *document* and classify the result.

    Errors are printed before warnings so the failing findings come first.
    A :class:`~swagpipe.exceptions.CheckerError` raised by *checker* is not
    a finding and propagates unchanged.

    Args:
        document: The partially resolved document.
        checker: Conformance checker returning a
            :class:`~swagpipe.models.ValidationResult`.

    Returns:
        ``ERRORS`` when at least one error was reported, ``WARNINGS`` when
        only warnings were, ``CLEAN`` otherwise.
    """
    result = checker(document)

    findings("error", result.errors)
    findings("warning", result.warnings)

    if result.errors:
        return GateOutcome.ERRORS
    if result.warnings:
        return GateOutcome.WARNINGS
    return GateOutcome.CLEAN
