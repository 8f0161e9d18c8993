"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~swagpipe.exceptions.SwagpipeError` subclass.
Build scripts can inspect the exit code to tell a broken configuration from
an invalid document without parsing stderr.

Example::

    $ swagpipe build api.yaml -o api.json
    $ echo $?
    6   # EXIT_SCHEMA_INVALID -- the document failed validation
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The run configuration is incomplete or contradictory."""

EXIT_RESOLUTION_ERROR = 4
"""The document could not be loaded or its ``$ref`` pointers could not be resolved."""

EXIT_CHECKER_ERROR = 5
"""The conformance checker itself failed (as opposed to reporting findings)."""

EXIT_SCHEMA_INVALID = 6
"""The document was checked and has at least one conformance error."""

EXIT_CODEGEN_ERROR = 7
"""Code generation failed (unknown mode, broken template)."""
