"""swagpipe -- Resolve, validate and generate client code from Swagger 2.0 documents.

Every document goes through the same fixed pipeline: references into other
documents are inlined, the result is checked against the Swagger 2.0
specification, the remaining internal references are inlined, and the fully
resolved document is either written out as JSON or fed to a template-driven
code generator.

Typical workflow::

    swagpipe validate api/swagger.yaml
    swagpipe build api/swagger.yaml -o swagger.json
    swagpipe build api/swagger.yaml -o client.js --codegen node

Modules:
    app: Typer application and CLI entry point.
    pipeline: Per-document state machine driving every stage.
    config: Option precedence and configuration-time checks.
    models: Pydantic models shared across the entire package.
    parser: Document loading and ``$ref`` resolution.
    validation: Conformance checker and validation gate.
    codegen: Schema index, emitter settings and Jinja2 code generation.
    sinks: Destinations for finished artifacts.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
