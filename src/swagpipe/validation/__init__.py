"""Conformance checking and the validation gate.

* :mod:`~swagpipe.validation.checker` -- checks a Swagger 2.0 document and
  returns errors and warnings.
* :mod:`~swagpipe.validation.gate` -- prints the findings and decides
  whether the pipeline may continue.
"""

from swagpipe.validation.checker import check_document
from swagpipe.validation.gate import INVALID_SCHEMA_MESSAGE, GateOutcome, run_gate

__all__ = ["check_document", "run_gate", "GateOutcome", "INVALID_SCHEMA_MESSAGE"]
