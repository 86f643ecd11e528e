"""
Remote code execution for Code Amplifier.

Submits source code to a Judge0 CE compatible service, polls for the
verdict with a bounded number of status checks and formats the output.
"""

from .client import Judge0Client, ExecutionError, ExecutionTimeout
from .languages import language_id_for
from .submissions import SubmissionService, format_output

__all__ = [
    "Judge0Client",
    "ExecutionError",
    "ExecutionTimeout",
    "SubmissionService",
    "format_output",
    "language_id_for",
]
