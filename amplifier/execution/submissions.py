"""
Submission lifecycle: create, poll until finished, format the output.
"""

import asyncio
import logging
from typing import Any, Dict

from .client import ExecutionError, ExecutionTimeout, Judge0Client

STATUS_IN_QUEUE = 1
STATUS_PROCESSING = 2
STATUS_ACCEPTED = 3

PENDING_STATUSES = (STATUS_IN_QUEUE, STATUS_PROCESSING)

NO_OUTPUT = "Program executed successfully with no output"


def format_output(result: Dict[str, Any]) -> str:
    """
    Render a finished submission the way the terminal panel shows it.

    Accepted runs show stdout. Anything else prefers compiler output,
    then stderr, then the status description.
    """
    status = result.get("status") or {}
    if status.get("id") == STATUS_ACCEPTED:
        return result.get("stdout") or NO_OUTPUT
    if result.get("compile_output"):
        return f"Compilation Error:\n{result['compile_output']}"
    if result.get("stderr"):
        return f"Runtime Error:\n{result['stderr']}"
    return f"Execution Error: {status.get('description', 'Unknown')}"


class SubmissionService:
    """Runs source code on the execution service and waits for the verdict."""

    def __init__(self, client: Judge0Client, poll_interval: float = 1.0, max_polls: int = 10):
        """
        Initialize the service.

        Args:
            client: Judge0Client used for all HTTP calls.
            poll_interval: Seconds to sleep between status checks.
            max_polls: Maximum number of status checks per submission.
        """
        self.client = client
        self.poll_interval = poll_interval
        self.max_polls = max(1, max_polls)

    async def wait_for(self, token: str) -> Dict[str, Any]:
        """
        Poll a submission until it leaves the queued/processing states.

        Raises:
            ExecutionTimeout: if it is still pending after max_polls checks.
        """
        for attempt in range(1, self.max_polls + 1):
            result = await self.client.get_submission(token)
            status_id = (result.get("status") or {}).get("id")
            if status_id not in PENDING_STATUSES:
                return result

            logging.debug(f"Submission {token} pending (status {status_id}), check {attempt}/{self.max_polls}")
            if attempt < self.max_polls:
                await asyncio.sleep(self.poll_interval)

        logging.error(f"Submission {token} still pending after {self.max_polls} checks")
        raise ExecutionTimeout(f"Submission {token} did not finish after {self.max_polls} status checks")

    async def run(self, source_code: str, language_id: int, stdin: str = "") -> Dict[str, Any]:
        """
        Execute source code and return the finished submission.

        Returns:
            Dict with token, status, status_id, output and the raw
            stdout/stderr/compile_output/time/memory fields.
        """
        created = await self.client.create_submission(source_code, language_id, stdin)
        token = created.get("token") if isinstance(created, dict) else None
        if not token:
            raise ExecutionError("Invalid response from execution service")

        result = await self.wait_for(token)
        status = result.get("status") or {}

        return {
            "token": token,
            "status": status.get("description", "Unknown"),
            "status_id": status.get("id"),
            "output": format_output(result),
            "stdout": result.get("stdout"),
            "stderr": result.get("stderr"),
            "compile_output": result.get("compile_output"),
            "time": result.get("time"),
            "memory": result.get("memory"),
        }
