"""
Native helper subprocess runner for bumpwise.

Lockfile graph analysis is delegated to ecosystem helpers run as isolated
processes. A helper receives ``{"function": ..., "args": [...]}`` as JSON
on stdin and answers with ``{"result": ...}`` or ``{"error": ...}`` on
stdout. Anything else, including a timeout, raises
:class:`~bumpwise.exceptions.HelperSubprocessFailed`.
"""

from __future__ import annotations

import json
import asyncio
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from bumpwise.constants import DEFAULT_RESOLVER_TIMEOUT
from bumpwise.exceptions import HelperSubprocessFailed
from bumpwise.utils.logger import get_logger

logger = get_logger("subprocess")


async def run_helper_subprocess(
    command: Sequence[str],
    function: str,
    args: Sequence[Any],
    *,
    cwd: Union[str, Path, None] = None,
    timeout: Optional[float] = DEFAULT_RESOLVER_TIMEOUT,
) -> Any:
    """Run a native helper function and return its ``result`` payload.

    Args:
        command: Helper executable and fixed arguments.
        function: Helper function name (``"npm:findConflictingDependencies"``).
        args: Positional arguments for the helper function.
        cwd: Working directory for the helper process.
        timeout: Seconds before the process is killed; ``None`` waits forever.

    Returns:
        Decoded ``result`` value from the helper's response.

    Raises:
        HelperSubprocessFailed: The process could not start, exited
            non-zero, timed out, or returned an error or invalid JSON.
    """
    if not command:
        raise HelperSubprocessFailed("No helper command configured", function=function)

    payload = json.dumps({"function": function, "args": list(args)}).encode("utf-8")
    logger.debug("Running helper %s %s in %s", function, list(args), cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
        )
    except OSError as exc:
        raise HelperSubprocessFailed(
            f"Failed to start helper: {exc}",
            command=command,
            function=function,
        ) from exc

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(payload), timeout=timeout
        )
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise HelperSubprocessFailed(
            f"Helper timed out after {timeout}s",
            command=command,
            function=function,
        ) from exc

    stderr_text = stderr.decode("utf-8", errors="replace")
    if process.returncode != 0:
        raise HelperSubprocessFailed(
            "Helper exited with a non-zero status",
            command=command,
            function=function,
            exit_code=process.returncode,
            stderr=stderr_text,
        )

    try:
        response = json.loads(stdout.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HelperSubprocessFailed(
            "Helper returned invalid JSON",
            command=command,
            function=function,
            exit_code=process.returncode,
            stderr=stderr_text,
        ) from exc

    if not isinstance(response, dict) or "error" in response:
        message = response.get("error") if isinstance(response, dict) else response
        raise HelperSubprocessFailed(
            f"Helper reported an error: {message}",
            command=command,
            function=function,
            exit_code=process.returncode,
            stderr=stderr_text,
        )

    return response.get("result")
