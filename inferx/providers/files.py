"""Polling for uploaded-file activation.

Media uploaded to a provider's file API is processed asynchronously;
a chat request may only reference it once it is ACTIVE.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum

logger = logging.getLogger(__name__)


class FileState(StrEnum):
    STATE_UNSPECIFIED = "STATE_UNSPECIFIED"
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


class FileActivationError(RuntimeError):
    """The provider reported that file processing failed."""


class FileActivationTimeout(FileActivationError, TimeoutError):
    """The file did not become active before the deadline."""


async def wait_for_file_active(
    poll: Callable[[], Awaitable[FileState | None]],
    *,
    timeout: float = 120.0,
    initial_delay: float = 1.0,
    max_delay: float = 15.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> FileState:
    """Poll until a file is ACTIVE, backing off exponentially.

    Args:
        poll: Coroutine returning the current state, or None when the
              status query itself failed (treated as still pending).
        timeout: Hard wall-clock limit in seconds.
        initial_delay: First sleep between polls.
        max_delay: Cap for the doubled delay.

    Returns:
        FileState.ACTIVE.

    Raises:
        FileActivationError: If the provider reports FAILED.
        FileActivationTimeout: If the deadline passes first.
    """
    start = clock()
    delay = initial_delay
    attempt = 0

    while clock() - start < timeout:
        state = await poll()
        attempt += 1
        if state == FileState.ACTIVE:
            return state
        if state == FileState.FAILED:
            raise FileActivationError("File processing failed with status FAILED.")

        if clock() - start + delay > timeout:
            break
        logger.debug("File not active after attempt %d (%s), waiting %.1fs", attempt, state, delay)
        await sleep(delay)
        delay = min(delay * 2, max_delay)

    raise FileActivationTimeout(f"Wait for file activation timed out after {timeout:.0f}s.")
