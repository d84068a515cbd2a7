"""The external relay process that carries one session.

``RelayProcess`` is an async context manager: entering claims the
session and spawns the relay with the caller's terminal attached;
leaving kills the relay if it is still running and reaps it, whatever
the exit path.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional

from ..exceptions import RelayNotFoundError
from ..shared import Session
from ..utils.platform_utils import find_executable, relay_install_hint

__all__ = [
    "RELAY_EXECUTABLE",
    "START_SESSION",
    "RelayProcess",
    "locate_relay",
    "relay_arguments",
    "relay_payload",
]

logger = logging.getLogger(__name__)

RELAY_EXECUTABLE = "session-manager-plugin"
START_SESSION = "StartSession"

Spawn = Callable[..., Awaitable[Any]]


def locate_relay(executable: str = RELAY_EXECUTABLE) -> str:
    path = find_executable(executable)
    if path is None:
        raise RelayNotFoundError(executable, relay_install_hint())
    return path


def relay_payload(session: Session) -> str:
    """JSON document the relay reads its session from."""
    return json.dumps(
        {
            "sessionId": session.session_id,
            "streamUrl": session.stream_url,
            "tokenValue": session.token,
            "clientMode": "interactive",
            "responseMode": "json",
        }
    )


def relay_arguments(session: Session, region: str) -> List[str]:
    return [relay_payload(session), region, START_SESSION]


class RelayProcess:
    """One relay child bound to one session."""

    def __init__(
        self,
        executable: str,
        session: Session,
        region: str,
        *,
        spawn: Spawn = asyncio.create_subprocess_exec,
    ) -> None:
        self.executable = executable
        self.session = session
        self.region = region
        self._spawn = spawn
        self.process: Optional[Any] = None

    @property
    def returncode(self) -> Optional[int]:
        return None if self.process is None else self.process.returncode

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def __aenter__(self) -> "RelayProcess":
        args = relay_arguments(self.session.claim(), self.region)
        # stdin/stdout/stderr are inherited: full terminal passthrough.
        self.process = await self._spawn(self.executable, *args)
        logger.info(
            "relay_started pid=%s session=%s",
            getattr(self.process, "pid", None),
            self.session.session_id,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.terminate()

    async def wait(self) -> int:
        if self.process is None:
            raise RuntimeError("relay process not started")
        return await self.process.wait()

    async def terminate(self) -> None:
        """Kill the relay if it is still running and reap it."""
        if self.process is None:
            return
        if self.process.returncode is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
            logger.info("relay_killed pid=%s", getattr(self.process, "pid", None))
        await self.process.wait()
