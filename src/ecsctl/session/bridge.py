"""Interactive sessions into running task containers.

The bridge walks RESOLVING -> REQUESTING -> BRIDGING -> TERMINATED. While
bridging, the relay owns the terminal; the bridge only waits for the relay
to exit or for an interrupt (SIGINT/SIGTERM or ``interrupt()``), and kills
the relay on interrupt. The relay is reaped on every exit path, including
cancellation of the awaiting task.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Sequence, Tuple, Union

from rich.console import Console

from ..contexts import Target
from ..exceptions import ValidationError
from ..remote.api import ControlPlaneAPI
from ..remote.containers import fetch_task, resolve_container
from ..shared import Session
from .port_forward import PortMapping, build_forward_command, parse_port_mapping
from .relay import RELAY_EXECUTABLE, RelayProcess, Spawn, locate_relay

__all__ = ["BridgeResult", "BridgeState", "SessionBridge"]

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class BridgeState(str, Enum):
    RESOLVING = "resolving"
    REQUESTING = "requesting"
    BRIDGING = "bridging"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class BridgeResult:
    container: str
    exit_code: Optional[int]
    interrupted: bool = False


class SessionBridge:
    def __init__(
        self,
        api: ControlPlaneAPI,
        target: Target,
        *,
        relay_executable: str = RELAY_EXECUTABLE,
        console: Optional[Console] = None,
        spawn: Spawn = asyncio.create_subprocess_exec,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        self._api = api
        self._target = target
        self._relay_executable = relay_executable
        self._console = console
        self._spawn = spawn
        self._signals = tuple(signals)
        self._interrupted = asyncio.Event()
        self.state = BridgeState.RESOLVING

    def interrupt(self) -> None:
        """Ask a running bridge to stop its relay."""
        self._interrupted.set()

    async def exec(
        self,
        task_id: str,
        command: str,
        *,
        container: Optional[str] = None,
        interactive: bool = True,
    ) -> BridgeResult:
        """Run ``command`` in a task container with the terminal attached."""
        if not command or not command.strip():
            raise ValidationError("you must specify a command to run in the container")
        if not interactive:
            # The execute-command API only supports interactive sessions.
            logger.debug("exec_forced_interactive task=%s", task_id)

        name = await self._resolve(task_id, container)
        self._say(f"Starting session with task {task_id}...")
        session = await self._request(task_id, name, command)
        return await self._bridge(session, name, ["Starting interactive session..."])

    async def port_forward(
        self,
        task_id: str,
        mapping: Union[PortMapping, str],
        *,
        container: Optional[str] = None,
    ) -> BridgeResult:
        """Relay the session's stdio to ``mapping.remote_port`` inside the container."""
        if isinstance(mapping, str):
            mapping = parse_port_mapping(mapping)

        name = await self._resolve(task_id, container)
        self._say(
            f"Forwarding local port {mapping.local_port} to container port "
            f"{mapping.remote_port} in task {task_id}..."
        )
        session = await self._request(
            task_id, name, build_forward_command(mapping.remote_port)
        )
        local, remote = mapping.local_port, mapping.remote_port
        return await self._bridge(
            session,
            name,
            [
                f"Forwarding from 127.0.0.1:{local} -> {remote}",
                f"Forwarding from [::1]:{local} -> {remote}",
                "Press Ctrl+C to stop port forwarding",
            ],
        )

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #
    async def _resolve(self, task_id: str, container: Optional[str]) -> str:
        self.state = BridgeState.RESOLVING
        self._interrupted.clear()
        if container:
            return container
        task = await fetch_task(self._api, task_id)
        name = resolve_container(task)
        self._say(f"Auto-detected container: {name}")
        return name

    async def _request(self, task_id: str, container: str, command: str) -> Session:
        self.state = BridgeState.REQUESTING
        try:
            session = await self._api.request_execution_session(
                task_id, container, command, interactive=True
            )
        except BaseException:
            self.state = BridgeState.TERMINATED
            raise
        logger.info(
            "session_granted task=%s container=%s session=%s",
            task_id,
            container,
            session.session_id,
        )
        return session

    async def _bridge(
        self, session: Session, container: str, announce: Sequence[str]
    ) -> BridgeResult:
        self.state = BridgeState.BRIDGING
        try:
            executable = locate_relay(self._relay_executable)
            for line in announce:
                self._say(line)
            async with RelayProcess(
                executable, session, self._target.region, spawn=self._spawn
            ) as relay:
                with self._signal_handlers():
                    exit_code, interrupted = await self._wait(relay)
        finally:
            self.state = BridgeState.TERMINATED

        if interrupted:
            self._say("Session stopped.")
        logger.info(
            "session_finished container=%s exit_code=%s interrupted=%s",
            container,
            exit_code,
            interrupted,
        )
        return BridgeResult(container=container, exit_code=exit_code, interrupted=interrupted)

    async def _wait(self, relay: RelayProcess) -> Tuple[Optional[int], bool]:
        exited = asyncio.ensure_future(relay.wait())
        stop = asyncio.ensure_future(self._interrupted.wait())
        try:
            done, _ = await asyncio.wait(
                {exited, stop}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in (exited, stop):
                if not waiter.done():
                    waiter.cancel()
        if exited in done:
            return exited.result(), False
        await relay.terminate()
        return relay.returncode, True

    @contextlib.contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        loop = asyncio.get_running_loop()
        installed = []
        for sig in self._signals:
            try:
                loop.add_signal_handler(sig, self.interrupt)
            except (NotImplementedError, RuntimeError, ValueError):
                # Windows, or not on the main thread.
                logger.debug("signal_handler_unavailable signal=%s", sig)
                continue
            installed.append(sig)
        try:
            yield
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    def _say(self, line: str) -> None:
        if self._console is not None:
            self._console.print(line, markup=False, highlight=False)
        else:
            logger.info(line)
