"""Minimal Discord gateway listener for member update and removal events.

Only the happy path is implemented: connect, identify, heartbeat and dispatch.
Resume and reconnect are not supported; a RECONNECT or INVALID_SESSION opcode
ends the listener with ``GatewayError``.
"""

from __future__ import annotations

import asyncio
import json
import platform
from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import websockets
from pydantic import ValidationError

from .schema import GatewayPayload, HelloPayload
from .translator import route_dispatch

if TYPE_CHECKING:
    from rolesync.config.discord import DiscordConfig
    from rolesync.domain.events import EventDispatcher

log = getLogger(__name__)

OP_DISPATCH: Final = 0
OP_HEARTBEAT: Final = 1
OP_IDENTIFY: Final = 2
OP_RECONNECT: Final = 7
OP_INVALID_SESSION: Final = 9
OP_HELLO: Final = 10
OP_HEARTBEAT_ACK: Final = 11

INTENT_GUILD_MEMBERS: Final = 1 << 1

ReadyCallback = Callable[[], Awaitable[object]]


class GatewayError(RuntimeError):
    """Raised when the gateway session cannot continue."""


class GatewayListener:
    def __init__(
        self,
        config: DiscordConfig,
        dispatcher: EventDispatcher,
        *,
        on_ready: ReadyCallback | None = None,
        connect: Callable[[str], Any] = websockets.connect,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher
        self.on_ready = on_ready
        self._connect = connect
        self._sequence: int | None = None
        self._ready_task: asyncio.Task[object] | None = None

    async def run(self) -> None:
        async with self._connect(self.config.gateway_url) as websocket:
            hello = GatewayPayload.model_validate(json.loads(await websocket.recv()))
            if hello.op != OP_HELLO:
                raise GatewayError(f"Expected HELLO from gateway, got op {hello.op}")
            interval = HelloPayload.model_validate(hello.d).heartbeat_interval / 1000

            heartbeat = asyncio.create_task(self._heartbeat(websocket, interval))
            try:
                await websocket.send(json.dumps(self._identify_payload()))
                log.info("Connected to Discord gateway")
                async for message in websocket:
                    await self._handle(websocket, message)
            except BaseException:
                await self._cancel_ready_task()
                raise
            finally:
                heartbeat.cancel()
                await asyncio.gather(heartbeat, return_exceptions=True)

        if self._ready_task is not None:
            await self._ready_task

    async def _handle(self, websocket: Any, message: str | bytes) -> None:
        payload = GatewayPayload.model_validate(json.loads(message))
        if payload.s is not None:
            self._sequence = payload.s

        if payload.op == OP_DISPATCH:
            await self._dispatch(payload)
        elif payload.op == OP_HEARTBEAT:
            await websocket.send(json.dumps({"op": OP_HEARTBEAT, "d": self._sequence}))
        elif payload.op == OP_RECONNECT:
            raise GatewayError("Gateway requested a reconnect")
        elif payload.op == OP_INVALID_SESSION:
            raise GatewayError("Gateway invalidated the session")
        elif payload.op != OP_HEARTBEAT_ACK:
            log.debug("Ignoring gateway opcode %s", payload.op)

    async def _dispatch(self, payload: GatewayPayload) -> None:
        if payload.t == "READY":
            log.info("Gateway session ready")
            if self.on_ready is not None and self._ready_task is None:
                self._ready_task = asyncio.ensure_future(self.on_ready())
            return
        try:
            await route_dispatch(payload.t, payload.d, self.dispatcher)
        except ValidationError:
            log.exception("Malformed %s dispatch", payload.t)

    async def _cancel_ready_task(self) -> None:
        task = self._ready_task
        if task is None:
            return
        if not task.done():
            log.warning("Gateway session ended before the initial reconciliation finished")
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _heartbeat(self, websocket: Any, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await websocket.send(json.dumps({"op": OP_HEARTBEAT, "d": self._sequence}))

    def _identify_payload(self) -> dict[str, object]:
        return {
            "op": OP_IDENTIFY,
            "d": {
                "token": self.config.token,
                "intents": INTENT_GUILD_MEMBERS,
                "properties": {
                    "os": platform.system().lower(),
                    "browser": "rolesync",
                    "device": "rolesync",
                },
            },
        }
