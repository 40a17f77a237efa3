"""
GatewayConsumer: the WebSocket half of the GraphQL route.

One consumer instance owns one connection. Inbound frames are handled in
the order Channels delivers them; every outbound frame goes through a
single queue drained by one writer task, so concurrent subscriptions can
never interleave partial writes. Each subscription runs in its own task
and is cancelled on ``stop``/``complete`` or when the socket goes away.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Optional

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.http.cookie import parse_cookie

from ..core.exceptions import (
    GatewayError,
    HandshakeRejected,
    ProtocolViolation,
    TransportClosed,
)
from ..core.reporting import report_exception
from ..core.settings import GatewaySettings, get_gateway_settings
from ..engine.adapter import QueryEngineAdapter
from ..engine.operation import Operation
from ..engine.schema import get_schema
from ..security.csrf import (
    CSRFContext,
    CSRFDecision,
    CSRFValidator,
    check_csrf,
    token_from_payload,
)
from ..transport.classifier import classify_scope
from . import protocol
from .state import SessionEvent, SessionState, SessionStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Close:
    code: int


class GatewayConsumer(AsyncJsonWebsocketConsumer):
    """Serve GraphQL subscriptions (and one-shot operations) over WebSocket."""

    schema: Any = None
    gateway_settings: Optional[GatewaySettings] = None
    csrf_validator: Optional[CSRFValidator] = None

    def __init__(self, *args, **kwargs):
        # as_asgi(**initkwargs) lands here; the Channels base class drops them.
        for key in ("schema", "gateway_settings", "csrf_validator"):
            if key in kwargs:
                setattr(self, key, kwargs.pop(key))
        super().__init__(*args, **kwargs)
        self.machine = SessionStateMachine()
        self.operations: dict[str, asyncio.Task] = {}
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.vocabulary = protocol.TRANSPORT_WS
        self.settings: Optional[GatewaySettings] = None
        self.adapter: Optional[QueryEngineAdapter] = None
        self._writer: Optional[asyncio.Task] = None
        self._init_timer: Optional[asyncio.Task] = None
        self._keepalive: Optional[asyncio.Task] = None
        self._idle_timer: Optional[asyncio.Task] = None
        self._last_inbound = 0.0

    async def __call__(self, scope, receive, send):
        # Tasks must not outlive the session, even when a handler raised.
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self._release()

    # ------------------------------------------------------------------ #
    # Connection lifecycle
    # ------------------------------------------------------------------ #

    async def connect(self):
        self.settings = self.gateway_settings or get_gateway_settings()
        classification = classify_scope(self.scope, self.settings.subprotocols)
        if not classification.is_upgrade:
            logger.info("Refused WebSocket upgrade: %s", classification.reason)
            await self.close()
            return

        # Origin is not checked: the handshake's token check is the CSRF
        # defense for this transport.
        self.vocabulary = protocol.get_vocabulary(classification.subprotocol)
        self.adapter = QueryEngineAdapter(
            self.schema or get_schema(self.settings), settings=self.settings
        )
        await self.accept(classification.subprotocol)
        self.machine.apply(SessionEvent.UPGRADED)
        self._writer = asyncio.ensure_future(self._write_loop())
        if self.settings.connection_init_timeout:
            self._init_timer = asyncio.ensure_future(self._expire_handshake())
        logger.debug("WebSocket session opened with %s", classification.subprotocol)

    async def disconnect(self, code):
        await self._release()
        self.machine.apply(SessionEvent.SOCKET_CLOSED)
        logger.debug("WebSocket session closed with code %s", code)

    async def _shutdown(self, code: int) -> None:
        """Cancel every subscription, then ask the writer to close the socket."""
        if self.machine.can_apply(SessionEvent.CLOSE_REQUESTED):
            self.machine.apply(SessionEvent.CLOSE_REQUESTED)
        await self._cancel_operations()
        self._cancel_timers()
        self._send(_Close(code))

    def _cancel_timers(self) -> None:
        for task in (self._init_timer, self._keepalive, self._idle_timer):
            if task is not None and task is not asyncio.current_task():
                task.cancel()

    async def _release(self) -> None:
        await self._cancel_operations()
        self._cancel_timers()
        writer = self._writer
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            await asyncio.wait([writer])

    async def _expire_handshake(self) -> None:
        await asyncio.sleep(self.settings.connection_init_timeout)
        if self.machine.state is SessionState.HANDSHAKING:
            logger.info("connection_init not received in time, closing")
            self.machine.apply(SessionEvent.TIMED_OUT)
            self._send(_Close(protocol.CLOSE_INIT_TIMEOUT))

    async def _watch_idle(self) -> None:
        loop = asyncio.get_running_loop()
        timeout = self.settings.idle_timeout
        while True:
            remaining = self._last_inbound + timeout - loop.time()
            if remaining > 0:
                await asyncio.sleep(remaining)
                continue
            if not self.machine.is_acknowledged:
                return
            pinging = self._keepalive is not None and self.vocabulary.ping_type is not None
            if self.operations and not pinging:
                # Streaming to a client that has no reason to talk back.
                self._last_inbound = loop.time()
                continue
            logger.info("No frame received for %ss, closing idle session", timeout)
            await self._cancel_operations()
            self._cancel_timers()
            self.machine.apply(SessionEvent.TIMED_OUT)
            self._send(_Close(protocol.CLOSE_GOING_AWAY))
            return

    async def _keepalive_loop(self) -> None:
        while True:
            self._send({"type": self.vocabulary.keepalive_type})
            await asyncio.sleep(self.settings.keepalive_interval)

    # ------------------------------------------------------------------ #
    # Outbound
    # ------------------------------------------------------------------ #

    def _send(self, frame: Any) -> None:
        if self.machine.state is SessionState.CLOSED and not isinstance(frame, _Close):
            raise TransportClosed("WebSocket session is closed.")
        self.outbox.put_nowait(frame)

    async def _write_loop(self) -> None:
        while True:
            frame = await self.outbox.get()
            if isinstance(frame, _Close):
                await self.close(code=frame.code)
                return
            try:
                await self.send_json(frame)
            except Exception:
                logger.exception("Failed to write frame, closing WebSocket session")
                await self._abort_from_writer()
                return

    async def _abort_from_writer(self) -> None:
        """Close without the outbox: this task was the only thing draining it."""
        if self.machine.can_apply(SessionEvent.CLOSE_REQUESTED):
            self.machine.apply(SessionEvent.CLOSE_REQUESTED)
        await self._cancel_operations()
        self._cancel_timers()
        await self.close(code=protocol.CLOSE_INTERNAL_ERROR)

    # ------------------------------------------------------------------ #
    # Inbound
    # ------------------------------------------------------------------ #

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        if not self.machine.accepts_frames:
            return
        self._last_inbound = asyncio.get_running_loop().time()
        if text_data is None:
            await self._protocol_error(ProtocolViolation("Binary frames are not supported."))
            return
        try:
            message = await self.decode_json(text_data)
        except ValueError:
            await self._protocol_error(ProtocolViolation("Invalid JSON frame."))
            return
        await self.receive_json(message, **kwargs)

    async def receive_json(self, content, **kwargs):
        try:
            await self._dispatch(content)
        except ProtocolViolation as error:
            await self._protocol_error(error)

    async def _dispatch(self, message: Any) -> None:
        if not isinstance(message, dict) or not isinstance(message.get("type"), str):
            raise ProtocolViolation("Frames must be JSON objects with a string type.")
        message_type = message["type"]
        vocab = self.vocabulary

        if message_type == protocol.CONNECTION_INIT:
            await self._handle_init(message.get("payload"))
        elif message_type in vocab.start_types:
            await self._handle_start(message)
        elif message_type in vocab.stop_types:
            await self._handle_stop(message)
        elif vocab.ping_type and message_type == vocab.ping_type:
            self._send({"type": vocab.pong_type})
        elif vocab.pong_type and message_type == vocab.pong_type:
            pass
        elif vocab.terminate_type and message_type == vocab.terminate_type:
            await self._shutdown(protocol.CLOSE_NORMAL)
        else:
            operation_id = message.get("id")
            raise ProtocolViolation(
                f"Unknown message type {message_type}.",
                operation_id=operation_id if isinstance(operation_id, str) else None,
            )

    async def _protocol_error(self, error: ProtocolViolation) -> None:
        if error.operation_id is not None and self.machine.is_acknowledged:
            logger.info("Rejected frame for operation %s: %s", error.operation_id, error.message)
            self._send(
                self.vocabulary.error_frame(error.operation_id, [{"message": error.message}])
            )
            return

        if self.machine.state is SessionState.HANDSHAKING:
            self._send(protocol.connection_error(error.message))
        event = (
            SessionEvent.INIT_REJECTED
            if isinstance(error, HandshakeRejected)
            else SessionEvent.PROTOCOL_ERROR
        )
        if self.machine.can_apply(event):
            self.machine.apply(event)
        logger.info("Closing WebSocket session (%s): %s", error.close_code, error.message)
        await self._shutdown(error.close_code)

    # ------------------------------------------------------------------ #
    # Handshake
    # ------------------------------------------------------------------ #

    async def _handle_init(self, payload: Any) -> None:
        if self.machine.state is SessionState.ACKNOWLEDGED:
            raise ProtocolViolation(
                "Too many initialisation requests.", close_code=protocol.CLOSE_TOO_MANY_INIT
            )
        if self._init_timer is not None:
            self._init_timer.cancel()

        if self.settings.csrf_protection:
            try:
                decision = await database_sync_to_async(check_csrf)(
                    self.settings,
                    lambda: CSRFContext(
                        token=token_from_payload(payload),
                        cookies=self._cookies(),
                        source="payload",
                        session=self.scope.get("session"),
                    ),
                    self.csrf_validator,
                )
            except Exception as exc:
                logger.exception("CSRF validator failed during connection_init")
                report_exception(exc, transport="websocket", settings=self.settings)
                raise HandshakeRejected("CSRF token could not be verified.") from exc
            if decision is CSRFDecision.INVALID:
                raise HandshakeRejected("CSRF token missing or incorrect.")

        self.machine.apply(SessionEvent.INIT_ACCEPTED)
        self._send(protocol.connection_ack())
        if self.vocabulary.keepalive_type and self.settings.keepalive_interval:
            self._keepalive = asyncio.ensure_future(self._keepalive_loop())
        if self.settings.idle_timeout:
            self._last_inbound = asyncio.get_running_loop().time()
            self._idle_timer = asyncio.ensure_future(self._watch_idle())

    def _cookies(self) -> dict[str, str]:
        cookies = self.scope.get("cookies")
        if cookies is not None:
            return dict(cookies)
        for name, value in self.scope.get("headers") or []:
            if name == b"cookie":
                return parse_cookie(value.decode("latin-1"))
        return {}

    # ------------------------------------------------------------------ #
    # Subscriptions
    # ------------------------------------------------------------------ #

    async def _handle_start(self, message: dict[str, Any]) -> None:
        operation_id = message.get("id")
        if not isinstance(operation_id, str) or not operation_id:
            raise ProtocolViolation("Operation frames require a string id.")
        if not self.machine.is_acknowledged:
            raise ProtocolViolation("Unauthorized", close_code=protocol.CLOSE_UNAUTHORIZED)
        if operation_id in self.operations:
            raise ProtocolViolation(
                f"Subscriber for {operation_id} already exists",
                close_code=protocol.CLOSE_SUBSCRIBER_EXISTS,
            )
        try:
            operation = Operation.from_payload(message.get("payload"))
        except GatewayError as error:
            raise ProtocolViolation(error.message, operation_id=operation_id)

        self.machine.apply(SessionEvent.SUBSCRIPTION_STARTED)
        self.operations[operation_id] = asyncio.ensure_future(
            self._run_operation(operation_id, operation)
        )

    async def _handle_stop(self, message: dict[str, Any]) -> None:
        operation_id = message.get("id")
        task = self.operations.pop(operation_id, None) if isinstance(operation_id, str) else None
        if task is None:
            return
        self.machine.apply(SessionEvent.SUBSCRIPTION_STOPPED)
        task.cancel()
        await asyncio.wait([task])

    async def _run_operation(self, operation_id: str, operation: Operation) -> None:
        stream = self.adapter.execute(operation, self.get_context(operation_id))
        try:
            async for result in stream:
                if result.is_request_error:
                    # The operation never ran; the error frame ends it.
                    errors = result.formatted()["errors"]
                    self._send(self.vocabulary.error_frame(operation_id, errors))
                    return
                self._send(self.vocabulary.data_frame(operation_id, result.formatted()))
            self._send(self.vocabulary.complete_frame(operation_id))
        except TransportClosed:
            logger.debug("Dropped results for %s after the socket closed", operation_id)
        finally:
            await stream.aclose()
            if self.operations.get(operation_id) is asyncio.current_task():
                del self.operations[operation_id]

    async def _cancel_operations(self) -> None:
        tasks = list(self.operations.values())
        self.operations.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks)

    def get_context(self, operation_id: str) -> Any:
        """Context handed to resolvers; mirrors the HTTP request's ``user``."""
        return SimpleNamespace(
            scope=self.scope,
            user=self.scope.get("user"),
            operation_id=operation_id,
            consumer=self,
        )
