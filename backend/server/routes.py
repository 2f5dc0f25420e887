"""
Route registration for the cycle player API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Serve live object URLs to the client's audio element
- Wire gateway to WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import json

from fastapi import FastAPI, HTTPException, Response, WebSocket, WebSocketDisconnect

from constants import OBJECT_URL_PREFIX
from observability.logger import log_event
from playback.object_urls import ObjectUrlStore
from session.gateway import GatewayResult, PlayerGateway


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get(OBJECT_URL_PREFIX + "/{token}")
    async def object_url(token: str) -> Response: # pyright: ignore[reportUnusedFunction]
        store: ObjectUrlStore = app.state.url_store
        blob = store.get(token)
        if blob is None:
            raise HTTPException(status_code=404, detail="Object URL revoked or unknown")
        return Response(content=blob.data, media_type=blob.mime_type)

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = PlayerGateway(
            config=app.state.config,
            catalog=app.state.catalog,
            url_store=app.state.url_store,
        )

        # Serializes drain + send between the receive loop and the pump
        send_lock = asyncio.Lock()
        pump: asyncio.Task[None] | None = None

        try:
            result = await gateway.on_ws_connect()
            await _flush_gateway_result(ws, result)

            pump = asyncio.create_task(_pump_control(ws, gateway, send_lock))

            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect()

                if "text" in msg and msg["text"] is not None:
                    async with send_lock:
                        result = await gateway.on_json_message(msg["text"])
                        await _flush_gateway_result(ws, result)

        except WebSocketDisconnect:
            await _stop_pump(pump)
            await gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "session_id": gateway.session.session_id if gateway.session else None,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            await _stop_pump(pump)
            await gateway.on_ws_disconnect(reason="server_error")


async def _pump_control(
    ws: WebSocket,
    gateway: PlayerGateway,
    send_lock: asyncio.Lock,
) -> None:
    """
    Deliver control messages produced outside a client request
    (device commands, cycle events) as soon as they are queued.
    """
    while True:
        await gateway.wait_outbound()
        async with send_lock:
            await _flush_gateway_result(ws, gateway.drain_outbound())


async def _stop_pump(pump: asyncio.Task[None] | None) -> None:
    if pump is None:
        return
    pump.cancel()
    try:
        await pump
    except asyncio.CancelledError:
        pass
    except Exception as exc:  # pylint: disable=broad-exception-caught
        # Usually a send on a socket the client already closed
        log_event({
            "event_type": "CONTROL_PUMP_ERROR",
            "exception": type(exc).__name__,
            "message": str(exc),
        })


async def _flush_gateway_result(
    ws: WebSocket,
    result: GatewayResult,
) -> None:
    for msg in result.outbound_json:
        await ws.send_text(json.dumps(msg))
