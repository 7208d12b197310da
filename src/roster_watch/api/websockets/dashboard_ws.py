"""WebSocket handler streaming dashboard updates."""

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from roster_watch.services.dashboard import Dashboard
from roster_watch.services.dashboard_view import SUCCESS_TOAST, build_dashboard_view, refresh_label
from roster_watch.utils.license_normalizer import ALL_FILTER, FILTER_RULES

logger = logging.getLogger(__name__)

VALID_FILTERS = frozenset({ALL_FILTER, *FILTER_RULES})
QUEUE_MAXSIZE = 32


class DashboardConnection:
    """Per-connection filter state and outgoing queue."""

    def __init__(self, websocket: WebSocket, dashboard: Dashboard):
        self.websocket = websocket
        self.dashboard = dashboard
        self.shift_filter = ALL_FILTER
        self.search = ""
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=QUEUE_MAXSIZE)

    def enqueue(self, message: dict[str, Any]) -> None:
        """Queue an outgoing message without blocking.

        A new tick replaces any tick still queued. When the queue is full
        the oldest message is dropped.
        """
        if message.get("type") == "tick":
            kept = []
            while not self.queue.empty():
                queued = self.queue.get_nowait()
                if queued.get("type") != "tick":
                    kept.append(queued)
            for queued in kept:
                self.queue.put_nowait(queued)
        if self.queue.full():
            dropped = self.queue.get_nowait()
            logger.debug(f"Client is behind, dropped {dropped.get('type')} message")
        self.queue.put_nowait(message)

    def view_message(self) -> dict[str, Any]:
        view = build_dashboard_view(
            self.dashboard.view_state.snapshot,
            self.dashboard.scheduler.state.countdown,
            shift_filter=self.shift_filter,
            search=self.search,
        )
        return {"type": "view", **view.model_dump()}

    async def on_event(self, event: dict[str, Any]) -> None:
        """Scheduler listener: translate events into outgoing messages."""
        event_type = event.get("type")
        if event_type == "tick":
            snapshot = self.dashboard.view_state.snapshot
            self.enqueue({
                "type": "tick",
                "countdown": event["countdown"],
                "label": refresh_label(event["countdown"], snapshot),
            })
        elif event_type == "refresh_started":
            self.enqueue({"type": "loading", "reason": event.get("reason")})
        elif event_type == "refresh_complete":
            self.enqueue(self.view_message())
            if event.get("status") == "success":
                self.enqueue({"type": "toast", "message": SUCCESS_TOAST})


async def _handle_client_messages(connection: DashboardConnection) -> None:
    """Listen for refresh and filter intents from the page."""
    websocket = connection.websocket
    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received: {data}")
                continue
            if not isinstance(msg, dict):
                continue

            msg_type = msg.get("type")
            if msg_type == "refresh":
                accepted = connection.dashboard.scheduler.request_refresh("manual")
                if not accepted:
                    connection.enqueue({"type": "refresh_ignored"})

            elif msg_type == "filter":
                shift_filter = msg.get("filter", ALL_FILTER)
                if shift_filter not in VALID_FILTERS:
                    connection.enqueue({"type": "error", "message": f"Unknown filter: {shift_filter}"})
                    continue
                connection.shift_filter = shift_filter
                connection.search = str(msg.get("search") or "")[:100]
                connection.enqueue(connection.view_message())
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Error in dashboard client handler: {e}")


async def dashboard_websocket(websocket: WebSocket, dashboard: Dashboard | None) -> None:
    """Handle a dashboard WebSocket connection.

    Sends the current view on connect, then countdown ticks, refreshed
    views and toasts as the scheduler emits them.
    """
    if dashboard is None:
        await websocket.close(code=4003, reason="Dashboard is not enabled")
        return

    await websocket.accept()
    connection = DashboardConnection(websocket, dashboard)
    unsubscribe = dashboard.scheduler.subscribe(connection.on_event)
    client_task = asyncio.create_task(_handle_client_messages(connection))

    try:
        await websocket.send_json(connection.view_message())
        while not client_task.done():
            get_message = asyncio.create_task(connection.queue.get())
            done, _ = await asyncio.wait(
                {get_message, client_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if get_message not in done:
                get_message.cancel()
                break
            await websocket.send_json(get_message.result())
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"Dashboard stream closed: {e}")
    finally:
        unsubscribe()
        client_task.cancel()
        try:
            await client_task
        except asyncio.CancelledError:
            pass
