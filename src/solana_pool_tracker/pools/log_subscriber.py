"""
log_subscriber.py

Websocket logsSubscribe client. Calls a handler with the signature of every
finalized, successful transaction whose logs contain a marker string.

Delivery is at-least-once: a signature seen before a reconnect can be
delivered again after it.
"""

import itertools
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import websocket

from solana_pool_tracker.constants import COMMITMENT_FINALIZED

logger = logging.getLogger(__name__)

SignatureHandler = Callable[[str], None]


@dataclass
class LogSubscription:
    program_id: str
    marker: str
    handler: SignatureHandler
    commitment: str = COMMITMENT_FINALIZED
    subscription_id: Optional[int] = None

    def request(self, request_id: int) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "logsSubscribe",
            "params": [
                {"mentions": [self.program_id]},
                {"commitment": self.commitment},
            ],
        }


def match_notification(value: dict, marker: str) -> Optional[str]:
    """
    Signature of a logs notification value if it succeeded and mentions marker.
    """
    if not value or value.get("err") or not value.get("logs"):
        return None
    if any(marker in log for log in value["logs"]):
        return value.get("signature")
    return None


class LogSubscriber:
    """
    Keeps one websocket open on a daemon thread and reconnects with
    exponential backoff when it drops.
    """

    def __init__(self, wss_url: str, reconnect_delay: float = 5, max_reconnect_delay: float = 60):
        self.wss_url = wss_url
        self.initial_reconnect_delay = reconnect_delay
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay

        self.subscriptions: List[LogSubscription] = []
        self._pending: Dict[int, LogSubscription] = {}
        self._active: Dict[int, LogSubscription] = {}
        self._lock = threading.Lock()
        self._request_ids = itertools.count(1)

        self.ws = None
        self.ws_thread = None
        self.is_running = False
        self.notifications_received = 0

    def subscribe(self, program_id: str, marker: str, handler: SignatureHandler,
                  commitment: str = COMMITMENT_FINALIZED) -> LogSubscription:
        """Register a handler and make sure the connection is running."""
        subscription = LogSubscription(program_id, marker, handler, commitment)
        with self._lock:
            self.subscriptions.append(subscription)
        if self.is_running and self.ws is not None and self.ws.sock is not None:
            self._send_subscription(self.ws, subscription)
        self.start()
        return subscription

    def start(self) -> None:
        if self.is_running:
            return
        self.is_running = True
        self.ws_thread = threading.Thread(target=self._run, name="log-subscriber", daemon=True)
        self.ws_thread.start()
        logger.info(f"Log subscriber started on {self.wss_url}")

    def stop(self) -> None:
        self.is_running = False
        if self.ws:
            self.ws.close()
        logger.info("Log subscriber stopped")

    def _run(self) -> None:
        while self.is_running:
            try:
                self._connect()
            except Exception as e:
                logger.error(f"Websocket connection error: {e}")

            if self.is_running:
                logger.info(f"Reconnecting in {self.reconnect_delay} seconds...")
                time.sleep(self.reconnect_delay)
                self.reconnect_delay = min(self.reconnect_delay * 2, self.max_reconnect_delay)

    def _connect(self) -> None:
        self.ws = websocket.WebSocketApp(
            self.wss_url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        self.ws.run_forever(ping_interval=60, ping_timeout=10)

    def _send_subscription(self, ws, subscription: LogSubscription) -> None:
        with self._lock:
            request_id = next(self._request_ids)
            self._pending[request_id] = subscription
        ws.send(json.dumps(subscription.request(request_id)))
        logger.info(f"Subscribing to logs mentioning {subscription.program_id} ({subscription.commitment})")

    def _on_open(self, ws) -> None:
        logger.info("Websocket connection established")
        self.reconnect_delay = self.initial_reconnect_delay
        with self._lock:
            self._pending.clear()
            self._active.clear()
            subscriptions = list(self.subscriptions)
        for subscription in subscriptions:
            self._send_subscription(ws, subscription)

    def _on_message(self, ws, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"Discarding non-JSON websocket message: {message[:200]}")
            return
        self.handle_message(data)

    def handle_message(self, data: dict) -> None:
        """Route a decoded websocket message: subscription acks and log notifications."""
        if "id" in data and "result" in data:
            with self._lock:
                subscription = self._pending.pop(data["id"], None)
                if subscription is not None:
                    subscription.subscription_id = data["result"]
                    self._active[data["result"]] = subscription
            if subscription is not None:
                logger.info(f"Subscription confirmed: {data['result']}")
            return

        if "error" in data:
            logger.error(f"Subscription error: {data['error']}")
            return

        if data.get("method") != "logsNotification":
            return

        params = data.get("params") or {}
        with self._lock:
            subscription = self._active.get(params.get("subscription"))
        if subscription is None:
            return

        self.notifications_received += 1
        value = (params.get("result") or {}).get("value") or {}
        signature = match_notification(value, subscription.marker)
        if signature is None:
            return

        try:
            subscription.handler(signature)
        except Exception:
            logger.exception(f"Handler failed for signature {signature}")

    def _on_error(self, ws, error) -> None:
        logger.error(f"Websocket error: {error}")

    def _on_close(self, ws, close_status_code, close_msg) -> None:
        logger.warning(f"Websocket closed: {close_status_code} {close_msg}")
