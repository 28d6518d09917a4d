"""
Client side of the feedback relay.

The relay is a tiny state machine, IDLE -> AWAITING -> IDLE, with a single
in-flight slot. Listeners are told about each transition so a front end can
disable its save/clear controls and show a progress indicator. Every failure
(transport, timeout, non-2xx status, malformed payload) ends in a fixed
fallback message; nothing escapes to the caller except RelayBusyError when a
second request is attempted while one is outstanding.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable

import httpx
from pydantic import ValidationError

from .config import RELAY_TIMEOUT_SECONDS, RELAY_URL
from .schemas import RelayReply, RelayRequest

logger = logging.getLogger("moodflow.relay")

FALLBACK_MESSAGE = "AI unavailable right now, but you’re doing great ❤️"
EMPTY_REPLY_MESSAGE = "✨ AI replied but no text was returned."
LOADING_MESSAGE = "Preparing a response…"


class RelayState(enum.Enum):
    IDLE = "idle"
    AWAITING = "awaiting-response"


class RelayBusyError(RuntimeError):
    """A feedback request is already outstanding."""


StateListener = Callable[[RelayState], None]


class FeedbackRelay:
    def __init__(
        self,
        url: str = RELAY_URL,
        timeout: float = RELAY_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._slot = threading.Lock()
        self._listeners: list[StateListener] = []
        self.state = RelayState.IDLE

    @property
    def busy(self) -> bool:
        return self.state is RelayState.AWAITING

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: RelayState) -> None:
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Relay state listener failed")

    async def reflect(self, mood: int, note: str) -> str:
        """Send one check-in and return the text to show the user."""
        if not self._slot.acquire(blocking=False):
            raise RelayBusyError("A feedback request is already in progress.")
        try:
            self._set_state(RelayState.AWAITING)
            return await self._request(mood, note)
        finally:
            self._set_state(RelayState.IDLE)
            self._slot.release()

    async def _request(self, mood: int, note: str) -> str:
        try:
            payload = RelayRequest(mood_value=mood, note=note).to_wire()
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=payload)
            resp.raise_for_status()
            reply = RelayReply.model_validate(resp.json()).reply
        except httpx.HTTPError as e:
            logger.warning("Relay request to %s failed: %s", self.url, e)
            return FALLBACK_MESSAGE
        except (ValueError, ValidationError) as e:
            # json decode errors are ValueErrors too
            logger.warning("Relay returned an unusable payload: %s", e)
            return FALLBACK_MESSAGE
        except Exception:
            logger.exception("Unexpected relay failure")
            return FALLBACK_MESSAGE

        return reply.strip() or EMPTY_REPLY_MESSAGE
