# -*- coding: utf-8 -*-
"""
Chat side of the booking flow.

``BookingAssistant`` keeps the conversation for one user, forwards each
message (plus the last few turns) to the chat backend, interprets the reply
and remembers any showtime offer on the bot turn so the user can jump to seat
selection from it.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from api_clients import CinemaApiError
from booking_intent import build_booking_intent
from constants import UI_TEXT
from models import ChatTurn, NavigationIntent, Stage
from reply_interpreter import interpret
from response_formatters import DEFAULT_TZ
from stage_tracker import DEFAULT_CLASSIFIER, StageClassifier, is_confirmation_stage, stage_of

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10


class BookingAssistant:
    def __init__(self, client, auth, *, history_limit: int = HISTORY_LIMIT,
                 classifier: StageClassifier = DEFAULT_CLASSIFIER, tz: str = DEFAULT_TZ):
        self.client = client
        self.auth = auth
        self.history_limit = history_limit
        self.classifier = classifier
        self.tz = tz
        self.turns: List[ChatTurn] = []
        self._in_flight = threading.Lock()
        self._generation = 0
        self._greet()

    def _greet(self) -> None:
        self.turns = [ChatTurn(text=UI_TEXT["greeting"], sender="bot")]

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    @property
    def stage(self) -> Stage:
        return stage_of(self.turns, self.classifier)

    def reset(self) -> None:
        """Drop the conversation; replies still on the way are discarded."""
        self._generation += 1
        self._greet()

    def _bot(self, text: str, offer=None) -> ChatTurn:
        turn = ChatTurn(text=text, sender="bot", booking_data=offer)
        self.turns.append(turn)
        return turn

    def send(self, text: str) -> Optional[ChatTurn]:
        """
        Send one user message and return the bot turn that answers it.

        Returns None when nothing was sent: blank input, another message still
        in flight, or a reply that arrived after :meth:`reset`.
        """
        text = (text or "").strip()
        if not text:
            return None
        if not self._in_flight.acquire(blocking=False):
            logger.info("Message ignored, previous one still in flight")
            return None
        try:
            if not self.auth.is_authenticated:
                return self._bot(UI_TEXT["login_required"])

            # stage is decided by the bot turn the user is answering
            confirming = is_confirmation_stage(self.turns, self.classifier)
            self.turns.append(ChatTurn(text=text, sender="user"))
            history = [t.to_dict() for t in self.turns[-self.history_limit:]]
            generation = self._generation

            try:
                reply = self.client.chat(text, history, self.auth.token)
            except CinemaApiError as exc:
                logger.exception("Chat API call failed: %s", exc.message)
                if generation != self._generation:
                    return None
                return self._bot(UI_TEXT["chat_error"])

            if generation != self._generation:
                logger.info("Discarding chat reply for a reset conversation")
                return None

            result = interpret(reply, confirming=confirming, tz=self.tz)
            return self._bot(result.text, result.offer)
        finally:
            self._in_flight.release()

    def find_turn(self, turn_id: str) -> Optional[ChatTurn]:
        for turn in self.turns:
            if turn.id == turn_id:
                return turn
        return None

    def book(self, turn_id: str) -> Optional[NavigationIntent]:
        turn = self.find_turn(turn_id)
        if turn is None or turn.booking_data is None:
            logger.error("No booking data on chat turn %s", turn_id)
            return None
        return build_booking_intent(turn.booking_data)
