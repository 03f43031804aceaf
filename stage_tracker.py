# -*- coding: utf-8 -*-
"""
Dialogue stage detection for the booking assistant.

The chat backend does not send an explicit state field, so the stage is
re-derived from the wording of the last bot turn. Every trigger phrase lives
in :class:`StageClassifier`; when the backend's reply templates change, this
is the only place that has to follow.
"""

from __future__ import annotations

import unicodedata
from typing import Iterable, Optional, Sequence

from constants import CONFIRMATION_TRIGGERS
from models import ChatTurn, Stage


def _nfc_lower(s: str) -> str:
    return unicodedata.normalize("NFC", s).lower()


class StageClassifier:
    def __init__(self, triggers: Iterable[str] = CONFIRMATION_TRIGGERS) -> None:
        self.triggers = tuple(_nfc_lower(t) for t in triggers)

    def is_confirmation_prompt(self, bot_text: str) -> bool:
        text = _nfc_lower(bot_text or "")
        return any(t in text for t in self.triggers)


DEFAULT_CLASSIFIER = StageClassifier()


def last_bot_turn(history: Sequence[ChatTurn]) -> Optional[ChatTurn]:
    for turn in reversed(history):
        if turn.sender == "bot":
            return turn
    return None


def stage_of(history: Sequence[ChatTurn], classifier: StageClassifier = DEFAULT_CLASSIFIER) -> Stage:
    turn = last_bot_turn(history)
    if turn is not None and classifier.is_confirmation_prompt(turn.text):
        return Stage.CONFIRMING
    return Stage.LOOKUP


def is_confirmation_stage(history: Sequence[ChatTurn],
                          classifier: StageClassifier = DEFAULT_CLASSIFIER) -> bool:
    return stage_of(history, classifier) is Stage.CONFIRMING
