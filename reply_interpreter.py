# -*- coding: utf-8 -*-
"""
Turn a raw chat-backend reply into something the assistant can act on.

The language model behind ``/chat`` answers in free text, but for showtime
lookups it embeds a JSON payload somewhere in that text, sometimes wrapped in
prose, sometimes followed by an apology. Parsing happens in two steps:

* :func:`parse_reply` splits the reply into a :class:`ReplyText` (nothing
  structured in it) or a :class:`ReplyAction` (payload + leftover prose).
* :func:`interpret` resolves the payload into an optional
  :class:`~models.ShowtimeOffer` and the text that should be shown to the
  user, using the dialogue stage to pick the right template.

A malformed payload never breaks the conversation: the reply is shown as is.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from models import ShowtimeOffer
from response_formatters import DEFAULT_TZ, format_offer_message

logger = logging.getLogger(__name__)

# first bracket-delimited block, greedy, across newlines
JSON_BLOCK_RE = re.compile(r"(\[.*\]|\{.*\})", re.DOTALL)


@dataclass(frozen=True)
class ReplyText:
    text: str
    kind: str = "text"


@dataclass(frozen=True)
class ReplyAction:
    payload: Any
    leftover: str
    raw: str
    kind: str = "action"


ParsedReply = Union[ReplyText, ReplyAction]


@dataclass(frozen=True)
class InterpretedReply:
    text: str
    offer: Optional[ShowtimeOffer] = None


def parse_reply(reply: str) -> ParsedReply:
    reply = reply or ""
    m = JSON_BLOCK_RE.search(reply)
    if not m:
        return ReplyText(reply)
    try:
        payload = json.loads(m.group(1))
    except ValueError:
        logger.warning("Reply contains a JSON-like block that does not parse; showing it as text")
        return ReplyText(reply)
    leftover = (reply[:m.start()] + reply[m.end():]).strip()
    return ReplyAction(payload=payload, leftover=leftover, raw=reply)


def _has_showtime_id(obj: Any) -> bool:
    return isinstance(obj, dict) and obj.get("showtime_id") not in (None, "")


def interpret(reply: str, *, confirming: bool, tz: str = DEFAULT_TZ) -> InterpretedReply:
    """
    Resolve a reply into display text + optional offer.

    Priority for the displayed text: stage template (when an offer is found)
    > ``error`` / ``message`` from the payload > leftover prose > raw reply.
    """
    parsed = parse_reply(reply)
    if isinstance(parsed, ReplyText):
        return InterpretedReply(text=parsed.text)

    text = parsed.leftover or parsed.raw
    try:
        payload = parsed.payload
        candidate = None
        if isinstance(payload, list):
            if payload:
                candidate = payload[0]
        elif isinstance(payload, dict):
            if _has_showtime_id(payload):
                candidate = payload
            elif payload.get("error"):
                text = str(payload["error"])
            elif payload.get("message"):
                text = str(payload["message"])

        if not _has_showtime_id(candidate):
            return InterpretedReply(text=text)

        offer = ShowtimeOffer.from_dict(candidate)
        return InterpretedReply(
            text=format_offer_message(offer, confirming=confirming, tz=tz),
            offer=offer,
        )
    except Exception:
        logger.exception("Could not interpret chat reply payload")
        return InterpretedReply(text=parsed.raw)
