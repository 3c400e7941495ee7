from __future__ import annotations

from typing import Any

from django.db import models


class ChatErrorCode(models.TextChoices):
    CHAT_NOT_FOUND = "CHAT_NOT_FOUND"
    NO_TICKET = "NO_TICKET"
    CHAT_DISABLED = "CHAT_DISABLED"
    USER_MUTED = "USER_MUTED"
    SLOW_MODE = "SLOW_MODE"
    MESSAGE_TOO_LONG = "MESSAGE_TOO_LONG"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    NOT_JOINED = "NOT_JOINED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_REQUEST = "INVALID_REQUEST"
    ERROR = "ERROR"


DEFAULT_MESSAGES = {
    ChatErrorCode.CHAT_NOT_FOUND: "Event chat does not exist",
    ChatErrorCode.NO_TICKET: "You need a ticket to join this chat",
    ChatErrorCode.CHAT_DISABLED: "Chat is currently disabled",
    ChatErrorCode.USER_MUTED: "You are muted",
    ChatErrorCode.SLOW_MODE: "Please wait before sending another message",
    ChatErrorCode.MESSAGE_TOO_LONG: "Maximum 1000 characters",
    ChatErrorCode.NOT_AUTHORIZED: "You cannot perform this action",
    ChatErrorCode.NOT_JOINED: "Join a chat first",
    ChatErrorCode.NOT_FOUND: "Not found",
}


def describe(code: str) -> str:
    return DEFAULT_MESSAGES.get(code, "An error occurred")


class ChatError(Exception):
    """A chat rule was violated; carries a stable code for both transports.

    Extra keyword arguments land in ``details`` (e.g. ``retry_after`` for
    slow-mode rejections).
    """

    def __init__(self, code: str, message: str = "", **details: Any):
        self.code = str(code)
        self.message = message or describe(self.code)
        self.details = details
        super().__init__(self.message)

    def as_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}
