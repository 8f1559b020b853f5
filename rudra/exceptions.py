"""Exceptions raised across the server and the client."""


class RudraError(Exception):
    """Base class for application errors."""


class UnauthorizedError(RudraError):
    """The caller has no resolvable identity."""


class BadRequestError(RudraError):
    """The request is missing something required, such as a chat id."""


class ConversationNotFoundError(RudraError):
    """The conversation does not exist or belongs to someone else.

    The two cases are deliberately indistinguishable to the caller.
    """

    def __init__(self, chat_id: str):
        super().__init__(f"Conversation not found: {chat_id}")
        self.chat_id = chat_id


class ChatTransportError(RudraError):
    """A turn could not be streamed because the server answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
