"""Errors raised by the messaging core."""


class ChatError(Exception):
    """Base class for recoverable messaging errors."""

    pass


class InvalidParticipantError(ChatError):
    """Sender or receiver is not a member of the conversation."""

    def __init__(self, user_id: str, conversation_id: str | None = None):
        self.user_id = user_id
        self.conversation_id = conversation_id
        if conversation_id:
            super().__init__(f"User '{user_id}' is not a valid participant of conversation '{conversation_id}'")
        else:
            super().__init__(f"User '{user_id}' cannot message themselves")


class InvalidParticipantsError(ChatError):
    """A conversation needs two distinct, non-empty participants."""

    def __init__(self, participant_a: str, participant_b: str):
        self.participants = (participant_a, participant_b)
        super().__init__(f"Cannot start a conversation between '{participant_a}' and '{participant_b}'")


class EmptyContentError(ChatError, ValueError):

    def __init__(self):
        super().__init__("Message content cannot be empty")


class ConversationNotFoundError(ChatError):

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation '{conversation_id}' not found")


class UserNotFoundError(ChatError):

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class InvalidTimestampError(ChatError, ValueError):
    """Timestamp cannot be ordered relative to the reference time."""

    def __init__(self, value, reason: str):
        self.value = value
        super().__init__(f"Invalid timestamp {value!r}: {reason}")
