from fastapi import HTTPException, status

from verisponsor.exceptions import (
    ChatError,
    ConversationNotFoundError,
    EmptyContentError,
    InvalidParticipantError,
    InvalidParticipantsError,
    UserNotFoundError,
)


def to_http_exception(exc: ChatError) -> HTTPException:
    if isinstance(exc, (ConversationNotFoundError, UserNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidParticipantError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, (EmptyContentError, InvalidParticipantsError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return HTTPException(status_code=code, detail=str(exc))
