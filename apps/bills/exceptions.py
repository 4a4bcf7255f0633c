"""
API exceptions for the Bills app.

Maps allocation engine errors onto DRF exceptions so the project exception
handler renders them in the standard error envelope.
"""
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound

from apps.bills.services.exceptions import (
    AllManuallyEditedError,
    AmountError,
    InvalidInputError,
    NoParticipantsError,
)


class AllocationInputError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid allocation input.'
    default_code = 'invalid_input'


class AllocationConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The bill cannot be changed in its current state.'
    default_code = 'conflict'


class ParticipantNotFound(NotFound):
    default_detail = 'Participant not found.'
    default_code = 'participant_not_found'


def to_api_exception(exc):
    """Return the DRF exception matching an allocation engine error."""
    if isinstance(exc, (InvalidInputError, AmountError)):
        return AllocationInputError(detail=exc.message, code=exc.code)
    if isinstance(exc, (NoParticipantsError, AllManuallyEditedError)):
        return AllocationConflict(detail=exc.message, code=exc.code)
    if isinstance(exc, IndexError):
        return ParticipantNotFound(detail=str(exc))
    return APIException(detail=str(exc))
