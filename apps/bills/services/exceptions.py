"""
Errors raised by the allocation engine.

Every error carries a short machine-readable ``code`` so the API layer can
surface it without inspecting the message. None of them leave the engine in
a partially updated state.
"""


class AllocationError(Exception):
    """Base class for all allocation engine errors."""
    code = 'allocation_error'
    default_message = 'The allocation could not be updated.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidInputError(AllocationError, ValueError):
    code = 'invalid_input'
    default_message = 'Invalid input.'


class AmountError(AllocationError, ValueError):
    """A participant amount is outside ``[0, total_amount]``."""
    code = 'invalid_amount'
    default_message = 'Invalid amount.'

    def __init__(self, amount, message=None):
        super().__init__(message)
        self.amount = amount


class NegativeAmountError(AmountError):
    code = 'negative'
    default_message = 'Amount cannot be negative.'


class AmountExceedsTotalError(AmountError):
    code = 'exceeds_total'
    default_message = 'Amount cannot exceed the bill total.'

    def __init__(self, amount, total_amount, message=None):
        super().__init__(
            amount,
            message or f'Amount {amount} exceeds the bill total of {total_amount}.',
        )
        self.total_amount = total_amount


class RedistributeError(AllocationError):
    code = 'redistribute_error'
    default_message = 'The imbalance could not be redistributed.'


class NoParticipantsError(RedistributeError):
    code = 'no_participants'
    default_message = 'The bill has no participants.'


class AlreadyBalancedError(RedistributeError):
    code = 'already_balanced'
    default_message = 'The bill is already balanced.'


class AllManuallyEditedError(RedistributeError):
    code = 'all_manually_edited'
    default_message = 'All amounts were set manually. Use equal split to reset.'
