"""
Allocation engine for splitting a bill between its participants.

All amounts are integers in the currency's minor unit, so repeated splits and
redistributions never accumulate rounding error. The indivisible remainder of
any split is always assigned to the first participant (index 0), who is the
bill creator.

The engine tracks which shares were set by hand. Redistribution only moves
shares that were not, so manual edits survive recomputation. Edit flags live
on the shares themselves and are keyed by a stable ``participant_id``; indices
are only a view of the current order.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation

from apps.bills.services.exceptions import (
    AllManuallyEditedError,
    AlreadyBalancedError,
    AmountExceedsTotalError,
    InvalidInputError,
    NegativeAmountError,
    NoParticipantsError,
)

logger = logging.getLogger(__name__)

BASIS_POINTS = 10000


@dataclass
class ParticipantShare:
    """A single participant's share of the bill."""
    participant_id: str
    amount_to_pay: int = 0
    manually_edited: bool = False


@dataclass(frozen=True)
class AllocationStatus:
    total_amount: int
    participant_count: int
    total_assigned: int
    remaining: int  # positive -> under-allocated; negative -> over-allocated
    is_balanced: bool
    edited_count: int
    unedited_count: int


@dataclass(frozen=True)
class RedistributeReport:
    """Outcome of a redistribution; ``remaining`` is non-zero only if clamped."""
    adjusted_count: int
    adjustment_per_participant: int
    remainder_adjustment: int
    remaining: int
    is_balanced: bool
    clamped: tuple = field(default_factory=tuple)


def to_money(value, name='amount'):
    """
    Coerce *value* to an integer amount of minor units.

    Accepts ``int`` and integral ``Decimal`` values. Floats are refused
    outright, as are booleans.

    Raises
    ------
    InvalidInputError
        If *value* is not an exact integer amount.
    """
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise InvalidInputError(
            f'{name} must be an integer number of minor units, got {value!r}.'
        )
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidInputError(
                f'{name} must be an integer number of minor units, got {value}.'
            )
        return int(value)
    return value


def truncating_divmod(dividend, divisor):
    """
    Divide rounding toward zero, returning ``(quotient, remainder)``.

    The remainder has the same sign as *dividend*, so a negative imbalance
    never produces a positive adjustment.
    """
    quotient = abs(dividend) // divisor
    if dividend < 0:
        quotient = -quotient
    return quotient, dividend - quotient * divisor


def equal_split(total_amount, participant_count):
    """
    Split *total_amount* equally among *participant_count* participants.

    Parameters
    ----------
    total_amount : int
        Amount to split, in minor units. Must not be negative.
    participant_count : int
        Number of shares to produce. Must be positive.

    Returns
    -------
    list[int]
        One amount per participant. The first participant also receives the
        remainder, so the amounts always sum to *total_amount*.

    Raises
    ------
    InvalidInputError
        If *participant_count* is not positive or *total_amount* is negative.
    """
    total_amount = to_money(total_amount, 'total_amount')
    if isinstance(participant_count, bool) or not isinstance(participant_count, int):
        raise InvalidInputError('participant_count must be an integer.')
    if participant_count <= 0:
        raise InvalidInputError('participant_count must be greater than zero.')
    if total_amount < 0:
        raise InvalidInputError('total_amount must not be negative.')

    base = total_amount // participant_count
    remainder = total_amount - base * participant_count

    amounts = [base] * participant_count
    amounts[0] += remainder
    return amounts


def percentage_split(total_amount, percentages):
    """
    Split *total_amount* according to *percentages* (one per participant).

    Percentages may carry at most two decimal places and must sum to exactly
    100. Amounts are computed in whole basis points; the rounding remainder
    goes to the first participant.
    """
    total_amount = to_money(total_amount, 'total_amount')
    if total_amount < 0:
        raise InvalidInputError('total_amount must not be negative.')
    if not percentages:
        raise InvalidInputError('percentages must not be empty.')

    basis_points = []
    for pct in percentages:
        if isinstance(pct, bool):
            raise InvalidInputError(f'Invalid percentage: {pct!r}.')
        try:
            scaled = Decimal(str(pct)) * 100
        except InvalidOperation:
            raise InvalidInputError(f'Invalid percentage: {pct!r}.')
        if not scaled.is_finite() or scaled != scaled.to_integral_value():
            raise InvalidInputError(
                f'Percentages may have at most two decimal places, got {pct}.'
            )
        if scaled < 0 or scaled > BASIS_POINTS:
            raise InvalidInputError(f'Percentage {pct} is outside 0-100.')
        basis_points.append(int(scaled))

    if sum(basis_points) != BASIS_POINTS:
        raise InvalidInputError(
            f'Percentages must sum to 100, got {Decimal(sum(basis_points)) / 100}.'
        )

    amounts = [total_amount * bp // BASIS_POINTS for bp in basis_points]
    amounts[0] += total_amount - sum(amounts)
    return amounts


class AllocationEngine:
    """
    Owns the ordered participant shares of one bill and its total.

    The engine is the only mutator of its shares. Operations either complete
    or raise without changing anything.
    """

    def __init__(self, total_amount, shares=(), strict=True):
        """
        Parameters
        ----------
        total_amount : int
            Bill total in minor units.
        shares : iterable of ParticipantShare
            Initial shares in index order. They are copied.
        strict : bool
            When False, shares above the total are accepted as stored so the
            bill can still be inspected and reset. Amounts must still be
            non-negative integers.
        """
        total_amount = to_money(total_amount, 'total_amount')
        if total_amount < 0:
            raise InvalidInputError('total_amount must not be negative.')

        self._total_amount = total_amount
        self._shares = []
        seen = set()
        for share in shares:
            if strict:
                amount = self._validate_amount(share.amount_to_pay)
            else:
                amount = to_money(share.amount_to_pay)
                if amount < 0:
                    raise NegativeAmountError(amount)
            if share.participant_id in seen:
                raise InvalidInputError(
                    f'Duplicate participant id {share.participant_id!r}.'
                )
            seen.add(share.participant_id)
            self._shares.append(replace(share, amount_to_pay=amount))

    @classmethod
    def with_equal_split(cls, total_amount, participant_ids):
        """Build an engine and split *total_amount* equally between *participant_ids*."""
        engine = cls(
            total_amount,
            [ParticipantShare(participant_id=pid) for pid in participant_ids],
        )
        engine.equal_split()
        return engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def total_amount(self):
        return self._total_amount

    @property
    def participant_count(self):
        return len(self._shares)

    @property
    def shares(self):
        """A snapshot of the shares in index order."""
        return tuple(replace(share) for share in self._shares)

    def share_at(self, index):
        """A copy of the share at *index*; raises ``IndexError`` when out of range."""
        return replace(self._shares[self._check_index(index)])

    def status(self):
        total_assigned = sum(share.amount_to_pay for share in self._shares)
        remaining = self._total_amount - total_assigned
        edited_count = sum(1 for share in self._shares if share.manually_edited)
        return AllocationStatus(
            total_amount=self._total_amount,
            participant_count=len(self._shares),
            total_assigned=total_assigned,
            remaining=remaining,
            is_balanced=remaining == 0,
            edited_count=edited_count,
            unedited_count=len(self._shares) - edited_count,
        )

    # ------------------------------------------------------------------
    # Whole-bill operations
    # ------------------------------------------------------------------

    def equal_split(self):
        """
        Reset every share to an equal division of the total.

        Clears all manual edit flags. Returns the new amounts.
        """
        if not self._shares:
            raise InvalidInputError('Cannot split a bill with no participants.')

        amounts = equal_split(self._total_amount, len(self._shares))
        self._apply_reset(amounts)
        logger.debug(
            'Equal split of %s across %d participants: %s',
            self._total_amount, len(amounts), amounts,
        )
        return amounts

    def percentage_split(self, percentages):
        """
        Reset every share to the given percentage of the total.

        *percentages* is ordered like the shares. Clears all manual edit flags.
        """
        percentages = list(percentages)
        if len(percentages) != len(self._shares):
            raise InvalidInputError(
                f'Expected {len(self._shares)} percentages, got {len(percentages)}.'
            )

        amounts = percentage_split(self._total_amount, percentages)
        self._apply_reset(amounts)
        logger.debug('Percentage split of %s: %s', self._total_amount, amounts)
        return amounts

    def redistribute(self):
        """
        Spread the current imbalance over the shares not edited by hand.

        Each unedited share receives the same truncated adjustment and the
        first of them also takes the division remainder. Results are clamped
        at zero; any imbalance left by clamping is reported, not absorbed.

        Returns
        -------
        RedistributeReport

        Raises
        ------
        NoParticipantsError
            If the bill has no participants.
        AlreadyBalancedError
            If there is nothing to redistribute.
        AllManuallyEditedError
            If every share was set by hand.
        """
        if not self._shares:
            raise NoParticipantsError()

        remaining = self.status().remaining
        if remaining == 0:
            raise AlreadyBalancedError()

        unedited = [share for share in self._shares if not share.manually_edited]
        if not unedited:
            raise AllManuallyEditedError()

        adjustment, adjustment_remainder = truncating_divmod(remaining, len(unedited))

        # Compute everything before touching any share
        new_amounts = []
        clamped = []
        for position, share in enumerate(unedited):
            delta = adjustment + (adjustment_remainder if position == 0 else 0)
            value = share.amount_to_pay + delta
            if value < 0:
                clamped.append(share.participant_id)
                value = 0
            new_amounts.append(value)

        for share, amount in zip(unedited, new_amounts):
            share.amount_to_pay = amount

        after = self.status()
        if clamped:
            logger.warning(
                'Redistribution clamped %d share(s) at zero; %s still unallocated',
                len(clamped), after.remaining,
            )
        else:
            logger.debug(
                'Redistributed %s across %d participants', remaining, len(unedited),
            )

        return RedistributeReport(
            adjusted_count=len(unedited),
            adjustment_per_participant=adjustment,
            remainder_adjustment=adjustment_remainder,
            remaining=after.remaining,
            is_balanced=after.is_balanced,
            clamped=tuple(clamped),
        )

    def set_total_amount(self, new_total):
        """
        Change the bill total without touching any share.

        Refused if a share would then exceed the total.
        """
        new_total = to_money(new_total, 'total_amount')
        if new_total < 0:
            raise InvalidInputError('total_amount must not be negative.')
        for share in self._shares:
            if share.amount_to_pay > new_total:
                raise AmountExceedsTotalError(share.amount_to_pay, new_total)

        logger.info('Bill total changed from %s to %s', self._total_amount, new_total)
        self._total_amount = new_total

    # ------------------------------------------------------------------
    # Per-participant operations
    # ------------------------------------------------------------------

    def set_amount(self, index, new_amount):
        """Set one share by hand and mark it as manually edited."""
        share = self._shares[self._check_index(index)]
        share.amount_to_pay = self._validate_amount(new_amount)
        share.manually_edited = True

    def add_participant(self, participant_id=None, amount=0):
        """Append an unedited share and return a copy of it."""
        amount = self._validate_amount(amount)
        if participant_id is None:
            participant_id = str(uuid.uuid4())
        if any(share.participant_id == participant_id for share in self._shares):
            raise InvalidInputError(f'Duplicate participant id {participant_id!r}.')

        share = ParticipantShare(participant_id=participant_id, amount_to_pay=amount)
        self._shares.append(share)
        return replace(share)

    def remove_participant(self, index):
        """
        Remove the share at *index* and return it.

        Later shares move down one position together with their amounts and
        edit flags.
        """
        return self._shares.pop(self._check_index(index))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_index(self, index):
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f'Participant index must be an integer, got {index!r}.')
        if not 0 <= index < len(self._shares):
            raise IndexError(
                f'Participant index {index} out of range for {len(self._shares)} participant(s).'
            )
        return index

    def _validate_amount(self, amount):
        amount = to_money(amount)
        if amount < 0:
            raise NegativeAmountError(amount)
        if amount > self._total_amount:
            raise AmountExceedsTotalError(amount, self._total_amount)
        return amount

    def _apply_reset(self, amounts):
        for share, amount in zip(self._shares, amounts):
            share.amount_to_pay = amount
            share.manually_edited = False
