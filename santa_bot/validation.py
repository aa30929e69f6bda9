import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence, Union

from .errors import IncompleteParticipant, InvalidEmail, ValidationError
from .models import EventDetails, Participant

# Deliberately loose: local@domain.tld, no whitespace, exactly one "@".
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y")

MISSING_FIELDS = "Please fill in all fields"
BAD_COUNT = "Number of participants must be a whole number of at least {minimum}"
TOO_MANY = "No more than {maximum} participants are supported"
BAD_DATE = "Exchange date must be a date like 2024-12-24"
BAD_BUDGET = "Budget must be a positive amount"


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_participant_count(raw: Union[str, int], minimum: int = 3, maximum: int = 100) -> int:
    if isinstance(raw, bool):
        raise ValidationError(BAD_COUNT.format(minimum=minimum))
    try:
        count = raw if isinstance(raw, int) else int(str(raw).strip())
    except ValueError:
        raise ValidationError(BAD_COUNT.format(minimum=minimum)) from None
    if count < minimum:
        raise ValidationError(BAD_COUNT.format(minimum=minimum))
    if count > maximum:
        raise ValidationError(TOO_MANY.format(maximum=maximum))
    return count


def parse_exchange_date(raw: Union[str, date]) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError(BAD_DATE)


def parse_budget(raw: Union[str, int, float, Decimal], currency: str = "$") -> Decimal:
    text = str(raw).strip()
    if currency:
        text = text.removeprefix(currency).removesuffix(currency).strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(BAD_BUDGET) from None
    if not amount.is_finite() or amount <= 0 or amount.adjusted() > 9:
        raise ValidationError(BAD_BUDGET)
    return amount


def parse_event_details(
    participant_count,
    exchange_date,
    budget,
    *,
    min_participants: int = 3,
    max_participants: int = 100,
    currency: str = "$",
) -> EventDetails:
    """Turn raw form values into an ``EventDetails``.

    Missing values are reported before malformed ones, so an organizer who
    left a field empty always sees the "fill in all fields" notice.
    """
    if any(_is_blank(value) for value in (participant_count, exchange_date, budget)):
        raise ValidationError(MISSING_FIELDS)
    return EventDetails(
        participant_count=parse_participant_count(participant_count, min_participants, max_participants),
        exchange_date=parse_exchange_date(exchange_date),
        budget=parse_budget(budget, currency),
    )


def check_participants(participants: Sequence[Participant]) -> None:
    if any(not p.name or not p.email for p in participants):
        raise IncompleteParticipant()
    if any(not is_valid_email(p.email) for p in participants):
        raise InvalidEmail()
