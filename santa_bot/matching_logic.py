import logging
import random
from typing import List, MutableSequence, Optional, Sequence

from .errors import AssignmentExhausted
from .models import Assignment, Participant

MAX_ATTEMPTS = 100


def shuffle_in_place(items: MutableSequence, rng: random.Random) -> None:
    """Fisher-Yates: walk from the last slot down, swapping with a random earlier-or-same slot."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def has_fixed_point(participants: Sequence[Participant], shuffled: Sequence[Participant]) -> bool:
    # Identity, not equality: duplicates by value are separate people.
    return any(receiver is giver for giver, receiver in zip(participants, shuffled))


def generate_assignments(
    participants: Sequence[Participant],
    max_attempts: int = MAX_ATTEMPTS,
    rng: Optional[random.Random] = None,
) -> List[Assignment]:
    """Pair every participant with someone else, keeping the input order as giver order.

    Rejection sampling over uniform shuffles, so every derangement is equally
    likely. No minimum group size is enforced here: a single participant
    exhausts the attempts and two participants always swap.
    """
    rng = rng or random.SystemRandom()
    shuffled = list(participants)
    for attempt in range(1, max_attempts + 1):
        shuffle_in_place(shuffled, rng)
        if not has_fixed_point(participants, shuffled):
            logging.info("Draw for %s participants found on attempt %s", len(shuffled), attempt)
            return [Assignment(giver=giver, receiver=receiver) for giver, receiver in zip(participants, shuffled)]
    logging.warning("Draw for %s participants exhausted %s attempts", len(shuffled), max_attempts)
    raise AssignmentExhausted()
