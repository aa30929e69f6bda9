import random
from collections import Counter

import pytest

from santa_bot.errors import AssignmentExhausted
from santa_bot.matching_logic import generate_assignments, has_fixed_point, shuffle_in_place
from santa_bot.models import Participant


def _people(n):
    return [Participant(name=f"Person {i}", email=f"p{i}@example.com") for i in range(n)]


def _assert_derangement(participants, assignments):
    assert len(assignments) == len(participants)
    assert [a.giver for a in assignments] == participants
    assert Counter(map(id, (a.receiver for a in assignments))) == Counter(map(id, participants))
    assert all(a.receiver is not a.giver for a in assignments)


@pytest.mark.parametrize("n", [3, 4, 5, 10, 50])
def test_assignments_are_a_derangement(n):
    participants = _people(n)
    _assert_derangement(participants, generate_assignments(participants, rng=random.Random(n)))


def test_three_participants_never_self_assign_over_many_draws():
    participants = _people(3)
    rng = random.Random(2024)
    for _ in range(1000):
        _assert_derangement(participants, generate_assignments(participants, rng=rng))


def test_identical_participants_are_still_distinct():
    participants = [Participant(name="Sam", email="sam@example.com") for _ in range(4)]
    assignments = generate_assignments(participants, rng=random.Random(7))
    _assert_derangement(participants, assignments)


def test_fixed_point_check_uses_identity():
    a = Participant(name="Sam", email="sam@example.com")
    b = Participant(name="Sam", email="sam@example.com")
    assert not has_fixed_point([a, b], [b, a])
    assert has_fixed_point([a, b], [a, b])


def test_two_participants_swap():
    first, second = _people(2)
    assignments = generate_assignments([first, second], rng=random.Random(1))
    assert assignments[0].receiver is second
    assert assignments[1].receiver is first


def test_single_participant_exhausts_attempts():
    with pytest.raises(AssignmentExhausted) as excinfo:
        generate_assignments(_people(1), max_attempts=5)
    assert str(excinfo.value) == "Could not generate valid assignments. Please try again."


def test_no_participants_gives_no_assignments():
    assert generate_assignments([]) == []


def test_input_order_is_not_modified():
    participants = _people(6)
    snapshot = list(participants)
    generate_assignments(participants, rng=random.Random(3))
    assert participants == snapshot


def test_shuffle_in_place_is_a_permutation():
    items = list(range(20))
    shuffle_in_place(items, random.Random(11))
    assert sorted(items) == list(range(20))


def test_shuffle_covers_every_derangement_of_three():
    participants = _people(3)
    rng = random.Random(99)
    seen = set()
    for _ in range(200):
        assignments = generate_assignments(participants, rng=rng)
        seen.add(tuple(participants.index(a.receiver) for a in assignments))
    assert seen == {(1, 2, 0), (2, 0, 1)}
