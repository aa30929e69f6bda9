from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class Stage(str, Enum):
    COLLECTING_EVENT = "collecting_event"
    COLLECTING_PARTICIPANTS = "collecting_participants"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class EventDetails:
    participant_count: int
    exchange_date: date
    budget: Decimal

    def to_payload(self) -> dict:
        return {
            "participantCount": self.participant_count,
            "exchangeDate": self.exchange_date.isoformat(),
            "budget": format(self.budget, "f"),
        }


# eq=False: two participants with the same name and email are still two people.
@dataclass(eq=False)
class Participant:
    name: str = ""
    email: str = ""

    def to_payload(self) -> dict:
        return {"name": self.name, "email": self.email}


@dataclass(frozen=True)
class Assignment:
    giver: Participant
    receiver: Participant

    def to_payload(self) -> dict:
        return {"giver": self.giver.to_payload(), "receiver": self.receiver.to_payload()}
