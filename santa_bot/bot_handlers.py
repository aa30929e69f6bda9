import logging
from typing import Dict, Optional, Sequence, Tuple

from aiogram import Dispatcher, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import KeyboardButton, Message, ReplyKeyboardMarkup, ReplyKeyboardRemove

from .config import Settings
from .dispatch import AssignmentDispatcher
from .models import EventDetails, Participant, Stage
from .workflow import PARTICIPANT_FIELDS, Session

GENERATE_BTN = "Generate & Send Assignments 🎁"
PARTICIPANTS_BTN = "Participants 📋"

# Plain answers only; commands fall through to their own handlers.
ANSWER = F.text & ~F.text.startswith("/")


class SetupForm(StatesGroup):
    participant_count = State()
    exchange_date = State()
    budget = State()
    participant_name = State()
    participant_email = State()
    ready = State()


def ready_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=GENERATE_BTN), KeyboardButton(text=PARTICIPANTS_BTN)]],
        resize_keyboard=True,
    )


def format_participants(participants: Sequence[Participant]) -> str:
    lines = []
    for number, p in enumerate(participants, start=1):
        lines.append(f"{number}. {p.name or '—'} <{p.email or '—'}>")
    return "\n".join(lines)


def format_confirmation(event: EventDetails, currency: str = "$") -> str:
    return (
        "Success! All assignments have been sent!\n"
        "Check your email for your Secret Santa assignment. Remember to keep it a secret! 🎁\n"
        f"Budget: {currency}{event.budget:f}\n"
        f"Exchange Date: {event.exchange_date.strftime('%d %b %Y')}"
    )


def parse_edit_command(text: Optional[str]) -> Optional[Tuple[int, str, str]]:
    """``/edit 2 email bob@example.com`` -> ``(1, "email", "bob@example.com")``."""
    parts = (text or "").split(maxsplit=3)
    if len(parts) != 4 or not parts[1].isdigit() or parts[2].lower() not in PARTICIPANT_FIELDS:
        return None
    return int(parts[1]) - 1, parts[2].lower(), parts[3].strip()


def setup_handlers(
    dp: Dispatcher,
    settings: Settings,
    dispatcher: AssignmentDispatcher,
    sessions: Optional[Dict[int, Session]] = None,
) -> None:
    if sessions is None:
        sessions = {}

    def new_session(chat_id: int) -> Session:
        session = Session(
            min_participants=settings.min_participants,
            max_participants=settings.max_participants,
            currency=settings.currency,
            max_attempts=settings.max_draw_attempts,
        )
        sessions[chat_id] = session
        return session

    async def ask_participant_name(message: Message, state: FSMContext, index: int) -> None:
        await state.update_data(index=index)
        await message.answer(f"Participant {index + 1}: what is their name?")
        await state.set_state(SetupForm.participant_name)

    @dp.message(Command("start"))
    async def start(message: Message, state: FSMContext) -> None:
        await state.clear()
        new_session(message.chat.id)
        await message.answer(
            "Hi! Let's set up a Secret Santa exchange.\n"
            f"How many participants will there be? (at least {settings.min_participants})",
            reply_markup=ReplyKeyboardRemove(),
        )
        await state.set_state(SetupForm.participant_count)

    @dp.message(Command("cancel"))
    async def cancel(message: Message, state: FSMContext) -> None:
        await state.clear()
        sessions.pop(message.chat.id, None)
        await message.answer("Setup cancelled. Send /start to begin again.", reply_markup=ReplyKeyboardRemove())

    @dp.message(SetupForm.participant_count, ANSWER)
    async def process_participant_count(message: Message, state: FSMContext) -> None:
        await state.update_data(participant_count=message.text.strip())
        await message.answer("When is the exchange? (for example 2024-12-24)")
        await state.set_state(SetupForm.exchange_date)

    @dp.message(SetupForm.exchange_date, ANSWER)
    async def process_exchange_date(message: Message, state: FSMContext) -> None:
        await state.update_data(exchange_date=message.text.strip())
        await message.answer(f"What is the gift budget in {settings.currency}?")
        await state.set_state(SetupForm.budget)

    @dp.message(SetupForm.budget, ANSWER)
    async def process_budget(message: Message, state: FSMContext) -> None:
        session = sessions.get(message.chat.id) or new_session(message.chat.id)
        data = await state.get_data()
        if not session.submit_event_details(data.get("participant_count"), data.get("exchange_date"), message.text.strip()):
            await message.answer(f"{session.error}\nHow many participants will there be?")
            await state.set_state(SetupForm.participant_count)
            return
        await message.answer(f"Great! Now tell me about the {session.event.participant_count} participants.")
        await ask_participant_name(message, state, 0)

    @dp.message(SetupForm.participant_name, ANSWER)
    async def process_participant_name(message: Message, state: FSMContext) -> None:
        session = sessions.get(message.chat.id)
        if session is None:
            await message.answer("Your setup has expired. Send /start to begin again.")
            await state.clear()
            return
        index = (await state.get_data())["index"]
        session.update_participant(index, "name", message.text.strip())
        await message.answer(f"And {message.text.strip()}'s email?")
        await state.set_state(SetupForm.participant_email)

    @dp.message(SetupForm.participant_email, ANSWER)
    async def process_participant_email(message: Message, state: FSMContext) -> None:
        session = sessions.get(message.chat.id)
        if session is None:
            await message.answer("Your setup has expired. Send /start to begin again.")
            await state.clear()
            return
        index = (await state.get_data())["index"]
        session.update_participant(index, "email", message.text.strip())
        if index + 1 < len(session.participants):
            await ask_participant_name(message, state, index + 1)
            return
        await state.set_state(SetupForm.ready)
        await message.answer(
            "All participants entered:\n"
            f"{format_participants(session.participants)}\n\n"
            "Fix a typo with /edit <number> <name|email> <value>, or send /generate when ready.",
            reply_markup=ready_keyboard(),
        )

    @dp.message(Command("participants"))
    @dp.message(F.text == PARTICIPANTS_BTN)
    async def list_participants(message: Message) -> None:
        session = sessions.get(message.chat.id)
        if session is None or not session.participants:
            await message.answer("No participants yet. Send /start to set up an exchange.")
            return
        await message.answer(format_participants(session.participants))

    @dp.message(Command("edit"))
    async def edit_participant(message: Message) -> None:
        session = sessions.get(message.chat.id)
        if session is None or session.stage is not Stage.COLLECTING_PARTICIPANTS or session.dispatching:
            await message.answer("There is nothing to edit right now.")
            return
        parsed = parse_edit_command(message.text)
        if parsed is None:
            await message.answer("Usage: /edit <number> <name|email> <value>")
            return
        index, field, value = parsed
        if not 0 <= index < len(session.participants):
            await message.answer(f"Pick a participant between 1 and {len(session.participants)}.")
            return
        session.update_participant(index, field, value)
        await message.answer(format_participants(session.participants))

    @dp.message(Command("generate"))
    @dp.message(F.text == GENERATE_BTN)
    async def generate(message: Message, state: FSMContext) -> None:
        session = sessions.get(message.chat.id)
        if session is None or session.stage is not Stage.COLLECTING_PARTICIPANTS:
            await message.answer("Send /start and enter the event details first.")
            return
        if session.dispatching:
            await message.answer("Still sending the assignments, hold on…")
            return
        await message.answer("Sending assignments…")
        confirmed = await session.generate_and_dispatch(dispatcher, timeout=settings.dispatch_timeout)
        if not confirmed:
            await message.answer(session.error or "Failed to send assignments. Please try again.")
            return
        await state.clear()
        sessions.pop(message.chat.id, None)
        await message.answer(
            format_confirmation(session.event, settings.currency), reply_markup=ReplyKeyboardRemove()
        )

    @dp.message(Command("status"))
    async def status(message: Message) -> None:
        session = sessions.get(message.chat.id)
        if session is None:
            await message.answer("No exchange in progress. Send /start to begin.")
            return
        if session.stage is Stage.COLLECTING_EVENT:
            await message.answer("Waiting for event details.")
            return
        filled = sum(1 for p in session.participants if p.name and p.email)
        text = f"{filled} of {len(session.participants)} participants entered."
        if session.dispatching:
            text += "\nAssignments are being sent."
        elif session.error:
            text += f"\nLast problem: {session.error}"
        await message.answer(text)

    @dp.message(F.text)
    async def fallback(message: Message) -> None:
        logging.debug("Unhandled message in chat %s", message.chat.id)
        await message.answer("Unknown command. Use /start to set up a Secret Santa exchange.")
