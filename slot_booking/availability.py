from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Mapping

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph
from pydantic import BaseModel, ValidationError

from slot_booking.models import Document, PatientInfo, WaitingEntry
from slot_booking.slots import AmbiguousLookup, NotFound, SlotRef, resolve
from slot_booking.storage import DocumentStore, StorageError

logger = logging.getLogger(__name__)


class Command(str, Enum):
    BOOK = "book"
    JOIN_WAITLIST = "join_waitlist"
    CHECK = "check"


class Outcome(str, Enum):
    BOOKED = "booked"
    ADDED = "added"
    AVAILABLE = "available"
    ALREADY_BOOKED = "already_booked"
    SLOT_MISSING = "slot_missing"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    INVALID = "invalid"


class TransitionState(BaseModel):
    """Input and result of a single transition run through the graph."""

    command: Command
    doctor_name: str | None = None
    date: str | None = None
    time_label: str | None = None
    patient: dict[str, Any] | None = None

    outcome: Outcome | None = None
    message: str | None = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.BOOKED, Outcome.ADDED, Outcome.AVAILABLE)

    @property
    def available(self) -> bool:
        return self.outcome is Outcome.AVAILABLE


_REQUIRED_MESSAGES = {
    Command.BOOK: "All fields are required",
    Command.JOIN_WAITLIST: "All fields are required",
    Command.CHECK: "Doctor name, date, and slot are required",
}


class AvailabilityStore:
    """Applies booking transitions to the availability document.

    Every operation loads the document from ``storage``; mutations then run
    the transition graph and save the whole document back. The load-modify-save
    cycle is serialized by one lock, so two bookings of the same slot can never
    both observe it vacant.
    """

    def __init__(self, storage: DocumentStore, *, strict_lookup: bool = True) -> None:
        self.storage = storage
        self.strict_lookup = strict_lookup

        self.graph = self._build_graph()
        self.executor = self.graph.compile()

        self._lock = asyncio.Lock()

    def _build_graph(self) -> StateGraph:
        """Build the transition graph: resolve the day, then apply the command."""
        g = StateGraph(TransitionState)

        g.add_node("resolve", self._resolve)
        g.add_node("book", self._book)
        g.add_node("join_waitlist", self._join_waitlist)
        g.add_node("check", self._check)

        g.set_entry_point("resolve")

        g.add_conditional_edges(
            "resolve",
            self._route_after_resolve,
            {"book": "book", "join_waitlist": "join_waitlist", "check": "check", "end": END},
        )

        g.add_edge("book", END)
        g.add_edge("join_waitlist", END)
        g.add_edge("check", END)
        return g

    # ------------------------------------------------------------------ #
    #  Graph nodes
    # ------------------------------------------------------------------ #
    def _resolve(self, state: TransitionState, config: RunnableConfig) -> dict:
        """Find the doctor's day, or end with NOT_FOUND / AMBIGUOUS."""
        try:
            self._locate(state, config)
        except AmbiguousLookup as e:
            return {"outcome": Outcome.AMBIGUOUS, "message": str(e)}
        except NotFound:
            return {"outcome": Outcome.NOT_FOUND, "message": "Doctor or date not found"}
        return {"outcome": None}

    def _book(self, state: TransitionState, config: RunnableConfig) -> dict:
        """Store the patient on the time slot if it exists and is vacant."""
        ref = self._locate(state, config)
        time_slot = ref.time_slot(state.time_label)
        if time_slot is None:
            return {"outcome": Outcome.SLOT_MISSING, "message": "No available slot found"}
        if time_slot.is_booked:
            return {"outcome": Outcome.ALREADY_BOOKED, "message": "Slot is already booked"}

        time_slot.patient = PatientInfo.model_validate(state.patient).model_dump()
        return {
            "outcome": Outcome.BOOKED,
            "changed": True,
            "message": f"Appointment booked with {state.doctor_name} on {state.date} at {state.time_label}",
        }

    def _join_waitlist(self, state: TransitionState, config: RunnableConfig) -> dict:
        """Append the patient to the day's waiting list."""
        waiting = self._locate(state, config).day.waiting_list
        if waiting is None:
            return {"outcome": Outcome.NOT_FOUND, "message": "Could not join waiting list"}

        patient = PatientInfo.model_validate(state.patient).model_dump()
        waiting.append(WaitingEntry(patientInfo=patient))
        return {
            "outcome": Outcome.ADDED,
            "changed": True,
            "message": f"Added to waiting list for {state.doctor_name} on {state.date}",
        }

    def _check(self, state: TransitionState, config: RunnableConfig) -> dict:
        """Report whether the time slot is vacant, without changing it."""
        time_slot = self._locate(state, config).time_slot(state.time_label)
        if time_slot is None:
            return {"outcome": Outcome.SLOT_MISSING, "message": "Slot does not exist"}
        if time_slot.is_booked:
            return {"outcome": Outcome.ALREADY_BOOKED, "message": "Slot is already booked"}
        return {"outcome": Outcome.AVAILABLE, "message": "Slot is available"}

    @staticmethod
    def _route_after_resolve(state: TransitionState) -> str:
        """Stop on a lookup failure, otherwise go to the command's node."""
        if state.outcome:
            return "end"
        return state.command.value

    # ------------------------------------------------------------------ #
    #  Helper utilities
    # ------------------------------------------------------------------ #
    @staticmethod
    def _validate(state: TransitionState) -> dict | None:
        """Return the INVALID update when a key or patient field is missing or blank."""
        keys = [state.doctor_name, state.date]
        if state.command is not Command.JOIN_WAITLIST:
            keys.append(state.time_label)

        invalid = not all(k and k.strip() for k in keys)
        if state.command is not Command.CHECK and not invalid:
            try:
                PatientInfo.model_validate(state.patient or {})
            except ValidationError:
                invalid = True

        if invalid:
            return {"outcome": Outcome.INVALID, "message": _REQUIRED_MESSAGES[state.command]}
        return None

    def _locate(self, state: TransitionState, config: RunnableConfig) -> SlotRef:
        document: Document = config["configurable"]["document"]
        return resolve(document, state.doctor_name, state.date, strict=self.strict_lookup)

    async def _apply(self, state: TransitionState) -> TransitionState:
        """Run one transition inside a load-modify-save cycle.

        Requests with missing fields are rejected before the document is loaded.
        """
        rejected = self._validate(state)
        if rejected:
            result = state.model_copy(update=rejected)
            self._log_result(result)
            return result

        async with self._lock:
            document = await asyncio.to_thread(self.storage.load)
            raw = await asyncio.to_thread(
                self.executor.invoke, state, {"configurable": {"document": document}}
            )
            result = TransitionState.model_validate(raw)

            if result.changed:
                try:
                    await asyncio.to_thread(self.storage.save, document)
                except StorageError:
                    logger.error(
                        "Failed to persist %s for %s on %s", result.command.value, result.doctor_name, result.date
                    )
                    raise

        self._log_result(result)
        return result

    @staticmethod
    def _log_result(result: TransitionState) -> None:
        if result.changed:
            logger.info(
                "%s: doctor=%s date=%s time=%s",
                result.outcome.value,
                result.doctor_name,
                result.date,
                result.time_label,
            )
        elif not result.ok:
            logger.info(
                "%s rejected (%s): doctor=%s date=%s",
                result.command.value,
                result.outcome.value,
                result.doctor_name,
                result.date,
            )

    # ------------------------------------------------------------------ #
    #  Public operations
    # ------------------------------------------------------------------ #
    async def book(
        self, doctor_name: str | None, date: str | None, time_label: str | None, patient: Mapping[str, Any] | None
    ) -> TransitionState:
        """Book a vacant time slot for a patient."""
        return await self._apply(
            TransitionState(
                command=Command.BOOK,
                doctor_name=doctor_name,
                date=date,
                time_label=time_label,
                patient=dict(patient) if patient is not None else None,
            )
        )

    async def join_waitlist(
        self, doctor_name: str | None, date: str | None, patient: Mapping[str, Any] | None
    ) -> TransitionState:
        """Append a patient to the waiting list of a doctor's day."""
        return await self._apply(
            TransitionState(
                command=Command.JOIN_WAITLIST,
                doctor_name=doctor_name,
                date=date,
                patient=dict(patient) if patient is not None else None,
            )
        )

    async def check_slot(self, doctor_name: str | None, date: str | None, time_label: str | None) -> TransitionState:
        return await self._apply(
            TransitionState(command=Command.CHECK, doctor_name=doctor_name, date=date, time_label=time_label)
        )

    async def snapshot(self) -> Document:
        """Load the current document for read-only projections."""
        async with self._lock:
            return await asyncio.to_thread(self.storage.load)
