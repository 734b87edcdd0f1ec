"""
Processor: pure reduction of events into state.

The processor is the heart of the store. It must be:
- Pure (no side effects, no I/O)
- Deterministic (same history -> same state and same emissions)

The same transition can be computed more than once (recalculate replays the
whole history), so rules must not depend on anything but their inputs.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from .errors import FacetStoreError, RuleExecutionError, UnknownEventTypeError
from .events import Event

# Rule signature: (current_state, payload) -> (new_state, emitted_outbound_events)
Rule = Callable[[Any, Any], Tuple[Any, Sequence[Event]]]
Initializer = Callable[[], Any]


class Transition(NamedTuple):
    """What a rule returns: the new state and the outbound events it emits."""
    state: Any
    emitted: Sequence[Event] = ()


class UnknownEventPolicy(str, Enum):
    """What to do with an event whose type has no registered rule."""
    IGNORE = "ignore"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessResult:
    """
    Result of Processor.process().

    Fields:
        state: State after past and new events
        past_outbound_events: Emissions recomputed while replaying history;
            these were delivered by earlier commits and must not be written again
        new_outbound_events: Emissions caused by the new events
    """
    state: Any
    past_outbound_events: List[Event] = field(default_factory=list)
    new_outbound_events: List[Event] = field(default_factory=list)


@dataclass(frozen=True)
class _Registration:
    rule: Rule
    payload_type: Optional[type] = None


class Processor:
    """
    Registry of update rules for one facet.

    Usage:
        processor = Processor(initializer=lambda: {"balance": 0})

        @processor.rule("TRANSACTION_ACCEPTED")
        def transaction(state, payload):
            state["balance"] += payload["amount"]
            return Transition(state)

        result = processor.process(None, [], [Event("TRANSACTION_ACCEPTED", {"amount": 5})])
    """

    def __init__(
        self,
        rules: Optional[Dict[str, Rule]] = None,
        initializer: Optional[Initializer] = None,
        unknown_events: UnknownEventPolicy = UnknownEventPolicy.IGNORE,
    ) -> None:
        self._rules: Dict[str, _Registration] = {}
        self.initializer = initializer
        self.unknown_events = UnknownEventPolicy(unknown_events)
        for event_type, rule in (rules or {}).items():
            self.register(event_type, rule)

    def register(self, event_type: str, rule: Rule, payload_type: Optional[type] = None) -> None:
        """
        Register an update rule.

        Args:
            event_type: Event type tag
            rule: Pure function (state, payload) -> (new_state, emitted)
            payload_type: Optional payload class; stored dict payloads are
                converted with payload_type.from_dict() or payload_type(**payload)
        """
        self._rules[event_type] = _Registration(rule=rule, payload_type=payload_type)

    def rule(self, event_type: str, payload_type: Optional[type] = None) -> Callable[[Rule], Rule]:
        """Decorator form of register()."""

        def decorator(fn: Rule) -> Rule:
            self.register(event_type, fn, payload_type)
            return fn

        return decorator

    def handles(self, event_type: str) -> bool:
        return event_type in self._rules

    def initial_state(self) -> Any:
        if self.initializer is None:
            return {}
        return self.initializer()

    def apply(self, state: Any, event: Event) -> Transition:
        """
        Apply a single event.

        Raises:
            UnknownEventTypeError: No rule for event.type and the policy is ERROR
            RuleExecutionError: The rule raised, or returned something malformed
        """
        registration = self._rules.get(event.type)
        if registration is None:
            if self.unknown_events is UnknownEventPolicy.ERROR:
                raise UnknownEventTypeError(event.type)
            return Transition(state)

        try:
            payload = _coerce_payload(event.payload, registration.payload_type)
            new_state, emitted = registration.rule(state, payload)
            emitted = list(emitted or ())
            for e in emitted:
                if not isinstance(e, Event):
                    raise TypeError(
                        f"rule for {event.type} emitted {type(e).__name__}, expected Event"
                    )
        except FacetStoreError:
            raise
        except Exception as e:
            raise RuleExecutionError(event.type, e) from e

        return Transition(new_state, emitted)

    def process(
        self,
        state: Any,
        past_events: Iterable[Event],
        new_events: Iterable[Event],
    ) -> ProcessResult:
        """
        Replay history, then apply new events.

        Args:
            state: Starting state, or None to start from the initializer.
                Copied before use; the caller's object is never mutated.
            past_events: Previously accepted events, ascending by sequence.
                Their emissions go to past_outbound_events only.
            new_events: Events being accepted now, in order.

        Returns:
            ProcessResult

        Raises:
            RuleExecutionError / UnknownEventTypeError: on the first failing
            event; no partial result is returned.
        """
        current = self.initial_state() if state is None else copy.deepcopy(state)

        past_outbound: List[Event] = []
        for ev in past_events:
            current, emitted = self.apply(current, ev)
            past_outbound.extend(emitted)

        new_outbound: List[Event] = []
        for ev in new_events:
            current, emitted = self.apply(current, ev)
            new_outbound.extend(emitted)

        return ProcessResult(
            state=current,
            past_outbound_events=past_outbound,
            new_outbound_events=new_outbound,
        )


def _coerce_payload(payload: Any, payload_type: Optional[type]) -> Any:
    if payload_type is None or not isinstance(payload, dict):
        return payload
    from_dict = getattr(payload_type, "from_dict", None)
    if callable(from_dict):
        return from_dict(payload)
    return payload_type(**payload)
