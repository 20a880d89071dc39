from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from relcore.core.result import Err, Ok, Result
from relcore.release.errors import ReleaseError

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
GetStep = Callable[[S], Hashable]
OnAdvance = Callable[[S], None]


FINISH = StepFinish()


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[Hashable, StepHandler[S]],
    on_advance: OnAdvance[S] | None = None,
) -> tuple[S, Result[None, ReleaseError]]:
    """Drive ``handlers`` until one finishes or fails.

    Returns the last state reached together with the result, so a caller
    can inspect how far a failed run got.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            raise LookupError(f"no handler for step: {step}")

        outcome = handler(current)
        if isinstance(outcome, Err):
            return (current, outcome)

        if isinstance(outcome.value, StepFinish):
            return (current, Ok(None))

        current = outcome.value.session
        if on_advance is not None:
            on_advance(current)
