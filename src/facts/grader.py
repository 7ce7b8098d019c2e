import logging
import re
from enum import Enum
from typing import Optional

from .models import Fact
from .session import Session

logger = logging.getLogger(__name__)

# Optional sign then ASCII digits; no whitespace or digit separators.
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class Outcome(str, Enum):
    STARTED = "started"  # first problem issued, nothing graded
    IGNORED = "ignored"  # unparsable submission
    CORRECT = "correct"
    CHARGED = "charged"  # wrong, error counted
    RETRY = "retry"  # wrong, free retry


def expected_result(fact: Fact) -> int:
    return fact.answer


def parse_answer(raw: Optional[str]) -> Optional[int]:
    if raw is None or _INTEGER_RE.fullmatch(raw) is None:
        return None
    try:
        return int(raw)
    except ValueError:
        # past the interpreter's int string conversion limit
        return None


def submit_answer(session: Session, raw: Optional[str]) -> Outcome:
    """Advance ``session`` by one request.

    A session without a current problem gets its first one and nothing is
    graded. Otherwise ``raw`` is graded against the current problem:

    - unparsable: nothing changes, the same problem stays current;
    - correct: ``questions_answered`` goes up, the strike is armed and a new
      problem is drawn;
    - wrong with the strike armed: one error is charged and the strike is
      disarmed;
    - wrong with the strike disarmed: nothing changes.

    The problem is only replaced on a correct answer, so repeated wrong
    answers on one problem charge at most one error.
    """
    with session.lock:
        if not session.has_current_problem:
            fact = session.next_fact()
            logger.debug(f"Session {session.token}: first problem {fact}")
            return Outcome.STARTED

        value = parse_answer(raw)
        if value is None:
            logger.debug(f"Session {session.token}: ignoring {raw!r}")
            return Outcome.IGNORED

        fact = session.fact
        if value == expected_result(fact):
            session.questions_answered += 1
            session.pending_strike = True
            session.next_fact()
            outcome = Outcome.CORRECT
        elif session.pending_strike:
            session.errors_charged += 1
            session.pending_strike = False
            outcome = Outcome.CHARGED
        else:
            outcome = Outcome.RETRY

        logger.info(
            f"Session {session.token} {fact} = {value} -> {outcome.value.upper()} "
            f"({session.questions_answered} answered, "
            f"{session.errors_charged} errors)"
        )
    return outcome
