import random
from typing import Callable, Dict, Tuple

from .models import Fact, Operator

# One entry per residue of the weighted draw: 5/11 addition,
# 5/11 subtraction, 1/11 multiplication.
OPERATOR_BY_RESIDUE: Tuple[Operator, ...] = (
    (Operator.ADD,) * 5 + (Operator.SUB,) * 5 + (Operator.MUL,)
)

ADD_LIMIT = 20
SUB_LIMIT = 20
MUL_X_LIMIT = 10
MUL_Y_LIMIT = 3


# --- Operand strategies ---
def _addition_operands(rng: random.Random) -> Tuple[int, int]:
    return rng.randrange(ADD_LIMIT), rng.randrange(ADD_LIMIT)


def _subtraction_operands(rng: random.Random) -> Tuple[int, int]:
    x = rng.randrange(SUB_LIMIT)
    y = rng.randrange(SUB_LIMIT)
    if x < y:
        x, y = y, x
    return x, y


def _multiplication_operands(rng: random.Random) -> Tuple[int, int]:
    return rng.randrange(MUL_X_LIMIT), rng.randrange(MUL_Y_LIMIT)


class FactGenerator:
    """Draws arithmetic facts from a caller-owned random source.

    The generator itself is stateless; determinism comes entirely from the
    ``rng`` passed to :meth:`generate`, so two sessions never share a draw
    sequence as long as each owns its own ``random.Random``.
    """

    operands: Dict[Operator, Callable[[random.Random], Tuple[int, int]]] = {
        Operator.ADD: _addition_operands,
        Operator.SUB: _subtraction_operands,
        Operator.MUL: _multiplication_operands,
    }

    def generate(self, rng: random.Random) -> Fact:
        operator = OPERATOR_BY_RESIDUE[rng.randrange(len(OPERATOR_BY_RESIDUE))]
        x, y = self.operands[operator](rng)
        return Fact(x=x, y=y, operator=operator)


fact_generator = FactGenerator()


def generate(rng: random.Random) -> Fact:
    return fact_generator.generate(rng)
