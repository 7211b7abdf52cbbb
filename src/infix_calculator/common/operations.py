"""Binary operations available to the expression evaluator."""
import math
import operator
from typing import ClassVar, Dict, Protocol, Type, runtime_checkable

from pydantic import BaseModel, ConfigDict

from infix_calculator.common.errors import DivisionByZeroError


@runtime_checkable
class Computable(Protocol):
    """Anything with a ``compute(left, right)`` method can be registered as an operation."""

    def compute(self, left: float, right: float) -> float:
        ...


class Operation(BaseModel):
    """
    Stateless binary operation identified by its operator token.

    Instances are immutable and hold no data, so one instance can be reused for
    any number of calls or created fresh for each call with the same outcome.
    Being pydantic models, they pickle cleanly and can be sent to worker processes.
    """

    model_config = ConfigDict(frozen=True)

    token: ClassVar[str]

    def compute(self, left: float, right: float) -> float:
        """
        Apply the operation to two operands.

        :param float left: Left operand
        :param float right: Right operand

        :return: Result of the operation
        :rtype: float
        """
        raise NotImplementedError


class Add(Operation):
    token: ClassVar[str] = "+"

    def compute(self, left: float, right: float) -> float:
        return operator.add(left, right)


class Subtract(Operation):
    token: ClassVar[str] = "-"

    def compute(self, left: float, right: float) -> float:
        return operator.sub(left, right)


class Multiply(Operation):
    token: ClassVar[str] = "*"

    def compute(self, left: float, right: float) -> float:
        return operator.mul(left, right)


class Divide(Operation):
    """Division, the only operation that reports a failure explicitly."""

    token: ClassVar[str] = "/"

    def compute(self, left: float, right: float) -> float:
        """
        Divide ``left`` by ``right``.

        :raises DivisionByZeroError: If ``right`` is zero
        """
        if right == 0:
            raise DivisionByZeroError()
        return operator.truediv(left, right)


class Modulo(Operation):
    """Floating-point remainder whose sign follows the left operand."""

    token: ClassVar[str] = "mod"

    def compute(self, left: float, right: float) -> float:
        # A zero divisor or an infinite dividend gives NaN instead of an error
        if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
            return math.nan
        return math.fmod(left, right)


class Power(Operation):
    """
    ``left`` raised to the power ``right``.

    Invalid domains degrade to NaN or an infinity the way IEEE ``pow`` does,
    where :func:`math.pow` would raise instead.
    """

    token: ClassVar[str] = "^"

    @staticmethod
    def _is_odd_integer(value: float) -> bool:
        return math.isfinite(value) and value.is_integer() and math.fmod(value, 2) != 0

    def compute(self, left: float, right: float) -> float:
        try:
            return math.pow(left, right)
        except OverflowError:
            if left < 0 and self._is_odd_integer(right):
                return -math.inf
            return math.inf
        except ValueError:
            if left == 0:
                # Zero to a negative power: -0 keeps its sign for odd exponents
                if self._is_odd_integer(right):
                    return math.copysign(math.inf, left)
                return math.inf
            # Negative base with a fractional exponent
            return math.nan


class Exponential(Operation):
    """``e`` raised to the power ``right``; the left operand is ignored."""

    token: ClassVar[str] = "exp"

    def compute(self, left: float, right: float) -> float:
        try:
            return math.exp(right)
        except OverflowError:
            return math.inf


class Logarithm(Operation):
    """
    Logarithm of ``right`` in base ``left``.

    No validation is added on top of floating-point semantics:
    a non-positive value, a non-positive base or a base of 1 yields NaN or an infinity.
    """

    token: ClassVar[str] = "log"

    @staticmethod
    def _natural_log(value: float) -> float:
        if value == 0:
            return -math.inf
        if value < 0 or math.isnan(value):
            return math.nan
        return math.log(value)

    def compute(self, left: float, right: float) -> float:
        if math.isnan(right):
            return right
        if math.isnan(left) or left == 1:
            return math.nan
        if right != 1 and (left == 0 or left == math.inf):
            return math.nan
        return self._natural_log(right) / self._natural_log(left)


# Operations every registry starts with, keyed by operator token
BUILTIN_OPERATIONS: Dict[str, Type[Operation]] = {
    op.token: op
    for op in (Add, Subtract, Multiply, Divide, Logarithm, Exponential, Modulo, Power)
}
