"""Failures raised while evaluating an arithmetic expression."""


class CalculatorError(ValueError):
    """Base class of every failure raised by the evaluator."""


class FormatError(CalculatorError):
    """The line does not split into exactly ``left operator right``."""

    def __init__(self, message: str = "Invalid format: expected 'left operator right'") -> None:
        super().__init__(message)


class ParseError(CalculatorError):
    """One of the operands is not a floating-point literal."""

    def __init__(self, message: str = "Invalid characters in operands") -> None:
        super().__init__(message)


class UnknownOperatorError(CalculatorError):
    """The operator token is not present in the registry."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Unknown operation {token}")

    def __reduce__(self):
        # Rebuild from the token so the error survives a trip through a Pipe
        return type(self), (self.token,)


class DivisionByZeroError(CalculatorError, ZeroDivisionError):
    """Raised by the divide operation when the right operand is zero."""

    def __init__(self, message: str = "Division by zero is not possible") -> None:
        super().__init__(message)
