"""Parse and evaluate ``left operator right`` expressions."""
from typing import List, Tuple

from pydantic import BaseModel, Field

from infix_calculator.common.errors import FormatError, ParseError
from infix_calculator.common.models import EvaluationResult, Expression
from infix_calculator.common.operations import Computable
from infix_calculator.common.registry import OperationRegistry


class ExpressionEvaluator(BaseModel):
    """
    Evaluate one-operator infix expressions against an operation registry.

    Design constraints:
        - No eval(), no dynamic code execution
        - Stateless: every call is a single pass with no partial results
        - No logging, failures are raised to the caller

    Algorithm:
        1. Split the line on single spaces, exactly three tokens are required
        2. Parse the first and last tokens as floats
        3. Resolve the middle token through the registry
        4. Invoke the operation with both operands

    Examples:
        - ``3 + 4`` evaluates to 7.0
        - ``2 ^ 10`` evaluates to 1024.0
        - ``8 mod 0`` evaluates to NaN, it is not an error
    """

    registry: OperationRegistry = Field(default_factory=OperationRegistry, description="Operator lookup table")

    @staticmethod
    def tokenize(line: str) -> List[str]:
        """
        Split a line into tokens on single spaces.

        Consecutive spaces produce empty tokens, so ``"3  + 4"`` has four tokens.

        :param str line: Raw input line

        :return: List of tokens
        :rtype: List[str]
        """
        return line.split(" ")

    @staticmethod
    def _parse_operand(token: str) -> float:
        """
        Convert an operand token to a float.

        :param str token: Operand token

        :return: Parsed value
        :rtype: float
        :raises ParseError: If the token is not a floating-point literal
        """
        try:
            return float(token)
        except ValueError:
            raise ParseError(f"Invalid characters in operand {token!r}") from None

    def parse(self, line: str) -> Expression:
        """
        Tokenize a line and parse both operands.

        The operator is not resolved here, so a bad operand is reported before an unknown operator.

        :param str line: Raw input line

        :return: Parsed expression
        :rtype: Expression
        :raises FormatError: If the line does not have exactly three tokens
        :raises ParseError: If either operand is not a number
        """
        tokens: List[str] = self.tokenize(line)
        if len(tokens) != 3:
            raise FormatError()

        left_token, operator_token, right_token = tokens
        left: float = self._parse_operand(left_token)
        right: float = self._parse_operand(right_token)
        return Expression(left=left, operator=operator_token, right=right)

    def prepare(self, line: str) -> Tuple[Expression, Computable]:
        """
        Parse a line and resolve its operator without computing anything.

        :param str line: Raw input line

        :return: Tuple of (Expression, Operation)
        :rtype: Tuple[Expression, Computable]
        """
        expression: Expression = self.parse(line)
        return expression, self.registry.resolve(expression.operator)

    def compute(self, expression: Expression) -> float:
        """
        Resolve the operator of a parsed expression and apply it.

        :param Expression expression: Parsed expression

        :return: Computed result
        :rtype: float
        :raises UnknownOperatorError: If the operator is not registered
        :raises DivisionByZeroError: If the operation is a division by zero
        """
        operation: Computable = self.registry.resolve(expression.operator)
        return operation.compute(expression.left, expression.right)

    def evaluate(self, line: str) -> float:
        """
        Evaluate a ``left operator right`` line.

        :param str line: Raw input line

        :return: Computed result as float
        :rtype: float
        :raises CalculatorError: If the line is malformed or the operation fails
        """
        return self.compute(self.parse(line))

    def evaluate_result(self, line: str) -> EvaluationResult:
        """Evaluate a line and pair the result with the original text."""
        return EvaluationResult(expression=line, result=self.evaluate(line))
