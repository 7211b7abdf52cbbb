"""Interactive read-evaluate-print loop."""
import sys
from typing import Optional, TextIO, Union

from pydantic import BaseModel, ConfigDict, Field

from infix_calculator.common.errors import CalculatorError
from infix_calculator.common.evaluator import ExpressionEvaluator
from infix_calculator.common.logger import logger
from infix_calculator.workers.fan_out import FanOutEvaluator


class ReplSession(BaseModel):
    """
    Read expressions from a text stream, evaluate them and print the results.

    The loop ends on end of input or on the ``quit`` sentinel, in any case.
    A failing expression prints an error and the loop keeps going.
    """

    # Allow arbitrary types like TextIO
    model_config = ConfigDict(arbitrary_types_allowed=True)

    evaluator: Union[ExpressionEvaluator, FanOutEvaluator] = Field(
        default_factory=ExpressionEvaluator, description="Evaluator used for each line"
    )
    prompt: str = Field(default="Enter expression: ", description="Text written before each read")
    quit_command: str = Field(default="quit", min_length=1, description="Sentinel ending the loop")

    def handle(self, line: str) -> str:
        """
        Evaluate one line and build the message to display.

        :param str line: Line without its trailing newline

        :return: ``Result: <value>`` or ``Error: <message>``
        :rtype: str
        """
        try:
            result: float = self.evaluator.evaluate(line)
        except CalculatorError as exc:
            logger.warning("Rejected %r: %s", line, exc)
            return f"Error: {exc}"
        except Exception as exc:
            logger.exception("Unexpected failure evaluating %r", line)
            return f"Error: {exc}"
        return f"Result: {result:.3f}"

    def run(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
        """
        Run the loop until ``quit`` or end of input.

        :param TextIO stdin: Stream to read from, defaults to ``sys.stdin``
        :param TextIO stdout: Stream to write to, defaults to ``sys.stdout``

        :return: Number of lines evaluated
        :rtype: int
        """
        stdin = stdin if stdin is not None else sys.stdin
        stdout = stdout if stdout is not None else sys.stdout
        evaluated: int = 0

        while True:
            stdout.write(self.prompt)
            stdout.flush()
            raw: str = stdin.readline()
            if not raw:
                # End of input behaves like quit
                stdout.write("\n")
                break

            line: str = raw.rstrip("\r\n")
            if line.lower() == self.quit_command.lower():
                break

            stdout.write(self.handle(line) + "\n")
            evaluated += 1

        logger.info("Session finished after %d expressions", evaluated)
        return evaluated
