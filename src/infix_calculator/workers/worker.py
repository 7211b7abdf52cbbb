"""Worker process computing a single operation."""
from multiprocessing.connection import Connection
import pickle

from pydantic import BaseModel, ConfigDict, Field

from infix_calculator.common.errors import CalculatorError
from infix_calculator.common.logger import logger
from infix_calculator.common.operations import Computable


def transferable_error(exc: Exception) -> Exception:
    """
    Return an exception the parent process is able to rebuild.

    Exceptions whose constructor does not accept their own ``args`` cannot be
    unpickled; those are replaced by a CalculatorError carrying the same message.

    :param Exception exc: Exception raised by the operation

    :return: ``exc`` itself, or a CalculatorError describing it
    :rtype: Exception
    """
    try:
        pickle.loads(pickle.dumps(exc))
    except Exception:
        return CalculatorError(f"{type(exc).__name__}: {exc}")
    return exc


class WorkerProcess(BaseModel):
    """
    Worker process responsible for computing one operation on one pair of operands.

    Lifecycle:
        - Spawned by the fan-out evaluator
        - Receives one already resolved operation and its operands
        - Sends the computed result or the raised error through a Pipe
        - Terminates immediately after computation
    """

    # Make the Pydantic instance immutable (read-only) for safety
    # Allow arbitrary types like multiprocessing.Connection
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conn: Connection = Field(..., description="Connection object for sending results back to the parent")
    operation: Computable = Field(..., description="Operation to compute")
    left: float = Field(..., description="Left operand")
    right: float = Field(..., description="Right operand")
    index: int = Field(..., ge=1, description="Position of this worker in the fan-out")

    def run(self) -> None:
        """
        Compute the operation and send the result or error through the pipe.

        :return: None
        """
        logger.info(
            "Worker %d started: %s(%s, %s)", self.index, type(self.operation).__name__, self.left, self.right
        )

        try:
            result: float = self.operation.compute(self.left, self.right)
        except Exception as exc:
            logger.error("Worker %d failed: %s", self.index, exc)
            self.conn.send({"index": self.index, "error": transferable_error(exc)})
        else:
            self.conn.send({"index": self.index, "result": result})
            logger.info("Worker %d finished: %s", self.index, result)
        finally:
            # Always close the connection
            self.conn.close()
