"""Repeat one computation on several worker processes and sum the results."""
from multiprocessing import Pipe, Process
from multiprocessing.connection import Connection, wait
from typing import Dict, List, Tuple

from pydantic import BaseModel, Field

from infix_calculator.common.errors import CalculatorError
from infix_calculator.common.evaluator import ExpressionEvaluator
from infix_calculator.common.logger import logger
from infix_calculator.common.models import Expression
from infix_calculator.common.operations import Computable
from infix_calculator.workers.worker import WorkerProcess


class FanOutEvaluator(BaseModel):
    """
    Evaluate an expression by computing it ``repeat`` times on worker processes.

    Features:
        - Parses and resolves the expression once, in the calling process.
        - Spawns one worker process per repetition, each computing the identical result.
        - Waits for every worker and returns the sum of their results.
        - The first error reported by a worker terminates the others and is re-raised.
    """

    evaluator: ExpressionEvaluator = Field(default_factory=ExpressionEvaluator, description="Parser and operator lookup")
    repeat: int = Field(default=3, ge=1, description="Number of worker processes per expression")

    def _spawn_worker(
        self, operation: Computable, expression: Expression, index: int
    ) -> Tuple[Process, Connection]:
        """
        Spawn a WorkerProcess for the given operation and return process and pipe.

        :param Computable operation: Resolved operation
        :param Expression expression: Parsed expression holding the operands
        :param int index: Position of the worker in the fan-out

        :return: Tuple of (Process, parent_pipe)
        :rtype: Tuple[Process, Connection]
        """
        parent_conn, child_conn = Pipe(duplex=False)
        worker = WorkerProcess(
            conn=child_conn,
            operation=operation,
            left=expression.left,
            right=expression.right,
            index=index,
        )
        process = Process(target=worker.run, name=f"fan-out-worker-{index}")
        process.start()
        # The child owns the sending end now, so EOF is seen if it dies silently
        child_conn.close()
        return process, parent_conn

    @staticmethod
    def _stop_workers(active_workers: Dict[Connection, Process]) -> None:
        """Terminate and reap every worker still running."""
        for pipe_conn, proc in active_workers.items():
            if proc.is_alive():
                proc.terminate()
            proc.join()
            pipe_conn.close()
        active_workers.clear()

    def _collect(self, active_workers: Dict[Connection, Process]) -> List[float]:
        """
        Wait for every worker and gather their results in worker order.

        :param dict active_workers: Mapping of parent pipe to worker process

        :return: Results ordered by worker index
        :rtype: List[float]
        :raises Exception: The first error sent by a worker
        :raises RuntimeError: If a worker exits without sending anything
        :raises CalculatorError: If a worker payload cannot be unpickled
        """
        results: Dict[int, float] = {}
        try:
            while active_workers:
                for pipe_conn in wait(list(active_workers)):
                    proc = active_workers.pop(pipe_conn)
                    try:
                        payload = pipe_conn.recv()
                    except EOFError:
                        raise RuntimeError(f"Worker {proc.name} exited without a result") from None
                    except Exception as exc:
                        # The payload reached us but could not be rebuilt
                        raise CalculatorError(f"Worker {proc.name} sent an unreadable payload: {exc}") from exc
                    finally:
                        pipe_conn.close()
                        proc.join()

                    if "error" in payload:
                        raise payload["error"]
                    results[payload["index"]] = payload["result"]
        finally:
            self._stop_workers(active_workers)

        return [results[index] for index in sorted(results)]

    def evaluate(self, line: str) -> float:
        """
        Evaluate a line by summing ``repeat`` identical computations.

        :param str line: Raw input line

        :return: Sum of the worker results
        :rtype: float
        :raises CalculatorError: If the line is malformed or a worker fails
        """
        expression, operation = self.evaluator.prepare(line)
        logger.debug("Fanning out %r to %d workers", line, self.repeat)

        active_workers: Dict[Connection, Process] = {}
        try:
            for index in range(1, self.repeat + 1):
                process, parent_conn = self._spawn_worker(operation, expression, index)
                active_workers[parent_conn] = process
        except BaseException:
            self._stop_workers(active_workers)
            raise

        results: List[float] = self._collect(active_workers)
        total: float = sum(results)
        logger.info("Fan-out of %r finished: %d results summed to %s", line, len(results), total)
        return total
