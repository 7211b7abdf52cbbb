"""Unit tests for WorkerProcess using real Pipe connections."""
from multiprocessing import Pipe

import pytest

from infix_calculator.common.errors import CalculatorError, DivisionByZeroError
from infix_calculator.common.operations import Add, Divide, Multiply, Operation, Power
from infix_calculator.workers.worker import WorkerProcess, transferable_error


@pytest.mark.parametrize(
    "operation,left,right,expected",
    [
        (Add(), 2.0, 3.0, 5.0),
        (Multiply(), 3.0, 4.0, 12.0),
        (Divide(), 8.0, 2.0, 4.0),
        (Power(), 2.0, 10.0, 1024.0),
    ],
)
def test_worker_sends_result(operation: Operation, left: float, right: float, expected: float) -> None:
    """Worker sends the computed result through the connection."""
    parent_conn, child_conn = Pipe()
    worker = WorkerProcess(conn=child_conn, operation=operation, left=left, right=right, index=1)
    worker.run()

    msg = parent_conn.recv()
    assert msg["index"] == 1
    assert msg["result"] == expected
    assert "error" not in msg


def test_worker_sends_error() -> None:
    """Worker sends the raised error itself for a failing computation."""
    parent_conn, child_conn = Pipe()
    worker = WorkerProcess(conn=child_conn, operation=Divide(), left=1.0, right=0.0, index=2)
    worker.run()

    msg = parent_conn.recv()
    assert msg["index"] == 2
    assert isinstance(msg["error"], DivisionByZeroError)
    assert "result" not in msg


def test_worker_closes_connection() -> None:
    """The child end of the pipe is closed once the worker is done."""
    _, child_conn = Pipe()
    worker = WorkerProcess(conn=child_conn, operation=Add(), left=1.0, right=1.0, index=1)
    worker.run()
    assert child_conn.closed


def test_worker_rejects_invalid_index() -> None:
    """Pydantic validation prevents creating a WorkerProcess with a non-positive index."""
    _, child_conn = Pipe()
    with pytest.raises(ValueError):
        WorkerProcess(conn=child_conn, operation=Add(), left=1.0, right=1.0, index=0)


class TwoPartError(Exception):
    """Exception whose constructor does not accept its own args."""

    def __init__(self, first: str, second: str) -> None:
        super().__init__(f"{first}/{second}")


class Midpoint:
    """Duck-typed operation without an Operation base class."""

    def compute(self, left: float, right: float) -> float:
        return (left + right) / 2


def test_transferable_error_keeps_picklable_errors() -> None:
    """Errors that survive pickling are sent unchanged."""
    exc = DivisionByZeroError("Division by zero is not possible")
    assert transferable_error(exc) is exc


def test_transferable_error_replaces_unpicklable_errors() -> None:
    """Errors that cannot be rebuilt become a CalculatorError carrying their class name and message."""
    converted = transferable_error(TwoPartError("a", "b"))
    assert isinstance(converted, CalculatorError)
    assert str(converted) == "TwoPartError: a/b"


def test_worker_accepts_duck_typed_operation() -> None:
    """Any object with a compute method can be run by a worker."""
    parent_conn, child_conn = Pipe()
    worker = WorkerProcess(conn=child_conn, operation=Midpoint(), left=2.0, right=6.0, index=1)
    worker.run()

    assert parent_conn.recv() == {"index": 1, "result": 4.0}
