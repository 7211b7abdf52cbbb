"""Lookup table from operator tokens to operation factories."""
from typing import Callable, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from infix_calculator.common.errors import UnknownOperatorError
from infix_calculator.common.operations import BUILTIN_OPERATIONS, Computable


# Type alias for a zero-argument constructor of an operation
OperationFactory = Callable[[], Computable]


def default_factories() -> Dict[str, OperationFactory]:
    """Return a fresh token -> factory mapping holding the built-in operations."""
    return dict(BUILTIN_OPERATIONS)


class OperationRegistry(BaseModel):
    """
    Map operator tokens to factories of stateless operations.

    New operators are added with :meth:`register` without touching the evaluator.
    The registry is populated once at startup; concurrent :meth:`resolve` calls
    are safe after that, but registration itself is not synchronized.

    Lookups are exact and case-sensitive: ``"Log"`` does not resolve to ``"log"``.
    A factory may build an :class:`~infix_calculator.common.operations.Operation`
    or any other object with a callable ``compute(left, right)``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    factories: Dict[str, OperationFactory] = Field(
        default_factory=default_factories,
        description="Operator token to zero-argument operation constructor",
    )

    def register(self, token: str, factory: OperationFactory) -> None:
        """
        Associate an operator token with an operation factory.

        Registering an existing token replaces the previous factory.

        :param str token: Operator token, non-empty and without spaces
        :param OperationFactory factory: Zero-argument callable building the operation

        :return: None
        :raises ValueError: If the token is empty or contains a space
        :raises TypeError: If the factory is not callable
        """
        if not token or " " in token:
            raise ValueError(f"Operator token must be non-empty and contain no space: {token!r}")
        if not callable(factory):
            raise TypeError(f"Factory for {token!r} is not callable")
        self.factories[token] = factory

    def resolve(self, token: str) -> Computable:
        """
        Build the operation registered under ``token``.

        :param str token: Operator token

        :return: Operation instance
        :rtype: Computable
        :raises UnknownOperatorError: If no factory is registered for the token
        :raises TypeError: If the factory builds something without a callable ``compute``
        """
        try:
            factory: OperationFactory = self.factories[token]
        except KeyError:
            raise UnknownOperatorError(token) from None

        operation = factory()
        if not isinstance(operation, Computable) or not callable(operation.compute):
            raise TypeError(f"Factory for {token!r} returned {type(operation).__name__}, which has no compute method")
        return operation

    @property
    def tokens(self) -> List[str]:
        """Registered operator tokens, sorted."""
        return sorted(self.factories)

    def __contains__(self, token: object) -> bool:
        return token in self.factories
