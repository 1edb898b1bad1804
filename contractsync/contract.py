"""
Runtime contract API.

The analyzer recognizes calls to these functions by qualified name:

    contract.requires(arg is not None)
    contract.ensures(contract.result(List[str]) is not None)
    contract.invariant(self.name is not None)

`requires` and `invariant` check their condition immediately. `ensures` and
`result` are markers for the static tooling, since the return value is not
known at member entry.
"""

from typing import Any, Optional


class ContractViolation(AssertionError):
    """Raised when a precondition or invariant does not hold"""


class _Result:
    """Placeholder returned by result()"""

    def __init__(self, return_type: Any):
        self.return_type = return_type

    def __repr__(self) -> str:
        return f"result({self.return_type!r})"


def requires(condition: bool, message: Optional[str] = None) -> None:
    """
    Precondition checked at member entry.

    Raises:
        ContractViolation: If condition is false
    """
    if not condition:
        raise ContractViolation(message or "Precondition failed")


def ensures(condition: Any, message: Optional[str] = None) -> None:
    """Postcondition marker"""


def result(return_type: Any = None) -> _Result:
    """Stand-in for the member's return value inside ensures()"""
    return _Result(return_type)


def invariant(condition: bool, message: Optional[str] = None) -> None:
    """
    Object invariant, evaluated when the invariant method runs.

    Raises:
        ContractViolation: If condition is false
    """
    if not condition:
        raise ContractViolation(message or "Invariant failed")
