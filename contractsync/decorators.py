"""
Decorators linking abstract types to their contract classes.

Usage:
    @contract_class("RepositoryContract")
    class Repository(Protocol):
        def find(self, key: NotNull[str]) -> NotNull[object]:
            ...

    @contract_class_for(Repository)
    class RepositoryContract:
        def find(self, key):
            contract.requires(key is not None)
            contract.ensures(contract.result(object) is not None)
            return object()

Invariant method:
    class Person:
        name: NotNull[str]

        @contract_invariant_method
        def _invariants(self):
            contract.invariant(self.name is not None)
"""

from typing import Callable, TypeVar, Union

T = TypeVar('T')
F = TypeVar('F', bound=Callable)


def contract_class(companion: Union[str, type]) -> Callable[[T], T]:
    """
    Mark an interface or abstract class as having a contract class.

    Args:
        companion: The contract class, or its name when it is declared later
            in the same module
    """
    def decorator(cls: T) -> T:
        cls.__contract_class__ = companion
        return cls
    return decorator


def contract_class_for(target: type) -> Callable[[T], T]:
    """
    Mark a class as holding the contracts of `target`.

    Args:
        target: The interface or abstract class whose members this class
            carries contract statements for
    """
    def decorator(cls: T) -> T:
        cls.__contract_class_for__ = target
        if getattr(target, '__contract_class__', None) == cls.__name__:
            target.__contract_class__ = cls
        return cls
    return decorator


def contract_invariant_method(func: F) -> F:
    """
    Mark the method holding a class's invariant statements.

    The method takes no parameters besides `self`. Only the first marked
    method of a class is used.
    """
    func.__contract_invariant_method__ = True
    return func
