"""
Not-null annotation marker.

Usage:
    from contractsync import NotNull

    def greet(name: NotNull[str]) -> NotNull[str]:
        ...

    class Person:
        name: Annotated[str, NotNull]

`NotNull[T]` is shorthand for `Annotated[T, NotNull]`, so type checkers still
see `T`.
"""

from typing import Annotated, Any


class _NotNullMarker:
    """Marker placed in `Annotated` metadata"""

    def __getitem__(self, item: Any) -> Any:
        return Annotated[item, self]

    def __call__(self) -> "_NotNullMarker":
        return self

    def __repr__(self) -> str:
        return "NotNull"


NotNull = _NotNullMarker()


def is_not_null(annotation: Any) -> bool:
    """Runtime check whether an annotation object carries the NotNull marker"""
    metadata = getattr(annotation, "__metadata__", ())
    return any(m is NotNull for m in metadata)
