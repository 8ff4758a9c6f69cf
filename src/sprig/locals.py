"""Request-scoped locals with explicit, typed retrieval.

Middleware writes, later middleware and the handler read. A missing key
is a ``KeyError`` and a value of the wrong type is a ``TypeError``.
"""

from collections.abc import Iterator
from typing import Any, overload


class Locals:
    """Key/value store living exactly as long as one request.

    Usage::

        # In middleware
        ctx.locals["user_id"] = 7

        # In the handler
        user_id = ctx.locals.require("user_id", int)
    """

    __slots__ = ("_data",)

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __getitem__(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError:
            msg = f"No local {key!r} was set for this request"
            raise KeyError(msg) from None

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<Locals {self._data!r}>"

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any earlier value."""
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* when it was never set."""
        return self._data.get(key, default)

    @overload
    def require[T](self, key: str, expected: type[T]) -> T: ...
    @overload
    def require(self, key: str, expected: None = None) -> Any: ...

    def require(self, key: str, expected: type | None = None) -> Any:
        """Return the value for *key*, checking its type when *expected* is given.

        Raises ``KeyError`` if the key is missing and ``TypeError`` if the
        stored value is not an instance of *expected*.
        """
        value = self[key]
        if expected is not None and not isinstance(value, expected):
            msg = (
                f"Local {key!r} is {type(value).__name__}, "
                f"expected {expected.__name__}"
            )
            raise TypeError(msg)
        return value
