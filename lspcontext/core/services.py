"""
Interfaces of the external collaborators the crawler depends on.

The editor (or a test) supplies concrete implementations:
1. Parser: builds syntax trees and the node path down to the cursor
2. LookupService: runs go-to-definition style commands
3. HoverService: returns hover summaries
4. FileReader: reads whole files or ranges of them

Every call into one of these goes through `Outcome.of`, so failures are values
until a component decides to turn them into an empty result.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Protocol, Sequence, TypeVar

from lspcontext.core.entities import Range

T = TypeVar("T")


class Parser(Protocol):
    def parse(self, filepath: str, contents: str) -> Optional[Any]:
        ...

    def path_to_cursor(self, tree: Any, offset: int) -> Optional[list[Any]]:
        ...


class LookupService(Protocol):
    def lookup(
        self, command: str, filepath: str, line: int, character: int
    ) -> Awaitable[Sequence[Any]]:
        ...


class HoverService(Protocol):
    def hover(self, filepath: str, line: int, character: int) -> Awaitable[Sequence[Any]]:
        ...


class FileReader(Protocol):
    def read_file(self, filepath: str) -> Awaitable[str]:
        """
        Whole file contents. Components only call `read_range`; this is here for
        adapters, which typically build `read_range` on top of it.
        """
        ...

    def read_range(self, filepath: str, range: Range) -> Awaitable[str]:
        ...


@dataclass
class Outcome(Generic[T]):
    """Result of one external call: a value, or the reason it failed."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str:
        if self.error is None:
            return ""
        if isinstance(self.error, asyncio.TimeoutError):
            return "timed out"
        return f"{type(self.error).__name__}: {self.error}"

    @classmethod
    async def of(
        cls,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        timeout: Optional[float] = None,
    ) -> "Outcome[T]":
        """Await `fn(*args)`, capturing any exception it raises, sync or async."""
        try:
            if timeout:
                value = await asyncio.wait_for(fn(*args), timeout)
            else:
                value = await fn(*args)
        except Exception as e:
            return cls(error=e)
        return cls(value=value)


def field_of(obj: Any, *names: str) -> Any:
    """First non-empty attribute or key among `names`, for dict- or object-shaped payloads."""
    for name in names:
        if isinstance(obj, dict):
            value = obj.get(name)
        else:
            value = getattr(obj, name, None)
        if value:
            return value
    return None
