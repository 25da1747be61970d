"""Collecting several errors and reporting them together."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class MultiError(Exception):
    """An error made of several underlying errors."""

    def __init__(self, errors: Iterable[BaseException | str]) -> None:
        self.errors: list[BaseException | str] = list(errors)
        super().__init__(self._message())

    def _message(self) -> str:
        lines = [f"{len(self.errors)} errors occured.\n"]
        lines.extend(f"\t* {err}\n" for err in self.errors)
        return "".join(lines)

    def __str__(self) -> str:
        return self._message()


class ErrorCollector:
    """Accumulates errors so that they can be reported in one go."""

    def __init__(self) -> None:
        self._errors: list[BaseException | str] = []

    def add(self, err: BaseException | str) -> None:
        """Record an error."""
        self._errors.append(err)

    def error_or_none(self) -> MultiError | None:
        """Return a MultiError holding every recorded error, or None if there are none."""
        if not self._errors:
            return None
        return MultiError(self._errors)

    def raise_if_any(self) -> None:
        """Raise a MultiError if any error has been recorded."""
        error = self.error_or_none()
        if error is not None:
            raise error

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[BaseException | str]:
        return iter(self._errors)