"""Editable source text with a monotonically increasing version stamp."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceSnapshot:
    version: int
    text: str


class SourceBuffer:
    """Holds the current source text; every edit bumps the version by one.

    Versions are never reused and are the only token used to detect stale
    compile results.
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._version = 0

    def edit(self, new_text: str) -> int:
        """Replace the text unconditionally and return the new version."""
        self._text = new_text
        self._version += 1
        return self._version

    def current_version(self) -> int:
        return self._version

    def current_text(self) -> str:
        return self._text

    def snapshot(self) -> SourceSnapshot:
        """Version and text read together, so both reflect the same edit."""
        return SourceSnapshot(version=self._version, text=self._text)
