from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class FlatComposeError(RuntimeError):
    """Base error for linearisation failures."""


class ParseError(FlatComposeError):
    """Raised when a document cannot be parsed into a tree."""


class FileAccessError(FlatComposeError):
    """Raised when a document referenced by ``extends.file`` cannot be read."""


class ConfigError(FlatComposeError):
    """Raised when linearise settings are invalid."""


@dataclass(frozen=True)
class DanglingReference:
    service: str
    target: str | None
    file: str | None = None
    source: str | None = None

    @property
    def message(self) -> str:
        where = f" in {self.file}" if self.file else ""
        origin = f"{self.source}: " if self.source else ""
        if self.target is None:
            return (
                f"{origin}service '{self.service}' has an extends entry without "
                "a service name; resolved against an empty parent"
            )
        return (
            f"{origin}service '{self.service}' extends unknown service "
            f"'{self.target}'{where}; resolved against an empty parent"
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "target": self.target,
            "file": self.file,
            "source": self.source,
        }


@dataclass(frozen=True)
class ExtendsEdge:
    service: str
    target: str | None
    file: str | None
    source: str | None
    resolved: bool

    def to_json(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "target": self.target,
            "file": self.file,
            "source": self.source,
            "resolved": self.resolved,
        }
