"""
Ticket Error Values
===================

Error values carried by ``Err`` results from the ticket services.

CreateError distinguishes a caller-input defect (VALIDATION_FAILED) from a
store or transport defect (CREATION_FAILED) so they are logged and reported
differently upstream. LinkError is always best-effort.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class CreateErrorKind(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    CREATION_FAILED = "creation_failed"


@dataclass(frozen=True)
class CreateError:
    kind: CreateErrorKind
    message: str
    details: Dict[str, str] = field(default_factory=dict)

    @property
    def http_status(self) -> int:
        return 400 if self.kind == CreateErrorKind.VALIDATION_FAILED else 500

    @classmethod
    def validation_failed(cls, details: Dict[str, str]) -> "CreateError":
        summary = "; ".join(f"{name}: {problem}" for name, problem in sorted(details.items()))
        return cls(CreateErrorKind.VALIDATION_FAILED, f"Validation failed: {summary}", dict(details))

    @classmethod
    def creation_failed(cls, cause: str) -> "CreateError":
        return cls(CreateErrorKind.CREATION_FAILED, f"Creation failed: {cause}")


class LinkErrorKind(str, Enum):
    SEARCH_FAILED = "search_failed"
    LINK_FAILED = "link_failed"
    NO_LINK_TYPE = "no_link_type"


@dataclass(frozen=True)
class LinkError:
    kind: LinkErrorKind
    message: str
    problem_id: Optional[int] = None
