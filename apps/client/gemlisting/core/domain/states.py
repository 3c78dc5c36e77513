"""Explicit states for the wizard's asynchronous concerns.

Each concern is a single value instead of parallel loading/error/success
flags, so combinations like "succeeded and failed" cannot be expressed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from gemlisting.interfaces.api.schemas import ExtractedMetadata, ExtractionMeta


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class InFlight:
    progress: int = 0


@dataclass(frozen=True)
class Succeeded:
    data: ExtractedMetadata
    meta: Optional[ExtractionMeta] = None


@dataclass(frozen=True)
class Failed:
    message: str


ExtractionState = Union[Idle, InFlight, Succeeded, Failed]


class RestoreState(str, Enum):
    """Guard for restoring a stored lab report so OCR is auto-run at most once."""

    pending = "pending"
    in_flight = "in_flight"
    already_attempted = "already_attempted"


class SubmissionState(str, Enum):
    idle = "idle"
    uploading = "uploading"
    submitting = "submitting"
