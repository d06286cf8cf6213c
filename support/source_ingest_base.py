from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any

import db


@dataclass
class IngestRunResult:
    """Counters for one ingest run; `details` holds per-unit summaries."""

    processed: int = 0
    stored: int = 0
    failed: int = 0
    details: list[dict[str, Any]] = field(default_factory=list)


class SourceIngestBase(abc.ABC):
    """Reusable base class for the upstream ingestion jobs.

    Subclasses implement `run()`. Each run opens its own session(s) from
    `session_factory` and closes them before returning; nothing is shared
    between runs.
    """

    source_name: str

    def __init__(
        self,
        *,
        api_key: str = "",
        session_factory: Any = None,
    ) -> None:
        self.api_key = api_key
        self.session_factory = session_factory or db.SessionLocal

    @property
    def mock_mode(self) -> bool:
        return not self.api_key

    @abc.abstractmethod
    def run(self) -> IngestRunResult:  # pragma: no cover
        raise NotImplementedError
