"""Base class and result container for extraction strategies."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from jobfusion.models import Candidate, Field, FIELDS
from jobfusion.source import PageSource


@dataclass
class StrategyResult:
    """Candidates one strategy found, per field, plus run metadata."""

    source: str
    confidence: float = 0.0
    timing: float = 0.0  # milliseconds
    candidates: dict[Field, list[Candidate]] = field(
        default_factory=lambda: {f: [] for f in FIELDS}
    )
    extras: dict = field(default_factory=dict)

    def add(
        self,
        field_name: Field | str,
        value: Optional[str],
        confidence: float,
        selector: str = "",
    ) -> None:
        """Append a candidate; blank values are ignored."""
        if not value or not str(value).strip():
            return
        self.candidates[Field.coerce(field_name)].append(
            Candidate(value=str(value).strip(), source=self.source, confidence=confidence, selector=selector)
        )

    def __getitem__(self, key: Field | str) -> list[Candidate]:
        return self.candidates[Field.coerce(key)]

    @property
    def total(self) -> int:
        return sum(len(c) for c in self.candidates.values())

    def drop_malformed(self) -> int:
        """Remove entries that are not well-formed candidates; returns how many."""
        dropped = 0
        for f in FIELDS:
            items = self.candidates.get(f)
            if not isinstance(items, list):
                items = []
            kept = [c for c in (_coerce_candidate(item, self.source) for item in items) if c is not None]
            dropped += len(items) - len(kept)
            self.candidates[f] = kept
        return dropped

    @classmethod
    def from_dict(cls, data: dict) -> "StrategyResult":
        """Build from the plain-dict shape (five field lists plus ``metadata``)."""
        metadata = dict(data.get("metadata") or {})
        source = metadata.pop("source", None) or "unknown"
        result = cls(
            source=source,
            confidence=_as_float(metadata.pop("confidence", 0.0)),
            timing=_as_float(metadata.pop("timing", 0.0)),
            extras=metadata,
        )
        for f in FIELDS:
            items = data.get(f.value) or []
            if not isinstance(items, list):
                continue
            for item in items:
                candidate = _coerce_candidate(item, source)
                if candidate is not None:
                    result.candidates[f].append(candidate)
        return result


def _as_float(value) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _coerce_candidate(item, source: str) -> Optional[Candidate]:
    """Candidate from a loose list entry; malformed entries are skipped."""
    if isinstance(item, dict):
        try:
            item = Candidate.from_dict(item, source=source)
        except (TypeError, ValueError):
            return None
    if not isinstance(item, Candidate) or not isinstance(item.value, str):
        return None
    if isinstance(item.confidence, bool) or not isinstance(item.confidence, (int, float)):
        return None
    return item


class BaseExtractionStrategy(ABC):
    """Base class for extraction strategies.

    Subclasses fill a fresh StrategyResult in ``_collect``; ``extract``
    handles construction and timing. Exceptions propagate to the
    pipeline, which isolates them per strategy.
    """

    name: str = "base"
    priority: int = 100  # Lower runs first
    base_confidence: float = 0.5

    def is_applicable(self, source: PageSource) -> bool:
        """Whether this strategy can contribute for the given page."""
        return True

    def extract(self, source: PageSource) -> StrategyResult:
        """Extract candidates for every field from the page."""
        start = time.perf_counter()
        result = StrategyResult(source=self.name, confidence=self.base_confidence)
        self._collect(source, result)
        result.timing = (time.perf_counter() - start) * 1000
        return result

    @abstractmethod
    def _collect(self, source: PageSource, result: StrategyResult) -> None:
        """Populate ``result`` with candidates."""
        pass
