"""Data models for field extraction."""

from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Any, Optional, TypedDict

from pydantic import BaseModel, Field as PydanticField


class Field(str, Enum):
    """Job fields produced by the extraction engine."""

    POSITION = "position"
    COMPANY = "company"
    LOCATION = "location"
    SALARY = "salary"
    JOB_DESCRIPTION = "jobDescription"

    @classmethod
    def coerce(cls, value: "Field | str") -> "Field":
        """Accept a Field or its wire name ("jobDescription")."""
        if isinstance(value, cls):
            return value
        return cls(value)


FIELDS: tuple[Field, ...] = tuple(Field)


@dataclass(frozen=True)
class Candidate:
    """A single proposed value for a field.

    Strategies create candidates with their own confidence (or 0.0 to let
    the scorer decide). Later stages never mutate a candidate; they build
    a new one with ``dataclasses.replace``.
    """

    value: str
    source: str
    confidence: float = 0.0
    selector: str = ""
    metadata: dict = dc_field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: dict, source: str = "unknown") -> "Candidate":
        """Build a candidate from the loose dict form used by plugin strategies.

        Raises:
            TypeError: value is not text or a number
            ValueError: confidence is not numeric
        """
        value = data.get("value")
        if value is not None and (isinstance(value, bool) or not isinstance(value, (str, int, float))):
            raise TypeError(f"Unsupported candidate value: {type(value).__name__}")
        return cls(
            value=str(value or ""),
            source=data.get("source") or source,
            confidence=float(data.get("confidence") or 0.0),
            selector=data.get("selector") or "",
            metadata=dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "source": self.source,
            "confidence": self.confidence,
            "selector": self.selector,
        }


# Candidate whose confidence has been set by the scorer
ScoredCandidate = Candidate


@dataclass
class FieldResult:
    """Winning value for one field."""

    value: str = ""
    confidence: float = 0.0
    source: Optional[str] = None
    selector: Optional[str] = None
    alternates: list[Candidate] = dc_field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.value

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "confidence": round(self.confidence, 4),
            "source": self.source,
            "selector": self.selector,
            "alternates": [c.to_dict() for c in self.alternates],
        }


@dataclass
class ExtractionMeta:
    """Diagnostics attached to an extraction result."""

    strategies_used: list[str] = dc_field(default_factory=list)
    conflicts: dict[Field, list[str]] = dc_field(default_factory=dict)
    timing: dict[str, float] = dc_field(default_factory=dict)
    llm_used: bool = False
    error: Optional[str] = None
    platform: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "strategiesUsed": list(self.strategies_used),
            "conflicts": {f.value: list(values) for f, values in self.conflicts.items()},
            "timing": {stage: round(ms, 2) for stage, ms in self.timing.items()},
            "llmUsed": self.llm_used,
            "error": self.error,
            "platform": self.platform,
        }


@dataclass
class ExtractionResult:
    """Final per-field results with overall confidence and diagnostics."""

    fields: dict[Field, FieldResult] = dc_field(
        default_factory=lambda: {f: FieldResult() for f in FIELDS}
    )
    overall_confidence: float = 0.0
    meta: ExtractionMeta = dc_field(default_factory=ExtractionMeta)

    def __getitem__(self, key: Field | str) -> FieldResult:
        return self.fields[Field.coerce(key)]

    @property
    def position(self) -> FieldResult:
        return self.fields[Field.POSITION]

    @property
    def company(self) -> FieldResult:
        return self.fields[Field.COMPANY]

    @property
    def location(self) -> FieldResult:
        return self.fields[Field.LOCATION]

    @property
    def salary(self) -> FieldResult:
        return self.fields[Field.SALARY]

    @property
    def job_description(self) -> FieldResult:
        return self.fields[Field.JOB_DESCRIPTION]

    @classmethod
    def empty(cls, error: Optional[str] = None) -> "ExtractionResult":
        """Result with every field empty, used when extraction fails."""
        return cls(meta=ExtractionMeta(error=error))

    def to_flat(self) -> dict[str, Any]:
        """Flatten into the consumer form: plain values plus diagnostics."""
        flat: dict[str, Any] = {f.value: self.fields[f].value for f in FIELDS}
        flat["overallConfidence"] = self.overall_confidence
        flat["_extractionMeta"] = self.meta.to_dict()
        return flat

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {f.value: self.fields[f].to_dict() for f in FIELDS}
        data["overallConfidence"] = round(self.overall_confidence, 4)
        data["_extractionMeta"] = self.meta.to_dict()
        return data


class FieldMap(TypedDict, total=False):
    """Partial field map returned by ML and LLM extractors.

    Extractors may use the synonyms ``title``, ``organization`` and
    ``description`` instead of the canonical keys.
    """

    position: str
    title: str
    company: str
    organization: str
    location: str
    salary: str
    jobDescription: str
    description: str


# ============================================================================
# Pydantic models for LLM Structured Outputs
# ============================================================================


class ExtractedFieldsSchema(BaseModel):
    """Schema for LLM field extraction responses."""

    position: Optional[str] = PydanticField(default=None, description="Job title")
    company: Optional[str] = PydanticField(default=None, description="Hiring company name")
    location: Optional[str] = PydanticField(default=None, description="Job location")
    salary: Optional[str] = PydanticField(
        default=None, description="Salary or compensation as written on the page"
    )
