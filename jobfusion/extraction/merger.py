"""Merging of strategy, ML and LLM outputs into one result per field."""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional

from jobfusion.constants import (
    LLM_AGREEMENT_MULTIPLIER,
    LLM_CONFIDENCE,
    LLM_REPLACE_BELOW,
    MAX_ALTERNATES,
    MAX_CONFIDENCE,
    ML_CONFIDENCE,
    ML_SELECTOR,
)
from jobfusion.models import (
    Candidate,
    ExtractionMeta,
    ExtractionResult,
    Field,
    FieldResult,
    FIELDS,
    ScoredCandidate,
)
from .confidence import (
    ConfidenceScorer,
    CrossValidator,
    are_similar,
    calculate_overall_confidence,
    get_confidence_level,
    normalize_value,
)
from .sources import ExtractionSource
from .strategies.base import StrategyResult
from .validators import Validator, clean_text, sanitize_text

logger = logging.getLogger(__name__)

# Keys accepted from ML/LLM extractors, canonical key first
EXTERNAL_FIELD_KEYS = {
    Field.POSITION: ("position", "title"),
    Field.COMPANY: ("company", "organization"),
    Field.LOCATION: ("location",),
    Field.SALARY: ("salary", "compensation"),
    Field.JOB_DESCRIPTION: ("jobDescription", "description"),
}


@dataclass
class MergedCandidates:
    """All candidates per field plus the sources that contributed."""

    candidates: dict[Field, list[Candidate]] = field(
        default_factory=lambda: {f: [] for f in FIELDS}
    )
    strategies_used: list[str] = field(default_factory=list)

    def __getitem__(self, key: Field | str) -> list[Candidate]:
        return self.candidates[Field.coerce(key)]


def external_value(data: Mapping[str, Any], field_name: Field) -> Optional[str]:
    """First non-blank string an extractor returned for a field."""
    for key in EXTERNAL_FIELD_KEYS[field_name]:
        value = data.get(key)
        if isinstance(value, (str, int, float)) and str(value).strip():
            return str(value)
    return None


class Merger:
    """Fuses candidates from every source into an ExtractionResult."""

    def __init__(
        self,
        validator: Optional[Validator] = None,
        scorer: Optional[ConfidenceScorer] = None,
        cross_validator: Optional[CrossValidator] = None,
    ):
        self.validator = validator or Validator()
        self.scorer = scorer or ConfidenceScorer()
        self.cross_validator = cross_validator or CrossValidator()

    def merge_results(self, strategy_results: Iterable[StrategyResult | dict | None]) -> MergedCandidates:
        """Concatenate candidates per field across strategies.

        Plain dicts in the ``{field: [...], "metadata": {...}}`` shape are
        accepted; ``None`` entries (failed strategies) are skipped.
        """
        merged = MergedCandidates()
        for result in strategy_results:
            if result is None:
                continue
            if isinstance(result, dict):
                result = StrategyResult.from_dict(result)

            for f in FIELDS:
                merged.candidates[f].extend(result.candidates.get(f, []))
            if result.source and result.source not in merged.strategies_used:
                merged.strategies_used.append(result.source)
        return merged

    def merge_dom_and_ml(
        self, dom: MergedCandidates, ml: Optional[Mapping[str, Any]]
    ) -> MergedCandidates:
        """Add ML extractor output as ``ml-ner`` candidates."""
        merged = MergedCandidates(
            candidates={f: list(dom.candidates.get(f, [])) for f in FIELDS},
            strategies_used=list(dom.strategies_used),
        )
        if not ml:
            return merged

        added = 0
        for f in FIELDS:
            value = external_value(ml, f)
            if value is None:
                continue
            merged.candidates[f].append(
                Candidate(
                    value=clean_text(value),
                    source=ExtractionSource.ML_NER.value,
                    confidence=ML_CONFIDENCE,
                    selector=ML_SELECTOR,
                )
            )
            added += 1

        if ExtractionSource.ML_NER.value not in merged.strategies_used:
            merged.strategies_used.append(ExtractionSource.ML_NER.value)
        logger.debug(f"ML extractor contributed {added} candidates")
        return merged

    def select_best_candidate(
        self, candidates: list[Candidate], field_name: Field
    ) -> tuple[FieldResult, list[str]]:
        """
        Pick the winner for one field.

        Args:
            candidates: All candidates proposed for the field
            field_name: The field

        Returns:
            Tuple of (FieldResult, conflicting values). Conflicts list the
            winner first, then alternates that do not resemble it.
        """
        valid = self.validator.filter_valid_candidates(candidates, field_name)
        scored: list[ScoredCandidate] = [
            replace(c, confidence=self.scorer.confidence_for(c, field_name)) for c in valid
        ]
        scored = [c for c in scored if c.confidence > 0]
        if not scored:
            return FieldResult(), []

        boost = self.cross_validator.boost(scored)
        ranked = sorted(scored, key=lambda c: c.confidence, reverse=True)
        best = ranked[0]

        best_normalized = normalize_value(best.value)
        seen = {best_normalized}
        alternates = []
        for candidate in ranked[1:]:
            normalized = normalize_value(candidate.value)
            if normalized in seen:
                continue
            seen.add(normalized)
            alternates.append(candidate)
            if len(alternates) >= MAX_ALTERNATES:
                break

        conflicts = [
            alt.value for alt in alternates
            if not are_similar(normalize_value(alt.value), best_normalized)
        ]

        result = FieldResult(
            value=best.value,
            confidence=min(MAX_CONFIDENCE, best.confidence * boost),
            source=best.source,
            selector=best.selector or None,
            alternates=alternates,
        )
        return result, [best.value, *conflicts] if conflicts else []

    def select_best_candidates(self, merged: MergedCandidates) -> ExtractionResult:
        """Select one value per field and compute the overall confidence."""
        fields: dict[Field, FieldResult] = {}
        conflicts: dict[Field, list[str]] = {}

        for f in FIELDS:
            fields[f], field_conflicts = self.select_best_candidate(merged.candidates.get(f, []), f)
            if field_conflicts:
                conflicts[f] = field_conflicts

        return ExtractionResult(
            fields=fields,
            overall_confidence=calculate_overall_confidence(fields),
            meta=ExtractionMeta(
                strategies_used=list(merged.strategies_used),
                conflicts=conflicts,
            ),
        )

    def merge_with_llm(
        self, current: ExtractionResult, llm: Optional[Mapping[str, Any]]
    ) -> ExtractionResult:
        """
        Fill weak fields with LLM values and reward agreement.

        A field that is empty or below LLM_REPLACE_BELOW takes the LLM value
        at LLM_CONFIDENCE. A field the LLM confirms keeps its value with a
        boosted confidence.
        """
        if not llm:
            return current

        fields = {f: replace(r, alternates=list(r.alternates)) for f, r in current.fields.items()}
        for f in FIELDS:
            raw = external_value(llm, f)
            if raw is None:
                continue
            value = sanitize_text(clean_text(raw))
            if not value:
                continue

            existing = fields[f]
            if not existing.value or existing.confidence < LLM_REPLACE_BELOW:
                fields[f] = FieldResult(
                    value=value,
                    confidence=LLM_CONFIDENCE,
                    source=ExtractionSource.LLM.value,
                    selector=None,
                    alternates=list(existing.alternates),
                )
            elif normalize_value(existing.value) == normalize_value(value):
                fields[f] = replace(
                    existing,
                    confidence=min(MAX_CONFIDENCE, existing.confidence * LLM_AGREEMENT_MULTIPLIER),
                )

        return ExtractionResult(
            fields=fields,
            overall_confidence=calculate_overall_confidence(fields),
            meta=replace(
                current.meta,
                strategies_used=list(current.meta.strategies_used),
                conflicts=dict(current.meta.conflicts),
                timing=dict(current.meta.timing),
                llm_used=True,
            ),
        )


def flatten_results(result: ExtractionResult) -> dict[str, Any]:
    """Consumer form: plain values, overall confidence and diagnostics."""
    return result.to_flat()


def to_job_info(result: ExtractionResult, url: str = "", platform: Optional[str] = None) -> dict[str, Any]:
    """Job record with per-field confidence, as saved by callers."""
    return {
        "position": result.position.value,
        "company": result.company.value,
        "location": result.location.value,
        "salary": result.salary.value,
        "jobDescription": result.job_description.value,
        "jobUrl": url,
        "platform": platform or result.meta.platform or "other",
        "_confidence": {
            "overall": result.overall_confidence,
            "level": get_confidence_level(result.overall_confidence),
            "fields": {f.value: result.fields[f].confidence for f in FIELDS},
            "llmUsed": result.meta.llm_used,
        },
    }
