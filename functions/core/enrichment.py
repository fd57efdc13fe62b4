# functions/core/enrichment.py
"""
functions.core.enrichment

Declarative enrichment steps (skillset skills) and their ordering checks.

A step is data, not code: a step type from a closed vocabulary, a context path,
ordered inputs (parameter -> source path) and ordered outputs (value -> target name).
`to_wire()` renders the service's skill JSON; nothing here talks to the network.

Data-availability invariant
---------------------------
Steps run in list order. An input source must be either a base-document path
(e.g. `/document/content`) or a path an earlier step produced, i.e.
`<earlier step context>/<output target name>`. Trailing `/*` fan-out selectors are
ignored when matching, so `/document/pages/*` is satisfied by a step producing
`/document/pages`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StepType(str, Enum):
    TEXT_EXTRACTION = "text_extraction"
    TEXT_MERGE = "text_merge"
    LANGUAGE_DETECTION = "language_detection"
    TEXT_SPLITTING = "text_splitting"
    ENTITY_RECOGNITION = "entity_recognition"
    KEY_PHRASE_EXTRACTION = "key_phrase_extraction"


SKILL_ODATA_TYPES: Dict[StepType, str] = {
    StepType.TEXT_EXTRACTION: "#Microsoft.Skills.Vision.OcrSkill",
    StepType.TEXT_MERGE: "#Microsoft.Skills.Text.MergeSkill",
    StepType.LANGUAGE_DETECTION: "#Microsoft.Skills.Text.LanguageDetectionSkill",
    StepType.TEXT_SPLITTING: "#Microsoft.Skills.Text.SplitSkill",
    StepType.ENTITY_RECOGNITION: "#Microsoft.Skills.Text.V3.EntityRecognitionSkill",
    StepType.KEY_PHRASE_EXTRACTION: "#Microsoft.Skills.Text.KeyPhraseExtractionSkill",
}

DEFAULT_BASE_DOCUMENT_PATHS: List[str] = [
    "/document/content",
    "/document/normalized_images/*",
    "/document/normalized_images/*/contentOffset",
]

# Skill keys rendered from the step's own fields.
_RESERVED_SKILL_KEYS = frozenset({"@odata.type", "name", "description", "context", "inputs", "outputs"})


class EnrichmentStep(BaseModel):
    """One skill in an enrichment pipeline."""

    model_config = ConfigDict(extra="forbid")

    step_type: StepType
    name: str | None = None
    description: str | None = None
    context: str = "/document"
    inputs: Dict[str, str] = Field(default_factory=dict)
    outputs: Dict[str, str] = Field(default_factory=dict)
    # Step-specific service settings, passed through verbatim (camelCase keys).
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("context")
    @classmethod
    def _validate_context(cls, v: str) -> str:
        if not v.startswith("/document"):
            raise ValueError(f"step context must start with '/document', got {v!r}")
        return v

    @field_validator("inputs")
    @classmethod
    def _validate_inputs(cls, v: Dict[str, str]) -> Dict[str, str]:
        for param, source in v.items():
            if not str(source).startswith("/document"):
                raise ValueError(f"input {param!r} source must start with '/document', got {source!r}")
        return v

    @field_validator("outputs")
    @classmethod
    def _validate_outputs(cls, v: Dict[str, str]) -> Dict[str, str]:
        if not v:
            raise ValueError("a step must declare at least one output")
        for value_name, target in v.items():
            if not target or "/" in target:
                raise ValueError(f"output {value_name!r} target must be a plain field name, got {target!r}")
        return v

    @field_validator("parameters")
    @classmethod
    def _validate_parameters(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        reserved = sorted(set(v) & _RESERVED_SKILL_KEYS)
        if reserved:
            raise ValueError(f"step parameters may not set {reserved}; use the step's own fields")
        return v

    def produced_paths(self) -> List[str]:
        """Paths this step adds to the enriched document."""
        ctx = self.context.rstrip("/")
        return [f"{ctx}/{target}" for target in self.outputs.values()]

    def to_wire(self, *, position: int) -> Dict[str, Any]:
        """
        Render the service skill JSON.

        `position` is 1-based; unnamed steps get the service's own `#<n>` naming so the
        remote copy compares equal after a round trip.
        """
        out: Dict[str, Any] = {
            "@odata.type": SKILL_ODATA_TYPES[self.step_type],
            "name": self.name or f"#{position}",
            "context": self.context,
            "inputs": [{"name": k, "source": v} for k, v in self.inputs.items()],
            "outputs": [{"name": k, "targetName": v} for k, v in self.outputs.items()],
        }
        if self.description is not None:
            out["description"] = self.description
        out.update(self.parameters)
        return out


def normalize_path(path: str) -> str:
    """Strip trailing `/*` selectors and slashes (`/document/pages/*` -> `/document/pages`)."""
    p = path.rstrip("/")
    while p.endswith("/*"):
        p = p[:-2]
    return p


def available_paths(steps: Iterable[EnrichmentStep], base_paths: Iterable[str]) -> Set[str]:
    """Every normalized path present once all steps have run."""
    out = {normalize_path(p) for p in base_paths}
    for step in steps:
        out.update(normalize_path(p) for p in step.produced_paths())
    return out


def check_step_order(steps: List[EnrichmentStep], base_paths: Iterable[str]) -> List[str]:
    """
    Return a list of problems (empty when valid).

    Checks:
    - each input source is available before the step runs
    - step names are unique
    """
    problems: List[str] = []
    available = {normalize_path(p) for p in base_paths}
    seen_names: Set[str] = set()

    for i, step in enumerate(steps, start=1):
        label = step.name or f"#{i}"
        if label in seen_names:
            problems.append(f"duplicate step name {label!r}")
        seen_names.add(label)

        for param, source in step.inputs.items():
            if normalize_path(source) not in available:
                problems.append(
                    f"step {label} ({step.step_type.value}) input {param!r} reads {source!r} "
                    "before any earlier step or the base document provides it"
                )
        available.update(normalize_path(p) for p in step.produced_paths())

    return problems


def skills_to_wire(steps: List[EnrichmentStep]) -> List[Dict[str, Any]]:
    return [s.to_wire(position=i) for i, s in enumerate(steps, start=1)]


__all__ = [
    "StepType",
    "EnrichmentStep",
    "SKILL_ODATA_TYPES",
    "DEFAULT_BASE_DOCUMENT_PATHS",
    "normalize_path",
    "available_paths",
    "check_step_order",
    "skills_to_wire",
]
