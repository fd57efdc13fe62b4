# functions/core/pipeline_definition.py
"""
functions.core.pipeline_definition

Typed, declarative definition of the whole enrichment pipeline and the builders that
turn it into ResourceDescriptors (service wire payloads).

Responsibilities
- Hold the desired state for data source, skillset, index and indexer
  (embedded as the `search:` block of parameters.yaml).
- Validate cross-resource invariants BEFORE any network call:
  - enrichment steps only read paths that are available (see core.enrichment)
  - exactly one key field, of type Edm.String
  - every field-mapping target exists in the index
  - every output-field-mapping source is produced by the skillset
- Build descriptors in canonical order:
    DataSource -> EnrichmentPipeline -> IndexSchema -> Indexer

Secrets
- The storage connection string is NOT part of the definition; it is passed in by the
  caller (resolved from an environment variable) and only placed in the data source payload.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from functions.core.enrichment import (
    DEFAULT_BASE_DOCUMENT_PATHS,
    EnrichmentStep,
    available_paths,
    check_step_order,
    normalize_path,
    skills_to_wire,
)
from functions.core.errors import PipelineDefinitionError
from functions.core.resources import ResourceDescriptor, ResourceKind

_EDM_TYPES = {
    "Edm.String",
    "Edm.Int32",
    "Edm.Int64",
    "Edm.Double",
    "Edm.Boolean",
    "Edm.DateTimeOffset",
    "Edm.GeographyPoint",
}


# -----------------------------
# Index schema
# -----------------------------
class IndexField(BaseModel):
    """One field of the index schema. All flags are always rendered explicitly."""

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str = "Edm.String"
    key: bool = False
    searchable: bool = False
    filterable: bool = False
    facetable: bool = False
    sortable: bool = False
    retrievable: bool = True

    @field_validator("type")
    @classmethod
    def _validate_type(cls, v: str) -> str:
        inner = v[len("Collection(") : -1] if v.startswith("Collection(") and v.endswith(")") else v
        if inner not in _EDM_TYPES:
            raise ValueError(f"unsupported field type {v!r}")
        return v

    @property
    def is_collection(self) -> bool:
        return self.type.startswith("Collection(")

    def to_wire(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "key": self.key,
            "searchable": self.searchable,
            "filterable": self.filterable,
            "facetable": self.facetable,
            # collections cannot be sorted on the service
            "sortable": False if self.is_collection else self.sortable,
            "retrievable": self.retrievable,
        }


class IndexSpec(BaseModel):
    name: str = "demoindex"
    fields: List[IndexField] = Field(default_factory=list)

    @field_validator("fields")
    @classmethod
    def _validate_fields_nonempty(cls, v: List[IndexField]) -> List[IndexField]:
        if not v:
            raise ValueError("search.index.fields must contain at least one field")
        return v


# -----------------------------
# Data source
# -----------------------------
class DataSourceSpec(BaseModel):
    name: str = "demodata"
    type: str = "azureblob"
    container: str = "cog-search-demo"
    query: Optional[str] = None  # virtual folder inside the container
    description: Optional[str] = None


# -----------------------------
# Skillset
# -----------------------------
class SkillsetSpec(BaseModel):
    name: str = "demoskillset"
    description: Optional[str] = None
    steps: List[EnrichmentStep] = Field(default_factory=list)


# -----------------------------
# Indexer
# -----------------------------
class FieldMapping(BaseModel):
    """Projection of a source field (or enrichment path) onto an index field."""

    model_config = ConfigDict(extra="forbid")

    source: str
    target: Optional[str] = None  # defaults to source for plain field mappings
    function: Optional[str] = None
    function_parameters: Dict[str, Any] = Field(default_factory=dict)

    @property
    def target_name(self) -> str:
        return self.target or self.source

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sourceFieldName": self.source,
            "targetFieldName": self.target_name,
        }
        if self.function:
            out["mappingFunction"] = {"name": self.function, "parameters": dict(self.function_parameters)}
        return out


class IndexerParametersSpec(BaseModel):
    max_failed_items: Optional[int] = -1
    max_failed_items_per_batch: Optional[int] = -1
    batch_size: Optional[int] = None
    configuration: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.batch_size is not None:
            out["batchSize"] = self.batch_size
        if self.max_failed_items is not None:
            out["maxFailedItems"] = self.max_failed_items
        if self.max_failed_items_per_batch is not None:
            out["maxFailedItemsPerBatch"] = self.max_failed_items_per_batch
        if self.configuration:
            out["configuration"] = dict(self.configuration)
        return out


class IndexerSpec(BaseModel):
    name: str = "demoindexer"
    description: Optional[str] = None
    parameters: IndexerParametersSpec = Field(default_factory=IndexerParametersSpec)
    field_mappings: List[FieldMapping] = Field(default_factory=list)
    output_field_mappings: List[FieldMapping] = Field(default_factory=list)

    @field_validator("output_field_mappings")
    @classmethod
    def _validate_output_sources(cls, v: List[FieldMapping]) -> List[FieldMapping]:
        for m in v:
            if not m.source.startswith("/document"):
                raise ValueError(f"output field mapping source must be an enrichment path, got {m.source!r}")
        return v


# -----------------------------
# Whole pipeline
# -----------------------------
class SearchPipelineSpec(BaseModel):
    """Desired state of the four resources (`search:` block of parameters.yaml)."""

    data_source: DataSourceSpec = Field(default_factory=DataSourceSpec)
    skillset: SkillsetSpec = Field(default_factory=SkillsetSpec)
    index: IndexSpec
    indexer: IndexerSpec = Field(default_factory=IndexerSpec)
    base_document_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_BASE_DOCUMENT_PATHS))


def validate_pipeline_definition(spec: SearchPipelineSpec) -> None:
    """
    Cross-resource checks that need no network.

    Raises:
      PipelineDefinitionError: listing every problem found.
    """
    problems: List[str] = []

    problems.extend(check_step_order(spec.skillset.steps, spec.base_document_paths))

    keys = [f for f in spec.index.fields if f.key]
    if len(keys) != 1:
        problems.append(f"index {spec.index.name!r} must have exactly one key field, found {len(keys)}")
    elif keys[0].type != "Edm.String":
        problems.append(f"key field {keys[0].name!r} must be Edm.String, got {keys[0].type}")

    names = [f.name for f in spec.index.fields]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        problems.append(f"duplicate index fields: {dupes}")

    index_fields = set(names)
    for m in spec.indexer.field_mappings + spec.indexer.output_field_mappings:
        if m.target_name not in index_fields:
            problems.append(f"field mapping target {m.target_name!r} is not a field of index {spec.index.name!r}")

    produced = available_paths(spec.skillset.steps, spec.base_document_paths)
    for m in spec.indexer.output_field_mappings:
        if normalize_path(m.source) not in produced:
            problems.append(f"output field mapping source {m.source!r} is not produced by skillset {spec.skillset.name!r}")

    if spec.indexer.output_field_mappings and not spec.skillset.steps:
        problems.append("output field mappings require a skillset with at least one step")

    if problems:
        raise PipelineDefinitionError(problems)


# -----------------------------
# Wire builders
# -----------------------------
def build_data_source_payload(spec: DataSourceSpec, *, connection_string: str) -> Dict[str, Any]:
    container: Dict[str, Any] = {"name": spec.container}
    if spec.query:
        container["query"] = spec.query
    out: Dict[str, Any] = {
        "name": spec.name,
        "type": spec.type,
        "credentials": {"connectionString": connection_string},
        "container": container,
    }
    if spec.description is not None:
        out["description"] = spec.description
    return out


def build_skillset_payload(spec: SkillsetSpec) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": spec.name, "skills": skills_to_wire(spec.steps)}
    if spec.description is not None:
        out["description"] = spec.description
    return out


def build_index_payload(spec: IndexSpec) -> Dict[str, Any]:
    return {"name": spec.name, "fields": [f.to_wire() for f in spec.fields]}


def build_indexer_payload(spec: SearchPipelineSpec) -> Dict[str, Any]:
    ix = spec.indexer
    out: Dict[str, Any] = {
        "name": ix.name,
        "dataSourceName": spec.data_source.name,
        "targetIndexName": spec.index.name,
        "parameters": ix.parameters.to_wire(),
        "fieldMappings": [m.to_wire() for m in ix.field_mappings],
        "outputFieldMappings": [m.to_wire() for m in ix.output_field_mappings],
    }
    if spec.skillset.steps:
        out["skillsetName"] = spec.skillset.name
    if ix.description is not None:
        out["description"] = ix.description
    return out


def build_pipeline_descriptors(spec: SearchPipelineSpec, *, connection_string: str) -> List[ResourceDescriptor]:
    """
    Validate the definition and build the descriptors in synchronization order.

    A pipeline without steps has no skillset descriptor (and the indexer does not
    reference one).
    """
    validate_pipeline_definition(spec)

    out = [
        ResourceDescriptor(
            ResourceKind.DATA_SOURCE,
            spec.data_source.name,
            build_data_source_payload(spec.data_source, connection_string=connection_string),
        )
    ]
    if spec.skillset.steps:
        out.append(
            ResourceDescriptor(ResourceKind.ENRICHMENT_PIPELINE, spec.skillset.name, build_skillset_payload(spec.skillset))
        )
    out.append(ResourceDescriptor(ResourceKind.INDEX_SCHEMA, spec.index.name, build_index_payload(spec.index)))
    out.append(ResourceDescriptor(ResourceKind.INDEXER, spec.indexer.name, build_indexer_payload(spec)))
    return out


__all__ = [
    "IndexField",
    "IndexSpec",
    "DataSourceSpec",
    "SkillsetSpec",
    "FieldMapping",
    "IndexerParametersSpec",
    "IndexerSpec",
    "SearchPipelineSpec",
    "validate_pipeline_definition",
    "build_data_source_payload",
    "build_skillset_payload",
    "build_index_payload",
    "build_indexer_payload",
    "build_pipeline_descriptors",
]
