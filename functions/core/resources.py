# functions/core/resources.py
"""
functions.core.resources

Resource descriptors and kind-specific equality for the search service's
administrative objects.

Kinds (in canonical synchronization order)
------------------------------------------
1. DataSource          (data source connection)
2. EnrichmentPipeline  (skillset)
3. IndexSchema         (index)
4. Indexer             (binds the three above by name)

Payloads
--------
A payload is the service's JSON wire shape (camelCase keys). It always carries
`"name"`, equal to the descriptor name.

Equality contract
-----------------
- Canonical form drops service bookkeeping keys (`@odata.etag`, `@odata.context`),
  None values and empty containers. `@odata.type` is kept: it names the skill kind.
- Only the kind's authoritative top-level fields take part in the comparison.
- Write-only fields (data source credentials) are never compared: the service
  does not return them.
- An authoritative field the desired payload omits but the remote still holds is a
  difference (a full replace is needed to drop it).
- Nested objects compare by projection onto the desired keys, so defaults the
  service fills in underneath do not count as drift. Lists compare element-wise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping

from functions.core.errors import InvalidResourceName
from functions.utils.hashing import sha1_json


class ResourceKind(str, Enum):
    DATA_SOURCE = "DataSource"
    ENRICHMENT_PIPELINE = "EnrichmentPipeline"
    INDEX_SCHEMA = "IndexSchema"
    INDEXER = "Indexer"


SYNC_ORDER: List[ResourceKind] = [
    ResourceKind.DATA_SOURCE,
    ResourceKind.ENRICHMENT_PIPELINE,
    ResourceKind.INDEX_SCHEMA,
    ResourceKind.INDEXER,
]

AUTHORITATIVE_FIELDS: Dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.DATA_SOURCE: (
        "name",
        "description",
        "type",
        "container",
        "dataChangeDetectionPolicy",
        "dataDeletionDetectionPolicy",
    ),
    ResourceKind.ENRICHMENT_PIPELINE: (
        "name",
        "description",
        "skills",
        "cognitiveServices",
        "knowledgeStore",
    ),
    ResourceKind.INDEX_SCHEMA: (
        "name",
        "fields",
        "scoringProfiles",
        "suggesters",
        "analyzers",
        "corsOptions",
        "semantic",
        "vectorSearch",
    ),
    ResourceKind.INDEXER: (
        "name",
        "description",
        "dataSourceName",
        "skillsetName",
        "targetIndexName",
        "schedule",
        "parameters",
        "fieldMappings",
        "outputFieldMappings",
        "disabled",
    ),
}

_INDEX_NAME_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,126}[a-z0-9])?$")
_OTHER_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")

_BOOKKEEPING_KEYS = frozenset({"@odata.etag", "@odata.context"})


# -------------------------------------------------------------------------------------------------
# Descriptor
# -------------------------------------------------------------------------------------------------
@dataclass(frozen=True)
class ResourceDescriptor:
    """Desired state of one named remote resource."""

    kind: ResourceKind
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_resource_name(self.kind, self.name)
        payload_name = self.payload.get("name")
        if payload_name is not None and payload_name != self.name:
            raise InvalidResourceName(
                f"{self.kind.value} payload name {payload_name!r} does not match descriptor name {self.name!r}"
            )

    def wire_payload(self) -> Dict[str, Any]:
        """Payload as sent to the service (name always set)."""
        out = dict(self.payload)
        out["name"] = self.name
        return out

    @property
    def fingerprint(self) -> str:
        return payload_fingerprint(self.kind, self.wire_payload())


def validate_resource_name(kind: ResourceKind, name: str) -> None:
    """
    Check a resource name against the service naming rules.

    Raises:
      InvalidResourceName: on empty or non-conforming names.
    """
    if not isinstance(name, str) or not name:
        raise InvalidResourceName(f"{kind.value} name must be a non-empty string")

    if kind is ResourceKind.INDEX_SCHEMA:
        if not _INDEX_NAME_RE.match(name) or "--" in name:
            raise InvalidResourceName(
                f"Invalid index name {name!r}: use lowercase letters, digits or single dashes, "
                "start and end with a letter or digit, at most 128 characters"
            )
        return

    if not _OTHER_NAME_RE.match(name):
        raise InvalidResourceName(
            f"Invalid {kind.value} name {name!r}: use letters, digits, dashes or underscores, "
            "start with a letter or digit, at most 128 characters"
        )


# -------------------------------------------------------------------------------------------------
# Canonical form + equality
# -------------------------------------------------------------------------------------------------
def canonicalize(value: Any) -> Any:
    """Drop bookkeeping keys, None values and empty containers (recursively)."""
    if isinstance(value, Mapping):
        out: Dict[str, Any] = {}
        for k, v in value.items():
            if k in _BOOKKEEPING_KEYS:
                continue
            cv = canonicalize(v)
            if cv is None or cv == {} or cv == []:
                continue
            out[str(k)] = cv
        return out
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    return value


def authoritative_view(kind: ResourceKind, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Canonical payload restricted to the kind's authoritative top-level fields."""
    canon = canonicalize(payload)
    return {k: canon[k] for k in AUTHORITATIVE_FIELDS[kind] if k in canon}


def _projects_onto(desired: Any, remote: Any) -> bool:
    if isinstance(desired, dict):
        if not isinstance(remote, dict):
            return False
        return all(k in remote and _projects_onto(v, remote[k]) for k, v in desired.items())
    if isinstance(desired, list):
        if not isinstance(remote, list) or len(desired) != len(remote):
            return False
        return all(_projects_onto(d, r) for d, r in zip(desired, remote))
    return desired == remote


def payloads_equivalent(kind: ResourceKind, desired: Mapping[str, Any], remote: Mapping[str, Any]) -> bool:
    """
    Kind-specific equality between a desired payload and the remote record.

    Top level: the same set of authoritative fields must be present on both sides.
    Below: the desired value must project onto the remote value.
    """
    d = authoritative_view(kind, desired)
    r = authoritative_view(kind, remote)
    if set(d) != set(r):
        return False
    return all(_projects_onto(d[k], r[k]) for k in d)


def payload_fingerprint(kind: ResourceKind, payload: Mapping[str, Any]) -> str:
    """Stable SHA1 of the authoritative view (secrets excluded)."""
    return sha1_json({"kind": kind.value, "payload": authoritative_view(kind, payload)})


def sort_for_sync(descriptors: List[ResourceDescriptor]) -> List[ResourceDescriptor]:
    """Stable sort into DataSource -> EnrichmentPipeline -> IndexSchema -> Indexer order."""
    rank = {k: i for i, k in enumerate(SYNC_ORDER)}
    return sorted(descriptors, key=lambda d: rank[d.kind])


__all__ = [
    "ResourceKind",
    "ResourceDescriptor",
    "SYNC_ORDER",
    "AUTHORITATIVE_FIELDS",
    "validate_resource_name",
    "canonicalize",
    "authoritative_view",
    "payloads_equivalent",
    "payload_fingerprint",
    "sort_for_sync",
]
