"""
Typed index mappings and the registry that creates indices at startup.

Why it's needed:
    OpenSearch needs explicit mappings to know how to index each field.
    Without them it guesses types (a price sent as "10" becomes text, a
    location becomes two floats) and range, geo and completion queries stop
    working. Declaring mappings as typed objects instead of raw dicts means a
    misspelled field type fails in Python, not at index-creation time.

What it does:
    - FieldSpec: discriminated union of field kinds (text, keyword, number,
      date, boolean, geo_point, nested, object, completion). Each renders its
      own engine JSON via to_mapping().
    - IndexMapping: fields + shard/replica counts + analysis settings for one
      entity type. Frozen once built.
    - IndexRegistry: entity type -> IndexMapping for the process lifetime,
      plus ensure_indices_exist() which creates every missing index.

How it helps:
    - ensure_indices_exist() is idempotent, so it runs on every startup
    - A rejected mapping raises MappingCreationFailed and aborts startup
      instead of serving searches against half-created indices
    - index_prefix lets staging and production share a cluster
"""

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tradesearch.exceptions import MappingCreationFailed, SearchUnavailable, UnknownEntityType

logger = logging.getLogger(__name__)


class _FieldBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextField(_FieldBase):
    """Analyzed full-text field, optionally with keyword and completion sub-fields."""

    type: Literal["text"] = "text"
    analyzer: Optional[str] = None
    search_analyzer: Optional[str] = None
    keyword: bool = False
    suggest: bool = False
    suggest_analyzer: Optional[str] = None

    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {"type": "text"}
        if self.analyzer:
            mapping["analyzer"] = self.analyzer
        if self.search_analyzer:
            mapping["search_analyzer"] = self.search_analyzer
        sub_fields: Dict[str, Any] = {}
        if self.keyword:
            sub_fields["keyword"] = {"type": "keyword", "ignore_above": 256}
        if self.suggest:
            sub_fields["suggest"] = CompletionField(analyzer=self.suggest_analyzer).to_mapping()
        if sub_fields:
            mapping["fields"] = sub_fields
        return mapping


class KeywordField(_FieldBase):
    type: Literal["keyword"] = "keyword"
    ignore_above: Optional[int] = None
    text: bool = False  # adds an analyzed ".text" sub-field

    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {"type": "keyword"}
        if self.ignore_above:
            mapping["ignore_above"] = self.ignore_above
        if self.text:
            mapping["fields"] = {"text": {"type": "text"}}
        return mapping


class NumberField(_FieldBase):
    type: Literal["number"] = "number"
    number_type: Literal["float", "double", "integer", "long", "short", "scaled_float"] = "float"
    scaling_factor: Optional[int] = None

    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {"type": self.number_type}
        if self.number_type == "scaled_float":
            mapping["scaling_factor"] = self.scaling_factor or 100
        return mapping


class DateField(_FieldBase):
    type: Literal["date"] = "date"
    format: Optional[str] = None

    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {"type": "date"}
        if self.format:
            mapping["format"] = self.format
        return mapping


class BooleanField(_FieldBase):
    type: Literal["boolean"] = "boolean"

    def to_mapping(self) -> Dict[str, Any]:
        return {"type": "boolean"}


class GeoPointField(_FieldBase):
    type: Literal["geo_point"] = "geo_point"

    def to_mapping(self) -> Dict[str, Any]:
        return {"type": "geo_point"}


class CompletionField(_FieldBase):
    """Prefix-completion field used by the suggestion engine."""

    type: Literal["completion"] = "completion"
    analyzer: Optional[str] = None
    search_analyzer: Optional[str] = None

    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {"type": "completion"}
        if self.analyzer:
            mapping["analyzer"] = self.analyzer
            mapping["search_analyzer"] = self.search_analyzer or self.analyzer
        return mapping


class ObjectField(_FieldBase):
    """Sub-object. dynamic overrides the index-level setting for its subtree."""

    type: Literal["object"] = "object"
    fields: Dict[str, "FieldSpec"]
    dynamic: Optional[Literal["strict", "true", "false"]] = None

    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {
            "type": "object",
            "properties": {name: spec.to_mapping() for name, spec in self.fields.items()},
        }
        if self.dynamic:
            mapping["dynamic"] = self.dynamic
        return mapping


class NestedField(_FieldBase):
    """Array of objects queried independently (e.g. order line items)."""

    type: Literal["nested"] = "nested"
    fields: Dict[str, "FieldSpec"]

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "type": "nested",
            "properties": {name: spec.to_mapping() for name, spec in self.fields.items()},
        }


FieldSpec = Annotated[
    Union[
        TextField,
        KeywordField,
        NumberField,
        DateField,
        BooleanField,
        GeoPointField,
        CompletionField,
        ObjectField,
        NestedField,
    ],
    Field(discriminator="type"),
]

ObjectField.model_rebuild()
NestedField.model_rebuild()


class IndexMapping(BaseModel):
    """Schema and settings of one entity index. Immutable after creation."""

    model_config = ConfigDict(frozen=True)

    entity_type: str
    index_name: str
    fields: Dict[str, FieldSpec]
    number_of_shards: int = Field(default=1, ge=1)
    number_of_replicas: int = Field(default=0, ge=0)
    analysis: Optional[Dict[str, Any]] = None
    dynamic: Literal["strict", "true", "false"] = "strict"
    highlight_fields: List[str] = Field(default_factory=lambda: ["name", "description"])

    def properties(self) -> Dict[str, Any]:
        return {name: spec.to_mapping() for name, spec in self.fields.items()}

    def body(self) -> Dict[str, Any]:
        """Request body for indices.create."""
        settings: Dict[str, Any] = {
            "number_of_shards": self.number_of_shards,
            "number_of_replicas": self.number_of_replicas,
        }
        if self.analysis:
            settings["analysis"] = self.analysis
        return {
            "settings": settings,
            "mappings": {
                "dynamic": self.dynamic,
                "properties": self.properties(),
            },
        }


class IndexRegistry:
    """Owns the mapping definitions for the process lifetime."""

    def __init__(self, index_prefix: str = ""):
        self.index_prefix = index_prefix
        self._mappings: Dict[str, IndexMapping] = {}

    def register_mapping(self, entity_type: str, mapping: IndexMapping) -> None:
        existing = self._mappings.get(entity_type)
        if existing is not None and existing != mapping:
            raise ValueError(
                f"Entity type '{entity_type}' already registered with a different mapping; "
                "schema changes need a new index and a reindex"
            )
        self._mappings[entity_type] = mapping

    def get(self, entity_type: str) -> IndexMapping:
        try:
            return self._mappings[entity_type]
        except KeyError:
            raise UnknownEntityType(entity_type, self.index_names()) from None

    def index_name(self, entity_type: str) -> str:
        return f"{self.index_prefix}{self.get(entity_type).index_name}"

    def index_names(self) -> Dict[str, str]:
        return {
            entity_type: f"{self.index_prefix}{mapping.index_name}"
            for entity_type, mapping in self._mappings.items()
        }

    def mapping_for_index(self, index: str) -> Optional[IndexMapping]:
        for entity_type, name in self.index_names().items():
            if name == index:
                return self._mappings[entity_type]
        return None

    def entity_types(self) -> List[str]:
        return list(self._mappings)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._mappings

    async def ensure_indices_exist(self, client) -> Dict[str, bool]:
        """Create every registered index that does not exist yet.

        Args:
            client: OpenSearchClient (engine collaborator wrapper)

        Returns:
            Dict of index name -> True when created by this call.

        Raises:
            MappingCreationFailed: the engine rejected a mapping.
            SearchUnavailable: the engine could not be reached at all.
        """
        results: Dict[str, bool] = {}
        for entity_type, mapping in self._mappings.items():
            index = self.index_name(entity_type)
            if await client.index_exists(index):
                results[index] = False
                continue

            try:
                created = await client.create_index(index, mapping.body())
            except SearchUnavailable as e:
                if e.status_code is None:
                    raise
                logger.error(f"Failed to create index {index}: {e}")
                raise MappingCreationFailed(index, str(e)) from e

            results[index] = created
            if created:
                logger.info(f"Created OpenSearch index: {index}")
            else:
                logger.info(f"OpenSearch index {index} was created concurrently")
        return results
