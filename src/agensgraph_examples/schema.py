from collections import Counter
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from .exceptions import SchemaViolation
from .utils import quote_identifier, validate_identifier

DataType = Literal["string", "integer", "float", "boolean", "map"]
Multiplicity = Literal["MULTI", "SIMPLE", "MANY2ONE", "ONE2MANY", "ONE2ONE"]

PYTHON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "float": (float, int),
    "boolean": (bool,),
    "map": (dict,),
}


class PropertyKey(BaseModel):
    "A property key and the type its values must have."

    name: str = Field(description="The name of the property key.")
    data_type: DataType = Field(default="string")

    @field_validator("name")
    def validate_name(cls, v: str) -> str:
        return validate_identifier(v)

    def accepts(self, value: Any) -> bool:
        "Whether the value has this key's data type. None is never accepted."
        if value is None:
            return False
        # bool is an int subclass, keep the two apart
        if isinstance(value, bool) and self.data_type != "boolean":
            return False
        return isinstance(value, PYTHON_TYPES[self.data_type])


class VertexLabel(BaseModel):
    "A vertex label."

    name: str

    @field_validator("name")
    def validate_name(cls, v: str) -> str:
        return validate_identifier(v)

    def get_cypher_create_query(self) -> str:
        return f"CREATE VLABEL IF NOT EXISTS {quote_identifier(self.name)}"


class EdgeLabel(BaseModel):
    "An edge label."

    name: str
    multiplicity: Multiplicity = Field(
        default="MULTI",
        description="How many edges of this label a pair or a single vertex may have.",
    )
    signature: list[str] = Field(
        default_factory=list,
        description="Property keys edges of this label are expected to carry.",
    )

    @field_validator("name")
    def validate_name(cls, v: str) -> str:
        return validate_identifier(v)

    def get_cypher_create_query(self) -> str:
        return f"CREATE ELABEL IF NOT EXISTS {quote_identifier(self.name)}"


class PropertyIndex(BaseModel):
    "A property index on one label. Unique indexes become unique constraints."

    name: str
    label: str
    keys: list[str] = Field(min_length=1)
    unique: bool = False

    @field_validator("name", "label")
    def validate_names(cls, v: str) -> str:
        return validate_identifier(v)

    @field_validator("keys")
    def validate_keys(cls, keys: list[str]) -> list[str]:
        return [validate_identifier(k) for k in keys]

    def get_cypher_create_query(self) -> str:
        name = quote_identifier(self.name)
        label = quote_identifier(self.label)
        keys = ", ".join(quote_identifier(k) for k in self.keys)
        if self.unique:
            if len(self.keys) > 1:
                keys = f"({keys})"
            return f"CREATE CONSTRAINT {name} ON {label} ASSERT {keys} IS UNIQUE"
        return f"CREATE PROPERTY INDEX IF NOT EXISTS {name} ON {label} ({keys})"


class GraphSchema(BaseModel):
    "The property keys, labels and indexes an example declares before loading data."

    property_keys: list[PropertyKey] = Field(default_factory=list)
    vertex_labels: list[VertexLabel] = Field(default_factory=list)
    edge_labels: list[EdgeLabel] = Field(default_factory=list)
    indexes: list[PropertyIndex] = Field(default_factory=list)

    @field_validator("property_keys", "vertex_labels", "edge_labels", "indexes")
    def validate_unique_names(cls, items: list[Any], info: ValidationInfo) -> list[Any]:
        counts = Counter([item.name for item in items])
        for name, count in counts.items():
            if count > 1:
                raise ValueError(f"{name} appears {count} times in {info.field_name}")
        return items

    @field_validator("edge_labels")
    def validate_signatures(
        cls, edge_labels: list[EdgeLabel], info: ValidationInfo
    ) -> list[EdgeLabel]:
        keys = {k.name for k in info.data.get("property_keys", [])}
        for edge_label in edge_labels:
            for key in edge_label.signature:
                if key not in keys:
                    raise ValueError(
                        f"Edge label {edge_label.name} has undeclared signature key {key}"
                    )
        return edge_labels

    @field_validator("indexes")
    def validate_indexes(
        cls, indexes: list[PropertyIndex], info: ValidationInfo
    ) -> list[PropertyIndex]:
        labels = {v.name for v in info.data.get("vertex_labels", [])}
        labels |= {e.name for e in info.data.get("edge_labels", [])}
        keys = {k.name for k in info.data.get("property_keys", [])}
        for index in indexes:
            if index.label not in labels:
                raise ValueError(f"Index {index.name} is on undeclared label {index.label}")
            for key in index.keys:
                if key not in keys:
                    raise ValueError(f"Index {index.name} uses undeclared key {key}")
        return indexes

    @property
    def property_keys_dict(self) -> dict[str, PropertyKey]:
        return {k.name: k for k in self.property_keys}

    def edge_label(self, name: str) -> EdgeLabel:
        for edge_label in self.edge_labels:
            if edge_label.name == name:
                return edge_label
        raise SchemaViolation(f"Undeclared edge label: {name}")

    def has_vertex_label(self, name: str) -> bool:
        return any(v.name == name for v in self.vertex_labels)

    def check_properties(self, properties: dict[str, Any]) -> None:
        """Raise SchemaViolation if a property key is undeclared or its value
        does not match the declared data type."""
        keys = self.property_keys_dict
        for name, value in properties.items():
            key = keys.get(name)
            if key is None:
                raise SchemaViolation(f"Undeclared property key: {name}")
            if not key.accepts(value):
                raise SchemaViolation(
                    f"Property {name} expects {key.data_type}, got {type(value).__name__}"
                )

    def statements(self) -> list[str]:
        "DDL statements in execution order: vertex labels, edge labels, indexes."
        return (
            [v.get_cypher_create_query() for v in self.vertex_labels]
            + [e.get_cypher_create_query() for e in self.edge_labels]
            + [i.get_cypher_create_query() for i in self.indexes]
        )
