"""Attribute definition schema for the entity store.

Attribute definitions are installed by transacting maps that carry
``db/valueType``:

    {
        "db/ident": "issue/number",
        "db/valueType": "long",
        "db/cardinality": "one",
        "db/doc": "The issue number within its series"
    }
"""

from typing import Literal

from pydantic import BaseModel, Field

ValueType = Literal["string", "long", "boolean", "double", "ref"]


class AttributeDefinition(BaseModel):
    """An installed store attribute.

    Attributes:
        ident: Namespaced attribute name (e.g., "comic/name")
        value_type: Type of values the attribute holds
        cardinality: "one" for a single value, "many" for a list of values
        unique: "identity" (upserting) or "value" uniqueness, if any
        doc: Human-readable description
    """

    ident: str = Field(alias="db/ident", pattern=r"^[^/\s]+/[^/\s]+$")
    value_type: ValueType = Field(alias="db/valueType")
    cardinality: Literal["one", "many"] = Field(default="one", alias="db/cardinality")
    unique: Literal["identity", "value"] | None = Field(default=None, alias="db/unique")
    doc: str | None = Field(default=None, alias="db/doc")

    model_config = {"populate_by_name": True, "extra": "ignore", "frozen": True}

    @property
    def is_ref(self) -> bool:
        return self.value_type == "ref"

    @property
    def is_many(self) -> bool:
        return self.cardinality == "many"
