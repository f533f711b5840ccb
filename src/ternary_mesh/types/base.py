"""Base models shared by proofs, snapshots and metrics."""

from typing import Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A model whose JSON form uses camel case keys.

    The field `leaf_count` is written as `leafCount`, `is_leaf` as `isLeaf`.
    Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )

    def to_json(self, *, indent: int | None = None) -> str:
        """Encode the model as JSON using the camel case aliases."""
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, text: str | bytes) -> Self:
        """Decode and validate a model from its JSON form."""
        return cls.model_validate_json(text)


class StrictBaseModel(CamelModel):
    """An immutable model that rejects unknown fields and lax coercions."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
