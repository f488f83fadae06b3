from typing import Any, Dict

from pydantic import BaseModel as RawBaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseModel(RawBaseModel):
    """
    Immutable record with camelCase keys on the wire.

    Values are never changed in place; edits go through ``model_copy(update=...)``.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def load(cls, data: Dict[str, Any]):
        return cls.model_validate(data)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
