from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Python attributes are snake_case, JSON (API + backups) is camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordModel(CamelModel):
    """Stored records are values: changes go through ``model_copy(update=...)``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
