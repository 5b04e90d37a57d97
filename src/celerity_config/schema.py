"""Schema adapters for ConfigNamespace.parse()."""

from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class PydanticSchema(Generic[M]):
    """Exposes a pydantic model class through the parse(data) protocol.

    pydantic.ValidationError propagates unchanged.

    Usage:
        class DatabaseSettings(BaseModel):
            DB_HOST: str
            DB_PORT: int

        settings = await config.parse(PydanticSchema(DatabaseSettings))
    """

    def __init__(self, model: Type[M]):
        self.model = model

    def parse(self, data: Any) -> M:
        return self.model.model_validate(data)
