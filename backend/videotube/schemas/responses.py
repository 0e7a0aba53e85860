"""Uniform success envelope returned by the API."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope: ``{statusCode, data, message, success}``.

    ``success`` is derived from the status code so it can never disagree
    with it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status_code: int
    data: DataT
    message: str = "Success"

    @computed_field
    @property
    def success(self) -> bool:
        return self.status_code < 400
