"""Shared pydantic base for the JSON wire format.

Learn: the web client speaks camelCase (`guestCount`, `createdAt`) while
the ORM and Python code use snake_case. alias_generator maps one to the
other; populate_by_name lets services build models from ORM attributes
or keyword arguments using the Python names. FastAPI serializes
response_model output by alias, so clients only ever see camelCase.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
