from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelSchema(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
