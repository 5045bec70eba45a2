"""
Shared pydantic base model.

Python code uses snake_case attribute names while JSON payloads use
camelCase (``registeredAt``, ``studentId``), which is what existing
check-in clients send and expect.  Either spelling is accepted on
input.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }
