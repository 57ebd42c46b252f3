from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def _float_to_decimal(value):
    # JSON numbers arrive as floats; go through repr so 12.34 stays 12.34
    if isinstance(value, float):
        return Decimal(str(value))
    return value


Money = Annotated[Decimal, BeforeValidator(_float_to_decimal)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
