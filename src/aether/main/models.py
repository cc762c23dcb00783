from typing import Any, Optional

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict

from aether.main.exceptions import ErrorCodes


class BaseModel(PydanticBaseModel):
    model_config = ConfigDict(from_attributes=True)


class GeneralError(BaseModel):
    message: str
    error_code: ErrorCodes
    details: Optional[dict[str, Any]] = None
