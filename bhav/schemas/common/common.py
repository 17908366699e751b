# bhav/schemas/common/common.py
from datetime import datetime, timezone
from typing import Annotated, Any, Optional
import time

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def _as_id(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# backend ids may be ObjectId strings or integers
IdStr = Annotated[str, BeforeValidator(_as_id)]


class CamelModel(BaseModel):
    """Wire model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


def now_ms() -> int:
    return int(time.time() * 1000)


def to_epoch_ms(value: Any) -> Optional[int]:
    """Normalize epoch millis, numeric strings, ISO-8601 strings or datetimes to epoch millis."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("timestamp cannot be a boolean")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(moment.timestamp() * 1000)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(float(text))
        except ValueError:
            pass
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
        return to_epoch_ms(moment)
    raise ValueError(f"Unsupported timestamp: {value!r}")
