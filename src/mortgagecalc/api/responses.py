from decimal import Decimal

import orjson
from mashumaro.mixins.orjson import DataClassORJSONMixin
from starlette.responses import Response


def _default(obj: object) -> object:
    if isinstance(obj, Decimal):
        return f"{obj:.2f}"
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")


class ORJSONResponse(Response):
    media_type = "application/json"

    def render(self, content: object) -> bytes:
        if isinstance(content, DataClassORJSONMixin):
            return content.to_jsonb()
        return orjson.dumps(content, default=_default)
