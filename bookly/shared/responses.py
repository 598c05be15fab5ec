"""Response envelope helpers: {success, message, data, timestamp}"""

import math
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .time_utils import utc_now


def _timestamp() -> str:
    return utc_now().isoformat() + "Z"


def success_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "data": jsonable_encoder(data),
            "timestamp": _timestamp(),
        },
    )


def error_response(message: str, status_code: int = 500, errors: Optional[list] = None) -> JSONResponse:
    content = {"success": False, "message": message, "timestamp": _timestamp()}
    if errors:
        content["errors"] = jsonable_encoder(errors)
    return JSONResponse(status_code=status_code, content=content)


def paginated_response(
    data: list, page: int, limit: int, total: int, message: str = "Data retrieved successfully", **extra
) -> JSONResponse:
    content = {
        "success": True,
        "message": message,
        "data": jsonable_encoder(data),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
        "count": len(data),
        "timestamp": _timestamp(),
    }
    for key, value in extra.items():
        content[key] = jsonable_encoder(value)
    return JSONResponse(status_code=200, content=content)
