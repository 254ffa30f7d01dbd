from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Any = None, status_code: int = 200) -> JSONResponse:
    """Standard envelope; code 0 means success."""
    return JSONResponse(
        status_code=status_code,
        content={"code": 0, "message": "Success", "data": jsonable_encoder(data)},
    )


def error(message: str, status_code: int, code: int = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": code if code is not None else status_code, "message": message, "data": None},
    )
