"""错误响应映射 -- StatusTrackingError -> JSON 错误体

错误体格式：{"error": {"code": ..., "message": ...}}
"""

from starlette.responses import JSONResponse
from tasktrack.core.errors import StatusTrackingError

HTTP_STATUS_BY_CODE: dict[str, int] = {
    "TASK_NOT_FOUND": 404,
    "INVALID_TRANSITION": 409,
    "IMMUTABLE_STATE": 409,
    "PERMISSION_DENIED": 403,
    "MISSING_REASON": 422,
    "VERSION_CONFLICT": 409,
}


def error_response(error: StatusTrackingError) -> JSONResponse:
    """将类型化异常转换为 JSON 错误响应"""
    return JSONResponse(
        status_code=HTTP_STATUS_BY_CODE.get(error.code, 400),
        content={
            "error": {
                "code": error.code,
                "message": error.message,
            }
        },
    )
