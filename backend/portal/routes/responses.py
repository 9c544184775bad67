from __future__ import annotations
from fastapi.responses import JSONResponse
from portal.schemas.result import ActionResult

_STATUS_FOR_ERROR = {
    "validation": 400,
    "not_found": 404,
    "no_match": 404,
    "permission_denied": 403,
    "store_error": 502,
}

def result_response(result: ActionResult, success_status: int = 200) -> JSONResponse:
    status = success_status if result.success else _STATUS_FOR_ERROR.get(result.error or "", 400)
    return JSONResponse(status_code=status, content=result.model_dump(mode="json"))
