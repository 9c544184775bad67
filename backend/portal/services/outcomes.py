from __future__ import annotations
import structlog

from portal.errors import StoreError, PermissionDeniedError, NotFoundError
from portal.schemas.result import ActionResult, PERMISSION_DENIED_MESSAGE, STORE_FAILURE_MESSAGE

log = structlog.get_logger()


def store_failure(exc: StoreError, event: str, result_cls: type[ActionResult] = ActionResult, **ctx) -> ActionResult:
    """Turn a store error into a failed result; full detail stays in the server log."""
    if isinstance(exc, PermissionDeniedError):
        log.warning(event, error_kind="permission_denied", error=str(exc), **ctx)
        return result_cls.fail("permission_denied", PERMISSION_DENIED_MESSAGE)
    if isinstance(exc, NotFoundError):
        log.info(event, error_kind="not_found", collection=exc.collection, doc_id=exc.doc_id, **ctx)
        return result_cls.fail("not_found", "The requested item no longer exists.")
    log.error(event, error_kind="store_error", error=str(exc), exc_info=exc, **ctx)
    return result_cls.fail("store_error", STORE_FAILURE_MESSAGE)
