# orderdesk/core/results.py
import functools
import logging
from typing import Callable

from fastapi.responses import JSONResponse
from sqlmodel import Session

from orderdesk.core.errors import (
    ERROR_STATUS_CODES,
    ErrorCode,
    InternalError,
    OrderDeskError,
)
from orderdesk.schemas.common import ActionResult

logger = logging.getLogger(__name__)


def failure(exc: OrderDeskError) -> ActionResult:
    """Build a failure envelope from a domain error."""
    return ActionResult(
        ok=False,
        error=exc.message,
        code=exc.code.value,
        allowed=getattr(exc, "allowed", None),
    )


def action(name: str) -> Callable:
    """
    Wrap a service operation so it never raises past its own boundary.

    The wrapped method must have the signature (self, session, ...).

      - OrderDeskError     -> failure envelope with its code/message
      - anything else      -> rollback + logged traceback + generic Internal
    """

    def decorator(func: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
        @functools.wraps(func)
        def wrapper(self, session: Session, *args, **kwargs) -> ActionResult:
            try:
                return func(self, session, *args, **kwargs)
            except OrderDeskError as exc:
                logger.info("%s rejected (%s): %s", name, exc.code.value, exc.message)
                return failure(exc)
            except Exception:
                logger.exception("%s failed", name)
                session.rollback()
                return failure(InternalError())

        return wrapper

    return decorator


def as_response(result: ActionResult, success_status: int = 200) -> JSONResponse:
    """
    Map an ActionResult to an HTTP response.

    The body is always the envelope; only the status code varies.
    """
    if result.ok:
        status_code = success_status
    else:
        status_code = ERROR_STATUS_CODES.get(
            ErrorCode(result.code or ErrorCode.INTERNAL.value), 500
        )
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", exclude_none=True),
    )
