import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import pydantic

from src.invitations.dtos import OperationResult
from src.invitations.errors import DomainError, ErrorType, ValidationError

logger = logging.getLogger(__name__)


def as_operation_result(
    failure_message: str,
) -> Callable[[Callable[..., Awaitable[OperationResult]]], Callable[..., Awaitable[OperationResult]]]:
    """Turn every exception raised by a use case method into a failed result."""

    def decorator(func: Callable[..., Awaitable[OperationResult]]):
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> OperationResult:
            try:
                return await func(*args, **kwargs)
            except pydantic.ValidationError as e:
                error = ValidationError.from_pydantic(e)
                logger.warning(f"{failure_message}: {error.message}")
                return OperationResult.from_error(error, failure_message)
            except DomainError as e:
                logger.warning(f"{failure_message}: {e.message}")
                return OperationResult.from_error(e, failure_message)
            except Exception as e:
                logger.exception(f"{failure_message}: unexpected error")
                return OperationResult.fail(str(e), failure_message, ErrorType.UNEXPECTED)

        return wrapper

    return decorator
