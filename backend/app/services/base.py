# backend/app/services/base.py
"""
Base Service Pattern for the Groupo messaging backend.

Provides common functionality for all service classes including:
- Transaction management
- Logging
- Performance monitoring (Prometheus)
"""

import asyncio
from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Services own transaction boundaries: repositories flush, services commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                self.message_repository.insert_message(...)
                # commit is handled automatically
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception as e:
            self.logger.debug(f"Transaction rolled back: {type(e).__name__}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("send_message")
            def send_message(self, ...):
                ...
        """

        def _record(self: Any, elapsed: float, error_type: Optional[str]) -> None:
            if elapsed > SLOW_OPERATION_SECONDS:
                self.logger.warning(
                    f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                )
            try:
                prometheus_metrics.record_service_operation(
                    service=self.__class__.__name__,
                    operation=operation_name,
                    duration=elapsed,
                    status="error" if error_type else "success",
                    error_type=error_type,
                )
            except Exception as exc:
                logger.debug(f"Metrics recording failed for {operation_name}: {exc}")

        def decorator(func: F) -> F:
            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_wrapper(self, *args, **kwargs):
                    start_time = time.time()
                    error_type = None
                    try:
                        return await func(self, *args, **kwargs)
                    except Exception as e:
                        error_type = type(e).__name__
                        raise
                    finally:
                        _record(self, time.time() - start_time, error_type)

                return cast(F, async_wrapper)

            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    _record(self, time.time() - start_time, error_type)

            return cast(F, wrapper)

        return decorator
