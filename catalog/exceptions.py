"""
Domain exceptions.

Each one is an HTTPException so services can raise them and FastAPI turns
them into the matching response without extra handlers.
"""
import logging
from typing import Any, Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class CatalogError(HTTPException):
    """Base class; logs the failure when raised."""

    def __init__(self, status_code: int, detail: Any, headers: Optional[dict] = None):
        logger.warning(f"{self.__class__.__name__} ({status_code}): {detail}")
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(CatalogError):
    def __init__(self, entity: str, entity_id: Any = None):
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ValidationError(CatalogError):
    """Input passed the schema but refers to something that doesn't exist."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            [{"loc": ["body", field], "msg": msg} for field, msg in errors.items()],
        )


class ForbiddenError(CatalogError):
    def __init__(self, action: str, subject: str = "product"):
        super().__init__(status.HTTP_403_FORBIDDEN, f"Not allowed to {action} {subject}")


class CannotDeleteError(CatalogError):
    def __init__(self, product_id: Optional[int] = None):
        self.product_id = product_id
        super().__init__(status.HTTP_403_FORBIDDEN, "Product cannot be deleted")
