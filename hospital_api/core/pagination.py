"""
Core pagination utilities for list endpoints.
"""
from typing import TypeVar, Generic, List, Optional, Type
import math

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy.orm import Query as SQLAlchemyQuery

from ..config import settings

T = TypeVar("T")

class PageParams:
    """
    Page parameters for pagination.
    
    Attributes:
        page: Page number (1-indexed)
        size: Number of items per page
        offset: Number of rows skipped before the page starts
    """
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page")
    ):
        self.page = page
        self.size = size
        self.offset = (page - 1) * size


class PageResponse(BaseModel, Generic[T]):
    """
    Paginated response model.
    
    Attributes:
        items: List of items for the current page
        total: Total number of items
        page: Current page number
        size: Number of items per page
        pages: Total number of pages
        has_next: Whether there is a next page
        has_prev: Whether there is a previous page
    """
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool


def paginate(
    query: SQLAlchemyQuery,
    page_params: PageParams,
    schema_class: Optional[Type[BaseModel]] = None
) -> PageResponse:
    """
    Paginate a SQLAlchemy query.
    
    Args:
        query: SQLAlchemy query to paginate
        page_params: Pagination parameters
        schema_class: Optional Pydantic model the rows are validated into
        
    Returns:
        PageResponse: Paginated response
    """
    total = query.count()
    items = query.offset(page_params.offset).limit(page_params.size).all()

    if schema_class:
        items = [schema_class.model_validate(item) for item in items]

    pages = math.ceil(total / page_params.size) if total > 0 else 0

    return PageResponse(
        items=items,
        total=total,
        page=page_params.page,
        size=page_params.size,
        pages=pages,
        has_next=page_params.page < pages,
        has_prev=page_params.page > 1
    )
