"""
Base Pydantic Schemas
Common schemas for listing requests and results
"""

from typing import Any, List
from pydantic import BaseModel, ConfigDict, Field

from workspace_authz.core.config import settings


class BaseSchema(BaseModel):
    """Base schema with common configuration"""
    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
        use_enum_values=True
    )


class PageRequest(BaseModel):
    """Zero-based pagination parameters"""
    page: int = Field(0, ge=0, description="Zero-based page number")
    page_size: int = Field(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Maximum number of items per page"
    )

    @property
    def offset(self) -> int:
        return self.page * self.page_size


class VisibleResourcePage(BaseSchema):
    """One page of resources the caller may see"""
    items: List[Any] = Field(..., description="Resources on this page, newest first")
    total_count: int = Field(..., ge=0, description="Number of visible resources across all pages")
    page: int = Field(..., ge=0, description="Zero-based page number")
    page_size: int = Field(..., ge=1, description="Requested page size")
    has_next: bool = Field(..., description="Whether a later page has items")
    has_prev: bool = Field(..., description="Whether an earlier page exists")

    @classmethod
    def create(
        cls,
        items: List[Any],
        total_count: int,
        page: int,
        page_size: int
    ) -> "VisibleResourcePage":
        """
        Create a listing page

        Args:
            items: Resources on the page
            total_count: Size of the whole permission-scoped set
            page: Zero-based page number
            page_size: Requested page size

        Returns:
            Listing page
        """
        offset = page * page_size
        return cls(
            items=items,
            total_count=total_count,
            page=page,
            page_size=page_size,
            has_next=offset + len(items) < total_count,
            has_prev=page > 0
        )
