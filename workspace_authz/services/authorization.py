"""
Authorization Service
Token verification, permission checks and visibility listings for the
request layer
"""

from datetime import datetime
from typing import Dict, FrozenSet, Optional, Type, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from workspace_authz.core.config import settings
from workspace_authz.core.permission_resolver import PermissionResolver, permission_resolver
from workspace_authz.core.permissions import GroupSet, GroupsLike, ResourcePath
from workspace_authz.core.token_validator import AccessToken, AccessTokenCodec, token_codec
from workspace_authz.models.resource import Resource
from workspace_authz.repositories.base import ResourceRepository
from workspace_authz.repositories.visibility import VisibilityRepository
from workspace_authz.schemas.base import PageRequest, VisibleResourcePage

logger = structlog.get_logger()

PathLike = Union[ResourcePath, str]


def _as_path(resource_path: PathLike) -> ResourcePath:
    if isinstance(resource_path, ResourcePath):
        return resource_path
    return ResourcePath.parse(resource_path)


def _as_uuid(value: Union[UUID, str]) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


class AuthorizationService:
    """Service exposing the authorization core to the request layer"""

    def __init__(
        self,
        codec: Optional[AccessTokenCodec] = None,
        resolver: Optional[PermissionResolver] = None,
    ):
        self.codec = codec or token_codec
        self.resolver = resolver or permission_resolver
        self._visibility: Dict[Type[Resource], VisibilityRepository] = {}
        self._resources: Dict[Type[Resource], ResourceRepository] = {}

    def visibility(self, model: Type[Resource] = Resource) -> VisibilityRepository:
        """Visibility repository for a resource model"""
        if model not in self._visibility:
            self._visibility[model] = VisibilityRepository(model)
        return self._visibility[model]

    def _resource_repository(self, model: Type[Resource]) -> ResourceRepository:
        if model not in self._resources:
            self._resources[model] = ResourceRepository(model)
        return self._resources[model]

    # ==================== Tokens ====================

    def verify_token(self, raw: str, *, now: Optional[datetime] = None) -> AccessToken:
        """Verify a raw credential into identity and groups"""
        return self.codec.verify(raw, now=now)

    # ==================== Single resource ====================

    async def check_permission(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupsLike,
        resource_path: PathLike,
        permission: str,
    ) -> bool:
        """
        Whether the caller holds ``permission`` on ``resource_path``

        Denial and absence of the resource look the same.

        Raises:
            InvalidResourcePath: Path has empty or malformed segments
            StorageTimeout / StorageUnavailable: Grant store failure
        """
        return await self.resolver.allowed(
            db, identity, GroupSet.of(groups), _as_path(resource_path), permission
        )

    async def effective_permissions(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupsLike,
        resource_path: PathLike,
    ) -> FrozenSet[str]:
        """All permissions the caller holds on ``resource_path``"""
        return await self.resolver.effective_permissions(
            db, identity, GroupSet.of(groups), _as_path(resource_path)
        )

    async def get_visible_resource(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupsLike,
        resource_id: Union[UUID, str],
        permission: str,
        *,
        model: Type[Resource] = Resource,
    ) -> Optional[Resource]:
        """
        Load one resource if the caller holds ``permission`` on it

        Returns None both when the resource does not exist and when access is
        denied.
        """
        groups = GroupSet.of(groups)
        if not groups:
            return None

        resource = await self._resource_repository(model).get(db, _as_uuid(resource_id))
        if resource is None:
            return None
        if not await self.resolver.allowed(db, identity, groups, resource.parsed_path, permission):
            return None
        return resource

    # ==================== Listings ====================

    async def list_visible(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupsLike,
        workspace_id: Union[UUID, str],
        permission: str,
        page: int = 0,
        page_size: int = settings.DEFAULT_PAGE_SIZE,
        *,
        model: Type[Resource] = Resource,
    ) -> VisibleResourcePage:
        """
        One page of workspace resources the caller may see

        Args:
            db: Database session
            identity: Caller identity
            groups: Caller's group set
            workspace_id: Workspace to list
            permission: Permission required on each resource
            page: Zero-based page number
            page_size: Resources per page
            model: Resource kind to list; the base model lists every kind

        Returns:
            Page of resources with the total visible count

        Raises:
            ValueError: Negative page or page size outside the accepted range
            StorageTimeout / StorageUnavailable: Resource store failure
        """
        request = PageRequest(page=page, page_size=page_size)
        items, total = await self.visibility(model).list_visible(
            db,
            groups=GroupSet.of(groups),
            workspace_id=_as_uuid(workspace_id),
            permission=permission,
            page=request.page,
            page_size=request.page_size,
        )
        logger.debug(
            "Visibility listing served",
            identity=str(identity),
            workspace_id=str(workspace_id),
            permission=permission,
            total=total,
        )
        return VisibleResourcePage.create(
            items=items,
            total_count=total,
            page=request.page,
            page_size=request.page_size,
        )


authorization_service = AuthorizationService()
