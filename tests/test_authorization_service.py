"""
Tests for the authorization service call shapes
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from workspace_authz.core.config import settings
from workspace_authz.core.exceptions import InvalidResourcePath, TokenExpired
from workspace_authz.core.permission_resolver import PermissionResolver
from workspace_authz.core.permissions import SUPER_ADMIN_GROUP_ID
from workspace_authz.models import Deployment, Domain
from workspace_authz.services.authorization import AuthorizationService

VIEW = "deployer::view"


@pytest.fixture
def service(codec):
    return AuthorizationService(codec=codec)


class TestVerifyToken:
    def test_verified_token_feeds_permission_checks(self, service, make_token, now):
        identity, group = uuid4(), uuid4()

        access = service.verify_token(make_token(sub=identity, groups=[group]), now=now)

        assert access.identity == identity
        assert list(access.groups) == [group]

    def test_errors_surface_unchanged(self, service, make_token, now):
        issued = int(now.timestamp())

        with pytest.raises(TokenExpired):
            service.verify_token(make_token(iat=issued - 120, exp=issued - 60), now=now)


class TestCheckPermission:
    @pytest.mark.asyncio
    async def test_end_to_end_from_token(self, db, service, make_token, add_grant, now):
        group = uuid4()
        await add_grant(group, "ws1::deployer", "update")
        access = service.verify_token(make_token(groups=[group]), now=now)

        assert await service.check_permission(db, access.identity, access.groups, "ws1::deployer::my-api", "update")
        assert not await service.check_permission(db, access.identity, access.groups, "ws1::database::my-db", "update")

    @pytest.mark.asyncio
    async def test_malformed_path_rejected_before_store(self, identity):
        resolver = MagicMock(spec=PermissionResolver)
        resolver.allowed = AsyncMock()
        service = AuthorizationService(resolver=resolver)

        with pytest.raises(InvalidResourcePath):
            await service.check_permission(AsyncMock(), identity, [uuid4()], "ws1::::my-api", VIEW)

        resolver.allowed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_accepts_raw_group_ids(self, db, service, add_grant, identity):
        group = uuid4()
        await add_grant(group, "ws1", VIEW)

        assert await service.check_permission(db, identity, [str(group)], "ws1::deployer::x", VIEW)

    @pytest.mark.asyncio
    async def test_effective_permissions(self, db, service, add_grant, identity):
        group = uuid4()
        await add_grant(group, "ws1", VIEW)
        await add_grant(group, "ws1::deployer", "deployer::update")

        permissions = await service.effective_permissions(db, identity, [group], "ws1::deployer::x")

        assert permissions == {VIEW, "deployer::update"}


class TestListVisible:
    @pytest.mark.asyncio
    async def test_page_shape(self, db, service, add_deployments, add_grant, identity, workspace_id, group_id):
        await add_deployments(workspace_id, 25)
        await add_grant(group_id, str(workspace_id), VIEW)

        result = await service.list_visible(
            db, identity, [group_id], workspace_id, VIEW, page=2, page_size=10, model=Deployment
        )

        assert result.total_count == 25
        assert len(result.items) == 5
        assert result.page == 2
        assert result.page_size == 10
        assert result.has_prev is True
        assert result.has_next is False

    @pytest.mark.asyncio
    async def test_first_page_has_next(self, db, service, add_deployments, add_grant, identity, workspace_id, group_id):
        await add_deployments(workspace_id, 25)
        await add_grant(group_id, str(workspace_id), VIEW)

        result = await service.list_visible(db, identity, [group_id], str(workspace_id), VIEW, page=0, page_size=10)

        assert len(result.items) == 10
        assert result.has_next is True
        assert result.has_prev is False

    @pytest.mark.asyncio
    async def test_denial_looks_like_empty_workspace(self, db, service, add_deployments, identity, workspace_id):
        await add_deployments(workspace_id, 5)

        denied = await service.list_visible(db, identity, [uuid4()], workspace_id, VIEW)
        missing = await service.list_visible(db, identity, [uuid4()], uuid4(), VIEW)

        assert (denied.items, denied.total_count) == (missing.items, missing.total_count) == ([], 0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page,page_size",
        [(-1, 10), (0, 0), (0, -5), (0, settings.MAX_PAGE_SIZE + 1)],
    )
    async def test_invalid_paging_is_a_caller_error(self, service, identity, page, page_size):
        with pytest.raises(ValueError):
            await service.list_visible(AsyncMock(), identity, [uuid4()], uuid4(), VIEW, page=page, page_size=page_size)

    def test_visibility_repository_reused_per_model(self, service):
        assert service.visibility(Deployment) is service.visibility(Deployment)
        assert service.visibility(Deployment) is not service.visibility(Domain)


class TestGetVisibleResource:
    @pytest.mark.asyncio
    async def test_granted_resource_returned(self, db, service, add_deployments, add_grant, identity, workspace_id, group_id):
        [deployment] = await add_deployments(workspace_id, 1)
        await add_grant(group_id, deployment.resource_path, VIEW)

        found = await service.get_visible_resource(db, identity, [group_id], deployment.id, VIEW)

        assert found is deployment

    @pytest.mark.asyncio
    async def test_denied_missing_and_deleted_look_alike(self, db, service, add_deployments, add_grant, identity, workspace_id, group_id):
        visible, hidden, deleted = await add_deployments(workspace_id, 3)
        await add_grant(group_id, visible.resource_path, VIEW)
        await add_grant(group_id, deleted.resource_path, VIEW)
        deleted.deleted_at = datetime.now(timezone.utc)
        await db.flush()

        for resource_id in (hidden.id, deleted.id, uuid4()):
            assert await service.get_visible_resource(db, identity, [group_id], resource_id, VIEW) is None

    @pytest.mark.asyncio
    async def test_super_admin(self, db, service, add_deployments, identity, workspace_id):
        [deployment] = await add_deployments(workspace_id, 1)

        found = await service.get_visible_resource(
            db, identity, [SUPER_ADMIN_GROUP_ID], str(deployment.id), VIEW, model=Deployment
        )

        assert found is deployment
