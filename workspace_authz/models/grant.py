"""
Permission Grant Model
(group, resource path prefix, permission) records read by the resolver
"""

from sqlalchemy import Column, String, Uuid, Index, UniqueConstraint
from workspace_authz.core.database import Base
from workspace_authz.models.base import UUIDMixin, TimestampMixin


class PermissionGrant(Base, UUIDMixin, TimestampMixin):
    """A group holds ``permission`` on ``resource_prefix`` and everything below it"""
    __tablename__ = "permission_grant"

    group_id = Column(Uuid(as_uuid=True), nullable=False)
    resource_prefix = Column(String(512), nullable=False)
    permission = Column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("group_id", "resource_prefix", "permission", name="uq_permission_grant"),
        # Visibility join: prefix equality first, then group membership
        Index("idx_permission_grant_prefix_permission", "resource_prefix", "permission", "group_id"),
        Index("idx_permission_grant_group", "group_id"),
    )

    def __repr__(self):
        return (
            f"<PermissionGrant(group_id={self.group_id}, "
            f"resource_prefix='{self.resource_prefix}', permission='{self.permission}')>"
        )
