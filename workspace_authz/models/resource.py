"""
Resource Model
Polymorphic base for every workspace-scoped resource kind
"""

import uuid

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Uuid, inspect
from sqlalchemy.orm import relationship, validates
from workspace_authz.core.database import Base
from workspace_authz.core.permissions import ResourceKind, ResourcePath
from workspace_authz.models.base import UUIDMixin, TimestampMixin, SoftDeleteMixin


class ResourceAncestor(Base):
    """Closure row: one per ancestor-or-self prefix of a resource path"""
    __tablename__ = "resource_ancestor"

    resource_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("resource.id", ondelete="CASCADE"),
        primary_key=True
    )
    ancestor_path = Column(String(512), primary_key=True)
    depth = Column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_resource_ancestor_path", "ancestor_path", "resource_id"),
    )

    def __repr__(self):
        return f"<ResourceAncestor(resource_id={self.resource_id}, ancestor_path='{self.ancestor_path}')>"


class Resource(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Minimal shape shared by all resource kinds

    Rows are decoded into their kind subclass through the ``kind``
    discriminator. The resource path is derived from workspace, kind and id
    unless given explicitly, and cannot change once the row is persisted.
    """
    __tablename__ = "resource"

    workspace_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    kind = Column(String(32), nullable=False, index=True)
    resource_path = Column(String(512), nullable=False, unique=True)

    ancestors = relationship(
        "ResourceAncestor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_resource_workspace_listing", "workspace_id", "deleted_at", "created_at"),
    )

    __mapper_args__ = {
        "polymorphic_on": kind,
        "eager_defaults": True,
    }

    def __init__(self, **kwargs):
        kwargs.setdefault("id", uuid.uuid4())
        super().__init__(**kwargs)
        if self.workspace_id is None:
            raise ValueError("Resources belong to exactly one workspace")
        if self.resource_path is None:
            identity = inspect(type(self)).polymorphic_identity
            if identity is None:
                raise ValueError("Resource path is required for untyped resources")
            self.resource_path = str(
                ResourcePath.for_resource(self.workspace_id, ResourceKind(identity), self.id)
            )

    @validates("resource_path")
    def _assign_ancestors(self, key, value):
        state = inspect(self)
        if state.persistent or state.detached:
            raise ValueError("Resource paths are immutable once stored")
        path = value if isinstance(value, ResourcePath) else ResourcePath.parse(value)
        self.ancestors = [
            ResourceAncestor(ancestor_path=str(prefix), depth=prefix.depth)
            for prefix in path.prefixes()
        ]
        return str(path)

    @property
    def parsed_path(self) -> ResourcePath:
        return ResourcePath.parse(self.resource_path)

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, resource_path='{self.resource_path}')>"
