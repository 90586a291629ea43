"""
Domain Model
Workspace domains that managed URLs are served under
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from workspace_authz.core.permissions import ResourceKind
from workspace_authz.models.resource import Resource
import enum


class DomainNameserverType(enum.Enum):
    """Who answers DNS for the domain"""
    INTERNAL = "internal"
    EXTERNAL = "external"


class Domain(Resource):
    """Domain added to a workspace"""
    __tablename__ = "domain"

    id = Column(Uuid(as_uuid=True), ForeignKey("resource.id", ondelete="CASCADE"), primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    nameserver_type = Column(String(20), default=DomainNameserverType.EXTERNAL.value, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    last_unverified = Column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {
        "polymorphic_identity": ResourceKind.DOMAIN.value,
        "eager_defaults": True,
    }

    @property
    def is_ns_internal(self) -> bool:
        return self.nameserver_type == DomainNameserverType.INTERNAL.value

    def __repr__(self):
        return f"<Domain(id={self.id}, name='{self.name}', verified={self.is_verified})>"
