"""
Static Site Model
"""

from sqlalchemy import Column, ForeignKey, String, Uuid
from workspace_authz.core.permissions import ResourceKind
from workspace_authz.models.resource import Resource


class StaticSite(Resource):
    """Static site served from uploaded files"""
    __tablename__ = "static_site"

    id = Column(Uuid(as_uuid=True), ForeignKey("resource.id", ondelete="CASCADE"), primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    current_live_upload = Column(Uuid(as_uuid=True), nullable=True)

    __mapper_args__ = {
        "polymorphic_identity": ResourceKind.STATIC_SITE.value,
        "eager_defaults": True,
    }

    def __repr__(self):
        return f"<StaticSite(id={self.id}, name='{self.name}')>"
