"""
Docker Repository Model
"""

from sqlalchemy import BigInteger, Column, ForeignKey, String, Uuid
from workspace_authz.core.permissions import ResourceKind
from workspace_authz.models.resource import Resource


class DockerRepository(Resource):
    """Image repository in the workspace container registry"""
    __tablename__ = "docker_repository"

    id = Column(Uuid(as_uuid=True), ForeignKey("resource.id", ondelete="CASCADE"), primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    size = Column(BigInteger, default=0, nullable=False)  # bytes

    __mapper_args__ = {
        "polymorphic_identity": ResourceKind.DOCKER_REPOSITORY.value,
        "eager_defaults": True,
    }

    def __repr__(self):
        return f"<DockerRepository(id={self.id}, name='{self.name}')>"
