"""
Database Models Package
"""

from workspace_authz.models.base import TimestampMixin, UUIDMixin, SoftDeleteMixin
from workspace_authz.models.grant import PermissionGrant
from workspace_authz.models.resource import Resource, ResourceAncestor
from workspace_authz.models.deployment import (
    Deployment,
    DeploymentStatus,
    allowed_transitions,
    can_transition,
)
from workspace_authz.models.static_site import StaticSite
from workspace_authz.models.domain import Domain, DomainNameserverType
from workspace_authz.models.docker_repository import DockerRepository
from workspace_authz.models.managed_url import ManagedUrl, ManagedUrlType

__all__ = [
    "TimestampMixin",
    "UUIDMixin",
    "SoftDeleteMixin",
    "PermissionGrant",
    "Resource",
    "ResourceAncestor",
    "Deployment",
    "DeploymentStatus",
    "allowed_transitions",
    "can_transition",
    "StaticSite",
    "Domain",
    "DomainNameserverType",
    "DockerRepository",
    "ManagedUrl",
    "ManagedUrlType",
]
