"""
Permission catalog and hierarchical resource paths.

A resource path is a ``::`` separated name such as
``<workspace>::deployer::<deployment id>``. A grant on any prefix of a path
applies to every path extending it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union
from uuid import UUID

from workspace_authz.core.exceptions import InvalidResourcePath

RESOURCE_PATH_SEPARATOR = "::"

# Well-known group whose members bypass every grant check
SUPER_ADMIN_GROUP_ID = UUID(int=0)


class ResourceKind(str, Enum):
    DEPLOYMENT = "deployment"
    STATIC_SITE = "static_site"
    MANAGED_URL = "managed_url"
    DOMAIN = "domain"
    DOCKER_REPOSITORY = "docker_repository"


# Path segment under the workspace that groups resources of one kind
RESOURCE_CATEGORIES: dict[ResourceKind, str] = {
    ResourceKind.DEPLOYMENT: "deployer",
    ResourceKind.STATIC_SITE: "static_site",
    ResourceKind.MANAGED_URL: "managed_url",
    ResourceKind.DOMAIN: "domain",
    ResourceKind.DOCKER_REPOSITORY: "docker_registry",
}


class PermissionAction(str, Enum):
    VIEW = "view"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    DEPLOY = "deploy"
    PUSH = "push"
    PULL = "pull"
    VERIFY = "verify"


COMMON_ACTIONS: tuple[PermissionAction, ...] = (
    PermissionAction.VIEW,
    PermissionAction.LIST,
    PermissionAction.CREATE,
    PermissionAction.UPDATE,
    PermissionAction.DELETE,
)

KIND_SPECIFIC_ACTIONS: dict[ResourceKind, tuple[PermissionAction, ...]] = {
    ResourceKind.DEPLOYMENT: (PermissionAction.DEPLOY,),
    ResourceKind.DOCKER_REPOSITORY: (PermissionAction.PUSH, PermissionAction.PULL),
    ResourceKind.DOMAIN: (PermissionAction.VERIFY,),
}


def permission_name(kind: ResourceKind, action: PermissionAction) -> str:
    """``deployer::update`` style name of an action on a resource kind"""
    return f"{RESOURCE_CATEGORIES[kind]}{RESOURCE_PATH_SEPARATOR}{action.value}"


ALL_PERMISSIONS: tuple[str, ...] = tuple(
    permission_name(kind, action)
    for kind in ResourceKind
    for action in COMMON_ACTIONS + KIND_SPECIFIC_ACTIONS.get(kind, ())
)


def is_known_permission(name: str) -> bool:
    return name in ALL_PERMISSIONS


def _validate_segment(segment: str, raw: str) -> str:
    if not segment:
        raise InvalidResourcePath(f"Empty segment in resource path {raw!r}", path=raw)
    if segment != segment.strip() or any(ch.isspace() for ch in segment):
        raise InvalidResourcePath(f"Whitespace in resource path segment {segment!r}", path=raw)
    if ":" in segment:
        raise InvalidResourcePath(f"Stray ':' in resource path segment {segment!r}", path=raw)
    return segment


@dataclass(frozen=True)
class ResourcePath:
    """Parsed, validated resource path. Construct once at the boundary."""

    segments: tuple[str, ...]

    def __post_init__(self):
        if not self.segments:
            raise InvalidResourcePath("Resource path has no segments")
        raw = RESOURCE_PATH_SEPARATOR.join(self.segments)
        for segment in self.segments:
            _validate_segment(segment, raw)

    @classmethod
    def parse(cls, raw: str) -> "ResourcePath":
        if not isinstance(raw, str) or not raw:
            raise InvalidResourcePath("Resource path must be a non-empty string", path=raw)
        return cls(tuple(raw.split(RESOURCE_PATH_SEPARATOR)))

    @classmethod
    def for_category(cls, workspace_id: Union[UUID, str], kind: ResourceKind) -> "ResourcePath":
        return cls((str(workspace_id), RESOURCE_CATEGORIES[ResourceKind(kind)]))

    @classmethod
    def for_resource(
        cls,
        workspace_id: Union[UUID, str],
        kind: ResourceKind,
        resource_id: Union[UUID, str],
    ) -> "ResourcePath":
        leaf = resource_id.hex if isinstance(resource_id, UUID) else str(resource_id)
        return cls.for_category(workspace_id, kind).child(leaf)

    def child(self, segment: str) -> "ResourcePath":
        return ResourcePath(self.segments + (segment,))

    def prefixes(self) -> tuple["ResourcePath", ...]:
        """Ancestor-or-self paths, least to most specific"""
        return tuple(ResourcePath(self.segments[: i + 1]) for i in range(len(self.segments)))

    def prefix_strings(self) -> tuple[str, ...]:
        return tuple(str(prefix) for prefix in self.prefixes())

    def is_ancestor_of(self, other: "ResourcePath") -> bool:
        """True for ancestor-or-self"""
        return other.segments[: len(self.segments)] == self.segments

    @property
    def depth(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return RESOURCE_PATH_SEPARATOR.join(self.segments)


@dataclass(frozen=True)
class GroupSet:
    """Group memberships carried by a verified identity for one request.

    The super-admin sentinel is looked for exactly once, here.
    """

    ids: frozenset[UUID]
    is_super_admin: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "is_super_admin", SUPER_ADMIN_GROUP_ID in self.ids)

    @classmethod
    def of(cls, group_ids: Iterable[Union[UUID, str]]) -> "GroupSet":
        if isinstance(group_ids, GroupSet):
            return group_ids
        ids = frozenset(g if isinstance(g, UUID) else UUID(str(g)) for g in group_ids)
        return cls(ids=ids)

    @classmethod
    def empty(cls) -> "GroupSet":
        return cls(ids=frozenset())

    def __iter__(self):
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, group_id: object) -> bool:
        return group_id in self.ids


GroupsLike = Union[GroupSet, Iterable[Union[UUID, str]]]
