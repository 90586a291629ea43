"""
Managed URL Model
Routing rules under a workspace domain, stored as one row per URL with the
columns of every routing variant; only those of the row's variant are set.
"""

from typing import Any, Dict

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Uuid
from workspace_authz.core.permissions import ResourceKind
from workspace_authz.models.resource import Resource
from workspace_authz.schemas.managed_url import (
    ManagedUrlTarget,
    ManagedUrlType,
    ROUTING_COLUMNS,
    TARGET_VARIANTS,
    parse_managed_url_target,
)


def _variant_condition(url_type: ManagedUrlType) -> str:
    required = set(TARGET_VARIANTS[url_type].routing_fields())
    clauses = [f"url_type = '{url_type.value}'"]
    for column in ROUTING_COLUMNS:
        clauses.append(f"{column} IS NOT NULL" if column in required else f"{column} IS NULL")
    return "(" + " AND ".join(clauses) + ")"


ROUTING_VARIANT_CHECK = " OR ".join(_variant_condition(url_type) for url_type in ManagedUrlType)


def flatten_target(target: Any) -> Dict[str, Any]:
    """Column values for a routing variant; columns of other variants are None"""
    if not isinstance(target, ManagedUrlTarget):
        target = parse_managed_url_target(target)
    values: Dict[str, Any] = dict.fromkeys(ROUTING_COLUMNS)
    values.update(target.model_dump(exclude={"type"}))
    values["url_type"] = target.type
    return values


class ManagedUrl(Resource):
    """Managed URL served under ``sub_domain.domain/path``"""
    __tablename__ = "managed_url"

    id = Column(Uuid(as_uuid=True), ForeignKey("resource.id", ondelete="CASCADE"), primary_key=True)

    sub_domain = Column(String(255), nullable=False, default="@")
    domain_id = Column(Uuid(as_uuid=True), ForeignKey("domain.id"), nullable=False, index=True)
    path = Column(String(1024), nullable=False, default="/")
    url_type = Column(String(32), nullable=False, index=True)

    # Routing variant columns
    deployment_id = Column(Uuid(as_uuid=True), ForeignKey("deployment.id"), nullable=True, index=True)
    port = Column(Integer, nullable=True)
    static_site_id = Column(Uuid(as_uuid=True), ForeignKey("static_site.id"), nullable=True, index=True)
    url = Column(String(2048), nullable=True)
    permanent_redirect = Column(Boolean, nullable=True)
    http_only = Column(Boolean, nullable=True)

    __table_args__ = (
        CheckConstraint(ROUTING_VARIANT_CHECK, name="ck_managed_url_routing_variant"),
    )

    __mapper_args__ = {
        "polymorphic_identity": ResourceKind.MANAGED_URL.value,
        "eager_defaults": True,
    }

    def __init__(self, target=None, **kwargs):
        if target is None:
            raise ValueError("Managed URL requires a routing target")
        stray = set(kwargs).intersection(ROUTING_COLUMNS + ("url_type",))
        if stray:
            raise ValueError(f"Routing fields must be given through the target: {sorted(stray)}")
        kwargs.update(flatten_target(target))
        super().__init__(**kwargs)

    @property
    def routing_type(self) -> ManagedUrlType:
        return ManagedUrlType(self.url_type)

    @property
    def target(self) -> ManagedUrlTarget:
        """Routing variant decoded from the stored columns"""
        variant = TARGET_VARIANTS[self.routing_type]
        return variant(**{name: getattr(self, name) for name in variant.routing_fields()})

    @target.setter
    def target(self, value) -> None:
        for name, column_value in flatten_target(value).items():
            setattr(self, name, column_value)

    def __repr__(self):
        return f"<ManagedUrl(id={self.id}, sub_domain='{self.sub_domain}', path='{self.path}', type='{self.url_type}')>"
