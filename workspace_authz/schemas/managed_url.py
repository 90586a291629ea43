"""
Managed URL Routing Schemas
One variant per routing type; each carries only the fields relevant to it
"""

from enum import Enum
from typing import Annotated, Literal, Tuple, Union
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ManagedUrlType(str, Enum):
    """Managed URL routing variant"""
    PROXY_TO_DEPLOYMENT = "proxy_to_deployment"
    PROXY_TO_STATIC_SITE = "proxy_to_static_site"
    PROXY_URL = "proxy_url"
    REDIRECT = "redirect"


class ManagedUrlTarget(BaseModel):
    """Base for routing variants; a field of another variant is rejected"""
    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    @classmethod
    def routing_fields(cls) -> Tuple[str, ...]:
        return tuple(name for name in cls.model_fields if name != "type")


class ProxyToDeployment(ManagedUrlTarget):
    """Proxy traffic to a port of a deployment"""
    type: Literal["proxy_to_deployment"] = "proxy_to_deployment"
    deployment_id: UUID = Field(..., description="Target deployment")
    port: int = Field(..., ge=1, le=65535, description="Exposed deployment port")


class ProxyToStaticSite(ManagedUrlTarget):
    """Serve a static site"""
    type: Literal["proxy_to_static_site"] = "proxy_to_static_site"
    static_site_id: UUID = Field(..., description="Target static site")


class ProxyUrl(ManagedUrlTarget):
    """Proxy traffic to an external URL"""
    type: Literal["proxy_url"] = "proxy_url"
    url: str = Field(..., min_length=1, max_length=2048, description="External URL to proxy to")
    http_only: bool = Field(False, description="Serve over plain HTTP without TLS")


class Redirect(ManagedUrlTarget):
    """Redirect to another URL"""
    type: Literal["redirect"] = "redirect"
    url: str = Field(..., min_length=1, max_length=2048, description="Redirect target")
    permanent_redirect: bool = Field(False, description="301 instead of 307")
    http_only: bool = Field(False, description="Serve over plain HTTP without TLS")


AnyManagedUrlTarget = Annotated[
    Union[ProxyToDeployment, ProxyToStaticSite, ProxyUrl, Redirect],
    Field(discriminator="type"),
]

TARGET_VARIANTS = {
    ManagedUrlType.PROXY_TO_DEPLOYMENT: ProxyToDeployment,
    ManagedUrlType.PROXY_TO_STATIC_SITE: ProxyToStaticSite,
    ManagedUrlType.PROXY_URL: ProxyUrl,
    ManagedUrlType.REDIRECT: Redirect,
}

# Every column any variant can set
ROUTING_COLUMNS: Tuple[str, ...] = tuple(
    dict.fromkeys(name for variant in TARGET_VARIANTS.values() for name in variant.routing_fields())
)

_target_adapter = TypeAdapter(AnyManagedUrlTarget)


def parse_managed_url_target(data) -> ManagedUrlTarget:
    """Validate a ``{"type": ..., ...}`` mapping into its routing variant"""
    return _target_adapter.validate_python(data)
