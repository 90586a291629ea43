"""
Deployment Model
Deployment resource and its lifecycle state machine
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Uuid
from workspace_authz.core.permissions import ResourceKind
from workspace_authz.models.resource import Resource
import enum


class DeploymentStatus(enum.Enum):
    """Deployment lifecycle status"""
    CREATED = "created"
    PUSHED = "pushed"
    DEPLOYING = "deploying"
    RUNNING = "running"
    STOPPED = "stopped"
    ERRORED = "errored"
    DELETED = "deleted"


_TRANSITIONS = {
    DeploymentStatus.CREATED: frozenset({DeploymentStatus.PUSHED, DeploymentStatus.DELETED}),
    DeploymentStatus.PUSHED: frozenset({DeploymentStatus.DEPLOYING, DeploymentStatus.DELETED}),
    DeploymentStatus.DEPLOYING: frozenset({
        DeploymentStatus.RUNNING,
        DeploymentStatus.ERRORED,
        DeploymentStatus.DELETED,
    }),
    DeploymentStatus.RUNNING: frozenset({
        DeploymentStatus.STOPPED,
        DeploymentStatus.ERRORED,
        DeploymentStatus.DELETED,
    }),
    DeploymentStatus.STOPPED: frozenset({DeploymentStatus.RUNNING, DeploymentStatus.DELETED}),
    DeploymentStatus.ERRORED: frozenset({DeploymentStatus.DELETED}),
    DeploymentStatus.DELETED: frozenset(),
}


def can_transition(current, to) -> bool:
    """
    Whether a deployment may move from ``current`` to ``to``

    Accepts enum members or their string values. Unknown statuses and
    same-state moves are never legal. The orchestration layer performs the
    transition; this only certifies it.
    """
    try:
        current = DeploymentStatus(current)
        to = DeploymentStatus(to)
    except ValueError:
        return False
    return to in _TRANSITIONS[current]


def allowed_transitions(current) -> frozenset:
    return _TRANSITIONS[DeploymentStatus(current)]


class Deployment(Resource):
    """Container deployment running an image from a workspace repository"""
    __tablename__ = "deployment"

    id = Column(Uuid(as_uuid=True), ForeignKey("resource.id", ondelete="CASCADE"), primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    image_name = Column(String(512), nullable=False)
    image_tag = Column(String(255), nullable=False, default="latest")
    status = Column(String(20), default=DeploymentStatus.CREATED.value, nullable=False, index=True)

    # Scaling
    deploy_on_push = Column(Boolean, default=True, nullable=False)
    min_horizontal_scale = Column(Integer, default=1, nullable=False)
    max_horizontal_scale = Column(Integer, default=1, nullable=False)

    __mapper_args__ = {
        "polymorphic_identity": ResourceKind.DEPLOYMENT.value,
        "eager_defaults": True,
    }

    @property
    def deployment_status(self) -> DeploymentStatus:
        return DeploymentStatus(self.status)

    def can_transition_to(self, status) -> bool:
        return can_transition(self.status, status)

    def __repr__(self):
        return f"<Deployment(id={self.id}, name='{self.name}', status='{self.status}')>"
