"""
Rollout of new container images to an ECS service.

The driver runs five phases in a fixed order, each exactly once:

1. fetch the latest task definition of the family
2. rewrite matching container images
3. register the result as a new revision
4. point the service at the new revision
5. wait for the service to report stable

Nothing is retried or rolled back. A failure after the register phase leaves
the new revision registered but not active.
"""
import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from ecs_rollout.aws.ecs_services import ServiceUpdater
from ecs_rollout.aws.ecs_task_definitions import TaskDefinitionManager, revision_ref
from ecs_rollout.aws.errors import InputValidationError
from ecs_rollout.aws.utils import AWSClientManager
from ecs_rollout.images import ImageChange, ImageVersion, apply_image_versions, parse_image_versions
from ecs_rollout.settings import Settings
from ecs_rollout.utils.decorators import log_operation

logger = logging.getLogger(__name__)

# (attribute, message) in the order they are checked
REQUIRED_INPUTS = [
    ("cluster_name",
     "exit: No CLUSTER NAME specified, please use option: -c Example: -c ctrade-TEST-cluster"),
    ("service_name",
     "exit: No SERVICE NAME specified, please use option: -s Example: -s bff"),
    ("task_family",
     "exit: No TASK FAMILY specified, please use option: -t Example: -t bff-TEST"),
    ("image_versions",
     "exit: No IMAGE VERSION specified, please use option: -v "
     "Example: -v registry.gitlab.com/modulus-derivatives/goesoteric/bff:20201012.1"),
    ("region",
     "exit: No REGION specified, please use option: -r Example: -r us-west-2"),
]


@dataclass
class DeploymentRequest:
    """What to roll out, and where."""
    cluster_name: str
    service_name: str
    task_family: str
    image_versions: str
    region: str

    def validate(self) -> List[ImageVersion]:
        """Check every input and return the parsed image versions.

        Raises InputValidationError for the first missing input, or for a
        malformed image version entry.
        """
        for attr, message in REQUIRED_INPUTS:
            if not getattr(self, attr):
                raise InputValidationError(message)
        return parse_image_versions(self.image_versions)


@dataclass
class DeploymentResult:
    task_definition: str
    update_response: Dict[str, Any]
    started_at: datetime
    finished_at: Optional[datetime] = None
    image_changes: List[ImageChange] = field(default_factory=list)


class DeploymentDriver:
    """Runs one rollout against ECS."""

    def __init__(self, settings: Settings, ecs_client=None,
                 echo: Callable[[str], None] = click.echo):
        self.settings = settings
        if ecs_client is None:
            ecs_client = AWSClientManager(settings).get_client('ecs')
        self.ecs_client = ecs_client
        self.echo = echo
        self.task_definitions = TaskDefinitionManager(self.ecs_client)

    def echo_request(self, request: DeploymentRequest) -> None:
        self.echo(f"Cluster name: {request.cluster_name}")
        self.echo(f"Service name: {request.service_name}")
        self.echo(f"Task family name: {request.task_family}")
        self.echo(f"New container image version: {request.image_versions}")
        self.echo(f"Region: {request.region}")

    @log_operation("fetch latest task definition")
    def fetch(self, request: DeploymentRequest) -> Dict[str, Any]:
        return self.task_definitions.describe_latest(request.task_family)

    @log_operation("rewrite container images")
    def rewrite(self, task_definition: Dict[str, Any],
                image_versions: List[ImageVersion]) -> Tuple[List[Dict[str, Any]], List[ImageChange]]:
        containers = copy.deepcopy(task_definition['containerDefinitions'])
        changes = apply_image_versions(containers, image_versions, self.settings.match_mode)
        for change in changes:
            self.echo(f"Container {change.container_name}: {change.old_image} -> {change.new_image}")
        return containers, changes

    @log_operation("register task definition")
    def register(self, request: DeploymentRequest, task_definition: Dict[str, Any],
                 containers: List[Dict[str, Any]]) -> str:
        registration = self.task_definitions.build_registration(
            task_definition, request.task_family, containers
        )
        registered = self.task_definitions.register(registration)
        ref = revision_ref(registered)
        self.echo(f"Task Definition registered: {ref}")
        return ref

    @log_operation("update service")
    def update(self, request: DeploymentRequest, task_definition: str,
               started_at: datetime) -> Dict[str, Any]:
        updater = ServiceUpdater(self.ecs_client, request.cluster_name, request.service_name)
        self.echo(f"Started updating service({request.service_name}): {started_at}")
        response = updater.update_task_definition(task_definition)
        self.echo("Update service result:")
        self.echo(str(response))
        return response

    @log_operation("wait for service to stabilize")
    def wait(self, request: DeploymentRequest) -> None:
        updater = ServiceUpdater(self.ecs_client, request.cluster_name, request.service_name)
        updater.wait_until_stable(self.settings.waiter_config)

    def run(self, request: DeploymentRequest,
            image_versions: Optional[List[ImageVersion]] = None,
            wait: bool = True) -> DeploymentResult:
        """Roll ``request`` out.

        ``image_versions`` is the result of ``request.validate()`` when the
        caller has already validated; otherwise the request is validated here.

        Raises DeploymentError (InputValidationError before any remote call)
        on the first failing phase.
        """
        if image_versions is None:
            image_versions = request.validate()
        self.echo_request(request)

        task_definition = self.fetch(request)
        containers, changes = self.rewrite(task_definition, image_versions)
        new_revision = self.register(request, task_definition, containers)

        result = DeploymentResult(
            task_definition=new_revision,
            update_response={},
            started_at=datetime.now(),
            image_changes=changes,
        )
        result.update_response = self.update(request, new_revision, result.started_at)

        if wait:
            self.wait(request)
        else:
            logger.info("Skipping stabilization wait")

        result.finished_at = datetime.now()
        self.echo(f"Done: {result.finished_at}")
        return result
