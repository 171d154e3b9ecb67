"""
ECS Task Definition Revisions
Fetches the latest revision of a family and registers a new one carrying
rewritten container images.
"""
import logging
from typing import Dict, Any, List
from botocore.exceptions import BotoCoreError, ClientError

from ecs_rollout.aws.errors import DeploymentError

logger = logging.getLogger(__name__)

# Fields copied verbatim from the fetched definition into the new revision
COPIED_FIELDS = [
    'executionRoleArn',
    'taskRoleArn',
    'networkMode',
    'volumes',
    'placementConstraints',
    'requiresCompatibilities',
    'cpu',
    'memory',
]


def revision_ref(task_definition: Dict[str, Any]) -> str:
    """Format a task definition as ``family:revision``."""
    return f"{task_definition['family']}:{task_definition['revision']}"


class TaskDefinitionManager:
    """Reads and registers task definition revisions."""

    def __init__(self, ecs_client):
        self.ecs_client = ecs_client

    def describe_latest(self, family: str) -> Dict[str, Any]:
        """Fetch the latest ACTIVE revision of ``family``."""
        try:
            response = self.ecs_client.describe_task_definition(taskDefinition=family)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to describe task definition {family}: {e}")
            raise DeploymentError.from_exception("fetch", e) from e

        task_definition = response['taskDefinition']
        logger.info(f"Fetched task definition: {revision_ref(task_definition)}")
        return task_definition

    def build_registration(self, task_definition: Dict[str, Any], family: str,
                           container_definitions: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Build register_task_definition arguments for a new revision.

        Fields absent from the fetched definition are left out rather than
        sent empty.
        """
        registration = {
            'family': family,
            'containerDefinitions': container_definitions,
        }
        for field in COPIED_FIELDS:
            if task_definition.get(field) is not None:
                registration[field] = task_definition[field]
        return registration

    def register(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        """Register a new revision and return the created task definition."""
        try:
            response = self.ecs_client.register_task_definition(**registration)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to register task definition {registration['family']}: {e}")
            raise DeploymentError.from_exception("register", e) from e

        task_definition = response['taskDefinition']
        logger.info(f"Registered task definition: {revision_ref(task_definition)}")
        logger.info(f"Task definition ARN: {task_definition['taskDefinitionArn']}")
        return task_definition
