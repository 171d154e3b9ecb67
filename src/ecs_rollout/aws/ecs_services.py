"""ECS service rollout: point a service at a revision and wait for it to settle."""
import logging
from typing import Dict, Any, Optional
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from ecs_rollout.aws.errors import DeploymentError

logger = logging.getLogger(__name__)


class ServiceUpdater:
    """Updates one service in one cluster."""

    def __init__(self, ecs_client, cluster_name: str, service_name: str):
        self.ecs_client = ecs_client
        self.cluster_name = cluster_name
        self.service_name = service_name

    def update_task_definition(self, task_definition: str) -> Dict[str, Any]:
        """Point the service at ``task_definition`` (``family:revision``)."""
        try:
            response = self.ecs_client.update_service(
                cluster=self.cluster_name,
                service=self.service_name,
                taskDefinition=task_definition
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to update service {self.service_name}: {e}")
            raise DeploymentError.from_exception("update", e) from e

        logger.info(f"Updated service {self.service_name} to {task_definition}")
        return response

    def wait_until_stable(self, waiter_config: Optional[Dict[str, int]] = None) -> None:
        """Block until the service reports stable.

        Uses the ``services_stable`` waiter: one deployment and running count
        equal to desired count.
        """
        waiter = self.ecs_client.get_waiter('services_stable')
        kwargs = {
            'cluster': self.cluster_name,
            'services': [self.service_name],
        }
        if waiter_config:
            kwargs['WaiterConfig'] = waiter_config

        try:
            waiter.wait(**kwargs)
        except (WaiterError, ClientError, BotoCoreError) as e:
            logger.error(f"Service {self.service_name} did not stabilize: {e}")
            raise DeploymentError.from_exception("wait", e) from e

        logger.info(f"Service {self.service_name} is stable")
