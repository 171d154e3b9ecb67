"""AWS client management."""
import boto3
import logging
from typing import Dict, Any
from ecs_rollout.settings import Settings

logger = logging.getLogger(__name__)


class AWSClientManager:
    """Creates and caches AWS service clients for one rollout.

    Unlike a process-wide singleton, each manager is bound to the
    ``Settings`` it was constructed with.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.region = settings.aws_region
        self.endpoint_url = settings.aws_endpoint_url
        self._clients: Dict[str, Any] = {}

        logger.info("Initializing AWSClientManager")
        logger.info(f"  Region: {self.region}")
        logger.info(f"  Endpoint: {self.endpoint_url}")

    def _session(self) -> boto3.Session:
        if self.settings.aws_profile:
            logger.debug(f"Using AWS profile: {self.settings.aws_profile}")
            return boto3.Session(profile_name=self.settings.aws_profile)
        return boto3.Session()

    def get_client(self, service_name: str) -> Any:
        """Get or create an AWS service client."""
        if service_name in self._clients:
            return self._clients[service_name]

        client_kwargs = self.settings.client_kwargs()

        # A named profile supplies its own credentials
        if self.settings.aws_profile:
            for key in ('aws_access_key_id', 'aws_secret_access_key', 'aws_session_token'):
                client_kwargs.pop(key, None)

        try:
            client = self._session().client(service_name, **client_kwargs)
            self._clients[service_name] = client
            logger.debug(f"Created {service_name} client")
            return client
        except Exception as e:
            logger.error(f"Error creating {service_name} client: {str(e)}")
            raise
