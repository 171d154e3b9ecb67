"""AWS fixtures for tests: moto-backed ECS and stubbed clients."""
import boto3
import pytest
from botocore.stub import Stubber
from moto import mock_aws

from ecs_rollout.settings import Settings, get_settings
from tests.consts import (
    TEST_CLUSTER_NAME,
    TEST_EXECUTION_ROLE_ARN,
    TEST_REGION,
    TEST_SERVICE_NAME,
    TEST_TASK_FAMILY,
    TEST_TASK_ROLE_ARN,
)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    for var in ("AWS_PROFILE", "AWS_ENDPOINT_URL", "ECS_ROLLOUT_MATCH_MODE",
                "ECS_ROLLOUT_LEGACY_EXIT_CODES", "ECS_ROLLOUT_WAIT_DELAY",
                "ECS_ROLLOUT_WAIT_MAX_ATTEMPTS", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(aws_region=TEST_REGION, wait_delay=1, wait_max_attempts=3)


@pytest.fixture
def mocked_aws():
    with mock_aws():
        yield


@pytest.fixture
def ecs_client(mocked_aws):
    return boto3.client("ecs", region_name=TEST_REGION)


@pytest.fixture
def ecs_service(ecs_client):
    """A cluster running one service on a single-container task family."""
    ecs_client.create_cluster(clusterName=TEST_CLUSTER_NAME)
    ecs_client.register_task_definition(
        family=TEST_TASK_FAMILY,
        containerDefinitions=[
            {
                'name': 'bff',
                'image': 'old/img:1.0',
                'essential': True,
                'portMappings': [{'containerPort': 8080, 'protocol': 'tcp'}],
            }
        ],
        executionRoleArn=TEST_EXECUTION_ROLE_ARN,
        taskRoleArn=TEST_TASK_ROLE_ARN,
        networkMode='awsvpc',
        requiresCompatibilities=['FARGATE'],
        cpu='256',
        memory='512',
    )
    # desiredCount 0 keeps the service stable for the services_stable waiter
    ecs_client.create_service(
        cluster=TEST_CLUSTER_NAME,
        serviceName=TEST_SERVICE_NAME,
        taskDefinition=TEST_TASK_FAMILY,
        desiredCount=0,
    )
    return ecs_client


@pytest.fixture
def stubbed_ecs():
    """An ECS client whose responses are queued on a Stubber."""
    client = boto3.client("ecs", region_name=TEST_REGION)
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()
