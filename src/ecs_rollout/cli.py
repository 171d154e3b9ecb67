# cli.py
import click
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError
from pydantic import ValidationError

from ecs_rollout.aws.errors import DeploymentError, ExitCode, InputValidationError
from ecs_rollout.deploy import DeploymentDriver, DeploymentRequest
from ecs_rollout.settings import MATCH_MODES, get_settings

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.command()
@click.option('-c', '--cluster', 'cluster_name', default='', help='Cluster name.')
@click.option('-s', '--service', 'service_name', default='', help='Service name')
@click.option('-t', '--task-family', 'task_family', default='', help='Task family name')
@click.option('-v', '--image-versions', 'image_versions', default='',
              help='New container versions, comma-separated <image path>:<tag>')
@click.option('-r', '--region', 'region', default='', help='Region')
@click.option('--match', 'match_mode',
              type=click.Choice(MATCH_MODES),
              default=None,
              help='How container images are matched against an image path')
@click.option('--legacy-exit-codes', is_flag=True, default=False,
              help='Exit with status 0 on every failure')
@click.option('--wait-delay', type=int, default=None, help='Seconds between stability checks')
@click.option('--wait-max-attempts', type=int, default=None,
              help='Stability checks before giving up')
@click.option('--wait/--no-wait', default=True, help='Wait for the service to become stable')
@click.option('--log-level',
              type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default=None,
              help='Logging level')
@click.pass_context
def main(ctx, cluster_name: str, service_name: str, task_family: str, image_versions: str,
         region: str, match_mode: Optional[str], legacy_exit_codes: bool,
         wait_delay: Optional[int], wait_max_attempts: Optional[int], wait: bool,
         log_level: Optional[str]):
    """Roll new container image versions out to an ECS service.

    Registers a new revision of the task family with the given images, points
    the service at it and waits until the service is stable.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        click.echo(f"exit: invalid configuration: {e}")
        ctx.exit(ExitCode.SUCCESS if legacy_exit_codes else ExitCode.INVALID_INPUT)

    legacy = legacy_exit_codes or settings.legacy_exit_codes
    configure_logging(log_level or settings.log_level)

    request = DeploymentRequest(
        cluster_name=cluster_name,
        service_name=service_name,
        task_family=task_family,
        image_versions=image_versions,
        region=region,
    )

    try:
        parsed_versions = request.validate()
        try:
            settings = settings.with_overrides(
                aws_region=region,
                match_mode=match_mode,
                wait_delay=wait_delay,
                wait_max_attempts=wait_max_attempts,
            )
        except ValidationError as e:
            raise InputValidationError(f"exit: invalid option: {e}") from e

        try:
            driver = DeploymentDriver(settings)
        except BotoCoreError as e:
            raise DeploymentError.from_exception("configure", e) from e

        driver.run(request, image_versions=parsed_versions, wait=wait)
    except DeploymentError as e:
        click.echo(str(e))
        ctx.exit(ExitCode.SUCCESS if legacy else e.exit_code)


if __name__ == "__main__":
    main()
