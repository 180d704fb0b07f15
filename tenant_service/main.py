"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service.
"""

import argparse
import json

import uvicorn

from tenant_service.bootstrap import (
    bootstrap_create_application,
    bootstrap_create_cache,
    bootstrap_create_engine,
    bootstrap_create_health_service,
)
from tenant_service.config import config_configure_logging, config_load_settings
from tenant_service.db import SQLAlchemyOrganizationRepository
from tenant_service.domain import HealthComponentStatus
from tenant_service.services import OrganizationService


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Exit code 1 when `health-report` finds the system unhealthy.
    """

    argument_parser = argparse.ArgumentParser(description="Tenant service runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "health-report", "cleanup-invitations"),
        help="Runtime command: `api` starts server, `health-report` prints one health report as JSON, "
        "`cleanup-invitations` deletes expired invitations",
        type=str,
    )
    parsed_arguments = argument_parser.parse_args()

    if parsed_arguments.command == "health-report":
        main_print_health_report()
        return

    if parsed_arguments.command == "cleanup-invitations":
        settings = config_load_settings()
        config_configure_logging(settings.log_level)
        organization_service = OrganizationService(
            repository=SQLAlchemyOrganizationRepository(engine=bootstrap_create_engine(settings)),
        )
        print(json.dumps({"deleted": organization_service.cleanup_expired_invitations()}))
        return

    settings = config_load_settings()
    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_print_health_report() -> None:
    """Print one system health report to stdout.

    Raises:
        SystemExit: Exit code 1 when the overall status is unhealthy.
    """

    settings = config_load_settings()
    config_configure_logging(settings.log_level)
    health_service = bootstrap_create_health_service(settings, cache=bootstrap_create_cache(settings))
    health = health_service.get_system_health()
    print(json.dumps(health.to_payload(), indent=2))
    if health.status is HealthComponentStatus.UNHEALTHY:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
