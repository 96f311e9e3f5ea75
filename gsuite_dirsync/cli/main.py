"""
Command-line interface for gsuite_dirsync.

Provides CLI commands for running the Entra ID to Google shared contacts
sync locally, validating configuration, and exercising the Lambda handler.

Usage:
    # Show help
    gsuite-dirsync --help

    # Create a local configuration file
    gsuite-dirsync init-config

    # Check configuration
    gsuite-dirsync check-config

    # Run synchronization
    gsuite-dirsync sync --dry-run
    gsuite-dirsync --config-file ./config.yaml sync
"""

import json
import sys
from pathlib import Path

import click

from gsuite_dirsync import __version__
from gsuite_dirsync.auth import AuthenticationError
from gsuite_dirsync.cli.formatters import show_detailed_changes, show_settings
from gsuite_dirsync.config.generator import save_config_file
from gsuite_dirsync.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from gsuite_dirsync.config.secrets import CONFIG_SECRET
from gsuite_dirsync.config.settings import Settings, SettingsError, load_settings
from gsuite_dirsync.utils import resolve_config_dir
from gsuite_dirsync.utils.logging import get_logger, setup_logging

# Event delivered by the EventBridge schedule rule
SCHEDULED_EVENT = {
    "version": "0",
    "id": "00000000-0000-0000-0000-000000000000",
    "detail-type": "Scheduled Event",
    "source": "aws.events",
    "account": "000000000000",
    "time": "1970-01-01T00:00:00Z",
    "region": "us-east-1",
    "resources": [],
    "detail": {},
}


def get_config_file(config_dir: Path, config_file: str | None) -> Path | None:
    """
    Get the local configuration file to read, if any.

    An explicit --config-file always wins. Otherwise config.yaml in the
    configuration directory is used when it exists, and None means the
    settings come from the AWS secret.
    """
    if config_file:
        return Path(config_file)

    default_file = config_dir / DEFAULT_CONFIG_FILE
    if default_file.is_file():
        return default_file
    return None


def load_cli_settings(ctx: click.Context) -> Settings:
    """
    Load settings for a command from the file or secret chosen on the group.

    Exits with status 1 when the configuration is missing or invalid.
    """
    config_file = ctx.obj["config_file"]
    secret_id = ctx.obj["secret_id"]

    try:
        if config_file is not None:
            return load_settings(config_file=config_file)
        return load_settings(secret_id=secret_id)
    except SettingsError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        if config_file is None:
            click.echo(
                "Run 'gsuite-dirsync init-config' to create a local "
                "configuration file.",
                err=True,
            )
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="gsuite-dirsync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="DIRSYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.gsuite-dirsync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="DIRSYNC_CONFIG_FILE",
    help=(
        "Local YAML configuration file (default: config.yaml in the "
        "configuration directory if present, else the AWS secret)."
    ),
)
@click.option(
    "--secret-id",
    "-s",
    default=CONFIG_SECRET,
    show_default=True,
    envvar="DIRSYNC_CONFIG_SECRET",
    help="AWS Secrets Manager secret holding the configuration.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
    secret_id: str,
) -> None:
    """
    Entra ID to Google Workspace shared contacts sync.

    Mirrors every enabled Entra ID user into the domain shared contacts of
    a Google Workspace domain. Entra ID is the source of truth.
    """
    # Initialize context
    ctx.ensure_object(dict)

    # Resolve paths
    resolved_config_dir = resolve_config_dir(config_dir)
    resolved_config_file = get_config_file(resolved_config_dir, config_file)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file
    ctx.obj["secret_id"] = secret_id

    # Logging options may come from the local config file
    config = {}
    if resolved_config_file is not None:
        try:
            loader = ConfigLoader(config_dir=resolved_config_dir)
            config = loader.load_from_file(resolved_config_file)
            if config:
                loader.validate(config)
        except ConfigError as e:
            # Commands report the error when they load settings
            click.echo(
                click.style(f"Warning: Configuration error: {e}", fg="yellow"),
                err=True,
            )
            config = {}

    ctx.obj["config"] = config

    # CLI flag takes precedence over config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    log_file = config.get("log_file")
    setup_logging(
        verbose=effective_verbose,
        log_file=Path(log_file).expanduser() if log_file else None,
    )


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--dry-run", "-n", is_flag=True, help="Preview changes without applying them."
)
@click.option(
    "--json", "as_json", is_flag=True, help="Print statistics as JSON."
)
@click.pass_context
def sync_command(ctx: click.Context, dry_run: bool, as_json: bool) -> None:
    """
    Synchronize Entra ID users to domain shared contacts.

    Creates contacts for new users, updates contacts whose name or email
    changed, and deletes contacts of users that left the directory
    (unless delete_removed_contacts is false).

    Examples:

        # Preview changes without applying
        gsuite-dirsync sync --dry-run

        # Run and print machine-readable statistics
        gsuite-dirsync sync --json
    """
    from gsuite_dirsync.api.graph_api import DirectoryAPIError
    from gsuite_dirsync.api.shared_contacts_api import ContactsAPIError
    from gsuite_dirsync.handler import run_sync

    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})

    # CLI flag takes precedence over config file
    effective_dry_run = dry_run or config.get("dry_run", False)

    settings = load_cli_settings(ctx)

    if effective_dry_run and not as_json:
        click.echo(click.style("DRY RUN - no changes will be made", fg="yellow"))

    try:
        result = run_sync(settings, dry_run=effective_dry_run)
    except SettingsError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)
    except AuthenticationError as e:
        click.echo(click.style(f"Authentication error: {e}", fg="red"), err=True)
        sys.exit(1)
    except (DirectoryAPIError, ContactsAPIError) as e:
        click.echo(click.style(f"API error: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        click.echo(click.style(f"Sync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "dryRun": result.dry_run,
                    "environment": settings.environment.value,
                    "stats": result.stats.to_dict(),
                },
                indent=2,
            )
        )
    else:
        click.echo("")
        click.echo(result.summary())
        if effective_dry_run:
            show_detailed_changes(result.plan)

    if result.stats.errors:
        if not as_json:
            click.echo(
                click.style(
                    f"\n{result.stats.errors} operation(s) failed, see log for details",
                    fg="yellow",
                ),
                err=True,
            )
    elif not as_json and not effective_dry_run:
        click.echo(click.style("\nSync completed successfully!", fg="green"))


# =============================================================================
# Check Config Command
# =============================================================================


@cli.command("check-config")
@click.pass_context
def check_config_command(ctx: click.Context) -> None:
    """
    Validate the configuration without contacting any API.

    Loads the settings from the configuration file or AWS secret and
    prints them with credentials redacted.

    Examples:

        gsuite-dirsync check-config
        gsuite-dirsync --config-file ./config.yaml check-config
    """
    from gsuite_dirsync.handler import extract_domain

    settings = load_cli_settings(ctx)

    try:
        domain = extract_domain(settings.google_delegated_user)
    except SettingsError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)

    show_settings(settings.redacted(), domain)
    click.echo(click.style("\nConfiguration is valid.", fg="green"))


# =============================================================================
# Invoke Command
# =============================================================================


@cli.command("invoke")
def invoke_command() -> None:
    """
    Run the Lambda handler locally with a scheduled event.

    Reads the configuration from the AWS secret exactly as the deployed
    function does, and prints the handler's response. Exits with status 1
    when the handler reports a failure.

    Example:

        RunEnvironment=dev gsuite-dirsync invoke
    """
    from gsuite_dirsync.handler import handler

    response = handler(SCHEDULED_EVENT, None)
    click.echo(json.dumps(response, indent=2))

    if response.get("statusCode") != 200:
        sys.exit(1)


# =============================================================================
# Init Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite existing configuration file.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a configuration file template.

    Creates a YAML file with every available option documented. Written to
    config.yaml in the configuration directory (or --config-file), where
    the other commands pick it up.

    Examples:

        # Create config file (fails if already exists)
        gsuite-dirsync init-config

        # Overwrite existing config file
        gsuite-dirsync init-config --force
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"] or ctx.obj["config_dir"] / DEFAULT_CONFIG_FILE

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        click.echo("\nNext steps:")
        click.echo("1. Edit the file and fill in the Entra ID and Google credentials")
        click.echo(
            f"2. Run 'gsuite-dirsync --config-file {config_file} check-config'"
        )
        logger.info(f"Created configuration file: {config_file}")
    else:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        logger.error(f"Failed to create configuration file: {error}")
        sys.exit(1)


# =============================================================================
# Health Command
# =============================================================================


@cli.command("health")
def health_command() -> None:
    """
    Check application health status.

    Returns a simple health status indicator. Useful for container
    health checks and monitoring.

    Example:

        gsuite-dirsync health
    """
    click.echo("healthy")


if __name__ == "__main__":
    cli()
