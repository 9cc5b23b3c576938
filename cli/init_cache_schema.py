import click

from cli.command_utils import run_with_services
from utils.logger_utils import get_logger

logger = get_logger("Init Cache Schema")


@click.command()
def init_cache_schema():
    """
    Creates the cache tables (wallets, transactions, token_metadata) if they are missing.
    """
    logger.info("Starting cache schema initialization...")

    async def handler(services):
        # Tables are created when the container starts
        return services.store.database_url

    try:
        database_url = run_with_services(handler)
    except Exception as e:
        logger.exception(f"Failed to initialize cache schema: {e}")
        raise
    logger.info(f"Schema initialization completed successfully for {database_url}")
