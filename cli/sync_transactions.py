import click

from cli.command_utils import chain_id_option, configure_cli_logging, echo_json, log_file_option, run_with_services
from utils.logger_utils import get_logger

logger = get_logger("Sync Transactions CLI")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("address", type=str)
@chain_id_option
@log_file_option
def sync_transactions(address: str, chain_id: int, log_file: str):
    """
    Fetches recent transactions of ADDRESS (indexer first, block scan as fallback),
    enriches them and writes them to the cache.
    """
    configure_cli_logging(log_file)
    logger.info(f"Starting transaction sync for {address} on chain id {chain_id}")
    result = run_with_services(lambda services: services.transaction_service.sync_transactions(address, chain_id))
    echo_json(result)
