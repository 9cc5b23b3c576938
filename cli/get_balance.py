import click

from cli.command_utils import chain_id_option, configure_cli_logging, echo_json, log_file_option, run_with_services
from utils.logger_utils import get_logger

logger = get_logger("Get Balance CLI")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("address", type=str)
@chain_id_option
@log_file_option
def get_balance(address: str, chain_id: int, log_file: str):
    """
    Prints the native ETH balance of ADDRESS and records the wallet in the cache.
    """
    configure_cli_logging(log_file)
    logger.info(f"Fetching balance for {address} on chain id {chain_id}")
    result = run_with_services(lambda services: services.wallet_service.get_balance(address, chain_id))
    echo_json(result)
