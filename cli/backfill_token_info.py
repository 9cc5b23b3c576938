import click

from cli.command_utils import configure_cli_logging, echo_json, log_file_option, run_with_services
from utils.logger_utils import get_logger

logger = get_logger("Backfill Token Info CLI")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("-c", "--chain-id", default=None, type=int, help="Restrict to one chain. All chains if not specified.")
@click.option("-l", "--limit", default=None, type=int, help="Maximum number of transactions to process.")
@log_file_option
def backfill_token_info(chain_id: int, limit: int, log_file: str):
    """
    Adds ERC-20 transfer details to cached transactions that were stored without them.
    """
    configure_cli_logging(log_file)
    logger.info("Starting token info backfill...")
    result = run_with_services(lambda services: services.transaction_service.backfill_token_info(chain_id, limit))
    echo_json(result)
