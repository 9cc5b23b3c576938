import click

from cli.command_utils import chain_id_option, configure_cli_logging, echo_json, log_file_option, run_with_services
from constants.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from utils.logger_utils import get_logger
from utils.validation_utils import TRANSACTION_TYPES

logger = get_logger("Get Transactions CLI")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("address", type=str)
@click.option("-t", "--type", "tx_type", default=None, type=click.Choice(TRANSACTION_TYPES), help="Only sent or only received transactions.")
@click.option("-l", "--limit", default=DEFAULT_PAGE_LIMIT, show_default=True, type=int, help="Page size (1-100).")
@click.option("-p", "--page", default=DEFAULT_PAGE, show_default=True, type=int, help="1-based page number.")
@chain_id_option
@click.option(
    "--wait-for-sync",
    is_flag=True,
    default=False,
    help="If the cache is empty, wait for the background sync and query again instead of returning an empty page.",
)
@log_file_option
def get_transactions(address: str, tx_type: str, limit: int, page: int, chain_id: int, wait_for_sync: bool, log_file: str):
    """
    Prints one page of cached transactions of ADDRESS, newest first.
    """
    configure_cli_logging(log_file)

    async def handler(services):
        wallet_service = services.wallet_service
        result = await wallet_service.get_transactions(address, tx_type, limit, page, chain_id)
        if result.total == 0 and wait_for_sync:
            state = await wallet_service.wait_for_sync(address, chain_id)
            if state is not None:
                logger.info(f"Background sync finished with status {state.status.value}, synced={state.synced}")
            result = await wallet_service.get_transactions(address, tx_type, limit, page, chain_id)
        return result

    echo_json(run_with_services(handler))
