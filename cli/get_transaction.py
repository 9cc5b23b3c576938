import click

from cli.command_utils import chain_id_option, configure_cli_logging, echo_json, log_file_option, run_with_services


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("tx_hash", metavar="HASH", type=str)
@chain_id_option
@log_file_option
def get_transaction(tx_hash: str, chain_id: int, log_file: str):
    """
    Prints a single transaction, from the cache or the chain.
    """
    configure_cli_logging(log_file)
    result = run_with_services(lambda services: services.transaction_service.get_transaction_by_hash(tx_hash, chain_id))
    echo_json(result)
