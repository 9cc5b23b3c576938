import click

from cli.backfill_token_info import backfill_token_info
from cli.get_balance import get_balance
from cli.get_transaction import get_transaction
from cli.get_transactions import get_transactions
from cli.init_cache_schema import init_cache_schema
from cli.sync_transactions import sync_transactions


@click.group()
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx):
    pass


# Wallet
cli.add_command(get_balance, "get_balance")
cli.add_command(get_transactions, "get_transactions")

# Transactions
cli.add_command(get_transaction, "get_transaction")
cli.add_command(sync_transactions, "sync_transactions")

# Maintenance
cli.add_command(backfill_token_info, "backfill_token_info")
cli.add_command(init_cache_schema, "init_cache_schema")
