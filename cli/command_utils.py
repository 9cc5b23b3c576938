import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import click
from pydantic import BaseModel

from config.settings import settings
from services.factory import ServiceContainer, build_services
from utils.exceptions import NotFoundError, ValidationError, WalletTrackerError
from utils.logger_utils import configure_logging

chain_id_option = click.option(
    "-c",
    "--chain-id",
    default=settings.networks.default_chain_id,
    show_default=True,
    type=int,
    help="Network chain ID (1 for Mainnet, 11155111 for Sepolia). Unknown IDs use the default network.",
)
log_file_option = click.option("--log-file", default=None, show_default=True, type=str, help="Path to the log file.")


class InvalidInputError(click.ClickException):
    exit_code = 2


class NotFoundCliError(click.ClickException):
    exit_code = 1


def echo_json(result: Any) -> None:
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json", by_alias=True)
    click.echo(json.dumps(result, indent=2))


def run_with_services(handler: Callable[[ServiceContainer], Awaitable[Any]], services: Optional[ServiceContainer] = None) -> Any:
    """
    Runs `handler` against a freshly wired service container and translates
    wallet tracker errors into CLI exit codes (2 invalid input, 1 otherwise).
    """

    async def _run():
        container = services or build_services()
        async with container:
            return await handler(container)

    try:
        return asyncio.run(_run())
    except ValidationError as e:
        raise InvalidInputError(str(e)) from e
    except NotFoundError as e:
        raise NotFoundCliError(str(e)) from e
    except WalletTrackerError as e:
        raise click.ClickException(str(e)) from e


def configure_cli_logging(log_file: Optional[str]) -> None:
    configure_logging(log_file or settings.app.log_file, settings.app.log_level)
