from pydantic import BaseModel, ConfigDict, Field


class EthTokenTransfer(BaseModel):
    """An ERC-20 Transfer event decoded from a receipt log."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = "token_transfer"
    contract_address: str
    from_address: str
    to_address: str
    # Raw amount in the token's smallest unit
    value: int
    transaction_hash: str | None = None
    log_index: int | None = None


class TokenMetadata(BaseModel):
    name: str | None = None
    symbol: str | None = None
    decimals: int | None = None


class TokenTransfer(BaseModel):
    """Token transfer attached to a TransactionResponse."""

    model_config = ConfigDict(populate_by_name=True)

    contract_address: str = Field(alias="contractAddress")
    token_name: str | None = Field(None, alias="tokenName")
    token_symbol: str | None = Field(None, alias="tokenSymbol")
    token_decimals: int | None = Field(None, alias="tokenDecimals")
    amount: str
    amount_formatted: str = Field(alias="amountFormatted")
