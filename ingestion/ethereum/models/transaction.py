from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ingestion.ethereum.models.token_transfer import TokenTransfer

TransactionStatus = Literal["success", "failed"]


class TransactionResponse(BaseModel):
    """
    Normalized transaction produced by the fetchers and the cache, consumed by
    enrichment and returned to callers. Dumped with by_alias=True it matches the
    camelCase wire shape of the web client.
    """

    model_config = ConfigDict(populate_by_name=True)

    hash: str
    from_address: str = Field(alias="from")
    to_address: str = Field("", alias="to")
    # Native currency amount as an ETH decimal string
    value: str = "0.0"
    block_number: int = Field(0, alias="blockNumber")
    gas_used: int | None = Field(None, alias="gasUsed")
    gas_price: int | None = Field(None, alias="gasPrice")
    # Unix seconds
    timestamp: int = 0
    status: TransactionStatus = "success"
    token_transfer: TokenTransfer | None = Field(None, alias="tokenTransfer")
