import math
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ingestion.ethereum.models.transaction import TransactionResponse


class TransactionPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transactions: List[TransactionResponse] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = Field(0, alias="totalPages")
    has_more: bool = Field(False, alias="hasMore")


def filter_transactions(
    transactions: Sequence[TransactionResponse], wallet_address: str, type: Optional[str] = None
) -> List[TransactionResponse]:
    """`sent`: wallet is the sender, `received`: wallet is the recipient, None: everything."""
    wallet_address = wallet_address.lower()
    if type == "sent":
        return [tx for tx in transactions if tx.from_address.lower() == wallet_address]
    if type == "received":
        return [tx for tx in transactions if tx.to_address.lower() == wallet_address]
    return list(transactions)


def paginate(
    transactions: Sequence[TransactionResponse],
    wallet_address: str,
    type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> TransactionPage:
    """Filters, then slices one page. Inputs are expected to be validated already."""
    filtered = filter_transactions(transactions, wallet_address, type)
    total = len(filtered)
    total_pages = math.ceil(total / limit)
    skip = (page - 1) * limit

    return TransactionPage(
        transactions=filtered[skip:skip + limit],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_more=page < total_pages,
    )
