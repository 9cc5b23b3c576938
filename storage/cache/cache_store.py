from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from ingestion.ethereum.mappers.transaction_mapper import EthTransactionMapper
from ingestion.ethereum.models.token_transfer import TokenMetadata, TokenTransfer
from ingestion.ethereum.models.transaction import TransactionResponse
from storage.cache.models import Base, TokenMetadataRecord, TransactionRecord, Wallet, utc_now
from utils.formatter_utils import to_normalized_address
from utils.logger_utils import get_logger

logger = get_logger("Cache Store")


class CacheStore(object):
    """
    Local cache of wallets, transactions and token metadata (SQLAlchemy async over SQLite).
    Writes are idempotent: transactions are upserted on (hash, chain_id).
    """

    def __init__(self, database_url: str, echo: bool = False, engine: Optional[AsyncEngine] = None):
        self.database_url = database_url
        self.engine = engine or create_async_engine(database_url, echo=echo)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def initialize(self) -> None:
        """Creates missing tables. Existing tables are left untouched."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Cache schema ready at {self.engine.url.render_as_string(hide_password=True)}")

    async def close(self) -> None:
        await self.engine.dispose()

    # Wallets

    async def find_wallet_by_address(self, address: str) -> Optional[Wallet]:
        async with self.session_factory() as session:
            result = await session.execute(select(Wallet).where(Wallet.address == to_normalized_address(address)))
            return result.scalar_one_or_none()

    async def find_wallet_for_addresses(self, addresses: Iterable[str]) -> Optional[Wallet]:
        """First known wallet among `addresses` (e.g. a transaction's sender and receiver)."""
        normalized = [to_normalized_address(a) for a in addresses if a]
        if not normalized:
            return None
        async with self.session_factory() as session:
            result = await session.execute(
                select(Wallet).where(Wallet.address.in_(normalized)).order_by(Wallet.id).limit(1)
            )
            return result.scalar_one_or_none()

    async def upsert_wallet(self, address: str) -> Wallet:
        """Creates the wallet or refreshes its updated_at."""
        address = to_normalized_address(address)
        now = utc_now()
        stmt = sqlite_insert(Wallet).values(address=address, created_at=now, updated_at=now)
        stmt = stmt.on_conflict_do_update(index_elements=["address"], set_={"updated_at": now})

        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()
            result = await session.execute(select(Wallet).where(Wallet.address == address))
            return result.scalar_one()

    # Transactions

    async def find_transactions_by_wallet(self, address: str, chain_id: int) -> List[TransactionRecord]:
        """Cached transactions of a wallet on one chain, newest first."""
        address = to_normalized_address(address)
        async with self.session_factory() as session:
            stmt = (
                select(TransactionRecord)
                .outerjoin(Wallet, TransactionRecord.wallet_id == Wallet.id)
                .where(TransactionRecord.chain_id == chain_id)
                .where(
                    or_(
                        Wallet.address == address,
                        TransactionRecord.from_address == address,
                        TransactionRecord.to_address == address,
                    )
                )
                .order_by(TransactionRecord.timestamp.desc(), TransactionRecord.id.desc())
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_transaction_by_hash(self, tx_hash: str, chain_id: int) -> Optional[TransactionRecord]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TransactionRecord).where(
                    func.lower(TransactionRecord.hash) == tx_hash.lower(),
                    TransactionRecord.chain_id == chain_id,
                )
            )
            return result.scalars().first()

    async def upsert_transaction(
        self, tx: TransactionResponse, chain_id: int, wallet_id: Optional[int] = None
    ) -> None:
        """
        Inserts or updates the row for (tx.hash, chain_id). Token columns are only
        written when the transaction carries a token transfer, and an existing wallet
        link is kept when `wallet_id` is None.
        """
        values = EthTransactionMapper.transaction_to_cache_dict(tx)
        now = utc_now()
        stmt = sqlite_insert(TransactionRecord).values(
            hash=tx.hash, chain_id=chain_id, wallet_id=wallet_id, created_at=now, updated_at=now, **values
        )
        set_ = {key: stmt.excluded[key] for key in values}
        set_["wallet_id"] = func.coalesce(stmt.excluded.wallet_id, TransactionRecord.wallet_id)
        set_["updated_at"] = now
        stmt = stmt.on_conflict_do_update(index_elements=["hash", "chain_id"], set_=set_)

        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def update_token_transfer(self, tx_hash: str, chain_id: int, token_transfer: TokenTransfer) -> int:
        """Writes token columns on an existing row. Returns the number of rows updated."""
        values = EthTransactionMapper.token_transfer_to_cache_dict(token_transfer)
        async with self.session_factory() as session:
            result = await session.execute(
                update(TransactionRecord)
                .where(TransactionRecord.hash == tx_hash, TransactionRecord.chain_id == chain_id)
                .values(updated_at=utc_now(), **values)
            )
            await session.commit()
            return result.rowcount

    async def find_transactions_without_token_info(
        self, chain_id: Optional[int] = None, limit: Optional[int] = None
    ) -> List[TransactionRecord]:
        stmt = select(TransactionRecord).where(TransactionRecord.token_contract_address.is_(None))
        if chain_id is not None:
            stmt = stmt.where(TransactionRecord.chain_id == chain_id)
        stmt = stmt.order_by(TransactionRecord.timestamp.desc(), TransactionRecord.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # Token metadata

    async def find_token_metadata(self, chain_id: int, contract_address: str) -> Optional[TokenMetadata]:
        async with self.session_factory() as session:
            record = await session.get(TokenMetadataRecord, (chain_id, to_normalized_address(contract_address)))
            if record is None:
                return None
            return TokenMetadata(name=record.name, symbol=record.symbol, decimals=record.decimals)

    async def upsert_token_metadata(self, chain_id: int, contract_address: str, metadata: TokenMetadata) -> None:
        now = utc_now()
        stmt = sqlite_insert(TokenMetadataRecord).values(
            chain_id=chain_id,
            contract_address=to_normalized_address(contract_address),
            name=metadata.name,
            symbol=metadata.symbol,
            decimals=metadata.decimals,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["chain_id", "contract_address"],
            set_={
                "name": stmt.excluded.name,
                "symbol": stmt.excluded.symbol,
                "decimals": stmt.excluded.decimals,
                "updated_at": now,
            },
        )
        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()
