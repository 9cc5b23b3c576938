from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Wallets
class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Always lowercased
    address = Column(String(42), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


# Transactions, one row per (hash, chain_id)
class TransactionRecord(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("hash", "chain_id", name="uq_transactions_hash_chain_id"),
        Index("ix_transactions_from_chain", "from_address", "chain_id"),
        Index("ix_transactions_to_chain", "to_address", "chain_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    hash = Column(String(66), nullable=False)
    chain_id = Column(BigInteger, nullable=False)

    from_address = Column(String(42), nullable=False)
    to_address = Column(String(42), nullable=False, default="")
    # ETH decimal string
    amount = Column(String, nullable=False)

    block_number = Column(BigInteger, nullable=False)
    gas_used = Column(BigInteger)
    gas_price = Column(BigInteger)
    timestamp = Column(DateTime, nullable=False)
    status = Column(String(16), nullable=False)

    token_contract_address = Column(String(42))
    token_name = Column(String)
    token_symbol = Column(String)
    token_decimals = Column(Integer)
    # Raw amount as a decimal string, may exceed 64 bits
    token_amount = Column(String)
    token_amount_formatted = Column(String)

    wallet_id = Column(Integer, ForeignKey("wallets.id"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


# ERC-20 metadata per (chain_id, contract_address)
class TokenMetadataRecord(Base):
    __tablename__ = "token_metadata"

    chain_id = Column(BigInteger, primary_key=True)
    contract_address = Column(String(42), primary_key=True)
    name = Column(String)
    symbol = Column(String)
    decimals = Column(Integer)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)
