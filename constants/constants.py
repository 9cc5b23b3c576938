# constants/constants.py

# Decimals assumed when a token does not answer decimals()
DEFAULT_TOKEN_DECIMALS = 18

# Caller-facing defaults
DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 20

# Block scan samples at most this many blocks out of the configured window
BLOCK_SCAN_SAMPLE_COUNT = 1000

# Etherscan txlist block bounds
INDEXER_START_BLOCK = 0
INDEXER_END_BLOCK = 99999999

# Transaction status values stored in the cache
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
