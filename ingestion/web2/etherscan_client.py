import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from constants.constants import INDEXER_END_BLOCK, INDEXER_START_BLOCK
from utils.logger_utils import get_logger

logger = get_logger("Etherscan Client")

DEFAULT_BASE_URL = "https://api.etherscan.io/v2/api"


class EtherscanClient(object):
    """
    Minimal client for the Etherscan v2 multichain API (account/txlist).
    Every failure mode yields an empty result; nothing is retried.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _request(self, params: Dict[str, Any]) -> Any:
        """
        Performs a GET against the API root. Returns the decoded JSON body, or None
        on HTTP errors, rate limiting, network errors and timeouts.
        """
        module_action = f"{params.get('module')}/{params.get('action')}"
        try:
            async with self._get_session().get(self.base_url, params=params) as response:
                if response.status == 200:
                    return await response.json(content_type=None)
                elif response.status == 429:
                    logger.warning(f"Rate limited (429) on {module_action}")
                    return None
                else:
                    logger.error(f"Failed to fetch {module_action}. Status: {response.status}, Reason: {response.reason}")
                    return None
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error requesting {module_action}: {type(e).__name__}: {e}")
            return None

    async def get_transactions(self, address: str, chain_id: str, limit: int) -> List[Dict[str, Any]]:
        """
        Newest-first normal transactions of `address`, at most `limit` of them.
        Returns [] without a request when no API key is configured.
        """
        if not self.api_key:
            logger.debug("No Etherscan API key configured, skipping indexer")
            return []

        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": INDEXER_START_BLOCK,
            "endblock": INDEXER_END_BLOCK,
            "page": 1,
            "offset": limit,
            "sort": "desc",
            "chainid": chain_id,
            "apikey": self.api_key,
        }
        data = await self._request(params)
        if not isinstance(data, dict):
            return []

        # status "0" covers "No transactions found" as well as rate-limit and key errors
        if str(data.get("status")) == "0":
            logger.info(f"Etherscan returned no transactions for {address}: {data.get('message')} {data.get('result')}")
            return []

        result = data.get("result")
        if not isinstance(result, list):
            logger.warning(f"Unexpected Etherscan result type for {address}: {type(result).__name__}")
            return []

        logger.info(f"Retrieved {len(result)} transactions for {address} from Etherscan")
        return result
