"""
HTTP checks for panel assets served by the relay
"""

import asyncio
from typing import Optional, Dict, Any

import aiohttp

from config import ASSET_CONFIG
from core.logging_config import get_logger


class AssetChecker:
    """Verifies that asset URLs resolve before a panel is shown"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.logger = get_logger(__name__)
        self.config = config or ASSET_CONFIG
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout_config = aiohttp.ClientTimeout(total=self.config.get("timeout", 5.0))
            self._session = aiohttp.ClientSession(timeout=timeout_config)
        return self._session

    async def check(self, url: Optional[str]) -> Optional[str]:
        """
        Check a single asset.

        Args:
            url: Asset location, None when it could not be resolved

        Returns:
            None if the asset is available, otherwise a reason
        """
        if not url:
            return "no active session"
        if not self.config.get("enabled", True):
            return None

        session = await self._get_session()
        try:
            async with session.head(url, allow_redirects=True) as response:
                if response.status == 200:
                    return None
                return f"HTTP {response.status}"

        except aiohttp.ClientConnectorError:
            return "relay unreachable"

        except asyncio.TimeoutError:
            return "timed out"

        except aiohttp.ClientError as e:
            self.logger.debug(f"Asset check failed for {url}: {e}")
            return str(e) or type(e).__name__

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
