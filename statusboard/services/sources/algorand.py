import math

import httpx

from statusboard.core.exceptions import MalformedResponseError
from statusboard.schemas.records import ChainAccountInfo, ChainNetworkInfo
from statusboard.services.sources.base import SourceAdapter, expect_dict

NS_PER_SECOND = 1_000_000_000
NS_PER_MS = 1_000_000


class ChainAccountAdapter(SourceAdapter):
    """Balance and holdings for one account (Wallet panel + balance stat card)."""

    source_id = "chain_account"

    def __init__(self, base_url: str, http_client: httpx.AsyncClient, address: str, timeout: float = 6.0):
        super().__init__(base_url, http_client, timeout=timeout)
        self.address = address

    async def _collect(self) -> ChainAccountInfo:
        if not self.address:
            raise MalformedResponseError("no account address configured")
        payload = await self._get_json(f"/v2/accounts/{self.address}", params={"exclude": "none"})
        return self.normalize(payload)

    def normalize(self, payload) -> ChainAccountInfo:
        data = expect_dict(payload, "account")
        # Newer algod responses carry totals; older ones only the arrays
        asset_count = data.get("total-assets-opted-in", len(data.get("assets") or []))
        app_count = data.get("total-created-apps", len(data.get("created-apps") or []))
        return ChainAccountInfo(
            address=data.get("address", self.address),
            micro_algo_balance=data["amount"],
            min_balance_micro_algo=data.get("min-balance", 0),
            asset_count=asset_count,
            created_app_count=app_count,
        )


class ChainNetworkAdapter(SourceAdapter):
    """Node status: latest round, time since it, catchup progress."""

    source_id = "chain_network"

    async def _collect(self) -> ChainNetworkInfo:
        payload = await self._get_json("/v2/status")
        return self.normalize(payload)

    def normalize(self, payload) -> ChainNetworkInfo:
        data = expect_dict(payload, "node status")
        next_version = data.get("next-version")
        label = None
        if next_version:
            # Consensus versions are spec URLs; the last path segment is the useful part
            label = next_version.rstrip("/").rsplit("/", 1)[-1][:12]
        return ChainNetworkInfo(
            last_round=data["last-round"],
            seconds_since_last_round=data["time-since-last-round"] / NS_PER_SECOND,
            catchup_ms=math.ceil(data.get("catchup-time", 0) / NS_PER_MS),
            next_version_label=label,
        )
