import httpx

from statusboard.config import Settings
from statusboard.services.sources.algorand import ChainAccountAdapter, ChainNetworkAdapter
from statusboard.services.sources.base import SourceAdapter
from statusboard.services.sources.github import (
    ApiLatencyAdapter,
    CIStatusAdapter,
    CommitHistoryAdapter,
    RepoActivityAdapter,
    RepoCatalogAdapter,
)
from statusboard.services.sources.probes import PageLatencyAdapter, RegistryPingAdapter

__all__ = [
    "ApiLatencyAdapter",
    "CIStatusAdapter",
    "ChainAccountAdapter",
    "ChainNetworkAdapter",
    "CommitHistoryAdapter",
    "PageLatencyAdapter",
    "RegistryPingAdapter",
    "RepoActivityAdapter",
    "RepoCatalogAdapter",
    "SourceAdapter",
    "build_adapters",
]


def build_adapters(settings: Settings, http_client: httpx.AsyncClient) -> list[SourceAdapter]:
    """Instantiate every source adapter from settings, sharing one HTTP client."""
    github = {
        "base_url": settings.github_api_url,
        "http_client": http_client,
        "org": settings.github_org,
        "token": settings.github_token,
        "timeout": settings.github_timeout,
    }
    return [
        RepoActivityAdapter(**github),
        RepoCatalogAdapter(**github),
        CIStatusAdapter(**github, repos=settings.ci_repos),
        CommitHistoryAdapter(**github, repos=settings.commit_repos),
        ApiLatencyAdapter(**github),
        ChainAccountAdapter(
            settings.algod_api_url,
            http_client,
            address=settings.algod_account_address,
            timeout=settings.algod_timeout,
        ),
        ChainNetworkAdapter(settings.algod_api_url, http_client, timeout=settings.algod_timeout),
        RegistryPingAdapter(settings.npm_registry_url, http_client, timeout=settings.npm_timeout),
        PageLatencyAdapter(settings.site_origin, http_client, timeout=settings.site_timeout),
    ]
