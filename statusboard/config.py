from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # GitHub (source control + CI)
    github_api_url: str = "https://api.github.com"
    github_org: str = "statusboard"
    github_token: str | None = None
    github_ci_repos: str = "statusboard,statusboard-agent,statusboard-sdk"  # comma-separated
    github_commit_repos: str = "statusboard"  # comma-separated
    github_timeout: float = 8.0

    # Algorand (chain account + network)
    algod_api_url: str = "https://mainnet-api.algonode.cloud"
    algod_account_address: str = ""
    algod_timeout: float = 6.0

    # npm registry liveness probe
    npm_registry_url: str = "https://registry.npmjs.org"
    npm_timeout: float = 5.0

    # Published dashboard origin (page latency probe)
    site_origin: str = "https://status.example.com"
    site_timeout: float = 5.0

    # Refresh engine
    refresh_interval_seconds: int = 60  # 0 = manual only
    refresh_on_startup: bool = True
    activity_feed_limit: int = 10

    # Local package catalog (not fetched)
    package_catalog_path: str = "config/packages.json"

    # Logging
    statusboard_log_level: str = "info"

    # CORS
    statusboard_cors_origins: str = "http://localhost:4002"

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def ci_repos(self) -> list[str]:
        return [r.strip() for r in self.github_ci_repos.split(",") if r.strip()]

    @property
    def commit_repos(self) -> list[str]:
        return [r.strip() for r in self.github_commit_repos.split(",") if r.strip()]


settings = Settings()
