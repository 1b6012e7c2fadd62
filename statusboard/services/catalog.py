"""Local package catalog. Shipped with the service and never fetched."""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from statusboard.schemas.records import PackageEntry

logger = structlog.get_logger()


def load_catalog(path: str | Path) -> list[PackageEntry]:
    """Load package entries from a JSON manifest. Returns [] if missing or invalid."""
    manifest = Path(path)
    if not manifest.exists():
        logger.warning("package_catalog_missing", path=str(manifest))
        return []
    try:
        data = json.loads(manifest.read_text())
        entries = [PackageEntry(**raw) for raw in data.get("packages", [])]
    except (json.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
        logger.error("package_catalog_invalid", path=str(manifest), reason=str(e))
        return []
    logger.info("package_catalog_loaded", path=str(manifest), packages=len(entries))
    return entries
