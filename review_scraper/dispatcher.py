import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from review_scraper.adapters.base import Review, SiteAdapter
# Review → our unified data structure for scraped reviews
# SiteAdapter → base class for all platform-specific adapters

from review_scraper.adapters.prodoctorov import ProdoctorovAdapter
from review_scraper.adapters.sberzdorovie import SberzdorovieAdapter
# Concrete adapter implementations for each supported platform.

from review_scraper.browser import save_result
from review_scraper.errors import InputValidationError, UnknownPlatformError

logger = logging.getLogger(__name__)


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> bytes: ...


# Registry of all adapters, keyed by the platform name callers send.
# Adapters are stateless, so one instance serves every request.
ADAPTERS: Dict[str, SiteAdapter] = {
    adapter.name: adapter
    for adapter in (
        ProdoctorovAdapter(),
        SberzdorovieAdapter(),
    )
}


def register_adapter(adapter: SiteAdapter) -> None:
    """Adds (or replaces) the adapter for `adapter.name`."""
    ADAPTERS[adapter.name] = adapter


def available_platforms() -> List[str]:
    return sorted(ADAPTERS)


def pick_adapter(platform: str) -> SiteAdapter:
    """
    Selects the adapter registered for the given platform key.
    Example:
        "prodoctorov" → ProdoctorovAdapter
    There is no fallback adapter: an unknown key is an error.
    """
    try:
        return ADAPTERS[platform]
    except KeyError:
        raise UnknownPlatformError(platform) from None


async def run_extraction(
    platform: str,
    doctor_url: str,
    fetcher: PageFetcher,
    dump_path: Optional[Union[str, Path]] = None,
) -> List[Review]:
    """
    High-level extraction function.
    Steps:
        1. Reject blank parameters.
        2. Pick the correct adapter for this platform.
        3. Fetch the page once (no retries).
        4. Optionally save the raw body for debugging.
        5. Let the adapter extract the reviews.
    Every call builds and returns its own list; nothing is shared between calls.
    """
    if not platform or not platform.strip() or not doctor_url or not doctor_url.strip():
        raise InputValidationError("platform and doctorUrl are required")

    platform = platform.strip()
    doctor_url = doctor_url.strip()

    adapter = pick_adapter(platform)

    content = await fetcher.fetch(doctor_url)

    if dump_path:
        try:
            await asyncio.to_thread(save_result, content, dump_path)
        except OSError as e:
            logger.warning("Could not save raw page to %s: %s", dump_path, e)

    # Parsing is CPU-bound; a worker thread keeps the event loop serving other requests
    reviews = await asyncio.to_thread(adapter.extract, content)
    logger.info("%s: %d reviews from %s", platform, len(reviews), doctor_url)
    return reviews
