import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
# Asynchronous Playwright API: a real Chromium fetches the page,
# so the TLS fingerprint and header order are those of a real browser.

from review_scraper.errors import TransportError, UpstreamStatusError

logger = logging.getLogger(__name__)


CHROME_ARGS = [
    "--disable-blink-features=AutomationControlled",
    # Keeps navigator.webdriver unset so anti-bot checks serve the regular page.

    "--no-sandbox",
    # Required inside Docker and CI where Chromium cannot create its sandbox.

    "--disable-dev-shm-usage",
    # /dev/shm is tiny inside containers; Chromium crashes without this.
]


UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)
# Headless Chromium advertises "HeadlessChrome" in its default UA.


VIEWPORT = {"width": 1366, "height": 900}
# Desktop width, so the sites serve the desktop DOM our selectors target.

LOCALE = "ru-RU"
EXTRA_HEADERS = {"Accept-Language": "ru-RU,ru;q=0.9,en-US;q=0.8,en;q=0.7"}


class Fetcher:
    """
    Retrieves raw page bodies through one shared headless Chromium.

    The browser is launched once (start() or `async with`) and is read-only
    afterwards; every fetch opens its own browser context, so concurrent
    requests share no cookies or storage.

    Usage:
        async with Fetcher(timeout=30) as fetcher:
            html = await fetcher.fetch("https://prodoctorov.ru/...")
    """

    def __init__(self, headless: bool = True, timeout: float = 30.0):
        self.headless = headless
        self.timeout = timeout
        self._pw = None
        self._browser = None

    async def start(self) -> "Fetcher":
        if self._browser is not None:
            return self

        self._pw = await async_playwright().start()
        # Start the Playwright engine (spawns its driver process).

        self._browser = await self._pw.chromium.launch(headless=self.headless, args=CHROME_ARGS)
        logger.info("Chromium launched (headless=%s)", self.headless)
        return self

    async def close(self) -> None:
        """Closes the browser and stops the Playwright driver."""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._pw is not None:
            await self._pw.stop()
            self._pw = None

    async def __aenter__(self) -> "Fetcher":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def fetch(self, url: str) -> bytes:
        """
        One GET navigation to `url`, no retries.

        Returns:
            Raw body of the main document response.
        Raises:
            TransportError: network/DNS/TLS failure or timeout
            UpstreamStatusError: response status outside 2xx
        """
        if self._browser is None:
            raise RuntimeError("Fetcher is not started")

        try:
            context = await self._browser.new_context(
                user_agent=UA,
                viewport=VIEWPORT,
                locale=LOCALE,
                extra_http_headers=EXTRA_HEADERS,
            )
        except PlaywrightError as e:
            raise TransportError(f"Browser unavailable: {e.message}") from e

        try:
            try:
                page = await context.new_page()
            except PlaywrightError as e:
                raise TransportError(f"Browser unavailable: {e.message}") from e
            logger.info("Fetching %s", url)

            try:
                response = await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=self.timeout * 1000,  # Playwright counts in milliseconds
                )
            except PlaywrightTimeoutError as e:
                raise TransportError(f"Timed out after {self.timeout}s fetching {url}") from e
            except PlaywrightError as e:
                raise TransportError(f"Failed to fetch {url}: {e.message}") from e

            if response is None:
                raise TransportError(f"No response received for {url}")

            if not response.ok:
                logger.warning("bad response status: %s for %s", response.status, url)
                raise UpstreamStatusError(response.status, url)

            try:
                body = await response.body()
            except PlaywrightError as e:
                raise TransportError(f"Failed to read body of {url}: {e.message}") from e

            logger.info("Fetched %s (%d bytes, status %s)", url, len(body), response.status)
            return body

        finally:
            # Drops the page, its cookies and storage; the browser stays up.
            try:
                await context.close()
            except PlaywrightError as e:
                logger.warning("Failed to close browser context: %s", e.message)


def save_result(content: bytes, path) -> None:
    """Writes a fetched page body to `path` for offline inspection."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    logger.info("Saved raw page to %s", target)


def dump_path_for(dump_dir, platform: str, stamp: Optional[str] = None) -> Path:
    stamp = stamp or datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return Path(dump_dir) / f"{platform}-{stamp}.html"
