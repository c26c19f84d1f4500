"""
Tests for the adapter registry and the run_extraction pipeline.
The fetcher is replaced by an in-memory fake keyed by URL.
"""

import asyncio
import time

import pytest

from review_scraper import dispatcher
from review_scraper.adapters.base import Review, SiteAdapter
from review_scraper.adapters.prodoctorov import ProdoctorovAdapter
from review_scraper.adapters.sberzdorovie import SberzdorovieAdapter
from review_scraper.dispatcher import (
    available_platforms,
    pick_adapter,
    register_adapter,
    run_extraction,
)
from review_scraper.errors import (
    ErrorKind,
    InputValidationError,
    MalformedDocumentError,
    TransportError,
    UnknownPlatformError,
    UpstreamStatusError,
)


class FakeFetcher:
    def __init__(self, pages, delay=0.0):
        self.pages = pages
        self.delay = delay
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        await asyncio.sleep(self.delay)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page.encode("utf-8")


def test_registry_has_both_platforms():
    assert isinstance(pick_adapter("prodoctorov"), ProdoctorovAdapter)
    assert isinstance(pick_adapter("sberzdorovie"), SberzdorovieAdapter)
    assert available_platforms() == ["prodoctorov", "sberzdorovie"]


@pytest.mark.parametrize("platform", ["unknown-platform", "", "Prodoctorov", "docdoc"])
def test_unknown_platform_raises(platform):
    with pytest.raises(UnknownPlatformError) as exc_info:
        pick_adapter(platform)
    assert exc_info.value.kind is ErrorKind.UNKNOWN_PLATFORM


def test_register_adapter_extends_registry(monkeypatch):
    monkeypatch.setattr(dispatcher, "ADAPTERS", dict(dispatcher.ADAPTERS))

    class DocdocAdapter(SiteAdapter):
        name = "docdoc"

        def extract(self, content):
            return [Review(id="1", author="a", date="d", body="b", source=self.name)]

    register_adapter(DocdocAdapter())

    assert pick_adapter("docdoc").name == "docdoc"
    with pytest.raises(UnknownPlatformError):
        pick_adapter("unknown-platform")


@pytest.mark.asyncio
async def test_run_extraction_prodoctorov(prodoctorov_card, prodoctorov_page):
    url = "https://prodoctorov.ru/ekaterinburg/vrach/1-test/"
    fetcher = FakeFetcher({url: prodoctorov_page(
        prodoctorov_card("1", "Анна", "вчера", "Хорошо"),
        prodoctorov_card("2", "Борис", "сегодня", "Отлично"),
    )})

    reviews = await run_extraction("prodoctorov", url, fetcher)

    assert [r.id for r in reviews] == ["1", "2"]
    assert fetcher.calls == [url]


@pytest.mark.asyncio
async def test_run_extraction_sberzdorovie(next_data_page, sber_payload):
    url = "https://docdoc.ru/doctor/test"
    page = next_data_page(sber_payload([{"id": 123, "name": "Анна", "date": "d", "text": "t"}]))

    reviews = await run_extraction("sberzdorovie", url, FakeFetcher({url: page}))

    assert reviews == [Review(id="123", author="Анна", date="d", body="t", source="sberzdorovie")]


@pytest.mark.asyncio
async def test_zero_reviews_is_not_an_error(prodoctorov_page):
    url = "https://prodoctorov.ru/x/"
    assert await run_extraction("prodoctorov", url, FakeFetcher({url: prodoctorov_page()})) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "platform, url",
    [("", "https://x"), ("prodoctorov", ""), ("   ", "https://x"), ("prodoctorov", " \n"), (None, "u")],
)
async def test_blank_parameters_are_rejected_before_fetch(platform, url):
    fetcher = FakeFetcher({})

    with pytest.raises(InputValidationError):
        await run_extraction(platform, url, fetcher)

    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_unknown_platform_does_not_fetch():
    fetcher = FakeFetcher({})

    with pytest.raises(UnknownPlatformError):
        await run_extraction("unknown-platform", "https://x", fetcher)

    assert fetcher.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [TransportError("connection refused"), UpstreamStatusError(503, "https://x")],
)
async def test_fetch_errors_propagate(error):
    with pytest.raises(type(error)) as exc_info:
        await run_extraction("prodoctorov", "https://x", FakeFetcher({"https://x": error}))
    assert exc_info.value.kind is ErrorKind.TRANSPORT_OR_UPSTREAM


@pytest.mark.asyncio
async def test_malformed_page_propagates():
    fetcher = FakeFetcher({"https://x": "<html><body>no next data</body></html>"})

    with pytest.raises(MalformedDocumentError):
        await run_extraction("sberzdorovie", "https://x", fetcher)


@pytest.mark.asyncio
async def test_dump_path_saves_raw_body(tmp_path, prodoctorov_page):
    url = "https://prodoctorov.ru/x/"
    html = prodoctorov_page()
    target = tmp_path / "dumps" / "page.html"

    await run_extraction("prodoctorov", url, FakeFetcher({url: html}), dump_path=target)

    assert target.read_bytes() == html.encode("utf-8")


@pytest.mark.asyncio
async def test_concurrent_calls_do_not_share_results(
    prodoctorov_card, prodoctorov_page, next_data_page, sber_payload
):
    url_a = "https://prodoctorov.ru/a/"
    url_b = "https://docdoc.ru/doctor/b"
    fetcher = FakeFetcher(
        {
            url_a: prodoctorov_page(*[prodoctorov_card(f"a{i}", "A", "d", "t") for i in range(20)]),
            url_b: next_data_page(sber_payload(
                [{"id": 1000 + i, "name": "B", "date": "d", "text": "t"} for i in range(15)]
            )),
        },
        delay=0.01,
    )

    results = await asyncio.gather(
        *[run_extraction("prodoctorov", url_a, fetcher) for _ in range(5)],
        *[run_extraction("sberzdorovie", url_b, fetcher) for _ in range(5)],
    )

    for reviews in results[:5]:
        assert [r.id for r in reviews] == [f"a{i}" for i in range(20)]
        assert {r.source for r in reviews} == {"prodoctorov"}
    for reviews in results[5:]:
        assert [r.id for r in reviews] == [str(1000 + i) for i in range(15)]
        assert {r.source for r in reviews} == {"sberzdorovie"}
    assert len({id(reviews) for reviews in results}) == len(results)


@pytest.mark.asyncio
async def test_dump_failure_does_not_fail_extraction(tmp_path, prodoctorov_card, prodoctorov_page):
    url = "https://prodoctorov.ru/x/"
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file")

    reviews = await run_extraction(
        "prodoctorov",
        url,
        FakeFetcher({url: prodoctorov_page(prodoctorov_card("1", "Анна", "вчера", "Хорошо"))}),
        dump_path=blocker / "page.html",
    )

    assert [r.id for r in reviews] == ["1"]


@pytest.mark.asyncio
async def test_parsing_does_not_block_the_event_loop(monkeypatch):
    monkeypatch.setattr(dispatcher, "ADAPTERS", dict(dispatcher.ADAPTERS))

    class SlowAdapter(SiteAdapter):
        name = "slow"

        def extract(self, content):
            time.sleep(0.3)
            return []

    register_adapter(SlowAdapter())

    ticks = []
    done = asyncio.Event()

    async def heartbeat():
        loop = asyncio.get_running_loop()
        while not done.is_set():
            ticks.append(loop.time())
            await asyncio.sleep(0.005)

    beat = asyncio.create_task(heartbeat())
    try:
        await run_extraction("slow", "https://x", FakeFetcher({"https://x": "<html></html>"}))
    finally:
        done.set()
        await beat

    gaps = [b - a for a, b in zip(ticks, ticks[1:])]
    assert len(ticks) > 10
    assert max(gaps) < 0.1
