import json
import logging
import math
from typing import Any, List, Sequence

from review_scraper.adapters.base import Content, Review, SiteAdapter, parse_document
from review_scraper.errors import MalformedDocumentError
from review_scraper.utils.text import normalize_whitespace

logger = logging.getLogger(__name__)


class SberzdorovieAdapter(SiteAdapter):
    """
    Sberzdorovie renders its doctor pages with Next.js, so the reviews are not
    in the markup. They live in the hydration payload of the
    `<script id="__NEXT_DATA__">` element:

        props.pageProps.preloadedState.doctorPage.doctor.reviewsForSeo = [
            {"id": 123, "name": "...", "date": "...", "text": "..."},
            ...
        ]

    Any drift of that shape fails the whole call with MalformedDocumentError,
    so "no reviews" stays distinguishable from "page layout changed".
    """

    name = "sberzdorovie"

    SCRIPT = "script#__NEXT_DATA__"
    REVIEWS_PATH = ("props", "pageProps", "preloadedState", "doctorPage", "doctor", "reviewsForSeo")

    def _load_payload(self, content: Content) -> Any:
        doc = parse_document(content)
        script = doc.select_one(self.SCRIPT)
        if script is None:
            raise MalformedDocumentError("__NEXT_DATA__ script not found")

        try:
            return json.loads(script.string or "")
        except json.JSONDecodeError as e:
            raise MalformedDocumentError(f"__NEXT_DATA__ is not valid JSON: {e}") from e

    def _walk(self, payload: Any, path: Sequence[str]) -> List[Any]:
        node = payload
        for depth, key in enumerate(path):
            if not isinstance(node, dict) or key not in node:
                reached = ".".join(path[:depth]) or "<root>"
                raise MalformedDocumentError(f"Missing key {key!r} under {reached}")
            node = node[key]

        if not isinstance(node, list):
            raise MalformedDocumentError(
                f"{'.'.join(path)} is {type(node).__name__}, expected list"
            )
        return node

    def _format_id(self, value: Any, index: int) -> str:
        # JSON numbers only; bool is an int subclass and is rejected explicitly
        if isinstance(value, bool) or not isinstance(value, (int, float)) or (
            isinstance(value, float) and not math.isfinite(value)
        ):
            raise MalformedDocumentError(f"Review #{index}: id is not a number ({value!r})")
        if isinstance(value, int):
            return str(value)
        return f"{value:.0f}"

    def _field(self, item: dict, key: str, index: int) -> str:
        value = item.get(key)
        if not isinstance(value, str):
            raise MalformedDocumentError(
                f"Review #{index}: {key!r} is {type(value).__name__}, expected str"
            )
        return normalize_whitespace(value)

    def _build_review(self, item: Any, index: int) -> Review:
        if not isinstance(item, dict):
            raise MalformedDocumentError(f"Review #{index} is {type(item).__name__}, expected object")

        return Review(
            id=self._format_id(item.get("id"), index),
            author=self._field(item, "name", index),
            date=self._field(item, "date", index),
            body=self._field(item, "text", index),
            source=self.name,
        )

    def extract(self, content: Content) -> List[Review]:
        items = self._walk(self._load_payload(content), self.REVIEWS_PATH)
        reviews = [self._build_review(item, i) for i, item in enumerate(items)]
        logger.info("Extracted %d %s reviews", len(reviews), self.name)
        return reviews
