from dataclasses import dataclass                 # dataclass creates lightweight, readable data objects
from typing import Dict, List, Union              # type hints for raw page content and result lists

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from review_scraper.errors import MalformedDocumentError

# Raw page body as returned by the fetcher (bytes) or already decoded text
Content = Union[bytes, str]


@dataclass(frozen=True)
class Review:                                      # One patient review (unified schema)
    id: str                                       # Platform-native review id ("" when the page hides it)
    author: str                                   # Reviewer display name
    date: str                                     # Published date, raw platform text
    body: str                                     # Review text
    source: str                                   # Platform key (e.g., "prodoctorov", "sberzdorovie")

    def to_dict(self) -> Dict[str, str]:
        """Wire form used by the HTTP API and the CLI output file."""
        return {
            "id": self.id,
            "name": self.author,
            "date": self.date,
            "message": self.body,
            "source": self.source,
        }


def parse_document(content: Content) -> BeautifulSoup:
    """
    Builds a navigable tree from the raw page body.
    Markup the parser refuses is reported as MalformedDocumentError,
    so one broken page fails only its own call.
    """
    try:
        return BeautifulSoup(content, "html.parser")
    except (ParserRejectedMarkup, TypeError) as e:
        raise MalformedDocumentError(f"Page is not parsable as HTML: {e}") from e


class SiteAdapter:                                 # Base class for all platform-specific adapters
    name: str = "base"                            # Platform key used by the registry (override per site)

    def extract(self, content: Content) -> List[Review]:
        """Implement in concrete adapters: parse + locate reviews + normalize."""
        raise NotImplementedError                 # Must be overridden in each adapter implementation
