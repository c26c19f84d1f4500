import logging
from typing import List

from review_scraper.adapters.base import Content, Review, SiteAdapter, parse_document
from review_scraper.utils.text import normalize_whitespace

logger = logging.getLogger(__name__)


class ProdoctorovAdapter(SiteAdapter):
    name = "prodoctorov"

    CARD    = ".b-review-card"                       # One review card on the doctor page
    REVIEW  = "div[itemprop='reviewBody']"           # Carries the review id in its `data` attribute
    AUTHOR  = ".b-review-card__author-link"
    DATE    = "div[itemprop='datePublished']"
    COMMENT = ".b-review-card__comment"

    def _text(self, card, selector: str) -> str:
        # All matching nodes contribute, in document order; none → ""
        return "".join(node.get_text() for node in card.select(selector))

    def _build_review(self, card) -> Review:
        review_node = card.select_one(self.REVIEW)
        rid = review_node.get("data", "") if review_node is not None else ""

        author = self._text(card, self.AUTHOR)
        if not author:
            logger.debug("Review card %r has no author element", rid)

        return Review(
            id=rid,
            author=normalize_whitespace(author),
            date=normalize_whitespace(self._text(card, self.DATE)),
            body=normalize_whitespace(self._text(card, self.COMMENT)),
            source=self.name,
        )

    def extract(self, content: Content) -> List[Review]:
        doc = parse_document(content)
        reviews = [self._build_review(card) for card in doc.select(self.CARD)]
        logger.info("Extracted %d %s reviews", len(reviews), self.name)
        return reviews
