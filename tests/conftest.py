import json

import pytest


def _card(rid="", author=None, date=None, comment=None):
    parts = ['<div class="b-review-card">']
    if author is not None:
        parts.append(f'<a class="b-review-card__author-link" href="#">{author}</a>')
    if date is not None:
        parts.append(f'<div itemprop="datePublished">{date}</div>')
    parts.append(f'<div itemprop="reviewBody" data="{rid}">')
    if comment is not None:
        parts.append(f'<div class="b-review-card__comment">{comment}</div>')
    parts.append("</div></div>")
    return "".join(parts)


@pytest.fixture
def prodoctorov_card():
    return _card


@pytest.fixture
def prodoctorov_page():
    def build(*cards):
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title>Врач</title></head><body>"
            f'<section class="reviews">{"".join(cards)}</section>'
            "</body></html>"
        )
    return build


@pytest.fixture
def next_data_page():
    """Wraps a payload in a Next.js page; strings are inserted verbatim."""
    def build(payload):
        raw = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        return (
            "<html><head><meta charset=\"utf-8\"></head><body><div id=\"__next\"></div>"
            f'<script id="__NEXT_DATA__" type="application/json">{raw}</script>'
            "</body></html>"
        )
    return build


@pytest.fixture
def sber_payload():
    def build(reviews):
        return {
            "props": {
                "pageProps": {
                    "preloadedState": {
                        "doctorPage": {
                            "doctor": {
                                "id": 77,
                                "reviewsForSeo": reviews,
                            }
                        }
                    }
                }
            },
            "page": "/doctor/[slug]",
        }
    return build
