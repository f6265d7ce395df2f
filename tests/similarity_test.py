"""
Plagiarism detection: scoring helpers and excerpt roll-up
"""

import unittest
from unittest.mock import AsyncMock, MagicMock

import requests

from auditor.core import AuditConfig
from auditor.errors import CheckError
from auditor.models import CheckStatus
from similarity.engine import (
    SimilarityChecker, jaccard_similarity, longest_common_run, representative_paragraphs,
)
from similarity.search import GoogleCustomSearch

FIRST = (
    "Coastal towns across the northern region reported record visitor numbers this summer, "
    "with hotels and campsites fully booked through August."
)
SECOND = (
    "Local councils are now debating whether tourist taxes should fund harbour repairs, "
    "new footpaths, cycle lanes and additional public transport connections."
)
ARTICLE = f"{FIRST}\n\n{SECOND}\n\nShort caption."


def fetcher_serving(pages):
    fetcher = MagicMock()

    async def fetch_text(url):
        if url not in pages:
            raise requests.HTTPError(f"404 Client Error: {url}")
        return pages[url]

    fetcher.fetch_text = AsyncMock(side_effect=fetch_text)
    return fetcher


class TestScoring(unittest.TestCase):

    def test_identical_texts(self):
        self.assertEqual(jaccard_similarity(FIRST, FIRST), 1.0)

    def test_disjoint_texts(self):
        self.assertEqual(jaccard_similarity("alpha bravo charlie", "delta foxtrot hotel"), 0.0)

    def test_short_words_only(self):
        self.assertEqual(jaccard_similarity("a an the", "is it of"), 0.0)

    def test_longest_common_run(self):
        run = longest_common_run(FIRST, "Intro text. " + FIRST + " Outro.")
        self.assertTrue(run.startswith("Coastal towns across"))
        self.assertEqual(longest_common_run("one two three", "one two three"), "")

    def test_representative_paragraphs(self):
        self.assertEqual(representative_paragraphs(ARTICLE, 5), [SECOND, FIRST])
        self.assertEqual(representative_paragraphs(ARTICLE, 1), [SECOND])
        self.assertEqual(representative_paragraphs("tiny\n\n12345", 2), [])


class TestSimilarityChecker(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = AuditConfig(
            max_plagiarism_api_calls=2,
            plagiarism_fail_threshold=0.85,
            plagiarism_review_threshold=0.5,
        )
        self.search = MagicMock()

    def make(self, pages):
        return SimilarityChecker(fetcher_serving(pages), self.search, self.config)

    async def test_copied_content_fails(self):
        self.search.search = AsyncMock(return_value=["https://copycat.net/story"])
        checker = self.make({
            "https://example.com/story": ARTICLE,
            "https://copycat.net/story": f"{FIRST}\n\n{SECOND}",
        })

        result = await checker.check("https://example.com/story")

        self.assertEqual(result.status, CheckStatus.FAIL)
        self.assertEqual(result.reason, "Content similarity above 85% threshold (2 of 2 excerpts)")
        self.assertEqual(result.details["paragraphs_checked"], 2)
        self.assertEqual(result.details["results"][0]["matched_url"], "https://copycat.net/story")

    async def test_own_domain_hits_ignored(self):
        self.search.search = AsyncMock(return_value=["https://www.example.com/mirror"])
        checker = self.make({"https://example.com/story": ARTICLE})

        result = await checker.check("https://example.com/story")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.reason, "No plagiarism detected")
        checker._fetcher.fetch_text.assert_awaited_once_with("https://example.com/story")

    async def test_unrelated_hits_pass(self):
        self.search.search = AsyncMock(return_value=["https://other.org/recipes"])
        checker = self.make({
            "https://example.com/story": ARTICLE,
            "https://other.org/recipes": "Whisk eggs and sugar until pale, fold in sifted flour.",
        })

        result = await checker.check("https://example.com/story")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.details["average_similarity_score"], 0.0)

    async def test_search_failure_is_error(self):
        self.search.search = AsyncMock(side_effect=CheckError("Search API is not configured"))
        checker = self.make({"https://example.com/story": ARTICLE})

        result = await checker.check("https://example.com/story")

        self.assertEqual(result.status, CheckStatus.ERROR)
        self.assertEqual(result.reason, "Unable to verify content originality (2 of 2 excerpts)")

    async def test_no_substantial_paragraphs(self):
        self.search.search = AsyncMock()
        checker = self.make({"https://example.com/": "Welcome!\n\nShop now."})

        result = await checker.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.reason, "No substantial paragraphs to compare")
        self.search.search.assert_not_awaited()

    async def test_unreachable_page(self):
        checker = self.make({})
        result = await checker.check("https://example.com/missing")
        self.assertEqual(result.status, CheckStatus.ERROR)
        self.assertEqual(result.reason, "No content extracted")


class TestGoogleCustomSearch(unittest.IsolatedAsyncioTestCase):

    async def test_unconfigured(self):
        with self.assertRaises(CheckError):
            await GoogleCustomSearch(api_key="", engine_id="", session=MagicMock()).search("query")

    async def test_returns_links_in_rank_order(self):
        session = MagicMock()
        session.get.return_value.json.return_value = {
            "items": [{"link": "https://a.com/1"}, {"title": "no link"}, {"link": "https://b.com/2"}],
        }
        search = GoogleCustomSearch(api_key="key", engine_id="cx", session=session)

        self.assertEqual(await search.search("query"), ["https://a.com/1", "https://b.com/2"])
        _, kwargs = session.get.call_args
        self.assertEqual(kwargs["params"], {"key": "key", "cx": "cx", "q": "query"})

    async def test_null_items_means_no_results(self):
        session = MagicMock()
        session.get.return_value.json.return_value = {"items": None}
        search = GoogleCustomSearch(api_key="key", engine_id="cx", session=session)

        self.assertEqual(await search.search("query"), [])

    async def test_unexpected_payload_raises_check_error(self):
        session = MagicMock()
        session.get.return_value.json.return_value = ["not", "an", "object"]
        search = GoogleCustomSearch(api_key="key", engine_id="cx", session=session)

        with self.assertRaises(CheckError):
            await search.search("query")


if __name__ == "__main__":
    unittest.main()
