"""
Hate speech and image safety screening with mocked classifiers
"""

import random
import unittest
from unittest.mock import AsyncMock, MagicMock

import requests

from auditor.core import AuditConfig
from auditor.errors import CheckError
from auditor.fetcher import FetchedPage
from auditor.models import CheckStatus
from screening.classifiers import GoogleNaturalLanguage, GoogleVision
from screening.hate_speech import HateSpeechScreener, quick_scan, split_into_chunks
from screening.image_safety import ImageSafetyChecker
from screening.models import EntitySentiment, Likelihood, SafeSearchAnnotation, TextAnalysis

CALM = "This is a calm sentence about community gardening. " * 60
SAFE = SafeSearchAnnotation(adult=Likelihood.VERY_UNLIKELY, violence=Likelihood.UNLIKELY)
UNSAFE = SafeSearchAnnotation(adult=Likelihood.LIKELY, violence=Likelihood.UNLIKELY)


def text_fetcher(content):
    fetcher = MagicMock()
    fetcher.fetch_text = AsyncMock(return_value=content)
    return fetcher


def page_fetcher(html, url="https://example.com/"):
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=FetchedPage(url, url, 200, "text/html", html))
    return fetcher


class TestHateSpeechHelpers(unittest.TestCase):

    def test_quick_scan_reports_context(self):
        hits = quick_scan("Some crowd chanted death to the visitors last night.")
        self.assertEqual([h["phrase"] for h in hits], ["death to"])
        self.assertIn("death to the visitors", hits[0]["context"])

    def test_quick_scan_is_case_insensitive(self):
        self.assertEqual(len(quick_scan("KILL ALL the weeds in spring")), 1)

    def test_chunks_respect_size_limit(self):
        chunks = split_into_chunks(CALM.strip(), 1000)
        self.assertGreater(len(chunks), 1)
        self.assertTrue(all(len(c) <= 1000 for c in chunks))
        self.assertEqual(" ".join(chunks), CALM.strip())


class TestHateSpeechScreener(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = AuditConfig(max_hate_speech_api_calls=2)
        self.classifier = MagicMock()

    async def test_quick_scan_fails_without_remote_calls(self):
        self.classifier.analyze = AsyncMock()
        screener = HateSpeechScreener(text_fetcher("They shouted that all of them should die."), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.FAIL)
        self.assertEqual(result.reason, "Problematic content detected")
        self.classifier.analyze.assert_not_awaited()

    async def test_calls_capped(self):
        self.classifier.analyze = AsyncMock(return_value=TextAnalysis(document_score=0.3))
        screener = HateSpeechScreener(text_fetcher(CALM), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.reason, "No hate speech detected")
        self.assertEqual(self.classifier.analyze.await_count, 2)

    async def test_negative_entity_fails(self):
        self.classifier.analyze = AsyncMock(return_value=TextAnalysis(
            document_score=-0.2,
            entities=(EntitySentiment("Neighbours", "PERSON", -0.9),),
        ))
        screener = HateSpeechScreener(text_fetcher(CALM), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.FAIL)
        self.assertEqual(result.reason, "Hate speech detected")
        self.assertEqual(len(result.details["flagged_chunks"]), 2)

    async def test_sensitive_category_fails(self):
        self.classifier.analyze = AsyncMock(return_value=TextAnalysis(categories=("/Sensitive Subjects",)))
        screener = HateSpeechScreener(text_fetcher(CALM), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.FAIL)

    async def test_partial_failure_still_passes(self):
        self.classifier.analyze = AsyncMock(side_effect=[
            requests.ConnectionError("reset"),
            TextAnalysis(document_score=0.1),
        ])
        screener = HateSpeechScreener(text_fetcher(CALM), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.details["chunks_analyzed"], 1)

    async def test_malformed_chunk_is_skipped(self):
        """
        Scenario: one chunk comes back with an unreadable sentiment payload.
        Expected: the chunk is dropped and the remaining chunk decides the verdict.
        """
        self.classifier.analyze = AsyncMock(side_effect=[
            CheckError("Malformed Natural Language response: float() argument must be a string or a real number"),
            TextAnalysis(document_score=0.1),
        ])
        screener = HateSpeechScreener(text_fetcher(CALM), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.details["chunks_analyzed"], 1)

    async def test_all_chunks_failing_is_error(self):
        self.classifier.analyze = AsyncMock(side_effect=CheckError("Natural Language API key is not configured"))
        screener = HateSpeechScreener(text_fetcher(CALM), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.ERROR)
        self.assertEqual(result.reason, "Analysis failed")

    async def test_empty_page_is_error(self):
        self.classifier.analyze = AsyncMock()
        screener = HateSpeechScreener(text_fetcher("  "), self.classifier, self.config)

        result = await screener.check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.ERROR)
        self.assertEqual(result.reason, "No content extracted")


class TestImageSafetyChecker(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = AuditConfig(max_image_api_calls=4)
        self.classifier = MagicMock()

    def make(self, html):
        return ImageSafetyChecker(page_fetcher(html), self.classifier, self.config, rng=random.Random(7))

    async def test_samples_up_to_cap(self):
        html = "".join(f'<img src="/img/{i}.jpg">' for i in range(6))
        self.classifier.safe_search = AsyncMock(return_value=SAFE)

        result = await self.make(html).check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.details["total_images"], 6)
        self.assertEqual(result.details["images_analyzed"], 4)
        self.assertEqual(self.classifier.safe_search.await_count, 4)

    async def test_flagged_image_fails(self):
        self.classifier.safe_search = AsyncMock(side_effect=[SAFE, UNSAFE])

        result = await self.make('<img src="/a.jpg"><img src="/b.jpg">').check("https://example.com/")

        self.assertEqual(result.status, CheckStatus.FAIL)
        self.assertEqual(result.reason, "Inappropriate image content detected")
        self.assertEqual(result.details["flagged_images"], ["https://example.com/b.jpg"])

    async def test_no_images(self):
        self.classifier.safe_search = AsyncMock()
        result = await self.make("<p>Text only</p>").check("https://example.com/")
        self.assertEqual(result.status, CheckStatus.PASS)
        self.assertEqual(result.reason, "No images found to analyze")

    async def test_every_call_failing_is_error(self):
        self.classifier.safe_search = AsyncMock(side_effect=requests.Timeout("read timed out"))
        result = await self.make('<img src="/a.jpg">').check("https://example.com/")
        self.assertEqual(result.status, CheckStatus.ERROR)
        self.assertEqual(result.reason, "Image analysis failed")


def language_session(sentiment, entities, categories=None):
    session = MagicMock()
    responses = [MagicMock(), MagicMock(), MagicMock()]
    for response, payload in zip(responses, (sentiment, entities, categories or {})):
        response.json.return_value = payload
    session.post.side_effect = responses
    return session


class TestGoogleNaturalLanguage(unittest.IsolatedAsyncioTestCase):

    async def test_parses_analysis(self):
        session = language_session(
            {"documentSentiment": {"score": -0.4}},
            {"entities": [{"name": "Neighbours", "type": "PERSON", "sentiment": {"score": -0.8}}]},
            {"categories": [{"name": "/People & Society"}]},
        )

        analysis = await GoogleNaturalLanguage(api_key="key", session=session).analyze("Some text")

        self.assertEqual(analysis.document_score, -0.4)
        self.assertEqual(analysis.entities, (EntitySentiment("Neighbours", "PERSON", -0.8),))
        self.assertEqual(analysis.categories, ("/People & Society",))

    async def test_null_score_raises_check_error(self):
        session = language_session({"documentSentiment": {"score": None}}, {"entities": []})
        with self.assertRaises(CheckError):
            await GoogleNaturalLanguage(api_key="key", session=session).analyze("Some text")

    async def test_null_entity_list_is_empty(self):
        session = language_session({"documentSentiment": {"score": 0.2}}, {"entities": None}, {"categories": None})

        analysis = await GoogleNaturalLanguage(api_key="key", session=session).analyze("Some text")

        self.assertEqual(analysis.entities, ())
        self.assertEqual(analysis.categories, ())


class TestGoogleVision(unittest.IsolatedAsyncioTestCase):

    async def test_parses_annotation(self):
        session = MagicMock()
        session.post.return_value.json.return_value = {
            "responses": [{"safeSearchAnnotation": {"adult": "VERY_LIKELY", "violence": "UNLIKELY", "racy": "POSSIBLE"}}],
        }
        annotation = await GoogleVision(api_key="key", session=session).safe_search("https://example.com/a.jpg")

        self.assertTrue(annotation.inappropriate)
        self.assertIs(annotation.racy, Likelihood.POSSIBLE)
        self.assertIs(annotation.spoof, Likelihood.UNKNOWN)

    async def test_api_error_raises(self):
        session = MagicMock()
        session.post.return_value.json.return_value = {"responses": [{"error": {"message": "image unreachable"}}]}
        with self.assertRaises(CheckError):
            await GoogleVision(api_key="key", session=session).safe_search("https://example.com/a.jpg")


if __name__ == "__main__":
    unittest.main()
