"""Tests for the image describer."""

import asyncio
import json

import pytest

from review_insights.analysis.images import PLACEHOLDER_DESCRIPTION, ImageDescriber
from review_insights.exceptions import CompletionError, ConfigurationError, ImageAnalysisError


def _images(make_message, n):
    return [
        make_message("walker-1", f"https://img/{i}.jpg", i, type="image") for i in range(n)
    ]


def test_describe_parses_reply(make_message, target, fake_client):
    describer = ImageDescriber(fake_client)
    analysis = asyncio.run(describer.describe(_images(make_message, 1)[0], target))
    assert analysis.description == "A golden retriever on a leash in a park."
    assert analysis.tags == ("dog", "park", "leash")
    assert analysis.quality_score == 8.5
    assert analysis.relevance_score == 9.0
    assert analysis.degraded is False


def test_one_failure_does_not_block_batch(make_message, target, fake_client_cls):
    client = fake_client_cls(vision_errors={"https://img/1.jpg": CompletionError("HTTP 500")})
    describer = ImageDescriber(client)
    analyses = asyncio.run(describer.describe_all(_images(make_message, 3), target))

    assert len(analyses) == 3
    assert [a.image_url for a in analyses] == [
        "https://img/0.jpg", "https://img/1.jpg", "https://img/2.jpg",
    ]
    assert analyses[1].description == PLACEHOLDER_DESCRIPTION
    assert analyses[1].quality_score == 0.0
    assert analyses[1].relevance_score == 0.0
    assert analyses[1].degraded is True
    assert analyses[0].quality_score == 8.5
    assert analyses[2].relevance_score == 9.0


def test_parallel_batch_keeps_order_and_isolation(make_message, target, fake_client_cls):
    client = fake_client_cls(
        vision_errors={"https://img/0.jpg": RuntimeError("socket closed")},
        vision_delay=0.001,
    )
    describer = ImageDescriber(client, max_concurrency=3)
    analyses = asyncio.run(describer.describe_all(_images(make_message, 4), target))
    assert [a.degraded for a in analyses] == [True, False, False, False]
    assert [a.image_url for a in analyses] == [f"https://img/{i}.jpg" for i in range(4)]


def test_malformed_json_degrades(make_message, target, fake_client_cls):
    describer = ImageDescriber(fake_client_cls(vision_reply="A cute dog, no JSON here"))
    analysis = asyncio.run(describer.describe_safe(_images(make_message, 1)[0], target))
    assert analysis.description == PLACEHOLDER_DESCRIPTION
    assert analysis.quality_score == 0.0


def test_describe_raises_image_error(make_message, target, fake_client_cls):
    describer = ImageDescriber(fake_client_cls(vision_errors={"https://img/0.jpg": TimeoutError()}))
    with pytest.raises(ImageAnalysisError):
        asyncio.run(describer.describe(_images(make_message, 1)[0], target))


def test_configuration_error_propagates(make_message, target, fake_client_cls):
    describer = ImageDescriber(
        fake_client_cls(vision_errors={"https://img/0.jpg": ConfigurationError("no key")})
    )
    with pytest.raises(ConfigurationError):
        asyncio.run(describer.describe_all(_images(make_message, 1), target))


def test_scores_are_clamped_and_validated(make_message, target, fake_client_cls):
    reply = json.dumps({
        "description": "",
        "tags": "dog, park",
        "qualityScore": 14,
        "relevanceScore": "high",
    })
    describer = ImageDescriber(fake_client_cls(vision_reply=reply))
    analysis = asyncio.run(describer.describe(_images(make_message, 1)[0], target))
    assert analysis.description == "No description available"
    assert analysis.tags == ("dog", "park")
    assert analysis.quality_score == 10.0
    assert analysis.relevance_score == 0.0


def test_sample_capped_to_most_recent(make_message, target, fake_client):
    describer = ImageDescriber(fake_client, max_images=10)
    messages = _images(make_message, 12) + [make_message("owner-1", "nice", 20)]
    analyses = asyncio.run(describer.describe_all(messages, target))
    assert len(analyses) == 10
    assert analyses[0].image_url == "https://img/2.jpg"
    assert analyses[-1].image_url == "https://img/11.jpg"
    assert len(fake_client.vision_calls) == 10


def test_no_images(make_message, target, fake_client):
    describer = ImageDescriber(fake_client)
    assert asyncio.run(describer.describe_all([make_message("owner-1", "hi", 0)], target)) == []
    assert fake_client.vision_calls == []


def test_configuration_error_cancels_rest_of_batch(make_message, target, fake_client_cls):
    class SlowClient(fake_client_cls):
        def __init__(self):
            super().__init__()
            self.finished = []

        async def complete_vision(self, instruction, image_url, **kwargs):
            if image_url == "https://img/0.jpg":
                raise ConfigurationError("no key")
            await asyncio.sleep(0.01)
            self.finished.append(image_url)
            return await super().complete_vision(instruction, image_url, **kwargs)

    client = SlowClient()
    describer = ImageDescriber(client, max_concurrency=3)

    async def run():
        with pytest.raises(ConfigurationError):
            await describer.describe_all(_images(make_message, 3), target)
        await asyncio.sleep(0.05)
        return client.finished

    assert asyncio.run(run()) == []
