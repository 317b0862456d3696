"""Tests for the embedding service and descriptor helpers."""

import asyncio
import base64

import pytest

from face_attendance.domain.descriptors import descriptor_to_text, text_to_descriptor
from face_attendance.domain.errors import InvalidInputError, ModelUnavailableError
from face_attendance.services.embeddings import EmbeddingService, decode_image
from tests.conftest import FakeEmbeddingProvider


def test_embed_validates_dimension() -> None:
    service = EmbeddingService(FakeEmbeddingProvider(), expected_dimension=128)

    with pytest.raises(ModelUnavailableError):
        asyncio.run(service.embed(b"image"))


def test_embed_rejects_empty_image() -> None:
    service = EmbeddingService(FakeEmbeddingProvider())

    with pytest.raises(InvalidInputError):
        asyncio.run(service.embed(b""))


def test_embed_base64_accepts_data_url() -> None:
    provider = FakeEmbeddingProvider()
    service = EmbeddingService(provider, expected_dimension=3)
    encoded = base64.b64encode(b"\xff\xd8\xffimage").decode()

    descriptor = asyncio.run(service.embed_base64(f"data:image/jpeg;base64,{encoded}"))

    assert descriptor == (0.1, 0.2, 0.3)
    assert provider.images == [b"\xff\xd8\xffimage"]


@pytest.mark.parametrize(
    "payload", ["not base64!", "data:image/png;base64", "data:image/png;base64,%%%"]
)
def test_decode_image_rejects_garbage(payload: str) -> None:
    with pytest.raises(InvalidInputError):
        decode_image(payload)


def test_descriptor_text_preserves_order() -> None:
    text = descriptor_to_text((0.5, -0.25, 3))

    assert text == "[0.5, -0.25, 3.0]"
    assert text_to_descriptor(text) == (0.5, -0.25, 3.0)


@pytest.mark.parametrize("text", ["{", '{"a": 1}', "[]", '["x"]'])
def test_text_to_descriptor_rejects_malformed(text: str) -> None:
    with pytest.raises(InvalidInputError):
        text_to_descriptor(text)
