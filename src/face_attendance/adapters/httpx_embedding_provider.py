"""Remote face embedding model client."""

import base64
from dataclasses import dataclass

import httpx

from face_attendance.domain.errors import (
    ModelUnavailableError,
    MultipleFacesFoundError,
    NoFaceFoundError,
)
from face_attendance.services.embeddings import EmbeddingProvider


@dataclass
class HttpxEmbeddingProvider(EmbeddingProvider):
    """Embedding provider calling a model service over HTTP.

    The service answers ``POST {base_url}/embed`` with
    ``{"faces": [{"descriptor": [...]}, ...]}``.
    """

    base_url: str
    timeout_seconds: float = 15.0
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 15.0
    ) -> "HttpxEmbeddingProvider":
        """Create an unopened provider for the model service."""
        return cls(base_url=base_url.rstrip("/"), timeout_seconds=timeout_seconds)

    async def open(self) -> None:
        """Open the HTTP session and check the model is ready."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient()
        try:
            response = await self.http_client.get(
                f"{self.base_url}/health", timeout=self.timeout_seconds
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ModelUnavailableError("Embedding model is not ready") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None

    async def embed(self, image_bytes: bytes) -> list[float]:
        """Return the descriptor of the only face in the image."""
        if self.http_client is None:
            raise ModelUnavailableError("Embedding provider is not open")
        try:
            response = await self.http_client.post(
                f"{self.base_url}/embed",
                json={"image": base64.b64encode(image_bytes).decode("utf-8")},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ModelUnavailableError("Embedding request failed") from exc
        try:
            faces = response.json().get("faces") or []
        except (ValueError, AttributeError) as exc:
            raise ModelUnavailableError("Model returned a malformed response") from exc
        if not isinstance(faces, list):
            raise ModelUnavailableError("Model returned a malformed response")
        if not faces:
            raise NoFaceFoundError("No face found in the image")
        if len(faces) > 1:
            raise MultipleFacesFoundError(
                f"Expected one face in the image, found {len(faces)}"
            )
        try:
            return [float(value) for value in faces[0]["descriptor"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise ModelUnavailableError("Model returned a malformed response") from exc
