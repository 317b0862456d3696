"""Recognition service resolving descriptors against the gallery."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from face_attendance.domain.employees import GalleryEntry
from face_attendance.domain.recognition import Match, NoMatch
from face_attendance.services.embeddings import EmbeddingService
from face_attendance.services.resolver import DEFAULT_THRESHOLD, resolve

logger = logging.getLogger(__name__)


class GalleryRepository(Protocol):
    """Read access to enrolled face descriptors."""

    def list_enrolled(self) -> list[GalleryEntry]:
        """Return every enrolled descriptor ordered by employee id."""

    def get_descriptor(self, employee_id: int) -> tuple[float, ...] | None:
        """Return one employee's descriptor, if enrolled."""


@dataclass
class RecognitionService:
    """Identify employees from face descriptors or images."""

    gallery_repository: GalleryRepository
    embedding_service: EmbeddingService
    threshold: float = DEFAULT_THRESHOLD
    expected_dimension: int | None = None

    def identify(self, descriptor: Sequence[float]) -> Match | NoMatch:
        """Resolve a descriptor against a point-in-time gallery snapshot."""
        gallery = self.gallery_repository.list_enrolled()
        result = resolve(
            descriptor,
            gallery,
            threshold=self.threshold,
            expected_dimension=self.expected_dimension,
        )
        if isinstance(result, Match):
            logger.info(
                "Identified employee",
                extra={"employee_id": result.employee_id, "distance": result.distance},
            )
        else:
            logger.info(
                "No employee identified",
                extra={"reason": result.reason.value, "gallery_size": len(gallery)},
            )
        return result

    async def identify_image(self, image_bytes: bytes) -> Match | NoMatch:
        """Embed an image with the configured provider and resolve it."""
        descriptor = await self.embedding_service.embed(image_bytes)
        return self.identify(descriptor)
