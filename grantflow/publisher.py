"""Publication of application metadata to content-addressed storage."""

from __future__ import annotations

import logging
from typing import Optional

from .constants import (
    DEFAULT_GATEWAY_URL,
    EMBEDDED_IMAGE_MARKER,
    PUBLISH_STEP,
    REGISTER_STEP,
)
from .contracts import (
    ApplicationInput,
    ImageFailurePolicy,
    PublishedMetadata,
    PublishResult,
    StepStatus,
)
from .errors import PublishError
from .services.storage import StorageClient
from .tracker import StepTracker

logger = logging.getLogger(__name__)


def is_embedded_image(image: Optional[str]) -> bool:
    """Return ``True`` for inline (data URL) payloads not yet published."""
    return bool(image) and EMBEDDED_IMAGE_MARKER in image


class MetadataPublisher:
    """Pins the application record, publishing an inline image first."""

    def __init__(
        self,
        storage: StorageClient,
        tracker: StepTracker,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        image_failure_policy: ImageFailurePolicy = ImageFailurePolicy.CONTINUE,
    ) -> None:
        self._storage = storage
        self._tracker = tracker
        self.gateway_url = gateway_url
        self.image_failure_policy = ImageFailurePolicy(image_failure_policy)

    async def publish(self, application: ApplicationInput) -> PublishResult:
        """Publish ``application`` and advance the tracker.

        Raises:
            PublishError: If the metadata record (or, under the ``abort``
                policy, the image) could not be pinned. Step 0 is marked
                ``ERROR`` before raising.
        """
        self._tracker.set_status(PUBLISH_STEP, StepStatus.IN_PROGRESS)
        metadata = PublishedMetadata.from_application(application)

        image_published = False
        if is_embedded_image(metadata.image):
            try:
                image_pin = await self._storage.pin_json({"data": metadata.image})
            except Exception as e:
                if self.image_failure_policy == ImageFailurePolicy.ABORT:
                    logger.error(f"Image publish failed for '{application.name}': {e}")
                    self._tracker.set_status(PUBLISH_STEP, StepStatus.ERROR)
                    raise PublishError(f"Image publish failed: {e}") from e
                logger.warning(
                    f"Image publish failed for '{application.name}': {e}. "
                    "Continuing with the inline image payload."
                )
            else:
                metadata.image = image_pin.content_hash
                image_published = True

        try:
            pin = await self._storage.pin_json(metadata.to_record())
        except Exception as e:
            logger.error(f"Metadata publish failed for '{application.name}': {e}")
            self._tracker.set_status(PUBLISH_STEP, StepStatus.ERROR)
            raise PublishError(f"Metadata publish failed: {e}") from e

        logger.info(f"Published metadata for '{application.name}' at {pin.content_hash}")
        self._tracker.set_href(PUBLISH_STEP, self.gateway_url + pin.content_hash)
        self._tracker.set_status(PUBLISH_STEP, StepStatus.SUCCESS)
        self._tracker.set_status(REGISTER_STEP, StepStatus.IN_PROGRESS)
        return PublishResult(
            pointer=pin.content_hash, metadata=metadata, image_published=image_published
        )
