"""Queue-first publishing with optional auto-publish."""

import logging
import threading
import time
import uuid
from typing import Optional

from signal_publisher.core.entities import (
    HealthReport,
    HealthStatus,
    PostContent,
    Provider,
    PublishResult,
    PublishStatus,
    QueueItem,
    QueueStatus,
    utc_now_iso,
)
from signal_publisher.core.errors import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    PipelineError,
    QueueStateError,
    ValidationError,
)
from signal_publisher.core.interfaces import PublishTarget
from signal_publisher.core.ledger import IdempotencyLedger
from signal_publisher.core.policy import MAX_POST_LENGTH

logger = logging.getLogger(__name__)

QUEUE_KEY = "publish_queue"


class Publisher:
    """Publish content or hold it in a manual-review queue.

    Content is never dropped: anything that cannot be published right now
    ends up as a ``pending`` queue item. When a ledger is given the queue is
    persisted in its metadata so separate processes can approve items.
    """

    def __init__(
        self,
        target: Optional[PublishTarget] = None,
        auto_publish: bool = False,
        ledger: Optional[IdempotencyLedger] = None,
        max_length: int = MAX_POST_LENGTH,
    ) -> None:
        self.target = target
        self.auto_publish = auto_publish
        self.ledger = ledger
        self.max_length = max_length
        self._lock = threading.RLock()
        self._in_flight: set[str] = set()
        self.queue: list[QueueItem] = self._load_queue()

    @property
    def can_publish(self) -> bool:
        return self.target is not None and self.target.has_credentials

    async def publish(self, content: PostContent) -> PublishResult:
        """Publish content, or queue it when auto-publish is off or fails."""
        logger.info(
            "Processing publish request (auto_publish=%s, image=%s)",
            self.auto_publish, bool(content.image and content.image.url),
        )

        try:
            self.validate_content(content)
        except ValidationError as e:
            logger.warning("Content for %s is invalid, queueing for review: %s", content.signal_id, e)
            return self._error_result(content, e)

        if not self.auto_publish or not self.can_publish:
            return self._queue_post(content)

        if content.provider != Provider.PRIMARY.value:
            logger.warning("Holding %s content for %s in the review queue", content.provider, content.signal_id)
            return self._queue_post(content)

        try:
            return await self._attempt_auto_publish(content)
        except PipelineError as e:
            logger.error("Auto-publish failed (%s), queueing for review: %s", type(e).__name__, e)
            return self._error_result(content, e)

    def validate_content(self, content: PostContent) -> None:
        if not isinstance(content.text, str) or not content.text:
            raise ValidationError("Content is missing text")
        if len(content.text) > self.max_length:
            raise ValidationError(
                f"Content exceeds {self.max_length} character limit ({len(content.text)})"
            )

    def get_queue(self, status: str = "pending") -> list[QueueItem]:
        """Return queue items with the given status, or all of them for ``"all"``."""
        with self._lock:
            if status == "all":
                return list(self.queue)
            wanted = QueueStatus(status)
            return [item for item in self.queue if item.status is wanted]

    def get_item(self, queue_id: str) -> QueueItem:
        with self._lock:
            for item in self.queue:
                if item.id == queue_id:
                    return item
        raise NotFoundError(f"Queue item {queue_id} not found")

    async def publish_from_queue(self, queue_id: str) -> PublishResult:
        """Publish a pending queue item. The only way to reach ``published``."""
        with self._lock:
            item = self.get_item(queue_id)
            self._check_pending(item)
            self._in_flight.add(queue_id)

        try:
            logger.info("Publishing from queue: %s", queue_id)
            self.validate_content(item.content)
            result = await self._attempt_auto_publish(item.content)

            with self._lock:
                item.status = QueueStatus.PUBLISHED
                item.published_at = result.published_at
                item.post_id = result.post_id
                self._save_queue()
        finally:
            with self._lock:
                self._in_flight.discard(queue_id)
        return result

    def reject(self, queue_id: str) -> QueueItem:
        """Move a pending item to the terminal ``rejected`` state."""
        with self._lock:
            item = self.get_item(queue_id)
            self._check_pending(item)
            item.status = QueueStatus.REJECTED
            self._save_queue()
        logger.info("Queue item rejected: %s", queue_id)
        return item

    def _check_pending(self, item: QueueItem) -> None:
        if item.id in self._in_flight:
            raise QueueStateError(f"Queue item {item.id} is already being published")
        if item.status is not QueueStatus.PENDING:
            raise QueueStateError(f"Queue item {item.id} already {item.status.value}")

    def remove_from_queue(self, queue_id: str) -> bool:
        with self._lock:
            for index, item in enumerate(self.queue):
                if item.id == queue_id:
                    del self.queue[index]
                    self._save_queue()
                    logger.info("Removed from queue: %s", queue_id)
                    return True
        return False

    def _queue_post(self, content: PostContent) -> PublishResult:
        item = QueueItem(id=self._new_queue_id(), content=content)
        with self._lock:
            self.queue.append(item)
            self._save_queue()
            size = len(self.queue)
        logger.info("Content queued for review: %s (queue size %d)", item.id, size)
        return PublishResult(status=PublishStatus.QUEUED, queue_id=item.id)

    def _error_result(self, content: PostContent, error: Exception) -> PublishResult:
        queued = self._queue_post(content)
        return PublishResult(
            status=PublishStatus.ERROR,
            queue_id=queued.queue_id,
            error=str(error),
            error_kind=type(error).__name__,
        )

    async def _attempt_auto_publish(self, content: PostContent) -> PublishResult:
        if not self.can_publish:
            raise AuthError("Publishing credentials not configured")

        try:
            receipt = await self.target.post(content)
        except ForbiddenError:
            logger.error("Publish target rejected permissions")
            raise
        except AuthError:
            logger.error("Publish target credentials invalid or expired")
            raise

        logger.info("Published post %s", receipt.post_id)
        return PublishResult(
            status=PublishStatus.PUBLISHED,
            post_id=receipt.post_id,
            url=receipt.url,
            published_at=utc_now_iso(),
        )

    @staticmethod
    def _new_queue_id() -> str:
        return f"queue_{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}"

    def _load_queue(self) -> list[QueueItem]:
        if self.ledger is None:
            return []
        items = []
        for data in self.ledger.get(QUEUE_KEY, []):
            try:
                items.append(QueueItem.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed queue item: %s", e)
        return items

    def _save_queue(self) -> None:
        if self.ledger is not None:
            self.ledger.set(QUEUE_KEY, [item.to_dict() for item in self.queue])

    async def health_check(self) -> HealthReport:
        if not self.can_publish:
            return HealthReport(
                HealthStatus.DEGRADED,
                "No publishing credentials configured. Posts will be queued for manual publishing.",
                {"mode": "queue-only", "auto_publish": False},
            )
        report = await self.target.health_check()
        mode = "auto-publish" if self.auto_publish else "queue-first"
        report.details.update({"mode": mode, "auto_publish": self.auto_publish})
        return report
