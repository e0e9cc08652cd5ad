"""Redis pub/sub publishing.

Publishing is best effort: failures and timeouts are reported as a
failed ``PublishResult`` instead of being raised, so a broken message bus
can never turn into a failed Slack delivery.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from slack_relay.config import DEFAULT_PUBLISH_TIMEOUT, Settings
from slack_relay.relay.errors import PublishError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of one publish attempt.

    Attributes:
        topic: Channel the payload was sent to.
        ok: Whether the bus accepted the message.
        receivers: Number of subscribers that received it, if known.
        error: Failure description when ``ok`` is False.
    """

    topic: str
    ok: bool
    receivers: int | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, topic: str, receivers: int | None = None) -> "PublishResult":
        return cls(topic=topic, ok=True, receivers=receivers)

    @classmethod
    def failed(cls, error: PublishError) -> "PublishResult":
        return cls(topic=error.topic, ok=False, error=error.message)


class Publisher(Protocol):
    """Topic-addressed, byte-payload publish channel.

    Implementations must be safe for concurrent use by simultaneous
    requests and must not raise from ``publish``.
    """

    async def publish(self, topic: str, payload: bytes) -> PublishResult: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisPublisher:
    """Publisher backed by Redis PUBLISH.

    Example:
        redis = Redis(host="localhost", port=6379)
        publisher = RedisPublisher(redis, timeout=5.0)
        result = await publisher.publish("slack-messages", b'{"type": "event_callback"}')
    """

    def __init__(
        self,
        redis: Any,  # redis.asyncio.Redis
        *,
        timeout: float = DEFAULT_PUBLISH_TIMEOUT,
    ) -> None:
        """Initialize the publisher.

        Args:
            redis: Redis client instance.
            timeout: Seconds before a publish attempt is abandoned.
        """
        self.redis = redis
        self.timeout = timeout

    async def publish(self, topic: str, payload: bytes) -> PublishResult:
        """Publish a payload to a channel.

        Args:
            topic: Redis channel name.
            payload: Message body.

        Returns:
            PublishResult describing the attempt.
        """
        try:
            receivers = await asyncio.wait_for(
                self.redis.publish(topic, payload),
                timeout=self.timeout,
            )
        except TimeoutError:
            return PublishResult.failed(
                PublishError(f"Timeout after {self.timeout}s", topic=topic)
            )
        except (RedisError, OSError) as e:
            return PublishResult.failed(PublishError(str(e) or type(e).__name__, topic=topic))

        return PublishResult.succeeded(topic, receivers=int(receivers))

    async def ping(self) -> bool:
        """Check that the server answers.

        Returns:
            True if Redis replied to PING.
        """
        try:
            return bool(await asyncio.wait_for(self.redis.ping(), timeout=self.timeout))
        except (TimeoutError, RedisError, OSError):
            return False

    async def close(self) -> None:
        """Release the connection pool."""
        await self.redis.aclose()


async def connect_publisher(settings: Settings) -> RedisPublisher | None:
    """Connect to Redis for publishing.

    An unreachable server is not fatal: the relay keeps serving without
    publishing.

    Args:
        settings: Process settings.

    Returns:
        A connected publisher, or None when Redis is disabled or unreachable.
    """
    if not settings.REDIS_ENABLED:
        logger.info("redis_disabled")
        return None

    redis = Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD,
        socket_connect_timeout=settings.PUBLISH_TIMEOUT,
        socket_timeout=settings.PUBLISH_TIMEOUT,
    )
    publisher = RedisPublisher(redis, timeout=settings.PUBLISH_TIMEOUT)

    if not await publisher.ping():
        logger.warning(
            "redis_unavailable",
            address=settings.redis_address,
            message="Redis publishing will be disabled. Service will continue to work without Redis.",
        )
        await publisher.close()
        return None

    logger.info("redis_connected", address=settings.redis_address)
    return publisher
