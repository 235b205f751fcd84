"""
Queue transport between pipeline stages.

Message bodies are base64-encoded JSON records. On Redis each queue is a
list holding an envelope ``{"id", "dequeueCount", "body"}``: LPUSH sends,
RPOPLPUSH receives into ``<queue>-processing``. The envelope leaves Redis
only when it is acknowledged; a failed one goes back to the queue (or onto
``<queue>-poison``), so delivery is at-least-once.
"""
import base64
import binascii
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Union

import redis

logger = logging.getLogger(__name__)

POISON_SUFFIX = "-poison"
PROCESSING_SUFFIX = "-processing"


class MessageParseError(ValueError):
    """Queue item could not be decoded into a JSON object"""


@dataclass
class QueueMessage:
    """One delivered message"""

    id: str
    body: str
    dequeue_count: int = 1
    # Envelope as stored in the processing list, set on receive
    receipt: Optional[str] = field(default=None, compare=False, repr=False)

    def to_envelope(self) -> str:
        return json.dumps(
            {"id": self.id, "dequeueCount": self.dequeue_count, "body": self.body}
        )

    @classmethod
    def from_envelope(cls, raw: Union[str, bytes]) -> "QueueMessage":
        data = json.loads(raw)
        return cls(id=data["id"], body=data["body"], dequeue_count=data.get("dequeueCount", 1))


def encode_message(payload: dict) -> str:
    """Encode a record as base64 JSON text"""
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def decode_message(item) -> dict:
    """
    Decode a queue item into a dict.

    Accepts an already-decoded dict, raw JSON text, or base64 JSON
    text/bytes.

    Raises:
        MessageParseError: item is not a JSON object in any accepted form
    """
    if isinstance(item, dict):
        return item

    if isinstance(item, (bytes, bytearray)):
        try:
            item = bytes(item).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageParseError(f"Queue item is not UTF-8: {e}") from e

    if not isinstance(item, str):
        raise MessageParseError(f"Unsupported queue item type: {type(item).__name__}")

    text = item.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = json.loads(base64.b64decode(text, validate=True).decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MessageParseError(f"Queue item is neither JSON nor base64 JSON: {e}") from e

    if not isinstance(data, dict):
        raise MessageParseError(f"Queue item decoded to {type(data).__name__}, expected object")
    return data


class RedisQueueClient:
    """
    Queue client backed by Redis lists.

    A received message is moved atomically to ``<queue>-processing`` and
    stays there until it is acknowledged, requeued or dead-lettered, so a
    consumer that dies mid-invocation leaves it in Redis for ``recover``.
    """

    enabled = True

    def __init__(self, client: redis.Redis):
        self.redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisQueueClient":
        return cls(redis.Redis.from_url(url))

    def send_message(self, queue_name: str, payload: dict) -> str:
        """
        Send a record to a queue.

        Args:
            queue_name: Target queue
            payload: JSON-ready record

        Returns:
            Message ID
        """
        message = QueueMessage(id=str(uuid.uuid4()), body=encode_message(payload), dequeue_count=0)
        self.redis.lpush(queue_name, message.to_envelope())
        logger.debug(f"Message {message.id} sent to {queue_name}")
        return message.id

    def receive_message(self, queue_name: str) -> Optional[QueueMessage]:
        """
        Take the oldest message into the processing list.

        The attempt is counted in Redis before the message is returned.
        Envelopes that cannot be read go straight to the poison queue.

        Returns:
            QueueMessage, or None when the queue is empty
        """
        processing = queue_name + PROCESSING_SUFFIX
        while True:
            raw = self.redis.rpoplpush(queue_name, processing)
            if raw is None:
                return None
            try:
                message = QueueMessage.from_envelope(raw)
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Unreadable envelope on {queue_name} moved to poison queue: {e}")
                self._move(processing, raw, queue_name + POISON_SUFFIX)
                continue

            message.dequeue_count += 1
            message.receipt = message.to_envelope()
            pipe = self.redis.pipeline()
            pipe.lrem(processing, 1, raw)
            pipe.lpush(processing, message.receipt)
            pipe.execute()
            return message

    def ack(self, queue_name: str, message: QueueMessage):
        """Drop a successfully processed message"""
        self.redis.lrem(queue_name + PROCESSING_SUFFIX, 1, message.receipt)

    def requeue(self, queue_name: str, message: QueueMessage):
        """Make a failed message visible again"""
        self._move(queue_name + PROCESSING_SUFFIX, message.receipt, queue_name)

    def dead_letter(self, queue_name: str, message: QueueMessage):
        """Move a message that keeps failing to the poison queue"""
        self._move(queue_name + PROCESSING_SUFFIX, message.receipt, queue_name + POISON_SUFFIX)

    def recover(self, queue_name: str) -> int:
        """
        Put messages left in the processing list by a dead consumer back
        on the queue. Only safe when no other consumer of the queue is running.

        Returns:
            Number of messages recovered
        """
        processing = queue_name + PROCESSING_SUFFIX
        recovered = 0
        while self.redis.rpoplpush(processing, queue_name) is not None:
            recovered += 1
        if recovered:
            logger.warning(f"Recovered {recovered} in-flight message(s) on {queue_name}")
        return recovered

    def _move(self, source: str, raw, destination: str):
        pipe = self.redis.pipeline()
        pipe.lrem(source, 1, raw)
        pipe.lpush(destination, raw)
        pipe.execute()

    def length(self, queue_name: str) -> int:
        return self.redis.llen(queue_name)


class DisabledQueueClient:
    """Used when no transport is configured: sends are logged, nothing is received"""

    enabled = False

    def send_message(self, queue_name: str, payload: dict) -> None:
        logger.info(f"Local mode: Simulating {queue_name} delivery: {json.dumps(payload)}")
        return None

    def receive_message(self, queue_name: str) -> Optional[QueueMessage]:
        return None

    def ack(self, queue_name: str, message: QueueMessage):
        pass

    def recover(self, queue_name: str) -> int:
        return 0

    def requeue(self, queue_name: str, message: QueueMessage):
        logger.info(f"Local mode: dropping redelivery of {message.id} on {queue_name}")

    def dead_letter(self, queue_name: str, message: QueueMessage):
        logger.info(f"Local mode: dropping poison message {message.id} from {queue_name}")

    def length(self, queue_name: str) -> int:
        return 0
