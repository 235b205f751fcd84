"""
Pytest configuration and fixtures
"""
from collections import defaultdict, deque

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentacar.database import init_db
from rentacar.services.queue_service import QueueMessage, encode_message, POISON_SUFFIX
from rentacar.services.store import SqlRecordStore


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"


class FakeQueueClient:
    """In-memory queue client recording every send"""

    enabled = True

    def __init__(self, fail_on_send=False):
        self.queues = defaultdict(deque)
        self.in_flight = defaultdict(list)
        self.sent = []
        self.fail_on_send = fail_on_send
        self._next_id = 0

    def send_message(self, queue_name, payload):
        if self.fail_on_send:
            raise ConnectionError("queue unavailable")
        self._next_id += 1
        message = QueueMessage(id=f"msg-{self._next_id}", body=encode_message(payload), dequeue_count=0)
        self.queues[queue_name].append(message)
        self.sent.append((queue_name, payload))
        return message.id

    def receive_message(self, queue_name):
        if not self.queues[queue_name]:
            return None
        message = self.queues[queue_name].popleft()
        message.dequeue_count += 1
        self.in_flight[queue_name].append(message)
        return message

    def ack(self, queue_name, message):
        self.in_flight[queue_name].remove(message)

    def requeue(self, queue_name, message):
        self.in_flight[queue_name].remove(message)
        self.queues[queue_name].append(message)

    def dead_letter(self, queue_name, message):
        self.in_flight[queue_name].remove(message)
        self.queues[queue_name + POISON_SUFFIX].append(message)

    def recover(self, queue_name):
        recovered = self.in_flight.pop(queue_name, [])
        self.queues[queue_name].extend(recovered)
        return len(recovered)

    def length(self, queue_name):
        return len(self.queues[queue_name])

    def sent_to(self, queue_name):
        return [payload for name, payload in self.sent if name == queue_name]


class FakeEmailService:
    """Email service recording sent emails"""

    enabled = True

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, email):
        if self.fail:
            raise RuntimeError("SendGrid unreachable")
        self.sent.append(email)
        return True


class FailingStore:
    """Record store whose writes always fail"""

    enabled = True

    def save_rental(self, record):
        raise ConnectionError("database unreachable")

    def save_payment(self, record):
        raise ConnectionError("database unreachable")


class FakePipeline:
    """Buffers commands and runs them on execute()"""

    def __init__(self, client):
        self.client = client
        self.commands = []

    def lrem(self, *args):
        self.commands.append(("lrem", args))
        return self

    def lpush(self, *args):
        self.commands.append(("lpush", args))
        return self

    def execute(self):
        results = [getattr(self.client, name)(*args) for name, args in self.commands]
        self.commands = []
        return results


class FakeRedis:
    """Just enough of redis.Redis for list-based queues"""

    def __init__(self):
        self.lists = defaultdict(list)

    @staticmethod
    def _bytes(value):
        return value.encode("utf-8") if isinstance(value, str) else value

    def lpush(self, key, value):
        self.lists[key].insert(0, self._bytes(value))
        return len(self.lists[key])

    def rpop(self, key):
        if not self.lists[key]:
            return None
        return self.lists[key].pop()

    def rpoplpush(self, source, destination):
        value = self.rpop(source)
        if value is not None:
            self.lpush(destination, value)
        return value

    def lrem(self, key, count, value):
        value = self._bytes(value)
        removed = 0
        items = self.lists[key]
        for i in range(len(items) - 1, -1, -1):
            if items[i] == value and removed < count:
                del items[i]
                removed += 1
        return removed

    def llen(self, key):
        return len(self.lists[key])

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture
def test_engine():
    """Create test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(test_engine):
    """Record store on the in-memory database"""
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    return SqlRecordStore(session_factory)


@pytest.fixture
def fake_queue():
    return FakeQueueClient()


@pytest.fixture
def fake_mailer():
    return FakeEmailService()


@pytest.fixture
def failing_queue():
    return FakeQueueClient(fail_on_send=True)


@pytest.fixture
def failing_mailer():
    return FakeEmailService(fail=True)


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def booking_message():
    """Booking as sent by the intake to the rent queue"""
    return {
        "bookingId": "test-123",
        "customerName": "Jane Smith",
        "email": "jane@example.com",
        "phone": "555-5678",
        "carType": "BMW X5",
        "pickupDate": "2026-02-01",
        "returnDate": "2026-02-05",
        "pickupLocation": "New York",
        "rentalDays": 4,
        "totalAmount": 400,
        "bookingDate": "2026-01-20T10:00:00.000Z",
        "status": "pending",
        "createdAt": "2026-01-20T10:00:01.000Z",
    }


@pytest.fixture
def payment_message():
    """Payment request as sent by the rent stage"""
    return {
        "bookingId": "test-123",
        "customerName": "Jane Smith",
        "email": "jane@example.com",
        "amount": 400,
        "status": "pending",
        "createdAt": "2026-01-20T10:00:02.000Z",
    }


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
