"""
Function host.
Polls the rent and payment queues with APScheduler and runs the stages.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from rentacar.config import settings, configure_logging
from rentacar.functions.payment_process import payment_process
from rentacar.functions.rent_process import rent_process
from rentacar.functions.results import StageResult
from rentacar.services.dependencies import get_record_store, get_queue_client, get_email_service
from rentacar.services.queue_service import QueueMessage

logger = logging.getLogger(__name__)


@dataclass
class QueueTrigger:
    """Binds an input queue to a stage and its output queue"""

    name: str
    input_queue: str
    output_queue: str
    handler: Callable[[str], StageResult]


class FunctionHost:
    """Service to run queue-triggered stages"""

    def __init__(
        self,
        queue,
        store,
        mailer,
        scheduler=None,
        poll_interval: float = None,
        batch_size: int = None,
        max_dequeue_count: int = None,
    ):
        self.queue = queue
        self.store = store
        self.mailer = mailer
        self.poll_interval = poll_interval or settings.queue_poll_interval
        self.batch_size = batch_size or settings.queue_batch_size
        self.max_dequeue_count = max_dequeue_count or settings.max_dequeue_count
        self.triggers = self._build_triggers()
        self.scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self._setup_jobs()

    def _build_triggers(self) -> List[QueueTrigger]:
        return [
            QueueTrigger(
                name="RentProcess",
                input_queue=settings.rent_queue_name,
                output_queue=settings.payment_queue_name,
                handler=lambda item: rent_process(item, self.store),
            ),
            QueueTrigger(
                name="PaymentProcess",
                input_queue=settings.payment_queue_name,
                output_queue=settings.notification_queue_name,
                handler=lambda item: payment_process(
                    item, self.store, self.mailer, settings.notification_email
                ),
            ),
        ]

    def _setup_jobs(self):
        """Setup one polling job per trigger"""
        for trigger in self.triggers:
            self.scheduler.add_job(
                self.poll,
                IntervalTrigger(seconds=self.poll_interval),
                args=[trigger],
                id=trigger.name,
                name=f"Poll {trigger.input_queue}",
                max_instances=1,
                replace_existing=True,
            )

    def poll(self, trigger: QueueTrigger) -> int:
        """
        Drain up to batch_size messages from the trigger's input queue.

        Failed messages stay in the processing list until the batch ends
        and then go back on the queue, so a message is retried at most
        once per tick.

        Returns:
            Number of messages handled
        """
        handled = 0
        retry = []
        try:
            while handled < self.batch_size:
                message = self.queue.receive_message(trigger.input_queue)
                if message is None:
                    break
                if not self.dispatch(trigger, message):
                    retry.append(message)
                handled += 1
        except Exception as e:
            logger.error(f"Error polling {trigger.input_queue}: {str(e)}")
        finally:
            for message in retry:
                self.queue.requeue(trigger.input_queue, message)
        return handled

    def dispatch(self, trigger: QueueTrigger, message: QueueMessage) -> bool:
        """
        Run the stage for one message and forward its output.

        Returns:
            True when the output was sent. False when the stage failed and
            the message should be retried. A message failing for the
            max_dequeue_count-th time goes to the poison queue and counts
            as handled.
        """
        # An output send failure fails the whole invocation, like an output binding
        try:
            result = trigger.handler(message.body)
            self.queue.send_message(trigger.output_queue, result.output.to_message())
            self.queue.ack(trigger.input_queue, message)
        except Exception as e:
            logger.error(
                f"{trigger.name} failed for message {message.id} "
                f"(attempt {message.dequeue_count}): {str(e)}"
            )
            if message.dequeue_count >= self.max_dequeue_count:
                logger.error(f"Message {message.id} moved to {trigger.input_queue}-poison")
                self.queue.dead_letter(trigger.input_queue, message)
                return True
            return False

        return True

    def recover(self) -> int:
        """Requeue messages a previous run left in flight"""
        return sum(self.queue.recover(trigger.input_queue) for trigger in self.triggers)

    def start(self):
        """Recover in-flight messages and start the scheduler"""
        if not self.scheduler.running:
            self.recover()
            logger.info("Function host started")
            self.scheduler.start()

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Function host stopped")


# Global host instance
_function_host = None


def get_function_host() -> FunctionHost:
    """Get or create in-process function host"""
    global _function_host
    if _function_host is None:
        _function_host = FunctionHost(get_queue_client(), get_record_store(), get_email_service())
    return _function_host


def start_function_host():
    get_function_host().start()


def stop_function_host():
    if _function_host is not None:
        _function_host.stop()


def main():
    configure_logging()
    queue = get_queue_client()
    if not queue.enabled:
        logger.warning("QUEUE_URL not set - nothing to consume, exiting")
        return 1

    host = FunctionHost(queue, get_record_store(), get_email_service(), scheduler=BlockingScheduler())
    try:
        host.start()
    except (KeyboardInterrupt, SystemExit):
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
