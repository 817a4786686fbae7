"""ProcessEmailQueue / ProcessPushQueue commands + handlers — reference sender.

Claims due items and sends them through the configured channel adapters
(fakes by default). A background job or cron invokes these; a deployment
with its own sender uses the claim/complete functions directly instead.
"""

from datetime import UTC, datetime

import structlog
from notifications.channel import get_channel
from notifications.delivery.delivery_record import DeliveryChannel
from notifications.domain import notifications
from notifications.queue.consumption import (
    claim_due_emails,
    claim_due_pushes,
    complete_email,
    complete_push,
)
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.push_queue import PushQueueItem
from protean.fields import DateTime, Integer, String
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)

DEFAULT_WORKER_ID = "siteflow-sender"


@notifications.command(part_of="EmailQueueItem")
class ProcessEmailQueue:
    """Send every due email, up to the batch size."""

    as_of: DateTime()  # Optional: process as of this time (defaults to now)
    worker_id: String(max_length=100, default=DEFAULT_WORKER_ID)
    limit: Integer(min_value=1)


@notifications.command(part_of="PushQueueItem")
class ProcessPushQueue:
    """Send every due push message, up to the batch size."""

    as_of: DateTime()
    worker_id: String(max_length=100, default=DEFAULT_WORKER_ID)
    limit: Integer(min_value=1)


def _error_of(result: dict) -> str | None:
    if result.get("status") == "sent":
        return None
    return result.get("error") or "Unknown dispatch error"


@notifications.command_handler(part_of=EmailQueueItem)
class ProcessEmailQueueHandler:
    @handle(ProcessEmailQueue)
    def process_email_queue(self, command: ProcessEmailQueue):
        as_of = command.as_of or datetime.now(UTC)
        adapter = get_channel(DeliveryChannel.EMAIL.value)

        sent = failed = 0
        for item in claim_due_emails(command.worker_id, limit=command.limit, as_of=as_of):
            try:
                result = adapter.send(
                    to=item.to_email,
                    subject=item.subject,
                    template_id=item.template_id,
                    template_data=item.decoded_template_data(),
                    to_name=item.to_name,
                )
                error = _error_of(result)
            except Exception as e:
                # Provider errors are recorded on the item, never propagated
                error = str(e) or e.__class__.__name__
                logger.error("Email provider raised", item_id=str(item.id), error=error)

            complete_email(item, error=error)
            if error is None:
                sent += 1
            else:
                failed += 1

        logger.info("Email queue processed", sent=sent, failed=failed, as_of=str(as_of))
        return {"sent": sent, "failed": failed}


@notifications.command_handler(part_of=PushQueueItem)
class ProcessPushQueueHandler:
    @handle(ProcessPushQueue)
    def process_push_queue(self, command: ProcessPushQueue):
        as_of = command.as_of or datetime.now(UTC)
        adapter = get_channel(DeliveryChannel.PUSH.value)

        sent = failed = 0
        for item in claim_due_pushes(command.worker_id, limit=command.limit, as_of=as_of):
            try:
                result = adapter.send(
                    device_token=item.token,
                    platform=item.platform,
                    payload=item.decoded_payload(),
                )
                error = _error_of(result)
            except Exception as e:
                error = str(e) or e.__class__.__name__
                logger.error("Push provider raised", item_id=str(item.id), error=error)

            complete_push(item, error=error)
            if error is None:
                sent += 1
            else:
                failed += 1

        logger.info("Push queue processed", sent=sent, failed=failed, as_of=str(as_of))
        return {"sent": sent, "failed": failed}
