import logging

from celery import shared_task
from django.conf import settings
from django.db import DatabaseError

from clickuz.services import apply_click_completion, record_completion_failure, get_pending_completions

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=5, default_retry_delay=10)
def apply_click_completion_task(self, click_transaction_id):
    """
    Deferred order write for a Click ``complete`` call.

    Retries with backoff on database errors; whatever is still unapplied
    after that is picked up by ``retry_pending_completions``.
    """
    try:
        return apply_click_completion(click_transaction_id)
    except DatabaseError as e:
        logger.exception(f"Applying Click transaction {click_transaction_id} failed: {e}")
        record_completion_failure(click_transaction_id, e)
        raise self.retry(exc=e, countdown=10 * (2 ** self.request.retries))


@shared_task
def retry_pending_completions():
    """
    Re-enqueue Click completions whose order write never landed

    Runs: every minute (beat)
    """
    config = settings.CLICK_SETTINGS
    pending = get_pending_completions(
        older_than_seconds=config.get('RETRY_AFTER_SECONDS', 60),
        max_attempts=config.get('MAX_ATTEMPTS'),
    ).values_list('pk', flat=True)

    count = 0
    for click_transaction_id in pending:
        apply_click_completion_task.delay(click_transaction_id)
        count += 1

    if count:
        logger.info(f"Re-enqueued {count} pending Click completion(s)")
    return count
