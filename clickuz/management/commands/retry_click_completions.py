import logging

from django.core.management.base import BaseCommand

from clickuz.services import apply_click_completion, record_completion_failure, get_pending_completions

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Apply Click completions whose order update has not been written yet'

    def add_arguments(self, parser):
        parser.add_argument(
            '--older-than',
            type=int,
            default=0,
            help='Only rows untouched for this many seconds (default: 0)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List pending rows without applying them'
        )

    def handle(self, *args, **options):
        pending = get_pending_completions(older_than_seconds=options['older_than'])

        count = 0
        for click_transaction in pending:
            if options['dry_run']:
                self.stdout.write(
                    f'Pending: trans {click_transaction.click_trans_id} -> order {click_transaction.order_id} '
                    f'({click_transaction.state}, {click_transaction.attempts} attempt(s))'
                )
                continue

            try:
                if apply_click_completion(click_transaction.pk):
                    count += 1
                    self.stdout.write(
                        self.style.SUCCESS(f'✓ Click trans {click_transaction.click_trans_id} applied')
                    )
            except Exception as e:
                record_completion_failure(click_transaction.pk, e)
                logger.error(f"Error applying Click trans {click_transaction.click_trans_id}: {e}")
                self.stdout.write(
                    self.style.ERROR(f'✗ Error applying Click trans {click_transaction.click_trans_id}: {e}')
                )

        if options['dry_run']:
            return

        if count == 0:
            self.stdout.write(self.style.WARNING('No Click completions to apply'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Successfully applied {count} Click completion(s)'))
