from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from backend.reminders.cache import invalidate_reminder_list_cache
from backend.reminders.lifecycle import refresh_status
from backend.reminders.models import PaymentReminder


class Command(BaseCommand):
    help = 'Recomputes the stored status label of open payment reminders from their due dates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Perform a dry run without saving changes',
        )
        parser.add_argument(
            '--date',
            help='Treat this date (YYYY-MM-DD) as today',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        today = timezone.localdate()
        if options['date']:
            try:
                today = parse_date(options['date'])
            except ValueError:
                today = None
            if today is None:
                raise CommandError(f"Invalid --date '{options['date']}', expected YYYY-MM-DD")

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        reminders = PaymentReminder.objects.filter(is_acknowledged=False).select_related('caterer')
        self.stdout.write(f"Refreshing status for {reminders.count()} open reminders as of {today}...")

        changed = 0
        with transaction.atomic():
            for reminder in reminders.select_for_update():
                old_status = reminder.status
                if not refresh_status(reminder, today):
                    continue
                changed += 1
                self.stdout.write(f"  - {reminder.caterer.name} {reminder.bill_number or reminder.id}: {old_status} -> {reminder.status}")
                if not dry_run:
                    reminder.save(update_fields=['status', 'updated_at'])

            if dry_run:
                self.stdout.write(self.style.WARNING(f"\nDry run complete. {changed} reminders would change."))
                transaction.set_rollback(True)
            else:
                self.stdout.write(self.style.SUCCESS(f"\nStatus refresh complete. {changed} reminders updated."))

        if changed and not dry_run:
            invalidate_reminder_list_cache()
