import logging
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from bookings.models import Booking, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Delete unrated completed, cancelled and expired bookings older than a cutoff."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=90,
                            help="Age in days past which closed bookings are removed (default: 90).")
        parser.add_argument("--dry-run", action="store_true",
                            help="Only report how many bookings match.")

    def handle(self, *args, **options):
        days = options["days"]
        stale = Booking.objects.filter(
            created_at__lt=timezone.now() - timedelta(days=days),
            status__in=TERMINAL_STATUSES,
            review__isnull=True,
        )
        count = stale.count()

        if options["dry_run"]:
            self.stdout.write(self.style.WARNING(
                f"DRY RUN: Would delete {count} closed booking(s) older than {days} days."
            ))
            return

        # reviewed bookings are kept: the driver rating aggregate counts their reviews
        stale.delete()
        logger.info("Deleted %d closed bookings older than %d days", count, days)
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} closed booking(s)."))
