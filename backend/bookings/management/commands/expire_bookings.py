from django.core.management.base import BaseCommand

from bookings.services.booking_expiry import expire_stale_bookings


class Command(BaseCommand):
    help = "Expire pending bookings whose response window has passed and notify their passengers."

    def add_arguments(self, parser):
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Bookings to load per batch (default: BOOKING_ENGINE['EXPIRY_BATCH_SIZE']).",
        )

    def handle(self, *args, **options):
        expired_count = expire_stale_bookings(batch_size=options["batch_size"])

        self.stdout.write(
            self.style.SUCCESS(f"Expired {expired_count} booking(s).")
        )
