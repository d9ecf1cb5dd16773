"""
Management command to add the default customer types, board columns and roadmap buckets
"""
from django.core.management.base import BaseCommand
from backend.sales.models import CustomerType
from backend.sales.services import DEFAULT_CUSTOMER_TYPES
from backend.agile import services as agile_services


class Command(BaseCommand):
    help = "Adds default customer types, agile statuses and roadmap buckets"

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-agile',
            action='store_true',
            help='Only seed customer types',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING DEFAULTS"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        created_count = 0
        skipped_count = 0

        for display_name in DEFAULT_CUSTOMER_TYPES:
            _, created = CustomerType.objects.get_or_create(
                key=display_name.lower(),
                defaults={'display_name': display_name, 'status': 'active'}
            )
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"  ✓ Created customer type: {display_name}"))
            else:
                skipped_count += 1
                self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {display_name}"))

        agile_created = 0
        if not options['skip_agile']:
            agile_created = agile_services.seed_defaults()

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(self.style.SUCCESS("SUMMARY"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"Customer Types Created: {created_count}")
        self.stdout.write(f"Customer Types Skipped (already exist): {skipped_count}")
        self.stdout.write(f"Agile Rows Created: {agile_created}")
