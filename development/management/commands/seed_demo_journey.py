from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.utils import timezone

from development.services.journey import DevelopmentJourney

DEMO_PLANS = (
    ('Aprender React', 'programming', 180),
    ('Inglês fluente', 'languages', 365),
    ('Correr 10 km', 'exercises', 120),
)


class Command(BaseCommand):
    help = 'Create demo development plans for a user'

    def add_arguments(self, parser):
        parser.add_argument('--user', type=str, required=True, help='Username to create demo plans for')
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete the user\'s existing plans first',
        )

    def handle(self, *args, **options):
        try:
            user = User.objects.get(username=options['user'])
        except User.DoesNotExist:
            self.stdout.write(self.style.ERROR(f"User '{options['user']}' not found"))
            return

        if options['clear']:
            deleted, _ = user.development_plans.all().delete()
            self.stdout.write(f"🧹 Removed {deleted} existing records")

        journey = DevelopmentJourney(user)
        journey.refresh()
        today = timezone.localdate()
        for title, category, days in DEMO_PLANS:
            if journey.add_plan(title, category, today + timedelta(days=days)):
                self.stdout.write(f"✓ {title} ({category})")
            else:
                self.stdout.write(self.style.ERROR(f"✗ {title}: {journey.error}"))

        if journey.plans:
            first = journey.plans[0]
            journey.toggle_milestone(first['id'], first['milestones'][0]['id'])
        self.stdout.write(self.style.SUCCESS(f"\n🎉 {len(journey.plans)} plans ready for {user.username}"))
