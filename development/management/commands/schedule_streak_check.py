from django.core.management.base import BaseCommand

from development.services.streaks import reset_broken_streaks, schedule_daily_streak_check


class Command(BaseCommand):
    help = 'Register the daily habit streak check with Django-Q2'

    def add_arguments(self, parser):
        parser.add_argument(
            '--run-now',
            action='store_true',
            help='Also reset broken streaks immediately',
        )

    def handle(self, *args, **options):
        if schedule_daily_streak_check():
            self.stdout.write(self.style.SUCCESS('✓ Daily streak check scheduled'))
        else:
            self.stdout.write('Daily streak check already scheduled')

        if options['run_now']:
            reset = reset_broken_streaks()
            self.stdout.write(f"✓ Reset {reset} broken streaks")
