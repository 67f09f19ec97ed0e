from django.core.management.base import BaseCommand

from activities.services.board import mark_overdue_activities, schedule_daily_overdue_check


class Command(BaseCommand):
    help = 'Register the daily overdue activity check with Django-Q2'

    def add_arguments(self, parser):
        parser.add_argument(
            '--run-now',
            action='store_true',
            help='Also mark overdue activities immediately',
        )

    def handle(self, *args, **options):
        if schedule_daily_overdue_check():
            self.stdout.write(self.style.SUCCESS('✓ Daily overdue check scheduled'))
        else:
            self.stdout.write('Daily overdue check already scheduled')

        if options['run_now']:
            marked = mark_overdue_activities()
            self.stdout.write(f"✓ Marked {marked} activities as late")
