from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

User = get_user_model()


class Command(BaseCommand):
    help = 'Move corporate accounts whose trial has ended back to the free plan'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the accounts that would change without saving',
        )

    def handle(self, *args, **options):
        expired = User.objects.filter(
            is_corporate=True,
            subscription_status=User.SUBSCRIPTION_TRIAL,
            trial_end_date__lte=timezone.now(),
        )

        if options['dry_run']:
            for user in expired:
                self.stdout.write(f'  Would expire trial for {user.email} (ended {user.trial_end_date:%Y-%m-%d})')
            self.stdout.write(self.style.SUCCESS(f'\nDry run: {expired.count()} trials would expire'))
            return

        updated = expired.update(subscription_status=User.SUBSCRIPTION_FREE, updated_at=timezone.now())
        self.stdout.write(self.style.SUCCESS(f'Expired {updated} corporate trials'))
