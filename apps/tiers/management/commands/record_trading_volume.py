from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.tiers.exceptions import TierProgressionError
from apps.tiers.services import ProgressionService


class Command(BaseCommand):
    help = "Add a traded amount to a user's cumulative trading volume"

    def add_arguments(self, parser):
        parser.add_argument('user_id', type=int, help='User who traded')
        parser.add_argument('amount', help='Traded amount, strictly positive')
        parser.add_argument('--fee', help='Trading fee charged on the trade, used for fee savings')
        parser.add_argument('--reference', help='Trade id; a trade already recorded under it is skipped')

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(id=options['user_id'])
        except User.DoesNotExist:
            raise CommandError(f"User with ID {options['user_id']} not found")

        try:
            progress = ProgressionService.record_trading_volume(
                user, options['amount'], fee=options.get('fee'), reference_id=options.get('reference'),
            )
        except TierProgressionError as e:
            raise CommandError(e.message)

        self.stdout.write(self.style.SUCCESS(
            f'User {user.username} cumulative trading volume is now {progress.trading_volume}'
        ))
