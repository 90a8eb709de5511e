from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.tiers.exceptions import TierProgressionError
from apps.tiers.services import ProgressionService


class Command(BaseCommand):
    help = 'Award a special tier outside the ladder to a user'

    def add_arguments(self, parser):
        parser.add_argument('user_id', type=int, help='User receiving the special tier')
        parser.add_argument('code', help='Special tier code from the catalog')
        parser.add_argument('--reason', default='', help='Why the special tier was awarded')

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(id=options['user_id'])
        except User.DoesNotExist:
            raise CommandError(f"User with ID {options['user_id']} not found")

        try:
            special, created = ProgressionService.award_special_tier(user, options['code'], options['reason'])
        except TierProgressionError as e:
            raise CommandError(e.message)

        if created:
            self.stdout.write(self.style.SUCCESS(f'Awarded special tier {special.code} to {user.username}'))
        else:
            self.stdout.write(self.style.WARNING(f'{user.username} already holds special tier {special.code}'))
