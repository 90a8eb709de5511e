from django.core.management.base import BaseCommand, CommandError

from apps.tiers.exceptions import TierProgressionError
from apps.tiers.models import UpgradeRequest
from apps.tiers.services import UpgradeService


class Command(BaseCommand):
    help = 'List, flag, resume, retry or roll back unfinished tier upgrades'

    def add_arguments(self, parser):
        parser.add_argument('--flag-stale', action='store_true',
                            help='Flag upgrades stuck past the stale window for manual reconciliation')
        parser.add_argument('--resume', action='store_true',
                            help='Resume in-progress upgrades that are not stale')
        parser.add_argument('--rollback', type=int, metavar='ID',
                            help='Roll back an unfinished upgrade and restore the previous tier')
        parser.add_argument('--retry', type=int, metavar='ID',
                            help='Clear the reconciliation flag of an upgrade and retry it')

    def handle(self, *args, **options):
        if options['rollback'] is not None:
            upgrade_request = self._get_request(options['rollback'])
            try:
                UpgradeService.rollback_upgrade(upgrade_request)
            except TierProgressionError as e:
                raise CommandError(e.message)
            self.stdout.write(self.style.SUCCESS(
                f'Rolled back upgrade {upgrade_request.id}: user {upgrade_request.user_id} '
                f'is back at tier {upgrade_request.from_level}'
            ))
            return

        if options['retry'] is not None:
            upgrade_request = self._get_request(options['retry'])
            try:
                result = UpgradeService.force_retry(upgrade_request)
            except TierProgressionError as e:
                raise CommandError(e.message)
            self.stdout.write(self.style.SUCCESS(
                f'Upgrade {upgrade_request.id} completed at tier {result.tier_level}'
            ))
            return

        if options['flag_stale']:
            flagged = UpgradeService.flag_stale_upgrades()
            for upgrade_request in flagged:
                self.stdout.write(self.style.WARNING(
                    f'Flagged upgrade {upgrade_request.id} (user {upgrade_request.user_id}, '
                    f'{upgrade_request.from_level} -> {upgrade_request.to_level})'
                ))
            self.stdout.write(self.style.SUCCESS(f'{len(flagged)} stale upgrades flagged'))

        if options['resume']:
            outcome = UpgradeService.resume_pending_upgrades()
            self.stdout.write(self.style.SUCCESS(
                f"Resumed upgrades: {len(outcome['completed'])} completed, "
                f"{len(outcome['interrupted'])} interrupted"
            ))

        if not (options['flag_stale'] or options['resume']):
            self._list_unfinished()

    def _get_request(self, request_id):
        try:
            return UpgradeRequest.objects.get(pk=request_id)
        except UpgradeRequest.DoesNotExist:
            raise CommandError(f'Upgrade request {request_id} does not exist')

    def _list_unfinished(self):
        unfinished = UpgradeRequest.objects.unfinished().order_by('created_at')
        if not unfinished:
            self.stdout.write('No unfinished upgrades')
            return
        for upgrade_request in unfinished:
            style = self.style.ERROR if upgrade_request.needs_reconciliation else self.style.WARNING
            self.stdout.write(style(
                f'#{upgrade_request.id} user {upgrade_request.user_id} '
                f'{upgrade_request.from_level} -> {upgrade_request.to_level} {upgrade_request.status} '
                f'retries {upgrade_request.retry_count}/{upgrade_request.max_retries} '
                f'updated {upgrade_request.updated_at.isoformat()} {upgrade_request.last_error}'
            ))
