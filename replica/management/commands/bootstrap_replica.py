"""
Management command that seeds (if needed) and verifies the local replica.

Run once per container start:
    python manage.py bootstrap_replica

Exit codes: 0 on either path, non-zero on any fatal condition (see
replica.replication.exceptions for the mapping).
"""

from django.core.management.base import BaseCommand, CommandError

from replica.replication import BootstrapError, ReplicaBootstrapOrchestrator


class Command(BaseCommand):
    help = 'Seed and configure the local MySQL replica from the cloud source, or verify an existing one'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-retention-check',
            action='store_true',
            help='Do not re-check that the source still retains the captured binlog file',
        )

    def handle(self, *args, **options):
        try:
            orchestrator = ReplicaBootstrapOrchestrator.from_settings()
        except BootstrapError as e:
            raise CommandError(f'Invalid configuration: {e}', returncode=e.exit_code) from e

        if options.get('skip_retention_check'):
            orchestrator.config['VERIFY_LOG_RETENTION'] = False

        target = orchestrator.describe()
        self.stdout.write(
            f"Replica {target['local']} ({target['local_schema']}) "
            f"<- source {target['source']} ({target['source_schema']})"
        )

        try:
            result = orchestrator.run()
        except BootstrapError as e:
            self.stderr.write(self.style.ERROR(f'❌ Bootstrap failed: {e}'))
            raise CommandError(str(e), returncode=e.exit_code) from e

        self.stdout.write(self.style.SUCCESS(f'✅ Replica {result.state.value}'))
        if result.replica_id:
            self.stdout.write(f'   replica_id: {result.replica_id}')
        if result.coordinate:
            self.stdout.write(f'   started from: {result.coordinate}')
        if result.artifact:
            self.stdout.write(f'   seed: {result.artifact.path} ({result.artifact.size} bytes)')
        self.stdout.write(f"   read-only: {'ON' if result.read_only else 'OFF'}")

        health = result.health
        if health.get('healthy'):
            self.stdout.write(self.style.SUCCESS(f"   threads: {health.get('message')}"))
        else:
            self.stdout.write(self.style.WARNING(f"   ⚠️  threads: {health.get('message')}"))
