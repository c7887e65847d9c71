"""
Flask CLI commands

    flask --app run seed-workers [--count 10]
"""
import click

from wastetrack.models.job import ZONES
from wastetrack.models.worker import WORKER, SENIOR_WORKER


def zone_for_index(i, count):
    """Spread workers 1..count over the zones in contiguous blocks, remainder to the last"""
    per_zone = max(1, count // len(ZONES))
    return ZONES[min((i - 1) // per_zone, len(ZONES) - 1)]


def seed_roster(registry, count=10):
    """
    Provision the demo roster: count workers and count senior workers

    Ids follow worker-N / senior-N. Workers already registered are skipped,
    so seeding twice is harmless.

    Returns:
        list: The workers created by this call
    """
    created = []
    for role, prefix, title in ((WORKER, 'worker', 'Worker'), (SENIOR_WORKER, 'senior', 'Senior Worker')):
        for i in range(1, count + 1):
            worker_id = f'{prefix}-{i}'
            if registry.find(worker_id):
                continue
            created.append(registry.provision(
                f'{title} {i}', zone_for_index(i, count), role=role, worker_id=worker_id,
            ))
    return created


def register_cli(app):
    @app.cli.command('seed-workers')
    @click.option('--count', default=10, show_default=True, help='Workers per role')
    def cli_seed_workers(count):
        """Provision the demo worker roster."""
        from wastetrack.services import get_services

        click.echo('Seeding WasteTrack workers...')
        created = seed_roster(get_services().registry, count=count)
        for worker in created:
            click.echo(f'  -> {worker.id} ({worker.role}, {worker.zone})')
        click.echo(f'Seeded {len(created)} worker(s).')
