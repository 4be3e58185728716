"""Database setup command."""

import click

from photomind.cli.base import CliCommand
from photomind.database import init_db
from photomind.settings import settings


@click.command(name="init-db")
def init_db_command():
    """Create all tables in the configured database."""
    cmd = InitDbCommand()
    cmd.run()


class InitDbCommand(CliCommand):
    def run(self):
        self.setup_db()
        try:
            init_db(bind=self.engine)
        finally:
            self.cleanup_db()
        click.echo(f"Database ready: {settings.database_url}")
