"""photomind CLI entry point with lazy command registration."""

from __future__ import annotations

import click

_COMMANDS_REGISTERED = False


def _register_commands_once() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return

    from .commands import database, jwt_secret, model

    cli.add_command(database.init_db_command, name="init-db")
    cli.add_command(jwt_secret.generate_jwt_secret_command, name="generate-jwt-secret")
    cli.add_command(model.test_model_command, name="test-model")
    cli.add_command(model.analyze_image_command, name="analyze-image")

    _COMMANDS_REGISTERED = True


class _LazyCLIGroup(click.Group):
    def list_commands(self, ctx):
        _register_commands_once()
        return super().list_commands(ctx)

    def get_command(self, ctx, cmd_name):
        _register_commands_once()
        return super().get_command(ctx, cmd_name)


@click.group(cls=_LazyCLIGroup)
def cli():
    """photomind CLI for local administration and model checks."""
    pass


if __name__ == "__main__":
    cli()
