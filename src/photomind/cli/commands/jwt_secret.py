"""JWT secret generation command."""

import base64
import secrets

import click

from photomind.auth.config import MIN_SECRET_BYTES


def generate_jwt_secret(num_bytes: int = MIN_SECRET_BYTES) -> str:
    """Return a URL-safe base64 encoding of num_bytes random bytes."""
    if num_bytes < MIN_SECRET_BYTES:
        raise ValueError(f"secret must be at least {MIN_SECRET_BYTES} bytes")
    return base64.urlsafe_b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


@click.command(name="generate-jwt-secret")
@click.option("--bytes", "num_bytes", default=MIN_SECRET_BYTES, type=int, help="Random bytes before encoding")
def generate_jwt_secret_command(num_bytes: int):
    """Print a random secret suitable for JWT_SECRET."""
    try:
        secret = generate_jwt_secret(num_bytes)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--bytes")
    click.echo(secret)
    click.echo("", err=True)
    click.echo("Add it to your environment or .env file:", err=True)
    click.echo(f"JWT_SECRET={secret}", err=True)
