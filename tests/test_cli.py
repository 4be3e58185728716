"""Tests for the command-line interface."""

import base64

from click.testing import CliRunner

from photomind.cli import cli
from photomind.cli.commands.jwt_secret import generate_jwt_secret


def test_commands_are_registered():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for name in ("init-db", "generate-jwt-secret", "test-model", "analyze-image"):
        assert name in result.output


def test_generated_secret_is_32_random_bytes():
    secret = generate_jwt_secret()
    assert len(base64.urlsafe_b64decode(secret)) == 32
    assert secret != generate_jwt_secret()


def test_generate_jwt_secret_command():
    result = CliRunner().invoke(cli, ["generate-jwt-secret"])
    assert result.exit_code == 0
    assert len(base64.urlsafe_b64decode(result.output.splitlines()[0])) == 32


def test_generate_jwt_secret_rejects_short_length():
    result = CliRunner().invoke(cli, ["generate-jwt-secret", "--bytes", "8"])
    assert result.exit_code != 0


def test_analyze_image_requires_one_target():
    result = CliRunner().invoke(cli, ["analyze-image"])
    assert result.exit_code == 2
