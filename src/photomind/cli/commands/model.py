"""Model API commands: connectivity check and one-off image analysis."""

from pathlib import Path
from typing import Optional

import click

from photomind.ai.analysis import ImageAnalyzer
from photomind.ai.client import ChatCompletionClient, ModelError
from photomind.ai.content import ChatMessage, TextContent
from photomind.cli.base import CliCommand
from photomind.metadata import Image
from photomind.settings import settings
from photomind.tasks import run_image_analysis


@click.command(name="test-model")
@click.option("--model", "model_name", default=None, help="Model to call (defaults to the query model)")
@click.option("--prompt", default="Reply with the single word: pong", help="Prompt to send")
def test_model_command(model_name: Optional[str], prompt: str):
    """Send one short prompt to the configured model API and print the reply."""
    client = ChatCompletionClient.from_settings(settings)
    model = model_name or settings.query_model

    click.echo(f"Endpoint: {client.endpoint}")
    click.echo(f"Model:    {model}")
    if client.proxy:
        click.echo(f"Proxy:    {client.proxy}")

    messages = [ChatMessage(role="user", content=TextContent(prompt))]
    try:
        reply = client.complete(model, messages)
    except ModelError as exc:
        raise click.ClickException(f"{exc.__class__.__name__}: {exc.details}")
    click.echo(f"Reply:    {reply}")


@click.command(name="analyze-image")
@click.option("--path", "image_path", default=None, type=click.Path(exists=True, dir_okay=False), help="Image file to analyze (tags are printed only)")
@click.option("--image-id", default=None, type=int, help="Stored image to analyze; tags are attached")
def analyze_image_command(image_path: Optional[str], image_id: Optional[int]):
    """Ask the vision model for tags for a file or a stored image."""
    if bool(image_path) == bool(image_id):
        raise click.UsageError("Pass exactly one of --path or --image-id")
    cmd = AnalyzeImageCommand(image_path, image_id)
    cmd.run()


class AnalyzeImageCommand(CliCommand):
    """Run vision tagging outside the API."""

    def __init__(self, image_path: Optional[str], image_id: Optional[int]):
        super().__init__()
        self.image_path = image_path
        self.image_id = image_id
        self.analyzer = ImageAnalyzer.from_settings(settings)

    def run(self):
        if self.image_path:
            self._analyze_file(Path(self.image_path))
            return

        self.setup_db()
        try:
            self._analyze_stored()
        finally:
            self.cleanup_db()

    def _analyze_file(self, path: Path):
        try:
            tags = self.analyzer.analyze_path(path)
        except ModelError as exc:
            raise click.ClickException(exc.details)
        click.echo(", ".join(tags) if tags else "(no tags)")

    def _analyze_stored(self):
        image = self.db.query(Image).filter(Image.id == self.image_id).first()
        if image is None:
            raise click.ClickException(f"Image {self.image_id} not found")
        try:
            added = run_image_analysis(self.db, image, self.analyzer)
        except ModelError as exc:
            self.db.rollback()
            raise click.ClickException(exc.details)
        click.echo(f"Image {image.id}: added {len(added)} tags")
        for tag in added:
            click.echo(f"  {tag.name}")
