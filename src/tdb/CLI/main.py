"""
Command Line Interface for TDB.
"""
import logging

import click

from ..ENGINE.docker_engine import ContainerEngine
from ..errors import ConfigurationError, TestDatabaseError
from ..MANAGERS.container_factory import ContainerFactory
from ..MIGRATIONS.migration_set import MigrationSet
from ..MODELS.image_tag import ImageTag
from ..MODELS.settings import TestDatabaseSettings
from ..REGISTRY.image_registry import ImageRegistry


@click.group()
@click.option('--env-file', '-e', default='.env', help='Env file with TDB_* settings')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.pass_context
def cli(ctx, env_file, verbose):
    """
    TDB - pre-migrated SQL Server images for integration tests.

    Builds, inspects and prunes the images test databases are started from.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("docker").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj['env_file'] = env_file


def _settings(ctx) -> TestDatabaseSettings:
    if 'settings' not in ctx.obj:
        ctx.obj['settings'] = TestDatabaseSettings.from_env(ctx.obj['env_file'])
    return ctx.obj['settings']


def _engine(ctx) -> ContainerEngine:
    if 'engine' not in ctx.obj:
        ctx.obj['engine'] = ContainerEngine(_settings(ctx))
    return ctx.obj['engine']


def _target_tag(ctx) -> ImageTag:
    """
    Tag of the image for the configured migrations. Needs no migration runner.
    """
    settings = _settings(ctx)
    if not settings.migrations_path:
        raise ConfigurationError("TDB_MIGRATIONS_PATH is not set")
    return MigrationSet.from_directory(settings.migrations_path).image_tag(settings.repository)


def _factory(ctx) -> ContainerFactory:
    """
    Creates the container factory from settings, once per invocation.
    """
    if 'factory' not in ctx.obj:
        ctx.obj['factory'] = ContainerFactory.from_settings(_settings(ctx), _engine(ctx))
    return ctx.obj['factory']


@cli.command()
@click.pass_context
def status(ctx):
    """Show the target image and whether it exists."""
    try:
        tag = _target_tag(ctx)
        exists = ImageRegistry(_engine(ctx)).has_valid_image(tag)
    except TestDatabaseError as e:
        raise click.ClickException(str(e))

    click.echo(f"{'IMAGE':40} {'STATUS':10}")
    click.echo("-" * 51)
    click.echo(f"{tag.reference:40} {'present' if exists else 'missing':10}")


@cli.command()
@click.option('--force', is_flag=True, help='Rebuild even if the image exists')
@click.pass_context
def build(ctx, force):
    """Build the image for the current migration set."""
    try:
        factory = _factory(ctx)
        tag = factory.builder.target_tag()
        if not force and factory.registry.has_valid_image(tag):
            click.echo(f"Image {tag} already exists.")
            return
        factory.builder.build()
    except TestDatabaseError as e:
        raise click.ClickException(str(e))

    click.echo(f"Built image {tag}.")


@cli.command()
@click.option('--dry-run', is_flag=True, help='Only list the images that would be removed')
@click.pass_context
def prune(ctx, dry_run):
    """Remove images built for older migration sets."""
    try:
        engine = _engine(ctx)
        target = _target_tag(ctx)
        stale = [t for t in ImageRegistry(engine).list_tags(target.repository) if t != target]
        if not stale:
            click.echo("Nothing to prune.")
            return
        for tag in stale:
            if dry_run:
                click.echo(f"Would remove {tag}")
            else:
                engine.remove_image(tag.reference)
                click.echo(f"Removed {tag}")
    except TestDatabaseError as e:
        raise click.ClickException(str(e))


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
