"""CLI entry point for blockmark."""

import click
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table

from blockmark import __version__
from blockmark.config.loader import DEFAULT_CONFIG_PATH, load_config
from blockmark.editing.replay import load_script, open_session, run_script
from blockmark.models.config import EditorConfig
from blockmark.models.document import Document
from blockmark.rendering.markdown import MarkdownRenderer
from blockmark.rendering.projection import project_document
from blockmark.services.exceptions import ReplayError
from blockmark.utils.ids import IdGenerator
from blockmark.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


def load_editor_config(config_path: Optional[Path]) -> EditorConfig:
    """
    Load configuration, turning every failure into a click error.

    Args:
        config_path: Explicit config file, or None for ~/.config/blockmark/config.yaml

    Returns:
        Validated EditorConfig instance

    Raises:
        click.ClickException: If the file cannot be read or validation fails
    """
    try:
        config = load_config(config_path)
        logger.info("config_loaded", path=str(config_path or DEFAULT_CONFIG_PATH))
        return config
    except PermissionError as e:
        logger.error("config_permission_error", path=str(config_path))
        raise click.ClickException(str(e))
    except Exception as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def load_document(path: Path, config: EditorConfig) -> Document:
    """Read a Markdown file and segment it into a Document."""
    text = path.read_text(encoding="utf-8")
    document = Document.from_markdown(text, IdGenerator(length=config.editing.id_length))
    logger.info("document_loaded", path=str(path), blocks=len(document))
    return document


@click.group()
@click.version_option(version=__version__, prog_name="blockmark")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/blockmark/config.yaml)",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """blockmark: block-structured hybrid Markdown editing."""
    configure_logging(verbose=verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_editor_config(config_path)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def blocks(ctx: click.Context, file: Path):
    """
    List the blocks a Markdown file segments into.

    Examples:
        blockmark blocks notes.md
    """
    document = load_document(file, ctx.obj["config"])

    table = Table(title=str(file))
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Id", style="magenta")
    table.add_column("Lines", justify="right")
    table.add_column("Source")

    for index, (block_id, text) in enumerate(document.items()):
        table.add_row(str(index), block_id, str(text.count("\n") + 1), text)

    console.print(table)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--edit",
    "edit_indices",
    type=int,
    multiple=True,
    help="Index of a block to show in source view (repeatable)",
)
@click.pass_context
def render(ctx: click.Context, file: Path, edit_indices: tuple[int, ...]):
    """
    Print the surface markup for a Markdown file.

    Examples:
        blockmark render notes.md            # Every block rendered
        blockmark render notes.md --edit 0   # First block as editable source
    """
    config = ctx.obj["config"]
    document = load_document(file, config)

    focus = set()
    for index in edit_indices:
        if not 0 <= index < len(document):
            logger.error("block_index_out_of_range", index=index, blocks=len(document))
            raise click.BadParameter(
                f"block index {index} out of range (document has {len(document)} blocks)",
                param_hint="--edit",
            )
        focus.add(document.order[index])

    click.echo(project_document(document, focus, MarkdownRenderer(config.renderer)))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def normalize(ctx: click.Context, file: Path):
    """
    Print a Markdown file re-joined from its blocks, one blank line apart.

    Examples:
        blockmark normalize notes.md > notes.clean.md
    """
    document = load_document(file, ctx.obj["config"])
    click.echo(document.to_markdown())


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--html", is_flag=True, help="Print the final surface markup instead of Markdown")
@click.pass_context
def replay(ctx: click.Context, file: Path, script: Path, html: bool):
    """
    Apply a YAML script of edits to a Markdown file and print the result.

    The file itself is left untouched.

    Examples:
        blockmark replay notes.md edits.yaml
        blockmark replay notes.md edits.yaml --html
    """
    config = ctx.obj["config"]
    document = load_document(file, config)

    try:
        editor = run_script(open_session(document, config), load_script(script))
    except ReplayError as e:
        raise click.ClickException(str(e))

    click.echo(editor.surface.root.decode() if html else editor.markdown)


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
