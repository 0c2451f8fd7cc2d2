"""treebridge CLI.

Runs the daemon, records the working directory, performs the folder grant
and exposes the scoped-storage bridge operations for scripting.
"""

import logging
import sys
from pathlib import Path

import click

from treebridge_library.config import BridgeSettings
from treebridge_library.config import load_config
from treebridge_library.models import CopyResult
from treebridge_library.models import ExistenceState
from treebridge_library.scoped import LocalContentTree
from treebridge_library.scoped import ScopedStorageBridge
from treebridge_library.storage import get_working_dir_file
from treebridge_library.storage import read_working_dir
from treebridge_library.storage import write_working_dir

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


def build_content_tree(settings: BridgeSettings) -> LocalContentTree:
    """Create the content tree described by settings."""
    return LocalContentTree(
        authority=settings.content_authority,
        volumes={settings.storage_volume: Path(settings.storage_volume_path)},
    )


def scoped_path(root: str, path: str) -> str:
    """Turn a CLI path relative to the scoped root into an application path."""
    if path.startswith(root):
        return path
    relative = path.strip("/")
    return f"{root}/{relative}" if relative else root


class BridgeContext:
    """Settings plus a lazily built bridge, shared by subcommands."""

    def __init__(self, settings: BridgeSettings, root: str | None) -> None:
        self.settings = settings
        self.root = root
        self._bridge: ScopedStorageBridge | None = None

    @property
    def bridge(self) -> ScopedStorageBridge:
        if self.root is None:
            click.echo("Error: no scoped root; run `treebridge grant DIR` and pass --root", err=True)
            sys.exit(1)
        if self._bridge is None:
            self._bridge = ScopedStorageBridge(build_content_tree(self.settings), self.root)
        return self._bridge

    def path(self, path: str) -> str:
        return scoped_path(self.bridge.scoped_root, path)


pass_bridge = click.make_pass_decorator(BridgeContext)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: from configuration)")
@click.option(
    "--root",
    envvar="TREEBRIDGE_SCOPED_ROOT",
    default=None,
    help="Scoped root address returned by `grant`",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, root: str | None):
    """treebridge - document-tree provider and scoped-storage bridge."""
    settings = load_config()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = BridgeContext(settings, root or settings.scoped_root)


@cli.command()
def serve():
    """Run the HTTP daemon in the foreground."""
    from .__main__ import main

    main()


@cli.command()
@click.argument("directory", required=False, type=click.Path(file_okay=False, path_type=Path))
def workdir(directory: Path | None):
    """Show the working directory, or set it to DIRECTORY."""
    if directory is None:
        current = read_working_dir()
        if current is None:
            click.echo(f"No working directory set ({get_working_dir_file()})", err=True)
            sys.exit(1)
        click.echo(str(current))
        return

    try:
        write_working_dir(directory)
    except OSError as e:
        click.echo(f"Error: cannot write working directory file: {e}", err=True)
        sys.exit(1)
    click.echo(f"Working directory set to {directory.expanduser().resolve()}")


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--workdir/--no-workdir", "set_workdir", default=True, help="Also record DIRECTORY as the working directory")
@pass_bridge
def grant(ctx: BridgeContext, directory: Path, set_workdir: bool):
    """Grant DIRECTORY and print its scoped root address."""
    tree = build_content_tree(ctx.settings)
    try:
        address = tree.grant(directory)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if set_workdir:
        try:
            write_working_dir(directory)
        except OSError as e:
            click.echo(f"Error: cannot write working directory file: {e}", err=True)
            sys.exit(1)
    click.echo(address)


@cli.command()
@pass_bridge
def access(ctx: BridgeContext):
    """Check that the scoped root is still accessible."""
    if ctx.bridge.has_access():
        click.echo("access granted")
    else:
        click.echo("no access", err=True)
        sys.exit(1)


@cli.command()
@click.argument("path")
@pass_bridge
def stat(ctx: BridgeContext, path: str):
    """Print none, file or folder for PATH."""
    state = ctx.bridge.exists(ctx.path(path))
    click.echo(state.value)
    if state is ExistenceState.NONE:
        sys.exit(1)


@cli.command(name="ls")
@click.argument("path", default="")
@pass_bridge
def list_folder(ctx: BridgeContext, path: str):
    """List PATH; directories end with '/'."""
    for name in sorted(ctx.bridge.list_folder(ctx.path(path))):
        click.echo(name)


@cli.command()
@click.argument("path")
@pass_bridge
def mkdir(ctx: BridgeContext, path: str):
    """Create the directory PATH (its parent must exist)."""
    if not ctx.bridge.create_directory(ctx.path(path)):
        click.echo(f"Error: cannot create directory {path}", err=True)
        sys.exit(1)


@cli.command(name="rm")
@click.argument("path")
@pass_bridge
def remove(ctx: BridgeContext, path: str):
    """Delete PATH."""
    if not ctx.bridge.remove(ctx.path(path)):
        click.echo(f"Error: cannot remove {path}", err=True)
        sys.exit(1)


@cli.command(name="cp")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("dest_dir")
@pass_bridge
def copy(ctx: BridgeContext, source: Path, dest_dir: str):
    """Copy SOURCE into DEST_DIR, keeping an existing file of the same name."""
    result = ctx.bridge.copy_file(source, ctx.path(dest_dir))
    click.echo(result.value)
    if result is CopyResult.FAILED:
        sys.exit(1)


@cli.command()
@click.argument("path")
@pass_bridge
def cat(ctx: BridgeContext, path: str):
    """Write the contents of PATH to stdout."""
    fd = ctx.bridge.open_file(ctx.path(path), "r")
    if fd < 0:
        click.echo(f"Error: cannot open {path}", err=True)
        sys.exit(1)

    out = click.get_binary_stream("stdout")
    with open(fd, "rb") as f:
        while chunk := f.read(READ_CHUNK_SIZE):
            out.write(chunk)


@cli.command()
@click.argument("path")
@click.option("--append", is_flag=True, help="Append instead of truncating")
@pass_bridge
def put(ctx: BridgeContext, path: str, append: bool):
    """Write stdin to PATH, creating it if needed."""
    fd = ctx.bridge.open_file(ctx.path(path), "wa" if append else "w")
    if fd < 0:
        click.echo(f"Error: cannot open {path} for writing", err=True)
        sys.exit(1)

    source = click.get_binary_stream("stdin")
    with open(fd, "wb") as f:
        while chunk := source.read(READ_CHUNK_SIZE):
            f.write(chunk)


if __name__ == "__main__":
    cli()
