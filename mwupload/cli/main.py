"""mwupload CLI - Main commands."""
import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

from mwupload import (
    APIConfig,
    Environment,
    ProxyConfig,
    SSLConfig,
    UploadError,
    MWAPIError,
    WikiClient,
)

app = typer.Typer(
    name="mwupload",
    help="Upload files to a MediaWiki wiki",
    add_completion=False
)
console = Console()

EndpointOption = typer.Option(
    ..., "--endpoint", "-e", envvar="MWUPLOAD_ENDPOINT", help="URL of the wiki's api.php"
)
UsernameOption = typer.Option(
    None, "--username", "-u", envvar="MWUPLOAD_USERNAME", help="Bot password user name"
)
PasswordOption = typer.Option(
    None, "--password", "-p", envvar="MWUPLOAD_PASSWORD", help="Bot password"
)
ProxyOption = typer.Option(
    None, "--proxy", envvar="MWUPLOAD_PROXY", help="HTTP proxy URL for all requests"
)
InsecureOption = typer.Option(
    False, "--insecure", help="Skip TLS certificate verification"
)
LegacyOption = typer.Option(
    False, "--legacy", help="Submit through a hidden frame"
)


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def _make_client(
    endpoint: str,
    legacy: bool,
    proxy: Optional[str] = None,
    insecure: bool = False
) -> WikiClient:
    config = APIConfig.for_endpoint(
        endpoint,
        proxy=ProxyConfig(proxy) if proxy else None,
        ssl=SSLConfig(verify=not insecure)
    )
    environment = Environment.legacy() if legacy else Environment.default()
    return WikiClient(config=config, environment=environment)


async def _login(wiki: WikiClient, username: Optional[str], password: Optional[str]) -> None:
    if not username:
        return
    if not password:
        password = typer.prompt("Password", hide_input=True)
    await wiki.login(username, password)
    console.print(f"[green]Logged in as {username}[/green]")


def _print_result(result: Any) -> None:
    if isinstance(result, dict):
        console.print_json(json.dumps(result))
    else:
        console.print(result)


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    endpoint: str = EndpointOption,
    username: Optional[str] = UsernameOption,
    password: Optional[str] = PasswordOption,
    filename: str = typer.Option(None, "--filename", "-f", help="Target file name"),
    comment: str = typer.Option(None, "--comment", "-c", help="Upload summary"),
    text: str = typer.Option(None, "--text", "-t", help="Initial page text"),
    watchlist: str = typer.Option(None, "--watchlist", help="watch, nochange, preferences or unwatch"),
    ignore_warnings: bool = typer.Option(False, "--ignore-warnings", help="Upload despite warnings"),
    legacy: bool = LegacyOption,
    proxy: Optional[str] = ProxyOption,
    insecure: bool = InsecureOption,
):
    """Upload a file."""

    async def do_upload():
        async with _make_client(endpoint, legacy, proxy, insecure) as wiki:
            try:
                await _login(wiki, username, password)

                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    console=console
                ) as progress:
                    task = progress.add_task(f"Uploading {file_path.name}", total=100)

                    def on_progress(fraction: float):
                        progress.update(task, completed=fraction * 100)

                    result = await wiki.upload(
                        file_path,
                        filename=filename,
                        comment=comment,
                        text=text,
                        watchlist=watchlist,
                        ignore_warnings=ignore_warnings,
                        progress_callback=on_progress,
                    )
            except (UploadError, MWAPIError) as e:
                console.print(f"[red]Upload failed: {escape(str(e))}[/red]")
                raise typer.Exit(1)

        console.print(f"[green]Uploaded:[/green] {filename or file_path.name}")
        _print_result(result)

    run_async(do_upload())


@app.command()
def stash(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    endpoint: str = EndpointOption,
    username: Optional[str] = UsernameOption,
    password: Optional[str] = PasswordOption,
    filename: str = typer.Option(None, "--filename", "-f", help="File name for the stash upload"),
    final_filename: str = typer.Option(None, "--final-filename", "-F", help="File name to finish with"),
    comment: str = typer.Option(None, "--comment", "-c", help="Upload summary"),
    text: str = typer.Option(None, "--text", "-t", help="Initial page text"),
    legacy: bool = LegacyOption,
    proxy: Optional[str] = ProxyOption,
    insecure: bool = InsecureOption,
):
    """Upload a file to the stash, then finish it."""

    async def do_stash():
        async with _make_client(endpoint, legacy, proxy, insecure) as wiki:
            try:
                await _login(wiki, username, password)

                finish = await wiki.upload_to_stash(
                    file_path,
                    filename=filename,
                    comment=comment,
                    text=text,
                )
                console.print(f"[cyan]Stashed as {finish.filekey}[/cyan]")

                more = {'filename': final_filename} if final_filename else {}
                result = await finish(more)
            except (UploadError, MWAPIError) as e:
                console.print(f"[red]Stash upload failed: {escape(str(e))}[/red]")
                raise typer.Exit(1)

        console.print("[green]Upload finished[/green]")
        _print_result(result)

    run_async(do_stash())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
