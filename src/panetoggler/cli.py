"""
Command-line pipe client for panetoggler
"""

import json

import httpx
import typer
from rich.console import Console
from rich.table import Table

from panetoggler import config
from panetoggler.toggler.types import CloseRequest, OpenRequest, ToggleRequest

app = typer.Typer(help="Open, close and toggle named command panes")
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    url: str = typer.Option(
        config.SERVER_URL, "--url", envvar="PANETOGGLER_URL", help="panetoggler server URL"
    ),
):
    """
    panetoggler - named command panes for tmux

    [bold]Examples:[/bold]

        [cyan]panetoggler serve[/cyan]

        [cyan]panetoggler toggle logs -- tail -f app.log[/cyan]

        [cyan]panetoggler close logs[/cyan]
    """
    ctx.obj = {"url": url.rstrip("/")}


def send_pipe(url: str, name: str, payload: str) -> str:
    """Send one pipe request and wait for its single response body"""
    response = httpx.post(
        f"{url}/api/pipe/{name}",
        content=payload.encode(),
        headers={"Content-Type": "application/json"},
        timeout=config.CLIENT_TIMEOUT,
    )
    response.raise_for_status()
    return response.text


def _run_pipe(ctx: typer.Context, name: str, payload: str) -> None:
    try:
        body = send_pipe(ctx.obj["url"], name, payload)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(2)

    typer.echo(body)
    try:
        ok = json.loads(body).get("ok", False)
    except (ValueError, AttributeError):
        ok = False
    if not ok:
        raise typer.Exit(1)


@app.command("open")
def open_pane(
    ctx: typer.Context,
    pane_id: str = typer.Argument(..., help="Logical pane name"),
    cmd: str = typer.Argument(..., help="Command to run"),
    args: list[str] | None = typer.Argument(None, help="Command arguments (put -- before options)"),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory"),
):
    """Open a named pane"""
    request = OpenRequest(pane_id=pane_id, cmd=cmd, args=args or [], cwd=cwd)
    _run_pipe(ctx, config.PIPE_OPEN, request.model_dump_json(exclude_none=True))


@app.command()
def close(
    ctx: typer.Context,
    pane_id: str = typer.Argument(..., help="Logical pane name"),
):
    """Close a named pane"""
    _run_pipe(ctx, config.PIPE_CLOSE, CloseRequest(pane_id=pane_id).model_dump_json())


@app.command()
def toggle(
    ctx: typer.Context,
    pane_id: str = typer.Argument(..., help="Logical pane name"),
    cmd: str = typer.Argument(..., help="Command to run when opening"),
    args: list[str] | None = typer.Argument(None, help="Command arguments (put -- before options)"),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory"),
):
    """Open the pane if absent, close it if open"""
    request = ToggleRequest(pane_id=pane_id, cmd=cmd, args=args or [], cwd=cwd)
    _run_pipe(ctx, config.PIPE_TOGGLE, request.model_dump_json(exclude_none=True))


@app.command()
def pipe(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Pipe name (e.g. toggler::open)"),
    payload: str = typer.Argument("", help="Raw JSON payload"),
):
    """Send a raw pipe request"""
    _run_pipe(ctx, name, payload)


@app.command()
def status(ctx: typer.Context):
    """Show tracked panes"""
    try:
        response = httpx.get(f"{ctx.obj['url']}/api/status", timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(2)

    data = response.json()
    panes = data.get("panes", {})
    if not panes:
        console.print("[yellow]No tracked panes[/yellow]")
        return

    table = Table(title=f"Panes ({data.get('host', '?')})")
    table.add_column("Pane", style="cyan")
    table.add_column("State")
    table.add_column("Handle", justify="right")
    table.add_column("Toggle")

    colors = {"opening": "yellow", "opened": "green", "closing": "magenta"}
    for pane_id, info in sorted(panes.items()):
        state = info.get("state", "")
        handle = info.get("host_pane_id")
        table.add_row(
            pane_id,
            f"[{colors.get(state, 'white')}]{state}[/]",
            f"%{handle}" if handle is not None else "-",
            "yes" if info.get("is_toggle") else "",
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(config.HOST, "--host", help="Listen address"),
    port: int = typer.Option(config.PORT, "--port", help="Listen port"),
):
    """Run the panetoggler server"""
    from panetoggler.web.app import main as run_server

    run_server(host, port)


if __name__ == "__main__":
    app()
