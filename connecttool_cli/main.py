from __future__ import annotations

import contextlib
import io
import sys
from typing import Any

import click
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from .cli_shared import (
    CALL_TIMEOUT_SECONDS,
    CONNECTTOOL_SOCKET,
    Deadline,
    GlobalOpts,
    OpError,
    UsageError,
    _eprint,
    _print_json,
    host_platform,
    resolve_socket_path,
)
from .commands import COMMANDS, Command, CommandInvocation, execute, response_document
from .service_client import open_client

PROG_NAME = "connecttoolcli"

_ERROR_CONSOLE = Console(stderr=True)
_NOTE_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", highlight=False, soft_wrap=True)


def _note(msg: str) -> None:
    _NOTE_CONSOLE.print(msg, style="dim", markup=False, highlight=False, soft_wrap=True)


def _bootstrap_env() -> None:
    # Package defaults: discover .env without overriding exported variables.
    load_dotenv()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit(code=0)


# Tokens after a command's own arguments are ignored.
_TRAILING_ARGS = {"allow_extra_args": True, "ignore_unknown_options": True}

app = typer.Typer(
    name=PROG_NAME,
    help="Control a running ConnectTool lobby/VPN service over its local socket.",
    add_completion=False,
)


def _apply_global_env(*, socket: str | None, json_output: bool, verbose: bool) -> GlobalOpts:
    return GlobalOpts(
        socket_path=resolve_socket_path(socket, host=host_platform()),
        json_output=json_output,
        verbose=verbose,
        timeout_seconds=CALL_TIMEOUT_SECONDS,
    )


@app.callback()
def app_callback(
    ctx: typer.Context,
    socket: str | None = typer.Option(
        None,
        "--socket",
        help=(
            "Path to the service unix domain socket "
            f"(default: /tmp/connect_tool.sock, connect_tool.sock on Windows; env override: {CONNECTTOOL_SOCKET})"
        ),
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit the raw response as JSON"),
    verbose: bool = typer.Option(False, "--verbose", help="Log connection details to stderr"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    ctx.obj = {"g": _apply_global_env(socket=socket, json_output=json_output, verbose=verbose)}


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    return ctx.obj["g"]


def _emit(g: GlobalOpts, command: Command, resp: Any) -> None:
    if g.json_output:
        _print_json(response_document(command, resp))
        return
    for line in COMMANDS[command].render(resp):
        sys.stdout.write(line + "\n")


def _invoke(ctx: typer.Context, command: Command, *args: str) -> None:
    g = _ctx_global(ctx)
    deadline = Deadline.after(g.timeout_seconds)
    invocation = CommandInvocation(command=command, args=tuple(args), socket_path=g.socket_path)
    with open_client(invocation.socket_path, on_event=_note if g.verbose else None) as client:
        resp = execute(client, invocation, deadline=deadline)
    _emit(g, command, resp)


@app.command("create", help=COMMANDS[Command.CREATE].summary, context_settings=_TRAILING_ARGS)
def create(ctx: typer.Context) -> None:
    _invoke(ctx, Command.CREATE)


@app.command("join", help=COMMANDS[Command.JOIN].summary, context_settings=_TRAILING_ARGS)
def join(
    ctx: typer.Context,
    lobby_id: str = typer.Argument(..., help="Lobby id to join"),
) -> None:
    _invoke(ctx, Command.JOIN, lobby_id)


@app.command("leave", help=COMMANDS[Command.LEAVE].summary, context_settings=_TRAILING_ARGS)
def leave(ctx: typer.Context) -> None:
    _invoke(ctx, Command.LEAVE)


@app.command("info", help=COMMANDS[Command.INFO].summary, context_settings=_TRAILING_ARGS)
def info(ctx: typer.Context) -> None:
    _invoke(ctx, Command.INFO)


@app.command("friends", help=COMMANDS[Command.FRIENDS].summary, context_settings=_TRAILING_ARGS)
def friends(ctx: typer.Context) -> None:
    _invoke(ctx, Command.FRIENDS)


@app.command("invite", help=COMMANDS[Command.INVITE].summary, context_settings=_TRAILING_ARGS)
def invite(
    ctx: typer.Context,
    friend_id: str = typer.Argument(..., help="Steam id of the friend to invite"),
) -> None:
    _invoke(ctx, Command.INVITE, friend_id)


@app.command("vpn-status", help=COMMANDS[Command.VPN_STATUS].summary, context_settings=_TRAILING_ARGS)
def vpn_status(ctx: typer.Context) -> None:
    _invoke(ctx, Command.VPN_STATUS)


@app.command("vpn-routes", help=COMMANDS[Command.VPN_ROUTES].summary, context_settings=_TRAILING_ARGS)
def vpn_routes(ctx: typer.Context) -> None:
    _invoke(ctx, Command.VPN_ROUTES)


def _root_help_text() -> str:
    buf = io.StringIO()
    try:
        with contextlib.redirect_stdout(buf):
            try:
                app(args=["--help"], prog_name=PROG_NAME, standalone_mode=False)
            except (typer.Exit, click.ClickException):
                pass
    except Exception:
        return ""
    return str(buf.getvalue() or "").strip()


def _render_usage_error_with_help(*, message: str) -> None:
    _rich_error(message)
    help_text = _root_help_text()
    if help_text:
        _eprint("")
        _eprint(help_text)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        _bootstrap_env()
        result = app(args=argv, prog_name=PROG_NAME, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.UsageError as e:
        _render_usage_error_with_help(message=e.format_message())
        return 1
    except click.ClickException as e:
        _rich_error(e.format_message())
        return 1
    except UsageError as e:
        _render_usage_error_with_help(message=str(e))
        return 1
    except OpError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
