"""Node subcommands."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import rich_click as click

from devbao.core.errors import DevbaoError
from devbao.frontends.cli.output import (
    error_exit,
    output_json,
    output_json_or_table,
    print_exports,
    print_table,
)

base_dir_option = click.option(
    "--base-dir",
    "base_dir",
    envvar="DEVBAO_HOME",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding node state (default: ~/.local/share/devbao/nodes)",
)


def _base_dir(base_dir: Path | None) -> Path:
    from devbao.core.paths import default_base_directory

    return base_dir if base_dir is not None else default_base_directory()


def _load(name: str, base_dir: Path | None) -> Any:
    from devbao.core.node import load_node

    try:
        return load_node(name, base_dir=_base_dir(base_dir))
    except DevbaoError as e:
        error_exit(str(e))


def _build_options(
    dev: bool,
    dev_token: str,
    listen: tuple[str, ...],
    tls_cert: str | None,
    tls_key: str | None,
    storage: str,
) -> list[Any]:
    from devbao.core.options import (
        DEFAULT_ADDRESS,
        DevConfig,
        FileStorage,
        InmemStorage,
        RaftStorage,
        TCPListener,
    )

    if dev:
        return [DevConfig(token=dev_token, address=listen[0] if listen else DEFAULT_ADDRESS)]

    use_tls = bool(tls_cert and tls_key)
    opts: list[Any] = [
        TCPListener(
            address=address,
            tls_disable=not use_tls,
            tls_cert_file=tls_cert or "",
            tls_key_file=tls_key or "",
        )
        for address in (listen or (DEFAULT_ADDRESS,))
    ]

    storages = {"file": FileStorage, "raft": RaftStorage, "inmem": InmemStorage}
    opts.append(storages[storage]())
    return opts


@click.group()
def node() -> None:
    """Manage local OpenBao / Vault servers.

    Each node is one server instance with its own directory holding
    ``node.json`` (what devbao knows about it), ``config.hcl`` (for
    non-dev nodes) and the server's data.

    **Commands:**

        devbao node start     Start a node from scratch

        devbao node resume    Restart a stopped node, keeping its data

        devbao node stop      Stop a running node

        devbao node clean     Delete a node's directory

        devbao node list      List nodes

        devbao node env       Print client environment variables
    """
    pass


@node.command("start")
@click.argument("name", default="")
@click.option(
    "--type",
    "-t",
    "node_type",
    type=click.Choice(["", "bao", "vault"]),
    default="",
    help="Server product (default: whichever is installed)",
)
@click.option("--dev", is_flag=True, help="Run an in-memory, auto-unsealed dev server")
@click.option("--dev-token", default="", help="Root token for dev servers (default: devroot)")
@click.option("--listen", "-l", multiple=True, help="Listener address host:port (repeatable)")
@click.option("--tls-cert", default=None, help="TLS certificate file for listeners")
@click.option("--tls-key", default=None, help="TLS key file for listeners")
@click.option(
    "--storage",
    type=click.Choice(["file", "raft", "inmem"]),
    default="file",
    help="Storage backend for non-dev servers",
)
@base_dir_option
def node_start(
    name: str,
    node_type: str,
    dev: bool,
    dev_token: str,
    listen: tuple[str, ...],
    tls_cert: str | None,
    tls_key: str | None,
    storage: str,
    base_dir: Path | None,
) -> None:
    """Start a node, discarding any previous run and data.

    NAME defaults to "dev" without --dev and "prod" with it.

    **Examples:**

        devbao node start --dev

        devbao node start n1 --type bao --storage raft

        devbao node start n1 --listen 127.0.0.1:8300 --listen 0.0.0.0:8400
    """
    from devbao.core.node import build_node

    opts = _build_options(dev, dev_token, listen, tls_cert, tls_key, storage)

    try:
        n = build_node(name, node_type, *opts, base_dir=_base_dir(base_dir))
        n.start()
    except DevbaoError as e:
        error_exit(str(e))

    pid = n.exec.pid if n.exec is not None else 0
    click.echo(f"Started node '{n.name}' (pid {pid}) at {n.get_connect_addr()}")


@node.command("resume")
@click.argument("name")
@base_dir_option
def node_resume(name: str, base_dir: Path | None) -> None:
    """Relaunch a node using its existing directory and data."""
    n = _load(name, base_dir)

    try:
        n.resume()
    except DevbaoError as e:
        error_exit(str(e))

    pid = n.exec.pid if n.exec is not None else 0
    click.echo(f"Resumed node '{n.name}' (pid {pid}) at {n.get_connect_addr()}")


@node.command("stop")
@click.argument("name")
@base_dir_option
def node_stop(name: str, base_dir: Path | None) -> None:
    """Stop a node's server process. Its directory is kept."""
    n = _load(name, base_dir)

    try:
        n.kill()
    except DevbaoError as e:
        error_exit(str(e))

    click.echo(f"Stopped node '{name}'")


@node.command("clean")
@click.argument("name")
@base_dir_option
def node_clean(name: str, base_dir: Path | None) -> None:
    """Stop a node if it is running and delete its directory."""
    from devbao.core.node import Node
    from devbao.core.validation import validate_name

    try:
        validate_name(name)
    except ValueError as e:
        error_exit(str(e))

    n = Node(name=name, base_dir=_base_dir(base_dir))
    try:
        n.kill()
    except DevbaoError:
        pass

    try:
        n.clean()
    except DevbaoError as e:
        error_exit(str(e))

    click.echo(f"Removed node '{name}'")


@node.command("list")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@base_dir_option
def node_list(json_output: bool, base_dir: Path | None) -> None:
    """List known nodes and whether they are running."""
    from devbao.core.node import list_nodes, load_node

    base = _base_dir(base_dir)
    try:
        names = list_nodes(base)
    except DevbaoError as e:
        error_exit(str(e))

    infos = []
    for name in names:
        try:
            n = load_node(name, base_dir=base)
        except DevbaoError:
            infos.append({"name": name, "type": "?", "state": "invalid", "address": ""})
            continue
        infos.append(
            {
                "name": n.name,
                "type": n.type or "default",
                "state": "running" if n.is_running() else "stopped",
                "address": n.get_connect_addr(),
            }
        )

    def show_table() -> None:
        if not infos:
            click.echo(f"No nodes in {base}")
            return
        rows = [[i["name"], i["type"], i["state"], i["address"]] for i in infos]
        print_table(["NAME", "TYPE", "STATE", "ADDRESS"], rows, widths=[20, 10, 10, 30])

    output_json_or_table(infos, json_output, show_table)


@node.command("show")
@click.argument("name")
@base_dir_option
def node_show(name: str, base_dir: Path | None) -> None:
    """Print a node's snapshot as JSON."""
    n = _load(name, base_dir)
    output_json(n.to_dict())


@node.command("env")
@click.argument("name")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@base_dir_option
def node_env(name: str, json_output: bool, base_dir: Path | None) -> None:
    """Print environment variables for pointing a client at NAME.

    **Example:**

        eval "$(devbao node env dev)"
    """
    n = _load(name, base_dir)
    env = n.get_env()
    if json_output:
        output_json(env)
    else:
        print_exports(env)


@node.command("status")
@click.argument("name")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@base_dir_option
def node_status(name: str, json_output: bool, base_dir: Path | None) -> None:
    """Show process state and the server's health."""
    n = _load(name, base_dir)

    async def run() -> dict[str, Any]:
        info: dict[str, Any] = {
            "name": n.name,
            "running": n.is_running(),
            "pid": n.exec.pid if n.exec is not None else 0,
            "address": n.get_connect_addr(),
        }
        if info["running"]:
            async with n.get_client() as client:
                try:
                    info["health"] = await client.health()
                except DevbaoError as e:
                    info["health_error"] = str(e)
        return info

    info = asyncio.run(run())

    def show() -> None:
        state = "running" if info["running"] else "stopped"
        click.echo(f"Node:    {info['name']}")
        click.echo(f"State:   {state} (pid {info['pid']})")
        click.echo(f"Address: {info['address']}")
        health = info.get("health")
        if health is not None:
            click.echo(f"Initialized: {health.get('initialized')}")
            click.echo(f"Sealed:      {health.get('sealed')}")
        elif "health_error" in info:
            click.echo(f"Health:  {info['health_error']}")

    output_json_or_table(info, json_output, show)


@node.command("init")
@click.argument("name")
@click.option("--shares", default=1, help="Number of unseal key shares")
@click.option("--threshold", default=1, help="Shares required to unseal")
@click.option("--no-unseal", "no_unseal", is_flag=True, help="Do not unseal after init")
@base_dir_option
def node_init(
    name: str, shares: int, threshold: int, no_unseal: bool, base_dir: Path | None
) -> None:
    """Initialize a non-dev node and unseal it with the new keys.

    Prints the unseal keys and root token as JSON.
    """
    n = _load(name, base_dir)

    async def run() -> dict[str, Any]:
        async with n.get_client() as client:
            result = await client.initialize(shares=shares, threshold=threshold)
            if not no_unseal:
                for key in result.get("keys", [])[:threshold]:
                    await client.unseal(key)
            return result

    try:
        result = asyncio.run(run())
    except (DevbaoError, ValueError) as e:
        error_exit(str(e))

    output_json(
        {
            "keys": result.get("keys", []),
            "root_token": result.get("root_token", ""),
        }
    )


@node.command("unseal")
@click.argument("name")
@click.argument("keys", nargs=-1, required=True)
@base_dir_option
def node_unseal(name: str, keys: tuple[str, ...], base_dir: Path | None) -> None:
    """Submit unseal key shares to a node."""
    n = _load(name, base_dir)

    async def run() -> dict[str, Any]:
        status: dict[str, Any] = {}
        async with n.get_client() as client:
            for key in keys:
                status = await client.unseal(key)
        return status

    try:
        status = asyncio.run(run())
    except DevbaoError as e:
        error_exit(str(e))

    sealed = status.get("sealed", True)
    click.echo(f"Sealed: {sealed} ({status.get('progress', 0)}/{status.get('t', '?')})")
