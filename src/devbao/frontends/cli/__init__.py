"""CLI frontend for devbao.

Commands:
    devbao node start     Start a node from scratch
    devbao node stop      Stop a node
    devbao node env       Print client environment variables

Example:
    $ devbao node start --dev
    $ eval "$(devbao node env dev)"
    $ devbao node stop dev
"""

from devbao.frontends.cli.main import cli, main

__all__ = ["cli", "main"]
