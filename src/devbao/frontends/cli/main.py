"""CLI entry point."""

from __future__ import annotations

import rich_click as click

from devbao.frontends.cli.node import node

# Configure rich-click styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
click.rich_click.ERRORS_EPILOGUE = ""
click.rich_click.MAX_WIDTH = 100


@click.group()
@click.version_option(package_name="devbao")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (default: $DEVBAO_LOG_LEVEL or WARNING)",
)
def cli(log_level: str | None) -> None:
    """devbao - local OpenBao and Vault servers for development.

    **Quick start:**

        devbao node start dev --dev

        eval "$(devbao node env dev)"

        devbao node stop dev
    """
    from devbao.core.logging_config import configure_logging

    configure_logging(level=log_level)


cli.add_command(node)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
