"""seigate CLI"""

import json
import sys
from pathlib import Path

import click
import requests

from seigate.client import DEFAULT_URL, GatewayClient
from seigate.server import start_server_from_config


@click.group()
def cli():
    """seigate - session gateway for Sei blockchain operations"""
    pass


@cli.command()
@click.option("--config", default=None, help="Config file path")
@click.option("--host", default=None, help="Override server.host")
@click.option("--port", default=None, type=int, help="Override server.port")
@click.option("--log-level", default="info", help="Log level")
def serve(config, host, port, log_level):
    """Start the gateway server"""
    if config is not None and not Path(config).exists():
        click.echo(f"Error: Config file not found: {config}", err=True)
        sys.exit(1)

    start_server_from_config(config, host=host, port=port, log_level=log_level)


@cli.command()
@click.argument("method")
@click.option("--params", default="{}", help="JSON object of call parameters")
@click.option("--url", default=DEFAULT_URL, help="Gateway base URL")
def call(method, params, url):
    """Invoke a backend operation through the call endpoint"""
    try:
        parsed = json.loads(params)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--params")

    try:
        response = GatewayClient(url).call(method, parsed)
    except requests.RequestException as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(response, indent=2))
    if "error" in response:
        sys.exit(2)


@cli.command()
@click.option("--url", default=DEFAULT_URL, help="Gateway base URL")
def health(url):
    """Show server health and active sessions"""
    try:
        click.echo(json.dumps(GatewayClient(url).health(), indent=2))
    except requests.RequestException as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
