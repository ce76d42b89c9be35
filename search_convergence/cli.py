"""
Command Line Interface for search convergence checks
"""
import asyncio
import json
import sys
import click
from search_convergence.core.config import Config
from search_convergence.core.errors import ConfigurationError, ConvergenceError
from search_convergence.core.models import SearchServiceProperties
from search_convergence.search.client import SearchClient
from search_convergence.search.endpoints import get_search_urls_for_polling
from search_convergence.utils.logger import get_logger, setup_logging

logger = get_logger("search_convergence.cli")


def _load_config(ctx) -> Config:
    config_file = ctx.obj.get('config_file')
    if config_file:
        return Config.load_from_file(config_file)
    return Config.from_env()


def _make_client(ctx) -> SearchClient:
    try:
        return SearchClient.from_config(_load_config(ctx))
    except (ConfigurationError, OSError, ValueError) as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


def _run(coroutine):
    """Run a command coroutine and turn failures into exit status 1"""
    try:
        return asyncio.run(coroutine)
    except ConvergenceError as e:
        click.echo(f"Convergence check failed: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option('--config', '-c', help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """Search convergence checks"""
    setup_logging('DEBUG' if verbose else 'INFO')

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config


@cli.command()
@click.pass_context
def services(ctx):
    """List the search services currently in effect and their replica URLs"""
    client = _make_client(ctx)
    search_services = _run(client.get_search_services())

    click.echo(f"Search services ({len(search_services)}):")
    for service in search_services:
        click.echo(f"  {service.uri} ({service.instance_count} instances)")
        for url in get_search_urls_for_polling(service):
            click.echo(f"    - {url}")


@cli.command('wait-package')
@click.argument('package_id')
@click.argument('version')
@click.pass_context
def wait_package(ctx, package_id, version):
    """Wait until a package version is available on every search replica"""
    client = _make_client(ctx)
    outcomes = _run(client.wait_for_package(package_id, version))
    click.echo(f"Package {package_id} {version} is available on {len(outcomes)} replicas")


@cli.command('wait-listed')
@click.argument('package_id')
@click.argument('version')
@click.option('--listed/--unlisted', default=True, help='Listed state to wait for')
@click.pass_context
def wait_listed(ctx, package_id, version, listed):
    """Wait until every search replica shows a package version as listed or unlisted"""
    client = _make_client(ctx)
    outcomes = _run(client.wait_for_listed_state(package_id, version, listed))
    state = "listed" if listed else "unlisted"
    click.echo(f"Package {package_id} {version} is {state} on {len(outcomes)} replicas")


@cli.command()
@click.argument('service_url')
@click.argument('query_string')
@click.pass_context
def query(ctx, service_url, query_string):
    """Run a v3 search query against one search service"""
    client = _make_client(ctx)
    service = SearchServiceProperties(uri=service_url, instance_count=1)
    response = _run(client.query_v3(service, query_string))
    click.echo(json.dumps(response.model_dump(mode='json', by_alias=True), indent=2))


@cli.command()
@click.argument('service_url')
@click.argument('package_id')
@click.option('--versions', is_flag=True, help='Autocomplete versions of the package instead of IDs')
@click.option('--prerelease', is_flag=True, help='Include prerelease versions')
@click.option('--semver-level', default=None, help='SemVer level, for example 2.0.0')
@click.pass_context
def autocomplete(ctx, service_url, package_id, versions, prerelease, semver_level):
    """Autocomplete package IDs or versions against one search service"""
    client = _make_client(ctx)
    service = SearchServiceProperties(uri=service_url, instance_count=1)

    if versions:
        coroutine = client.autocomplete_package_versions(service, package_id, prerelease, semver_level)
    else:
        coroutine = client.autocomplete_package_ids(service, package_id, prerelease, semver_level)

    response = _run(coroutine)
    click.echo(f"Total hits: {response.total_hits}")
    for item in response.data:
        click.echo(f"  {item}")


@cli.command('init-config')
@click.option('--output', '-o', default='search_convergence.json', help='Output configuration file')
def init_config(output):
    """Initialize a configuration file with default settings"""
    Config().save_to_file(output)
    click.echo(f"Configuration file created: {output}")
    click.echo("Edit the file to customize settings, then use:")
    click.echo(f"  search-convergence --config {output} services")


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
