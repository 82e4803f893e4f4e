"""Control client for the mock provider server.

A Python client and CLI for steering the mock server: register guilds and
worlds, switch sources off and revoke tokens.
"""

import asyncio
from typing import Any, Dict, List, Optional

import click
import httpx
import structlog

logger = structlog.get_logger()


class MockProviderControlClient:
    """Client for controlling the mock provider server."""

    def __init__(self, base_url: str = "http://localhost:8090"):
        self.base_url = base_url
        self.control_url = f"{base_url}/control"

    async def create_world(self, name: str, **fields: Any) -> Dict[str, Any]:
        """Register a mock world."""
        async with httpx.AsyncClient() as client:
            response = await client.post(f"{self.control_url}/worlds", json={"name": name, **fields})
            response.raise_for_status()
            return response.json()

    async def create_guild(
        self,
        name: str,
        world: str = "Antica",
        players_online: int = 12,
        members_total: int = 40,
        founded: str = "2020-01-15",
        description: str = "A mock guild.",
    ) -> Dict[str, Any]:
        """Register a mock guild."""
        async with httpx.AsyncClient() as client:
            data = {
                "name": name,
                "world": world,
                "players_online": players_online,
                "members_total": members_total,
                "founded": founded,
                "description": description,
            }
            response = await client.post(f"{self.control_url}/guilds", json=data)
            response.raise_for_status()
            return response.json()

    async def update_settings(
        self,
        request_delay: Optional[float] = None,
        failing_sources: Optional[List[str]] = None,
        reject_all_tokens: Optional[bool] = None,
        token_expires_in: Optional[int] = None,
        world_changes: Optional[List[Any]] = None,
    ) -> Dict[str, Any]:
        """Update server settings."""
        async with httpx.AsyncClient() as client:
            data: Dict[str, Any] = {}
            if request_delay is not None:
                data["request_delay"] = request_delay
            if failing_sources is not None:
                data["failing_sources"] = failing_sources
            if reject_all_tokens is not None:
                data["reject_all_tokens"] = reject_all_tokens
            if token_expires_in is not None:
                data["token_expires_in"] = token_expires_in
            if world_changes is not None:
                data["world_changes"] = world_changes

            response = await client.put(f"{self.control_url}/settings", json=data)
            response.raise_for_status()
            return response.json()

    async def revoke_tokens(self) -> Dict[str, Any]:
        """Invalidate every issued token."""
        async with httpx.AsyncClient() as client:
            response = await client.post(f"{self.control_url}/revoke-tokens")
            response.raise_for_status()
            return response.json()

    async def get_stats(self) -> Dict[str, Any]:
        """Call counters of the mock server."""
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{self.control_url}/stats")
            response.raise_for_status()
            return response.json()

    async def reset_server(self) -> Dict[str, Any]:
        """Reset server to initial state."""
        async with httpx.AsyncClient() as client:
            response = await client.post(f"{self.control_url}/reset")
            response.raise_for_status()
            return response.json()


class Scenarios:
    """Canned setups for manual banner checks."""

    @staticmethod
    async def healthy_guild(client: MockProviderControlClient, name: str = "Mock Guild") -> str:
        """A guild whose every source answers."""
        await client.reset_server()
        await client.create_guild(name)
        logger.info("Healthy guild ready", guild=name)
        return name

    @staticmethod
    async def degraded_sources(client: MockProviderControlClient, name: str = "Mock Guild") -> str:
        """A guild whose optional sources all fail."""
        await client.reset_server()
        await client.create_guild(name)
        await client.update_settings(
            failing_sources=["world", "boosted_boss", "npc_location", "world_events"]
        )
        logger.info("Optional sources switched off", guild=name)
        return name


# CLI Commands
@click.group()
@click.option('--server-url', default='http://localhost:8090', help='Mock server URL')
@click.pass_context
def cli(ctx, server_url):
    """Mock Provider Control CLI."""
    ctx.ensure_object(dict)
    ctx.obj['client'] = MockProviderControlClient(server_url)


@cli.command()
@click.argument('name')
@click.option('--world', default='Antica')
@click.option('--online', default=12, type=int, help='Members online')
@click.option('--total', default=40, type=int, help='Total members')
@click.option('--description', default='A mock guild.')
@click.pass_context
def create_guild(ctx, name, world, online, total, description):
    """Register a mock guild."""
    client = ctx.obj['client']
    result = asyncio.run(client.create_guild(
        name, world=world, players_online=online, members_total=total, description=description
    ))
    click.echo(f"Created guild: {result}")


@cli.command()
@click.argument('name')
@click.option('--online', default=250, type=int, help='Players online')
@click.option('--record', default=1200, type=int, help='Record players')
@click.pass_context
def create_world(ctx, name, online, record):
    """Register a mock world."""
    client = ctx.obj['client']
    result = asyncio.run(client.create_world(name, players_online=online, record_players=record))
    click.echo(f"Created world: {result}")


@cli.command()
@click.option('--delay', type=float, help='Request delay in seconds')
@click.option('--fail', 'failing', multiple=True, help='Source to fail (repeatable)')
@click.option('--reject-tokens/--accept-tokens', default=None, help='Reject every bearer token')
@click.pass_context
def settings(ctx, delay, failing, reject_tokens):
    """Update server settings."""
    client = ctx.obj['client']
    result = asyncio.run(client.update_settings(
        request_delay=delay,
        failing_sources=list(failing) if failing else None,
        reject_all_tokens=reject_tokens,
    ))
    click.echo(f"Settings updated: {result}")


@cli.command()
@click.pass_context
def revoke_tokens(ctx):
    """Invalidate every issued token."""
    client = ctx.obj['client']
    result = asyncio.run(client.revoke_tokens())
    click.echo(f"Revoked {result['revoked']} tokens")


@cli.command()
@click.pass_context
def stats(ctx):
    """Show call counters."""
    client = ctx.obj['client']
    result = asyncio.run(client.get_stats())
    click.echo(f"Logins: {result['login_count']}")
    for source, count in sorted(result['request_counts'].items()):
        click.echo(f"  {source}: {count}")


@cli.command()
@click.pass_context
def reset(ctx):
    """Reset server to initial state."""
    client = ctx.obj['client']
    asyncio.run(client.reset_server())
    click.echo("Server reset")


@cli.command()
@click.option('--degraded', is_flag=True, help='Fail every optional source')
@click.option('--guild', default='Mock Guild')
@click.pass_context
def run_scenario(ctx, degraded, guild):
    """Prepare a guild for a manual banner request."""
    client = ctx.obj['client']
    scenario = Scenarios.degraded_sources if degraded else Scenarios.healthy_guild
    name = asyncio.run(scenario(client, guild))
    click.echo(f"Scenario ready: GET /tools/guild?world=Antica&guild={name}")


if __name__ == '__main__':
    cli()
