"""Mock TibiaData and Firebot APIs for local development and testing.

One aiohttp app serves both providers so a single base URL can be used for
each client. Control endpoints under ``/control`` register guilds and worlds,
make sources fail and revoke or reject bearer tokens.
"""

import asyncio
import io
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from aiohttp import web
from PIL import Image, ImageDraw
import structlog

logger = structlog.get_logger()

FAILABLE_SOURCES = {
    "world",
    "guild",
    "boosted_boss",
    "boss_image",
    "npc_location",
    "world_events",
    "respawns",
    "login",
}


@dataclass
class MockWorld:
    """Mock world data."""
    name: str
    players_online: int = 250
    record_players: int = 1200
    location: str = "South America"
    pvp_type: str = "Open PvP"

    def to_api_response(self) -> Dict[str, Any]:
        """Convert to TibiaData world response format."""
        return {
            "world": {
                "name": self.name,
                "status": "online",
                "players_online": self.players_online,
                "record_players": self.record_players,
                "location": self.location,
                "pvp_type": self.pvp_type,
            }
        }


@dataclass
class MockGuild:
    """Mock guild data."""
    name: str
    world: str = "Antica"
    players_online: int = 12
    members_total: int = 40
    founded: str = "2020-01-15"
    description: str = "A mock guild."

    def to_api_response(self) -> Dict[str, Any]:
        """Convert to TibiaData guild response format."""
        return {
            "guild": {
                "name": self.name,
                "world": self.world,
                "players_online": self.players_online,
                "members_total": self.members_total,
                "founded": self.founded,
                "description": self.description,
            }
        }


@dataclass
class MockSettings:
    """Behaviour switches."""
    request_delay: float = 0
    failing_sources: Set[str] = field(default_factory=set)
    reject_all_tokens: bool = False
    token_expires_in: int = 3600
    boosted_boss: str = "Ferumbras"
    rashid_city: str = "Svargrond"
    world_changes: List[Any] = field(default_factory=lambda: ["Double XP", "Rashid in Svargrond"])
    respawns: List[Dict[str, Any]] = field(default_factory=lambda: [
        {"id": "1", "name": "Asura Palace", "alias": "asura", "premium": True},
        {"id": "2", "name": "Falcon Bastion", "alias": "falcon", "premium": True},
        {"id": "3", "name": "Cobra Bastion", "alias": "cobra", "premium": True},
    ])


def make_boss_icon(size: int = 64) -> bytes:
    """Small deterministic PNG used as the boss icon."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.ellipse([4, 4, size - 5, size - 5], fill=(160, 20, 20, 255))
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


class MockProviderServer:
    """Mock TibiaData + Firebot server with control endpoints."""

    def __init__(
        self,
        port: int = 8090,
        email: str = "banner@example.com",
        password: str = "secret",
    ):
        self.port = port
        self.email = email
        self.password = password
        self.app = web.Application()
        self.worlds: Dict[str, MockWorld] = {}
        self.guilds: Dict[str, MockGuild] = {}
        self.settings = MockSettings()
        self.valid_tokens: Set[str] = set()
        self.login_count = 0
        self.request_counts: Dict[str, int] = {}
        self.boss_icon = make_boss_icon()
        self.setup_routes()

    def setup_routes(self):
        """Set up all API routes."""
        # TibiaData endpoints
        self.app.router.add_get('/v4/world/{world}', self.get_world)
        self.app.router.add_get('/v4/guild/{guild}', self.get_guild)
        self.app.router.add_get('/v4/boostablebosses', self.get_boostable_bosses)
        self.app.router.add_get('/images/boss.png', self.get_boss_image)

        # Firebot endpoints
        self.app.router.add_post('/api/login', self.login)
        self.app.router.add_get('/api/gamedata/rashid', self.get_rashid)
        self.app.router.add_get('/api/gamedata/active-world-changes', self.get_world_changes)
        self.app.router.add_get('/api/respawns/list-all', self.get_respawns)

        # Control endpoints
        self.app.router.add_post('/control/worlds', self.create_world)
        self.app.router.add_post('/control/guilds', self.create_guild)
        self.app.router.add_put('/control/settings', self.update_settings)
        self.app.router.add_post('/control/revoke-tokens', self.revoke_tokens)
        self.app.router.add_get('/control/stats', self.get_stats)
        self.app.router.add_post('/control/reset', self.reset_server)

    async def _prepare(self, source: str) -> Optional[web.Response]:
        """Count the call, apply the delay, and fail if the source is switched off."""
        self.request_counts[source] = self.request_counts.get(source, 0) + 1
        if self.settings.request_delay > 0:
            await asyncio.sleep(self.settings.request_delay)
        if source in self.settings.failing_sources:
            return web.json_response({"error": f"{source} unavailable"}, status=500)
        return None

    def _check_token(self, request: web.Request) -> Optional[web.Response]:
        header = request.headers.get("Authorization", "")
        token = header[len("Bearer "):] if header.startswith("Bearer ") else ""
        if self.settings.reject_all_tokens or token not in self.valid_tokens:
            return web.json_response({"error": "Unauthorized"}, status=401)
        return None

    # TibiaData endpoints
    async def get_world(self, request: web.Request) -> web.Response:
        """Mock /v4/world/{world} endpoint."""
        if failure := await self._prepare("world"):
            return failure

        name = request.match_info['world']
        world = self.worlds.get(name.lower()) or MockWorld(name=name)
        return web.json_response(world.to_api_response())

    async def get_guild(self, request: web.Request) -> web.Response:
        """Mock /v4/guild/{guild} endpoint; unknown guilds get an empty object."""
        if failure := await self._prepare("guild"):
            return failure

        guild = self.guilds.get(request.match_info['guild'].lower())
        if guild is None:
            return web.json_response({"guild": {"name": ""}})
        return web.json_response(guild.to_api_response())

    async def get_boostable_bosses(self, request: web.Request) -> web.Response:
        """Mock /v4/boostablebosses endpoint."""
        if failure := await self._prepare("boosted_boss"):
            return failure

        image_url = str(request.url.with_path("/images/boss.png").with_query(None))
        return web.json_response({
            "boostable_bosses": {
                "boosted": {
                    "name": self.settings.boosted_boss,
                    "image_url": image_url,
                    "featured": True,
                },
                "boostable_boss_list": [],
            }
        })

    async def get_boss_image(self, request: web.Request) -> web.Response:
        """Serve the boss icon."""
        if failure := await self._prepare("boss_image"):
            return failure
        return web.Response(body=self.boss_icon, content_type="image/png")

    # Firebot endpoints
    async def login(self, request: web.Request) -> web.Response:
        """Mock /api/login endpoint."""
        self.login_count += 1
        if failure := await self._prepare("login"):
            return failure

        data = await request.json()
        if data.get("email") != self.email or data.get("password") != self.password:
            return web.json_response({"error": "Invalid credentials"}, status=401)

        token = uuid.uuid4().hex
        self.valid_tokens.add(token)
        logger.info("Issued mock token", login_count=self.login_count)
        return web.json_response({
            "access_token": token,
            "expires_in": self.settings.token_expires_in,
            "token_type": "Bearer",
        })

    async def get_rashid(self, request: web.Request) -> web.Response:
        """Mock /api/gamedata/rashid endpoint."""
        if failure := await self._prepare("npc_location"):
            return failure
        if rejected := self._check_token(request):
            return rejected
        return web.json_response({"city": self.settings.rashid_city, "date": "2024-01-01"})

    async def get_world_changes(self, request: web.Request) -> web.Response:
        """Mock /api/gamedata/active-world-changes endpoint."""
        if failure := await self._prepare("world_events"):
            return failure
        if rejected := self._check_token(request):
            return rejected
        return web.json_response(self.settings.world_changes)

    async def get_respawns(self, request: web.Request) -> web.Response:
        """Mock /api/respawns/list-all endpoint."""
        if failure := await self._prepare("respawns"):
            return failure
        if rejected := self._check_token(request):
            return rejected
        return web.json_response({"respawns": self.settings.respawns})

    # Control endpoints
    async def create_world(self, request: web.Request) -> web.Response:
        """Register a mock world."""
        data = await request.json()
        world = MockWorld(
            name=data["name"],
            players_online=data.get("players_online", 250),
            record_players=data.get("record_players", 1200),
            location=data.get("location", "South America"),
            pvp_type=data.get("pvp_type", "Open PvP"),
        )
        self.worlds[world.name.lower()] = world
        logger.info("Created mock world", name=world.name)
        return web.json_response(world.to_api_response())

    async def create_guild(self, request: web.Request) -> web.Response:
        """Register a mock guild."""
        data = await request.json()
        guild = MockGuild(
            name=data["name"],
            world=data.get("world", "Antica"),
            players_online=data.get("players_online", 12),
            members_total=data.get("members_total", 40),
            founded=data.get("founded", "2020-01-15"),
            description=data.get("description", "A mock guild."),
        )
        self.guilds[guild.name.lower()] = guild
        logger.info("Created mock guild", name=guild.name)
        return web.json_response(guild.to_api_response())

    async def update_settings(self, request: web.Request) -> web.Response:
        """Update server settings."""
        data = await request.json()

        if "request_delay" in data:
            self.settings.request_delay = float(data["request_delay"])
        if "failing_sources" in data:
            unknown = set(data["failing_sources"]) - FAILABLE_SOURCES
            if unknown:
                return web.json_response(
                    {"error": f"Unknown sources: {sorted(unknown)}"}, status=400
                )
            self.settings.failing_sources = set(data["failing_sources"])
        if "reject_all_tokens" in data:
            self.settings.reject_all_tokens = bool(data["reject_all_tokens"])
        if "token_expires_in" in data:
            self.settings.token_expires_in = int(data["token_expires_in"])
        if "boosted_boss" in data:
            self.settings.boosted_boss = data["boosted_boss"]
        if "rashid_city" in data:
            self.settings.rashid_city = data["rashid_city"]
        if "world_changes" in data:
            self.settings.world_changes = list(data["world_changes"])
        if "respawns" in data:
            self.settings.respawns = list(data["respawns"])

        logger.info(
            "Updated server settings",
            request_delay=self.settings.request_delay,
            failing_sources=sorted(self.settings.failing_sources),
            reject_all_tokens=self.settings.reject_all_tokens,
        )
        return web.json_response(self._settings_response())

    def _settings_response(self) -> Dict[str, Any]:
        return {
            "request_delay": self.settings.request_delay,
            "failing_sources": sorted(self.settings.failing_sources),
            "reject_all_tokens": self.settings.reject_all_tokens,
            "token_expires_in": self.settings.token_expires_in,
        }

    async def revoke_tokens(self, request: web.Request) -> web.Response:
        """Invalidate every issued token, forcing clients to log in again."""
        revoked = len(self.valid_tokens)
        self.valid_tokens.clear()
        logger.info("Revoked mock tokens", revoked=revoked)
        return web.json_response({"revoked": revoked})

    async def get_stats(self, request: web.Request) -> web.Response:
        """Call counters."""
        return web.json_response({
            "login_count": self.login_count,
            "request_counts": self.request_counts,
            "settings": self._settings_response(),
        })

    async def reset_server(self, request: web.Request) -> web.Response:
        """Reset server to initial state."""
        self.worlds.clear()
        self.guilds.clear()
        self.settings = MockSettings()
        self.valid_tokens.clear()
        self.login_count = 0
        self.request_counts.clear()

        logger.info("Reset mock server to initial state")

        return web.json_response({"status": "reset"})

    def run(self):
        """Run the mock server."""
        logger.info("Starting mock provider server", port=self.port)
        web.run_app(self.app, host='0.0.0.0', port=self.port)


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Mock TibiaData/Firebot API Server')
    parser.add_argument('--port', type=int, default=8090, help='Port to run on')
    parser.add_argument('--email', default='banner@example.com', help='Accepted login e-mail')
    parser.add_argument('--password', default='secret', help='Accepted login password')
    args = parser.parse_args()

    server = MockProviderServer(port=args.port, email=args.email, password=args.password)
    server.run()


if __name__ == '__main__':
    main()
