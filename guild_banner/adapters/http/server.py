"""HTTP surface of the banner service.

Routes:
    GET /tools/guild            guild banner PNG
    GET /tools/respawns/image   respawn grid PNG
    POST /banner/generate       plain text banner PNG
    GET /health                 liveness check
"""

from typing import Any, Dict, Mapping, Optional

from aiohttp import web
import structlog

from guild_banner.application.banner_service import BannerService
from guild_banner.application.respawn_service import RespawnService
from guild_banner.application.text_banner_service import TextBannerService
from guild_banner.core.entities import MAX_HEIGHT, MAX_WIDTH, MIN_HEIGHT, MIN_WIDTH
from guild_banner.core.errors import BannerGenerationError

logger = structlog.get_logger()

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class QueryValidationError(ValueError):
    """A query parameter is missing or malformed."""

    pass


def cache_headers(max_age_seconds: int) -> Dict[str, str]:
    """Cache headers for a rendered image; 0 disables caching."""
    if max_age_seconds <= 0:
        return dict(NO_STORE_HEADERS)
    return {"Cache-Control": f"public, max-age={max_age_seconds}"}


def _parse_bool(query: Mapping[str, str], name: str, default: bool) -> bool:
    value = query.get(name)
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise QueryValidationError(f"{name} must be true or false")


def _parse_int(query: Mapping[str, str], name: str, default: int, low: int, high: int) -> int:
    value = query.get(name)
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except ValueError:
        raise QueryValidationError(f"{name} must be an integer")
    if not low <= number <= high:
        raise QueryValidationError(f"{name} must be between {low} and {high}")
    return number


def _required(query: Mapping[str, str], name: str) -> str:
    value = (query.get(name) or "").strip()
    if not value:
        raise QueryValidationError(f"{name} is required")
    return value


def parse_banner_query(query: Mapping[str, str]) -> Dict[str, Any]:
    """Validate ``/tools/guild`` query parameters.

    Returns:
        Keyword arguments for BannerService.generate_banner

    Raises:
        QueryValidationError: On a missing or malformed parameter
    """
    return {
        "world": _required(query, "world"),
        "guild_name": _required(query, "guild"),
        "lang": (query.get("lang") or "pt").strip(),
        "theme": (query.get("theme") or "default").strip(),
        "show_boss": _parse_bool(query, "showBoss", True),
        "show_logo": _parse_bool(query, "showLogo", True),
        "width": _parse_int(query, "width", 1200, MIN_WIDTH, MAX_WIDTH),
        "height": _parse_int(query, "height", 300, MIN_HEIGHT, MAX_HEIGHT),
    }


class BannerHTTPServer:
    """aiohttp application exposing the render endpoints."""

    def __init__(
        self,
        banner_service: BannerService,
        respawn_service: Optional[RespawnService] = None,
        cache_max_age_seconds: int = 0,
        text_banner_service: Optional[TextBannerService] = None,
    ):
        self.banner_service = banner_service
        self.respawn_service = respawn_service
        self.text_banner_service = text_banner_service or TextBannerService()
        self.cache_max_age_seconds = cache_max_age_seconds
        self.app = web.Application()
        self.setup_routes()

    def setup_routes(self):
        """Set up all routes."""
        self.app.router.add_get("/tools/guild", self.get_guild_banner)
        self.app.router.add_get("/tools/respawns/image", self.get_respawn_image)
        self.app.router.add_post("/banner/generate", self.post_text_banner)
        self.app.router.add_get("/health", self.health)

    async def get_guild_banner(self, request: web.Request) -> web.Response:
        """Render a guild banner."""
        try:
            params = parse_banner_query(request.query)
        except QueryValidationError as e:
            return web.json_response({"message": str(e)}, status=400)

        try:
            image = await self.banner_service.generate_banner(**params)
        except BannerGenerationError as e:
            logger.warning(
                "Banner request failed",
                world=params["world"],
                guild=params["guild_name"],
                kind=e.kind,
                error=e.message,
            )
            return web.json_response(e.to_dict(), status=500)
        except ValueError as e:
            return web.json_response({"message": str(e)}, status=400)

        return web.Response(
            body=image,
            content_type="image/png",
            headers=cache_headers(self.cache_max_age_seconds),
        )

    async def get_respawn_image(self, request: web.Request) -> web.Response:
        """Render the respawn grid."""
        if self.respawn_service is None:
            return web.json_response({"message": "Respawn image is not available"}, status=404)

        try:
            image = await self.respawn_service.generate_respawn_image()
        except BannerGenerationError as e:
            logger.warning("Respawn image request failed", kind=e.kind, error=e.message)
            return web.json_response(
                {"message": "Failed to generate respawn image", "error": e.message},
                status=500,
            )

        return web.Response(body=image, content_type="image/png", headers=dict(NO_STORE_HEADERS))

    async def post_text_banner(self, request: web.Request) -> web.Response:
        """Render the posted text as a banner."""
        try:
            body = await request.json()
        except ValueError:
            return web.json_response({"message": "Body must be JSON"}, status=400)

        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str):
            return web.json_response({"message": "text is required"}, status=400)

        try:
            image = self.text_banner_service.generate_text_banner(text)
        except BannerGenerationError as e:
            logger.warning("Text banner request failed", kind=e.kind, error=e.message)
            return web.json_response(e.to_dict(), status=500)

        return web.Response(body=image, content_type="image/png")

    async def health(self, request: web.Request) -> web.Response:
        """Liveness check."""
        return web.json_response({"status": "ok"})
