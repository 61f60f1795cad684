"""Durable home of published artifacts.

Pages live under ``<key_prefix>/<id>.{html,js,css}``; component demos published
to a CDN live under ``<component>/<demo>/bundle/``.  The HTML page is
written last, so a page that can be fetched always references script and
stylesheet objects that already exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models import CompiledArtifact, is_valid_identifier, validate_identifier
from .backends import ObjectStorage

logger = logging.getLogger(__name__)

CONTENT_TYPES: dict[str, str] = {
    "js": "application/javascript",
    "css": "text/css",
    "html": "text/html",
    "map": "application/json",
    "json": "application/json",
}

DEFAULT_CONTENT_TYPE = "text/plain"


def content_type_for(filename: str) -> str:
    """Return the content type for *filename* based on its extension.

    Examples::

        content_type_for("abc.js")    -> "application/javascript"
        content_type_for("abc.txt")   -> "text/plain"
    """
    _, _, ext = filename.rpartition(".")
    return CONTENT_TYPES.get(ext.lower(), DEFAULT_CONTENT_TYPE)


@dataclass(frozen=True)
class SavedArtifact:
    """Public URLs of the three stored objects."""

    html_url: str
    js_url: str
    css_url: str


@dataclass(frozen=True)
class ArtifactLocation:
    """Storage keys and public URLs of one artifact's objects."""

    js_key: str
    css_key: str
    html_key: str
    js_url: str
    css_url: str
    html_url: str

    @property
    def map_key(self) -> str:
        return f"{self.js_key}.map"

    @property
    def map_name(self) -> str:
        """Sourcemap file name, relative to the script URL."""
        return self.map_key.rpartition("/")[2]


@dataclass(frozen=True)
class StaticAsset:
    body: bytes
    content_type: str

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class ArtifactStore:
    """Saves and loads compiled artifacts through an ``ObjectStorage``.

    With a ``public_base_url`` (CDN) objects are addressed by their key under
    that URL.  Without one, the service itself serves them: script and
    stylesheet through ``/static/<id>.<ext>`` and the page through
    ``/bundled-page?id=<id>``.

    Args:
        storage: Blob backend.
        public_base_url: Base URL under which stored objects are served.
        key_prefix: Key namespace for artifacts.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        public_base_url: str = "",
        key_prefix: str = "bundled",
    ) -> None:
        self.storage = storage
        self.public_base_url = public_base_url.rstrip("/")
        self.key_prefix = key_prefix.strip("/")

    # ------------------------------------------------------------------
    # Keys and URLs
    # ------------------------------------------------------------------

    def key(self, artifact_id: str, ext: str) -> str:
        return f"{self.key_prefix}/{artifact_id}.{ext}"

    def locate(self, artifact_id: str) -> ArtifactLocation:
        """Keys and URLs for a page published under *artifact_id*.

        Raises:
            ValidationError: If the id is malformed.
        """
        validate_identifier(artifact_id)
        keys = {ext: self.key(artifact_id, ext) for ext in ("js", "css", "html")}
        if self.public_base_url:
            urls = {ext: f"{self.public_base_url}/{key}" for ext, key in keys.items()}
        else:
            urls = {
                "js": f"/static/{artifact_id}.js",
                "css": f"/static/{artifact_id}.css",
                "html": f"/bundled-page?id={artifact_id}",
            }
        return ArtifactLocation(
            js_key=keys["js"],
            css_key=keys["css"],
            html_key=keys["html"],
            js_url=urls["js"],
            css_url=urls["css"],
            html_url=urls["html"],
        )

    def locate_demo(self, component_slug: str, demo_slug: str) -> ArtifactLocation:
        """Keys and URLs for a component demo.

        On a CDN the demo lives in its own folder,
        ``<component>/<demo>/bundle/{bundle.js,bundle.css,index.html}``.
        Without one it is published like a page whose id is the demo slug.

        Raises:
            ValidationError: If either slug is malformed (before any key is built).
        """
        validate_identifier(component_slug)
        validate_identifier(demo_slug)
        if not self.public_base_url:
            return self.locate(demo_slug)
        folder = f"{component_slug}/{demo_slug}/bundle"
        base = self.public_base_url
        return ArtifactLocation(
            js_key=f"{folder}/bundle.js",
            css_key=f"{folder}/bundle.css",
            html_key=f"{folder}/index.html",
            js_url=f"{base}/{folder}/bundle.js",
            css_url=f"{base}/{folder}/bundle.css",
            html_url=f"{base}/{folder}/index.html",
        )

    def public_url(self, artifact_id: str, ext: str) -> str:
        """URL an object will have once saved; usable before it exists."""
        location = self.locate(artifact_id)
        return {"js": location.js_url, "css": location.css_url, "html": location.html_url}[ext]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def save(self, artifact_id: str, artifact: CompiledArtifact) -> SavedArtifact:
        """Store *artifact* under *artifact_id*.

        Raises:
            ValidationError: If the id is malformed (before any storage call).
            StorageError: If the backend rejects a write.
        """
        saved = await self.save_at(self.locate(artifact_id), artifact)
        logger.info("Stored artifact %s (%s backend)", artifact_id, artifact.backend)
        return saved

    async def save_at(self, location: ArtifactLocation, artifact: CompiledArtifact) -> SavedArtifact:
        """Write *artifact* to the keys of *location*, HTML last."""
        if artifact.sourcemap:
            await self.storage.put(
                location.map_key, artifact.sourcemap.encode("utf-8"), CONTENT_TYPES["map"]
            )
        await self.storage.put(
            location.js_key, artifact.script.encode("utf-8"), CONTENT_TYPES["js"]
        )
        await self.storage.put(
            location.css_key, artifact.stylesheet.encode("utf-8"), CONTENT_TYPES["css"]
        )
        await self.storage.put(
            location.html_key, artifact.html.encode("utf-8"), CONTENT_TYPES["html"]
        )
        return SavedArtifact(
            html_url=location.html_url, js_url=location.js_url, css_url=location.css_url
        )

    async def load(self, artifact_id: str) -> str | None:
        """Return the stored HTML page, or ``None`` if absent or the id is invalid."""
        if not is_valid_identifier(artifact_id):
            return None
        body = await self.storage.get(self.key(artifact_id, "html"))
        if body is None:
            return None
        return body.decode("utf-8", errors="replace")

    async def load_static(self, filename: str) -> StaticAsset | None:
        """Return an object addressed as ``<id>.<ext>``, or ``None``."""
        artifact_id, dot, ext = filename.partition(".")
        if not dot or not ext or not is_valid_identifier(artifact_id):
            return None
        if "/" in ext or "\\" in ext or ".." in ext:
            return None
        body = await self.storage.get(f"{self.key_prefix}/{filename}")
        if body is None:
            return None
        return StaticAsset(body=body, content_type=content_type_for(filename))
