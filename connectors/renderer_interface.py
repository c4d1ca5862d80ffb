from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, List, Tuple

if TYPE_CHECKING:
    from planner.models import RenderRequest


class RendererError(Exception):
    """Raised by a renderer when one source cannot be rendered."""


class Renderer(Protocol):
    """
    Protocol for the manifest renderer.
    Implementations turn one content source, resolved against its origin
    override and the shared reference table, into serialized documents.
    The planner decides what to render; the renderer decides how.
    """
    def render(self, request: RenderRequest) -> List[str]:
        """
        Render one source.
        :param request: source, origin override, reference table and multi-source flag.
        :return: one serialized (JSON) document per rendered object.
        :raises RendererError: when the source cannot be rendered.
        """
        ...


class CredentialResolver(Protocol):
    """
    Protocol for repository credential lookup.
    Only consulted for origins that are not the local working tree.
    """
    def credentials_for(self, origin_location: str) -> Tuple[str, str]:
        """Return (username, password); empty strings when nothing is configured."""
        ...
