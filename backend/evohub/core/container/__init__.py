"""Process-wide dependency container.

``main.py`` builds it once in the lifespan with :func:`initialize_container`;
``api.deps.get_container`` hands it to ``Inject``. Tests skip the global and
build a ``Container`` of fakes, overriding ``get_container`` on the app.
"""

from typing import TYPE_CHECKING, Optional

from evohub.core.container.container import Container
from evohub.core.container.factory import create_container

if TYPE_CHECKING:
    from evohub.core.config import Settings

__all__ = ["Container", "container", "create_container", "initialize_container"]

# Read through the module (``container_mod.container``), never imported by value.
container: Optional[Container] = None


def initialize_container(settings: "Settings") -> Container:
    """Build the global container from *settings*.

    Raises:
        RuntimeError: On a second call without :func:`reset_container` in between.
    """
    global container
    if container is not None:
        raise RuntimeError("Container is already initialized")
    container = create_container(settings)
    return container


def reset_container() -> None:
    global container
    container = None
