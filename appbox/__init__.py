__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'appbox'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .application import *
from .builder import *
from .commands import *
from .containers import *
from .faults import *
from .flags import *
from .interrupt import *
from .names import *
from .tree import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the application entry points
__all__ += application.__all__  # type: ignore[attr-defined]
# Load the exposed API of the builder
__all__ += builder.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command model
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the containers
__all__ += containers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the flag sets
__all__ += flags.__all__  # type: ignore[attr-defined]
# Load the exposed API of the interrupts
__all__ += interrupt.__all__  # type: ignore[attr-defined]
# Load the exposed API of the name containers
__all__ += names.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command tree runtime
__all__ += tree.__all__  # type: ignore[attr-defined]
