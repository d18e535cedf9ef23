# rollstat/version.py
"""
rollstat Version Information

Version number and package metadata, exposed programmatically as
``rollstat.__version__``. Versions follow semantic versioning
(MAJOR.MINOR.PATCH).
"""

from typing import Any, Dict, Tuple

# Version components
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "rollstat"
__description__ = "Parallel rolling-window statistics for time-series panels"
__author__ = "rollstat developers"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.10"

# Package dependencies
__dependencies__ = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
}


def get_version_info() -> Dict[str, Any]:
    """
    Get detailed version information about rollstat.

    Returns:
        Dict containing the version string, its components, the supported
        Python versions and the runtime dependencies.
    """
    return {
        "version": __version__,
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
        "python_requires": __python_requires__,
        "dependencies": __dependencies__,
        "author": __author__,
        "license": __license__,
    }


def get_version_components() -> Tuple[int, int, int]:
    """Get the version components as a (major, minor, patch) tuple."""
    return (VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH)
