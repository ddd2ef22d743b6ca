"""
ndcow (N-dimensional arrays with copy-on-write storage)

This package provides strided N-dimensional array views over reference-counted,
copy-on-write buffers, plus a small linear-algebra layer built on top of them.
"""

from importlib.metadata import PackageNotFoundError as _PkgNotFoundError
from importlib.metadata import version as _pkg_version

__all__ = ["__version__"]

try:
    __version__ = _pkg_version("ndcow")
except _PkgNotFoundError:
    # Fallback for editable installs before metadata is written
    __version__ = "0.1.0"
