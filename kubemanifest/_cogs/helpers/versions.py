"""
Detecting the package's own version.

The version is determined only once at startup when the code is loaded.
It is ``None`` when the package is used without being installed (from sources).
"""
import importlib.metadata
from typing import Optional

version: Optional[str] = None

try:
    name, *_ = __name__.split('.')  # usually "kubemanifest", unless renamed/forked.
    version = importlib.metadata.version(name)
except importlib.metadata.PackageNotFoundError:
    pass
