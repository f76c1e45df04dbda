"""Remote source links for declarations."""

from __future__ import annotations

import functools
import importlib.metadata
import logging
import sys
from pathlib import Path
from typing import Mapping

logger = logging.getLogger("refract.links")

_GITHUB = "https://github.com/"


def remote_source_link(
    module: str,
    source_file: str,
    lineno: int,
    bases: Mapping[str, str] | None = None,
) -> str | None:
    """Browse URL of *source_file* at *lineno*, or ``None`` if unknown.

    The base URL for a top-level package comes from *bases*, else from a
    ``github.com`` project URL in the installed distribution's metadata.
    Paths are taken relative to the directory holding the top-level package.
    """
    root = module.partition(".")[0]
    if not root:
        return None
    base = (bases or {}).get(root) or repository_blob_url(root)
    if not base:
        return None

    package_file = getattr(sys.modules.get(root), "__file__", None)
    if not package_file:
        return None
    anchor = Path(package_file).resolve().parent
    if Path(package_file).name == "__init__.py":
        anchor = anchor.parent
    try:
        relative = Path(source_file).resolve().relative_to(anchor).as_posix()
    except ValueError:
        return None
    return f"{base.rstrip('/')}/{relative}#L{lineno}"


@functools.lru_cache(maxsize=None)
def repository_blob_url(package: str) -> str | None:
    """``https://github.com/<owner>/<repo>/blob/master`` for an installed *package*."""
    for dist in importlib.metadata.packages_distributions().get(package, []):
        try:
            meta = importlib.metadata.metadata(dist)
        except importlib.metadata.PackageNotFoundError:
            continue
        urls = [meta.get("Home-page") or ""]
        urls += [entry.partition(",")[2].strip() for entry in meta.get_all("Project-URL") or []]
        for url in urls:
            if url.startswith(_GITHUB):
                parts = url[len(_GITHUB):].strip("/").split("/")
                if len(parts) >= 2:
                    return f"{_GITHUB}{parts[0]}/{parts[1]}/blob/master"
    logger.debug("No repository URL known for %s", package)
    return None
