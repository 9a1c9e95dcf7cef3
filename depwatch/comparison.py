"""
Outdated dependency detection.

Compares a repository's declared dependency versions against the
registry's latest releases. The comparison is a plain string test on the
declared version with its leading range marker removed; it does not
evaluate semver ranges, so "^1.2.3" is reported as outdated by "1.4.0"
even though the range admits it.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from .collector.models import DependencyRecord, PackageInfo


logger = structlog.get_logger(__name__)

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")

RANGE_MARKERS = "^~"


def merge_dependencies(manifest: Mapping[str, Any]) -> Dict[str, str]:
    """
    Merge the regular and development dependency groups of a manifest.

    Later groups win on name clashes, so a package listed in both keeps
    its devDependencies range. Entries whose range is not a string are
    skipped.

    Args:
        manifest: Parsed package.json.

    Returns:
        Name to declared range mapping, in manifest order.
    """
    merged: Dict[str, str] = {}

    for section in DEPENDENCY_SECTIONS:
        deps = manifest.get(section) or {}
        if not isinstance(deps, Mapping):
            logger.debug("dependency_section_ignored", section=section)
            continue
        for name, version in deps.items():
            if not isinstance(version, str):
                logger.debug("dependency_version_ignored", package=name, section=section)
                continue
            merged[name] = version

    return merged


def normalize_version(declared: str) -> str:
    """Strip one leading caret or tilde range marker."""
    if declared[:1] and declared[0] in RANGE_MARKERS:
        return declared[1:]
    return declared


def is_outdated(declared: str, latest: str) -> bool:
    """True if the latest release differs from the declared version."""
    return latest != normalize_version(declared)


def find_outdated(
    dependencies: Mapping[str, str],
    lookup: Callable[[str], Optional[PackageInfo]]
) -> List[DependencyRecord]:
    """
    Find declared dependencies that differ from their latest release.

    Packages the registry knows nothing about are left out. Results keep
    the iteration order of ``dependencies``.

    Args:
        dependencies: Name to declared range mapping.
        lookup: Returns registry info for a package name, or None.

    Returns:
        One DependencyRecord per outdated package.
    """
    outdated = []

    for name, declared in dependencies.items():
        info = lookup(name)
        if info is None:
            logger.debug("registry_info_missing", package=name)
            continue

        if is_outdated(declared, info.latest):
            outdated.append(DependencyRecord(
                name=name,
                current=declared,
                latest=info.latest,
                description=info.description,
                homepage=info.homepage,
            ))

    return outdated
