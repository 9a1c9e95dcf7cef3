"""Collector package for repository, registry and advisory data."""

from .models import (
    DependencyRecord,
    PackageInfo,
    RepositoryReport,
    RepositoryTarget,
    SecurityAdvisory,
    Severity,
)

__all__ = [
    "DependencyRecord",
    "PackageInfo",
    "RepositoryReport",
    "RepositoryTarget",
    "SecurityAdvisory",
    "Severity",
]
