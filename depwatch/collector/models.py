"""
Data models for repository, dependency and advisory data.

These Pydantic models provide structured, validated representations
of data collected from GitHub and the npm registry during one run.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class Severity(str, Enum):
    """Advisory severity levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANKS[self]

    @classmethod
    def from_github(cls, value: Optional[str]) -> "Severity":
        """Map a GitHub severity string, defaulting to MEDIUM."""
        value = (value or "").strip().lower()
        if value == "moderate":
            return cls.MEDIUM
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


_SEVERITY_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class RepositoryTarget(BaseModel):
    """A repository to check, identified as owner/name."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Repository owner (user or organization)")
    name: str = Field(description="Repository name")

    @classmethod
    def parse(cls, identifier: str) -> "RepositoryTarget":
        """
        Parse an owner/name identifier.

        Raises:
            ValueError: If the identifier is not of the form owner/name.
        """
        parts = identifier.strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Invalid repository identifier: {identifier!r} (expected owner/name)")
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


class PackageInfo(BaseModel):
    """Latest published release of a package, as reported by the registry."""

    latest: str = Field(description="Version tagged latest")
    description: Optional[str] = Field(default=None, description="Package description")
    homepage: Optional[str] = Field(default=None, description="Project homepage")

    @classmethod
    def from_registry_data(cls, data: Dict[str, Any]) -> "PackageInfo":
        """
        Create PackageInfo from an npm registry packument.

        Raises:
            ValueError: If the packument has no latest dist-tag.
        """
        dist_tags = data.get("dist-tags") or {}
        latest = dist_tags.get("latest")
        if not latest:
            raise ValueError("No latest dist-tag in registry response")

        homepage = data.get("homepage")
        return cls(
            latest=str(latest),
            description=data.get("description") or None,
            homepage=homepage if isinstance(homepage, str) else None,
        )


class DependencyRecord(BaseModel):
    """A declared dependency whose version differs from the latest release."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Package name")
    current: str = Field(description="Declared version range, verbatim from the manifest")
    latest: str = Field(description="Latest published version")
    description: Optional[str] = Field(default=None, description="Package description")
    homepage: Optional[str] = Field(default=None, description="Project homepage")


class SecurityAdvisory(BaseModel):
    """An open security alert raised against a repository's dependency."""

    package: str = Field(description="Affected package name")
    severity: Severity = Field(default=Severity.MEDIUM, description="Advisory severity")
    summary: str = Field(default="", description="Short advisory summary")
    cve_id: Optional[str] = Field(default=None, description="CVE identifier")
    ghsa_id: Optional[str] = Field(default=None, description="GitHub advisory identifier")
    vulnerable_range: str = Field(default="", description="Vulnerable version range")
    first_patched_version: Optional[str] = Field(default=None, description="First fixed version")
    url: str = Field(default="", description="Link to the alert")

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value: Any) -> Severity:
        if isinstance(value, Severity):
            return value
        return Severity.from_github(value)

    @classmethod
    def from_dependabot_alert(cls, alert: Dict[str, Any]) -> "SecurityAdvisory":
        """
        Create SecurityAdvisory from a GitHub Dependabot alert.

        Raises:
            ValueError: If the alert does not name an affected package.
        """
        advisory = alert.get("security_advisory") or {}
        vulnerability = alert.get("security_vulnerability") or {}
        dependency = alert.get("dependency") or {}

        package = (
            (vulnerability.get("package") or {}).get("name")
            or (dependency.get("package") or {}).get("name")
        )
        if not package:
            raise ValueError(f"Alert {alert.get('number', '?')} has no package name")

        patched = vulnerability.get("first_patched_version") or {}

        return cls(
            package=package,
            severity=vulnerability.get("severity") or advisory.get("severity"),
            summary=advisory.get("summary", ""),
            cve_id=advisory.get("cve_id") or None,
            ghsa_id=advisory.get("ghsa_id") or None,
            vulnerable_range=vulnerability.get("vulnerable_version_range", ""),
            first_patched_version=patched.get("identifier") or None,
            url=alert.get("html_url") or alert.get("url", ""),
        )


class RepositoryReport(BaseModel):
    """Findings for one repository in one run."""

    target: RepositoryTarget = Field(description="Repository checked")
    outdated: List[DependencyRecord] = Field(default_factory=list, description="Outdated dependencies")
    advisories: List[SecurityAdvisory] = Field(default_factory=list, description="Open advisories")
    total_dependencies: int = Field(default=0, description="Dependencies declared in the manifest")
    manifest_found: bool = Field(default=False, description="Manifest was fetched and parsed")

    @property
    def outdated_count(self) -> int:
        return len(self.outdated)

    @property
    def advisory_count(self) -> int:
        return len(self.advisories)

    @property
    def critical_count(self) -> int:
        return len([a for a in self.advisories if a.severity == Severity.CRITICAL])

    @property
    def has_findings(self) -> bool:
        return bool(self.outdated or self.advisories)

    @property
    def advisories_by_severity(self) -> List[SecurityAdvisory]:
        """Advisories ordered most severe first (stable within a level)."""
        return sorted(self.advisories, key=lambda a: a.severity.rank, reverse=True)
