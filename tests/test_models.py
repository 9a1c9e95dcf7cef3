"""Tests for collector data models."""

import pytest

from depwatch.collector.models import (
    DependencyRecord,
    PackageInfo,
    RepositoryReport,
    RepositoryTarget,
    SecurityAdvisory,
    Severity,
)
from helpers import dependabot_alert


class TestRepositoryTarget:

    def test_parse(self):
        target = RepositoryTarget.parse("octo-org/app")
        assert target.owner == "octo-org"
        assert target.name == "app"
        assert target.full_name == "octo-org/app"
        assert str(target) == "octo-org/app"

    @pytest.mark.parametrize("identifier", ["app", "octo-org/", "/app", "a/b/c", ""])
    def test_parse_rejects_malformed(self, identifier):
        with pytest.raises(ValueError):
            RepositoryTarget.parse(identifier)

    def test_immutable(self):
        target = RepositoryTarget.parse("octo-org/app")
        with pytest.raises(Exception):
            target.name = "other"


class TestSeverity:

    @pytest.mark.parametrize("value,expected", [
        ("critical", Severity.CRITICAL),
        ("HIGH", Severity.HIGH),
        ("moderate", Severity.MEDIUM),
        ("medium", Severity.MEDIUM),
        ("low", Severity.LOW),
        ("bogus", Severity.MEDIUM),
        (None, Severity.MEDIUM),
    ])
    def test_from_github(self, value, expected):
        assert Severity.from_github(value) == expected

    def test_rank_order(self):
        assert Severity.CRITICAL.rank > Severity.HIGH.rank > Severity.MEDIUM.rank > Severity.LOW.rank


class TestPackageInfo:

    def test_from_registry_data(self):
        info = PackageInfo.from_registry_data({
            "dist-tags": {"latest": "1.3.0", "next": "2.0.0-rc.1"},
            "description": "String left pad",
            "homepage": "https://github.com/left-pad/left-pad",
        })
        assert info.latest == "1.3.0"
        assert info.description == "String left pad"
        assert info.homepage == "https://github.com/left-pad/left-pad"

    def test_missing_latest(self):
        with pytest.raises(ValueError):
            PackageInfo.from_registry_data({"dist-tags": {}})


class TestSecurityAdvisory:

    def test_from_dependabot_alert(self):
        alert = dependabot_alert("lodash", severity="critical", cve_id="CVE-2021-23337", number=7, patched="4.17.21")
        advisory = SecurityAdvisory.from_dependabot_alert(alert)
        assert advisory.package == "lodash"
        assert advisory.severity == Severity.CRITICAL
        assert advisory.cve_id == "CVE-2021-23337"
        assert advisory.ghsa_id == "GHSA-test-0007"
        assert advisory.vulnerable_range == "< 9.9.9"
        assert advisory.first_patched_version == "4.17.21"
        assert advisory.url.endswith("/dependabot/7")

    def test_unpatched_and_moderate(self):
        alert = dependabot_alert("minimist", severity="moderate", patched=None)
        advisory = SecurityAdvisory.from_dependabot_alert(alert)
        assert advisory.severity == Severity.MEDIUM
        assert advisory.first_patched_version is None
        assert advisory.cve_id is None

    def test_alert_without_package(self):
        with pytest.raises(ValueError):
            SecurityAdvisory.from_dependabot_alert({"number": 3, "security_advisory": {}})


class TestRepositoryReport:

    def test_counts_and_ordering(self):
        report = RepositoryReport(
            target=RepositoryTarget.parse("octo-org/app"),
            outdated=[DependencyRecord(name="chalk", current="^4.0.0", latest="5.3.0")],
            advisories=[
                SecurityAdvisory(package="a", severity="low"),
                SecurityAdvisory(package="b", severity="critical"),
                SecurityAdvisory(package="c", severity="high"),
            ],
        )
        assert report.outdated_count == 1
        assert report.advisory_count == 3
        assert report.critical_count == 1
        assert report.has_findings
        assert [a.package for a in report.advisories_by_severity] == ["b", "c", "a"]

    def test_empty_report(self):
        report = RepositoryReport(target=RepositoryTarget.parse("octo-org/app"))
        assert not report.has_findings
        assert not report.manifest_found
        assert report.total_dependencies == 0
