"""
Depwatch Dependency Monitor - Orchestration

Sequences one monitoring run: verify the access token, check every
configured repository, then either send the all-clear notice or have
the findings analyzed and send the full report.
"""

import sys
import time
import logging
from dataclasses import dataclass, asdict
from typing import List, Optional

import structlog

from .config import Config
from .collector.github import GitHubClient
from .collector.npm import NpmRegistryClient
from .collector.models import RepositoryReport, RepositoryTarget
from .comparison import find_outdated
from .analysis.summarizer import DependencySummarizer
from .delivery.email import EmailSender
from .errors import ConfigurationError


def configure_logging(config: Config) -> structlog.BoundLogger:
    """
    Configure structured logging.

    Args:
        config: Application configuration.

    Returns:
        Configured logger.
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer() if sys.stdout.isatty() else structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Console only; a run leaves no files behind
    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    return structlog.get_logger("depwatch")


@dataclass
class RunSummary:
    """Outcome of one monitoring run."""

    repositories_checked: int = 0
    outdated: int = 0
    advisories: int = 0
    critical_advisories: int = 0
    analysis_performed: bool = False
    email_subject: str = ""

    @classmethod
    def from_reports(cls, reports: List[RepositoryReport]) -> "RunSummary":
        return cls(
            repositories_checked=len(reports),
            outdated=sum(r.outdated_count for r in reports),
            advisories=sum(r.advisory_count for r in reports),
            critical_advisories=sum(r.critical_count for r in reports),
        )

    @property
    def all_clean(self) -> bool:
        return self.outdated == 0 and self.advisories == 0

    def to_dict(self) -> dict:
        return asdict(self)


class DependencyMonitor:
    """
    Main orchestrator for the dependency monitoring workflow.

    Each stage is a separate method passing plain values to the next,
    so stages can be exercised on their own.
    """

    def __init__(
        self,
        config: Config,
        logger: Optional[structlog.BoundLogger] = None,
        github: Optional[GitHubClient] = None,
        registry: Optional[NpmRegistryClient] = None,
        summarizer: Optional[DependencySummarizer] = None,
        email_sender: Optional[EmailSender] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Application configuration.
            logger: Logger instance; defaults to the module logger.
            github, registry, summarizer, email_sender: Components to use
                instead of the ones built from ``config``.
        """
        self.config = config
        self.logger = logger or structlog.get_logger(__name__)

        self.github = github or GitHubClient(config)
        self.registry = registry or NpmRegistryClient(config)
        self.summarizer = summarizer or DependencySummarizer(config)
        self.email_sender = email_sender or EmailSender(config)

        self.logger.info("orchestrator_initialized", repositories=len(config.repositories))

    def check_credentials(self):
        """
        Make sure the GitHub token is present and accepted.

        Raises:
            ConfigurationError: If no token is configured.
            CredentialError: If GitHub rejects the token or is unreachable.
        """
        if not self.config.github_token:
            raise ConfigurationError("GH_TOKEN is not set")
        self.github.verify_credentials()

    def check_repository(self, target: RepositoryTarget) -> RepositoryReport:
        """
        Collect the findings for one repository.

        Args:
            target: Repository to check.

        Returns:
            Report with outdated dependencies and open advisories.
        """
        dependencies = self.github.fetch_dependencies(target)
        advisories = self.github.fetch_advisories(target)

        outdated = find_outdated(dependencies or {}, self.registry.get_package_info)

        return RepositoryReport(
            target=target,
            outdated=outdated,
            advisories=advisories,
            total_dependencies=len(dependencies or {}),
            manifest_found=dependencies is not None,
        )

    def collect_reports(self) -> List[RepositoryReport]:
        """
        Check every configured repository, in configuration order.

        Returns:
            One report per repository, including repositories that failed.
        """
        reports = []

        for target in self.config.targets:
            self.logger.info("repository_check_started", repo=target.full_name)

            try:
                report = self.check_repository(target)
            except Exception as e:
                self.logger.error(
                    "repository_check_failed",
                    repo=target.full_name,
                    error=str(e),
                    error_type=e.__class__.__name__
                )
                report = RepositoryReport(target=target)

            self.logger.info(
                "repository_check_completed",
                repo=target.full_name,
                dependencies=report.total_dependencies,
                outdated=report.outdated_count,
                advisories=report.advisory_count
            )
            reports.append(report)

        return reports

    def analyze(self, reports: List[RepositoryReport]) -> str:
        """Have the findings prioritized by the AI service."""
        total = sum(r.outdated_count + r.advisory_count for r in reports)
        self.logger.info("analyzing_findings", findings=total)
        return self.summarizer.summarize(reports)

    def notify(self, reports: List[RepositoryReport], analysis: Optional[str]) -> str:
        """
        Send the run's single email.

        Without an analysis the all-clear notice is sent.

        Returns:
            Subject of the sent message.
        """
        if analysis is None:
            return self.email_sender.send_all_clear(reports)
        return self.email_sender.send_report(analysis, reports)

    def run(self) -> RunSummary:
        """
        Execute one full monitoring run.

        Returns:
            Summary of the run.

        Raises:
            DepwatchError: On any fatal failure (credentials, analysis,
                email delivery).
        """
        start_time = time.time()
        self.logger.info("workflow_started")

        self.check_credentials()

        reports = self.collect_reports()
        summary = RunSummary.from_reports(reports)

        analysis = None
        if summary.all_clean:
            self.logger.info("all_dependencies_up_to_date", repositories=summary.repositories_checked)
        else:
            analysis = self.analyze(reports)
            summary.analysis_performed = True

        summary.email_subject = self.notify(reports, analysis)

        self.logger.info(
            "workflow_completed",
            repositories=summary.repositories_checked,
            outdated=summary.outdated,
            advisories=summary.advisories,
            critical=summary.critical_advisories,
            duration_seconds=round(time.time() - start_time, 1)
        )

        return summary

    def cleanup(self):
        """Clean up resources."""
        self.github.close()
        self.registry.close()
        self.summarizer.close()
        self.logger.info("orchestrator_cleanup_complete")
