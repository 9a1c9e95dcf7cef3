"""
Depwatch Dependency Monitor - One-Shot Execution Mode

Runs a single monitoring pass and exits. Scheduling is left to the
caller (cron, GitHub Actions schedule, etc.).
"""

import os
import sys
from typing import Optional

from .config import Config, load_config, validate_config
from .main import DependencyMonitor, RunSummary, configure_logging


def _mask(token: str) -> str:
    return f"({token[:7]}...)" if token else "(missing)"


def log_credential_presence(config: Config, logger):
    """Log which credentials were found, without revealing them."""
    logger.info(
        "credentials_loaded",
        gh_token=_mask(config.github_token),
        openrouter_api_key=bool(config.openrouter_api_key),
        gmail_user=config.gmail_user or "(missing)",
        gmail_app_password=bool(config.gmail_app_password),
        recipient_email=config.recipient_email or "(missing)"
    )


def write_github_output(summary: RunSummary, logger):
    """Append run counts to the GitHub Actions step output, if available."""
    github_output = os.getenv("GITHUB_OUTPUT")
    if not github_output:
        return

    try:
        with open(github_output, "a") as f:
            f.write(f"repositories_checked={summary.repositories_checked}\n")
            f.write(f"outdated={summary.outdated}\n")
            f.write(f"advisories={summary.advisories}\n")
            f.write(f"critical_advisories={summary.critical_advisories}\n")
        logger.info("github_output_written", path=github_output)
    except OSError as e:
        logger.warning("github_output_write_failed", error=str(e))


def run_single_workflow(config: Optional[Config] = None) -> RunSummary:
    """
    Execute a single monitoring run.

    Args:
        config: Configuration to use; loaded from the environment if omitted.

    Returns:
        Summary of the run.

    Raises:
        SystemExit: With status 1 on configuration errors or any failure.
    """
    print("=" * 60)
    print("  Depwatch Dependency Monitor - Single Run")
    print("=" * 60)
    print()

    if config is None:
        config = load_config()

    errors = validate_config(config)
    if errors:
        print("❌ Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        print()
        print("Please check your environment, .env file and repos.yaml.")
        sys.exit(1)

    logger = configure_logging(config)
    logger.info("single_run_started", version="1.0.0", repositories=len(config.repositories))
    log_credential_presence(config, logger)

    monitor = None
    try:
        monitor = DependencyMonitor(config, logger)
        summary = monitor.run()
    except Exception as e:
        logger.error("run_failed", error=str(e), exc_info=True)
        print(f"\n❌ Error: {e}")
        sys.exit(1)
    finally:
        if monitor is not None:
            monitor.cleanup()

    print()
    print("=" * 60)
    print("  Run Summary")
    print("=" * 60)
    print(f"Repositories Checked: {summary.repositories_checked}")
    print(f"Outdated Packages: {summary.outdated}")
    print(f"Security Advisories: {summary.advisories} ({summary.critical_advisories} critical)")
    print(f"Email Sent: {summary.email_subject}")
    print("=" * 60)
    print()

    write_github_output(summary, logger)

    logger.info("run_successful")
    return summary


def main():
    """Entry point for one-shot execution."""
    run_single_workflow()
    sys.exit(0)


if __name__ == "__main__":
    main()
