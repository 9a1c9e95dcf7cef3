"""
Gmail SMTP email sender for dependency reports.

Builds the run's notification (a short all-clear notice or the full
report with the AI analysis) and delivers it through Gmail's SMTP
service with app password authentication. Delivery is attempted once;
failures are raised to the caller.
"""

import html
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List
from datetime import datetime, timezone

import structlog

from ..config import Config
from ..collector.models import RepositoryReport, SecurityAdvisory, Severity
from ..errors import EmailDeliveryError

logger = structlog.get_logger(__name__)


ALL_CLEAR_SUBJECT = "Dependency Check: All Up To Date"

# Color scheme for severity levels
SEVERITY_COLORS = {
    Severity.CRITICAL: {"bg": "#7c0a02", "text": "#ffffff"},
    Severity.HIGH: {"bg": "#dc3545", "text": "#ffffff"},
    Severity.MEDIUM: {"bg": "#fd7e14", "text": "#ffffff"},
    Severity.LOW: {"bg": "#28a745", "text": "#ffffff"},
}

STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; color: #333; }
        .container { max-width: 760px; margin: 0 auto; background: white; border-radius: 8px; overflow: hidden; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
        .header { background: linear-gradient(135deg, #1a5f7a 0%, #2d8659 100%); color: white; padding: 30px; text-align: center; }
        .header.alert { background: linear-gradient(135deg, #7c0a02 0%, #dc3545 100%); }
        .header h1 { margin: 0; font-size: 24px; }
        .content { padding: 30px; }
        .stats { display: flex; flex-wrap: wrap; gap: 15px; margin: 20px 0; }
        .stat-box { flex: 1; min-width: 120px; background: #f8f9fa; padding: 20px; border-radius: 6px; text-align: center; }
        .stat-value { font-size: 32px; font-weight: bold; color: #1a5f7a; }
        .stat-label { font-size: 12px; color: #666; text-transform: uppercase; }
        .analysis { background-color: #f5f5f5; padding: 15px; border-radius: 5px; white-space: pre-wrap; font-family: monospace; }
        .badge { display: inline-block; padding: 2px 8px; border-radius: 10px; font-size: 11px; font-weight: bold; text-transform: uppercase; }
        .repo { border-top: 1px solid #eee; padding-top: 10px; margin-top: 20px; }
        .note { color: #856404; background: #fff3cd; padding: 8px 12px; border-radius: 4px; }
        .footer { background: #f8f9fa; padding: 20px; text-align: center; font-size: 12px; color: #666; }
"""


def _escape(text) -> str:
    """Escape HTML special characters."""
    return html.escape(str(text)) if text else ""


def _check_date() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def build_subject(reports: List[RepositoryReport]) -> str:
    """
    Build the subject line from the most severe condition in the run.

    Critical advisories, then any advisories, then outdated packages,
    then the all-clear subject.
    """
    total_outdated = sum(r.outdated_count for r in reports)
    total_advisories = sum(r.advisory_count for r in reports)
    total_critical = sum(r.critical_count for r in reports)

    if total_critical:
        return (
            f"[Security Alert] {total_critical} critical vulnerabilities - "
            f"{total_advisories} advisories, {total_outdated} outdated packages"
        )
    if total_advisories:
        return f"[Security] {total_advisories} vulnerabilities, {total_outdated} outdated packages"
    if total_outdated:
        return f"Dependency Update Report - {total_outdated} packages need attention"
    return ALL_CLEAR_SUBJECT


def _advisory_line(advisory: SecurityAdvisory) -> str:
    cve = f" ({advisory.cve_id})" if advisory.cve_id else ""
    patched = advisory.first_patched_version or "none"
    return (
        f"[{advisory.severity.value.upper()}] {advisory.package}{cve}: {advisory.summary} "
        f"- vulnerable {advisory.vulnerable_range or 'unknown'}, patched {patched}"
    )


def render_report_text(analysis: str, reports: List[RepositoryReport]) -> str:
    """Plain text version of the full report."""
    total_outdated = sum(r.outdated_count for r in reports)
    total_advisories = sum(r.advisory_count for r in reports)

    lines = [
        "Dependency Update Report",
        "========================",
        "",
        f"Date:                  {_check_date()}",
        f"Repositories checked:  {len(reports)}",
        f"Outdated packages:     {total_outdated}",
        f"Security advisories:   {total_advisories}",
        "",
        "AI Analysis",
        "-----------",
        analysis.strip(),
        "",
        "Detailed Findings",
        "-----------------",
    ]

    for report in reports:
        lines.append("")
        lines.append(report.target.full_name)
        if not report.manifest_found:
            lines.append("  (package.json could not be read)")
        for advisory in report.advisories_by_severity:
            lines.append(f"  ! {_advisory_line(advisory)}")
            if advisory.url:
                lines.append(f"    {advisory.url}")
        for record in report.outdated:
            lines.append(f"  - {record.name}: {record.current} -> {record.latest}")
        if not report.has_findings:
            lines.append("  Up to date")

    lines.extend(["", "-- ", "This is an automated report from Depwatch"])
    return "\n".join(lines)


def _render_repository_html(report: RepositoryReport) -> str:
    parts = [f'<div class="repo"><h3>{_escape(report.target.full_name)}</h3>']

    if not report.manifest_found:
        parts.append('<p class="note">package.json could not be read; dependency versions were not checked.</p>')

    if report.advisories:
        parts.append("<h4>Security Advisories</h4><ul>")
        for advisory in report.advisories_by_severity:
            colors = SEVERITY_COLORS[advisory.severity]
            cve = f" ({_escape(advisory.cve_id)})" if advisory.cve_id else ""
            link = f' <a href="{_escape(advisory.url)}">details</a>' if advisory.url else ""
            patched = _escape(advisory.first_patched_version) or "no patch available"
            parts.append(
                f'<li><span class="badge" style="background: {colors["bg"]}; color: {colors["text"]};">'
                f'{advisory.severity.value}</span> <strong>{_escape(advisory.package)}</strong>{cve}: '
                f'{_escape(advisory.summary)}<br><small>Vulnerable: <code>{_escape(advisory.vulnerable_range)}</code>'
                f' &middot; Patched: <code>{patched}</code>{link}</small></li>'
            )
        parts.append("</ul>")

    if report.outdated:
        parts.append("<h4>Outdated Packages</h4><ul>")
        for record in report.outdated:
            description = f"<br><small>{_escape(record.description)}</small>" if record.description else ""
            parts.append(
                f"<li><strong>{_escape(record.name)}</strong>: "
                f"{_escape(record.current)} &rarr; {_escape(record.latest)}{description}</li>"
            )
        parts.append("</ul>")

    if not report.has_findings:
        parts.append("<p>Up to date.</p>")

    parts.append("</div>")
    return "\n".join(parts)


def render_report_html(analysis: str, reports: List[RepositoryReport]) -> str:
    """HTML version of the full report."""
    total_outdated = sum(r.outdated_count for r in reports)
    total_advisories = sum(r.advisory_count for r in reports)
    total_critical = sum(r.critical_count for r in reports)
    header_class = "header alert" if total_critical else "header"
    repositories = "\n".join(_render_repository_html(r) for r in reports)

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>{STYLE}</style>
</head>
<body>
    <div class="container">
        <div class="{header_class}">
            <h1>Dependency Update Report</h1>
            <p>{_check_date()}</p>
        </div>
        <div class="content">
            <div class="stats">
                <div class="stat-box">
                    <div class="stat-value">{len(reports)}</div>
                    <div class="stat-label">Repositories</div>
                </div>
                <div class="stat-box">
                    <div class="stat-value">{total_outdated}</div>
                    <div class="stat-label">Outdated Packages</div>
                </div>
                <div class="stat-box">
                    <div class="stat-value" style="color: {'#dc3545' if total_advisories else '#28a745'}">{total_advisories}</div>
                    <div class="stat-label">Advisories</div>
                </div>
            </div>

            <h2>AI Analysis</h2>
            <div class="analysis">{_escape(analysis.strip())}</div>

            <h2>Detailed Findings</h2>
            {repositories}
        </div>
        <div class="footer">
            This is an automated report from Depwatch
        </div>
    </div>
</body>
</html>
"""


class EmailSender:
    """
    Gmail SMTP email sender for dependency reports.

    Uses Gmail's SMTP server with STARTTLS and app password
    authentication. Sends multipart messages with plain text
    and HTML versions.
    """

    GMAIL_SMTP_HOST = "smtp.gmail.com"
    GMAIL_SMTP_PORT_TLS = 587  # STARTTLS

    def __init__(self, config: Config):
        """
        Initialize the email sender.

        Args:
            config: Application configuration with Gmail credentials.
        """
        self.config = config
        self.gmail_user = config.gmail_user
        self.gmail_password = config.gmail_app_password
        self.recipient = config.recipient_email
        self.timeout = config.request_timeout_seconds

        self.ssl_context = ssl.create_default_context()

        logger.info(
            "email_sender_initialized",
            from_address=self.gmail_user,
            to_address=self.recipient
        )

    def _check_credentials(self):
        missing = [
            name for name, value in (
                ("GMAIL_USER", self.gmail_user),
                ("GMAIL_APP_PASSWORD", self.gmail_password),
                ("RECIPIENT_EMAIL", self.recipient),
            ) if not value
        ]
        if missing:
            raise EmailDeliveryError(f"Cannot send email, missing: {', '.join(missing)}")

    def _build_message(
        self,
        subject: str,
        text_body: str,
        html_body: str,
        high_priority: bool = False
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.gmail_user
        msg["To"] = self.recipient
        msg["X-Priority"] = "1" if high_priority else "3"
        msg["X-Mailer"] = "Depwatch Dependency Monitor"

        # Plain text first, HTML preferred
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        return msg

    def _send_smtp(self, msg: MIMEMultipart):
        """
        Send email via SMTP, once.

        Raises:
            EmailDeliveryError: On any SMTP or connection error.
        """
        logger.debug("smtp_connecting", host=self.GMAIL_SMTP_HOST)

        kwargs = {"timeout": self.timeout} if self.timeout else {}
        try:
            with smtplib.SMTP(self.GMAIL_SMTP_HOST, self.GMAIL_SMTP_PORT_TLS, **kwargs) as server:
                server.ehlo()
                server.starttls(context=self.ssl_context)
                server.ehlo()
                server.login(self.gmail_user, self.gmail_password)
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error("smtp_authentication_failed", error=str(e))
            raise EmailDeliveryError(f"SMTP authentication failed: {e}") from e
        except smtplib.SMTPRecipientsRefused as e:
            logger.error("smtp_recipients_refused", recipient=self.recipient, error=str(e))
            raise EmailDeliveryError(f"Recipient refused: {self.recipient}") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error("smtp_error", error=str(e))
            raise EmailDeliveryError(f"Email delivery failed: {e}") from e

        logger.info("email_sent", subject=msg["Subject"], to=self.recipient)

    def send_all_clear(self, reports: List[RepositoryReport]) -> str:
        """
        Send the short notice for a run with nothing to report.

        Returns:
            Subject of the sent message.
        """
        self._check_credentials()
        logger.info("sending_all_clear_email", repositories=len(reports))

        checked = "\n".join(f"  - {r.target.full_name}" for r in reports)
        text_body = (
            "Good news! All your projects have up-to-date dependencies "
            "and no open security advisories.\n\n"
            f"Repositories checked:\n{checked}\n\n"
            f"Checked on: {_check_date()}"
        )
        items = "".join(f"<li>{_escape(r.target.full_name)}</li>" for r in reports)
        html_body = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><style>{STYLE}</style></head>
<body>
    <div class="container">
        <div class="header"><h1>All Up To Date</h1></div>
        <div class="content">
            <p>Good news! All your projects have up-to-date dependencies and no open security advisories.</p>
            <ul>{items}</ul>
            <p><small>Checked on: {_check_date()}</small></p>
        </div>
    </div>
</body>
</html>
"""

        msg = self._build_message(ALL_CLEAR_SUBJECT, text_body, html_body)
        self._send_smtp(msg)
        return ALL_CLEAR_SUBJECT

    def send_report(self, analysis: str, reports: List[RepositoryReport]) -> str:
        """
        Send the full report with AI analysis and per-repository findings.

        Returns:
            Subject of the sent message.
        """
        self._check_credentials()

        subject = build_subject(reports)
        logger.info("sending_report_email", subject=subject)

        msg = self._build_message(
            subject,
            render_report_text(analysis, reports),
            render_report_html(analysis, reports),
            high_priority=any(r.critical_count for r in reports)
        )
        self._send_smtp(msg)
        return subject

