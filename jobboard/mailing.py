"""Jobs-changed notification email: HTML rendering and SMTP delivery."""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Dict, List, Sequence

from .differ import ChangeReport
from .logger import get_logger

logger = get_logger()

SUBJECT = "Jobboard : mise à jour des missions"


class MailError(Exception):
    """Raised when the notification email cannot be delivered."""


def _job_line(job: Dict[str, Any]) -> str:
    activity = job.get("activity") or {}
    project = job.get("project") or {}
    title = escape(str(activity.get("title") or ""))
    project_name = escape(str(project.get("name") or ""))
    return f"<li><strong>{title}</strong> pour le projet {project_name}</li>"


def _job_section(heading: str, jobs: List[Dict[str, Any]]) -> str:
    items = "".join(_job_line(job) for job in jobs)
    return f"<p>{len(jobs)} {heading} :</p><ul>{items}</ul>"


def render_jobs_changed_email(report: ChangeReport, jobboard_url: str = "https://jobs.octo.com") -> str:
    """Render the HTML body listing added and removed jobs."""
    url = escape(jobboard_url, quote=True)
    html = "<p>Bonjour,</p>"
    html += f'<p>Il y a du nouveau du côté du <a href="{url}">Jobboard</a>.</p>'
    if report.added_jobs:
        html += _job_section("nouvelle(s) mission(s) à staffer", report.added_jobs)
    if report.removed_jobs:
        html += _job_section("mission(s) retirée(s)", report.removed_jobs)
    return html


def render_jobs_changed_text(report: ChangeReport, jobboard_url: str = "https://jobs.octo.com") -> str:
    """Plain-text alternative of the HTML body."""
    lines = ["Bonjour,", "", f"Il y a du nouveau du côté du Jobboard ({jobboard_url})."]
    for heading, jobs in (
        ("nouvelle(s) mission(s) à staffer", report.added_jobs),
        ("mission(s) retirée(s)", report.removed_jobs),
    ):
        if not jobs:
            continue
        lines += ["", f"{len(jobs)} {heading} :"]
        for job in jobs:
            activity = job.get("activity") or {}
            project = job.get("project") or {}
            lines.append(f"- {activity.get('title') or ''} pour le projet {project.get('name') or ''}")
    return "\n".join(lines)


class MailService:
    """Sends the jobs-changed email through an SMTP server with STARTTLS."""

    def __init__(self, settings, smtp_factory=smtplib.SMTP):
        self.settings = settings
        self.smtp_factory = smtp_factory

    def _build_message(self, report: ChangeReport) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = SUBJECT
        msg["From"] = self.settings.mail_from
        msg["To"] = self.settings.mail_from
        url = self.settings.jobboard_url
        msg.attach(MIMEText(render_jobs_changed_text(report, url), "plain", "utf-8"))
        msg.attach(MIMEText(render_jobs_changed_email(report, url), "html", "utf-8"))
        return msg

    def send_jobs_changed_email(self, report: ChangeReport, recipients: Sequence[str]) -> None:
        """
        Send one email about ``report`` to every recipient. Recipients only
        appear in the SMTP envelope, never in the headers.

        Raises:
            MailError: if SMTP is not configured or delivery fails
        """
        if not recipients:
            return
        if not self.settings.smtp_configured:
            raise MailError("SMTP not configured (set SMTP_HOST, SMTP_USER, SMTP_PASSWORD, MAIL_FROM)")

        msg = self._build_message(report)
        s = self.settings
        try:
            with self.smtp_factory(s.smtp_host, s.smtp_port) as server:
                server.starttls()
                server.login(s.smtp_user, s.smtp_password)
                server.sendmail(s.mail_from, list(recipients), msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Jobs-changed email failed", error=str(e), recipients=len(recipients))
            raise MailError(f"Cannot send jobs-changed email: {e}") from e
        logger.info("Jobs-changed email sent", recipients=len(recipients))
