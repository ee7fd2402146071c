"""
Email Service using Resend

Applicant notifications: submission receipts and review decisions.
Without RESEND_API_KEY the message is logged instead of sent.
"""

import asyncio
import logging
import os
from html import escape

import resend

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = os.getenv("RESEND_API_KEY")

# Configurations
EMAIL_FROM = os.getenv("EMAIL_FROM", "Liet Ka Pas Bursaries <noreply@lietkapas.org>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
        .header {{ color: #14532d; margin-bottom: 24px; }}
        .reference {{ font-family: monospace; background: #f3f4f6; padding: 8px 12px; border-radius: 6px; }}
        .button {{ display: inline-block; background-color: #14532d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
        .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
    </style>
</head>
<body>
    <div class="container">
        <h1 class="header">{title}</h1>
        {body}
        <div class="footer">
            <p>Liet Ka Pas - Education &amp; Health Bursaries</p>
        </div>
    </div>
</body>
</html>
"""

_STATUS_MESSAGES = {
    "pending": "Your application is waiting in the review queue.",
    "under_review": "Our team is now reviewing your application.",
    "approved": "Congratulations! Your application has been approved.",
    "rejected": "Unfortunately, your application was not approved.",
}


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_application_received(
    to_email: str,
    applicant_name: str,
    application_type: str,
    reference_id: str,
) -> bool:
    """Send a submission receipt carrying the reference id."""
    safe_name = escape(applicant_name)
    safe_type = escape(application_type)
    safe_reference = escape(reference_id)

    status_url = f"{FRONTEND_URL}/status?reference={safe_reference}"
    body = f"""
        <p>Hello {safe_name},</p>
        <p>We have received your <strong>{safe_type}</strong> bursary application.</p>
        <p>Your reference ID is:</p>
        <p class="reference">{safe_reference}</p>
        <p>Keep it safe: you will need it to track your application.</p>
        <a href="{status_url}" class="button">Track Application</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application received - reference {safe_reference}",
        html_content=_LAYOUT.format(title="Application Received", body=body),
    )


async def send_status_update(
    to_email: str,
    applicant_name: str,
    reference_id: str,
    status: str,
    admin_comments: str | None = None,
) -> bool:
    """Tell the applicant that an administrator changed their application status."""
    safe_name = escape(applicant_name)
    safe_reference = escape(reference_id)
    status_label = status.replace("_", " ").title()
    message = _STATUS_MESSAGES.get(status, f"Your application status is now {status_label}.")

    comments_html = ""
    if admin_comments:
        comments_html = f"<p><strong>Reviewer comments:</strong></p><p>{escape(admin_comments)}</p>"

    status_url = f"{FRONTEND_URL}/status?reference={safe_reference}"
    body = f"""
        <p>Hello {safe_name},</p>
        <p>{message}</p>
        <p class="reference">{safe_reference}</p>
        {comments_html}
        <a href="{status_url}" class="button">View Status</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application {safe_reference}: {status_label}",
        html_content=_LAYOUT.format(title=f"Application {status_label}", body=body),
    )
