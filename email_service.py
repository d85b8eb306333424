"""
Email Service
Transactional email via the Resend HTTP API.
Every function returns a {"success": bool, ...} result and never raises.
"""

import html
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

import config
from config import Config
from email_log_service import email_log_service

logger = logging.getLogger(__name__)

STYLES = {
    "primary": "#4F46E5",
    "background": "#F8F8F8",
    "text": "#1F2937",
    "muted": "#6B7280",
    "success": "#10B981",
    "warning": "#F59E0B",
    "danger": "#EF4444",
    "font": "Arial, 'Helvetica Neue', Helvetica, sans-serif",
}

STATUS_WORDING = {
    "approved": {
        "emoji": "🎉",
        "color": STYLES["success"],
        "headline": "Congratulations!",
        "message": "Your application has been approved.",
    },
    "rejected": {
        "emoji": "📋",
        "color": STYLES["danger"],
        "headline": "Application Update",
        "message": "Unfortunately, your application was not approved at this time.",
    },
    "pending": {
        "emoji": "⏳",
        "color": STYLES["warning"],
        "headline": "Still Under Review",
        "message": "Your application is still being reviewed.",
    },
    "withdrawn": {
        "emoji": "📝",
        "color": STYLES["muted"],
        "headline": "Application Withdrawn",
        "message": "Your application has been withdrawn.",
    },
}


def _esc(value: Any) -> str:
    return html.escape(str(value)) if value is not None else ""


# ---------------------------
# Template helpers
# ---------------------------
def wrap_email(content: str, preheader: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Rentify</title></head>
<body style="margin:0;padding:0;background-color:{STYLES['background']};font-family:{STYLES['font']};">
  <div style="display:none;max-height:0;overflow:hidden;">{_esc(preheader)}</div>
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0">
    <tr><td align="center" style="padding:40px 20px;">
      <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="max-width:600px;">
        <tr><td align="center" style="padding-bottom:30px;">
          <span style="background-color:{STYLES['primary']};padding:12px 24px;border-radius:8px;font-size:24px;font-weight:bold;color:#FFFFFF;">Rentify</span>
        </td></tr>
        <tr><td style="background-color:#FFFFFF;border-radius:12px;padding:40px 32px;">{content}</td></tr>
        <tr><td align="center" style="padding-top:30px;color:{STYLES['muted']};font-size:13px;">
          <p style="margin:0 0 8px 0;">Rentify - Your Property Rental Platform</p>
          <p style="margin:0;">Questions? Reply to this email or contact support.</p>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def styled_button(text: str, href: str = "#", color: str = STYLES["primary"]) -> str:
    return (
        f'<p style="margin:24px 0;"><a href="{_esc(href)}" style="display:inline-block;padding:14px 28px;'
        f'background-color:{color};border-radius:8px;color:#FFFFFF;font-weight:600;text-decoration:none;">'
        f"{_esc(text)}</a></p>"
    )


def info_card(title: str, items: Dict[str, Any]) -> str:
    """Key/value table; values are pre-escaped HTML"""
    rows = "".join(
        f'<tr><td style="padding:8px 0;color:{STYLES["muted"]};font-size:14px;width:140px;">{_esc(key)}</td>'
        f'<td style="padding:8px 0;color:{STYLES["text"]};font-size:14px;">{value}</td></tr>'
        for key, value in items.items()
        if value not in (None, "")
    )
    return (
        f'<table role="presentation" width="100%" style="background-color:#F9FAFB;border-radius:8px;margin:20px 0;">'
        f'<tr><td style="padding:20px;"><h3 style="margin:0 0 16px 0;font-size:16px;">{_esc(title)}</h3>'
        f"<table width=\"100%\">{rows}</table></td></tr></table>"
    )


def status_badge(status: str, color: str) -> str:
    return (
        f'<span style="display:inline-block;padding:6px 14px;background-color:{color};color:#FFFFFF;'
        f'font-size:13px;font-weight:600;border-radius:20px;text-transform:uppercase;">{_esc(status)}</span>'
    )


def note_block(title: str, text: str, background: str = "#FEF3C7") -> str:
    return (
        f'<table role="presentation" width="100%" style="background-color:{background};border-radius:8px;margin:20px 0;">'
        f'<tr><td style="padding:20px;"><h3 style="margin:0 0 12px 0;font-size:16px;">{_esc(title)}</h3>'
        f'<p style="margin:0;font-size:14px;line-height:1.5;">{_esc(text)}</p></td></tr></table>'
    )


def application_link(application: Dict[str, Any]) -> str:
    return (
        f"{config.BASE_URL}/application-detail.html?id={application.get('id')}"
        f"&email={quote(application.get('email') or '')}"
    )


def _property_summary(application: Dict[str, Any], prop: Optional[Dict[str, Any]]):
    prop = prop or {}
    title = prop.get("title") or f"Property #{application.get('property_id')}"
    location = prop.get("location") or "N/A"
    return title, location


def _sign_off() -> str:
    return (
        f'<p style="margin:24px 0 0 0;font-size:16px;">Best regards,<br>'
        f'<strong style="color:{STYLES["primary"]};">The Rentify Team</strong></p>'
    )


# ---------------------------
# Sending
# ---------------------------
def send_email(to, subject: str, html_body: str) -> Dict[str, Any]:
    if not Config.RESEND_API_KEY:
        logger.warning("📧 Email skipped: RESEND_API_KEY not configured")
        return {"success": False, "error": "Email not configured"}

    recipients = to if isinstance(to, list) else [to]
    try:
        response = requests.post(
            Config.RESEND_API_URL,
            headers={"Authorization": f"Bearer {Config.RESEND_API_KEY}"},
            json={"from": Config.EMAIL_FROM, "to": recipients, "subject": subject, "html": html_body},
            timeout=10,
        )
        data = response.json() if response.content else {}
        if response.status_code >= 400:
            error = data.get("message") or f"HTTP {response.status_code}"
            logger.error(f"📧 Email send failed: {error}")
            return {"success": False, "error": error}

        logger.info(f"📧 Email sent successfully: {data.get('id')}")
        return {"success": True, "data": data}
    except (requests.RequestException, ValueError) as e:
        logger.error(f"📧 Email send error: {e}")
        return {"success": False, "error": str(e)}


def _log_result(email_type: str, application: Dict[str, Any], subject: str, result: Dict[str, Any]):
    email_log_service.log({
        "type": email_type,
        "application_id": application.get("id"),
        "property_id": application.get("property_id"),
        "recipient": application.get("email"),
        "subject": subject,
        "status": "sent" if result["success"] else "failed",
        "error": result.get("error"),
        "provider_id": (result.get("data") or {}).get("id"),
    })


def send_owner_notification(application: Dict[str, Any], prop: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not Config.OWNER_EMAIL:
        logger.warning("📧 Owner notification skipped: OWNER_EMAIL not configured")
        return {"success": False, "error": "Owner email not configured"}

    title, location = _property_summary(application, prop)
    income = application.get("income")

    content = (
        '<h1 style="margin:0 0 8px 0;font-size:24px;">New Application Received</h1>'
        f'<p style="margin:0 0 24px 0;color:{STYLES["muted"]};">A new rental application has been submitted.</p>'
        + info_card("Property Details", {"Property": _esc(title), "Location": _esc(location)})
        + info_card("Applicant Information", {
            "Name": _esc(application.get("name")),
            "Email": _esc(application.get("email")),
            "Phone": _esc(application.get("phone")),
            "Monthly Income": f"R{income:,}" if isinstance(income, (int, float)) else "N/A",
            "Employment": _esc(application.get("employment") or "N/A"),
            "Occupants": _esc(application.get("occupants") or "N/A"),
        })
        + (note_block("Message from Applicant", application["message"]) if application.get("message") else "")
        + f'<p style="margin:24px 0 0 0;color:{STYLES["muted"]};">Log in to the admin panel to review and respond to this application.</p>'
    )

    result = send_email(
        Config.OWNER_EMAIL,
        f"📋 New Application: {title}",
        wrap_email(content, f"New rental application from {application.get('name')}"),
    )
    if not result["success"]:
        logger.error(f"📧 Owner notification failed: {result.get('error')}")
    return result


def send_applicant_confirmation(application: Dict[str, Any], prop: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    title, location = _property_summary(application, prop)
    subject = f"✅ Application Received: {title}"

    content = (
        '<h1 style="margin:0 0 8px 0;font-size:24px;">Application Received!</h1>'
        f'<p style="margin:0 0 24px 0;color:{STYLES["muted"]};">Thank you for your interest in renting with us.</p>'
        f'<p style="line-height:1.6;">Hi <strong>{_esc(application.get("name"))}</strong>,<br><br>'
        f"We've received your rental application for <strong>{_esc(title)}</strong>. "
        "Our team will review your application and get back to you as soon as possible.</p>"
        + info_card("Application Summary", {
            "Property": _esc(title),
            "Location": _esc(location),
            "Application ID": f"#{application['id']}" if application.get("id") else "Pending",
            "Status": status_badge("Pending Review", STYLES["warning"]),
        })
        + styled_button("View Your Application", application_link(application))
        + _sign_off()
    )

    result = send_email(application.get("email"), subject, wrap_email(content, f"Your application for {title} has been received"))
    _log_result("confirmation", application, subject, result)
    return result


def send_status_update(
    application: Dict[str, Any],
    status: str,
    notes: Optional[str],
    prop: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    title, location = _property_summary(application, prop)
    wording = STATUS_WORDING.get(status, STATUS_WORDING["pending"])
    status_label = status.capitalize()
    subject = f"{wording['emoji']} Application {status_label}: {title}"

    content = (
        f'<div style="text-align:center;font-size:48px;">{wording["emoji"]}</div>'
        f'<h1 style="margin:0 0 8px 0;font-size:24px;text-align:center;">{wording["headline"]}</h1>'
        f'<p style="margin:0 0 24px 0;color:{STYLES["muted"]};text-align:center;">{wording["message"]}</p>'
        f'<p>Hi <strong>{_esc(application.get("name"))}</strong>,</p>'
        + info_card("Application Details", {
            "Property": _esc(title),
            "Location": _esc(location),
            "Status": status_badge(status_label, wording["color"]),
        })
        + (note_block("Additional Notes", notes, "#F9FAFB") if notes else "")
        + (
            note_block(
                "Next Steps",
                "We'll be in touch shortly with details about the lease agreement and move-in process.",
                "#ECFDF5",
            )
            if status == "approved" else ""
        )
        + styled_button("View Application Details", application_link(application))
        + _sign_off()
    )

    result = send_email(application.get("email"), subject, wrap_email(content, f"Your application for {title} has been {status}"))
    _log_result("status_update", application, subject, result)
    return result


def send_message_reply(message: Dict[str, Any], reply_text: str) -> Dict[str, Any]:
    subject = f"Re: {message.get('subject') or 'General Inquiry'}"

    content = (
        '<h1 style="margin:0 0 8px 0;font-size:24px;">We replied to your message</h1>'
        f'<p>Hi <strong>{_esc(message.get("name"))}</strong>,</p>'
        f'<p style="line-height:1.6;white-space:pre-line;">{_esc(reply_text)}</p>'
        + note_block("Your original message", message.get("message") or "", "#F9FAFB")
        + _sign_off()
    )

    result = send_email(message.get("email"), subject, wrap_email(content, "A reply to your enquiry"))
    email_log_service.log({
        "type": "message_reply",
        "property_id": message.get("property_id"),
        "recipient": message.get("email"),
        "subject": subject,
        "status": "sent" if result["success"] else "failed",
        "error": result.get("error"),
        "provider_id": (result.get("data") or {}).get("id"),
    })
    return result
