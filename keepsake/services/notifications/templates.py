"""Email subjects and bodies."""

from html import escape

from keepsake.core.config import settings


def _wrap(body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"{body}"
        f'<p style="color:#666;font-size:12px;">Sent by {escape(settings.app_name)}</p>'
        "</div>"
    )


def invitation_email(owner_name: str, contact_name: str, trusted: bool) -> tuple[str, str]:
    owner = escape(owner_name)
    role_line = (
        f"{owner} has chosen you as a trusted contact. If something happens to them, "
        "you will be able to receive the video messages they leave behind."
        if trusted
        else f"{owner} wants to share video messages with you."
    )
    subject = f"{owner_name} added you on {settings.app_name}"
    html = _wrap(
        f"<h2>Hi {escape(contact_name)},</h2>"
        f"<p>{role_line}</p>"
        f'<p><a href="{settings.app_url}/signup">Create your account</a> to stay connected.</p>'
    )
    return subject, html


def existing_user_invitation_email(owner_name: str, contact_name: str, trusted: bool) -> tuple[str, str]:
    owner = escape(owner_name)
    kind = "a trusted contact" if trusted else "a contact"
    subject = f"{owner_name} added you as {kind}"
    html = _wrap(
        f"<h2>Hi {escape(contact_name)},</h2>"
        f"<p>{owner} added you as {kind} on {escape(settings.app_name)}.</p>"
        f'<p><a href="{settings.app_url}/relationships">See your relationships</a></p>'
    )
    return subject, html


def legacy_release_email(owner_name: str, contact_name: str, owner_id: str) -> tuple[str, str]:
    owner = escape(owner_name)
    subject = f"{owner_name} left video messages for you"
    html = _wrap(
        f"<h2>Dear {escape(contact_name)},</h2>"
        f"<p>We are sorry for your loss. {owner} recorded video messages to be shared "
        "with you after their passing.</p>"
        f'<p><a href="{settings.app_url}/legacy/{owner_id}">View the messages</a></p>'
    )
    return subject, html


def passing_notice_email(owner_name: str, contact_name: str) -> tuple[str, str]:
    subject = f"In memory of {owner_name}"
    html = _wrap(
        f"<h2>Dear {escape(contact_name)},</h2>"
        f"<p>We are sorry to tell you that {escape(owner_name)} has passed away. "
        "You were one of their contacts.</p>"
    )
    return subject, html
