"""
Email content templates for certification notifications.

Each formatter returns ``(subject, text, html)``.
"""

from __future__ import annotations

from datetime import datetime
from html import escape

_BRAND_NAVY = "#0A2463"
_BRAND_TEAL = "#3BCEAC"


def _format_date(value: datetime) -> str:
    """Long US date, e.g. ``'March 5, 2026'``."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def _urgency_colour(days_until_expiry: int) -> str:
    if days_until_expiry <= 7:
        return "#DC2626"
    if days_until_expiry <= 30:
        return "#F59E0B"
    return "#3B82F6"


def expiry_subject(days_until_expiry: int) -> str:
    if days_until_expiry <= 0:
        return "[SupplyVault] Certification expired"
    return f"[SupplyVault] Certification expiring in {days_until_expiry} days"


def _wrap_html(heading: str, rows: list[tuple[str, str]], body: str, link: str, colour: str) -> str:
    table = "".join(
        f'<tr><td style="color:#6B7280;padding:4px 12px 4px 0">{escape(label)}</td>'
        f'<td style="color:#111827;font-weight:600">{escape(value)}</td></tr>'
        for label, value in rows
    )
    return (
        '<html><body style="background-color:#F5F5F5;font-family:sans-serif">'
        '<div style="max-width:600px;margin:0 auto;background:#ffffff">'
        f'<div style="background-color:{_BRAND_NAVY};padding:24px;text-align:center">'
        f'<h1 style="color:{_BRAND_TEAL};margin:0">SupplyVault</h1></div>'
        '<div style="padding:32px 24px">'
        f'<h2 style="color:{colour}">{escape(heading)}</h2>'
        f'<p style="color:#374151">{escape(body)}</p>'
        f"<table>{table}</table>"
        f'<p><a href="{escape(link, quote=True)}" '
        f'style="background-color:{_BRAND_NAVY};color:#ffffff;padding:12px 20px;'
        'text-decoration:none;border-radius:6px">View certification</a></p>'
        "</div></div></body></html>"
    )


def format_expiry_alert(
    *,
    supplier_name: str,
    certification_name: str,
    certification_type: str,
    expiry_date: datetime,
    days_until_expiry: int,
    certification_url: str,
) -> tuple[str, str, str]:
    """Render the expiry reminder sent for every alert bucket."""
    expired = days_until_expiry <= 0
    subject = expiry_subject(days_until_expiry)
    heading = (
        "Certification Expired"
        if expired
        else f"Certification Expiring in {days_until_expiry} Days"
    )
    if expired:
        body = (
            f"The {certification_name} certification for {supplier_name} has expired. "
            "Request an updated certificate from the supplier."
        )
    else:
        body = (
            f"The {certification_name} certification for {supplier_name} expires on "
            f"{_format_date(expiry_date)}. Contact the supplier to arrange renewal."
        )

    rows = [
        ("Supplier:", supplier_name),
        ("Certification:", certification_name),
        ("Type:", certification_type),
        ("Expiry Date:", _format_date(expiry_date)),
    ]
    text_lines = [heading, "", body, ""]
    text_lines.extend(f"{label} {value}" for label, value in rows)
    text_lines.extend(["", f"View certification: {certification_url}"])

    html = _wrap_html(
        heading, rows, body, certification_url, _urgency_colour(days_until_expiry)
    )
    return subject, "\n".join(text_lines), html


def format_revocation_alert(
    *,
    supplier_name: str,
    certification_name: str,
    certificate_number: str | None,
    certification_url: str,
) -> tuple[str, str, str]:
    """Render the notice sent when a re-verification no longer confirms a certificate."""
    subject = "[SupplyVault] Certification revoked or suspended"
    heading = "Certification Requires Review"
    body = (
        f"Automatic re-verification could not confirm the {certification_name} "
        f"certification for {supplier_name}. It has been flagged for manual review."
    )
    rows = [
        ("Supplier:", supplier_name),
        ("Certification:", certification_name),
        ("Certificate Number:", certificate_number or "n/a"),
    ]
    text_lines = [heading, "", body, ""]
    text_lines.extend(f"{label} {value}" for label, value in rows)
    text_lines.extend(["", f"Review certification: {certification_url}"])

    html = _wrap_html(heading, rows, body, certification_url, "#DC2626")
    return subject, "\n".join(text_lines), html
