"""
============================================================================
SHARED EMAIL BASE: layout used by every PatientPathway email
============================================================================

Single source of truth for the email frame (header, footer, fonts).
Body content comes from email_templates.py and is wrapped here.

Design system:
- Coloured header bar with title and subtitle
- White body with 30px horizontal padding
- Footer with the sending practice and an informational-use disclaimer
- Arial/Helvetica font stack
============================================================================
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Brand Constants
# =============================================================================
BRAND_NAME = "PatientPathway AI"
HEADER_BG_COLOR = "#2563eb"
ALERT_BG_COLOR = "#dc2626"
FONT_STACK = "Arial, Helvetica, sans-serif"

# Severity colours used in doctor alerts
SEVERITY_COLORS = {
    "severe": "#dc2626",
    "moderate": "#ea580c",
    "mild": "#ca8a04",
    "normal": "#059669",
}


def email_header(title: str, subtitle: Optional[str] = None, color: str = HEADER_BG_COLOR) -> str:
    """
    Build the header bar with a title and optional subtitle.

    Args:
        title: Large white bold text
        subtitle: Smaller white text below title (defaults to brand name)
        color: Header background colour

    Returns:
        HTML string for the header rows
    """
    if subtitle is None:
        subtitle = BRAND_NAME

    return f"""                    <tr>
                        <td align="center" style="background-color: {color}; padding: 24px 30px 6px 30px;">
                            <h1 style="margin: 0; font-family: {FONT_STACK}; font-size: 22px; font-weight: bold; color: #FFFFFF; line-height: 1.3;">
                                {title}
                            </h1>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="background-color: {color}; padding: 0 30px 24px 30px;">
                            <p style="margin: 0; font-family: {FONT_STACK}; font-size: 14px; color: #FFFFFF; line-height: 1.4;">
                                {subtitle}
                            </p>
                        </td>
                    </tr>"""


def email_divider() -> str:
    """Standard horizontal divider."""
    return """                    <tr>
                        <td style="padding: 20px 30px;">
                            <table width="100%" cellpadding="0" cellspacing="0" border="0">
                                <tr><td style="border-top: 1px solid #e5e7eb; font-size: 0; line-height: 0;" height="1">&nbsp;</td></tr>
                            </table>
                        </td>
                    </tr>"""


def email_footer(practice_name: Optional[str] = None) -> str:
    """Footer naming the sending practice, with the informational-use notice."""
    sender = practice_name or BRAND_NAME
    return f"""                    <tr>
                        <td align="center" style="padding: 24px 30px 0 30px;">
                            <p style="margin: 0; font-family: {FONT_STACK}; font-size: 12px; font-weight: bold; color: #6b7280;">
                                {sender}
                            </p>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding: 6px 30px 24px 30px;">
                            <p style="margin: 0; font-family: {FONT_STACK}; font-size: 11px; color: #6b7280; line-height: 1.4;">
                                This assessment is for informational purposes only and should not replace professional medical advice.
                                Sent via {BRAND_NAME}.
                            </p>
                        </td>
                    </tr>"""


def wrap_in_email_layout(
    title: str,
    body_html: str,
    subtitle: Optional[str] = None,
    header_color: str = HEADER_BG_COLOR,
    practice_name: Optional[str] = None,
) -> str:
    """
    Wrap body rows in the full email document.

    Args:
        title: Header title text
        body_html: Inner HTML for the body section (table rows)
        subtitle: Optional subtitle (defaults to brand name)
        header_color: Header bar colour
        practice_name: Practice shown in the footer

    Returns:
        Complete HTML email string
    """
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #f8fafc;">
    <table width="100%" cellpadding="0" cellspacing="0" border="0" style="background-color: #f8fafc;">
        <tr>
            <td align="center" style="padding: 30px 20px;">
                <table width="600" cellpadding="0" cellspacing="0" border="0" style="max-width: 600px; width: 100%; background-color: #FFFFFF; border-radius: 8px; overflow: hidden;">

{email_header(title, subtitle, header_color)}

{body_html}

{email_footer(practice_name)}

                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""
