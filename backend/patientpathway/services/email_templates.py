"""
Email templates for patient and doctor notifications.

Bodies are Jinja2 strings holding the inner table rows only; the frame comes
from email_base.wrap_in_email_layout. Each template also has a plain-text
variant for clients that do not render HTML.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Environment, StrictUndefined

from ..core.config import settings
from .email_base import (
    ALERT_BG_COLOR,
    FONT_STACK,
    SEVERITY_COLORS,
    email_divider,
    wrap_in_email_layout,
)
from .quiz_scoring import get_quiz_info


logger = logging.getLogger(__name__)

_env = Environment(autoescape=True, undefined=StrictUndefined)
_text_env = Environment(autoescape=False, undefined=StrictUndefined)


# =============================================================================
# Severity Helpers
# =============================================================================

def get_alert_severity(score: int) -> str:
    """Severity shown in the doctor's new-lead alert."""
    if score >= 80:
        return "severe"
    if score >= 60:
        return "moderate"
    if score >= 40:
        return "mild"
    return "normal"


def get_result_message(score: int) -> Tuple[str, str]:
    """(score message, recommendation) used in the patient result email."""
    if score >= 8:
        return (
            "Your symptoms are severe and significantly impacting your quality of life.",
            "We recommend scheduling a consultation as soon as possible to discuss treatment options.",
        )
    if score >= 5:
        return (
            "Your symptoms are moderate and affecting your daily activities.",
            "Consider scheduling a consultation to explore treatment options and symptom management strategies.",
        )
    return (
        "Your symptoms are mild and generally well-controlled.",
        "Continue monitoring your symptoms and schedule a consultation if they worsen.",
    )


def summarize_answers(answers: Any) -> List[Dict[str, str]]:
    """Flatten stored answers into question/answer/score rows for the alert table."""
    if not answers:
        return []

    items = answers.items() if isinstance(answers, dict) else enumerate(answers)
    rows = []
    for index, (key, value) in enumerate(items):
        question = f"Question {index + 1}"
        answer = value
        if isinstance(value, dict):
            question = str(value.get("question") or question)
            answer = value.get("answer", value)
        if isinstance(answer, (dict, list)):
            answer = json.dumps(answer)
        score = value if isinstance(value, (int, float)) and not isinstance(value, bool) else "N/A"
        rows.append({"question": question, "answer": str(answer), "score": str(score)})
    return rows


# =============================================================================
# Template Titles (title, subtitle)
# =============================================================================

EMAIL_TITLES = {
    "welcome_email": ("Thank You for Completing Your Assessment", "{{ practice_name }}"),
    "new_lead_alert": ("New Lead Alert", "Patient assessment completed - Action Required"),
    "quiz_result": ("{{ quiz_title }}", "Your personalized assessment results are ready!"),
    "doctor_message": ("Message from Dr. {{ doctor_name }}", "{{ practice_name }}"),
}

EMAIL_SUBJECTS = {
    "welcome_email": "Your {{ quiz_title }} results - {{ practice_name }}",
    "new_lead_alert": "New Lead: {{ patient_name }} - {{ quiz_type }} Assessment (Score: {{ score }})",
    "quiz_result": "Your {{ quiz_title }} Results",
    "doctor_message": "Message from Dr. {{ doctor_name }}",
}


# =============================================================================
# Template Bodies (Jinja2, inner rows only)
# =============================================================================

_DIVIDER = email_divider()
_P = f"margin: 0; font-family: {FONT_STACK}; font-size: 15px; color: #374151; line-height: 1.6;"
_H3 = f"margin: 0 0 8px 0; font-family: {FONT_STACK}; font-size: 18px; font-weight: bold; color: #111827;"

EMAIL_BODY_TEMPLATES = {

    # Patient welcome after a quiz submission
    "welcome_email": f"""
                    <tr>
                        <td style="padding: 24px 30px 0 30px;">
                            <p style="{_P}">Hello {{{{ patient_name }}}},</p>
                            <p style="{_P}">Thank you for completing the <strong>{{{{ quiz_title }}}}</strong>.
                            Your score was <strong>{{{{ score }}}}</strong>.</p>
                            <p style="{_P}">{{{{ doctor_name }}}} and the team at {{{{ practice_name }}}} will review your results and contact you shortly to discuss next steps.</p>
                        </td>
                    </tr>
{_DIVIDER}""",

    # Doctor alert for a new lead
    "new_lead_alert": f"""
                    <tr>
                        <td style="padding: 24px 30px 0 30px;">
                            <h3 style="{_H3}">Patient Information</h3>
                            <p style="{_P}"><strong>Name:</strong> {{{{ patient_name }}}}</p>
                            <p style="{_P}"><strong>Assessment:</strong> {{{{ quiz_type }}}}</p>
                            <p style="{_P}"><strong>Score:</strong> <span style="font-size: 22px; font-weight: bold; color: {{{{ severity_color }}}};">{{{{ score }}}}</span></p>
                            <p style="{_P}"><strong>Severity:</strong> <span style="font-weight: bold; color: {{{{ severity_color }}}};">{{{{ severity | upper }}}}</span></p>
                            <p style="{_P}"><strong>Submitted:</strong> {{{{ submitted_at }}}}</p>
                            <p style="{_P}"><strong>Source:</strong> {{{{ lead_source }}}}</p>
                        </td>
                    </tr>
{_DIVIDER}
                    <tr>
                        <td style="padding: 0 30px;">
                            <h3 style="{_H3}">Contact Information</h3>
                            <p style="{_P}"><strong>Phone:</strong> <a href="tel:{{{{ patient_phone }}}}">{{{{ patient_phone }}}}</a></p>
                            <p style="{_P}"><strong>Email:</strong> <a href="mailto:{{{{ patient_email }}}}">{{{{ patient_email }}}}</a></p>
                        </td>
                    </tr>
{_DIVIDER}
                    <tr>
                        <td style="padding: 0 30px;">
                            <h3 style="{_H3}">Assessment Details</h3>
                            {{% if answers %}}
                            <table width="100%" cellpadding="6" cellspacing="0" border="1" style="border-collapse: collapse; border-color: #dddddd; font-family: {FONT_STACK}; font-size: 14px;">
                                <tr style="background-color: #f2f2f2;"><th align="left">Question</th><th align="left">Answer</th><th align="left">Score</th></tr>
                                {{% for row in answers %}}
                                <tr><td>{{{{ row.question }}}}</td><td>{{{{ row.answer }}}}</td><td>{{{{ row.score }}}}</td></tr>
                                {{% endfor %}}
                            </table>
                            {{% else %}}
                            <p style="{_P}">Detailed answers not available.</p>
                            {{% endif %}}
                        </td>
                    </tr>
{_DIVIDER}
                    <tr>
                        <td style="padding: 0 30px;">
                            <p style="{_P}"><strong>Action Required:</strong> Please contact this patient within 24 hours.</p>
                            <p style="{_P}"><a href="{{{{ dashboard_url }}}}" style="display: inline-block; background: #2563eb; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 6px; margin: 16px 0;">Open Dashboard</a></p>
                        </td>
                    </tr>""",

    # Patient result email
    "quiz_result": f"""
                    <tr>
                        <td style="padding: 24px 30px 0 30px;">
                            <p style="{_P}">Hello {{{{ patient_name }}}},</p>
                            <p style="{_P}">Thank you for completing the <strong>{{{{ quiz_title }}}}</strong> assessment. We've analyzed your responses and prepared personalized insights for you.</p>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding: 24px 30px 0 30px;">
                            <p style="margin: 0; font-family: {FONT_STACK}; font-size: 48px; font-weight: bold; color: #2563eb;">{{{{ score }}}}</p>
                            <p style="{_P}"><strong>Your Total Score</strong></p>
                            <p style="{_P}">{{{{ score_message }}}}</p>
                        </td>
                    </tr>
{_DIVIDER}
                    <tr>
                        <td style="padding: 0 30px;">
                            <h3 style="{_H3}">What This Means</h3>
                            <p style="{_P}">{{{{ quiz_description }}}}</p>
                            <p style="{_P}">{{{{ score_interpretation }}}}</p>
                            <h3 style="{_H3}">Recommendation</h3>
                            <p style="{_P}">{{{{ recommendation }}}}</p>
                            <p style="{_P}">Consider scheduling a consultation with {{{{ doctor_name }}}}.</p>
                        </td>
                    </tr>""",

    # Free-text message a doctor sends to a lead
    "doctor_message": f"""
                    <tr>
                        <td style="padding: 24px 30px 0 30px;">
                            <p style="{_P} white-space: pre-wrap;">{{{{ message }}}}</p>
                            <p style="{_P}">Best regards,<br>Dr. {{{{ doctor_name }}}}</p>
                        </td>
                    </tr>
{_DIVIDER}""",
}


EMAIL_TEXT_TEMPLATES = {
    "welcome_email": (
        "Hello {{ patient_name }},\n\n"
        "Thank you for completing the {{ quiz_title }}. Your score was {{ score }}.\n\n"
        "{{ doctor_name }} and the team at {{ practice_name }} will review your results "
        "and contact you shortly."
    ),
    "new_lead_alert": (
        "New Lead Alert - Patient Assessment Completed\n\n"
        "Patient Information:\n"
        "- Name: {{ patient_name }}\n"
        "- Assessment: {{ quiz_type }}\n"
        "- Score: {{ score }}\n"
        "- Severity: {{ severity | upper }}\n"
        "- Submitted: {{ submitted_at }}\n"
        "- Source: {{ lead_source }}\n\n"
        "Contact Information:\n"
        "- Phone: {{ patient_phone }}\n"
        "- Email: {{ patient_email }}\n\n"
        "Action Required: Please contact this patient within 24 hours.\n\n"
        "Dashboard: {{ dashboard_url }}"
    ),
    "quiz_result": (
        "Your {{ quiz_title }} Results\n\n"
        "Hello {{ patient_name }},\n\n"
        "Thank you for completing the {{ quiz_title }} assessment. Your total score is {{ score }}.\n\n"
        "{{ score_message }}\n\n"
        "Recommendation: {{ recommendation }}\n\n"
        "This assessment is for informational purposes only and should not replace "
        "professional medical advice."
    ),
    "doctor_message": (
        "Message from Dr. {{ doctor_name }}\n\n{{ message }}\n\n"
        "Best regards,\nDr. {{ doctor_name }}\n\n---\nThis email was sent from PatientPathway AI"
    ),
}


# =============================================================================
# Rendering
# =============================================================================

def render_email(template_name: str, context: Dict[str, Any]) -> Dict[str, str]:
    """
    Render subject, HTML and text for a named template.

    Args:
        template_name: Key of EMAIL_BODY_TEMPLATES
        context: Template variables

    Returns:
        Dict with subject, html and text

    Raises:
        KeyError: If the template does not exist
    """
    body = _env.from_string(EMAIL_BODY_TEMPLATES[template_name]).render(**context)
    title, subtitle = EMAIL_TITLES[template_name]

    html = wrap_in_email_layout(
        title=_env.from_string(title).render(**context),
        body_html=body,
        subtitle=_env.from_string(subtitle).render(**context) if subtitle else None,
        header_color=ALERT_BG_COLOR if template_name == "new_lead_alert" else context.get("header_color", "#2563eb"),
        practice_name=context.get("practice_name"),
    )
    return {
        "subject": _text_env.from_string(EMAIL_SUBJECTS[template_name]).render(**context),
        "html": html,
        "text": _text_env.from_string(EMAIL_TEXT_TEMPLATES[template_name]).render(**context),
    }


def _practice_name(doctor) -> str:
    if doctor.clinic_name:
        return doctor.clinic_name
    return f"Dr. {doctor.full_name}" if doctor.full_name else "our medical team"


def build_welcome_email(lead, doctor) -> Dict[str, str]:
    quiz_info = get_quiz_info(lead.quiz_type)
    return render_email("welcome_email", {
        "patient_name": lead.name,
        "quiz_title": quiz_info["title"],
        "score": lead.score,
        "doctor_name": f"Dr. {doctor.full_name}" if doctor.full_name else "Your doctor",
        "practice_name": _practice_name(doctor),
    })


def build_new_lead_alert(lead, doctor=None, app_url: Optional[str] = None) -> Dict[str, str]:
    """New-lead alert for the doctor, with severity and the answers table."""
    severity = get_alert_severity(lead.score)
    submitted_at = lead.submitted_at or datetime.now(timezone.utc)
    return render_email("new_lead_alert", {
        "patient_name": lead.name,
        "patient_phone": lead.phone or "",
        "patient_email": lead.email or "",
        "quiz_type": lead.quiz_type,
        "score": lead.score,
        "severity": severity,
        "severity_color": SEVERITY_COLORS[severity],
        "submitted_at": submitted_at.strftime("%Y-%m-%d %H:%M UTC"),
        "lead_source": lead.lead_source or "Website",
        "answers": summarize_answers(lead.answers),
        "dashboard_url": f"{app_url or settings.app_url}/portal?tab=dashboard",
        "practice_name": _practice_name(doctor) if doctor is not None else None,
    })


def build_quiz_result_email(
    name: str,
    quiz_type: str,
    score: int,
    doctor_name: Optional[str] = None,
    clinic_name: Optional[str] = None,
) -> Dict[str, str]:
    quiz_info = get_quiz_info(quiz_type)
    score_message, recommendation = get_result_message(score)
    return render_email("quiz_result", {
        "patient_name": name,
        "quiz_title": quiz_info["title"],
        "quiz_description": quiz_info["description"],
        "score_interpretation": quiz_info["score_interpretation"],
        "score": score,
        "score_message": score_message,
        "recommendation": recommendation,
        "doctor_name": doctor_name or "our medical team",
        "practice_name": clinic_name,
    })


def build_doctor_message(doctor, message: str) -> Dict[str, str]:
    return render_email("doctor_message", {
        "doctor_name": doctor.full_name,
        "message": message,
        "practice_name": _practice_name(doctor),
    })
