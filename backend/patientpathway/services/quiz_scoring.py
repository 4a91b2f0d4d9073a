"""
Quiz scoring for the built-in symptom assessments and doctor-built quizzes.

Each built-in quiz maps answer labels to points, sums them, and classifies
the total (or its percentage of the maximum) into a severity band:
normal, mild, moderate or severe.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..models.lead import QuizType


logger = logging.getLogger(__name__)


@dataclass
class QuizResult:
    score: int
    interpretation: str
    severity: str
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# A band is (minimum value, severity, interpretation, summary), highest first.
Band = Tuple[float, str, str, str]

AnswerInput = Union[str, Dict[str, Any]]


# =============================================================================
# Answer Label Maps
# =============================================================================

SNOT_POINTS = {
    "0 - Not a problem": 0,
    "1 - Very Mild Problem": 1,
    "2 - Moderate Problem": 2,
    "3 - Fairly Bad Problem": 3,
    "4 - Severe Problem": 4,
    "5 - Problem as bad as it can be": 5,
}

NOSE_POINTS = {
    "0 - Not a problem": 0,
    "1 - Very Mild": 1,
    "2 - Moderate": 2,
    "3 - Fairly Bad": 3,
    "4 - Severe": 4,
}

HHIA_POINTS = {"0 - No": 0, "2 - Sometimes": 2, "4 - Yes": 4}

EPWORTH_POINTS = {
    "0 - Would never nod off": 0,
    "1 - Slight chance of nodding off": 1,
    "2 - Moderate chance of nodding off": 2,
    "3 - High chance of nodding off": 3,
}

DHI_POINTS = {"No": 0, "Sometimes": 2, "Yes": 4}

TNSS_POINTS = {
    "NO symptoms": 0,
    "MILD Symptoms present but easily tolerated": 1,
    "MODERATE Symptoms present and bothersome": 2,
    "SEVERE Symptoms present and interfere with activities of daily living and/or sleep": 3,
}


# =============================================================================
# Severity Bands
# =============================================================================

SNOT_BANDS: List[Band] = [
    (41, "severe",
     "🚨 Your score suggests severe chronic rhinitis. We recommend consulting a specialist as soon as possible.",
     "You scored in the severe range, indicating significant impact on your quality of life from nasal and sinus symptoms."),
    (16, "moderate",
     "⚠️ Your score indicates significant chronic rhinitis, a common but treatable condition.",
     "You scored in the moderate range, suggesting your symptoms may benefit from professional evaluation and treatment."),
    (0, "normal",
     "✅ You appear to have No to Mild Chronic rhinitis at this time.",
     "You scored in the normal range, indicating minimal impact from nasal and sinus symptoms."),
]

NOSE_BANDS: List[Band] = [
    (75, "severe",
     "🚨 Your score suggests severe nasal obstruction. We recommend consulting a specialist as soon as possible.",
     "You scored in the severe range, indicating significant breathing difficulties through your nose."),
    (50, "moderate",
     "⚠️ Your score indicates significant nasal obstruction, a common but treatable condition.",
     "You scored in the moderate range, suggesting noticeable nasal breathing problems that may benefit from treatment."),
    (25, "mild",
     "🙂 Your score shows moderate symptoms. Monitoring and early care may be helpful.",
     "You scored in the mild range, indicating some nasal obstruction symptoms worth monitoring."),
    (0, "normal",
     "✅ You appear to have mild or no nasal obstruction at this time.",
     "You scored in the normal range, indicating minimal nasal breathing problems."),
]

HHIA_BANDS: List[Band] = [
    (44, "severe",
     "🚨 Your score suggests a significant hearing handicap. Please consider consulting an audiologist or ENT specialist.",
     "You scored in the severe range, indicating significant impact on daily activities due to hearing difficulties."),
    (18, "moderate",
     "⚠️ Your score indicates a mild to moderate hearing handicap, which may impact your daily communication.",
     "You scored in the moderate range, suggesting some hearing-related challenges in social situations."),
    (0, "normal",
     "✅ You appear to have no significant hearing handicap at this time.",
     "You scored in the normal range, indicating minimal impact from hearing difficulties."),
]

EPWORTH_BANDS: List[Band] = [
    (16, "severe",
     "Your score suggests severe daytime sleepiness. Please seek medical attention, as this could indicate a serious underlying sleep disorder.",
     "You scored in the severe range, indicating excessive daytime sleepiness that may require immediate medical attention."),
    (10, "moderate",
     "Your score raises concern: you may need to get more sleep, improve your sleep hygiene, or consult a doctor.",
     "You scored in the moderate range, suggesting significant daytime sleepiness that warrants further evaluation."),
    (5, "mild",
     "Your score shows mild sleepiness. Monitor your sleep habits and stay consistent with your sleep routine.",
     "You scored in the mild range, indicating some daytime sleepiness worth monitoring."),
    (0, "normal",
     "You appear to have normal sleep patterns with no excessive daytime sleepiness.",
     "You scored in the normal range, indicating healthy sleep patterns and alertness during the day."),
]

DHI_BANDS: List[Band] = [
    (54, "severe",
     "🚨 Your score indicates severe handicap. Please consult a balance specialist.",
     "You scored in the severe range, indicating significant impact on daily activities due to dizziness and balance issues."),
    (36, "moderate",
     "⚠️ Your score indicates moderate handicap. Consider consulting a specialist.",
     "You scored in the moderate range, suggesting noticeable impact from dizziness symptoms."),
    (16, "mild",
     "🙂 Your score indicates mild handicap. Monitoring may be helpful.",
     "You scored in the mild range, indicating some dizziness-related difficulties worth monitoring."),
    (0, "normal",
     "✅ You appear to have minimal dizziness handicap at this time.",
     "You scored in the normal range, indicating minimal impact from dizziness or balance problems."),
]

STOP_BANDS: List[Band] = [
    (5, "severe",
     "🚨 High Risk: You have a high risk of obstructive sleep apnea. Please consult a sleep specialist.",
     "You scored in the high-risk range for sleep apnea, indicating multiple risk factors are present."),
    (3, "moderate",
     "⚠️ Intermediate Risk: You have an intermediate risk of obstructive sleep apnea. Consider evaluation.",
     "You scored in the intermediate-risk range, suggesting some risk factors for sleep apnea are present."),
    (0, "normal",
     "✅ Low Risk: You have a low risk of obstructive sleep apnea.",
     "You scored in the low-risk range, indicating few risk factors for sleep apnea."),
]

TNSS_BANDS: List[Band] = [
    (9, "severe",
     "🚨 Your score suggests severe chronic rhinitis symptoms. We recommend consulting a specialist as soon as possible.",
     "You scored in the severe range, indicating significant impact from nasal allergy symptoms."),
    (6, "moderate",
     "⚠️ Your score indicates moderate chronic rhinitis symptoms, a common but treatable condition.",
     "You scored in the moderate range, suggesting noticeable nasal allergy symptoms that may benefit from treatment."),
    (1, "mild",
     "🙂 Your score shows mild chronic rhinitis symptoms. Monitoring and early care may be helpful.",
     "You scored in the mild range, indicating some nasal allergy symptoms worth monitoring."),
    (0, "normal",
     "✅ You appear to have no chronic rhinitis symptoms at this time.",
     "You scored in the normal range, indicating no significant nasal allergy symptoms."),
]


# =============================================================================
# Quiz Catalog
# =============================================================================

QUIZ_CATALOG: Dict[str, Dict[str, Any]] = {
    QuizType.SNOT22.value: {
        "title": "SNOT-22 Assessment",
        "description": "The SNOT-22 is a comprehensive 22-item questionnaire that measures the impact of sinonasal symptoms on your quality of life.",
        "max_score": 110,
        "score_interpretation": "Scores range from 0-110, where 0-20 indicates minimal impact, 21-50 indicates moderate impact, and 51+ indicates severe impact on quality of life.",
    },
    QuizType.SNOT12.value: {
        "title": "SNOT-12 Assessment",
        "description": "The SNOT-12 is a 12-item questionnaire that measures the impact of sinonasal symptoms on your quality of life.",
        "max_score": 60,
        "score_interpretation": "Scores range from 0-60, where 0-12 indicates minimal impact, 13-30 indicates moderate impact, and 31+ indicates severe impact.",
    },
    QuizType.NOSE.value: {
        "title": "Nasal Obstruction Symptom Evaluation",
        "description": "The NOSE scale measures the severity of nasal obstruction symptoms and their impact on your quality of life.",
        "max_score": 20,
        "score_interpretation": "Scores range from 0-20, where 0-5 indicates mild symptoms, 6-10 indicates moderate symptoms, and 11-20 indicates severe symptoms.",
    },
    QuizType.HHIA.value: {
        "title": "Hearing Handicap Inventory for Adults",
        "description": "The HHIA assesses the psychosocial impact of hearing loss on your daily life and communication abilities.",
        "max_score": 100,
        "score_interpretation": "Scores range from 0-100, where 0-16 indicates no handicap, 18-42 indicates mild to moderate handicap, and 44+ indicates significant handicap.",
    },
    QuizType.EPWORTH.value: {
        "title": "Epworth Sleepiness Scale",
        "description": "Measure your general level of daytime sleepiness.",
        "max_score": 24,
        "score_interpretation": "Scores range from 0-24, where 0-4 is normal, 5-9 mild, 10-15 moderate, and 16+ severe daytime sleepiness.",
    },
    QuizType.DHI.value: {
        "title": "Dizziness Handicap Inventory",
        "description": "Assessment of dizziness impact on daily activities.",
        "max_score": 100,
        "score_interpretation": "Scores range from 0-100, where 16-34 indicates mild, 36-52 moderate, and 54+ severe handicap.",
    },
    QuizType.STOP.value: {
        "title": "STOP-Bang Sleep Apnea Screening",
        "description": "The STOP assessment evaluates your risk of sleep apnea based on snoring, tiredness, observed apneas, and blood pressure.",
        "max_score": 8,
        "score_interpretation": "Scores range from 0-8, where 0-2 indicates low risk, 3-4 intermediate risk, and 5+ high risk of sleep apnea.",
    },
    QuizType.TNSS.value: {
        "title": "Total Nasal Symptom Score (TNSS)",
        "description": "The TNSS is a validated 4-question assessment that evaluates the severity of your nasal allergy symptoms including nasal congestion, runny nose, nasal itching, and sneezing.",
        "max_score": 12,
        "score_interpretation": "Scores range from 0-12, where 0-3 indicates mild symptoms, 4-7 indicates moderate symptoms, and 8-12 indicates severe symptoms.",
    },
}


def get_quiz_info(quiz_type: str) -> Dict[str, Any]:
    """Catalog entry for a quiz type, with a generic entry for unknown types."""
    info = QUIZ_CATALOG.get((quiz_type or "").upper())
    if info:
        return info
    return {
        "title": f"{quiz_type} Assessment",
        "description": "This assessment helps evaluate your symptoms and provides personalized insights.",
        "max_score": None,
        "score_interpretation": "Your score indicates the severity of your symptoms and their impact on your daily life.",
    }


# =============================================================================
# Scoring Helpers
# =============================================================================

def _answer_label(answer: AnswerInput) -> str:
    if isinstance(answer, dict):
        return str(answer.get("answer", ""))
    return str(answer)


def _sum_points(answers: Iterable[AnswerInput], points: Dict[str, int]) -> int:
    total = 0
    for answer in answers:
        label = _answer_label(answer)
        if label not in points:
            logger.debug(f"Unknown answer label {label!r}, scoring as 0")
        total += points.get(label, 0)
    return total


def _percentage(total: float, maximum: float) -> int:
    """Whole-number percentage, rounding halves up."""
    if maximum <= 0:
        return 0
    return int(math.floor(total / maximum * 100 + 0.5))


def _classify(value: float, bands: Sequence[Band], score: int) -> QuizResult:
    for minimum, severity, interpretation, summary in bands:
        if value >= minimum:
            return QuizResult(score, interpretation, severity, summary)
    _, severity, interpretation, summary = bands[-1]
    return QuizResult(score, interpretation, severity, summary)


# =============================================================================
# Public API
# =============================================================================

def calculate_quiz_score(quiz_type: str, answers: Sequence[AnswerInput]) -> QuizResult:
    """
    Score a built-in quiz.

    Args:
        quiz_type: One of the QuizType values (case-insensitive)
        answers: Answer labels, or dicts with an "answer" key

    Returns:
        QuizResult with score, severity band and patient-facing text
    """
    quiz_type = (quiz_type or "").upper()
    answers = list(answers or [])

    if quiz_type in (QuizType.SNOT22.value, QuizType.SNOT12.value):
        total = _sum_points(answers, SNOT_POINTS)
        return _classify(_percentage(total, len(answers) * 5), SNOT_BANDS, total)

    if quiz_type == QuizType.NOSE.value:
        total = _sum_points(answers, NOSE_POINTS)
        return _classify(_percentage(total, 20), NOSE_BANDS, total)

    if quiz_type == QuizType.HHIA.value:
        total = _sum_points(answers, HHIA_POINTS) * 5
        return _classify(total, HHIA_BANDS, total)

    if quiz_type == QuizType.EPWORTH.value:
        total = _sum_points(answers, EPWORTH_POINTS)
        return _classify(total, EPWORTH_BANDS, total)

    if quiz_type == QuizType.DHI.value:
        total = _sum_points(answers, DHI_POINTS)
        return _classify(total, DHI_BANDS, total)

    if quiz_type == QuizType.STOP.value:
        total = sum(1 for answer in answers if _answer_label(answer) == "Yes")
        return _classify(total, STOP_BANDS, total)

    if quiz_type == QuizType.TNSS.value:
        total = _sum_points(answers, TNSS_POINTS)
        return _classify(total, TNSS_BANDS, total)

    return QuizResult(
        score=0,
        interpretation="Unknown quiz type",
        severity="normal",
        summary="Unable to calculate score for unknown quiz type.",
    )


def calculate_max_score(questions: Sequence[Dict[str, Any]]) -> int:
    """Sum of each question's highest option value."""
    total = 0
    for question in questions or []:
        values = [_option_value(option) for option in question.get("options") or []]
        if values:
            total += max(values)
    return total


def _option_value(option: Any) -> int:
    if isinstance(option, dict):
        option = option.get("value", 0)
    try:
        return int(option)
    except (TypeError, ValueError):
        return 0


def score_custom_quiz(
    questions: Sequence[Dict[str, Any]],
    scoring: Optional[Dict[str, Any]],
    answers: Sequence[Any],
    max_score: Optional[int] = None,
) -> QuizResult:
    """
    Score a doctor-built quiz.

    Answers carry option values (or dicts with a "value" key). The total is
    compared, as a percentage of the maximum, with the quiz's mild, moderate
    and severe thresholds (defaults 25/50/75).
    """
    scoring = scoring or {}
    total = sum(_option_value(answer) for answer in answers or [])
    maximum = max_score if max_score else calculate_max_score(questions)
    percent = _percentage(total, maximum)

    bands: List[Band] = [
        (float(scoring.get("severe_threshold", 75)), "severe",
         "Your responses indicate severe symptoms. We recommend scheduling a consultation soon.",
         "You scored in the severe range."),
        (float(scoring.get("moderate_threshold", 50)), "moderate",
         "Your responses indicate moderate symptoms that may benefit from evaluation.",
         "You scored in the moderate range."),
        (float(scoring.get("mild_threshold", 25)), "mild",
         "Your responses indicate mild symptoms. Keep monitoring how you feel.",
         "You scored in the mild range."),
        (0, "normal",
         "Your responses indicate minimal symptoms at this time.",
         "You scored in the normal range."),
    ]
    return _classify(percent, bands, total)
