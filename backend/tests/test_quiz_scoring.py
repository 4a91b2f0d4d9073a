import pytest

from patientpathway.services.quiz_scoring import (
    QUIZ_CATALOG,
    calculate_max_score,
    calculate_quiz_score,
    get_quiz_info,
    score_custom_quiz,
)


class TestBuiltInQuizzes:
    def test_snot22_all_max_is_severe(self):
        result = calculate_quiz_score("SNOT22", ["5 - Problem as bad as it can be"] * 22)
        assert result.score == 110
        assert result.severity == "severe"

    @pytest.mark.parametrize("total,severity", [(17, "normal"), (18, "moderate")])
    def test_snot22_moderate_boundary_uses_rounded_percentage(self, total, severity):
        # 17/110 rounds to 15%, 18/110 to 16%
        answers = ["1 - Very Mild Problem"] * total + ["0 - Not a problem"] * (22 - total)
        result = calculate_quiz_score("SNOT22", answers)
        assert result.score == total
        assert result.severity == severity

    def test_snot12_shares_snot_scoring(self):
        result = calculate_quiz_score("SNOT12", ["3 - Fairly Bad Problem"] * 12)
        assert result.score == 36
        assert result.severity == "severe"

    @pytest.mark.parametrize("answers,score,severity", [
        (["0 - Not a problem"] * 5, 0, "normal"),
        (["1 - Very Mild"] * 5, 5, "mild"),
        (["2 - Moderate"] * 5, 10, "moderate"),
        (["4 - Severe"] * 4 + ["3 - Fairly Bad"], 19, "severe"),
    ])
    def test_nose_bands(self, answers, score, severity):
        result = calculate_quiz_score("NOSE", answers)
        assert result.score == score
        assert result.severity == severity

    def test_hhia_multiplies_raw_score(self):
        assert calculate_quiz_score("HHIA", ["2 - Sometimes"]).score == 10
        assert calculate_quiz_score("HHIA", ["2 - Sometimes"] * 2).severity == "moderate"
        result = calculate_quiz_score("HHIA", ["4 - Yes"] * 3)
        assert result.score == 60
        assert result.severity == "severe"

    def test_epworth_bands(self):
        assert calculate_quiz_score("EPWORTH", ["1 - Slight chance of nodding off"] * 4).severity == "normal"
        assert calculate_quiz_score("EPWORTH", ["1 - Slight chance of nodding off"] * 5).severity == "mild"
        assert calculate_quiz_score("EPWORTH", ["2 - Moderate chance of nodding off"] * 5).severity == "moderate"
        assert calculate_quiz_score("EPWORTH", ["3 - High chance of nodding off"] * 8).severity == "severe"

    def test_dhi_bands(self):
        assert calculate_quiz_score("DHI", ["Yes"] * 4).severity == "mild"
        assert calculate_quiz_score("DHI", ["Yes"] * 9).severity == "moderate"
        result = calculate_quiz_score("DHI", ["Yes"] * 14)
        assert result.score == 56
        assert result.severity == "severe"

    def test_stop_counts_yes_answers(self):
        result = calculate_quiz_score("STOP", ["Yes", "No", "Yes", "Yes"])
        assert result.score == 3
        assert result.severity == "moderate"
        assert calculate_quiz_score("STOP", ["Yes"] * 5).severity == "severe"

    def test_tnss_bands(self):
        mild = "MILD Symptoms present but easily tolerated"
        severe = "SEVERE Symptoms present and interfere with activities of daily living and/or sleep"
        assert calculate_quiz_score("TNSS", ["NO symptoms"] * 4).severity == "normal"
        assert calculate_quiz_score("TNSS", [mild]).severity == "mild"
        assert calculate_quiz_score("TNSS", [severe] * 3).severity == "severe"

    def test_answer_dicts_are_accepted(self):
        result = calculate_quiz_score("NOSE", [{"question": "q1", "answer": "4 - Severe"}] * 5)
        assert result.score == 20

    def test_unknown_label_scores_zero(self):
        result = calculate_quiz_score("NOSE", ["not a real answer", "2 - Moderate"])
        assert result.score == 2

    def test_quiz_type_is_case_insensitive(self):
        assert calculate_quiz_score("nose", ["2 - Moderate"] * 5).score == 10

    def test_unknown_quiz_type(self):
        result = calculate_quiz_score("MYSTERY", ["Yes"])
        assert result.score == 0
        assert result.severity == "normal"
        assert result.interpretation == "Unknown quiz type"


class TestCatalog:
    def test_every_quiz_type_has_an_entry(self):
        assert set(QUIZ_CATALOG) == {"SNOT22", "SNOT12", "NOSE", "HHIA", "EPWORTH", "DHI", "STOP", "TNSS"}

    def test_unknown_type_gets_generic_entry(self):
        info = get_quiz_info("Allergy")
        assert info["title"] == "Allergy Assessment"
        assert info["max_score"] is None


class TestCustomQuizzes:
    questions = [
        {"text": "Q1", "options": [{"text": "No", "value": 0}, {"text": "Yes", "value": 4}]},
        {"text": "Q2", "options": [{"text": "Low", "value": 1}, {"text": "High", "value": 6}]},
    ]

    def test_max_score_sums_highest_option_per_question(self):
        assert calculate_max_score(self.questions) == 10
        assert calculate_max_score([]) == 0

    def test_thresholds_are_percentages_of_max(self):
        scoring = {"mild_threshold": 20, "moderate_threshold": 50, "severe_threshold": 80}
        assert score_custom_quiz(self.questions, scoring, [0, 1]).severity == "normal"
        assert score_custom_quiz(self.questions, scoring, [4, 1]).severity == "moderate"
        result = score_custom_quiz(self.questions, scoring, [4, 6])
        assert result.score == 10
        assert result.severity == "severe"

    def test_default_thresholds(self):
        assert score_custom_quiz(self.questions, None, [{"value": 0}, {"value": 6}]).severity == "moderate"
