"""Tests for keyword question answering over the resume."""

import re

from cv_email_server.cv_query import (
    CV_RULES,
    FOUND_IN_DOCUMENT_MESSAGE,
    NO_MATCH_MESSAGE,
    CvRule,
    answer_question,
    format_value,
)


class TestRules:
    """Test the individual rules."""

    def test_last_role(self, sample_resume):
        answer = answer_question("What was the last job?", sample_resume)

        assert answer.splitlines() == [
            "• last_position: Staff Engineer",
            "• last_company: Acme Corp",
            "• last_dates: 2022-01 – present",
        ]

    def test_last_role_question(self, sample_resume):
        question = "What was my last role?"

        answer = answer_question(question, sample_resume)

        assert "Staff Engineer" in answer
        assert "Acme Corp" in answer
        assert "2022-01" in answer
        assert "• position: Staff Engineer" in answer
        assert answer_question(question, sample_resume) == answer

    def test_last_role_with_end_date(self, sample_resume):
        sample_resume["work"][-1]["endDate"] = "2024-06"

        answer = answer_question("previous employer", sample_resume)

        assert "• last_dates: 2022-01 – 2024-06" in answer
        assert "• company: Acme Corp" in answer

    def test_multiple_rules_in_order(self, sample_resume):
        answer = answer_question("Name and location?", sample_resume)

        assert answer.splitlines() == ["• name: Jane Doe", "• location: Berlin"]

    def test_skills_are_compact_json(self, sample_resume):
        answer = answer_question("What is your tech stack?", sample_resume)

        assert answer == '• skills: [{"name":"Python"},{"name":"PostgreSQL"}]'

    def test_projects(self, sample_resume):
        answer = answer_question("What have you built?", sample_resume)

        assert answer.startswith("• projects: [")
        assert "Ledger" in answer

    def test_rule_without_data_contributes_nothing(self):
        answer = answer_question("what is the name", {"basics": {}, "work": []})

        assert answer == NO_MATCH_MESSAGE

    def test_empty_skills_list_still_answers(self):
        answer = answer_question("skills?", {"skills": []})

        assert answer == "• skills: []"

    def test_rule_order(self):
        assert [rule.name for rule in CV_RULES] == [
            "last_role",
            "name",
            "position",
            "company",
            "location",
            "skills",
            "projects",
        ]


class TestFallbacks:
    """Test behavior when no rule matches."""

    def test_substring_found_in_document(self, sample_resume):
        answer = answer_question("berlin", sample_resume)

        lines = answer.splitlines()
        assert lines[0] == FOUND_IN_DOCUMENT_MESSAGE
        assert '"Berlin"' in answer

    def test_no_match(self, sample_resume):
        assert answer_question("favourite colour?", sample_resume) == NO_MATCH_MESSAGE

    def test_malformed_document_is_tolerated(self):
        document = {"basics": "oops", "work": ["not an entry"], "skills": None}

        assert answer_question("last role and name", document) == NO_MATCH_MESSAGE


class TestCustomRules:
    def test_rules_are_data(self, sample_resume):
        rules = (CvRule("email", re.compile(r"email"), lambda d: [("email", d.basics.email)]),)

        answer = answer_question("email?", sample_resume, rules=rules)

        assert answer == "• email: jane@example.com"


class TestFormatValue:
    def test_values(self):
        assert format_value(None) == ""
        assert format_value("x") == "x"
        assert format_value(3) == "3"
        assert format_value({"a": [1, 2]}) == '{"a":[1,2]}'
