"""Questionnaire validation rules, with and without a translator."""

import unittest

from giftgen.i18n import get_translator
from giftgen.validation import validate_field, validate_request


def valid_request(**overrides):
    data = {
        "gender": "female",
        "age": 25,
        "interests": ["阅读", "音乐"],
        "pastGifts": [],
        "budget": "100-200元",
        "mbti": "INFP",
    }
    data.update(overrides)
    return data


class TestValidateRequest(unittest.TestCase):
    def test_valid_request_has_no_errors(self) -> None:
        self.assertEqual(validate_request(valid_request()), {})

    def test_accepted_budget_formats(self) -> None:
        for budget in ("0-50元", "1000元以上", "50元以下", "$50-100", "$1000+"):
            with self.subTest(budget=budget):
                self.assertEqual(validate_request(valid_request(budget=budget)), {})

    def test_age_bounds(self) -> None:
        for age in (1, 120):
            self.assertNotIn("age", validate_request(valid_request(age=age)))
        for age in (0, 121, 150):
            with self.subTest(age=age):
                self.assertIn("age", validate_request(valid_request(age=age)))

    def test_age_messages(self) -> None:
        self.assertEqual(validate_field("age", 0), "值不能小于 1")
        self.assertEqual(validate_field("age", 150), "值不能大于 120")

    def test_interest_count(self) -> None:
        self.assertIn("interests", validate_request(valid_request(interests=[])))
        self.assertIn("interests", validate_request(valid_request(interests=[f"i{n}" for n in range(11)])))
        self.assertEqual(validate_request(valid_request(interests=[f"i{n}" for n in range(10)])), {})

    def test_empty_budget_is_required_error(self) -> None:
        errors = validate_request(valid_request(budget=""))
        self.assertEqual(errors, {"budget": "此字段为必填项"})

    def test_malformed_budget(self) -> None:
        self.assertIn("budget", validate_request(valid_request(budget="cheap")))

    def test_optional_fields(self) -> None:
        self.assertEqual(validate_request(valid_request(mbti=None, birthdayDate=None)), {})
        self.assertEqual(validate_request(valid_request(birthdayDate="03-15")), {})
        self.assertIn("birthdayDate", validate_request(valid_request(birthdayDate="13-01")))
        self.assertIn("mbti", validate_request(valid_request(mbti="ABCD")))

    def test_gender_choice(self) -> None:
        self.assertIn("gender", validate_request(valid_request(gender="robot")))
        self.assertIn("gender", validate_request(valid_request(gender="")))

    def test_wrong_kind(self) -> None:
        self.assertEqual(validate_field("age", "25"), "格式不正确")
        self.assertEqual(validate_field("age", True), "格式不正确")
        self.assertEqual(validate_field("interests", "阅读"), "格式不正确")

    def test_past_gift_limit(self) -> None:
        self.assertIn("pastGifts", validate_request(valid_request(pastGifts=[str(n) for n in range(21)])))

    def test_unknown_field_is_ignored(self) -> None:
        self.assertIsNone(validate_field("nickname", ""))

    def test_never_raises_on_missing_fields(self) -> None:
        errors = validate_request({})
        self.assertEqual(set(errors), {"gender", "age", "interests", "budget"})


class TestTranslatedMessages(unittest.TestCase):
    def test_same_outcome_with_translator(self) -> None:
        t = get_translator("en")
        bad = valid_request(age=0, interests=[], budget="")
        self.assertEqual(set(validate_request(bad)), set(validate_request(bad, t)))

    def test_english_messages(self) -> None:
        t = get_translator("en")
        self.assertEqual(validate_field("age", 121, t), "Value must be at most 120")
        self.assertEqual(validate_field("budget", None, t), "This field is required")

    def test_chinese_translator_matches_builtin(self) -> None:
        t = get_translator("zh")
        for name, value in (("age", 0), ("age", 200), ("interests", []), ("budget", "x")):
            with self.subTest(name=name, value=value):
                self.assertEqual(validate_field(name, value), validate_field(name, value, t))


if __name__ == "__main__":
    unittest.main()
