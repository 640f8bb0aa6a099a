import random
import unittest

from giftgen.mock import (
    BLESSING_TEMPLATES,
    INTEREST_GIFTS,
    MBTI_GIFTS,
    MBTI_WISHES,
    UNIVERSAL_GIFTS,
    MockGenerator,
)
from giftgen.models import GiftRequest


def make_request(**overrides) -> GiftRequest:
    data = {
        "gender": "female",
        "age": 25,
        "interests": ["阅读", "音乐"],
        "budget": "100-200元",
        "mbti": "INFP",
    }
    data.update(overrides)
    return GiftRequest(**data)


class TestMockGenerator(unittest.TestCase):
    def test_always_three_complete_recommendations(self) -> None:
        gen = MockGenerator(random.Random(1))
        for req in (make_request(), make_request(interests=["冲浪"], mbti=None),
                    make_request(interests=["Reading"], language="en")):
            with self.subTest(interests=req.interests):
                out = gen.generate(req)
                self.assertEqual(len(out.recommendations), 3)
                for rec in out.recommendations:
                    self.assertTrue(rec.giftName and rec.reason and rec.estimatedPrice)
                self.assertTrue(out.blessing)

    def test_order_interest_then_mbti_then_second_interest(self) -> None:
        out = MockGenerator(random.Random(7)).generate(make_request())
        names = [r.giftName for r in out.recommendations]
        self.assertIn(names[0], INTEREST_GIFTS["zh"]["阅读"])
        self.assertEqual(names[1], MBTI_GIFTS["zh"]["INFP"][0])
        self.assertIn(names[2], INTEREST_GIFTS["zh"]["音乐"])

    def test_names_come_from_fixed_pools_for_any_seed(self) -> None:
        pool = set(INTEREST_GIFTS["zh"]["阅读"]) | set(INTEREST_GIFTS["zh"]["音乐"]) | {MBTI_GIFTS["zh"]["INFP"][0]}
        for seed in range(20):
            out = MockGenerator(random.Random(seed)).generate(make_request())
            self.assertTrue({r.giftName for r in out.recommendations} <= pool)

    def test_unmapped_interest_uses_themed_gift(self) -> None:
        out = MockGenerator(random.Random(0)).generate(make_request(interests=["冲浪"], mbti=None))
        self.assertEqual(out.recommendations[0].giftName, "冲浪主题定制礼品")
        for rec in out.recommendations[1:]:
            self.assertIn(rec.giftName, UNIVERSAL_GIFTS["zh"])

    def test_lookup_is_case_insensitive(self) -> None:
        out = MockGenerator(random.Random(0)).generate(make_request(interests=["MUSIC"], language="en", mbti=None))
        self.assertIn(out.recommendations[0].giftName, INTEREST_GIFTS["en"]["music"])

    def test_skips_past_gifts(self) -> None:
        req = make_request(interests=["音乐"], pastGifts=["蓝牙音响", "专业耳机"], mbti=None)
        for seed in range(10):
            out = MockGenerator(random.Random(seed)).generate(req)
            self.assertEqual(out.recommendations[0].giftName, "音乐会门票")

    def test_blessing_from_templates_plus_wish(self) -> None:
        req = make_request(birthdayDate="04-01")
        out = MockGenerator(random.Random(3)).generate(req)
        wish = MBTI_WISHES["zh"]["INFP"]
        self.assertTrue(out.blessing.endswith(" " + wish))
        base = out.blessing[: -len(wish) - 1]
        candidates = {tpl.format(age=25, season="春日") for tpl in BLESSING_TEMPLATES["zh"]}
        self.assertIn(base, candidates)

    def test_english_output_and_budget(self) -> None:
        out = MockGenerator(random.Random(0)).generate(make_request(language="en", interests=["Travel"]))
        self.assertEqual(out.recommendations[0].estimatedPrice, "$100-200")
        self.assertEqual(out.recommendations[1].giftName, MBTI_GIFTS["en"]["INFP"][0])
        self.assertTrue(out.blessing.endswith(MBTI_WISHES["en"]["INFP"]))

    def test_language_override(self) -> None:
        out = MockGenerator(random.Random(0)).generate(make_request(), language="en")
        self.assertEqual(out.recommendations[1].giftName, MBTI_GIFTS["en"]["INFP"][0])


if __name__ == "__main__":
    unittest.main()
