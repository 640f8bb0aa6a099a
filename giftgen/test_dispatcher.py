"""Fallback policies: sequential tiers, racing, deadlines and the mock tier."""

import asyncio
import random
import time
import unittest

from giftgen.dispatcher import (
    DOUBAO_ONLY_POLICY,
    FAST_POLICY,
    FULL_POLICY,
    MOCK_SOURCE,
    FallbackPolicy,
    FallbackStep,
    GiftDispatcher,
)
from giftgen.errors import ProviderConfigError, ProviderHTTPError, ProviderResponseError, ProviderTimeoutError
from giftgen.mock import MockGenerator
from giftgen.models import GiftRecommendation, GiftRequest, GiftResponse

REQUEST = GiftRequest(gender="female", age=25, interests=["阅读", "音乐"], budget="100-200元", mbti="INFP")


def response_named(name: str) -> GiftResponse:
    rec = GiftRecommendation(giftName=name, reason="R", estimatedPrice="P")
    return GiftResponse(recommendations=[rec, rec, rec], blessing=f"from {name}")


class FakeProvider:
    def __init__(self, name, delay=0.0, error=None, configured=True):
        self.name = name
        self.delay = delay
        self.error = error
        self.configured = configured
        self.calls = []

    def generate(self, request, language="zh", strict=False):
        self.calls.append((language, strict))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return response_named(self.name)


def fast(policy: FallbackPolicy, scale: float = 0.01) -> FallbackPolicy:
    """Same policy with every timeout scaled down for tests."""
    steps = tuple(FallbackStep(s.provider, s.timeout * scale, s.strict) for s in policy.steps)
    return FallbackPolicy(policy.name, steps, policy.deadline * scale, policy.race, policy.use_mock)


def dispatch(providers, policy, **kwargs):
    dispatcher = GiftDispatcher(providers, MockGenerator(random.Random(0)))
    return asyncio.run(dispatcher.dispatch(REQUEST, policy, **kwargs))


class TestSequentialPolicy(unittest.TestCase):
    def test_first_tier_wins(self) -> None:
        doubao, openai = FakeProvider("doubao"), FakeProvider("openai")
        result = dispatch({"doubao": doubao, "openai": openai}, FULL_POLICY)
        self.assertEqual(result.source, "doubao")
        self.assertEqual(doubao.calls, [("zh", True)])
        self.assertEqual(openai.calls, [])

    def test_falls_through_to_second_tier(self) -> None:
        providers = {
            "doubao": FakeProvider("doubao", error=ProviderHTTPError("doubao", 500)),
            "openai": FakeProvider("openai"),
        }
        result = dispatch(providers, FULL_POLICY)
        self.assertEqual(result.source, "openai")
        self.assertEqual(result.response.blessing, "from openai")

    def test_all_tiers_fail_gives_mock(self) -> None:
        providers = {
            "doubao": FakeProvider("doubao", error=ProviderConfigError("doubao", "no key")),
            "openai": FakeProvider("openai", error=ProviderResponseError("openai", "bad json")),
        }
        result = dispatch(providers, FULL_POLICY)
        self.assertEqual(result.source, MOCK_SOURCE)
        self.assertEqual(len(result.response.recommendations), 3)
        self.assertTrue(result.response.blessing)

    def test_slow_tier_times_out(self) -> None:
        providers = {"doubao": FakeProvider("doubao", delay=0.5), "openai": FakeProvider("openai")}
        result = dispatch(providers, fast(FULL_POLICY))  # doubao tier gets 0.15s
        self.assertEqual(result.source, "openai")

    def test_overall_deadline_forces_mock(self) -> None:
        policy = FallbackPolicy("tight", (FallbackStep("doubao", 1.0), FallbackStep("openai", 1.0)), deadline=0.1)
        providers = {"doubao": FakeProvider("doubao", delay=0.3), "openai": FakeProvider("openai")}
        start = time.monotonic()
        result = dispatch(providers, policy)
        self.assertEqual(result.source, MOCK_SOURCE)
        self.assertLess(time.monotonic() - start, 1.0)

    def test_unexpected_exception_is_a_tier_failure(self) -> None:
        providers = {"doubao": FakeProvider("doubao", error=KeyError("x")), "openai": FakeProvider("openai")}
        self.assertEqual(dispatch(providers, FULL_POLICY).source, "openai")

    def test_unregistered_provider_is_skipped(self) -> None:
        self.assertEqual(dispatch({"openai": FakeProvider("openai")}, FULL_POLICY).source, "openai")

    def test_language_override(self) -> None:
        doubao = FakeProvider("doubao")
        dispatch({"doubao": doubao}, FULL_POLICY, language="en")
        self.assertEqual(doubao.calls, [("en", True)])


class TestRacePolicy(unittest.TestCase):
    def test_fastest_success_wins(self) -> None:
        providers = {"doubao": FakeProvider("doubao", delay=0.2), "openai": FakeProvider("openai", delay=0.01)}
        result = dispatch(providers, FAST_POLICY)
        self.assertEqual(result.source, "openai")
        self.assertEqual(providers["openai"].calls, [("zh", False)])

    def test_first_settled_failure_decides(self) -> None:
        providers = {
            "doubao": FakeProvider("doubao", error=ProviderHTTPError("doubao", 502)),
            "openai": FakeProvider("openai", delay=0.05),
        }
        result = dispatch(providers, FAST_POLICY)
        self.assertEqual(result.source, MOCK_SOURCE)
        self.assertEqual(providers["openai"].calls, [("zh", False)])

    def test_first_settled_failure_raises_without_mock(self) -> None:
        policy = FallbackPolicy("race-only", FAST_POLICY.steps, FAST_POLICY.deadline, race=True, use_mock=False)
        providers = {
            "doubao": FakeProvider("doubao", error=ProviderHTTPError("doubao", 502)),
            "openai": FakeProvider("openai", delay=0.05),
        }
        with self.assertRaises(ProviderHTTPError):
            dispatch(providers, policy)

    def test_unconfigured_providers_are_not_raced(self) -> None:
        doubao = FakeProvider("doubao", configured=False)
        openai = FakeProvider("openai")
        self.assertEqual(dispatch({"doubao": doubao, "openai": openai}, FAST_POLICY).source, "openai")
        self.assertEqual(doubao.calls, [])

    def test_nothing_configured_gives_mock(self) -> None:
        providers = {"doubao": FakeProvider("doubao", configured=False),
                     "openai": FakeProvider("openai", configured=False)}
        self.assertEqual(dispatch(providers, FAST_POLICY).source, MOCK_SOURCE)

    def test_deadline_gives_mock(self) -> None:
        providers = {"doubao": FakeProvider("doubao", delay=0.4), "openai": FakeProvider("openai", delay=0.4)}
        self.assertEqual(dispatch(providers, fast(FAST_POLICY)).source, MOCK_SOURCE)

    def test_both_fail_gives_mock(self) -> None:
        providers = {
            "doubao": FakeProvider("doubao", error=ProviderHTTPError("doubao", 500)),
            "openai": FakeProvider("openai", error=ProviderHTTPError("openai", 429)),
        }
        self.assertEqual(dispatch(providers, FAST_POLICY).source, MOCK_SOURCE)


class TestNoMockPolicy(unittest.TestCase):
    def test_success(self) -> None:
        self.assertEqual(dispatch({"doubao": FakeProvider("doubao")}, DOUBAO_ONLY_POLICY).source, "doubao")

    def test_error_propagates(self) -> None:
        providers = {"doubao": FakeProvider("doubao", error=ProviderHTTPError("doubao", 401))}
        with self.assertRaises(ProviderHTTPError) as ctx:
            dispatch(providers, DOUBAO_ONLY_POLICY)
        self.assertEqual(ctx.exception.status_code, 401)

    def test_timeout_propagates(self) -> None:
        providers = {"doubao": FakeProvider("doubao", delay=0.4)}
        with self.assertRaises(ProviderTimeoutError):
            dispatch(providers, fast(DOUBAO_ONLY_POLICY))


if __name__ == "__main__":
    unittest.main()
