import json
import unittest

import requests

from giftgen.client import RESPONSE_KEY, GiftApiClient, GiftApiError, SessionStore
from giftgen.models import GiftRecommendation, GiftRequest, GiftResponse

REQUEST = GiftRequest(gender="female", age=25, interests=["阅读", "音乐"], budget="100-200元",
                      mbti="INFP", birthdayDate="04-01")
RESPONSE = GiftResponse(
    recommendations=[
        GiftRecommendation(giftName="精装版经典文学", reason="适合爱读书的她 \"经典\"", estimatedPrice="100-200元"),
        GiftRecommendation(giftName="个性化定制相册", reason="记录美好回忆", estimatedPrice="100-200元"),
        GiftRecommendation(giftName="音乐会门票", reason="一起享受音乐 🎵", estimatedPrice="100-200元"),
    ],
    blessing="🎂 祝25岁的春日生日快乐！ 愿你的内心世界永远丰富多彩！",
)


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = json.dumps(body, ensure_ascii=False)

    def json(self):
        return self._body


class ScriptedSession:
    """Returns (or raises) the scripted outcomes in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.urls = []

    def post(self, url, json=None, timeout=None):
        self.urls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_client(session, max_retries=2):
    delays = []
    client = GiftApiClient("http://api.test/", timeout=5, max_retries=max_retries,
                           session=session, sleep=delays.append)
    return client, delays


class TestGiftApiClient(unittest.TestCase):
    def test_success(self) -> None:
        session = ScriptedSession(FakeResponse(200, RESPONSE.model_dump()))
        client, delays = make_client(session)
        self.assertEqual(client.recommend(REQUEST, "fast"), RESPONSE)
        self.assertEqual(session.urls, ["http://api.test/api/fast-gift"])
        self.assertEqual(delays, [])

    def test_retries_with_backoff(self) -> None:
        session = ScriptedSession(
            requests.ConnectionError("down"),
            FakeResponse(502, {"error": "AI服务暂时不可用"}),
            FakeResponse(200, RESPONSE.model_dump()),
        )
        client, delays = make_client(session)
        self.assertEqual(client.recommend(REQUEST), RESPONSE)
        self.assertEqual(delays, [1, 2])
        self.assertEqual(len(session.urls), 3)

    def test_gives_up_after_max_retries(self) -> None:
        session = ScriptedSession(*[FakeResponse(500, {"error": "boom", "details": "x"})] * 3)
        client, delays = make_client(session)
        with self.assertRaises(GiftApiError) as ctx:
            client.recommend(REQUEST)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(str(ctx.exception), "boom")
        self.assertEqual(delays, [1, 2])

    def test_client_errors_are_not_retried(self) -> None:
        body = {"error": "请求数据不完整", "details": "age", "fields": {"age": "值不能大于 120"}}
        session = ScriptedSession(FakeResponse(400, body))
        client, delays = make_client(session)
        with self.assertRaises(GiftApiError) as ctx:
            client.recommend(REQUEST)
        self.assertEqual(ctx.exception.fields, {"age": "值不能大于 120"})
        self.assertEqual(delays, [])

    def test_timeout_has_no_status(self) -> None:
        client, _ = make_client(ScriptedSession(requests.Timeout("slow")), max_retries=0)
        with self.assertRaises(GiftApiError) as ctx:
            client.recommend(REQUEST)
        self.assertIsNone(ctx.exception.status_code)


class TestSessionStore(unittest.TestCase):
    def test_round_trip_is_identical(self) -> None:
        storage = {}
        store = SessionStore(storage)
        store.save(REQUEST, RESPONSE)
        self.assertIsInstance(storage[RESPONSE_KEY], str)

        loaded = store.load_response()
        self.assertEqual(loaded, RESPONSE)
        self.assertEqual(loaded.model_dump_json(), RESPONSE.model_dump_json())
        self.assertEqual(store.load_request(), REQUEST)

        # Saving what was loaded reproduces the same strings
        before = dict(storage)
        store.save(store.load_request(), loaded)
        self.assertEqual(storage, before)

    def test_empty_store(self) -> None:
        store = SessionStore({})
        self.assertIsNone(store.load_response())
        self.assertIsNone(store.load_request())

    def test_clear(self) -> None:
        storage = {"other": 1}
        store = SessionStore(storage)
        store.save(REQUEST, RESPONSE)
        store.clear()
        self.assertEqual(storage, {"other": 1})
        store.clear()

    def test_corrupt_response_raises(self) -> None:
        store = SessionStore({RESPONSE_KEY: '{"recommendations": [], "blessing": ""}'})
        with self.assertRaises(ValueError):
            store.load_response()


if __name__ == "__main__":
    unittest.main()
