import pytest
import requests

from i18nkey.errors import (
    TranslationAuthError,
    TranslationError,
    TranslationTransientError,
    TranslationUnavailable,
)
from i18nkey.openai_client import (
    OpenAIClient,
    backoff_delay,
    build_user_prompt,
    clean_translation,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


def chat_reply(content):
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr("i18nkey.openai_client.time.sleep", calls.append)
    return calls


def fake_post(monkeypatch, responses):
    """Serve ``responses`` in order; exceptions in the list are raised."""
    calls = []

    def post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr("i18nkey.openai_client.requests.post", post)
    return calls


def test_translate_success(monkeypatch, sleeps):
    calls = fake_post(monkeypatch, [chat_reply('"Değişiklikleri kaydet"')])
    client = OpenAIClient("sk-test", model="gpt-4o-mini", timeout=5)

    assert client.translate("Save changes", "en", "tr") == "Değişiklikleri kaydet"

    assert len(calls) == 1
    call = calls[0]
    assert call["url"] == "https://api.openai.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["timeout"] == 5
    assert call["json"]["model"] == "gpt-4o-mini"
    messages = call["json"]["messages"]
    assert [m["role"] for m in messages] == ["system", "user"]
    assert "English" in messages[1]["content"]
    assert "Turkish" in messages[1]["content"]
    assert "Save changes" in messages[1]["content"]
    assert sleeps == []


def test_unauthorized_is_not_retried(monkeypatch, sleeps):
    calls = fake_post(monkeypatch, [FakeResponse(401, text="bad key")])
    with pytest.raises(TranslationAuthError):
        OpenAIClient("sk-bad").translate("Save", "en", "tr")
    assert len(calls) == 1
    assert sleeps == []


def test_rate_limit_is_retried(monkeypatch, sleeps):
    calls = fake_post(monkeypatch, [FakeResponse(429), chat_reply("Kaydet")])
    assert OpenAIClient("sk-test").translate("Save", "en", "tr") == "Kaydet"
    assert len(calls) == 2
    assert sleeps == [1.0]


def test_server_errors_exhaust_retries(monkeypatch, sleeps):
    calls = fake_post(monkeypatch, [FakeResponse(503)])
    with pytest.raises(TranslationTransientError) as exc_info:
        OpenAIClient("sk-test").translate("Save", "en", "tr")
    assert exc_info.value.status == 503
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_network_errors_are_retried(monkeypatch, sleeps):
    calls = fake_post(monkeypatch, [requests.ConnectionError("refused"),
                                    requests.Timeout("slow"),
                                    chat_reply("Kaydet")])
    assert OpenAIClient("sk-test").translate("Save", "en", "tr") == "Kaydet"
    assert len(calls) == 3


def test_other_http_errors_fail_immediately(monkeypatch, sleeps):
    calls = fake_post(monkeypatch, [FakeResponse(400, text="bad request")])
    with pytest.raises(TranslationError) as exc_info:
        OpenAIClient("sk-test").translate("Save", "en", "tr")
    assert not isinstance(exc_info.value, TranslationTransientError)
    assert len(calls) == 1


@pytest.mark.parametrize("response", [
    FakeResponse(200, None),
    FakeResponse(200, {"choices": []}),
    chat_reply("   "),
    chat_reply('""'),
])
def test_bad_or_empty_replies(monkeypatch, sleeps, response):
    fake_post(monkeypatch, [response])
    with pytest.raises(TranslationError):
        OpenAIClient("sk-test").translate("Save", "en", "tr")


@pytest.mark.parametrize("key, text", [("", "Save"), ("  ", "Save"), ("sk-test", "  ")])
def test_unavailable_without_key_or_text(monkeypatch, key, text):
    calls = fake_post(monkeypatch, [chat_reply("never")])
    with pytest.raises(TranslationUnavailable):
        OpenAIClient(key).translate(text, "en", "tr")
    assert calls == []


def test_is_available(monkeypatch, sleeps):
    fake_post(monkeypatch, [chat_reply("Hola")])
    assert OpenAIClient("sk-test").is_available() is True
    fake_post(monkeypatch, [FakeResponse(401)])
    assert OpenAIClient("sk-bad").is_available() is False


@pytest.mark.parametrize("raw, expected", [
    ('"Kaydet"', "Kaydet"),
    ("'Kaydet'", "Kaydet"),
    ('  "Kaydet"  ', "Kaydet"),
    ('Say \\"hi\\"', 'Say "hi"'),
    ("l\\'ami", "l'ami"),
    ('"Kaydet', '"Kaydet'),
    ("Kaydet", "Kaydet"),
])
def test_clean_translation(raw, expected):
    assert clean_translation(raw) == expected


def test_backoff_delay():
    assert [backoff_delay(n) for n in (1, 2, 3, 4, 5)] == [1.0, 2.0, 4.0, 8.0, 10.0]


def test_prompt_keeps_unknown_codes():
    prompt = build_user_prompt("Hi", "en", "xx")
    assert "from English to XX" in prompt
