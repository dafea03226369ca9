import pytest
import requests
from cloudscraper.exceptions import CaptchaServiceUnavailable, CloudflareChallengeError

from recipe_ingest.config import IngestConfig
from recipe_ingest.const import SCRAPE_FAILED_MESSAGE
from recipe_ingest.exceptions import ScrapeFailed
from recipe_ingest.extractors import scraper
from recipe_ingest.extractors.scraper import fetch_html, parse_html, validate_url

URL = "https://example.com/recipes/soup"


class FakeResponse:
    def __init__(self, body=b"<html><body>Soup</body></html>", headers=None, status=200):
        self.body = body
        self.headers = {"content-type": "text/html; charset=utf-8"} if headers is None else headers
        self.status = status
        self.closed = False

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} Error")

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start:start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests = []
        self.closed = False

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


@pytest.fixture
def use_session(monkeypatch):
    def install(session):
        monkeypatch.setattr(scraper, "_create_session", lambda config: session)
        return session

    return install


def test_fetch_returns_body(use_session):
    session = use_session(FakeSession())

    html = fetch_html(URL, IngestConfig(timeout=7))

    assert html == b"<html><body>Soup</body></html>"
    url, kwargs = session.requests[0]
    assert url == URL
    assert kwargs["timeout"] == 7
    assert kwargs["stream"] is True
    assert session.closed
    assert session.response.closed


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.exceptions.Timeout("timed out")),
        FakeSession(error=requests.exceptions.ConnectionError("refused")),
        FakeSession(error=requests.exceptions.TooManyRedirects("loop")),
        FakeSession(error=CloudflareChallengeError("challenge")),
        FakeSession(error=CaptchaServiceUnavailable("no solver")),
        FakeSession(error=RuntimeError("boom")),
        FakeSession(FakeResponse(status=404)),
        FakeSession(FakeResponse(headers={"content-type": "application/json"})),
        FakeSession(FakeResponse(headers={"content-type": "text/html", "content-length": "999999"})),
        FakeSession(FakeResponse(body=b"x" * 5000)),
    ],
)
def test_fetch_failures_raise_scrape_failed(session, use_session):
    use_session(session)

    with pytest.raises(ScrapeFailed) as exc_info:
        fetch_html(URL, IngestConfig(max_response_size=1000))

    assert str(exc_info.value) == SCRAPE_FAILED_MESSAGE
    assert exc_info.value.__cause__ is not None
    assert session.closed


@pytest.mark.parametrize(
    "url",
    [
        "",
        "   ",
        "ftp://example.com/recipe",
        "file:///etc/passwd",
        "javascript:alert(1)",
        "http://127.0.0.1/admin",
        "http://10.0.0.5/recipe",
        "http://192.168.1.20/recipe",
        "http://169.254.169.254/latest/meta-data",
        "http://[::1]/",
        "http://0.0.0.0/",
    ],
)
def test_validate_url_rejects_unsafe_urls(url):
    with pytest.raises(ScrapeFailed):
        validate_url(url)


def test_validate_url_accepts_public_urls():
    assert validate_url("  https://example.com/recipe  ") == "https://example.com/recipe"
    assert validate_url("http://93.184.216.34/recipe") == "http://93.184.216.34/recipe"


def test_rejected_url_is_never_fetched(use_session):
    session = use_session(FakeSession())

    with pytest.raises(ScrapeFailed):
        fetch_html("http://127.0.0.1/", IngestConfig())
    assert session.requests == []


def test_plain_session_sends_browser_headers():
    config = IngestConfig(use_cloudscraper=False, max_redirects=3)
    session = scraper._create_session(config)
    try:
        assert session.headers["User-Agent"] == config.user_agent
        assert "text/html" in session.headers["Accept"]
        assert session.max_redirects == 3
    finally:
        session.close()


def test_cloudscraper_session_uses_browser_profile(monkeypatch):
    calls = []

    def create_scraper(**kwargs):
        calls.append(kwargs)
        return requests.Session()

    monkeypatch.setattr(scraper.cloudscraper, "create_scraper", create_scraper)

    session = scraper._create_session(
        IngestConfig(use_cloudscraper=True, user_agent="MyAgent/1.0", max_redirects=2)
    )
    try:
        assert calls == [{"browser": {"browser": "chrome", "platform": "windows", "desktop": True}}]
        assert session.headers["User-Agent"] == "MyAgent/1.0"
        assert session.headers["Accept-Language"] == "en-US,en;q=0.5"
        assert session.max_redirects == 2
    finally:
        session.close()


def test_parse_html():
    soup = parse_html(b"<html><body><h1>Soup</h1></body></html>")
    assert soup.h1.get_text() == "Soup"
