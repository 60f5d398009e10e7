from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_completion_service
from app.main import create_app
from app.middleware import BODY_TOO_LARGE_MESSAGE, TOO_MANY_REQUESTS_MESSAGE, SlidingWindowLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class EchoCompletionService:
    async def complete(self, prompt, options=None) -> str:
        return "ok"


def test_limiter_window_slides() -> None:
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert limiter.allow("a")[0]
    assert limiter.allow("a")[0]
    allowed, retry_after = limiter.allow("a")
    assert not allowed
    assert retry_after == 60

    assert limiter.allow("b")[0]

    clock.now += 60
    assert limiter.allow("a")[0]


def test_limiter_prune_drops_expired_keys() -> None:
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=1, window_seconds=10, clock=clock)
    limiter.allow("a")

    clock.now += 10
    limiter.prune()

    assert limiter._hits == {}


def test_rate_limit_middleware_rejects_excess(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"rate_limit_max_requests": 2}))
    app.dependency_overrides[get_completion_service] = lambda: EchoCompletionService()
    client = TestClient(app)
    body = {"text": "brief", "type": "rewrite"}

    assert client.post("/api/process-text", json=body).status_code == 200
    assert client.post("/api/process-text", json=body).status_code == 200
    response = client.post("/api/process-text", json=body)

    assert response.status_code == 429
    assert response.json() == {"success": False, "error": TOO_MANY_REQUESTS_MESSAGE}
    assert int(response.headers["Retry-After"]) >= 1

    assert client.get("/healthz").status_code == 200


def test_body_size_limit(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"max_body_bytes": 100}))
    app.dependency_overrides[get_completion_service] = lambda: EchoCompletionService()
    client = TestClient(app)

    response = client.post("/api/process-text", json={"text": "x" * 200, "type": "rewrite"})

    assert response.status_code == 413
    assert response.json()["success"] is False


def _chunks(*parts: bytes):
    yield from parts


def test_body_size_limit_counts_chunked_body(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"max_body_bytes": 100}))
    app.dependency_overrides[get_completion_service] = lambda: EchoCompletionService()
    client = TestClient(app)

    response = client.post(
        "/api/process-text",
        content=_chunks(b'{"text": "', b"x" * 5000, b'", "type": "rewrite"}'),
        headers={"Content-Type": "application/json"},
    )

    assert "content-length" not in response.request.headers
    assert response.status_code == 413
    assert response.json() == {"success": False, "error": BODY_TOO_LARGE_MESSAGE}


def test_small_chunked_body_passes(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"max_body_bytes": 100}))
    app.dependency_overrides[get_completion_service] = lambda: EchoCompletionService()
    client = TestClient(app)

    response = client.post(
        "/api/process-text",
        content=_chunks(b'{"text": "brief", ', b'"type": "rewrite"}'),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "processedText": "ok"}


def test_oversized_upload_uses_upload_error_shape(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"max_upload_bytes": 1024}))
    client = TestClient(app)

    response = client.post(
        "/api/upload-file",
        files={"file": ("brief.pdf", b"%PDF-" + b"0" * 70_000, "application/pdf")},
    )

    assert response.status_code == 413
    body = response.json()
    assert "success" not in body
    assert body["error"].startswith("Bestand is te groot.")


def test_cors_headers_for_allowed_origin(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"cors_allowed_origins": "https://brieven.example"}))
    client = TestClient(app)

    response = client.options(
        "/api/process-text",
        headers={
            "Origin": "https://brieven.example",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.headers["access-control-allow-origin"] == "https://brieven.example"
