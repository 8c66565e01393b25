from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
import pytest

from rendercad import JobStatus, RenderCADClient
from rendercad.errors import BadRequestError, NotFoundError, RateLimitError, UnauthorizedError

VALID_TOKEN = "live-token"
EXHAUSTED_TOKEN = "exhausted-token"
DEVICE_CODE = "ABC123"


def _bearer(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def create_fake_service() -> FastAPI:
    app = FastAPI()
    app.state.seen = []
    jobs = {}

    def invalid_token():
        return JSONResponse({"success": False, "token_valid": False, "message": "Invalid or expired token"})

    @app.api_route("/backend/render.php", methods=["GET", "POST"])
    async def render(request: Request, action: str):
        app.state.seen.append((request.method, dict(request.headers)))
        if _bearer(request) != VALID_TOKEN:
            return invalid_token()

        if action == "render":
            body = await request.json()
            if not str(body.get("image", "")).startswith("data:image/"):
                return JSONResponse({"success": False, "error": "Invalid image"}, status_code=400)
            job_id = f"render_{len(jobs) + 1}"
            jobs[job_id] = body["image"]
            return {"success": True, "job_id": job_id, "status": "pending"}

        if action == "status":
            job_id = request.query_params.get("job_id")
            if job_id not in jobs:
                return JSONResponse({"message": "Job not found"}, status_code=404)
            return {
                "success": True,
                "job_id": job_id,
                "status": "completed",
                "output_url": f"https://cdn.rendercad.test/{job_id}.jpg",
            }

        return JSONResponse({"message": "Unknown action"}, status_code=400)

    @app.api_route("/backend/auth.php", methods=["GET", "POST"])
    async def auth(request: Request, action: str):
        app.state.seen.append((request.method, dict(request.headers)))

        if action == "request_device_code":
            return {
                "success": True,
                "code": DEVICE_CODE,
                "expires_in": 600,
                "poll_interval": 5,
                "verification_url": "https://rendercad.ai/device",
                "app": {key: value for key, value in request.query_params.items() if key != "action"},
            }

        if action == "poll_device_code":
            if request.query_params.get("code") != DEVICE_CODE:
                return {"success": True, "status": "pending"}
            return {"success": True, "status": "authorized", "api_token": VALID_TOKEN}

        if action == "check":
            token = _bearer(request)
            if token == EXHAUSTED_TOKEN:
                return JSONResponse({"message": "Monthly limit exceeded", "monthly_renders_used": 50}, status_code=429)
            if token != VALID_TOKEN:
                return invalid_token()
            return {
                "success": True,
                "authenticated": True,
                "user": {"monthly_render_limit": 50, "monthly_renders_used": 1},
            }

        return JSONResponse({"message": "Unknown action"}, status_code=400)

    return app


@pytest.fixture
def service():
    return create_fake_service()


def make_client(service, token=None):
    return RenderCADClient(token, base_url="http://testserver", http_client=TestClient(service))


def test_device_code_flow_then_render_and_poll(service):
    client = make_client(service)

    device = client.request_device_code(app_name="Sketch Tool", app_type="cli-tool", app_version="0.3.1")
    assert device["app"] == {"app_name": "Sketch Tool", "app_type": "cli-tool", "app_version": "0.3.1"}

    pending = client.poll_device_code("WRONG")
    assert pending["status"] == "pending"

    authorized = client.poll_device_code(device["code"])
    assert authorized["status"] == "authorized"
    client.set_api_token(authorized["api_token"])

    job = client.render_image(b"\x89PNG\r\n\x1a\n")
    status = client.check_status(job["job_id"])

    assert JobStatus.is_terminal(status["status"])
    assert status["output_url"].endswith(f"{job['job_id']}.jpg")


def test_content_type_only_on_requests_with_body(service):
    client = make_client(service, token=VALID_TOKEN)

    job = client.render_image("iVBORw0KGgo=")
    client.check_status(job["job_id"])
    client.request_device_code()

    (post_method, post_headers), (get_method, get_headers), (device_method, device_headers) = service.state.seen
    assert post_method == "POST" and post_headers["content-type"] == "application/json"
    assert get_method == "GET" and "content-type" not in get_headers
    assert device_method == "POST" and "content-type" not in device_headers


def test_server_reported_invalid_token_is_unauthorized(service):
    client = make_client(service, token="stale-token")

    with pytest.raises(UnauthorizedError) as exc_info:
        client.check_account()

    assert exc_info.value.message == "Invalid or expired token"
    assert exc_info.value.response["token_valid"] is False


def test_account_usage_and_rate_limit(service):
    account = make_client(service, token=VALID_TOKEN).check_account()
    assert account["user"]["monthly_render_limit"] == 50

    with pytest.raises(RateLimitError) as exc_info:
        make_client(service, token=EXHAUSTED_TOKEN).check_account()
    assert exc_info.value.response["monthly_renders_used"] == 50


def test_unknown_job_is_not_found(service):
    client = make_client(service, token=VALID_TOKEN)

    with pytest.raises(NotFoundError):
        client.check_status("render_404")


def test_server_side_bad_request(service):
    client = make_client(service, token=VALID_TOKEN)

    with pytest.raises(BadRequestError) as exc_info:
        client._send(client._prepare("POST", "/backend/render.php", {"action": "render"}, body={"image": "nope"}))

    assert exc_info.value.message == "Invalid image"
    assert exc_info.value.status_code == 400
