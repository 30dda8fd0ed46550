"""
Endpoint tests for the orchestrated auth routes
"""

import httpx
from fastapi.testclient import TestClient

ACCOUNT_BASE = "http://account.test/api"
TOKEN_BASE = "http://token.test/api"

PROBLEM_CONTENT_TYPE = "application/problem+json"


class TestSignUpRoute:
    """Test POST /auth/signup"""

    def test_success(self, client, stub, account_user, token_pair):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts", status=201, json_body={"data": {"user": account_user}})
        stub.add("POST", f"{TOKEN_BASE}/GenerateToken", json_body=token_pair)

        response = client.post("/auth/signup", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 200
        data = response.json()
        assert data["succeeded"] is True
        assert data["message"] == "Account created successfully"
        assert data["user"]["id"] == "u-123"
        assert data["accessToken"] == "access-abc"
        assert data["refreshToken"] == "refresh-xyz"

        account_call = stub.calls_to(f"{ACCOUNT_BASE}/accounts")[0]
        assert stub.body_of(account_call) == {"email": "jane@example.com"}
        assert account_call.headers["x-functions-key"] == "account-key"

        token_call = stub.calls_to(f"{TOKEN_BASE}/GenerateToken")[0]
        assert stub.body_of(token_call) == {
            "userId": "u-123", "email": "jane@example.com", "role": "User",
        }
        assert token_call.headers["x-functions-key"] == "token-key"

    def test_empty_body(self, client, stub):
        response = client.post("/auth/signup", content=b"")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith(PROBLEM_CONTENT_TYPE)
        data = response.json()
        assert data["succeeded"] is False
        assert data["code"] == "EMPTY_BODY"
        assert stub.requests == []

    def test_malformed_json(self, client):
        response = client.post(
            "/auth/signup", content=b"{oops", headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_JSON"

    def test_missing_id_does_not_request_tokens(self, client, stub):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts", json_body={"succeeded": True})

        response = client.post("/auth/signup", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 400
        assert response.json()["code"] == "USER_ID_MISSING"
        assert stub.calls_to(f"{TOKEN_BASE}/GenerateToken") == []

    def test_duplicate_email(self, client, stub):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts", status=409,
                 json_body={"message": "An account with this email already exists"})

        response = client.post("/auth/signup", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "RESOURCE_CONFLICT"
        assert data["type"] == "Status:409:Conflict:resource_conflict"

    def test_account_service_unreachable(self, client, stub):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts", error=httpx.ConnectError)

        response = client.post("/auth/signup", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "DOWNSTREAM_UNAVAILABLE"
        assert "connection refused" not in response.text


class TestSignInRoute:
    """Test POST /auth/signin"""

    def test_success(self, client, stub, account_user, token_pair):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts/validate", json_body={"data": {"user": account_user}})
        stub.add("POST", f"{TOKEN_BASE}/GenerateToken", json_body=token_pair)

        response = client.post("/auth/signin", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        validate_call = stub.calls_to(f"{ACCOUNT_BASE}/accounts/validate")[0]
        assert stub.body_of(validate_call) == {"email": "jane@example.com", "password": "pw"}

    def test_missing_password_names_field(self, client, stub):
        response = client.post("/auth/signin", json={"email": "jane@example.com"})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "MISSING_REQUIRED_FIELD"
        assert data["message"] == "password is required"
        assert data["extensions"]["errors"] == [
            {"field": "password", "message": "password is required"}
        ]
        assert stub.requests == []

    def test_invalid_credentials(self, client, stub):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts/validate", status=401,
                 json_body={"message": "Invalid credentials"})

        response = client.post("/auth/signin", json={"email": "jane@example.com", "password": "bad"})

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "INVALID_CREDENTIALS"
        assert data["message"] == "Invalid email or password."
        assert stub.calls_to(f"{TOKEN_BASE}/GenerateToken") == []

    def test_token_failure_has_no_token_fields(self, client, stub, account_user):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts/validate", json_body={"data": {"user": account_user}})
        stub.add("POST", f"{TOKEN_BASE}/GenerateToken", status=500, content=b"signing key missing")

        response = client.post("/auth/signin", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "TOKEN_FAILED"
        assert "accessToken" not in data
        assert "refreshToken" not in data
        assert "signing key missing" not in response.text

    def test_token_response_without_access_token(self, client, stub, account_user):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts/validate", json_body={"data": {"user": account_user}})
        stub.add("POST", f"{TOKEN_BASE}/GenerateToken", json_body={"succeeded": True})

        response = client.post("/auth/signin", json={"email": "jane@example.com", "password": "pw"})

        assert response.status_code == 500
        assert response.json()["code"] == "TOKEN_FAILED"


class TestCompleteRegistrationRoute:
    """Test POST /auth/complete-registration"""

    FORM = {
        "email": "jane@example.com",
        "password": "pw",
        "firstName": "Jane",
        "lastName": "Doe",
        "phoneNumber": "+263 77 000 0000",
    }

    def test_success(self, client, stub, account_user, token_pair):
        stub.add("POST", f"{ACCOUNT_BASE}/accounts/complete-registration",
                 json_body={"succeeded": True, "data": {"user": account_user}})
        stub.add("POST", f"{TOKEN_BASE}/GenerateToken", json_body=token_pair)

        response = client.post("/auth/complete-registration", json=self.FORM)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Registration completed successfully"
        assert data["user"]["id"] == "u-123"
        assert data["user"]["email"] == "jane@example.com"
        assert data["accessToken"] == "access-abc"
        assert data["refreshToken"] == "refresh-xyz"

        forwarded = stub.calls_to(f"{ACCOUNT_BASE}/accounts/complete-registration")[0]
        assert stub.body_of(forwarded) == self.FORM

    def test_missing_first_name(self, client):
        form = dict(self.FORM, firstName="")

        response = client.post("/auth/complete-registration", json=form)

        assert response.status_code == 400
        assert response.json()["message"] == "firstName is required"


class TestSignOutRoute:
    """Test POST /auth/signout"""

    def test_success(self, client, stub):
        response = client.post(
            "/auth/signout",
            json={"userId": "u-123"},
            headers={"Authorization": "Bearer access-abc"},
        )

        assert response.status_code == 200
        assert response.json() == {"succeeded": True, "message": "Signed out successfully"}
        assert stub.requests == []

    def test_missing_bearer_token(self, client):
        response = client.post("/auth/signout", json={"userId": "u-123"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_missing_user_id(self, client):
        response = client.post(
            "/auth/signout", json={}, headers={"Authorization": "Bearer access-abc"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "userId is required"


class TestRequestContext:
    """Test request ids and framework errors"""

    def test_request_id_echoed(self, client):
        response = client.post("/auth/signin", content=b"", headers={"X-Request-ID": "req-42"})

        assert response.headers["x-request-id"] == "req-42"
        assert response.json()["extensions"]["requestId"] == "req-42"

    def test_trace_id_from_traceparent(self, client):
        trace_id = "4bf92f3577b34da6a3ce929d0e0e4736"
        response = client.post(
            "/auth/signin", content=b"",
            headers={"traceparent": f"00-{trace_id}-00f067aa0ba902b7-01"},
        )

        assert response.json()["extensions"]["traceId"] == trace_id

    def test_generated_request_id(self, client):
        response = client.post("/auth/signin", content=b"")

        assert response.headers["x-request-id"]
        assert response.json()["extensions"]["requestId"] == response.headers["x-request-id"]

    def test_unknown_route_uses_problem_envelope(self, client):
        response = client.get("/auth/nowhere")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith(PROBLEM_CONTENT_TYPE)
        assert response.json()["succeeded"] is False

    def test_unexpected_exception_is_internal_error(self, app):
        app.state.orchestrator.sign_in = _explode

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post(
                "/auth/signin",
                json={"email": "a@b.com", "password": "pw"},
                headers={"X-Request-ID": "req-500"},
            )

        assert response.status_code == 500
        assert response.headers["x-request-id"] == "req-500"
        data = response.json()
        assert data["code"] == "INTERNAL_ERROR"
        assert data["extensions"]["requestId"] == "req-500"
        assert "kaboom" not in response.text


async def _explode(raw_body: bytes):
    raise RuntimeError("kaboom")
