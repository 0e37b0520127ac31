# tests/test_app.py
import io
import json
from wsgiref.util import setup_testing_defaults

import pytest

from src.app import create_app
from src.config import Settings


@pytest.fixture
def app(session_factory):
    settings = Settings(secret_key="test-secret", comment_fetch_limit=5, user_fetch_limit=5)
    return create_app(settings, session_factory)

@pytest.fixture
def call(app):
    """WSGI 앱을 직접 호출하고 (상태 코드, JSON 본문)을 돌려주는 헬퍼."""
    def _call(method, path, body=None, token=None, query=""):
        if isinstance(body, bytes):
            payload = body
        else:
            payload = json.dumps(body).encode("utf-8") if body is not None else b""
        environ = {}
        setup_testing_defaults(environ)
        environ.update({
            "REQUEST_METHOD": method,
            "PATH_INFO": path,
            "QUERY_STRING": query,
            "CONTENT_LENGTH": str(len(payload)),
            "wsgi.input": io.BytesIO(payload),
        })
        if token:
            environ["HTTP_X_AUTH_TOKEN"] = token
        captured = {}

        def start_response(status, headers):
            captured["status"] = status

        response = b"".join(app(environ, start_response))
        return int(captured["status"].split()[0]), json.loads(response.decode("utf-8") or "null")
    return _call

@pytest.fixture
def login(call):
    def _login(username, password="password123"):
        status, body = call("POST", "/v1/auth/tokens", {"username": username, "password": password})
        assert status == 201
        return body["token"]
    return _login


class TestBlogApi:
    def test_create_blog_requires_token(self, call):
        status, body = call("POST", "/v1/blogs", {"title": "T", "description": "D"})
        assert status == 401

    def test_permission_flow(self, call, login, make_user):
        """관리자가 권한을 부여하면, 이미 받은 토큰으로도 바로 글을 쓸 수 있습니다."""
        make_user("root", role="ADMIN")
        writer = make_user("writer")

        writer_token = login("writer")
        status, _ = call("POST", "/v1/blogs", {"title": "T", "description": "D"}, token=writer_token)
        assert status == 403

        status, body = call("PUT", f"/v1/users/{writer.id}/permissions/CREATE_BLOG", token=login("root"))
        assert status == 200
        assert body["permissions"] == ["CREATE_BLOG"]

        status, blog = call("POST", "/v1/blogs", {"title": "T", "description": "D", "category": "technology"},
                            token=writer_token)
        assert status == 201
        assert blog["author_id"] == writer.id

        status, blogs = call("GET", "/v1/blogs", query="query=TECH")
        assert status == 200
        assert [b["id"] for b in blogs] == [blog["id"]]

    def test_revoked_permission_applies_to_issued_token(self, call, login, make_user):
        """권한을 회수하면, 회수 전에 받은 토큰으로도 더는 글을 쓸 수 없습니다."""
        make_user("root", role="ADMIN")
        writer = make_user("writer", permissions=["CREATE_BLOG"])
        writer_token = login("writer")
        status, _ = call("POST", "/v1/blogs", {"title": "T", "description": "D"}, token=writer_token)
        assert status == 201

        status, _ = call("DELETE", f"/v1/users/{writer.id}/permissions/CREATE_BLOG", token=login("root"))
        assert status == 200

        status, body = call("POST", "/v1/blogs", {"title": "T2", "description": "D"}, token=writer_token)
        assert status == 403
        assert body == {"error": "Not authorized."}

    def test_validation_error_details(self, call, login, make_user):
        make_user("writer", permissions=["CREATE_BLOG"])

        status, body = call("POST", "/v1/blogs", {"title": "", "description": "D"}, token=login("writer"))

        assert status == 400
        assert body["details"][0]["field"] == "title"

    def test_unknown_blog(self, call):
        status, body = call("GET", "/v1/blogs/404")
        assert status == 404

    def test_invalid_json_body(self, call, login, make_user):
        make_user("writer", permissions=["CREATE_BLOG"])
        token = login("writer")
        status, body = call("POST", "/v1/blogs", b"{not json", token=token)
        assert status == 400
        assert body == {"error": "Invalid or missing JSON body."}

    def test_non_object_json_body(self, call):
        status, body = call("POST", "/v1/users", ["not", "an", "object"])
        assert status == 400

    def test_unknown_route(self, call):
        status, body = call("GET", "/v1/nothing")
        assert status == 404


class TestCommentApi:
    def test_comment_lifecycle(self, call, login, make_user):
        make_user("writer", permissions=["CREATE_BLOG"])
        make_user("stranger", role="ADMIN")
        writer_token = login("writer")
        _, blog = call("POST", "/v1/blogs", {"title": "T", "description": "D"}, token=writer_token)

        status, comment = call("POST", f"/v1/blogs/{blog['id']}/comments", {"text": "hi"}, token=writer_token)
        assert status == 201

        status, body = call("DELETE", f"/v1/comments/{comment['id']}", token=login("stranger"))
        assert status == 403
        assert body == {"error": "Not authorized."}

        status, missing = call("DELETE", "/v1/comments/9999", token=login("stranger"))
        assert (status, missing) == (403, body)

        status, comments = call("GET", f"/v1/blogs/{blog['id']}/comments")
        assert [c["id"] for c in comments] == [comment["id"]]

        status, _ = call("DELETE", f"/v1/comments/{comment['id']}", token=writer_token)
        assert status == 200


class TestUserApi:
    def test_register_and_list(self, call):
        status, user = call("POST", "/v1/users", {"username": "newbie", "password": "pw"})
        assert status == 201
        assert user["role"] == "USER"

        status, users = call("GET", "/v1/users", query="limit=1")
        assert [u["username"] for u in users] == ["newbie"]
        assert "password_hash" not in users[0]

    def test_bad_credentials(self, call, make_user):
        make_user("writer")
        status, body = call("POST", "/v1/auth/tokens", {"username": "writer", "password": "nope"})
        assert status == 401

    @pytest.mark.parametrize("payload", [
        {"username": 123, "password": "pw"},
        {"username": "newbie", "password": 5},
        {"username": "newbie"},
    ])
    def test_register_rejects_malformed_credentials(self, call, payload):
        status, body = call("POST", "/v1/users", payload)
        assert status == 400
        assert body["details"]

    @pytest.mark.parametrize("payload", [
        {"username": 123, "password": "password123"},
        {"username": "writer", "password": 5},
    ])
    def test_login_rejects_malformed_credentials(self, call, make_user, payload):
        make_user("writer")
        status, body = call("POST", "/v1/auth/tokens", payload)
        assert status == 400

    def test_demoted_admin_token_loses_admin_rights(self, call, login, make_user):
        """ADMIN에서 강등되면, 강등 전에 받은 토큰으로도 권한을 부여할 수 없습니다."""
        make_user("root", role="ADMIN")
        former = make_user("former", role="ADMIN")
        target = make_user("target")
        former_token = login("former")

        status, user = call("PUT", f"/v1/users/{former.id}/role/USER", token=login("root"))
        assert (status, user["role"]) == (200, "USER")

        status, _ = call("PUT", f"/v1/users/{target.id}/permissions/CREATE_BLOG", token=former_token)
        assert status == 403

    def test_token_of_deleted_user_is_anonymous(self, call, login, make_user, db_session):
        writer = make_user("writer", permissions=["CREATE_BLOG"])
        token = login("writer")
        db_session.delete(writer)
        db_session.commit()

        status, _ = call("POST", "/v1/blogs", {"title": "T", "description": "D"}, token=token)
        assert status == 401
