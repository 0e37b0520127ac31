# src/app.py
from wsgiref.simple_server import make_server
from urllib.parse import parse_qs
import json
import re

import structlog

from src.config import Settings, get_settings
from src.logging_config import configure_logging
from src.database.database import Base, create_db_engine, create_session_factory
from src.repositories.sqlalchemy import (
    SqlalchemyBlogRepository, SqlalchemyCommentRepository, SqlalchemyUserRepository
)
from src.services.blog_service import BlogService
from src.services.comment_service import CommentService
from src.services.identity_service import IdentityService
from src.services.outcomes import OutcomeStatus
from src.services.session import TokenSessionProvider
from src.services.exceptions import *

logger = structlog.get_logger(__name__)

OUTCOME_STATUS_MAP = {
    OutcomeStatus.OK: "200 OK",
    OutcomeStatus.UNAUTHENTICATED: "401 Unauthorized",
    OutcomeStatus.DENIED: "403 Forbidden",
    OutcomeStatus.NOT_FOUND: "404 Not Found",
    OutcomeStatus.VALIDATION_FAILED: "400 Bad Request",
    OutcomeStatus.STORAGE_FAILURE: "500 Internal Server Error",
}

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise PayloadValidationError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise PayloadValidationError("JSON body must be an object.")
    return data

def get_query_param(environ, name):
    values = parse_qs(environ.get("QUERY_STRING", "")).get(name)
    return values[0] if values else None

def get_int_query_param(environ, name):
    value = get_query_param(environ, name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise PayloadValidationError(f"Query parameter '{name}' must be an integer.")

def respond(outcome, success_status="200 OK"):
    """서비스 결과(Outcome)를 HTTP 상태와 JSON 본문으로 바꿉니다."""
    if outcome.ok:
        return success_status, json.dumps(outcome.value)
    if outcome.status is OutcomeStatus.STORAGE_FAILURE:
        # 저장소 오류의 세부 내용은 응답에 노출하지 않는다
        return OUTCOME_STATUS_MAP[outcome.status], json.dumps({"error": "Storage failure."})
    body = {"error": outcome.message}
    if outcome.errors:
        body["details"] = outcome.errors
    return OUTCOME_STATUS_MAP[outcome.status], json.dumps(body)

def handle_exception(e):
    error_map = {
        PayloadValidationError: "400 Bad Request",
        InvalidCapabilityError: "400 Bad Request",
        InvalidRoleError: "400 Bad Request",
        TokenInvalidError: "401 Unauthorized",
        UserNotFoundError: "404 Not Found",
    }
    status = error_map.get(type(e), "500 Internal Server Error")
    if status.startswith("500"):
        logger.exception("unhandled_error", error=str(e))
        return status, json.dumps({"error": "Internal Server Error"})
    body = {"error": str(e)}
    if getattr(e, "errors", None):
        body["details"] = e.errors
    return status, json.dumps(body)

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def create_app(settings: Settings, session_factory):
    """
    WSGI 애플리케이션을 생성합니다.

    세션 팩토리는 진입점에서 한 번 만들어 주입하고,
    리포지토리, 세션 제공자, 서비스는 요청마다 새 DB 세션으로 만듭니다.
    """

    def application(environ, start_response):
        db_session = session_factory()
        try:
            # 1. 의존성 생성 (Repositories -> Services)
            user_repo = SqlalchemyUserRepository(db_session)
            blog_repo = SqlalchemyBlogRepository(db_session)
            comment_repo = SqlalchemyCommentRepository(db_session)
            session_provider = TokenSessionProvider(
                settings.secret_key, user_repo, settings.token_algorithm, settings.token_ttl_minutes
            )

            environ['services'] = {
                'blog': BlogService(
                    blog_repo, user_repo,
                    title_min_length=settings.blog_title_min_length,
                    description_min_length=settings.blog_description_min_length,
                ),
                'comment': CommentService(comment_repo, blog_repo, fetch_limit=settings.comment_fetch_limit),
                'identity': IdentityService(user_repo, session_provider, fetch_limit=settings.user_fetch_limit),
            }
            # 2. 요청마다 토큰의 사용자 ID로 역할과 권한을 다시 읽는다 (없으면 None)
            environ['identity'] = session_provider.get_identity(environ)

            # 3. 라우팅 및 핸들러 실행
            path = environ.get("PATH_INFO", "")
            method = environ.get("REQUEST_METHOD", "")

            handler, path_args = None, []
            for route_method, pattern, route_handler in ROUTES:
                if method == route_method and (match := re.match(pattern, path)):
                    handler, path_args = route_handler, match.groups()
                    break

            if handler:
                status, response_body = handler(environ, *path_args)
            else:
                status, response_body = '404 Not Found', json.dumps({'error': 'Not Found'})

        except Exception as e:
            db_session.rollback()
            status, response_body = handle_exception(e)
        finally:
            db_session.close()

        start_response(status, [("Content-Type", "application/json")])
        return [response_body.encode("utf-8")]

    return application

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

def auth_tokens_handler(environ, *args):
    data = get_request_data(environ)
    outcome = environ['services']['identity'].authenticate(data.get('username'), data.get('password'))
    return respond(outcome, '201 Created')

def create_user_handler(environ, *args):
    data = get_request_data(environ)
    outcome = environ['services']['identity'].create_user(data.get('username'), data.get('password'))
    return respond(outcome, '201 Created')

def list_users_handler(environ, *args):
    outcome = environ['services']['identity'].fetch_users(get_int_query_param(environ, 'limit'))
    return respond(outcome)

def get_user_handler(environ, user_id):
    return respond(environ['services']['identity'].get_user(int(user_id)))

def assign_permission_handler(environ, user_id, capability):
    outcome = environ['services']['identity'].assign_permission(environ['identity'], int(user_id), capability)
    return respond(outcome)

def revoke_permission_handler(environ, user_id, capability):
    outcome = environ['services']['identity'].revoke_permission(environ['identity'], int(user_id), capability)
    return respond(outcome)

def change_role_handler(environ, user_id, role):
    outcome = environ['services']['identity'].change_role(environ['identity'], int(user_id), role)
    return respond(outcome)

def list_blogs_handler(environ, *args):
    outcome = environ['services']['blog'].fetch_blogs(get_query_param(environ, 'query'))
    return respond(outcome)

def create_blog_handler(environ, *args):
    data = get_request_data(environ)
    outcome = environ['services']['blog'].create_blog(environ['identity'], data)
    return respond(outcome, '201 Created')

def get_blog_handler(environ, blog_id):
    return respond(environ['services']['blog'].fetch_single_blog(int(blog_id)))

def update_blog_handler(environ, blog_id):
    data = get_request_data(environ)
    outcome = environ['services']['blog'].update_blog(environ['identity'], int(blog_id), data)
    return respond(outcome)

def list_comments_handler(environ, blog_id):
    outcome = environ['services']['comment'].fetch_comments(int(blog_id), get_int_query_param(environ, 'limit'))
    return respond(outcome)

def add_comment_handler(environ, blog_id):
    data = get_request_data(environ)
    outcome = environ['services']['comment'].add_comment(environ['identity'], int(blog_id), data.get('text'))
    return respond(outcome, '201 Created')

def delete_comment_handler(environ, comment_id):
    outcome = environ['services']['comment'].delete_comment(environ['identity'], int(comment_id))
    return respond(outcome)

ROUTES = [
    ('POST', r'^/v1/auth/tokens$', auth_tokens_handler),
    ('POST', r'^/v1/users$', create_user_handler),
    ('GET', r'^/v1/users$', list_users_handler),
    ('GET', r'^/v1/users/([0-9]+)$', get_user_handler),
    ('PUT', r'^/v1/users/([0-9]+)/permissions/([A-Za-z0-9_]+)$', assign_permission_handler),
    ('DELETE', r'^/v1/users/([0-9]+)/permissions/([A-Za-z0-9_]+)$', revoke_permission_handler),
    ('PUT', r'^/v1/users/([0-9]+)/role/([A-Za-z]+)$', change_role_handler),
    ('GET', r'^/v1/blogs$', list_blogs_handler),
    ('POST', r'^/v1/blogs$', create_blog_handler),
    ('GET', r'^/v1/blogs/([0-9]+)$', get_blog_handler),
    ('PATCH', r'^/v1/blogs/([0-9]+)$', update_blog_handler),
    ('PUT', r'^/v1/blogs/([0-9]+)$', update_blog_handler),
    ('GET', r'^/v1/blogs/([0-9]+)/comments$', list_comments_handler),
    ('POST', r'^/v1/blogs/([0-9]+)/comments$', add_comment_handler),
    ('DELETE', r'^/v1/comments/([0-9]+)$', delete_comment_handler),
]

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings)
    engine = create_db_engine(settings.database_url, settings.database_echo)
    Base.metadata.create_all(bind=engine)
    app = create_app(settings, create_session_factory(engine))
    with make_server(settings.host, settings.port, app) as httpd:
        logger.info("server_started", host=settings.host, port=settings.port)
        httpd.serve_forever()
