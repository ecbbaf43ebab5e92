from flask import request, current_app


def client_ip() -> str:
    # X-Forwarded-For is only honoured through ProxyFix (TRUSTED_PROXY_COUNT)
    return request.remote_addr or "unknown"


def user_agent() -> str:
    return (request.headers.get("User-Agent") or "")[:255]


def session_token():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "shopfront_session")
    return request.cookies.get(cookie_name)


def set_cookie(resp, name: str, value: str, httponly: bool = True):
    """Set a cookie that lives exactly as long as a login session."""
    cfg = current_app.config
    resp.set_cookie(
        name,
        value,
        httponly=httponly,
        secure=cfg.get("SESSION_COOKIE_SECURE", False),
        samesite=cfg.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=cfg.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    return resp


def clear_cookie(resp, name: str):
    resp.delete_cookie(
        name,
        path="/",
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
    )
    return resp


def request_json() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict() if request.form else {}
