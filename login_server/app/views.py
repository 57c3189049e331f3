"""
HTML views.

The landing page is the only rendered page. It consumes a single value,
``user``: the identity stored in the session, or None for an anonymous
visitor.
"""

from html import escape
from typing import Any, Dict, Optional

from fastapi.responses import HTMLResponse


_PAGE_TEMPLATE = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{title}</title>
        <style>
            * {{ margin: 0; padding: 0; box-sizing: border-box; }}
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;
                background: #f3f4f6;
                min-height: 100vh;
                display: flex;
                align-items: center;
                justify-content: center;
                padding: 20px;
            }}
            .container {{
                background: white;
                border-radius: 12px;
                padding: 40px;
                max-width: 500px;
                width: 100%;
                box-shadow: 0 10px 40px rgba(0,0,0,0.1);
                text-align: center;
            }}
            h1 {{
                color: #1f2937;
                font-size: 26px;
                margin-bottom: 16px;
            }}
            .details {{
                color: #6b7280;
                font-size: 14px;
                margin-bottom: 24px;
            }}
            .button {{
                display: block;
                color: white;
                padding: 12px 24px;
                border-radius: 8px;
                text-decoration: none;
                font-weight: 600;
                margin-top: 12px;
            }}
            .google {{ background: #db4437; }}
            .facebook {{ background: #3b5998; }}
            .logout {{ background: #6b7280; }}
        </style>
    </head>
    <body>
        <div class="container">
            {body}
        </div>
    </body>
    </html>
    """


def _anonymous_body() -> str:
    return """
            <h1>Welcome</h1>
            <p class="details">Sign in to continue.</p>
            <a href="/auth/google" class="button google">Login with Google</a>
            <a href="/auth/facebook" class="button facebook">Login with Facebook</a>
    """


def _authenticated_body(user: Dict[str, Any]) -> str:
    user_id = escape(str(user.get("id", "")))
    display_name = escape(str(user.get("displayName") or user.get("id", "")))
    provider = escape(str(user.get("provider", "")))

    return f"""
            <h1>Hello, {display_name}</h1>
            <p class="details" data-user-id="{user_id}">
                Signed in with {provider or "an external provider"} as <code>{user_id}</code>
            </p>
            <a href="/logout" class="button logout">Logout</a>
    """


def render_index(user: Optional[Dict[str, Any]]) -> HTMLResponse:
    """
    Render the landing page.

    Args:
        user: Stored identity, or None for an anonymous visitor

    Returns:
        HTMLResponse with either the login links or the signed-in view
    """
    if user:
        body = _authenticated_body(user)
        title = "Signed in"
    else:
        body = _anonymous_body()
        title = "Login"

    return HTMLResponse(content=_PAGE_TEMPLATE.format(title=title, body=body), status_code=200)
