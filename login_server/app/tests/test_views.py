"""Landing page rendering tests."""

from login_server.app.views import render_index


def test_anonymous_page_offers_both_providers():
    html = render_index(None).body.decode()

    assert 'href="/auth/google"' in html
    assert 'href="/auth/facebook"' in html
    assert "/logout" not in html


def test_authenticated_page_shows_identity():
    html = render_index({"provider": "google", "id": "g123", "displayName": "Grace Hopper"}).body.decode()

    assert "Hello, Grace Hopper" in html
    assert 'data-user-id="g123"' in html
    assert 'href="/logout"' in html
    assert "/auth/google" not in html


def test_display_name_falls_back_to_id():
    html = render_index({"id": "fb456"}).body.decode()

    assert "Hello, fb456" in html


def test_profile_fields_are_escaped():
    html = render_index({"id": "x", "displayName": "<script>alert(1)</script>"}).body.decode()

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "login-server", "version": "1.0.0"}
