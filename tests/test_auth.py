"""Tests for the OAuth bootstrap endpoints."""

from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from portfolio_spotify.config import SpotifyConfig
from portfolio_spotify.models import TokenInfo
from portfolio_spotify.tokens import TokenExchangeError


class TestAuthRedirect:
    def test_redirects_to_spotify_authorize(self, client):
        resp = client.get("/api/spotify/auth", follow_redirects=False)
        assert resp.status_code == 302
        location = urlsplit(resp.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == "https://accounts.spotify.com/authorize"
        query = parse_qs(location.query)
        assert query["client_id"] == ["cid"]
        assert query["response_type"] == ["code"]
        assert query["redirect_uri"] == ["http://testserver/api/spotify/callback"]
        assert query["scope"] == ["user-read-currently-playing user-read-recently-played user-top-read"]
        assert query["show_dialog"] == ["false"]

    def test_localhost_becomes_loopback_address(self, app_overrides):
        local = TestClient(app_overrides["app"], base_url="http://localhost:4321")
        resp = local.get("/api/spotify/auth", follow_redirects=False)
        query = parse_qs(urlsplit(resp.headers["location"]).query)
        assert query["redirect_uri"] == ["http://127.0.0.1:4321/api/spotify/callback"]

    def test_only_client_id_is_required(self, client, app_overrides):
        app_overrides["config"] = SpotifyConfig(client_id="cid")
        assert client.get("/api/spotify/auth", follow_redirects=False).status_code == 302

    def test_missing_client_id_is_500(self, client, app_overrides):
        app_overrides["config"] = SpotifyConfig(client_secret="secret")
        resp = client.get("/api/spotify/auth", follow_redirects=False)
        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("text/plain")
        assert "SPOTIFY_CLIENT_ID" in resp.text


class TestCallback:
    def test_error_param_is_400_without_exchange(self, client, exchange_calls):
        resp = client.get("/api/spotify/callback", params={"error": "access_denied"})
        assert resp.status_code == 400
        assert resp.headers["content-type"].startswith("text/html")
        assert "access_denied" in resp.text
        assert "/api/spotify/auth" in resp.text
        assert exchange_calls == []

    def test_error_description_is_shown_escaped(self, client):
        resp = client.get(
            "/api/spotify/callback",
            params={"error": "invalid_request", "error_description": "<script>x</script>"},
        )
        assert resp.status_code == 400
        assert "&lt;script&gt;" in resp.text
        assert "<script>x</script>" not in resp.text

    def test_missing_code_is_400_with_relaunch_link(self, client, exchange_calls):
        resp = client.get("/api/spotify/callback", params={"state": "abc"})
        assert resp.status_code == 400
        assert "No Authorization Code Received" in resp.text
        assert 'href="/api/spotify/auth"' in resp.text
        assert "http://testserver/api/spotify/callback" in resp.text
        assert "state" in resp.text
        assert exchange_calls == []

    def test_no_params_at_all(self, client):
        resp = client.get("/api/spotify/callback")
        assert resp.status_code == 400
        assert "No parameters at all" in resp.text

    def test_success_shows_refresh_token(self, client, app_overrides, exchange_calls):
        app_overrides["code_exchange"] = lambda config, code, uri: TokenInfo(access_token="a", refresh_token="long-lived")
        resp = client.get("/api/spotify/callback", params={"code": "abc"})
        assert resp.status_code == 200
        assert 'class="token-box"' in resp.text
        assert "SPOTIFY_REFRESH_TOKEN=long-lived" in resp.text
        assert exchange_calls == [("code", "abc", "http://testserver/api/spotify/callback")]

    def test_exchange_failure_is_500_without_token_box(self, client, app_overrides):
        def failing(config, code, uri):
            raise TokenExchangeError('{"error":"invalid_grant"}', 400)

        app_overrides["code_exchange"] = failing
        resp = client.get("/api/spotify/callback", params={"code": "expired"})
        assert resp.status_code == 500
        assert "Failed to exchange code for tokens" in resp.text
        assert "invalid_grant" in resp.text
        assert "token-box" not in resp.text

    @pytest.mark.parametrize("config", [SpotifyConfig(client_id="cid"), SpotifyConfig(client_secret="secret")])
    def test_missing_client_credentials_is_500(self, client, app_overrides, exchange_calls, config):
        app_overrides["config"] = config
        resp = client.get("/api/spotify/callback", params={"code": "abc"})
        assert resp.status_code == 500
        assert "SPOTIFY_CLIENT_SECRET" in resp.text
        assert exchange_calls == []

    def test_no_refresh_token_returned_is_500(self, client, app_overrides):
        app_overrides["code_exchange"] = lambda config, code, uri: TokenInfo(access_token="a")
        resp = client.get("/api/spotify/callback", params={"code": "abc"})
        assert resp.status_code == 500

    def test_success_page_never_echoes_client_secret(self, client, app_overrides):
        app_overrides["config"] = SpotifyConfig(client_id="cid", client_secret="s3cr3t-value")
        app_overrides["code_exchange"] = lambda config, code, uri: TokenInfo(access_token="a", refresh_token="r")
        resp = client.get("/api/spotify/callback", params={"code": "abc"})
        assert resp.status_code == 200
        assert "s3cr3t-value" not in resp.text
