from passlib.hash import apr_md5_crypt

from apps.nextcloud.proxy_config import (
    DASHBOARD_USER, TLS_CIPHER_SUITES, hash_dashboard_password, render_dynamic_yml, render_traefik_yml
)


def test_dashboard_hash_is_apr1():
    password_hash = hash_dashboard_password("s3cret")
    assert password_hash.startswith("$apr1$")
    assert apr_md5_crypt.verify("s3cret", password_hash)
    assert not apr_md5_crypt.verify("wrong", password_hash)


def test_dynamic_config_contains_basic_auth_user():
    password_hash = hash_dashboard_password("s3cret")
    content = render_dynamic_yml(password_hash)
    assert f'          - "{DASHBOARD_USER}:{password_hash}"' in content.splitlines()


def test_dynamic_config_middlewares_and_tls():
    content = render_dynamic_yml("$apr1$x$y")
    for middleware in ('secureHeaders', 'user-auth', 'traefik-stripprefix', 'redirect-to-https', 'nextcloud-headers'):
        assert f"    {middleware}:" in content
    for suite in TLS_CIPHER_SUITES:
        assert suite in content
    assert "minVersion: VersionTLS12" in content


def test_static_config():
    content = render_traefik_yml("admin@example.com")
    assert "      email: 'admin@example.com'" in content
    assert "ping: {}" in content
    assert "    network: proxy" in content
    assert "    filename: /config/dynamic.yml" in content
