import pytest

from utils.validation import validate_domain, validate_email, validate_username, validate_env_value


class TestValidateDomain:

    @pytest.mark.parametrize("domain", [
        "cloud.example.com",
        "example.com",
        "a.b",
        "my-cloud.example.co.uk",
        "xn--bcher-kva.example",
        "a" * 63 + ".com",
    ])
    def test_accepts_dns_names(self, domain):
        assert validate_domain(domain) == domain

    def test_strips_whitespace(self):
        assert validate_domain("  cloud.example.com \n") == "cloud.example.com"

    @pytest.mark.parametrize("domain", [
        "",
        "cloud_example.com",
        "-cloud.example.com",
        "cloud-.example.com",
        "cloud..example.com",
        "cloud.example.com.",
        "cloud example.com",
        "cloud.exa$mple.com",
        "https://cloud.example.com",
    ])
    def test_rejects_invalid_names(self, domain):
        with pytest.raises(ValueError):
            validate_domain(domain)

    def test_rejects_label_longer_than_63(self):
        with pytest.raises(ValueError, match="63"):
            validate_domain("a" * 64 + ".com")

    def test_rejects_name_longer_than_253(self):
        name = ".".join(["a" * 50] * 6)
        with pytest.raises(ValueError, match="too long"):
            validate_domain(name)


class TestValidateEmail:

    def test_accepts_address(self):
        assert validate_email(" admin@example.com ") == "admin@example.com"

    @pytest.mark.parametrize("email", ["", "admin", "admin@", "@example.com", "admin@example"])
    def test_rejects_invalid(self, email):
        with pytest.raises(ValueError):
            validate_email(email)


class TestOtherValidators:

    def test_username(self):
        assert validate_username("admin") == "admin"
        with pytest.raises(ValueError):
            validate_username("ad min")

    def test_env_value_rejects_line_breaks(self):
        assert validate_env_value("s3cr3t=!") == "s3cr3t=!"
        with pytest.raises(ValueError):
            validate_env_value("first\nSECOND=injected")

    @pytest.mark.parametrize("value", ["it's", "C:\\temp", "line\rbreak"])
    def test_env_value_rejects_unquotable_characters(self, value):
        with pytest.raises(ValueError):
            validate_env_value(value)

    def test_env_value_allows_dollar_and_hash(self):
        assert validate_env_value("pa$word #1") == "pa$word #1"
