"""
Configuration Tests
===================
"""

import pytest

from contracts import ConfigurationError
from src.mailtool_mcp.config import DEFAULT_TIMEOUT, load_config

BASE_ENV = {"EMAIL_USER": "me@example.com", "EMAIL_PASS": "hunter2"}


class TestLoadConfig:

    def test_defaults(self):
        config = load_config(BASE_ENV)

        assert config.mailbox.host == "localhost"
        assert config.mailbox.port == 143
        assert config.mailbox.use_tls is False
        assert config.smtp.host == "localhost"
        assert config.smtp.port == 25
        assert config.smtp.use_tls is False
        assert config.smtp.from_address == "me@example.com"
        assert config.timeout == DEFAULT_TIMEOUT

    def test_shared_credentials(self):
        config = load_config(BASE_ENV)
        assert config.mailbox.credentials is config.smtp.credentials
        assert config.mailbox.credentials.username == "me@example.com"
        assert config.mailbox.credentials.password == "hunter2"

    def test_overrides(self):
        env = {
            **BASE_ENV,
            "IMAP_HOST": "imap.example.com",
            "IMAP_PORT": "993",
            "IMAP_TLS": "true",
            "SMTP_HOST": "smtp.example.com",
            "SMTP_PORT": "465",
            "SMTP_TLS": "1",
            "EMAIL_FROM": "Robot <robot@example.com>",
            "MAIL_TIMEOUT": "7.5",
        }
        config = load_config(env)

        assert config.mailbox.host == "imap.example.com"
        assert config.mailbox.port == 993
        assert config.mailbox.use_tls is True
        assert config.smtp.port == 465
        assert config.smtp.use_tls is True
        assert config.smtp.from_address == "Robot <robot@example.com>"
        assert config.timeout == 7.5

    @pytest.mark.parametrize("missing", ["EMAIL_USER", "EMAIL_PASS"])
    def test_refuses_without_credentials(self, missing):
        env = {k: v for k, v in BASE_ENV.items() if k != missing}
        with pytest.raises(ConfigurationError, match=missing):
            load_config(env)

    def test_refuses_empty_password(self):
        with pytest.raises(ConfigurationError):
            load_config({**BASE_ENV, "EMAIL_PASS": ""})

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_bad_port(self, port):
        with pytest.raises(ConfigurationError):
            load_config({**BASE_ENV, "IMAP_PORT": port})

    @pytest.mark.parametrize("timeout", ["soon", "0", "-1"])
    def test_bad_timeout(self, timeout):
        with pytest.raises(ConfigurationError):
            load_config({**BASE_ENV, "MAIL_TIMEOUT": timeout})

    def test_password_not_in_repr(self):
        config = load_config(BASE_ENV)
        assert "hunter2" not in repr(config)
