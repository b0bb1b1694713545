from propertyhub.config import Settings


def test_cors_origins_are_split_and_trimmed():
    settings = Settings(cors_origins=" https://app.example.com , http://localhost:3000,, ")

    assert settings.cors_allow_origins == ["https://app.example.com", "http://localhost:3000"]


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "from-env")
    monkeypatch.setenv("ALLOW_ADMIN_SIGNUP", "true")
    monkeypatch.setenv("LOG_FORMAT", "text")

    settings = Settings()

    assert settings.jwt_secret == "from-env"
    assert settings.allow_admin_signup is True
    assert settings.log_format == "text"


def test_admin_signup_disabled_by_default(monkeypatch):
    monkeypatch.delenv("ALLOW_ADMIN_SIGNUP", raising=False)

    assert Settings(_env_file=None).allow_admin_signup is False
