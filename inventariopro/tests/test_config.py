from ..core.config import DEV_SECRET_KEY, Settings

ENV_KEYS = (
    "SECRET_KEY", "DATABASE_URL", "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER",
    "DB_PASSWORD", "CORS_ORIGINS", "API_PREFIX", "DEBUG", "JWT_ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_DAYS", "PASSWORD_MIN_LENGTH", "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
)


def _clear_env(monkeypatch):
    # setenv first so monkeypatch restores the original state, including
    # values load_dotenv writes into os.environ
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_from_env_reads_dotenv_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SECRET_KEY=from-dotenv\n"
        "DB_HOST=db.local\n"
        "DB_PORT=3307\n"
        "DB_NAME=stock\n"
        "DB_USER=inv\n"
        "DB_PASSWORD=pw\n"
        "CORS_ORIGINS=http://a.com, http://b.com,\n"
        "DEBUG=true\n"
        "ACCESS_TOKEN_EXPIRE_DAYS=3\n"
    )

    settings = Settings.from_env(env_file)

    assert settings.secret_key == "from-dotenv"
    assert settings.database_url == "mysql+pymysql://inv:pw@db.local:3307/stock"
    assert settings.cors_origins == ["http://a.com", "http://b.com"]
    assert settings.debug is True
    assert settings.access_token_expire_days == 3
    assert settings.api_prefix == "/api"


def test_database_url_overrides_parts(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./local.db")
    monkeypatch.setenv("DB_HOST", "ignored.local")

    settings = Settings.from_env(tmp_path / "missing.env")

    assert settings.database_url == "sqlite:///./local.db"


def test_missing_secret_falls_back_with_warning(tmp_path, monkeypatch, caplog):
    _clear_env(monkeypatch)

    settings = Settings.from_env(tmp_path / "missing.env")

    assert settings.secret_key == DEV_SECRET_KEY
    assert settings.database_url == "mysql+pymysql://root:@localhost:3306/inventario_pro"
    assert settings.cors_origins == ["*"]
    assert settings.password_min_length == 6
    assert "SECRET_KEY is not set" in caplog.text
