"""Tests for environment-driven settings."""

from revshare.config import Settings


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.environment == "dev"
        assert settings.port == 8080
        assert settings.allowed_origins == ["*"]
        assert settings.log_trail_size == 10
        assert settings.has_store_credentials == False

    def test_reads_environment(self):
        settings = Settings.from_env({
            "ENVIRONMENT": "prod",
            "PORT": "9000",
            "SUPABASE_URL": "https://db.example.com",
            "SUPABASE_SERVICE_ROLE_KEY": "secret",
            "ALLOWED_ORIGINS": "https://a.example.com, https://b.example.com,",
            "LOG_TRAIL_SIZE": "5",
        })

        assert settings.environment == "prod"
        assert settings.port == 9000
        assert settings.allowed_origins == ["https://a.example.com", "https://b.example.com"]
        assert settings.log_trail_size == 5
        assert settings.has_store_credentials == True
