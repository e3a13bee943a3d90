from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> list[str]:
    """Read JWT_* from the project root .env, then the working directory."""
    base = Path(__file__).resolve().parents[2]
    return [str(base / ".env"), ".env"]


class AuthSettings(BaseSettings):
    """Verification settings for bearer tokens issued by the academy auth provider.

    Tokens are only verified here, never issued.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret: str = "change-me"
    algorithm: str = "HS256"
    issuer: str = "academy-auth"
    audience: str = "academy-api"
    # Claim carrying the role list; unknown roles are ignored
    roles_claim: str = "roles"
    leeway_secs: int = 30
