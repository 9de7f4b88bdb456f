"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del proyecto.
- Agrupa ajustes por área: App, CORS, Mongo, Auth/JWT, Paginación.
"""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resuelve el .env ubicado en la raíz del proyecto (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEV_JWT_SECRET = "dev-only-change-me"


class Settings(BaseSettings):
    """Conjunto de variables de configuración con valores por defecto razonables.

    Nota: los valores pueden sobreescribirse vía variables de entorno (.env).
    """
    # App
    app_name: str = "Taskboard API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # CORS (cliente React en localhost)
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    cors_allow_any: bool = False

    # Mongo
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "todo_app"
    mongo_tls: bool = False
    mongo_tls_insecure: bool = False
    mongo_tls_allow_invalid_hostnames: bool = False
    mongo_timeout_ms: int = 15000

    # Auth / JWT
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "todo-app"
    jwt_audience: str = "todo-app-users"
    access_token_expire_days: int = 7
    login_rate_per_min: int = 10

    # Paginación de listados
    default_page_size: int = 50
    max_page_size: int = 100

    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con formato consistente.

        - Siempre inicia con '/'
        - Sin '/' final; "/" a secas equivale a sin prefijo
        - Si está vacío, devuelve ""
        """
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith('/'):
            pref = '/' + pref
        return pref.rstrip('/')

    @property
    def using_dev_secret(self) -> bool:
        return self.jwt_secret == DEV_JWT_SECRET

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
