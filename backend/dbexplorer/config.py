from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Connection registry
    connections_file: str = ".connections.json"

    # Exploration
    sample_row_limit: int = 3
    rest_timeout_seconds: float = 5.0
    sql_connect_timeout_seconds: int = 10
    mongodb_server_selection_timeout_ms: int = 5000
    mongodb_default_database: str = "test"

    # Backend
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    backend_cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.backend_cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
