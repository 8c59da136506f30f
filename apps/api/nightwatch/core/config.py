from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str = "your-secret-key-change-in-production"  # Default for development

    # Every "today" and every date comparison uses this zone
    timezone: str = "America/Lima"

    contract_alert_threshold_days: int = 3

    # Comma-separated, e.g. OPERATIONS_ROLES="admin,operations"
    operations_roles: str = "admin,operations"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def operations_role_set(self) -> set[str]:
        return {r.strip().lower() for r in self.operations_roles.split(",") if r.strip()}

settings = Settings()
