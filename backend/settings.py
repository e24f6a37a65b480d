from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Kedah Trip Planner API"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    # CORS: "*" for dev; in production set to comma-separated origins, e.g. "https://app.example.com"
    cors_origins: str = "*"
    app_db_path: str = "data/app.db"  # Districts, places and saved plans (run scripts/seed_places.py first)

    # Place catalog: "sqlite" reads the places table in app_db_path; "postgrest" queries catalog_url
    catalog_backend: str = "sqlite"
    catalog_url: str = ""  # e.g. https://<project>.supabase.co/rest/v1
    catalog_api_key: str = ""  # Sent as apikey + Authorization: Bearer <key>

    # Trip generation hits the catalog once per day for lunch; keep it rate limited per client
    generate_rate_limit: str = "30/minute"


def get_settings() -> Settings:
    return Settings()
