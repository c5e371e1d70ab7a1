from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379"

    room_slug: str = "our-connection-map"
    admin_password: str = "change-me"

    tags_per_profile: int = 10
    traits_per_session: int = 3
    points_per_trait: int = 10
    triple_multiplier: float = 1.5

    # Seconds between a match clearing and the next partition pass
    rematch_delay_seconds: float = 2.0
    timer_poll_seconds: float = 5
    advisory_min_duration_minutes: int = 5
    advisory_max_duration_minutes: int = 60

    max_transaction_retries: int = 10
    transaction_backoff_seconds: float = 0.01
    transaction_backoff_max_seconds: float = 0.25

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
