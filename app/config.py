from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter (OpenAI-compatible chat completions)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    openrouter_model: str = ""  # optional override of default_model
    llm_max_tokens: int = 4096
    llm_timeout_seconds: float = 120.0

    # Search engines
    serp_api_key: str = ""
    serpapi_base_url: str = "https://serpapi.com/search.json"
    duckduckgo_base_url: str = "https://api.duckduckgo.com/"
    search_max_results: int = 5
    http_timeout_seconds: float = 30.0

    # Google Maps (review flow)
    google_maps_api_key: str = ""
    places_max_results: int = 5
    places_max_reviews: int = 10

    # Pipeline controls
    analysis_max_parallel: int = 0  # 0 = one task per result, no cap
    synthesis_context_char_budget: int = 60000
    page_snippet_chars: int = 1200

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # service role key; the service writes on behalf of users

    # Plans that may use the Google engine
    google_engine_excluded_plans: str = "Starter"

    # App
    cors_origins: str = "http://localhost:5173"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def excluded_plan_names(self) -> set[str]:
        return {p.strip().lower() for p in self.google_engine_excluded_plans.split(",") if p.strip()}


settings = Settings()
