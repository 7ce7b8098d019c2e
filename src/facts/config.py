import os


class Settings:
    PROJECT_NAME: str = "facts"
    DEBUG: bool = False
    LOG_TO_FILE: bool = os.getenv("FACTS_LOG_TO_FILE", "1") != "0"
    LOG_DIR: str = os.getenv("FACTS_LOG_DIR", "log")
    LOG_FILE: str = "facts.log"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    SESSION_COOKIE_NAME: str = "facts_session_id"
    # Advertised on the welcome page only; the grader never stops on its own.
    MAX_QUESTIONS: int = 150


settings = Settings()
