"""Configuration management for the content intelligence service."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (identity + metadata store)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Model providers
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key (embeddings)")
    ANTHROPIC_API_KEY: str = Field(..., description="Anthropic API key (generative model)")

    # Environment
    KB_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # Generative model
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-5-20250929", description="Model for answers, scoring and analysis"
    )
    ANTHROPIC_TEMPERATURE: float = Field(default=0.2, description="Sampling temperature")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")

    # AWS (object storage, perception, speech)
    AWS_REGION: str = Field(default="us-east-1", description="AWS region for S3/Rekognition/Transcribe")
    CONTENT_BUCKET: str = Field(default="kb-content", description="S3 bucket holding uploaded files")
    TRANSCRIPT_BUCKET: str | None = Field(
        default=None, description="S3 bucket for transcripts (defaults to CONTENT_BUCKET)"
    )
    TRANSCRIBE_LANGUAGE_CODE: str = Field(default="en-US", description="Transcription language")
    TRANSCRIBE_MAX_SPEAKERS: int = Field(default=10, description="Max speaker labels per job")

    # Metadata tables
    KNOWLEDGE_BASE_TABLE: str = Field(default="knowledge_bases", description="Scope table")
    CONTENT_TABLE: str = Field(default="content_items", description="Content record table")

    # Fan-out
    MAX_FETCH_CONCURRENCY: int = Field(
        default=8, description="Max concurrent object fetches per request"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
