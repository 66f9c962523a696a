"""
Shared configuration for the slide pipeline service.
"""

import os
from typing import Optional
from pathlib import Path
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dotenv import load_dotenv, find_dotenv

# Load environment variables from python_services/.env, regardless of CWD
base_dir = Path(__file__).resolve().parents[1]  # points to python_services/
dotenv_path = base_dir / ".env"
example_path = base_dir / "env.example"

loaded = False
if dotenv_path.exists():
    load_dotenv(dotenv_path, override=True)
    print(f"✅ Loaded environment variables from {dotenv_path}")
    loaded = True
else:
    # Fallback: search upwards from CWD
    discovered = find_dotenv(usecwd=True)
    if discovered:
        load_dotenv(discovered, override=True)
        print(f"✅ Loaded environment variables from {discovered}")
        loaded = True

# As a last resort, load env.example (does not override real env values)
if not loaded and example_path.exists():
    load_dotenv(example_path, override=False)
    print(f"✅ Loaded environment variables from sample {example_path}")


# Values copied from env.example that mean "no key configured"
PLACEHOLDER_KEYS = {
    "your_openai_api_key_here",
    "your_huggingface_api_key_here",
    "your_gemini_api_key_here",
    "your_google_ai_key_here",
}


def configured(value: Optional[str]) -> bool:
    """Return True when an API key is set to something other than a sample value."""
    return bool(value) and value.strip() not in PLACEHOLDER_KEYS


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Text generation
    openai_api_key: Optional[str] = Field(default=None, alias='OPENAI_API_KEY')
    openai_model: str = Field(default="gpt-4o", alias='OPENAI_MODEL')
    llm_temperature: float = Field(default=0.4, alias='LLM_TEMPERATURE')
    llm_request_timeout: float = Field(default=60.0, alias='LLM_REQUEST_TIMEOUT')

    # Image generation
    huggingface_api_key: Optional[str] = Field(default=None, alias='HUGGINGFACE_API_KEY')
    huggingface_image_model: str = Field(default="black-forest-labs/FLUX.1-schnell", alias='HUGGINGFACE_IMAGE_MODEL')
    huggingface_request_timeout: float = Field(default=20.0, alias='HUGGINGFACE_REQUEST_TIMEOUT')
    google_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('GOOGLE_AI_KEY', 'GEMINI_API_KEY', 'google_api_key'),
    )
    gemini_image_model: str = Field(default="gemini-2.0-flash-preview-image-generation", alias='GEMINI_IMAGE_MODEL')
    image_provider: str = Field(default="huggingface", alias='IMAGE_PROVIDER')

    # Deadlines (seconds) for racing image generation against the placeholder
    huggingface_image_timeout: float = Field(default=10.0, alias='HUGGINGFACE_IMAGE_TIMEOUT')
    gemini_image_timeout: float = Field(default=15.0, alias='GEMINI_IMAGE_TIMEOUT')
    feedback_image_timeout: float = Field(default=8.0, alias='FEEDBACK_IMAGE_TIMEOUT')

    # Pipeline
    graph_recursion_limit: int = Field(default=100, alias='GRAPH_RECURSION_LIMIT')

    # Service Configuration
    service_name: str = Field(default="slide_pipeline", alias='SERVICE_NAME')
    service_host: str = Field(default="0.0.0.0", alias='SERVICE_HOST')
    service_port: int = Field(default=8010)
    debug: bool = Field(default=False, alias='DEBUG')

    # Logging
    log_level: str = Field(default="INFO", alias='LOG_LEVEL')

    def __init__(self, **data):
        super().__init__(**data)
        # Service-specific port wins over the generic one
        if os.getenv('SLIDE_PIPELINE_PORT'):
            self.service_port = int(os.getenv('SLIDE_PIPELINE_PORT'))
        elif os.getenv('SERVICE_PORT'):
            self.service_port = int(os.getenv('SERVICE_PORT'))

    @property
    def openai_configured(self) -> bool:
        return configured(self.openai_api_key)

    @property
    def huggingface_configured(self) -> bool:
        return configured(self.huggingface_api_key)

    @property
    def gemini_configured(self) -> bool:
        return configured(self.google_api_key)

    def image_timeout_for(self, provider: str) -> float:
        """Deadline for the generation race of the given image provider."""
        if provider == "gemini":
            return self.gemini_image_timeout
        return self.huggingface_image_timeout


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the current settings instance."""
    return settings


def debug_settings():
    """Debug function to print current settings."""
    settings = get_settings()
    print("🔍 Current Settings:")
    print(f"  OpenAI API Key: {'✅ Set' if settings.openai_configured else '❌ Not set'}")
    print(f"  Hugging Face API Key: {'✅ Set' if settings.huggingface_configured else '❌ Not set'}")
    print(f"  Google API Key: {'✅ Set' if settings.gemini_configured else '❌ Not set'}")
    print(f"  Text Model: {settings.openai_model}")
    print(f"  Default Image Provider: {settings.image_provider}")
    print(f"  Service Name: {settings.service_name}")
    print(f"  Service Port: {settings.service_port}")
    print(f"  Debug Mode: {settings.debug}")
    print(f"  Log Level: {settings.log_level}")

    if settings.openai_configured:
        print(f"  OpenAI Key Preview: {settings.openai_api_key[:10]}...")
