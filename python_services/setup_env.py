#!/usr/bin/env python3
"""
Environment Setup Script for the Slide Pipeline Service
Creates .env from env.example and reports which providers are configured
"""

import os
import shutil
from pathlib import Path

from dotenv import load_dotenv


def setup_environment():
    """Setup environment variables for the Slide Pipeline Service"""
    print("🔧 Slide Pipeline Service - Environment Setup")
    print("=" * 50)

    base_dir = Path(__file__).resolve().parent
    env_file = base_dir / '.env'
    env_example = base_dir / 'env.example'

    if not env_example.exists():
        print("❌ env.example file not found!")
        return False

    if env_file.exists():
        print("📄 .env file already exists")
        choice = input("Do you want to overwrite it? (y/N): ").lower().strip()
        if choice != 'y':
            print("Keeping existing .env file")
            return check_environment(env_file)

    try:
        shutil.copy2(env_example, env_file)
        print("✅ Created .env file from env.example")
    except OSError as e:
        print(f"❌ Failed to create .env file: {e}")
        return False

    print("\n🔑 API Key Configuration")
    print("=" * 30)
    print("Every AI call has a fallback, so the service runs without keys,")
    print("but decks will use fallback text and placeholder images.")
    print()
    print("1. OpenAI (https://platform.openai.com/api-keys)")
    print("   - Set OPENAI_API_KEY in .env file")
    print()
    print("2. Hugging Face (https://huggingface.co/settings/tokens)")
    print("   - Set HUGGINGFACE_API_KEY in .env file")
    print()
    print("3. Google AI (https://makersuite.google.com/app/apikey)")
    print("   - Set GOOGLE_AI_KEY in .env file (used when imageProvider is 'gemini')")
    print()
    return check_environment(env_file)


def check_environment(env_file: Path) -> bool:
    """Print which providers have a real key in ``env_file``."""
    load_dotenv(env_file, override=True)

    # Imported after loading so the settings see the new values
    from shared.config import configured

    print("📊 Current Environment Status:")
    providers = {
        'OpenAI': os.getenv('OPENAI_API_KEY'),
        'Hugging Face': os.getenv('HUGGINGFACE_API_KEY'),
        'Google AI': os.getenv('GOOGLE_AI_KEY') or os.getenv('GEMINI_API_KEY'),
    }
    for name, value in providers.items():
        print(f"  {name}: {'✅ Set' if configured(value) else '❌ Not set'}")

    if not configured(providers['OpenAI']):
        print("\n⚠️ No OpenAI key: outlines and slides will use fallback content")
    return True


if __name__ == "__main__":
    setup_environment()
