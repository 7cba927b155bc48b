#!/usr/bin/env python3
"""
PDF RAG Chatbot - Simple entry point

This script starts the FastAPI application without reload mode.
"""

import os
import uvicorn
from ragbot.config import settings

def main():
    """Main entry point for the application."""
    print("🚀 Starting PDF RAG Chatbot...")
    print(f"📍 Server will run on http://{settings.API_HOST}:{settings.API_PORT}")
    print(f"📄 Source PDF: {settings.PDF_PATH} {'✅' if os.path.isfile(settings.PDF_PATH) else '❌'}")
    print(f"🔢 Hugging Face API configured: {'✅' if settings.HUGGINGFACE_API_KEY else '❌'}")
    print(f"🤖 OpenRouter API configured: {'✅' if settings.OPENROUTER_API_KEY else '❌'}")

    if not settings.HUGGINGFACE_API_KEY or not settings.OPENROUTER_API_KEY:
        print("\n⚠️  WARNING: API keys not set!")
        print("   Please set HUGGINGFACE_API_KEY and OPENROUTER_API_KEY in the .env file")
        print("   /api/ask will answer with a configuration error until they are present")

    uvicorn.run(
        "ragbot.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower()
    )

if __name__ == "__main__":
    main()
