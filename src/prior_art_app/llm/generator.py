"""Text generation backends used for risk scoring."""

from __future__ import annotations

from typing import Protocol

import ollama
from openai import OpenAI

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings

LOGGER = get_logger(__name__)

SYSTEM_PROMPT = "You are a patent examiner assessing prior-art overlap. Reply with JSON only."


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


class OllamaGenerator:
    """Generate completions with a local or remote Ollama server."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = ollama.Client(host=self.settings.ollama_url)

    def generate(self, prompt: str) -> str:
        response = self.client.chat(
            model=self.settings.ollama_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            format="json",
            options={
                "temperature": 0.1,
                "num_predict": 200,
            },
        )
        content = response["message"]["content"]
        if not content:
            raise ValueError("Empty response from Ollama")
        return content.strip()


class OpenAIGenerator:
    """Generate completions with the OpenAI chat API."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = OpenAI(api_key=self.settings.openai_api_key)

    def generate(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.settings.openai_model_id,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.1,
            max_tokens=200,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty response from OpenAI")
        return content.strip()


def build_generator(settings: AppSettings | None = None) -> TextGenerator:
    """Select the generation backend named by ``LLM_PROVIDER``."""
    cfg = settings or get_settings()
    provider = cfg.llm_provider.lower()
    LOGGER.info("Initializing text generator", extra={"provider": provider})
    if provider == "ollama":
        return OllamaGenerator(cfg)
    if provider == "openai":
        return OpenAIGenerator(cfg)
    raise ValueError(f"Unsupported LLM provider: {cfg.llm_provider}")
