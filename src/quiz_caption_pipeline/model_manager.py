from __future__ import annotations

import os
from typing import Any

from .config import StageLLMConfig


class ModelManager:
    """Return the correct LangChain chat model implementation from a model name."""

    def __init__(self, stage_cfg: StageLLMConfig) -> None:
        self.stage_cfg = stage_cfg

    def get_chat_model(self, *, temperature: float = 0.0) -> Any:
        model_name = (self.stage_cfg.model or "").strip()
        if not model_name:
            raise ValueError("Model name is not set. Set EXTRACT_MODEL.")

        provider = self.resolve_provider(model_name)
        if provider == "ollama":
            return self._ollama_chat(model_name, temperature=temperature)
        if provider == "openai":
            return self._openai_chat(model_name, temperature=temperature)

        raise ValueError(
            f"Unsupported model/provider for '{model_name}'. "
            "Set EXTRACT_PROVIDER explicitly or use a supported model prefix."
        )

    def resolve_provider(self, model_name: str) -> str:
        explicit = (self.stage_cfg.provider or "").strip().lower()
        if explicit:
            aliases = {
                "ollama": "ollama",
                "local": "ollama",
                "openai": "openai",
            }
            if explicit in aliases:
                return aliases[explicit]
            raise ValueError(f"Unsupported provider override: {self.stage_cfg.provider}")

        lower = model_name.lower()
        if lower.startswith(("gpt-", "o1", "o3", "o4", "chatgpt-")):
            return "openai"
        # llama3, mistral, phi3 and anything else are served locally.
        return "ollama"

    def _ollama_chat(self, model_name: str, *, temperature: float) -> Any:
        from langchain_ollama import ChatOllama

        kwargs: dict[str, Any] = {"model": model_name, "temperature": temperature}
        if self.stage_cfg.base_url:
            kwargs["base_url"] = self.stage_cfg.base_url
        return ChatOllama(**kwargs)

    def _openai_chat(self, model_name: str, *, temperature: float) -> Any:
        try:
            from langchain_openai import ChatOpenAI
        except ImportError as exc:  # pragma: no cover - runtime dependency
            raise RuntimeError("langchain-openai is not installed.") from exc

        kwargs: dict[str, Any] = {"model": model_name, "temperature": temperature}
        api_key = self.stage_cfg.api_key or os.getenv("OPENAI_API_KEY")
        if api_key:
            kwargs["api_key"] = api_key
        return ChatOpenAI(**kwargs)
