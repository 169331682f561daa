"""
Clients Layer - Generative Service Client Abstractions

This layer provides abstractions over LLM providers (OpenAI, Gemini),
so the pipeline works with any provider interchangeably.

Submodules:
    llm_client.py    → Protocol and base implementation
    openai_client.py → OpenAI implementation (default)
    gemini_client.py → Google Gemini implementation

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.clients.llm_client import (
    LLMClientProtocol,
    BaseLLMClient,
)
from treatment_plan_generation.clients.openai_client import OpenAIClient
from treatment_plan_generation.clients.gemini_client import GeminiClient

__all__ = [
    "LLMClientProtocol",
    "BaseLLMClient",
    "OpenAIClient",
    "GeminiClient",
]
