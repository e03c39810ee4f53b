"""
LLM Module
----------
Purpose: Query Groq LLM with a grounded chat transcript
"""
from groq import Groq
from typing import Dict, List, Optional
import os
import logging

from .errors import GenerationError

logger = logging.getLogger(__name__)

GROUNDED_SYSTEM_PROMPT = """You are a helpful AI assistant. Use the following context to answer questions:

Context:
{context}

Answer based on the context when relevant, but also provide helpful general responses."""

GENERAL_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. "
    "Provide a helpful response based on your general knowledge."
)


class GroqLLMClient:
    """
    Client for querying Groq chat completions
    Requires: Groq API key
    Model: llama-3.1-8b-instant -> check available models using client.models.list()
    """
    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "llama-3.1-8b-instant",
        timeout: float = 30.0,
    ):
        """
        Initialize Groq LLM client
        Args:
            api_key (str): Groq API key, falls back to GROQ_API_KEY
            model_name (str): Groq model name
            timeout (float): Request timeout in seconds
        """
        self.api_key = api_key or os.getenv("GROQ_API_KEY")

        if not self.api_key:
            raise ValueError("GROQ_API_KEY not found in environment variables")

        self.client = Groq(api_key=self.api_key, timeout=timeout)
        self.model_name = model_name

        logger.info(f"Groq LLM client initialized with model: {self.model_name}")

    def generate(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.7,
    ) -> str:
        """
        Run a chat completion.
        Args:
            messages: Ordered {role, content} dicts, system prompt first
            max_tokens: Maximum number of tokens to generate
            temperature: 0-1, higher for more varied answers

        Returns:
            The completion text

        Raises:
            GenerationError: If Groq fails or returns an empty completion
        """
        try:
            logger.debug(f"Querying Groq with {len(messages)} messages")
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
            answer = response.choices[0].message.content
        except Exception as e:
            logger.error(f"Groq query failed: {e}")
            raise GenerationError(f"LLM query failed: {e}") from e

        if not answer or not answer.strip():
            raise GenerationError("LLM returned an empty completion")

        logger.debug(f"Groq API response: {answer}")
        return answer


def build_context_string(texts: List[str]) -> str:
    """
    Join retrieved chunk texts into one grounding context.
    Args:
        texts: Chunk texts, best match first
    Returns:
        Texts separated by a blank line ("" when there are none)
    """
    return "\n\n".join(texts)


def build_system_prompt(context: str) -> str:
    """Grounded instruction when there is context, general one otherwise."""
    if context:
        return GROUNDED_SYSTEM_PROMPT.format(context=context)
    return GENERAL_SYSTEM_PROMPT
