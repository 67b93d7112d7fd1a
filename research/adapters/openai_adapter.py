import os
from typing import List, Dict, Any, Optional
from loguru import logger
from openai import OpenAI, OpenAIError

from research.adapters.interface import GeneratorAdapter
from monitoring.observability import trace_request


class OpenAIAdapter(GeneratorAdapter):

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: str = "gpt-4o-mini",
                 temperature: float = 0.7,
                 max_tokens: int = 1500,
                 base_url: Optional[str] = None
                 ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = base_url
        self.logger = logger

        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key or not key.strip():
            raise ValueError("OpenAI API key not set")
        self.client = OpenAI(api_key=key.strip(), base_url=base_url)

    def generate(self, messages: List[Dict[str, Any]], **kwargs) -> str:
        """Send the rendered messages and return the reply text."""

        with trace_request("llm.generate", {"model": self.model}):
            try:
                completion = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
            except OpenAIError as e:
                self.logger.error(f"OpenAI API error: {e}")
                raise

            answer = (completion.choices[0].message.content or "").strip()

            usage = getattr(completion, "usage", None)
            if usage:
                self.logger.debug(
                    f"OpenAI usage: prompt={usage.prompt_tokens} completion={usage.completion_tokens}"
                )

        return answer

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "provider": "openai",
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "base_url": self.base_url,
        }
