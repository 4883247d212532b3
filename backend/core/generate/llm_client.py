import logging
import httpx
import time
import random
from typing import List, Dict, Any, Optional
from config.settings import settings, LLMConfig

logger = logging.getLogger(__name__)

class LLMClient:
    """
    OpenRouter chat-completions client for grounded answering.
    One generate() call is one logical completion: transient failures are retried
    with exponential backoff, then the fallback model gets a single chance.
    """

    def __init__(self, config: Optional[LLMConfig] = None, api_key: Optional[str] = None):
        self.config = config or settings.llm
        self.api_key = api_key if api_key is not None else settings.openrouter_api_key
        self.base_url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        self.headers = {
            "Authorization": f"Bearer {self.api_key}" if self.api_key else "",
            "X-Title": "DocuMind RAG",
            "Content-Type": "application/json"
        }
        self.max_retries = self.config.max_retries
        self.base_delay = self.config.base_delay

    def generate(self, messages: List[Dict[str, str]]) -> str:
        """Returns the full completion text for the given chat messages."""
        payload = {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature
        }

        if not self.api_key:
            logger.warning("OPENROUTER_API_KEY is not set. LLM calls will fail.")

        try:
            return self._sync_response(payload)
        except Exception as e:
            if not self.config.fallback_model or self.config.fallback_model == payload["model"]:
                raise
            logger.warning(f"Primary model {payload['model']} failed: {e}. Trying fallback.")
            payload["model"] = self.config.fallback_model
            return self._sync_response(payload)

    def _backoff(self, attempt: int) -> float:
        return self.base_delay * (2 ** attempt) + random.uniform(0, 1)

    def _sync_response(self, payload: Dict[str, Any]) -> str:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                with httpx.Client(timeout=self.config.timeout) as client:
                    response = client.post(self.base_url, headers=self.headers, json=payload)

                    if response.status_code == 429:
                        delay = self._backoff(attempt)
                        logger.warning(f"Rate limited (429). Retrying in {delay:.2f}s... (Attempt {attempt+1}/{self.max_retries})")
                        last_error = httpx.HTTPStatusError("429 Too Many Requests", request=response.request, response=response)
                        time.sleep(delay)
                        continue

                    response.raise_for_status()
                    data = response.json()
                    return data["choices"][0]["message"]["content"] or ""
            except Exception as e:
                last_error = e
                if attempt == self.max_retries - 1:
                    raise
                delay = self._backoff(attempt)
                logger.warning(f"Request failed: {e}. Retrying in {delay:.2f}s...")
                time.sleep(delay)

        raise RuntimeError(f"LLM request failed after {self.max_retries} attempts: {last_error}")
