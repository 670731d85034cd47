import json
import re
import httpx
import ollama
from dealscout.config import settings
from dealscout.services.logger import logger
from typing import Dict, Any, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

class LLMUnavailable(Exception):
    """No AI endpoint is configured."""

def extract_json(content: str) -> Dict[str, Any]:
    """Parse a JSON object, tolerating markdown fences or prose around it."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(content or "")
        if not match:
            raise ValueError("No JSON object in LLM response")
        data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data

class LLMService:
    def __init__(self, base_url: Optional[str] = None, model: Optional[str] = None, api_key: Optional[str] = None, enabled: Optional[bool] = None):
        self.base_url = base_url if base_url is not None else settings.OLLAMA_BASE_URL
        self.model = model or settings.OLLAMA_MODEL
        self.enabled = settings.AI_ANALYSIS_ENABLED if enabled is None else enabled
        api_key = api_key if api_key is not None else settings.OLLAMA_API_KEY
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        self._client: Optional[ollama.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.enabled and self.base_url and self.model)

    @property
    def client(self) -> ollama.AsyncClient:
        if not self.is_configured:
            raise LLMUnavailable("AI analysis is disabled or OLLAMA_BASE_URL is not set")
        if self._client is None:
            self._client = ollama.AsyncClient(host=self.base_url, headers=self._headers)
        return self._client

    @retry(
        stop=stop_after_attempt(settings.AI_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((httpx.TransportError, ollama.ResponseError, ConnectionError)),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            f"LLM call failed, retrying in {retry_state.next_action.sleep} seconds... (attempt {retry_state.attempt_number})"
        )
    )
    async def generate_json(self, prompt: str) -> Dict[str, Any]:
        """
        Generates a JSON object from the LLM, retrying transport failures.
        Raises ValueError when the reply is not a JSON object.
        """
        response = await self.client.chat(model=self.model, messages=[
            {'role': 'user', 'content': prompt}
        ], format='json', options={'temperature': 0.1})

        content = response['message']['content']
        try:
            return extract_json(content)
        except (ValueError, json.JSONDecodeError):
            logger.error(f"Failed to parse JSON from LLM: {content[:200]}")
            raise

llm = LLMService()
