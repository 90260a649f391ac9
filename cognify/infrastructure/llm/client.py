"""
Vertex AI REST client for LLM interactions.
"""
import json
import logging
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, QUESTION_MODEL, LLM_TIMEOUT, MAX_OUTPUT_TOKENS

logger = logging.getLogger("llm_client")


class ProviderError(RuntimeError):
    """The AI provider failed or returned something we cannot use."""


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = QUESTION_MODEL,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self._token = None
        self.timeout = timeout

    def _model_resource(self, model: str) -> str:
        return f"projects/{self.project}/locations/{self.location}/publishers/google/models/{model}"

    def _refresh_token(self):
        """
        Refresh the OAuth token for API calls.

        Raises:
            ProviderError: Credentials could not be loaded or refreshed
        """
        try:
            if self.credentials_json:
                creds = service_account.Credentials.from_service_account_file(
                    self.credentials_json,
                    scopes=["https://www.googleapis.com/auth/cloud-platform"],
                )
            else:
                creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

            auth_req = google.auth.transport.requests.Request()
            creds.refresh(auth_req)
        except (google.auth.exceptions.GoogleAuthError, OSError, ValueError) as e:
            logger.error("Could not obtain Google Cloud credentials: %s", e)
            raise ProviderError(f"Google Cloud authentication failed: {e}") from e
        self._token = creds.token

    def _ensure_token(self):
        """Ensure we have a valid token, refreshing if needed."""
        if not self._token:
            self._refresh_token()

    def generate_content(
        self,
        prompt_text: Optional[str] = None,
        temperature: float = 0.0,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        model: Optional[str] = None,
        contents: Optional[List[Dict[str, Any]]] = None,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        thinking_budget: Optional[int] = None,
    ) -> str:
        """Generate content using the Vertex AI REST API.

        Either ``prompt_text`` (single user turn) or ``contents`` (full chat
        history in Vertex ``{"role", "parts"}`` form) must be given.
        """
        if contents is None:
            if prompt_text is None:
                raise ValueError("prompt_text or contents is required")
            contents = [{"role": "user", "parts": [{"text": prompt_text}]}]

        self._ensure_token()
        url = f"{self.base_url}/{self._model_resource(model or self.model)}:generateContent"

        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }

        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if response_schema is not None:
            body["generationConfig"]["responseMimeType"] = "application/json"
            body["generationConfig"]["responseSchema"] = response_schema
        if thinking_budget is not None:
            body["generationConfig"]["thinkingConfig"] = {"thinkingBudget": int(thinking_budget)}

        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"Vertex REST request failed: {e}") from e
        if resp.status_code == 401:
            # Token expired mid-session; the next call refreshes it
            self._token = None
        if resp.status_code >= 400:
            raise ProviderError(f"Vertex REST error {resp.status_code}: {resp.text}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ProviderError(f"Vertex REST returned invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ProviderError("Vertex REST returned an unexpected payload")
        return self._parse_response_text(payload)

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Parse response JSON to extract text content.
        Tries Vertex schema first, then falls back to alternatives.
        """
        # Vertex schema: candidates[0].content.parts[*].text
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [
                p["text"] for p in parts
                if isinstance(p, dict) and isinstance(p.get("text"), str) and not p.get("thought")
            ]
            if texts:
                return "".join(texts)
            # Some responses put text directly in content
            if isinstance(content.get("text"), str):
                return content["text"]

        # Direct text fallback
        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        logger.warning("No text in Vertex response: %s", json.dumps(resp_json, separators=(",", ":"))[:500])
        return ""

    def generate_json(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        """
        Generate a JSON response from the LLM with defensive parsing.
        Returns the decoded object or array; raises ProviderError when the
        model returns nothing usable.
        """
        from ...interview.schemas import extract_json

        if response_schema is None:
            prompt = prompt.strip() + "\n\nRespond ONLY with minified JSON."
        logger.debug("Sending JSON prompt to LLM...")

        try:
            text = self.generate_content(prompt, response_schema=response_schema, **kwargs)
        except ProviderError as e:
            logger.error("LLM request failed: %s", e)
            raise

        logger.debug("Raw LLM output: %s", repr(text))
        return extract_json(text)
