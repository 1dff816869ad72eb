"""
Vertex AI REST client for Gemini interactions.
"""
import json
import logging
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS
from ...errors import UpstreamCallError

logger = logging.getLogger("llm_client")

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self.timeout = timeout
        self._credentials = None
        self._http = session or requests.Session()

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        if self._credentials is None:
            if self.credentials_json:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_json, scopes=SCOPES,
                )
            else:
                self._credentials, _ = google.auth.default(scopes=SCOPES)

        self._credentials.refresh(google.auth.transport.requests.Request())

    def _ensure_token(self) -> str:
        """Ensure we have a valid token, refreshing if missing or expired."""
        try:
            if self._credentials is None or not self._credentials.valid:
                self._refresh_token()
        except google.auth.exceptions.GoogleAuthError as e:
            raise UpstreamCallError(f"Could not obtain Google credentials: {e}") from e
        return self._credentials.token

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = 0.0,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        inline_data: Optional[Dict[str, str]] = None,
        response_mime_type: Optional[str] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """
        Generate content using the Vertex AI REST API.

        Args:
            prompt_text: Text part of the user turn
            inline_data: Optional media part, {"mimeType": ..., "data": <base64>}
            response_mime_type: e.g. "application/json" for JSON mode
        """
        token = self._ensure_token()
        url = f"{self.base_url}/{self.model_resource}:generateContent"

        parts: List[Dict[str, Any]] = [{"text": prompt_text}]
        if inline_data:
            parts.append({"inlineData": dict(inline_data)})

        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }
        if response_mime_type:
            body["generationConfig"]["responseMimeType"] = response_mime_type
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            resp = self._http.post(url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamCallError(f"Vertex request failed: {e}") from e

        if resp.status_code >= 400:
            raise UpstreamCallError(
                f"Vertex REST error {resp.status_code}",
                context={"body": resp.text[:200]},
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamCallError("Vertex returned a non-JSON body") from e

        return self._parse_response_text(payload)

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Extract the text content of the first candidate.

        Raises:
            UpstreamCallError: If the response carries no text (blocked, empty, ...)
        """
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)
            finish_reason = cands[0].get("finishReason")
        else:
            finish_reason = None

        block_reason = (resp_json.get("promptFeedback") or {}).get("blockReason")
        raise UpstreamCallError(
            "Vertex response contained no text",
            context={"finish_reason": finish_reason or block_reason or "unknown"},
        )

    def generate_json(self, prompt: str, temperature: float = 0.0,
                      inline_data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Generate a JSON object from the model.

        The model is asked for JSON mode; text that still wraps the object in
        prose or code fences is narrowed to the outermost braces.
        """
        logger.debug("Sending JSON prompt to LLM...")
        text = self.generate_content(
            prompt,
            temperature=temperature,
            inline_data=inline_data,
            response_mime_type="application/json",
        )
        logger.debug("Raw LLM output: %s", repr(text))

        try:
            parsed = json.loads(text)
        except ValueError as e:
            logger.warning("json.loads failed: %s", e)
            start = text.find("{")
            end = text.rfind("}")
            if start == -1 or end <= start:
                raise UpstreamCallError("LLM did not return valid JSON", context={"text": text[:200]}) from e
            try:
                parsed = json.loads(text[start:end + 1])
            except ValueError as e2:
                raise UpstreamCallError("LLM did not return valid JSON", context={"text": text[:200]}) from e2

        if not isinstance(parsed, dict):
            raise UpstreamCallError("LLM returned JSON that is not an object", context={"text": text[:200]})
        return parsed
