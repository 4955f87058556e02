"""
HTTP classification service.

Posts a JPEG sample to a vision endpoint and parses its JSON verdict.

Request body:
    {"image": "<base64 jpeg>", "mime_type": "image/jpeg", "prompt": "<instructions>"}

Expected response body (camelCase variants are accepted too, see
Classification.from_dict):
    {"object_present": true, "position": "at_line", "is_moving": false,
     "object_label": "hand"}
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from models.classification import Classification
from models.config import DEFAULT_CLASSIFIER_PROMPT, DEFAULT_CLASSIFIER_TIMEOUT_S, ClassifierConfig
from models.frame import FrameSample
from .backend import ClassificationService


@dataclass(frozen=True)
class HttpServiceConfig:
    endpoint: str
    api_key: Optional[str] = None
    timeout_s: float = DEFAULT_CLASSIFIER_TIMEOUT_S
    prompt: str = DEFAULT_CLASSIFIER_PROMPT

    @classmethod
    def from_classifier_config(cls, cfg: ClassifierConfig) -> "HttpServiceConfig":
        """Adapter: resolve the API key from the configured environment variable."""
        api_key = os.environ.get(cfg.api_key_env) if cfg.api_key_env else None
        if cfg.api_key_env and not api_key:
            logging.warning(f"Classifier API key variable {cfg.api_key_env} is not set")
        return cls(
            endpoint=cfg.endpoint,
            api_key=api_key,
            timeout_s=cfg.timeout_s,
            prompt=cfg.prompt,
        )


def _extract_payload(body: Any) -> Dict[str, Any]:
    """
    Pull the classification object out of a response body.

    Some gateways wrap the model output as a JSON string under "text" or
    "result"; unwrap one level of that.
    """
    if isinstance(body, dict):
        for key in ("text", "result"):
            inner = body.get(key)
            if isinstance(inner, str):
                return json.loads(inner)
            if isinstance(inner, dict):
                return inner
        return body
    raise ValueError(f"Unexpected classification response type: {type(body).__name__}")


class HttpClassificationService(ClassificationService):
    """
    Classification over HTTP using a shared httpx.AsyncClient.

    The client is created lazily inside the running event loop and must be
    released with aclose().
    """

    def __init__(self, cfg: HttpServiceConfig, client: Optional[httpx.AsyncClient] = None):
        self.cfg = cfg
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.cfg.api_key:
                headers["Authorization"] = f"Bearer {self.cfg.api_key}"
            self._client = httpx.AsyncClient(timeout=self.cfg.timeout_s, headers=headers)
        return self._client

    async def classify(self, sample: FrameSample) -> Classification:
        client = self._get_client()
        response = await client.post(
            self.cfg.endpoint,
            json={
                "image": sample.to_base64(),
                "mime_type": "image/jpeg",
                "prompt": self.cfg.prompt,
            },
        )
        response.raise_for_status()
        return Classification.from_dict(_extract_payload(response.json()))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
