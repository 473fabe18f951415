"""Vertex AI multimodal embedding provider (``multimodalembedding@001``).

Text, images and video segments are embedded into one shared vector space,
so image files in a vault can be retrieved by text queries. Calls the
``predict`` REST endpoint over httpx with a bearer access token, e.g. the
output of ``gcloud auth print-access-token``.
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Any

import httpx

from vault_rag.embeddings.base import MultimodalEmbeddingProvider, RateLimitPolicy, _validate_vector
from vault_rag.embeddings.schemas import EmbeddingResult, SegmentEmbedding
from vault_rag.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "multimodalembedding@001"
DEFAULT_LOCATION = "us-central1"
DEFAULT_DIM = 1408
SUPPORTED_DIMENSIONS = (128, 256, 512, 1408)


class VertexEmbeddingProvider(MultimodalEmbeddingProvider):
    """Embed text, images and video via Vertex AI."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        project: str | None = None,
        location: str = DEFAULT_LOCATION,
        access_token: str | None = None,
        dimension: int = DEFAULT_DIM,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_input_chars: int = 1024,
        rate_limit: RateLimitPolicy | None = None,
        client: httpx.Client | None = None,
        **kwargs,
    ):
        super().__init__(max_input_chars=max_input_chars, rate_limit=rate_limit, **kwargs)
        if dimension not in SUPPORTED_DIMENSIONS:
            raise ValueError(
                f"Unsupported dimension {dimension}. Supported: {list(SUPPORTED_DIMENSIONS)}"
            )

        project = project or os.getenv("GOOGLE_CLOUD_PROJECT")
        if not project:
            raise ValueError("Vertex AI project required (set GOOGLE_CLOUD_PROJECT)")
        access_token = access_token or os.getenv("VERTEX_ACCESS_TOKEN")

        self.model = model
        self._dimension = dimension
        base = (base_url or f"https://{location}-aiplatform.googleapis.com").rstrip("/")
        self.endpoint = (
            f"{base}/v1/projects/{project}/locations/{location}"
            f"/publishers/google/models/{model}:predict"
        )
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        self._client = client or httpx.Client(timeout=timeout, headers=headers)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed_image(self, image: bytes | str) -> EmbeddingResult:
        if isinstance(image, bytes):
            if not image:
                raise EmbeddingError("Cannot embed empty image")
            instance = {"image": {"bytesBase64Encoded": base64.b64encode(image).decode("ascii")}}
        else:
            instance = {"image": {"gcsUri": image}}

        prediction = self._predict(instance)
        vector = prediction.get("imageEmbedding")
        if not vector:
            raise EmbeddingError("No image embedding returned")
        return EmbeddingResult(vector=_validate_vector(vector), approx_tokens=0)

    def embed_video(
        self,
        uri: str,
        start_sec: float = 0,
        end_sec: float = 120,
        interval_sec: float = 16,
    ) -> list[SegmentEmbedding]:
        instance = {
            "video": {
                "gcsUri": uri,
                "videoSegmentConfig": {
                    "startOffsetSec": start_sec,
                    "endOffsetSec": end_sec,
                    "intervalSec": interval_sec,
                },
            }
        }
        prediction = self._predict(instance)
        segments = prediction.get("videoEmbeddings") or []
        if not segments:
            raise EmbeddingError("No video embeddings returned")

        try:
            return [
                SegmentEmbedding(
                    vector=[float(v) for v in seg["embedding"]],
                    start_sec=float(seg.get("startOffsetSec", 0)),
                    end_sec=float(seg.get("endOffsetSec", 0)),
                )
                for seg in segments
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise EmbeddingError(f"Malformed video embedding segment: {exc}") from exc

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed(self, text: str) -> list[float]:
        return self._predict({"text": text}).get("textEmbedding") or []

    def _predict(self, instance: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "instances": [instance],
            "parameters": {"dimension": self._dimension},
        }
        try:
            resp = self._client.post(self.endpoint, json=payload)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise EmbeddingError(f"Vertex AI request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"Vertex AI request failed: {exc}") from exc

        try:
            predictions = resp.json().get("predictions") or []
        except (ValueError, AttributeError) as exc:
            raise EmbeddingError(f"Vertex AI returned a malformed response: {exc}") from exc
        if not predictions or not isinstance(predictions[0], dict):
            raise EmbeddingError("Vertex AI returned no predictions")
        return predictions[0]
