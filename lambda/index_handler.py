"""Lambda handler for vault file indexing — triggered by S3 -> SQS.

Thin wrapper around IngestPipeline. All business logic lives in src/vault_rag/.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import unquote_plus

import boto3

from vault_rag.config import load_settings
from vault_rag.embeddings.factory import provider_from_settings
from vault_rag.indexing.indexer import IndexScope
from vault_rag.pipeline.ingest import IngestPipeline
from vault_rag.vectorstore.factory import shared_store_from_settings
from vault_rag.vectorstore.schemas import FileRef

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

s3_client = boto3.client("s3")

# Initialize outside handler for Lambda warm-start reuse
_pipeline: IngestPipeline | None = None


def _get_pipeline() -> IngestPipeline:
    global _pipeline
    if _pipeline is not None:
        return _pipeline

    settings = load_settings()
    emb = provider_from_settings(settings.embedding)
    store = shared_store_from_settings(settings.vectorstore, dimension=emb.dimension)
    _pipeline = IngestPipeline(
        emb,
        store,
        max_tokens=settings.chunking.max_tokens,
        overlap=settings.chunking.overlap,
    )
    return _pipeline


def parse_key(key: str) -> tuple[str, str | None, str, str]:
    """Split an object key into (owner_id, patient_id, file_id, filename).

    Keys are ``owner/patient/file_id/name`` or ``owner/file_id/name`` for
    files not attached to a patient.
    """
    parts = key.split("/")
    if len(parts) == 4:
        return parts[0], parts[1], parts[2], parts[3]
    if len(parts) == 3:
        return parts[0], None, parts[1], parts[2]
    raise ValueError(f"Unexpected object key layout: {key}")


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Process S3 events from SQS — download each file, index it, report failures."""
    pipeline = _get_pipeline()

    results = []
    failures = []
    for record in event.get("Records", []):
        message_id = record.get("messageId")
        body = json.loads(record["body"])
        for s3_record in body.get("Records", []):
            bucket = s3_record["s3"]["bucket"]["name"]
            key = unquote_plus(s3_record["s3"]["object"]["key"])

            try:
                owner_id, patient_id, file_id, filename = parse_key(key)
            except ValueError:
                logger.error("Skipping object with unexpected key: %s", key)
                failures.append(message_id)
                continue

            scope = IndexScope(owner_id=owner_id, subject=FileRef(file_id), patient_id=patient_id)
            with tempfile.TemporaryDirectory() as tmp_dir:
                local_path = Path(tmp_dir) / filename
                s3_client.download_file(bucket, key, str(local_path))
                result = pipeline.index_file(local_path, scope, filename=filename)

            if not result.ok:
                failures.append(message_id)
            results.append({
                "source": key,
                "status": str(result.status),
                "chunks_created": result.chunks_created,
                "chunks_stored": result.chunks_stored,
                "error": result.error,
                "warnings": result.warnings,
            })

    return {
        "statusCode": 200,
        "results": results,
        "batchItemFailures": [
            {"itemIdentifier": m} for m in dict.fromkeys(failures) if m is not None
        ],
    }
