"""
Finalizer - sanitize and persist the finished page.

The injector's write may not be visible yet when the finalizer runs, so the
read is retried a bounded number of times before giving up.
"""

import logging
import time
from typing import Callable, Optional

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..core.config import Config
from .document_store import DocumentStore
from .exceptions import CompositionError, DocumentNotFound, MalformedDocument
from .html_document import split_document, strip_null_bytes
from .models import DocumentRecord, DocumentStatus, FinalizeResult

logger = logging.getLogger(__name__)

HEADER_MARKER = "<header"
FOOTER_MARKER = "<footer"


class Finalizer:
    """Read with retry and strip NUL bytes, then persist a well-formed page as `generated`."""

    def __init__(
        self,
        document_store: DocumentStore,
        attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.document_store = document_store
        self.attempts = attempts or Config.FINALIZE_READ_ATTEMPTS
        self.backoff_seconds = (
            Config.FINALIZE_READ_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self._sleep = sleep

    def _read_with_retry(self, document_id: str):
        """Returns (record, attempts used). Raises DocumentNotFound after the last attempt."""
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception_type(DocumentNotFound),
            sleep=self._sleep,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.info(f"[finalize] Retry {number}/{self.attempts} reading {document_id}")
                record: DocumentRecord = self.document_store.get(document_id)
        return record, number

    def finalize(self, document_id: str) -> FinalizeResult:
        logger.info(f"[finalize] Finalizing document: {document_id}")

        try:
            record, attempts = self._read_with_retry(document_id)
        except DocumentNotFound as e:
            logger.error(f"[finalize] {e} after {self.attempts} attempts")
            return FinalizeResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                attempts=self.attempts,
            )
        except CompositionError as e:
            logger.error(f"[finalize] {e}")
            return FinalizeResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                attempts=self.attempts,
            )

        html = strip_null_bytes(record.html)
        try:
            split_document(html, document_id=document_id)
        except MalformedDocument as e:
            logger.error(f"[finalize] {e}")
            return FinalizeResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                preview=e.preview,
                attempts=attempts,
            )

        self.document_store.put(document_id, html, DocumentStatus.GENERATED)

        has_header = HEADER_MARKER in html
        has_footer = FOOTER_MARKER in html
        if not has_header:
            logger.warning(f"[finalize] No <header> found in document {document_id}")
        if not has_footer:
            logger.warning(f"[finalize] No <footer> found in document {document_id}")

        logger.info(f"[finalize] Saved final page ({len(html)} bytes) after {attempts} read attempt(s)")

        return FinalizeResult(
            success=True,
            document_id=document_id,
            has_header=has_header,
            has_footer=has_footer,
            attempts=attempts,
            html_size=len(html),
        )
