# services/quote_service.py

import logging
import secrets
import string
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..core import geometry
from ..core.common_types import (
    FileStatus, PrintConfiguration, QuoteRecord, QuoteStatus, UploadedFile
)
from ..core.exceptions import FileTooLargeError, QuoteValidationError, RecordNotFoundError
from ..processes.print_3d.processor import Print3DProcessor

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "QT-"
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 10

# Volume quoted when a file has no analysis or a measured volume of zero
DEFAULT_VOLUME_CM3 = 100.0

def generate_quote_reference() -> str:
    """Human-facing quote reference, e.g. 'QT-7K2M9QX4AB'."""
    return REFERENCE_PREFIX + "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class QuoteService:
    """
    Service layer tying uploads, analysis and quoting together.

    Records are kept in memory for the lifetime of the process. All access goes
    through a lock since the API serves sync endpoints from a thread pool.
    """

    def __init__(self,
                 processor: Print3DProcessor,
                 max_upload_size_bytes: int = 50 * 1024 * 1024,
                 quote_validity_days: int = 7,
                 clock: Callable[[], datetime] = _utcnow):
        """
        Initialize the QuoteService.

        Args:
            processor: Processor holding the material catalog and rates.
            max_upload_size_bytes: Largest accepted upload.
            quote_validity_days: Days before an active quote expires.
            clock: Returns the current aware UTC time; replaceable in tests.
        """
        self.processor = processor
        self.max_upload_size_bytes = max_upload_size_bytes
        self.quote_validity = timedelta(days=quote_validity_days)
        self.clock = clock
        self._files: Dict[str, UploadedFile] = {}
        self._quotes: Dict[str, QuoteRecord] = {}
        self._lock = threading.Lock()
        logger.info(f"QuoteService initialized. Max upload {max_upload_size_bytes} bytes, "
                    f"quotes valid for {quote_validity_days} days.")

    # --- Files ---

    def upload_file(self, data: bytes, original_name: str, mime_type: Optional[str] = None) -> UploadedFile:
        """
        Stores and analyzes an uploaded model.

        A file whose analysis fails is still recorded, with status ERROR and the
        analysis errors joined into error_message.

        Raises:
            FileTooLargeError: If the upload exceeds the size limit.
            FileFormatError: If the extension is not accepted.
        """
        if len(data) > self.max_upload_size_bytes:
            raise FileTooLargeError(
                f"File size exceeds maximum allowed size of {self.max_upload_size_bytes / 1024 / 1024:g}MB"
            )

        ext = geometry.file_extension(original_name)
        record = UploadedFile(
            original_name=original_name,
            filename=f"{uuid.uuid4()}{ext}",
            mime_type=mime_type or "application/octet-stream",
            size=len(data),
            status=FileStatus.PROCESSING,
            created_at=self.clock(),
        )

        analysis = geometry.analyze_upload(data, original_name)
        if analysis.has_errors:
            status, error_message = FileStatus.ERROR, ", ".join(analysis.errors)
            logger.warning(f"Upload '{original_name}' ({record.id}) failed analysis: {error_message}")
        else:
            status, error_message = FileStatus.READY, None
            logger.info(f"Upload '{original_name}' ({record.id}) ready: volume {analysis.volume_cm3} cm³")

        record = record.model_copy(update={"status": status, "analysis": analysis, "error_message": error_message})
        with self._lock:
            self._files[record.id] = record
        return record

    def get_file(self, file_id: str) -> UploadedFile:
        with self._lock:
            record = self._files.get(file_id)
        if record is None:
            raise RecordNotFoundError(f"File '{file_id}' not found")
        return record

    def list_files(self) -> List[UploadedFile]:
        """All uploaded files, newest first."""
        with self._lock:
            records = list(self._files.values())
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def delete_file(self, file_id: str) -> None:
        """
        Removes an uploaded file. Quotes already issued for it are kept.

        Raises:
            RecordNotFoundError: If the file does not exist.
        """
        with self._lock:
            record = self._files.pop(file_id, None)
        if record is None:
            raise RecordNotFoundError(f"File '{file_id}' not found")
        logger.info(f"File '{record.original_name}' ({file_id}) deleted")

    # --- Quotes ---

    def create_quote(self, file_id: str, material_id: str, configuration: PrintConfiguration) -> QuoteRecord:
        """
        Prices a READY file with the given material and configuration and stores the quote.

        Raises:
            RecordNotFoundError: If the file does not exist.
            QuoteValidationError: If the file is not ready, its analysis failed, or
                the configuration is invalid for the material.
            MaterialNotFoundError: If the material is not in the catalog.
        """
        file_record = self.get_file(file_id)
        if file_record.status != FileStatus.READY:
            raise QuoteValidationError("File is not ready for quoting")

        analysis = file_record.analysis
        if analysis is not None and analysis.has_errors:
            raise QuoteValidationError("File analysis has errors: " + (", ".join(analysis.errors) or "Unknown error"))
        volume_cm3 = analysis.volume_cm3 if analysis is not None and analysis.volume_cm3 else DEFAULT_VOLUME_CM3

        material = self.processor.get_material_info(material_id)
        quote = self.processor.generate_quote(volume_cm3, material, configuration)

        now = self.clock()
        record = QuoteRecord(
            reference=generate_quote_reference(),
            file_id=file_id,
            material_id=material_id,
            quote=quote,
            status=QuoteStatus.ACTIVE,
            expires_at=now + self.quote_validity,
            created_at=now,
        )
        with self._lock:
            self._quotes[record.id] = record
        logger.info(f"Quote {record.reference} ({record.id}) created for file {file_id}: "
                    f"{quote.pricing.total:.2f} {quote.pricing.currency}")
        return record

    def _refresh_status(self, record: QuoteRecord, now: datetime) -> QuoteRecord:
        """Flips an ACTIVE quote past its expiry to EXPIRED. Caller holds the lock."""
        if record.status == QuoteStatus.ACTIVE and now > record.expires_at:
            record = record.model_copy(update={"status": QuoteStatus.EXPIRED})
            self._quotes[record.id] = record
            logger.info(f"Quote {record.reference} expired at {record.expires_at.isoformat()}")
        return record

    def get_quote(self, quote_id: str) -> QuoteRecord:
        now = self.clock()
        with self._lock:
            record = self._quotes.get(quote_id)
            if record is None:
                raise RecordNotFoundError(f"Quote '{quote_id}' not found")
            return self._refresh_status(record, now)

    def list_quotes(self) -> List[QuoteRecord]:
        """All quotes, newest first."""
        now = self.clock()
        with self._lock:
            records = [self._refresh_status(r, now) for r in list(self._quotes.values())]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def mark_as_ordered(self, quote_id: str) -> QuoteRecord:
        """
        Marks an active quote as ordered.

        Raises:
            RecordNotFoundError: If the quote does not exist.
            QuoteValidationError: If the quote is expired or already ordered.
        """
        now = self.clock()
        with self._lock:
            record = self._quotes.get(quote_id)
            if record is None:
                raise RecordNotFoundError(f"Quote '{quote_id}' not found")
            record = self._refresh_status(record, now)
            if record.status != QuoteStatus.ACTIVE:
                raise QuoteValidationError(f"Quote {record.reference} cannot be ordered: status is {record.status.value}")
            record = record.model_copy(update={"status": QuoteStatus.ORDERED})
            self._quotes[record.id] = record
        logger.info(f"Quote {record.reference} marked as ordered")
        return record
