import structlog

from pitchrag.application.ports.extraction_port import ExtractionPort, ExtractionError

log = structlog.get_logger(__name__)

class BaseExtractorAdapter(ExtractionPort):
    """
    Base class for extraction adapters with shared error logging.
    """
    def _handle_extraction_error(self, e: Exception, filename: str, adapter_name: str) -> ExtractionError:
        log.error(f"{adapter_name} extraction failed", filename=filename, error=str(e), exc_info=True)
        return ExtractionError(f"Could not read file {filename} with {adapter_name}: {e}")
