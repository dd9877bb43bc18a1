class ExtractionError(Exception):
    """Error duro: corta el pipeline y se devuelve como success=False."""


class UnsupportedFormat(ExtractionError):
    def __init__(self, extension: str, message: str = ""):
        self.extension = extension
        super().__init__(message or f"Unsupported file format: {extension}")


class EmptySource(ExtractionError):
    pass


class InsufficientRows(ExtractionError):
    pass


class NoExtractableFields(ExtractionError):
    pass


class MalformedStructured(ExtractionError):
    pass


class DocumentDecodeError(ExtractionError):
    """La librería de decodificación (pdf, docx, xlsx...) falló."""
