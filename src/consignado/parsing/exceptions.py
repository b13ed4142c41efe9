"""
Exceptions raised to callers that misuse the extraction API.

Content problems inside a document never raise; they become diagnostics.
"""

class ExtractionError(Exception):
    """Base class for caller-side extraction failures."""


class UnsupportedFormatError(ExtractionError):
    """
    Raised when a file cannot be routed to any extractor.

    Carries the filename and the extension that was rejected so the API
    can build a useful message.
    """

    def __init__(self, message: str, filename: str = None, extension: str = None):
        self.filename = filename
        self.extension = extension

        details = []
        if filename:
            details.append(f"Arquivo: {filename}")
        if extension:
            details.append(f"Extensão: .{extension}")

        full_message = f"{message}\n" + "\n".join(details) if details else message
        super().__init__(full_message)
