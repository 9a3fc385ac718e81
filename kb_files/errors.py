"""Error variant shared by the file store and its HTTP boundary.

Every failure that reaches the router is expressed as a ``FileStoreError``
carrying its kind, the HTTP status to answer with and the message to send.
The router dispatches on ``kind`` only.
"""
from dataclasses import dataclass
from enum import Enum

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException


MISSING_FILE_MESSAGE = "Missing `file` file."
NOT_FOUND_MESSAGE = "File not found."
INTERNAL_ERROR_MESSAGE = "Internal server error occured."

LIMIT_FILE_SIZE = "LIMIT_FILE_SIZE"


class ErrorKind(str, Enum):
    CLIENT_INPUT = "client_input"
    NOT_FOUND = "not_found"
    UPLOAD_PARSER = "upload_parser"
    INTERNAL = "internal"


@dataclass(eq=False)
class FileStoreError(Exception):
    kind: ErrorKind
    status_code: int
    message: str

    def __str__(self):
        return f"{self.kind.value} ({self.status_code}): {self.message}"


def client_error(message: str, status_code: int = 400) -> FileStoreError:
    return FileStoreError(ErrorKind.CLIENT_INPUT, status_code, message)


def not_found(message: str = NOT_FOUND_MESSAGE) -> FileStoreError:
    return FileStoreError(ErrorKind.NOT_FOUND, 404, message)


def upload_parser_error(code: str) -> FileStoreError:
    return FileStoreError(ErrorKind.UPLOAD_PARSER, 400, code)


def internal_error() -> FileStoreError:
    return FileStoreError(ErrorKind.INTERNAL, 500, INTERNAL_ERROR_MESSAGE)


def to_file_store_error(exc: BaseException) -> FileStoreError:
    """Convert anything raised below the router into the error variant."""
    match exc:
        case FileStoreError():
            return exc
        case MultiPartException():
            return upload_parser_error(exc.message)
        # starlette reports multipart parse failures as a 400 with the parser message
        case HTTPException(status_code=400):
            return upload_parser_error(str(exc.detail))
        case HTTPException():
            return client_error(str(exc.detail), exc.status_code)
        case _:
            return internal_error()
