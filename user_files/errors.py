class FileApiError(Exception):
    """Base error; carries the HTTP status and client message it maps to."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message=None, status_code=None):
        self.message = message if message is not None else self.message
        self.status_code = status_code if status_code is not None else self.status_code
        super().__init__(self.message)


class UploadError(FileApiError):
    def __init__(self, message="Error uploading file"):
        super().__init__(message=message, status_code=500)


class MissingFileError(FileApiError):
    def __init__(self):
        super().__init__(message="No file provided", status_code=400)


class MetadataPersistError(FileApiError):
    def __init__(self):
        super().__init__(message="Error saving file info", status_code=500)


class StoreQueryError(FileApiError):
    def __init__(self, message="Error querying files"):
        super().__init__(message=message, status_code=500)


class NotFoundError(FileApiError):
    def __init__(self, message="File not found"):
        super().__init__(message=message, status_code=404)


class StorageIntegrityError(NotFoundError):
    """Record exists but its bytes are gone from the uploads root."""

    def __init__(self):
        super().__init__(message="File content missing from storage")


class UnauthenticatedError(FileApiError):
    def __init__(self, message="Not authenticated"):
        super().__init__(message=message, status_code=401)
