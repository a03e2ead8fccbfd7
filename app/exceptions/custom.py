class InvalidUrlError(Exception):
    def __init__(self, message: str, status_code: int | None = 422):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ContentGenerationError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
