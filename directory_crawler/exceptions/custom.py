class RenderError(Exception):
    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class FetchError(Exception):
    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class CrawlConfigError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
