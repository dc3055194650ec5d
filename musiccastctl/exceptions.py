class MusicCastException(Exception):
    pass


class MusicCastConfigurationException(MusicCastException):
    pass


class MusicCastParamException(MusicCastException):
    pass


class MusicCastConnectionException(MusicCastException):
    pass


class MusicCastDecodeException(MusicCastException):
    pass


class MusicCastDiscoveryException(MusicCastException):
    pass


class MusicCastHTTPStatusException(MusicCastException):
    def __init__(self, status: int) -> None:
        super().__init__(f"http {status}")
        self.status = status


class MusicCastResponseCodeException(MusicCastException):
    def __init__(self, response_code: int, description: str | None = None) -> None:
        message = f"response_code {response_code}"
        if description:
            message = f"{message} ({description})"
        super().__init__(message)
        self.response_code = response_code
        self.description = description
