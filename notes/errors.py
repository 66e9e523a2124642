"""Exceptions raised by note stores."""


class NoteStoreError(Exception):
    """Base class for note store failures."""


class RemoteStoreError(NoteStoreError):
    """The remote data service could not be reached or reported an error.

    Missing notes are never reported this way; stores return ``None`` or
    ``False`` for those.
    """

    def __init__(
        self,
        message: str,
        *,
        function: str | None = None,
        service_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.function = function
        self.service_message = service_message
