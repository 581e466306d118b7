class InvalidFrameError(ValueError):
    """Raised when an audio frame cannot be analysed with the configured bounds."""

    def __init__(self, message: str, frame_length: int | None = None, required_length: int | None = None):
        super().__init__(message)
        self.frame_length = frame_length
        self.required_length = required_length
