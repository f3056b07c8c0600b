from __future__ import annotations


class FisokuError(RuntimeError):
    pass


class ImageFetchError(FisokuError):
    pass


class RecognitionError(FisokuError):
    pass


class RecognitionUnavailableError(RecognitionError):
    pass


class EmptyRecognitionError(RecognitionError):
    pass
