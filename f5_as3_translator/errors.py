# f5_as3_translator/errors.py


class TranslationError(Exception):
    """Base class for errors raised while translating a declaration."""
    pass


class InvalidReferenceError(TranslationError):
    """Raised when a use/bigip pointer cannot be resolved to a usable path."""
    pass


class ReferenceCycleError(InvalidReferenceError):
    """Raised when following use pointers revisits a pointer already seen."""

    def __init__(self, chain):
        self.chain = list(chain)
        super().__init__(f"Reference cycle detected: {' -> '.join(self.chain)}")


class AbsolutePathError(TranslationError):
    """Raised when a property that must hold /tenant/app/item holds something else."""

    def __init__(self, value: str, key: str):
        self.value = value
        self.key = key
        super().__init__(
            f"Expected '{value}' to be an absolute path.  This may have happened because "
            f"{key} was applied to a Service that does not support it.")


class UnknownVersionError(ValueError):
    """Raised when a version string has no numeric dot-separated components."""
    pass


class DeclarationModifiedError(TranslationError):
    """Raised when the declaration differs after translation from the copy taken before it."""
    pass
