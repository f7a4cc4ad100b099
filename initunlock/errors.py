"""Fatal error types for the unlock sequence.

Per-device problems are reported inline and never raised; these exceptions
mark the points where continuing makes no sense.
"""


class UnlockError(Exception):
    pass


class ConfigError(UnlockError):
    pass


class KeyContainerError(UnlockError):
    pass


class ModuleLoadError(UnlockError):
    pass


class PoolImportError(UnlockError):
    pass


class ResumeBootError(UnlockError):
    pass
