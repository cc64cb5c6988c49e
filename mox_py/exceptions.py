"""Custom exceptions for mox-py."""


class MoxPyError(Exception):
    """Base exception for mox-py."""


class ModelDefinitionError(MoxPyError):
    """Invalid model or field declarations."""


class FrozenModelError(MoxPyError):
    """Mutation attempted on a frozen model instance."""
