from __future__ import annotations


class EngineError(RuntimeError):
    pass


class GuardViolation(EngineError):
    """A transition was attempted outside its legal preconditions."""


class InvalidCardReference(GuardViolation):
    """A discard named a card that is not in the acting hand."""


class EmptyDeckError(EngineError):
    pass
