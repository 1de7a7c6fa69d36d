"""Error types raised by the game services."""


class GameError(Exception):
    """Base class for guessing-game errors."""


class ConfigurationError(GameError, ValueError):
    """Invalid setup parameters (threshold above feature count, no attempts, ...)."""


class GenerationFailure(GameError, RuntimeError):
    """Image or feature generation produced nothing usable."""


class HintFailure(GameError, RuntimeError):
    """The hint provider could not produce guidance for a guess."""


class SafetyBlocked(HintFailure):
    """The provider rejected the hint request on content-policy grounds."""


class MalformedPayloadError(GameError, ValueError):
    """A snapshot or request payload failed schema validation."""


class SessionNotFoundError(GameError, KeyError):
    """No resumable session exists for the given key and image."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message for HTTP details.
        return str(self.args[0]) if self.args else "Session not found"
