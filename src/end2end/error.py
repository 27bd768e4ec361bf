"""Exceptions with special meanings for end2end."""


class CheckError(RuntimeError):
    """Abort check execution.

    This exception should be raised if it becomes clear that the check is
    not able to determine the system status. Raising this exception will
    make the plugin display the exception's argument and exit with an
    UNKNOWN (3) status.
    """

    pass


class Timeout(RuntimeError):
    """Maximum check run time exceeded.

    This exception is raised internally if the check's run time takes
    longer than allowed. Check execution is aborted and the plugin exits
    with an UNKNOWN (3) status.
    """

    pass


class ConfigurationError(CheckError):
    """Base class for everything that is wrong before a request is sent."""

    pass


class ConfigError(ConfigurationError):
    """The configuration file cannot be read or parsed."""

    pass


class UndefinedVariable(ConfigurationError):
    pass


class MalformedVariable(ConfigurationError):
    pass


class MissingURL(ConfigurationError):
    pass


class MalformedPayload(ConfigurationError):
    pass


class InvalidSeverityToken(ConfigurationError):
    pass


class InvalidPattern(ConfigurationError):
    pass


class InvalidThreshold(ConfigurationError):
    pass


class MalformedStep(ConfigurationError):
    """A step block cannot be turned into a step definition.

    Raised by :meth:`~end2end.step.Steps.step`; the underlying cause is
    chained as ``__cause__``.
    """

    pass
