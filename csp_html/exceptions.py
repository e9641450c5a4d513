# exceptions.py
"""
Exceptions raised while building Content Security Policies.
"""


class CspError(Exception):
    """Base class for every error raised by csp_html."""


class ConfigurationError(CspError):
    """Invalid plugin construction parameters (e.g. an unknown hashing method)."""


class PolicyError(CspError):
    """A resolved page policy contains an unquoted CSP keyword."""

    def __init__(self, directive: str, token: str):
        self.directive = directive
        self.token = token
        super().__init__(
            f"CSP: policy for {directive} contains {token} which should be wrapped in apostrophes"
        )


# Name used by the build error channel
PolicyValidationError = PolicyError

__all__ = ['CspError', 'ConfigurationError', 'PolicyError', 'PolicyValidationError']
