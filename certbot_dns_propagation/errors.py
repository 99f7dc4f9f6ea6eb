"""Errors raised while checking ACME challenge propagation."""


class Error(Exception):
    """Base class for propagation check errors."""


class ResolverInitError(Error):
    """A resolver could not be configured with the given nameservers."""


class DomainHasNoAuthority(Error):
    """No authoritative nameserver could be found for the domain."""


class TransportError(Error):
    """A DNS query failed at the network or protocol level."""


class AcmeChallengeTimeout(Error):
    """The challenge record did not reach every authoritative nameserver in time."""
