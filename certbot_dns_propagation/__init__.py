"""Verify that ACME DNS-01 challenge records have reached every authoritative nameserver."""
from .check import ChallengePoller, has_acme_challenge
from .dnsutils import ResolverType, build_resolver
from .errors import AcmeChallengeTimeout, DomainHasNoAuthority, Error, ResolverInitError, TransportError

__all__ = [
    'AcmeChallengeTimeout',
    'ChallengePoller',
    'DomainHasNoAuthority',
    'Error',
    'ResolverInitError',
    'ResolverType',
    'TransportError',
    'build_resolver',
    'has_acme_challenge',
]
