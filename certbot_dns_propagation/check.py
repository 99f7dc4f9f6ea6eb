"""Wait until an ACME DNS-01 challenge record is served by every authoritative nameserver of a domain."""
import enum
import logging
import time

from .dnsutils import ResolverType, ip_strategy_for
from .errors import AcmeChallengeTimeout

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 720
RETRY_INTERVAL = 5
INITIAL_DELAY = 1


class Phase(enum.Enum):
    INIT = 'init'
    WAIT = 'wait'
    CHECK = 'check'
    DECIDE = 'decide'


class PollState(object):
    def __init__(self, max_attempts):
        self.attempts = 0
        self.max_attempts = max_attempts

    def record_failure(self):
        self.attempts += 1

    @property
    def exhausted(self):
        return self.attempts >= self.max_attempts


class ChallengePoller(object):
    """Polls the authoritative nameservers of a domain for an ACME challenge TXT record.

    The nameservers are looked up once per :meth:`poll` call through a public
    recursive resolver. Each of them is then queried directly, without
    recursion, until all of them return the expected value or `max_attempts`
    rounds have failed.
    """

    def __init__(self, resolver_type=ResolverType.GOOGLE, ipv6_only=False, max_attempts=MAX_ATTEMPTS,
                 retry_interval=RETRY_INTERVAL, initial_delay=INITIAL_DELAY, lifetime=None, sleep=time.sleep,
                 ipv4_only=False):
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1, got {0}'.format(max_attempts))
        ip_strategy_for(ipv6_only, ipv4_only)
        self.resolver_type = resolver_type
        self.ipv6_only = ipv6_only
        self.ipv4_only = ipv4_only
        self.max_attempts = max_attempts
        self.retry_interval = retry_interval
        self.initial_delay = initial_delay
        self.lifetime = lifetime
        self.sleep = sleep

    def bootstrap_resolver(self):
        return self.resolver_type.recursive_resolver(self.ipv6_only, lifetime=self.lifetime, ipv4_only=self.ipv4_only)

    def discover(self, zone):
        return self.bootstrap_resolver().authoritative_resolvers(zone)

    def poll(self, domain, challenge, zone=None):
        """Block until `challenge` is visible on every authoritative nameserver of `domain`.

        The nameservers are taken from the NS records of `zone`, which defaults
        to `domain` itself. The record is always looked up at
        _acme-challenge.<domain>.

        :raises DomainHasNoAuthority: if no authoritative nameserver is found
        :raises TransportError: if any query fails; this is never retried
        :raises AcmeChallengeTimeout: if the record is still missing somewhere
            after `max_attempts` rounds
        """
        state = PollState(self.max_attempts)
        phase = Phase.INIT
        resolvers = []
        matches = []

        while True:
            if phase is Phase.INIT:
                resolvers = self.discover(zone or domain)
                phase = Phase.WAIT
            elif phase is Phase.WAIT:
                self.sleep(self.initial_delay)
                phase = Phase.CHECK
            elif phase is Phase.CHECK:
                matches = [resolver.has_single_acme(domain, challenge) for resolver in resolvers]
                phase = Phase.DECIDE
            elif phase is Phase.DECIDE:
                if all(matches):
                    logger.info('ACME challenge for %s found on all %d authoritative nameservers after %d failed '
                                'attempts', domain, len(resolvers), state.attempts)
                    return
                state.record_failure()
                pending = [str(resolver) for resolver, match in zip(resolvers, matches) if not match]
                logger.warning('Attempt %d of %d failed, ACME challenge for %s not yet on %s',
                               state.attempts, state.max_attempts, domain, ', '.join(pending))
                if state.exhausted:
                    logger.error('Timeout checking ACME challenge record for %s, still missing on %s',
                                 domain, ', '.join(pending))
                    raise AcmeChallengeTimeout('ACME challenge for {0} not found on {1} after {2} attempts'.format(
                        domain, ', '.join(pending), state.attempts))
                self.sleep(self.retry_interval)
                phase = Phase.CHECK


def has_acme_challenge(domain, challenge, zone=None, **kwargs):
    """Wait for `challenge` to reach every authoritative nameserver of `domain`.

    Keyword arguments are passed to :class:`ChallengePoller`.
    """
    ChallengePoller(**kwargs).poll(domain, challenge, zone=zone)
