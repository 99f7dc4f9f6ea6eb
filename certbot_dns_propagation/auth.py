"""Base class for certbot DNS authenticators which wait for their TXT records to reach all authoritative
nameservers instead of sleeping for a fixed time."""
import argparse
import logging

from certbot import errors
from certbot.plugins import dns_common

from . import check
from .dnsutils import ResolverType
from .errors import Error

logger = logging.getLogger(__name__)


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError('must be at least 1, got {0}'.format(value))
    return number


class PropagationDNSAuthenticator(dns_common.DNSAuthenticator):
    """DNS authenticator which verifies propagation after the challenge records have been created.

    Subclasses implement `_setup_credentials`, `_perform` and `_cleanup` against their DNS provider as with
    any certbot DNS plugin.
    """

    @classmethod
    def add_parser_arguments(cls, add, default_propagation_seconds=0):
        super(PropagationDNSAuthenticator, cls).add_parser_arguments(
            add, default_propagation_seconds=default_propagation_seconds)
        add('max-attempts', type=positive_int, default=check.MAX_ATTEMPTS,
            help='Number of times the authoritative nameservers are checked for the challenge record.')
        add('retry-interval', type=int, default=check.RETRY_INTERVAL,
            help='Seconds to wait between two checks of the authoritative nameservers.')
        add('resolver', choices=[t.value for t in ResolverType], default=ResolverType.GOOGLE.value,
            help='Public recursive resolver used to find the authoritative nameservers.')
        add('ipv6-only', action='store_true', default=False,
            help='Only use IPv6 addresses of the authoritative nameservers.')
        add('ipv4-only', action='store_true', default=False,
            help='Only use IPv4 addresses of the authoritative nameservers, for hosts without IPv6 connectivity.')

    def _poller(self):
        try:
            return check.ChallengePoller(resolver_type=ResolverType.from_name(self.conf('resolver')),
                                         ipv6_only=self.conf('ipv6-only'),
                                         ipv4_only=self.conf('ipv4-only'),
                                         max_attempts=self.conf('max-attempts'),
                                         retry_interval=self.conf('retry-interval'))
        except (Error, ValueError) as e:
            raise errors.PluginError('Invalid propagation check options: {0}'.format(e)) from e

    @staticmethod
    def _find_zone(poller, domain):
        """Closest enclosing name of `domain` which has its own NS records."""
        resolver = poller.bootstrap_resolver()
        for guess in dns_common.base_domain_name_guesses(domain):
            if resolver.ns_lookup(guess):
                return guess
        raise errors.PluginError('Unable to find the DNS zone of {0}'.format(domain))

    def perform(self, achalls):
        responses = super(PropagationDNSAuthenticator, self).perform(achalls)
        poller = self._poller()
        for achall in achalls:
            validation = achall.validation(achall.account_key)
            try:
                zone = self._find_zone(poller, achall.domain)
                logger.info('Waiting for the DNS challenge of %s to reach all authoritative nameservers of %s',
                            achall.domain, zone)
                poller.poll(achall.domain, validation, zone=zone)
            except Error as e:
                raise errors.PluginError('DNS challenge for {0} could not be verified: {1}'.format(
                    achall.domain, e)) from e
        return responses
