"""Stub resolvers pinned to explicit nameservers, used to find and query the authoritative
nameservers of a domain."""
import enum
import logging

import dns.exception
import dns.flags
import dns.inet
import dns.resolver

from .errors import DomainHasNoAuthority, ResolverInitError, TransportError

logger = logging.getLogger(__name__)

ACME_CHALLENGE_LABEL = '_acme-challenge'


class IpStrategy(enum.Enum):
    """Address record types used to resolve nameserver hostnames."""

    IPV4_ONLY = ('A',)
    IPV6_ONLY = ('AAAA',)
    DUAL = ('A', 'AAAA')

    @property
    def rdtypes(self):
        return self.value


def absolute_name(name):
    """Append the root label to `name` unless it is already fully qualified."""
    if not name.endswith('.'):
        name += '.'
    return name


def challenge_name(domain):
    """Name of the ACME DNS-01 challenge TXT record for `domain`."""
    return absolute_name(ACME_CHALLENGE_LABEL + '.' + domain.rstrip('.'))


class Resolver(object):
    """Stub resolver sending every query to a fixed set of nameserver IPs.

    Neither /etc/resolv.conf nor the hosts file is consulted, and answers are
    only cached when a cache is passed in explicitly.
    """

    def __init__(self, nameservers, recursion_desired=True, ip_strategy=IpStrategy.DUAL, cache=None,
                 lifetime=None, hostname=None):
        self.nameservers = [str(ip) for ip in nameservers]
        if not self.nameservers:
            raise ResolverInitError('No nameservers given')
        for ip in self.nameservers:
            try:
                dns.inet.af_for_address(ip)
            except ValueError as e:
                raise ResolverInitError('Invalid nameserver address {0!r}'.format(ip)) from e
        self.recursion_desired = recursion_desired
        self.ip_strategy = ip_strategy
        self.hostname = hostname
        self.lifetime = lifetime

        self.resolver = dns.resolver.Resolver(configure=False)
        try:
            self.resolver.nameservers = list(self.nameservers)
        except ValueError as e:
            raise ResolverInitError('Could not configure nameservers {0}: {1}'.format(self.nameservers, e)) from e
        self.resolver.set_flags(dns.flags.RD if recursion_desired else 0)
        self.resolver.cache = cache
        if lifetime is not None:
            self.resolver.lifetime = lifetime

    def __str__(self):
        servers = ', '.join(self.nameservers)
        if self.hostname is not None:
            return '{0} ({1})'.format(self.hostname, servers)
        return servers

    def _query(self, qname, rdtype):
        qname = absolute_name(qname)
        logger.debug('Querying %s %s via %s', qname, rdtype, self)
        try:
            answer = self.resolver.resolve(qname, rdtype, raise_on_no_answer=False)
        except dns.resolver.NXDOMAIN:
            return []
        except dns.exception.DNSException as e:
            raise TransportError('{0} lookup of {1} via {2} failed: {3}'.format(rdtype, qname, self, e)) from e
        if answer.rrset is None:
            return []
        return list(answer.rrset)

    def ns_lookup(self, name):
        return [rdata.target.to_text() for rdata in self._query(name, 'NS')]

    def _addresses(self, name, rdtype):
        return [rdata.address for rdata in self._query(name, rdtype)]

    def address_lookup(self, name):
        result = []
        for rdtype in self.ip_strategy.rdtypes:
            result += self._addresses(name, rdtype)
        return result

    def txt_lookup(self, name):
        # A TXT record may be split into several character strings
        return [b''.join(rdata.strings).decode('utf-8', 'replace') for rdata in self._query(name, 'TXT')]

    def authoritative_resolvers(self, domain):
        """Build one non-recursive resolver per address of each nameserver of `domain`.

        The NS and address lookups go through this resolver. Each address record
        type is looked up on its own, so a failed AAAA lookup does not discard
        the A records of the same nameserver. Nameservers without any address
        are skipped with a warning.

        :raises DomainHasNoAuthority: if no usable nameserver is found
        :raises TransportError: if the NS lookup itself fails
        """
        nameservers = self.ns_lookup(domain)
        if not nameservers:
            raise DomainHasNoAuthority('No NS records found for {0}'.format(domain))

        resolvers = []
        for nameserver in nameservers:
            ips = []
            for rdtype in self.ip_strategy.rdtypes:
                try:
                    ips += self._addresses(nameserver, rdtype)
                except TransportError as e:
                    logger.warning('Could not resolve nameserver %s of %s: %s', nameserver, domain, e)
            if not ips:
                logger.warning('Skipping nameserver %s of %s: no address records', nameserver, domain)
                continue
            for ip in ips:
                resolvers.append(Resolver([ip], recursion_desired=False, ip_strategy=self.ip_strategy,
                                          lifetime=self.lifetime, hostname=nameserver))

        if not resolvers:
            raise DomainHasNoAuthority('None of the nameservers of {0} could be resolved: {1}'.format(
                domain, ', '.join(nameservers)))
        logger.debug('Authoritative resolvers for %s: %s', domain, ', '.join(str(r) for r in resolvers))
        return resolvers

    def has_single_acme(self, domain, challenge):
        """Check whether this resolver serves `challenge` at _acme-challenge.<domain>.

        A missing record is not an error; only failed queries raise.
        """
        values = self.txt_lookup(challenge_name(domain))
        return challenge in values


def ip_strategy_for(ipv6_only=False, ipv4_only=False):
    if ipv6_only and ipv4_only:
        raise ResolverInitError('ipv6_only and ipv4_only are mutually exclusive')
    if ipv6_only:
        return IpStrategy.IPV6_ONLY
    if ipv4_only:
        return IpStrategy.IPV4_ONLY
    return IpStrategy.DUAL


def build_resolver(nameservers, recursion_desired, ipv6_only=False, lifetime=None, cache=None, ipv4_only=False):
    ip_strategy = ip_strategy_for(ipv6_only, ipv4_only)
    return Resolver(nameservers, recursion_desired=recursion_desired, ip_strategy=ip_strategy, cache=cache,
                    lifetime=lifetime)


class ResolverType(enum.Enum):
    GOOGLE = 'google'
    CLOUDFLARE = 'cloudflare'
    QUAD9 = 'quad9'

    @classmethod
    def from_name(cls, name):
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError('Unknown resolver type {0!r}, expected one of: {1}'.format(
                name, ', '.join(t.value for t in cls))) from None

    @property
    def nameservers(self):
        return BOOTSTRAP_NAMESERVERS[self]

    def recursive_resolver(self, ipv6_only=False, lifetime=None, ipv4_only=False):
        """Recursive resolver used only to discover a domain's delegation."""
        return build_resolver(self.nameservers, True, ipv6_only, lifetime=lifetime, ipv4_only=ipv4_only)

    def resolver(self, ipv6_only=False, lifetime=None, ipv4_only=False):
        """Caching resolver for ancillary lookups. Never use it to check challenge records."""
        return build_resolver(self.nameservers, True, ipv6_only, lifetime=lifetime, cache=dns.resolver.LRUCache(),
                              ipv4_only=ipv4_only)


BOOTSTRAP_NAMESERVERS = {
    ResolverType.GOOGLE: ('8.8.8.8', '8.8.4.4', '2001:4860:4860::8888', '2001:4860:4860::8844'),
    ResolverType.CLOUDFLARE: ('1.1.1.1', '1.0.0.1', '2606:4700:4700::1111', '2606:4700:4700::1001'),
    ResolverType.QUAD9: ('9.9.9.9', '149.112.112.112', '2620:fe::fe', '2620:fe::9'),
}
