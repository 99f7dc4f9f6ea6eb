import argparse
import unittest
from unittest import mock

import dns.rdata
from certbot import errors

from certbot_dns_propagation import auth
from certbot_dns_propagation import check
from certbot_dns_propagation import dnsutils
from certbot_dns_propagation.dnsutils import ResolverType
from certbot_dns_propagation.errors import AcmeChallengeTimeout


class _Authenticator(auth.PropagationDNSAuthenticator):
    description = 'Test authenticator'

    def __init__(self, *args, **kwargs):
        super(_Authenticator, self).__init__(*args, **kwargs)
        self.records = []

    def _setup_credentials(self):
        pass

    def _perform(self, domain, validation_name, validation):
        self.records.append((validation_name, validation))

    def _cleanup(self, domain, validation_name, validation):
        pass

    @staticmethod
    def more_info():
        return 'Records challenges in memory'


def achall(domain, validation):
    result = mock.MagicMock()
    result.domain = domain
    result.validation.return_value = validation
    result.validation_domain_name.return_value = '_acme-challenge.' + domain
    return result


def ns_only(zones):
    """`Resolver._query` stand-in which serves NS records for the names in `zones` and nothing else."""
    def query(resolver, qname, rdtype):
        if rdtype == 'NS' and dnsutils.absolute_name(qname) in zones:
            return [dns.rdata.from_text('IN', 'NS', 'ns1.example.net.')]
        return []
    return query


class TestPropagationDNSAuthenticator(unittest.TestCase):
    def setUp(self):
        self.config = mock.MagicMock(dns_test_propagation_seconds=0, dns_test_max_attempts=3,
                                     dns_test_retry_interval=2, dns_test_resolver='cloudflare',
                                     dns_test_ipv6_only=False, dns_test_ipv4_only=False)
        self.authenticator = _Authenticator(self.config, 'dns-test')
        patcher = mock.patch('certbot.display.util.notify')
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_parser_arguments(self):
        add = mock.Mock()
        _Authenticator.add_parser_arguments(add)
        options = dict((c[0][0], c[1]) for c in add.call_args_list)
        self.assertEqual(options['propagation-seconds']['default'], 0)
        self.assertEqual(options['max-attempts']['default'], check.MAX_ATTEMPTS)
        self.assertIs(options['max-attempts']['type'], auth.positive_int)
        self.assertEqual(options['retry-interval']['default'], check.RETRY_INTERVAL)
        self.assertEqual(options['resolver']['choices'], ['google', 'cloudflare', 'quad9'])
        self.assertEqual(options['ipv6-only']['action'], 'store_true')
        self.assertEqual(options['ipv4-only']['action'], 'store_true')

    def test_positive_int(self):
        self.assertEqual(auth.positive_int('5'), 5)
        with self.assertRaises(argparse.ArgumentTypeError):
            auth.positive_int('0')

    def test_poller_options(self):
        self.config.dns_test_ipv4_only = True
        poller = self.authenticator._poller()
        self.assertIs(poller.resolver_type, ResolverType.CLOUDFLARE)
        self.assertEqual(poller.max_attempts, 3)
        self.assertEqual(poller.retry_interval, 2)
        self.assertFalse(poller.ipv6_only)
        self.assertTrue(poller.ipv4_only)
        self.assertEqual(poller.bootstrap_resolver().ip_strategy, dnsutils.IpStrategy.IPV4_ONLY)

    def test_invalid_max_attempts_is_plugin_error(self):
        self.config.dns_test_max_attempts = 0
        with self.assertRaises(errors.PluginError):
            self.authenticator._poller()

    def test_conflicting_ip_options_is_plugin_error(self):
        self.config.dns_test_ipv4_only = True
        self.config.dns_test_ipv6_only = True
        with self.assertRaises(errors.PluginError):
            self.authenticator._poller()

    def test_perform_waits_for_every_record(self):
        achalls = [achall('example.com', 'abc123'), achall('example.org', 'def456')]
        with mock.patch.object(dnsutils.Resolver, '_query', autospec=True,
                               side_effect=ns_only({'example.com.', 'example.org.'})):
            with mock.patch.object(check.ChallengePoller, 'poll') as poll:
                responses = self.authenticator.perform(achalls)
        self.assertEqual(len(responses), 2)
        self.assertEqual(self.authenticator.records, [('_acme-challenge.example.com', 'abc123'),
                                                      ('_acme-challenge.example.org', 'def456')])
        self.assertEqual(poll.call_args_list, [mock.call('example.com', 'abc123', zone='example.com'),
                                               mock.call('example.org', 'def456', zone='example.org')])

    def test_subdomain_uses_enclosing_zone(self):
        with mock.patch.object(dnsutils.Resolver, '_query', autospec=True, side_effect=ns_only({'example.com.'})):
            with mock.patch.object(check.ChallengePoller, 'poll') as poll:
                self.authenticator.perform([achall('www.example.com', 'abc123')])
        poll.assert_called_once_with('www.example.com', 'abc123', zone='example.com')

    def test_no_zone_is_plugin_error(self):
        with mock.patch.object(dnsutils.Resolver, '_query', autospec=True, side_effect=ns_only(set())):
            with mock.patch.object(check.ChallengePoller, 'poll') as poll:
                with self.assertRaises(errors.PluginError):
                    self.authenticator.perform([achall('www.example.com', 'abc123')])
        poll.assert_not_called()

    def test_timeout_is_plugin_error(self):
        with mock.patch.object(dnsutils.Resolver, '_query', autospec=True, side_effect=ns_only({'example.com.'})):
            with mock.patch.object(check.ChallengePoller, 'poll', side_effect=AcmeChallengeTimeout('not found')):
                with self.assertRaises(errors.PluginError):
                    self.authenticator.perform([achall('example.com', 'abc123')])


if __name__ == '__main__':
    unittest.main()
