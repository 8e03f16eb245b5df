"""Test cases for DNS profiles, caches, zones, nameservers and TSIG keys"""
import pytest
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.translators.dns import (DNS_LOGGING_PROFILE, DNS_NAMESERVER, DNSCacheTranslator,
                                               DNSProfileTranslator, DNSTSIGKeyTranslator, DNSZoneTranslator)


@pytest.fixture
def ctx():
    return TranslationContext(target=TargetInfo(tmos_version='15.1', provisioned_modules=('ltm',)))


@pytest.fixture
def declaration():
    """Fixture providing one application of DNS objects that reference each other"""
    return {
        'class': 'ADC',
        'T': {
            'class': 'Tenant',
            'A': {
                'class': 'Application',
                'cache': {'class': 'DNS_Cache', 'type': 'transparent'},
                'dns_log': {'class': 'DNS_Logging_Profile', 'logPublisher': {'bigip': '/Common/local-db-publisher'},
                            'logQueriesEnabled': True, 'includeQueryId': False},
                'key': {'class': 'DNS_TSIG_Key', 'algorithm': 'hmacmd5',
                        'secret': {'ciphertext': 'c2VjcmV0', 'ignoreChanges': True}},
                'ns': {'class': 'DNS_Nameserver', 'address': '192.0.2.53', 'port': 53},
            },
        },
    }


def translate(translator, ctx, declaration, item_id):
    return translator.translate(ctx, 'T', 'A', item_id, declaration['T']['A'][item_id], declaration)


class TestDNSProfile:
    """Test cases for ltm profile dns"""

    def test_references_and_switches(self, ctx, declaration):
        declaration['T']['A']['dns'] = {'class': 'DNS_Profile', 'cache': {'use': 'cache'}, 'cacheEnabled': True,
                                        'loggingProfile': {'use': 'dns_log'}, 'loggingEnabled': True}
        config = translate(DNSProfileTranslator(), ctx, declaration, 'dns').configs[0]
        assert (config.path, config.command) == ('/T/A/dns', 'ltm profile dns')
        assert config.properties['cache'] == '/T/A/cache'
        assert config.properties['enable-cache'] == 'yes'
        assert config.properties['log-profile'] == '/T/A/dns_log'
        assert config.properties['enable-logging'] == 'yes'
        assert config.properties['dns-security'] == 'none'
        assert config.properties['description'] == 'none'

    def test_logging_is_off_without_profile(self, ctx, declaration):
        declaration['T']['A']['dns'] = {'class': 'DNS_Profile', 'loggingEnabled': True}
        config = translate(DNSProfileTranslator(), ctx, declaration, 'dns').configs[0]
        assert config.properties['enable-logging'] == 'no'
        assert config.properties['log-profile'] == 'none'
        assert config.properties['cache'] == 'none'
        assert config.properties['defaults-from'] == '/Common/dns'

    def test_parent_and_dns64(self, ctx, declaration):
        declaration['T']['A']['dns'] = {'class': 'DNS_Profile', 'parentProfile': {'bigip': '/Common/dns_parent'},
                                        'dns64Mode': 'secondary', 'dns64Prefix': '64:ff9b::'}
        config = translate(DNSProfileTranslator(), ctx, declaration, 'dns').configs[0]
        assert config.properties['defaults-from'] == '/Common/dns_parent'
        assert config.properties['dns64'] == 'secondary'
        assert config.properties['dns64-prefix'] == '64:ff9b::'


class TestDNSCache:
    """Test cases for ltm dns cache <type>"""

    def test_transparent_cache(self, ctx, declaration):
        declaration['T']['A']['cache'].update({'answerDefaultZones': True, 'messageCacheSize': 1024,
                                               'localZones': {'example.com': {'type': 'transparent',
                                                                              'records': ['a.example.com 300 IN A 192.0.2.1']}},
                                               'routeDomain': 2})
        config = translate(DNSCacheTranslator(), ctx, declaration, 'cache').configs[0]
        assert (config.path, config.command) == ('/T/A/cache', 'ltm dns cache transparent')
        assert config.properties == {
            'description': 'none',
            'answer-default-zones': 'yes',
            'local-zones': {'example.com': {'type': 'transparent',
                                            'records': {'"a.example.com 300 IN A 192.0.2.1"': {}}}},
            'msg-cache-size': 1024,
        }

    def test_resolver_forward_zones(self, ctx, declaration):
        declaration['T']['A']['cache'] = {'class': 'DNS_Cache', 'type': 'resolver', 'routeDomain': 0,
                                          'forwardZones': [{'name': 'singleRecord', 'nameservers': ['10.0.0.1:53']}]}
        config = translate(DNSCacheTranslator(), ctx, declaration, 'cache').configs[0]
        assert config.command == 'ltm dns cache resolver'
        assert config.properties['forward-zones'] == {'singleRecord': {'nameservers': {'10.0.0.1:53': {}}}}
        assert config.properties['local-zones'] == 'none'
        assert config.properties['route-domain'] == '/Common/0'
        assert 'trust-anchors' not in config.properties


class TestDNSZone:
    """Test cases for ltm dns zone"""

    def test_dns_express_defaults(self, ctx, declaration):
        declaration['T']['A']['zone'] = {'class': 'DNS_Zone'}
        config = translate(DNSZoneTranslator(), ctx, declaration, 'zone').configs[0]
        assert (config.path, config.command) == ('/T/A/zone', 'ltm dns zone')
        assert config.properties['dns-express-enabled'] == 'yes'
        assert config.properties['dns-express-notify-action'] == 'consume'
        assert config.properties['dns-express-notify-tsig-verify'] == 'yes'
        assert config.properties['dns-express-server'] == 'none'

    def test_dns_express_settings(self, ctx, declaration):
        declaration['T']['A']['zone'] = {'class': 'DNS_Zone', 'dnsExpress': {
            'enabled': False, 'notifyAction': 'bypass', 'verifyNotifyTsig': False,
            'nameserver': {'use': 'ns'}, 'allowNotifyFrom': ['192.0.2.10']}}
        config = translate(DNSZoneTranslator(), ctx, declaration, 'zone').configs[0]
        assert config.properties['dns-express-enabled'] == 'no'
        assert config.properties['dns-express-notify-action'] == 'bypass'
        assert config.properties['dns-express-server'] == '/T/A/ns'
        assert config.properties['dns-express-allow-notify'] == {'192.0.2.10': {}}


class TestDNSNameserver:
    """Test cases for ltm dns nameserver"""

    def test_nameserver(self, ctx, declaration):
        config = translate(DNS_NAMESERVER, ctx, declaration, 'ns').configs[0]
        assert (config.path, config.command) == ('/T/A/ns', 'ltm dns nameserver')
        assert config.properties == {'address': '192.0.2.53', 'port': 53, 'route-domain': '/Common/0',
                                     'tsig-key': 'none'}


class TestDNSTSIGKey:
    """Test cases for ltm dns tsig-key"""

    def test_secret_is_decoded_and_ignored(self, ctx, declaration):
        config = translate(DNSTSIGKeyTranslator(), ctx, declaration, 'key').configs[0]
        assert (config.path, config.command) == ('/T/A/key', 'ltm dns tsig-key')
        assert config.properties == {'algorithm': 'hmacmd5', 'secret': 'secret'}
        assert config.ignore == ['secret']


class TestDNSLoggingProfile:
    """Test cases for ltm profile dns-logging"""

    def test_logging_profile(self, ctx, declaration):
        config = translate(DNS_LOGGING_PROFILE, ctx, declaration, 'dns_log').configs[0]
        assert (config.path, config.command) == ('/T/A/dns_log', 'ltm profile dns-logging')
        assert config.properties == {
            'description': 'none',
            'enable-query-logging': 'yes',
            'include-query-id': 'no',
            'log-publisher': '/Common/local-db-publisher',
        }
