"""Test cases for DOS, logging, protocol inspection and network firewall translation"""
import pytest
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.translators.firewall import (NET_ADDRESS_LIST, FirewallAddressListTranslator,
                                                    FirewallPolicyTranslator, IdleTimeoutPolicyTranslator,
                                                    NATPolicyTranslator, NATSourceTranslationTranslator)
from f5_as3_translator.translators.security import (DOSProfileTranslator, LogDestinationTranslator,
                                                    LogPublisherTranslator, ProtocolInspectionProfileTranslator,
                                                    SecurityLogProfileTranslator, apply_aliases)
from f5_as3_translator.translators.service_discovery import TASK_COMMAND


def context(*modules, version='15.1'):
    return TranslationContext(target=TargetInfo(tmos_version=version, provisioned_modules=('ltm',) + modules))


def translate_item(translator, ctx, item, item_id, extra=None):
    application = {'class': 'Application', item_id: item}
    application.update(extra or {})
    declaration = {'class': 'ADC', 'T': {'class': 'Tenant', 'A': application}}
    return translator.translate(ctx, 'T', 'A', item_id, item, declaration)


class TestDeprecatedAliases:
    """Test cases for deprecated key renaming"""

    def test_nested_keys_are_renamed(self):
        value = {'blacklistedGeolocations': ['Cuba'], 'nested': [{'urlWhitelist': ['/x']}]}
        assert apply_aliases(value) == {'denylistedGeolocations': ['Cuba'], 'nested': [{'urlAllowlist': ['/x']}]}

    def test_current_key_wins(self):
        assert apply_aliases({'urlWhitelist': ['/old'], 'urlAllowlist': ['/new']}) == {'urlAllowlist': ['/new']}


class TestDOSProfile:
    """Test cases for security dos profile"""

    def test_bot_defense_profile_needs_asm(self):
        item = {'class': 'DOS_Profile'}
        assert len(translate_item(DOSProfileTranslator(), context(), item, 'dos').configs) == 1

        result = translate_item(DOSProfileTranslator(), context('asm'), item, 'dos')
        assert [(config.path, config.command) for config in result.configs] == [
            ('/T/A/dos', 'security dos profile'),
            ('/T/A/f5_appsvcs_dos_botDefense', 'security bot-defense profile'),
        ]
        bot_defense = result.configs[1].properties
        assert bot_defense['enforcement-mode'] == 'transparent'
        assert bot_defense['grace-period'] == 300
        assert bot_defense['whitelist'] == {
            'favicon_1': {'match-order': 1, 'url': '/favicon.ico'},
            'apple_touch_1': {'match-order': 2, 'url': '/apple-touch-icon*.png'},
        }

    def test_no_bot_defense_profile_before_14_1(self):
        result = translate_item(DOSProfileTranslator(), context('asm', version='14.0'), {'class': 'DOS_Profile'},
                                'dos')
        assert len(result.configs) == 1

    def test_application_geolocations(self):
        item = {'class': 'DOS_Profile', 'application': {
            'blacklistedGeolocations': ['Cuba'],
            'allowlistedGeolocations': ['Canada'],
        }}
        config = translate_item(DOSProfileTranslator(), context(), item, 'dos').configs[0]
        application = config.properties['application']['dos']
        assert application['geolocations'] == {
            '"Cuba"': {'black-listed': 'true'},
            '"Canada"': {'white-listed': 'true'},
        }
        assert application['captcha-response'] == {'first': {'type': 'default'}, 'failure': {'type': 'default'}}

    def test_network_vectors_need_afm(self):
        item = {'class': 'DOS_Profile', 'network': {'vectors': [
            {'type': 'malformed', 'rateLimit': 4294967295, 'thresholdMode': 'manual'}]}}
        assert 'dos-network' not in translate_item(DOSProfileTranslator(), context(), item, 'dos').configs[0].properties

        config = translate_item(DOSProfileTranslator(), context('afm'), item, 'dos').configs[0]
        assert config.properties['dos-network'] == {'dos': {'network-attack-vector': {
            'network-malformed': {'auto-threshold': 'disabled', 'default-internal-rate-limit': 'infinite',
                                  'state': 'manual'},
        }}}


class TestProtocolInspection:
    """Test cases for security protocol-inspection profile"""

    def test_services_are_keyed_by_type_and_check(self):
        item = {'class': 'Protocol_Inspection_Profile', 'services': [{
            'type': 'dns',
            'compliance': [{'check': 'dns_maximum_reply_length', 'value': 512},
                           {'check': 'dns_disallowed_query_type', 'value': 'IXFR AXFR'},
                           {'check': 'dns_domains_blocklist', 'value': 'none'}],
            'signature': [{'check': 'dns_dns_query_amplification_attack', 'action': 'reject', 'log': 'yes'}],
            'ports': [53],
        }]}
        config = translate_item(ProtocolInspectionProfileTranslator(), context(), item, 'pi').configs[0]
        assert config.properties['services'] == {'dns': {
            'compliance': {
                'dns_maximum_reply_length': {'value': '512'},
                'dns_disallowed_query_type': {'value': '{ IXFR AXFR }'},
                'dns_domains_blocklist': {},
            },
            'signature': {'dns_dns_query_amplification_attack': {'action': 'reject', 'log': 'yes'}},
            'ports': {'53': {}},
        }}

    def test_empty_blocks_are_dropped(self):
        item = {'class': 'Protocol_Inspection_Profile', 'services': [{'type': 'http'}]}
        config = translate_item(ProtocolInspectionProfileTranslator(), context(), item, 'pi').configs[0]
        assert config.properties['services'] == {'http': {}}

    def test_no_services(self):
        config = translate_item(ProtocolInspectionProfileTranslator(), context(),
                                {'class': 'Protocol_Inspection_Profile'}, 'pi').configs[0]
        assert 'services' not in config.properties


class TestSecurityLogProfile:
    """Test cases for security log profile"""

    def test_network_block(self):
        item = {'class': 'Security_Log_Profile', 'network': {
            'publisher': {'bigip': '/Common/local-db-publisher'},
            'logRuleMatchAccepts': True,
            'rateLimitAclMatchAccept': 100,
            'storageFormat': {'fields': ['acl-policy-name', 'bigip-hostname'], 'delimiter': ','},
        }}
        config = translate_item(SecurityLogProfileTranslator(), context(), item, 'log').configs[0]
        assert config.properties['network'] == {'log': {
            'filter': {'log-rule-match-accepts': 'enabled'},
            'format': {'field-list': {'acl_policy_name': {}, 'bigip_hostname': {}}, 'field-list-delimiter': ',',
                       'type': 'field-list'},
            'publisher': '/Common/local-db-publisher',
            'rate-limit': {'acl-match-accept': 100},
        }}

    def test_local_application_logging(self):
        item = {'class': 'Security_Log_Profile', 'application': {'storageFilter': {'requestType': 'illegal'}}}
        config = translate_item(SecurityLogProfileTranslator(), context(), item, 'log').configs[0]
        application = config.properties['application']['log']
        assert application['local-storage'] == 'enabled'
        assert application['logger-type'] == 'local'
        assert application['remote-storage'] == 'none'
        assert application['maximum-header-size'] == 'any'
        assert application['filter'] == {'request-type': {'values': {'illegal': {}}}}


class TestLogging:
    """Test cases for log publishers and destinations"""

    def test_publisher_destinations(self):
        item = {'class': 'Log_Publisher', 'destinations': [{'bigip': '/Common/local-db'}]}
        config = translate_item(LogPublisherTranslator(), context(), item, 'pub').configs[0]
        assert config.command == 'sys log-config publisher'
        assert config.properties['destinations'] == {'/Common/local-db': {}}

    def test_destination_command_and_pool(self):
        item = {'class': 'Log_Destination', 'type': 'remote-high-speed-log', 'pool': {'use': 'logpool'},
                'protocol': 'tcp'}
        config = translate_item(LogDestinationTranslator(), context(), item, 'dest',
                                {'logpool': {'class': 'Pool'}}).configs[0]
        assert config.command == 'sys log-config destination remote-high-speed-log'
        assert config.properties['pool-name'] == '/T/A/logpool'
        assert config.properties['protocol'] == 'tcp'


class TestFirewallPolicy:
    """Test cases for security firewall policy"""

    def test_rules_and_rule_lists(self):
        item = {'class': 'Firewall_Policy', 'rules': [
            {'use': 'rl'},
            {'name': 'allow', 'action': 'accept', 'protocol': 'tcp', 'destination': {'ports': ['443']}},
        ], 'routeDomainEnforcement': [{'bigip': '/Common/0'}]}
        result = translate_item(FirewallPolicyTranslator(), context('afm'), item, 'fw',
                                {'rl': {'class': 'Firewall_Rule_List'}})

        policy = result.configs[0]
        assert policy.command == 'security firewall policy'
        assert policy.properties['rules'] == {
            'rl': {'rule-list': '/T/A/rl'},
            'allow': {
                'action': 'accept',
                'ip-protocol': 'tcp',
                'destination': {'address-lists': {}, 'addresses': {}, 'port-lists': {}, 'ports': {'443': {}},
                                'vlans': {}},
            },
        }
        route_domain = result.configs[1]
        assert (route_domain.path, route_domain.command) == ('/Common/0', 'net route-domain')
        assert route_domain.properties == {'fw-enforced-policy': '/T/A/fw'}

    def test_address_list(self):
        item = {'class': 'Net_Address_List', 'addresses': ['192.0.2.0/24', '10.0.0.1'], 'fqdns': ['example.com']}
        config = translate_item(NET_ADDRESS_LIST, context(), item, 'al').configs[0]
        assert config.command == 'net address-list'
        assert config.properties['addresses'] == {'192.0.2.0/24': {}, '10.0.0.1': {}}
        assert config.properties['fqdns'] == {'example.com': {}}

    def test_discovered_addresses_become_tasks(self):
        item = {'class': 'Firewall_Address_List', 'addresses': [
            '10.0.0.1',
            {'addressDiscovery': 'aws', 'tagKey': 'k', 'tagValue': 'v', 'region': 'us-east-1', 'updateInterval': 60},
        ]}
        result = translate_item(FirewallAddressListTranslator(), context('afm'), item, 'al')

        assert [config.command for config in result.configs] == [
            'security firewall address-list', TASK_COMMAND, TASK_COMMAND]
        address_list = result.configs[0]
        assert address_list.properties['addresses'] == {'10.0.0.1': {}}
        assert address_list.ignore == ['addresses']
        assert result.configs[1].properties['provider'] == 'static'
        assert result.configs[2].properties['provider'] == 'aws'
        assert result.configs[2].properties['resources'] == {
            '0': {'type': 'addressList', 'path': '/T/A/al', 'options': {}}}


class TestNAT:
    """Test cases for NAT policies and source translations"""

    def test_policy_rule_translation(self):
        item = {'class': 'NAT_Policy', 'rules': [{'name': 'r1', 'protocol': 'tcp', 'sourceTranslation': {'use': 'st'}}]}
        config = translate_item(NATPolicyTranslator(), context('afm'), item, 'nat',
                                {'st': {'class': 'NAT_Source_Translation'}}).configs[0]
        assert config.properties['rules'] == {'r1': {'ip-protocol': 'tcp', 'translation': {'source': '/T/A/st'}}}

    def test_dynamic_pat_defaults(self):
        item = {'class': 'NAT_Source_Translation', 'type': 'dynamic-pat', 'addresses': ['192.0.2.0/24'],
                'ports': ['1024-65535'], 'patMode': 'pba'}
        config = translate_item(NATSourceTranslationTranslator(), context('afm'), item, 'st').configs[0]
        assert config.command == 'security nat source-translation'
        assert config.properties['addresses'] == {'192.0.2.0/24': {}}
        assert config.properties['ports'] == {'1024-65535': {}}
        assert config.properties['mapping'] == {'mode': 'address-pooling-paired', 'timeout': 300}
        assert config.properties['hairpin-mode'] == 'disabled'
        assert config.properties['port-block-allocation']['block-size'] == 64
        assert config.properties['egress-interfaces'] == {}
        assert 'egress-interfaces-disabled' in config.properties

    def test_allowed_egress_interfaces(self):
        item = {'class': 'NAT_Source_Translation', 'type': 'static-nat', 'allowEgressInterfaces': ['/Common/vlan1']}
        config = translate_item(NATSourceTranslationTranslator(), context('afm'), item, 'st').configs[0]
        assert config.properties['egress-interfaces'] == {'/Common/vlan1': {}}
        assert 'egress-interfaces-enabled' in config.properties
        assert 'egress-interfaces-disabled' not in config.properties


class TestIdleTimeoutPolicy:
    """Test cases for net timer-policy"""

    def test_rule_timers(self):
        item = {'class': 'Idle_Timeout_Policy', 'rules': [
            {'name': 'r1', 'protocol': 'tcp', 'destinationPorts': ['all-other', 443], 'idleTimeout': 60,
             'remark': 'web'}]}
        config = translate_item(IdleTimeoutPolicyTranslator(), context(), item, 'timer').configs[0]
        assert config.command == 'net timer-policy'
        assert config.properties['rules'] == {'r1': {
            'description': '"web"',
            'destination-ports': {'0': {}, '443': {}},
            'ip-protocol': 'tcp',
            'timers': {'flow-idle-timeout': {'value': '60'}},
        }}


@pytest.mark.parametrize('version, expected', [('14.0', 1), ('16.1', 2)])
def test_bot_defense_profile_follows_version(version, expected):
    result = translate_item(DOSProfileTranslator(), context('asm', version=version), {'class': 'DOS_Profile'}, 'dos')
    assert len(result.configs) == expected
