"""Test cases for GSLB (gtm) translation"""
import pytest
from f5_as3_translator.context import TargetInfo, TranslationContext
from f5_as3_translator.translators.gslb import (GSLBDataCenterTranslator, GSLBDomainTranslator, GSLBMonitorTranslator,
                                                GSLBPoolTranslator, GSLBProberPoolTranslator, GSLBServerTranslator,
                                                GSLBTopologyRecordsTranslator, GSLBTopologyRegionTranslator,
                                                combine_address_port, join_monitors, parse_topology_match)


@pytest.fixture
def ctx():
    return TranslationContext(target=TargetInfo(tmos_version='15.1', provisioned_modules=('ltm', 'gtm')))


@pytest.fixture
def declaration():
    """Fixture providing shared GSLB infrastructure and one application of wide IPs and pools"""
    return {
        'class': 'ADC',
        'Common': {
            'class': 'Tenant',
            'Shared': {
                'class': 'Application',
                'template': 'shared',
                'dc': {'class': 'GSLB_Data_Center', 'location': 'Seattle'},
                'srv': {
                    'class': 'GSLB_Server',
                    'dataCenter': {'use': 'dc'},
                    'devices': [{'address': '192.0.2.1'}],
                    'virtualServers': [
                        {'address': '192.0.2.10', 'port': 80},
                        {'name': 'vs2', 'address': '2001:db8::10', 'port': 443,
                         'monitors': [{'bigip': '/Common/http'}, {'bigip': '/Common/tcp'}]},
                    ],
                },
                'pp': {'class': 'GSLB_Prober_Pool', 'lbMode': 'round-robin',
                       'members': [{'server': {'use': '/Common/Shared/srv'}}]},
                'r1': {'class': 'GSLB_Topology_Region', 'members': [
                    {'matchType': 'subnet', 'matchValue': '10.0.0.0/8'},
                    {'matchType': 'country', 'matchOperator': 'not-equals', 'matchValue': 'US'},
                ]},
                'topo': {'class': 'GSLB_Topology_Records', 'longestMatchEnabled': False, 'records': [
                    {'source': {'matchType': 'subnet', 'matchValue': '10.0.0.0/8'},
                     'destination': {'matchType': 'pool', 'matchValue': {'bigip': '/Common/Shared/gp'}},
                     'weight': 10},
                    {'source': {'matchType': 'state', 'matchOperator': 'not-equals', 'matchValue': 'US/Washington'},
                     'destination': {'matchType': 'datacenter', 'matchValue': {'bigip': '/Common/Shared/dc'}},
                     'weight': 1},
                ]},
            },
        },
        'T': {
            'class': 'Tenant',
            'A': {
                'class': 'Application',
                'wip': {'class': 'GSLB_Domain', 'domainName': 'example.com', 'resourceRecordType': 'A',
                        'pools': [{'use': 'p1'}, {'use': 'p2', 'ratio': 2}], 'lastResortPool': {'use': 'p1'}},
                'p1': {'class': 'GSLB_Pool', 'resourceRecordType': 'A',
                       'members': [{'server': {'use': '/Common/Shared/srv'}, 'virtualServer': '0'}]},
                'p2': {'class': 'GSLB_Pool', 'resourceRecordType': 'A'},
                'alias_pool': {'class': 'GSLB_Pool', 'resourceRecordType': 'CNAME',
                               'members': [{'domainName': {'use': 'wip'}, 'isDomainNameStatic': True}]},
                'mon': {'class': 'GSLB_Monitor', 'monitorType': 'http', 'target': '192.0.2.1:80',
                        'receiveStatusCodes': [200, 302]},
            },
        },
    }


def translate(translator, ctx, declaration, tenant_id, app_id, item_id):
    return translator.translate(ctx, tenant_id, app_id, item_id, declaration[tenant_id][app_id][item_id],
                                declaration)


class TestHelpers:
    """Test cases for GSLB rendering helpers"""

    def test_combine_address_port(self):
        assert combine_address_port('192.0.2.1', 80) == '192.0.2.1:80'
        assert combine_address_port('2001:0db8::0001', 443) == '2001:db8::1.443'

    def test_join_monitors(self):
        assert join_monitors([{'bigip': '/Common/http'}, '/Common/tcp']) == '/Common/http and /Common/tcp'

    def test_topology_match(self):
        match = parse_topology_match({'matchType': 'country', 'matchOperator': 'equals', 'matchValue': 'US'})
        assert match['name'] == 'country US'
        assert match['not'] == ''

    def test_negated_quoted_match(self):
        match = parse_topology_match({'matchType': 'geoip-isp', 'matchOperator': 'not-equals',
                                      'matchValue': 'Comcast'})
        assert match['name'] == 'not geoip-isp "Comcast"'
        assert match['not'] == 'not'

    def test_region_pointer_leaves_shared(self):
        match = parse_topology_match({'matchType': 'region', 'matchValue': {'bigip': '/Common/Shared/r1'}})
        assert match['name'] == 'region /Common/r1'


class TestGSLBServer:
    """Test cases for gtm server"""

    def test_server(self, ctx, declaration):
        config = translate(GSLBServerTranslator(), ctx, declaration, 'Common', 'Shared', 'srv').configs[0]
        assert (config.path, config.command) == ('/Common/srv', 'gtm server')
        assert config.properties['datacenter'] == '/Common/Shared/dc'
        assert config.properties['devices'] == {'0': {'addresses': {'192.0.2.1': {'translation': 'none'}}}}
        assert config.properties['monitor'] == '/Common/bigip'
        assert config.properties['product'] == 'bigip'
        assert config.properties['prober-pool'] == 'none'

    def test_virtual_servers(self, ctx, declaration):
        config = translate(GSLBServerTranslator(), ctx, declaration, 'Common', 'Shared', 'srv').configs[0]
        assert config.properties['virtual-servers'] == {
            '0': {'destination': '192.0.2.10:80', 'translation-address': 'none', 'translation-port': 0},
            'vs2': {'destination': '2001:db8::10.443', 'monitor': '/Common/http and /Common/tcp',
                    'translation-address': 'none', 'translation-port': 0},
        }

    def test_metadata_records_destinations(self, ctx, declaration):
        config = translate(GSLBServerTranslator(), ctx, declaration, 'Common', 'Shared', 'srv').configs[0]
        assert config.properties['metadata'] == {
            'as3': {'persist': 'true'},
            'as3-virtuals': {'value': '"192.0.2.10:80_2001:db8::10.443"', 'persist': 'true'},
        }

    def test_data_center(self, ctx, declaration):
        config = translate(GSLBDataCenterTranslator(), ctx, declaration, 'Common', 'Shared', 'dc').configs[0]
        assert (config.path, config.command) == ('/Common/dc', 'gtm datacenter')
        assert config.properties['location'] == '"Seattle"'
        assert config.properties['contact'] == 'none'
        assert config.properties['metadata'] == {'as3': {'persist': 'true'}}

    def test_prober_pool(self, ctx, declaration):
        config = translate(GSLBProberPoolTranslator(), ctx, declaration, 'Common', 'Shared', 'pp').configs[0]
        assert config.path == '/Common/pp'
        assert config.properties['load-balancing-mode'] == 'round-robin'
        assert config.properties['members'] == {'/Common/srv': {'order': 0}}


class TestGSLBDomain:
    """Test cases for gtm wideip"""

    def test_wideip_is_named_after_domain(self, ctx, declaration):
        config = translate(GSLBDomainTranslator(), ctx, declaration, 'T', 'A', 'wip').configs[0]
        assert (config.path, config.command) == ('/T/A/example.com', 'gtm wideip a')
        assert config.properties['description'] == '"wip"'

    def test_pools_keep_declaration_order(self, ctx, declaration):
        config = translate(GSLBDomainTranslator(), ctx, declaration, 'T', 'A', 'wip').configs[0]
        assert config.properties['pools'] == {'/T/A/p1': {'order': 0}, '/T/A/p2': {'order': 1, 'ratio': 2}}

    def test_last_resort_pool_carries_record_type(self, ctx, declaration):
        config = translate(GSLBDomainTranslator(), ctx, declaration, 'T', 'A', 'wip').configs[0]
        assert config.properties['last-resort-pool'] == 'a /T/A/p1'

    def test_no_last_resort_pool(self, ctx, declaration):
        del declaration['T']['A']['wip']['lastResortPool']
        config = translate(GSLBDomainTranslator(), ctx, declaration, 'T', 'A', 'wip').configs[0]
        assert config.properties['last-resort-pool'] == 'none'


class TestGSLBPool:
    """Test cases for gtm pool"""

    def test_a_pool_members(self, ctx, declaration):
        config = translate(GSLBPoolTranslator(), ctx, declaration, 'T', 'A', 'p1').configs[0]
        assert (config.path, config.command) == ('/T/A/p1', 'gtm pool a')
        assert config.properties['members'] == {'/Common/srv:0': {'depends-on': 'none', 'member-order': 0}}

    def test_a_pool_defaults(self, ctx, declaration):
        config = translate(GSLBPoolTranslator(), ctx, declaration, 'T', 'A', 'p2').configs[0]
        assert config.properties['monitor'] == 'default'
        assert config.properties['fallback-ip'] == 'any'
        assert config.properties['qos-hit-ratio'] == 5
        assert config.properties['limit-max-bps'] == 0
        assert config.properties['limit-max-bps-status'] == 'disabled'

    def test_cname_pool_references_wideip(self, ctx, declaration):
        config = translate(GSLBPoolTranslator(), ctx, declaration, 'T', 'A', 'alias_pool').configs[0]
        assert config.command == 'gtm pool cname'
        assert config.properties['members'] == {'/T/A/example.com': {'member-order': 0, 'static-target': 'yes'}}
        assert 'monitor' not in config.properties
        assert 'fallback-ip' not in config.properties

    def test_static_server_does_not_wait(self, ctx, declaration):
        assert translate(GSLBPoolTranslator(), ctx, declaration, 'T', 'A', 'p1').metadata == {}

    def test_discovering_server_needs_wait(self, ctx, declaration):
        declaration['Common']['Shared']['srv']['virtualServerDiscoveryMode'] = 'enabled-no-delete'
        result = translate(GSLBPoolTranslator(), ctx, declaration, 'T', 'A', 'p1')
        assert result.metadata == {'gslb_pool': {'needs_wait': True}}

    def test_existing_server_needs_wait(self, ctx, declaration):
        declaration['T']['A']['p2']['members'] = [{'server': {'bigip': '/Common/other'}, 'virtualServer': 'vs'}]
        result = translate(GSLBPoolTranslator(), ctx, declaration, 'T', 'A', 'p2')
        assert result.metadata == {'gslb_pool': {'needs_wait': True}}


class TestGSLBMonitor:
    """Test cases for gtm monitor"""

    def test_http_monitor(self, ctx, declaration):
        config = translate(GSLBMonitorTranslator(), ctx, declaration, 'T', 'A', 'mon').configs[0]
        assert config.command == 'gtm monitor http'
        assert config.properties['destination'] == '192.0.2.1:80'
        assert config.properties['recv-status-code'] == '"200 302"'
        assert config.properties['send'] == 'none'
        assert config.properties['description'] == 'none'


class TestTopology:
    """Test cases for regions and topology records"""

    def test_region_members_are_sorted(self, ctx, declaration):
        config = translate(GSLBTopologyRegionTranslator(), ctx, declaration, 'Common', 'Shared', 'r1').configs[0]
        assert (config.path, config.command) == ('/Common/r1', 'gtm region')
        members = config.properties['region-members']
        assert list(members) == ['not country US', 'subnet 10.0.0.0/8']
        assert members['not country US'] == {'not': 'not'}

    def test_records_and_longest_match(self, ctx, declaration):
        result = translate(GSLBTopologyRecordsTranslator(), ctx, declaration, 'Common', 'Shared', 'topo')
        settings, topology = result.configs

        assert (settings.path, settings.command) == ('/Common/global-settings', 'gtm global-settings load-balancing')
        assert settings.properties == {'topology-longest-match': 'no'}

        assert (topology.path, topology.command) == ('/Common/topology/records', 'gtm topology')
        records = topology.properties['records']
        assert list(records) == ['0', '1']
        assert records['0']['source'] == 'subnet 10.0.0.0/8'
        assert records['0']['destination'] == 'pool /Common/Shared/gp'
        assert (records['0']['order'], records['0']['weight']) == (1, 10)
        assert records['1']['source'] == 'not state "US/Washington"'
        assert records['1']['destination'] == 'datacenter /Common/dc'
        assert records['1']['order'] == 2
