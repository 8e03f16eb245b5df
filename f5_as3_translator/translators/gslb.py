"""
GSLB (gtm) objects.

Servers, data centers, prober pools, regions and topology records live at the tenant
level (/tenant/item), wide IPs and pools inside their application. Objects the
translator owns carry an 'as3' metadata entry so they can be told apart from
objects created by hand.
"""
import logging
from typing import Any, Dict, List

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import quote_string
from f5_as3_translator.paths import bigip_path, bigip_path_from_src, mcp_path, minimize_ip
from f5_as3_translator.translators.base import MANAGED_DESCRIPTION, REMARK, REMARK_OR_NONE, Translator
from f5_as3_translator.translators.monitor import MonitorTranslator
from f5_as3_translator.translators.pool import METADATA_PROPERTIES

logger = logging.getLogger(__name__)

ENABLED = dict(truth='enabled', falsehood='disabled')
YES_NO = dict(truth='yes', falsehood='no')

TOPOLOGY_RECORDS_PATH = 'topology/records'
GLOBAL_SETTINGS_PATH = '/Common/global-settings'

# Match types whose values are free text and need quoting
QUOTED_MATCH_TYPES = ('state', 'geoip-isp')

LIMIT_PROPERTIES = (
    Prop('limit-max-bps', source='bpsLimit'),
    Prop('limit-max-bps-status', source='bpsLimitEnabled', **ENABLED),
    Prop('limit-max-connections', source='connectionsLimit'),
    Prop('limit-max-connections-status', source='connectionsLimitEnabled', **ENABLED),
    Prop('limit-max-pps', source='ppsLimit'),
    Prop('limit-max-pps-status', source='ppsLimitEnabled', **ENABLED),
)

PROBER_PROPERTIES = (
    Prop('prober-fallback', source='proberFallback'),
    Prop('prober-pool', source='proberPool'),
    Prop('prober-preference', source='proberPreferred'),
)

VIRTUAL_SERVER_PROPERTIES = (
    Prop('description', quoted=True),
    Prop('destination'),
    Prop('enabled'),
    Prop('monitor', source='monitors'),
    Prop('translation-address', source='addressTranslation'),
    Prop('translation-port', source='addressTranslationPort'),
)

SERVER_PROPERTIES = (
    REMARK,
    Prop('datacenter', source='dataCenter'),
    Prop('devices', extend='objarray', sub=(
        Prop('addresses', extend='objarray', sub=(Prop('translation'),)),
    )),
    Prop('enabled'),
    Prop('expose-route-domains', source='exposeRouteDomainsEnabled', **YES_NO),
    Prop('iq-allow-path', source='pathProbeEnabled', **YES_NO),
    Prop('iq-allow-service-check', source='serviceCheckProbeEnabled', **YES_NO),
    Prop('iq-allow-snmp', source='snmpProbeEnabled', **YES_NO),
    Prop('limit-cpu-usage', source='cpuUsageLimit'),
    Prop('limit-cpu-usage-status', source='cpuUsageLimitEnabled', **ENABLED),
    Prop('limit-mem-avail', source='memoryLimit'),
    Prop('limit-mem-avail-status', source='memoryLimitEnabled', **ENABLED),
    Prop('metadata', extend='objarray', sub=METADATA_PROPERTIES),
    Prop('monitor', source='monitors'),
    Prop('product', source='serverType'),
    Prop('virtual-server-discovery', source='virtualServerDiscoveryMode'),
    Prop('virtual-servers', source='virtualServers', extend='objarray', sub=VIRTUAL_SERVER_PROPERTIES),
) + LIMIT_PROPERTIES + PROBER_PROPERTIES

DATA_CENTER_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('contact', quoted=True, default='none'),
    Prop('enabled'),
    Prop('location', quoted=True, default='none'),
    Prop('metadata', extend='objarray', sub=METADATA_PROPERTIES),
) + PROBER_PROPERTIES

WIDEIP_POOL_PROPERTIES = (
    Prop('order'),
    Prop('ratio'),
)

DOMAIN_PROPERTIES = (
    REMARK,
    Prop('aliases', extend='set'),
    Prop('enabled'),
    Prop('last-resort-pool', source='lastResortPool', default='none'),
    Prop('persist-cidr-ipv4', source='persistCidrIpv4'),
    Prop('persist-cidr-ipv6', source='persistCidrIpv6'),
    Prop('persistence', source='persistenceEnabled', **ENABLED),
    Prop('pool-lb-mode', source='poolLbMode'),
    Prop('pools', extend='objarray', sub=WIDEIP_POOL_PROPERTIES),
    Prop('pools-cname', source='poolsCname', extend='objarray', sub=WIDEIP_POOL_PROPERTIES),
    Prop('rules', source='iRules', extend='set'),
    Prop('ttl-persistence', source='ttlPersistence'),
)

GSLB_MONITOR_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('args', source='arguments', quoted=True),
    Prop('cert', source='clientCertificate'),
    Prop('cipherlist', source='ciphers'),
    Prop('debug', source='debugEnabled', **YES_NO),
    Prop('destination', source='target'),
    Prop('ignore-down-response', source='ignoreDownResponseEnabled', **ENABLED),
    Prop('interval'),
    Prop('key'),
    Prop('probe-attempts', source='probeAttempts'),
    Prop('probe-interval', source='probeInterval'),
    Prop('probe-timeout', source='probeTimeout'),
    Prop('recv', source='receive', quoted=True),
    Prop('recv-status-code', source='receiveStatusCodes', quoted=True),
    Prop('reverse', source='reverseEnabled', **ENABLED),
    Prop('run'),
    Prop('api-anonymous', source='script'),
    Prop('send', quoted=True),
    Prop('sni-server-name', source='sniServerName'),
    Prop('timeout'),
    Prop('transparent', **ENABLED),
    Prop('user-defined', source='environmentVariables'),
)

_MONITOR_ANY = ['description', 'destination', 'interval', 'timeout', 'probe-timeout', 'ignore-down-response']
_MONITOR_HTTP = _MONITOR_ANY + ['reverse', 'send', 'recv', 'recv-status-code', 'transparent']
_MONITOR_ICMP = _MONITOR_ANY + ['probe-interval', 'probe-attempts', 'send', 'recv', 'transparent']

# Properties the appliance accepts for each gtm monitor type
GSLB_MONITOR_ALLOWED = {
    'http': _MONITOR_HTTP,
    'https': _MONITOR_HTTP + ['cipherlist', 'cert', 'key', 'sni-server-name'],
    'gateway-icmp': _MONITOR_ICMP,
    'tcp': _MONITOR_HTTP,
    'udp': _MONITOR_ICMP + ['debug', 'reverse'],
    'external': _MONITOR_ANY + ['run', 'api-anonymous', 'args', 'user-defined'],
}

GSLB_MEMBER_PROPERTIES = (
    Prop('depends-on', source='dependsOn', extend='set'),
    Prop('enabled'),
    Prop('flags'),
    Prop('member-order', source='memberOrder'),
    Prop('priority'),
    Prop('ratio'),
    Prop('static-target', source='isDomainNameStatic', **YES_NO),
)

GSLB_POOL_PROPERTIES = (
    REMARK,
    Prop('alternate-mode', source='alternateMode'),
    Prop('dynamic-ratio', source='dynamicRatioEnabled', **ENABLED),
    Prop('enabled'),
    Prop('fallback-ip', source='fallbackIP'),
    Prop('fallback-mode', source='fallbackMode'),
    Prop('load-balancing-mode', source='loadBalancingMode'),
    Prop('manual-resume', source='manualResumeEnabled', **ENABLED),
    Prop('max-answers-returned', source='maxAnswersReturned'),
    Prop('members', extend='objarray', sub=GSLB_MEMBER_PROPERTIES),
    Prop('monitor', source='monitors'),
    Prop('qos-hit-ratio', source='qosHitRatio'),
    Prop('qos-hops', source='qosHops'),
    Prop('qos-kilobytes-second', source='qosKbps'),
    Prop('qos-lcs', source='qosLinkCapacity'),
    Prop('qos-packet-rate', source='qosPacketRate'),
    Prop('qos-rtt', source='qosRoundTripTime'),
    Prop('qos-topology', source='qosTopology'),
    Prop('qos-vs-capacity', source='qosVirtualServerCapacity'),
    Prop('qos-vs-score', source='qosVirtualServerScore'),
    Prop('ttl'),
    Prop('verify-member-availability', source='verifyMemberEnabled', **ENABLED),
) + LIMIT_PROPERTIES

_POOL_ANY = [
    'description', 'dynamic-ratio', 'enabled', 'alternate-mode', 'fallback-mode', 'load-balancing-mode',
    'manual-resume', 'members', 'qos-hit-ratio', 'qos-hops', 'qos-kilobytes-second', 'qos-lcs',
    'qos-packet-rate', 'qos-rtt', 'qos-topology', 'qos-vs-capacity', 'qos-vs-score', 'ttl',
    'verify-member-availability',
]
_POOL_A = _POOL_ANY + [
    'fallback-ip', 'limit-max-bps', 'limit-max-bps-status', 'limit-max-connections',
    'limit-max-connections-status', 'limit-max-pps', 'limit-max-pps-status', 'max-answers-returned', 'monitor',
]

# Properties each gtm pool type accepts
GSLB_POOL_ALLOWED = {
    'a': _POOL_A,
    'aaaa': _POOL_A,
    'cname': _POOL_ANY,
    'mx': _POOL_ANY + ['max-answers-returned'],
    'naptr': _POOL_ANY + ['max-answers-returned', 'flags'],
}

# Quality-of-service weights the appliance applies when they are left out
QOS_DEFAULTS = {
    'qosHitRatio': 5,
    'qosHops': 0,
    'qosKbps': 3,
    'qosLinkCapacity': 30,
    'qosPacketRate': 1,
    'qosRoundTripTime': 50,
    'qosTopology': 0,
    'qosVirtualServerCapacity': 0,
    'qosVirtualServerScore': 0,
}

PROBER_POOL_PROPERTIES = (
    REMARK,
    Prop('enabled'),
    Prop('load-balancing-mode', source='lbMode'),
    Prop('members', extend='objarray', sub=(Prop('enabled'), Prop('order'))),
)

REGION_PROPERTIES = (
    REMARK,
    Prop('region-members', source='members', extend='objarray', sub=(Prop('not'),)),
)

TOPOLOGY_RECORD_PROPERTIES = (
    REMARK,
    Prop('destination'),
    Prop('order'),
    Prop('source'),
    Prop('weight'),
)

TOPOLOGY_PROPERTIES = (
    Prop('records', extend='objarray', sub=TOPOLOGY_RECORD_PROPERTIES),
)

LOAD_BALANCING_SETTINGS_PROPERTIES = (
    Prop('topology-longest-match', source='longestMatchEnabled', **YES_NO),
)


def tag_metadata(item: Dict[str, Any]) -> None:
    item['metadata'] = [{'name': 'as3', 'persist': 'true'}]


def parse_topology_match(match: Dict[str, Any]) -> Dict[str, Any]:
    """
    Render a topology match as the appliance's '<type> <value>' key.

    Pointer values resolve to their path, with region and data center pointers moved
    out of /Common/Shared. A not-equals operator prefixes the key with 'not '.

    Examples:
        parse_topology_match({'matchType': 'country', 'matchOperator': 'equals', 'matchValue': 'US'})
            → {'name': 'country US', 'not': '', 'remark': ...}
    """
    match_type = match.get('matchType')
    value = match.get('matchValue')
    if isinstance(value, dict):
        value = bigip_path_from_src(value)
        if match_type in ('region', 'datacenter'):
            value = value.replace('/Common/Shared', '/Common')
        rendered = value
    elif match_type in QUOTED_MATCH_TYPES:
        rendered = quote_string(str(value))
    else:
        rendered = value

    not_prefix = 'not ' if match.get('matchOperator') == 'not-equals' else ''
    return {
        'name': f"{not_prefix}{match_type} {rendered}",
        'not': not_prefix.strip(),
        'remark': MANAGED_DESCRIPTION,
    }


def combine_address_port(address: str, port: Any) -> str:
    address = minimize_ip(address)
    separator = '.' if ':' in address else ':'
    return f"{address}{separator}{port}"


def join_monitors(monitors: List[Any]) -> str:
    """gtm objects take their monitors as one 'a and b' rule"""
    return ' and '.join(bigip_path_from_src(monitor) for monitor in monitors)


class GSLBServerTranslator(Translator):
    """
    GSLB_Server → gtm server.

    Virtual servers are named by position unless named explicitly and their
    destinations are recorded in an 'as3-virtuals' metadata entry.
    """
    declared_class = 'GSLB_Server'
    command = 'gtm server'
    properties = SERVER_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['remark'] = item.get('remark') or ''
        tag_metadata(item)
        item['devices'] = [
            {'name': str(index),
             'addresses': [{'name': device['address'], 'translation': device.get('addressTranslation') or 'none'}]}
            for index, device in enumerate(item.get('devices') or [])
        ]

        destinations = []
        for index, virtual in enumerate(item.get('virtualServers') or []):
            virtual['destination'] = combine_address_port(virtual['address'], virtual['port'])
            destinations.append(virtual['destination'])
            virtual['name'] = virtual.get('name') or str(index)
            virtual['addressTranslation'] = virtual.get('addressTranslation') or 'none'
            virtual['addressTranslationPort'] = virtual.get('addressTranslationPort') or 0
            if virtual.get('monitors') is not None:
                self._monitors(virtual)
        if destinations:
            item['metadata'].append({'name': 'as3-virtuals', 'value': '_'.join(destinations), 'persist': 'true'})

        self._monitors(item, '/Common/bigip' if item.get('serverType', 'bigip') == 'bigip' else None)
        item['serverType'] = item.get('serverType') or 'bigip'
        item['proberPool'] = item.get('proberPool') or 'none'
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, None, item_id))])

    @staticmethod
    def _monitors(source, default=None):
        monitors = source.get('monitors') or []
        if monitors:
            source['monitors'] = join_monitors(monitors)
        elif default:
            source['monitors'] = default
        else:
            source.pop('monitors', None)


class GSLBDataCenterTranslator(Translator):
    declared_class = 'GSLB_Data_Center'
    command = 'gtm datacenter'
    properties = DATA_CENTER_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        tag_metadata(item)
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, None, item_id))])


class GSLBDomainTranslator(Translator):
    """
    GSLB_Domain → gtm wideip <record type>, named after the domain.

    Pools keep declaration order as their 'order' and the last resort pool is
    prefixed with its record type.
    """
    declared_class = 'GSLB_Domain'
    command = 'gtm wideip'
    properties = DOMAIN_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item['domainName'])
        item['remark'] = item.get('remark') or item_id
        for key in ('pools', 'poolsCname'):
            if item.get(key):
                item[key] = [{'name': pool.get('use'), 'order': index, 'ratio': pool.get('ratio')}
                             for index, pool in enumerate(item[key])]

        record_type = item.get('resourceRecordType', 'A').lower()
        config = self.render(ctx, item, path, f"{self.command} {record_type}")
        last_resort = config.properties.get('last-resort-pool')
        if last_resort and last_resort != 'none':
            pool_type = (item.get('lastResortPoolType') or item.get('resourceRecordType', 'A')).lower()
            config.properties['last-resort-pool'] = f"{pool_type} {last_resort}"
        return TranslationResult(configs=[config])


class GSLBMonitorTranslator(MonitorTranslator):
    """GSLB_Monitor → gtm monitor <type>, external scripts uploaded like ltm external monitors"""
    declared_class = 'GSLB_Monitor'
    command = 'gtm monitor'
    properties = GSLB_MONITOR_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        monitor_type = item.get('monitorType')
        configs = []
        item['remark'] = item.get('remark') or 'none'

        if monitor_type == 'https':
            certificate = item.get('clientCertificate')
            item['clientCertificate'] = f"{certificate}.crt" if certificate else 'none'
            item['key'] = f"{certificate}.key" if certificate else 'none'
        if monitor_type in ('http', 'https'):
            codes = item.get('receiveStatusCodes')
            if isinstance(codes, list):
                codes = ' '.join(str(code) for code in codes)
            item['receiveStatusCodes'] = codes or 'none'
        if monitor_type in ('http', 'https', 'tcp', 'udp'):
            for key in ('send', 'receive', 'sniServerName'):
                item[key] = item.get(key) or 'none'
        if monitor_type == 'external':
            item['arguments'] = item.get('arguments') or 'none'
            if item.get('script'):
                configs.append(self._script_upload(ctx, path, item))
        if item.get('environmentVariables'):
            item['environmentVariables'] = {
                name: quote_string(str(value))
                for name, value in item['environmentVariables'].items()
            }

        config = self.render(ctx, item, path)
        allowed = GSLB_MONITOR_ALLOWED.get(monitor_type, _MONITOR_ANY)
        config.properties = {key: value for key, value in config.properties.items() if key in allowed}
        config.command = f"{self.command} {monitor_type}"
        configs.append(config)
        return TranslationResult(configs=configs)


class GSLBPoolTranslator(Translator):
    """
    GSLB_Pool → gtm pool <record type>.

    A and AAAA members are server:virtual-server pairs, the other types reference
    wide IPs by domain name. member-order follows declaration order.
    """
    declared_class = 'GSLB_Pool'
    command = 'gtm pool'
    properties = GSLB_POOL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        record_type = item.get('resourceRecordType', 'A')
        members = item.get('members') or []
        resolver = self.resolver(declaration)
        needs_wait = False
        if record_type in ('A', 'AAAA'):
            needs_wait = self._address_pool(item, members, resolver)
        else:
            self._domain_pool(item, members, record_type, resolver)

        for key, value in QOS_DEFAULTS.items():
            item[key] = item.get(key) or value
        for index, member in enumerate(members):
            member['memberOrder'] = index
            if record_type != 'CNAME':
                member.pop('isDomainNameStatic', None)
            if record_type != 'MX':
                member.pop('priority', None)

        config = self.render(ctx, item, mcp_path(tenant_id, app_id, item_id),
                             f"{self.command} {record_type.lower()}")
        for body in (config.properties.get('members') or {}).values():
            if body.get('depends-on') == {}:
                if record_type in ('A', 'AAAA'):
                    body['depends-on'] = 'none'
                else:
                    del body['depends-on']

        allowed = GSLB_POOL_ALLOWED[record_type.lower()]
        config.properties = {key: value for key, value in config.properties.items() if key in allowed}
        result = TranslationResult(configs=[config])
        if needs_wait:
            result.metadata['gslb_pool'] = {'needs_wait': True}
        return result

    @staticmethod
    def _address_pool(item, members, resolver) -> bool:
        """Name server:virtual members, returning whether any waits on virtual server discovery"""
        monitors = item.get('monitors')
        item['monitors'] = join_monitors(monitors) if monitors else 'default'
        item['fallbackIP'] = item.get('fallbackIP') or 'any'
        for key in ('bpsLimit', 'ppsLimit', 'connectionsLimit'):
            item[key] = item.get(key) or 0
            item[f"{key}Enabled"] = item.get(f"{key}Enabled") or False

        needs_wait = False
        for member in members:
            if GSLBPoolTranslator._needs_wait(member, resolver):
                logger.debug(f"Pool member {member.get('server')} depends on virtual server discovery")
                needs_wait = True
            virtual = member.get('virtualServer')
            if isinstance(virtual, dict):
                virtual = bigip_path_from_src(virtual)
            member['name'] = f"{bigip_path(member, 'server').replace('/Shared', '')}:{virtual}"
            depends_on = member.get('dependsOn')
            if depends_on and depends_on != 'none':
                member['dependsOn'] = [path.replace('/Shared', '') for path in depends_on]
        return needs_wait

    @staticmethod
    def _needs_wait(member, resolver) -> bool:
        """Members of discovering or pre-existing servers only appear once discovery has run"""
        server = member.get('server')
        if not isinstance(server, dict):
            return False
        if server.get('bigip'):
            return True
        referenced = resolver.get(server.get('use', ''))
        mode = (referenced or {}).get('virtualServerDiscoveryMode') or ''
        return mode.startswith('enable')

    @staticmethod
    def _domain_pool(item, members, record_type, resolver):
        for member in members:
            domain = member.get('domainName')
            if isinstance(domain, dict) and domain.get('use'):
                wideip = resolver.get(domain['use']) or {}
                domain['use'] = f"{domain['use'].rsplit('/', 1)[0]}/{wideip.get('domainName')}"
            member['name'] = bigip_path(member, 'domainName').replace('/Shared', '')
            if record_type == 'NAPTR':
                # only A-type wide IP targets are supported
                member['flags'] = 'a'


class GSLBProberPoolTranslator(Translator):
    declared_class = 'GSLB_Prober_Pool'
    command = 'gtm prober-pool'
    properties = PROBER_POOL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['remark'] = MANAGED_DESCRIPTION
        for index, member in enumerate(item.get('members') or []):
            name = bigip_path(member, 'server').replace('/Shared', '')
            member['name'] = name if '/' in name else f"/Common/{name}"
            member['order'] = index
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, None, item_id))])


class GSLBTopologyRegionTranslator(Translator):
    declared_class = 'GSLB_Topology_Region'
    command = 'gtm region'
    properties = REGION_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['remark'] = MANAGED_DESCRIPTION
        if item.get('members'):
            item['members'] = sorted((parse_topology_match(member) for member in item['members']),
                                     key=lambda member: member['name'].lower())
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, None, item_id))])


class GSLBTopologyRecordsTranslator(Translator):
    """
    GSLB_Topology_Records → gtm topology records plus the longest-match setting.

    Records are keyed by position with a 1-based order. The engine merges records
    from every declaring application into a single topology object.
    """
    declared_class = 'GSLB_Topology_Records'
    command = 'gtm topology'
    properties = TOPOLOGY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        records = []
        for index, record in enumerate(item.get('records') or []):
            records.append({
                'name': str(index),
                'order': index + 1,
                'weight': record.get('weight'),
                'source': parse_topology_match(record['source'])['name'],
                'destination': parse_topology_match(record['destination'])['name'],
                'remark': MANAGED_DESCRIPTION,
            })
        settings = {'longestMatchEnabled': item.get('longestMatchEnabled')}
        return TranslationResult(configs=[
            self.render(ctx, settings, GLOBAL_SETTINGS_PATH, 'gtm global-settings load-balancing',
                        LOAD_BALANCING_SETTINGS_PROPERTIES),
            self.render(ctx, {'records': records}, f"/{tenant_id}/{TOPOLOGY_RECORDS_PATH}"),
        ])
