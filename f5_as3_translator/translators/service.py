"""
Virtual servers and virtual addresses.

Service_Core holds the shared algorithm: a declared service with N virtual addresses
becomes, per address, an optional ltm virtual-address, an optional self SNAT pool, an
optional ltm traffic-matching-criteria and the ltm virtual itself. The Service_*
subclasses add their protocol profiles and then defer to Service_Core, the same way
Service_HTTPS builds on Service_HTTP which builds on Service_TCP.
"""
import copy
import logging
import posixpath
import re
from typing import Any, Dict, List, Optional

from f5_as3_translator.config_object import ConfigObject, TranslationResult
from f5_as3_translator.errors import AbsolutePathError
from f5_as3_translator.hashing import short_name_hash
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.paths import (bigip_path, bigip_path_from_src, default_route_domain, mcp_path, minimize_ip,
                                     parse_ip_address, suffixed_name, wildcard_name)
from f5_as3_translator.resolver import ReferenceResolver
from f5_as3_translator.translators.base import REMARK, Translator
from f5_as3_translator.translators.pool import METADATA_PROPERTIES, snat_pool_result

logger = logging.getLogger(__name__)

REDIRECT_SUFFIX = '-Redirect-'
ENABLED = dict(truth='enabled', falsehood='disabled')
# /::%rd or /::. style destinations
IPV6_WILDCARD_DESTINATION = re.compile(r'/::\W')

VIRTUAL_ADDRESS_PROPERTIES = (
    REMARK,
    Prop('address', source='virtualAddress'),
    Prop('arp', alt='arpEnabled', default=True, **ENABLED),
    Prop('icmp-echo', source='icmpEcho', default='enabled'),
    Prop('mask', source='netmask'),
    Prop('metadata', extend='objarray', sub=METADATA_PROPERTIES),
    Prop('route-advertisement', source='routeAdvertisement', default='disabled'),
    Prop('spanning', alt='spanningEnabled', default=False, **ENABLED),
    Prop('traffic-group', source='trafficGroup', default='default', force_to_common=True),
)

VIRTUAL_METADATA_PROPERTIES = (
    Prop('value', quoted=True),
    Prop('persist', truth='true', falsehood='false', default='true'),
)

VIRTUAL_PROPERTIES = (
    Prop('description', source='remark', quoted=True),
    Prop('auto-lasthop'),
    Prop('bw-controller-policy', source='policyBandwidthControl'),
    Prop('clone-pools', source='clonePools', extend='objarray', sub=(Prop('context'),)),
    Prop('connection-limit', source='maxConnections', default=0),
    Prop('destination'),
    Prop('disabled', extend='object'),
    Prop('enabled', extend='object'),
    Prop('fallback-persistence', source='fallbackPersistenceMethod', default='none'),
    Prop('fw-enforced-policy', source='policyFirewallEnforced', default='none', modules=('afm',)),
    Prop('fw-staged-policy', source='policyFirewallStaged', default='none', modules=('afm',)),
    Prop('internal', extend='object'),
    Prop('ip-forward'),
    Prop('ip-intelligence-policy', source='ipIntelligencePolicy', default='none', modules=('afm',)),
    Prop('ip-protocol', source='layer4', default='tcp'),
    Prop('l2-forward'),
    Prop('last-hop-pool'),
    Prop('mask'),
    Prop('metadata', extend='objarray', sub=VIRTUAL_METADATA_PROPERTIES),
    Prop('mirror', source='mirroring', **ENABLED),
    Prop('nat64', source='nat64Enabled', default=False, **ENABLED),
    Prop('per-flow-request-access-policy', source='policyPerRequestAccess', default='none'),
    Prop('persist', source='persistenceMethods', extend='objarray', sub=(Prop('default'),)),
    Prop('policies', extend='set'),
    Prop('pool', default='none'),
    Prop('profiles', extend='objarray', sub=(Prop('context'),)),
    Prop('rate-limit', source='rateLimit', default='disabled'),
    Prop('rules', source='iRules', extend='set'),
    Prop('security-log-profiles', source='securityLogProfiles', extend='set'),
    Prop('security-nat-policy', source='securityNatPolicy', extend='object', sub=(Prop('policy'),),
         modules=('afm',)),
    Prop('service-down-immediate-action', source='serviceDownImmediateAction', default='none'),
    Prop('service-policy', source='servicePolicy', default='none'),
    Prop('source'),
    Prop('source-address-translation', source='snat', extend='object', sub=(Prop('type'), Prop('pool'))),
    Prop('source-port', source='translateClientPort', default=False, truth='change', falsehood='preserve'),
    Prop('stateless', extend='object'),
    Prop('throughput-capacity', source='maximumBandwidth', modules=('afm',)),
    Prop('traffic-matching-criteria', source='trafficMatchingCriteria'),
    Prop('translate-address', source='translateServerAddress', default=True, **ENABLED),
    Prop('translate-port', source='translateServerPort', default=True, **ENABLED),
    Prop('vlans', extend='set'),
    Prop('vlans-disabled', source='vlansDisabled'),
    Prop('vlans-enabled', source='vlansEnabled'),
)

TRAFFIC_MATCHING_PROPERTIES = (
    Prop('destination-address-inline', source='destinationAddressInline'),
    Prop('destination-address-list', source='destinationAddressList'),
    Prop('destination-port-inline', source='destinationPortInline', default=0),
    Prop('destination-port-list', source='destinationPortList'),
    Prop('protocol', default='tcp'),
    Prop('route-domain', source='routeDomain', default='any'),
    Prop('source-address-inline', source='sourceAddressInline'),
    Prop('source-address-list', source='sourceAddressList'),
)

SERVICE_POLICY_PROPERTIES = (
    Prop('timer-policy', source='timerPolicy'),
)

# Persistence method names that differ from their built-in /Common profile
PERSISTENCE_RENAMES = (
    ('destination', 'dest'),
    ('address', 'addr'),
    ('tls-session-id', 'ssl'),
    ('-info', ''),
)

# Service keys holding a single profile reference, with the profile context they attach in
CORE_PROFILE_KEYS = (
    ('profileDiameterEndpoint', 'all'),
    ('profileEnforcement', 'clientside'),
    ('profileSubscriberManagement', 'clientside'),
    ('profileIPOther', 'all'),
    ('profileClassification', 'clientside'),
    ('profileDNS', 'all'),
    ('profileDOS', 'all'),
    ('profileStatistics', 'all'),
    ('profileTrafficLog', 'all'),
    ('profileRewrite', 'all'),
    ('profileFPS', 'all'),
    ('profileProtocolInspection', 'all'),
    ('profileBotDefense', 'all'),
    ('profileVdi', 'all'),
)

HTTP_PROFILE_KEYS = (
    ('profileHTTP', 'all'),
    ('profileHTML', 'all'),
    ('profileHTTPCompression', 'all'),
    ('profileHTTPAcceleration', 'all'),
    ('profileMultiplex', 'all'),
    ('profileNTLM', 'all'),
    ('profileAnalytics', 'all'),
    ('profileAnalyticsTcp', 'all'),
    ('profileConnectivity', 'clientside'),
    ('profileRequestAdapt', 'clientside'),
    ('profileResponseAdapt', 'serverside'),
    ('profileWebSocket', 'all'),
)

TCP_PROFILE_KEYS = (
    ('profileAnalyticsTcp', 'all'),
    ('profileFIX', 'all'),
    ('profileSIP', 'all'),
    ('profileSOCKS', 'all'),
    ('profileSSHProxy', 'all'),
    ('profileFTP', 'all'),
    ('profilePPTP', 'all'),
    ('profileStream', 'all'),
    ('profileILX', 'all'),
    ('profileRTSP', 'clientside'),
)


def _short_access_path(path: str, key: str) -> str:
    """Access profiles and IAM policies live at /tenant/name, not /tenant/app/name"""
    segments = path.split('/')
    if key in ('policyIAM', 'profileAccess') and len(segments) == 4:
        return f"/{segments[1]}/{segments[3]}"
    return path


def add_profile(item: Dict[str, Any], key: str, context: str = 'all', resolver: Optional[ReferenceResolver] = None,
                ctx=None) -> Dict[str, Any]:
    """
    Append the profile referenced by item[key] to item['profiles'].

    A short name means /Common/<name>. TLS profile references must be absolute
    /tenant/app/item paths; a TLS_Server reference adds one profile per certificate
    unless the target takes every certificate in a single profile. STARTTLS settings
    on the referenced TLS profile add their generated helper profiles.

    Raises:
        AbsolutePathError: If serverTLS or clientTLS is not /tenant/app/item
    """
    value = item.get(key)
    if value is None or value == '':
        return item
    profiles = item.setdefault('profiles', [])

    if key in ('serverTLS', 'clientTLS') and isinstance(value, dict) and value.get('use'):
        value = value['use']

    if isinstance(value, str):
        name = value if value.startswith('/') else f"/Common/{value}"
        if key in ('serverTLS', 'clientTLS'):
            _add_tls_profiles(profiles, key, value, name, context, resolver, ctx)
        else:
            profiles.append({'name': name, 'context': context})
    elif isinstance(value, list):
        for reference in value:
            path = bigip_path_from_src(reference)
            if path is not None:
                profiles.append({'name': _short_access_path(path, key), 'context': context})
    else:
        path = bigip_path(item, key)
        if path is not None:
            profiles.append({'name': _short_access_path(path, key), 'context': context})
    return item


def _add_tls_profiles(profiles: List[Dict[str, Any]], key: str, value: str, name: str, context: str,
                      resolver: Optional[ReferenceResolver], ctx) -> None:
    segments = value.split('/')
    if len(segments) != 4:
        raise AbsolutePathError(value, key)
    definition = resolver.get(value) if resolver is not None else {}

    if definition.get('ldapStartTLS') not in (None, 'none'):
        helper = mcp_path(segments[1], segments[2], f"f5_appsvcs_{context}_{definition['ldapStartTLS']}")
        profiles.append({'name': helper, 'context': context})
    if key == 'serverTLS' and isinstance(definition.get('smtpsStartTLS'), str):
        helper = mcp_path(segments[1], segments[2], f"f5_appsvcs_smtps_{definition['smtpsStartTLS']}")
        profiles.append({'name': helper, 'context': 'all'})

    if key != 'serverTLS':
        profiles.append({'name': name, 'context': context})
        return

    certificates = definition.get('certificates') or []
    threshold = getattr(ctx, 'tls_multi_cert_threshold', None)
    if threshold is not None and ctx.at_least(threshold):
        certificates = certificates[:1]
    for index, certificate in enumerate(certificates):
        if definition.get('namingScheme') == 'certificate':
            certificate_name = bigip_path_from_src(certificate.get('certificate'), '').split('/')[-1]
            profile_name = f"{posixpath.dirname(name)}/{certificate_name}"
        else:
            profile_name = suffixed_name(name, index)
        profiles.append({'name': profile_name, 'context': context})


def _persistence_profile(method: str) -> str:
    for old, new in PERSISTENCE_RENAMES:
        method = method.replace(old, new)
    return f"/Common/{method.replace('-', '_')}"


def service_address_config(translator: Translator, ctx, tenant_id: str, item_id: str, item: Dict[str, Any],
                           declaration: Dict[str, Any]) -> ConfigObject:
    """
    ltm virtual-address for a declared or implied Service_Address.

    The object lives at the tenant root, or in /Common/Shared for Common, or in the
    root of /Common when addresses are shared across tenants.
    """
    address = dict(item)
    parsed = parse_ip_address(address.get('virtualAddress'))
    address['netmask'] = parsed.netmask

    app_id = 'Shared' if tenant_id == 'Common' else None
    if item.get('shareAddresses'):
        tenant_id, app_id = 'Common', None

    route_domain = parsed.route_domain or default_route_domain(declaration, tenant_id)
    if parsed.ip.startswith('0.0.0.0'):
        address['virtualAddress'] = f"any{route_domain}"
    elif parsed.ip_with_route.startswith('::%') or parsed.ip == '::':
        address['virtualAddress'] = f"any6{route_domain}"
    else:
        address['virtualAddress'] = f"{parsed.ip}{route_domain}"

    address['icmpEcho'] = _abled(address.get('icmpEcho', 'enable'))
    address['routeAdvertisement'] = _abled(address.get('routeAdvertisement', 'disable'))
    address['trafficGroup'] = address.get('trafficGroup') or 'default'
    if isinstance(address.get('metadata'), dict):
        address['metadata'] = [dict(entry, name=name) for name, entry in address['metadata'].items()]
    return translator.render(ctx, address, mcp_path(tenant_id, app_id, f"Service_Address-{item_id}"),
                             'ltm virtual-address', VIRTUAL_ADDRESS_PROPERTIES)


def _abled(value: str) -> str:
    """enable -> enabled, disable -> disabled, other values unchanged"""
    return value[:-len('able')] + 'abled' if value.endswith('able') else value


class ServiceAddressTranslator(Translator):
    """Service_Address → ltm virtual-address"""
    declared_class = 'Service_Address'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        return TranslationResult(configs=[service_address_config(self, ctx, tenant_id, item_id, item, declaration)])


class ServiceCoreTranslator(Translator):
    """The behaviour every Service_* class shares, see the module docstring"""
    declared_class = 'Service_Core'
    command = 'ltm virtual'
    properties = VIRTUAL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if not item.get('enable', True):
            return TranslationResult()

        resolver = self.resolver(declaration)
        configs: List[ConfigObject] = []
        result = TranslationResult(configs=configs)
        default_address = {'arp': True, 'icmpEcho': 'enable', 'spanning': False}
        item['policies'] = item.get('policies') or []

        if isinstance(item.get('adminState', 'enable'), str):
            enabled = item.pop('adminState', 'enable') == 'enable'
        else:
            enabled = bool(item.pop('adminState'))
        item['enabled' if enabled else 'disabled'] = {}

        self._pair_source_address(item)
        self._vlans(item)

        if item.get('policyNAT'):
            item['securityNatPolicy'] = {'policy': item.pop('policyNAT')}

        if item.get('policyIdleTimeout'):
            configs.append(self._service_policy(ctx, tenant_id, app_id, item))

        self._endpoint_policies(ctx, tenant_id, app_id, item, resolver)
        self._persistence(item)
        self._last_hop(item)

        if item.get('httpMrfRoutingEnabled'):
            item['httpMrfRoutingEnabled'] = {'bigip': '/Common/httprouter'}
            add_profile(item, 'httpMrfRoutingEnabled')

        item['mirroring'] = item.get('mirroring') == 'L4'
        add_profile(item, 'serverTLS', 'clientside', resolver, ctx)
        add_profile(item, 'clientTLS', 'serverside', resolver, ctx)
        for key, context in CORE_PROFILE_KEYS:
            add_profile(item, key, context)
        if ctx.at_least('17.0'):
            add_profile(item, 'profileIntegratedBotDefense')

        self_snat = self._snat(item)

        if isinstance(item.get('metadata'), dict):
            item['metadata'] = [dict(entry, name=name) for name, entry in item['metadata'].items()]
        if isinstance(item.get('clonePools'), dict):
            item['clonePools'] = [
                {'name': bigip_path_from_src(pool),
                 'context': 'clientside' if direction == 'ingress' else 'serverside'}
                for direction, pool in item['clonePools'].items()
            ]

        if ctx.provisioned('afm'):
            item['maximumBandwidth'] = item.get('maximumBandwidth') or 'infinite'
            if ctx.below('14.0') and item['maximumBandwidth'] == 'infinite':
                item['maximumBandwidth'] = 0

        rate_limit = item.get('rateLimit')
        if isinstance(rate_limit, (int, float)) and rate_limit <= 0:
            item['rateLimit'] = 'disabled'

        self._virtuals(ctx, tenant_id, app_id, item_id, item, declaration, resolver, default_address, self_snat,
                       result)
        return result

    @staticmethod
    def _pair_source_address(item):
        """A single source address string pairs with every destination address"""
        source = item.get('sourceAddress')
        if isinstance(source, str):
            item['virtualAddresses'] = [
                address if isinstance(address, list) else [address, source]
                for address in item.get('virtualAddresses') or []
            ]
            item.pop('sourceAddress')

    @staticmethod
    def _vlans(item):
        if item.get('allowVlans'):
            item['vlans'] = item['allowVlans']
            item['vlansEnabled'] = ' '
        elif item.get('rejectVlans'):
            item['vlans'] = item['rejectVlans']
            item['vlansDisabled'] = ' '
        else:
            item['vlans'] = []
            # the appliance reverses the flag for internal virtuals
            if item.get('virtualType') == 'internal':
                item['vlansEnabled'] = ' '
            else:
                item['vlansDisabled'] = ' '

    def _service_policy(self, ctx, tenant_id, app_id, item) -> ConfigObject:
        """A net service-policy carrying the idle-timeout timer policy, named from its hash"""
        timer = bigip_path_from_src(item.pop('policyIdleTimeout'))
        path = mcp_path(tenant_id, app_id, f"f5_appsvcs_{short_name_hash(timer)}")
        item['servicePolicy'] = path
        return self.render(ctx, {'timerPolicy': timer}, path, 'net service-policy', SERVICE_POLICY_PROPERTIES)

    def _endpoint_policies(self, ctx, tenant_id, app_id, item, resolver):
        policies = item.get('policyEndpoint')
        if policies is None:
            return
        if not isinstance(policies, list):
            policies = [policies]
        for policy in policies:
            item['policies'].append(policy)
            if isinstance(policy, str):
                pointer = policy
            elif isinstance(policy, dict) and policy.get('use'):
                pointer = policy['use']
            else:
                self._add_web_security(ctx, item)
                continue
            definition = resolver.get(pointer, tenant_id, app_id)
            for rule in definition.get('rules') or []:
                if any(action.get('type') == 'waf' or str(action.get('policyString', '')).startswith('asm')
                       for action in rule.get('actions') or []):
                    self._add_web_security(ctx, item)

    @staticmethod
    def _add_web_security(ctx, item):
        """WAF policies need the websecurity profile on an HTTP virtual when ASM is provisioned"""
        if not item.get('profileHTTP') or not ctx.provisioned('asm'):
            return
        profiles = item.setdefault('profiles', [])
        if not any(profile.get('name') == '/Common/websecurity' for profile in profiles):
            profiles.append({'name': '/Common/websecurity', 'context': 'all'})

    @staticmethod
    def _persistence(item):
        methods = item.get('persistenceMethods')
        if methods is not None:
            rendered = []
            for method in methods:
                if isinstance(method, str) and not method.startswith('/'):
                    method = {'bigip': _persistence_profile(method)}
                elif isinstance(method, str):
                    method = {'bigip': method}
                rendered.append(dict(method, default='no'))
            if rendered:
                rendered[0]['default'] = 'yes'
                item['persistenceMethods'] = rendered
            else:
                item.pop('persistenceMethods')

        fallback = item.get('fallbackPersistenceMethod')
        if isinstance(fallback, str) and not fallback.startswith('/'):
            item['fallbackPersistenceMethod'] = _persistence_profile(fallback)

    @staticmethod
    def _last_hop(item):
        last_hop = item.get('lastHop')
        if last_hop is None or isinstance(last_hop, str):
            item['auto-lasthop'] = {'disable': 'disabled', 'auto': 'enabled'}.get(last_hop, 'default')
            item['last-hop-pool'] = 'none'
        else:
            item['auto-lasthop'] = 'default'
            item['last-hop-pool'] = bigip_path(item, 'lastHop')

    @staticmethod
    def _snat(item) -> bool:
        """Normalise snat, returning True for 'self' which is resolved per virtual address"""
        snat = item.get('snat')
        if snat is None:
            item['snat'] = {'type': 'automap'}
        elif isinstance(snat, str):
            if snat == 'self':
                return True
            item['snat'] = {'type': snat.replace('auto', 'automap')}
        else:
            item['snat'] = {'type': 'snat', 'pool': bigip_path(item, 'snat')}
        return False

    def _virtuals(self, ctx, tenant_id, app_id, item_id, item, declaration, resolver, default_address, self_snat,
                  result: TranslationResult):
        """Emit the per-address objects, each address producing one ltm virtual"""
        configs = result.configs
        internal = item.get('virtualType') == 'internal'
        metadata = ctx.inventory.get_task_metadata_virtual_addresses(tenant_id, app_id, item_id)

        destination_port_list = None
        destination_address_list = None
        source_address_list = None
        if isinstance(item.get('virtualPort'), dict):
            destination_port_list = item['virtualPort']
            item['virtualPort'] = 0
        if not isinstance(item.get('virtualAddresses'), list):
            destination_address_list = item.get('virtualAddresses')
            item['virtualAddresses'] = ['0.0.0.0']
        if isinstance(item.get('sourceAddress'), dict):
            source_address_list = item['sourceAddress']

        for index, address in enumerate(item['virtualAddresses']):
            route_domain = default_route_domain(declaration, tenant_id)
            alias = suffixed_name(item_id, index)
            reference = address[0] if isinstance(address, list) and isinstance(address[0], dict) else address
            source_literal = address[1] if isinstance(address, list) and len(address) > 1 else None
            address_metadata = metadata[index] if index < len(metadata) else {}

            if isinstance(reference, dict):
                if isinstance(address, list) and isinstance(address_metadata, list):
                    address_metadata = address_metadata[0] if address_metadata else {}
                parsed, destination_address, reference_mask, reference_rd = self._referenced_address(
                    ctx, reference, declaration, resolver, address_metadata)
                route_domain = parsed.route_domain or route_domain
                if not isinstance(address, list):
                    route_domain = reference_rd or route_domain
                destination_ip = destination_address if reference.get('bigip') else f"{parsed.ip}{route_domain}"
                mask = reference_mask or parsed.netmask
                default_source = f"{'::' if ':' in destination_ip else '0.0.0.0'}{route_domain}/0"
                if isinstance(address, list):
                    default_source = f"{'::' if ':' in destination_address else '0.0.0.0'}{route_domain}/0"
            else:
                literal = address[0] if isinstance(address, list) else address
                parsed = parse_ip_address(literal)
                mask = parsed.netmask
                route_domain = parsed.route_domain or route_domain
                own_name = f"{parsed.ip}{route_domain}"
                if item.get('shareAddresses'):
                    default_address['shareAddresses'] = item['shareAddresses']
                    destination_address = mcp_path('Common', None, own_name)
                else:
                    destination_address = mcp_path(tenant_id, 'Shared' if tenant_id == 'Common' else None, own_name)
                default_address['virtualAddress'] = literal
                if item.get('class') == 'Service_Forwarding':
                    default_address['arp'] = False
                    default_address['icmpEcho'] = 'disable'

                address_config = service_address_config(self, ctx, tenant_id, wildcard_name(parsed.ip, route_domain),
                                                        default_address, declaration)
                if not internal and not destination_address_list:
                    configs.append(address_config)
                destination_ip = address_config.properties['address']
                default_source = f"{'::' if ':' in destination_address else '0.0.0.0'}{route_domain}/0"

            source = minimize_ip(source_literal) if source_literal else default_source

            if self_snat:
                snat_path = mcp_path(tenant_id, app_id, f"{alias}-self")
                item['snat'] = {'type': 'snat', 'pool': snat_path}
                result.extend(snat_pool_result(self, ctx, tenant_id, snat_path, [f"{parsed.ip}{route_domain}"]))

            destination = self._destination(tenant_id, destination_address, destination_ip, route_domain,
                                            item.get('virtualPort'))
            if not internal:
                item['destination'] = destination
            item['source'] = source
            item['mask'] = mask
            item['remark'] = item.get('remark') or app_id

            if ctx.at_least('14.1') and (destination_port_list or destination_address_list or source_address_list):
                matching_path = mcp_path(tenant_id, app_id, f"{alias}_VS_TMC_OBJ")
                configs.append(self._traffic_matching(ctx, item, destination_ip, mask, route_domain,
                                                      destination_port_list, destination_address_list,
                                                      source_address_list, matching_path))
                item['trafficMatchingCriteria'] = matching_path
                item.pop('destination', None)
                item.pop('source', None)

            configs.append(self.render(ctx, item, mcp_path(tenant_id, app_id, alias)))

    @staticmethod
    def _referenced_address(ctx, reference, declaration, resolver, address_metadata):
        """Resolve a bigip or use virtual address reference to its parsed address and path"""
        if reference.get('bigip'):
            address = reference.get('address') or reference['bigip'].split('/')[2]
            if not reference.get('address'):
                for known in ctx.inventory.get_virtual_address_list():
                    if address in known.get('fullPath', ''):
                        address = known['address']
            parsed = parse_ip_address(address)
            destination_address = f"/{reference['bigip'].split('/')[1]}/{address}"
            address_metadata = address_metadata if isinstance(address_metadata, dict) else {}
            reference_rd = parse_ip_address(address_metadata.get('address')).route_domain
            return parsed, destination_address, address_metadata.get('mask'), reference_rd

        segments = reference['use'].split('/')[1:]
        parsed = parse_ip_address(resolver.get(reference['use'])['virtualAddress'])
        destination_address = mcp_path(segments[0], 'Shared' if segments[0] == 'Common' else None, segments[2])
        return parsed, destination_address, None, ''

    @staticmethod
    def _destination(tenant_id, destination_address, destination_ip, route_domain, port) -> str:
        """
        The virtual's destination: /partition/address:port, with '.' before the port
        for IPv6 and wildcard addresses spelled any/any6.
        """
        delimiter = '.' if ':' in destination_address else ':'
        if route_domain and '%' not in destination_ip and not destination_ip.startswith('/'):
            destination_ip = f"{destination_ip}{route_domain}"
        if '%' in destination_ip:
            # a route domain suffix only resolves through the address, not the object name
            delimiter = '.' if ':' in destination_ip or 'any6' in destination_ip else ':'
            if destination_ip.startswith('/'):
                destination = f"{destination_ip}{delimiter}{port}"
            else:
                destination = f"/{tenant_id}/{destination_ip}{delimiter}{port}"
        else:
            destination = f"{destination_address}{delimiter}{port}"

        if '/0.0.0.0' in destination:
            return destination.replace('/0.0.0.0', '/any', 1)
        if IPV6_WILDCARD_DESTINATION.search(destination):
            return destination.replace('::', 'any6', 1)
        return destination

    def _traffic_matching(self, ctx, item, destination_ip, mask, route_domain, port_list, address_list, source_list,
                          path) -> ConfigObject:
        parsed_source = parse_ip_address(item['source'])
        criteria = {
            'protocol': item.get('layer4', 'tcp'),
            'destinationAddressInline': f"{destination_ip.split('%')[0]}/{mask}",
            'destinationAddressList': bigip_path_from_src(address_list),
            'destinationPortList': bigip_path_from_src(port_list),
            'sourceAddressList': bigip_path_from_src(source_list),
            'sourceAddressInline': f"{parsed_source.ip}/{parsed_source.netmask}",
            'routeDomain': f"/Common/{route_domain.split('%')[1]}" if route_domain else 'any',
        }
        return self.render(ctx, criteria, path, 'ltm traffic-matching-criteria', TRAFFIC_MATCHING_PROPERTIES)


def _internal(item: Dict[str, Any]) -> Dict[str, Any]:
    """Internal virtuals match 0.0.0.0:any and carry the ICAP profile"""
    if item.get('virtualType') == 'internal':
        item['internal'] = {}
        item['destination'] = '0.0.0.0:any'
        item['virtualAddresses'] = ['0.0.0.0']
        add_profile(item, 'profileICAP')
    return item


def _tcp_profile_reference(value: Any) -> Any:
    """Built-in TCP profile names map to the f5-tcp-* profiles"""
    value = value or 'normal'
    if isinstance(value, str):
        return {'bigip': f"/Common/f5-tcp-{value.replace('normal', 'progressive')}"}
    return value


class ServiceTCPTranslator(ServiceCoreTranslator):
    """Service_TCP: a TCP profile (optionally split client/server side) and TCP-borne application profiles"""
    declared_class = 'Service_TCP'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        original = item.get('profileTCP') or 'normal'
        item['profileTCP'] = _tcp_profile_reference(item.get('profileTCP'))
        if 'use' in item['profileTCP'] or 'bigip' in item['profileTCP']:
            add_profile(item, 'profileTCP', 'all')
        if isinstance(original, dict) and 'ingress' in original:
            item['profileTCP'] = _tcp_profile_reference(original['ingress'])
            add_profile(item, 'profileTCP', 'clientside')
        if isinstance(original, dict) and 'egress' in original:
            item['profileTCP'] = _tcp_profile_reference(original['egress'])
            add_profile(item, 'profileTCP', 'serverside')

        for key, context in TCP_PROFILE_KEYS:
            add_profile(item, key, context)

        if item.get('mqttEnabled'):
            item['mqttEnabled'] = {'bigip': '/Common/mqtt'}
            add_profile(item, 'mqttEnabled')
        else:
            item.pop('mqttEnabled', None)

        _internal(item)
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class ServiceHTTPTranslator(ServiceTCPTranslator):
    """
    Service_HTTP: the HTTP profile and everything that rides on it.

    Besides explicit profiles this adds the websocket and proxy-connect profiles an
    HTTP_Profile generates, the access profile companions, the websecurity profile and
    LTM policy for a WAF policy, and the bot defense profile a DOS_Profile generates.
    """
    declared_class = 'Service_HTTP'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        resolver = self.resolver(declaration)
        result = TranslationResult()

        if item.get('policyIAM') or item.get('profileAccess'):
            self._access(ctx, item, resolver)

        if item.get('policyWAF') not in (None, ''):
            result.extend(self._waf_policy(ctx, tenant_id, app_id, item_id, item, declaration))

        if item.get('profileHTTP') is None or isinstance(item.get('profileHTTP'), str):
            item['profileHTTP'] = {'bigip': '/Common/http'}
        if isinstance(item.get('profileHTTPCompression'), str):
            built_in = 'wan-optimized-compression' if item['profileHTTPCompression'] == 'wan' else 'httpcompression'
            item['profileHTTPCompression'] = {'bigip': f"/Common/{built_in}"}
        if isinstance(item.get('profileMultiplex'), str):
            item['profileMultiplex'] = {'bigip': '/Common/oneconnect'}
        if isinstance(item.get('profileHTTPAcceleration'), str):
            item['profileHTTPAcceleration'] = {'bigip': '/Common/webacceleration'}

        for key, context in HTTP_PROFILE_KEYS:
            add_profile(item, key, context)
        if ctx.at_least('14.1'):
            add_profile(item, 'profileApiProtection')
        if item.get('profileConnectivity'):
            item['profiles'].append({'name': '/Common/ppp', 'context': 'all'})

        if item['profileHTTP'].get('use'):
            self._http_profile_companions(item, resolver)

        profile_dos = bigip_path(item, 'profileDOS')
        if (ctx.at_least('14.1') and profile_dos and not item['profileDOS'].get('bigip')
                and not item.get('profileBotDefense') and ctx.provisioned('asm')):
            folder, name = posixpath.split(profile_dos)
            item['profiles'].append({'name': f"{folder}/f5_appsvcs_{name}_botDefense", 'context': 'all'})

        return result.extend(super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration))

    @staticmethod
    def _access(ctx, item, resolver):
        """Per-session access policies need the rba and websso profiles unless SSL Orchestrator made them"""
        pointer = None
        for key in ('policyIAM', 'profileAccess'):
            if item.get(key):
                add_profile(item, key)
                if isinstance(item[key], dict) and item[key].get('use'):
                    pointer = item[key]['use']

        if pointer is not None:
            needs_companions = not resolver.get(pointer).get('ssloCreated')
        else:
            bigip = None
            for key in ('policyIAM', 'profileAccess'):
                if isinstance(item.get(key), dict) and item[key].get('bigip'):
                    bigip = item[key]['bigip']
                    break
            needs_companions = bigip is not None and ctx.inventory.get_access_profile_type(bigip) != 'ssl-orchestrator'

        if needs_companions:
            item['profiles'].append({'name': '/Common/rba', 'context': 'all'})
            item['profiles'].append({'name': '/Common/websso', 'context': 'all'})

        per_request = item.get('policyPerRequestAccess')
        if isinstance(per_request, dict) and isinstance(per_request.get('use'), str):
            segments = per_request['use'].split('/')
            if len(segments) == 4:
                per_request['use'] = f"/{segments[1]}/{segments[3]}"

    def _waf_policy(self, ctx, tenant_id, app_id, item_id, item, declaration) -> TranslationResult:
        """A WAF policy attaches through a generated LTM policy plus the websecurity profile"""
        from f5_as3_translator.translators.endpoint_policy import EndpointPolicyTranslator

        waf = bigip_path(item, 'policyWAF')
        item.setdefault('profiles', []).append({'name': '/Common/websecurity', 'context': 'all'})
        policy = {
            'rules': [{'name': 'default', 'actions': [{'type': 'waf', 'policy': {'bigip': waf}}]}],
            'strategy': 'first-match',
        }
        policy_name = f"_WAF__{app_id}" if item_id == 'serviceMain' else f"_WAF_{item_id}"
        item['policies'] = item.get('policies') or []
        item['policies'].append(mcp_path(tenant_id, app_id, policy_name))
        return EndpointPolicyTranslator()._do_translate(ctx, tenant_id, app_id, policy_name, policy, declaration)

    @staticmethod
    def _http_profile_companions(item, resolver):
        """Websocket and proxy-connect profiles generated alongside a declared HTTP_Profile"""
        segments = item['profileHTTP']['use'].lstrip('/').split('/')
        http_profile = resolver.get(item['profileHTTP']['use'])
        folder = f"/{segments[0]}/{segments[1]}"
        if not item.get('profileWebSocket'):
            if http_profile.get('profileWebSocket'):
                item['profileWebSocket'] = http_profile['profileWebSocket']
                add_profile(item, 'profileWebSocket')
            elif http_profile.get('webSocketsEnabled'):
                name = f"{folder}/f5_appsvcs_{http_profile.get('webSocketMasking', 'unmask')}"
                item['profiles'].append({'name': name, 'context': 'all'})
        if http_profile.get('proxyConnectEnabled'):
            item['profiles'].append({'name': f"{folder}/f5_appsvcs_{segments[2]}_proxyConnect", 'context': 'all'})


class ServiceHTTPSTranslator(ServiceHTTPTranslator):
    """Service_HTTPS: Service_HTTP plus an optional port 80 redirect virtual at <item>-Redirect-"""
    declared_class = 'Service_HTTPS'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        redirect = {
            'class': 'Service_HTTP',
            'addressStatus': True,
            'enable': item.get('enable', True) and item.get('redirect80', True),
            'layer4': 'tcp',
            'iRules': [{'bigip': '/Common/_sys_https_redirect'}],
            'maxConnections': 0,
            'rateLimit': item.get('rateLimit'),
            'nat64Enabled': False,
            'profileTCP': copy.deepcopy(item.get('profileTCP')),
            'serviceDownImmediateAction': 'none',
            'translateClientPort': False,
            'translateServerAddress': True,
            'translateServerPort': True,
            'virtualAddresses': copy.deepcopy(item.get('virtualAddresses')),
            'virtualPort': 80,
            'shareAddresses': item.get('shareAddresses'),
            'allowVlans': copy.deepcopy(item.get('allowVlans')),
            'rejectVlans': copy.deepcopy(item.get('rejectVlans')),
            'adminState': item.get('adminState', 'enable'),
        }
        redirect = {key: value for key, value in redirect.items() if value is not None}

        http2 = item.get('profileHTTP2')
        if isinstance(http2, str):
            item['profileHTTP2'] = http2 = {'bigip': '/Common/http2'}
        if isinstance(http2, dict):
            if http2.get('use') or http2.get('bigip'):
                add_profile(item, 'profileHTTP2', 'all')
            if http2.get('ingress'):
                item['profileHTTP2'] = http2['ingress']
                add_profile(item, 'profileHTTP2', 'clientside')
            if http2.get('egress'):
                item['profileHTTP2'] = http2['egress']
                add_profile(item, 'profileHTTP2', 'serverside')

        result = super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)
        return result.extend(
            super()._do_translate(ctx, tenant_id, app_id, f"{item_id}{REDIRECT_SUFFIX}", redirect, declaration))


class ServiceUDPTranslator(ServiceCoreTranslator):
    declared_class = 'Service_UDP'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('profileUDP') is None or isinstance(item.get('profileUDP'), str):
            item['profileUDP'] = {'bigip': '/Common/udp'}
        for key in ('profileUDP', 'profileRADIUS', 'profileSIP', 'profileTFTP'):
            add_profile(item, key)
        _internal(item)
        if item.get('virtualType') == 'stateless':
            item['stateless'] = {}
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class ServiceForwardingTranslator(ServiceCoreTranslator):
    """Service_Forwarding: ip or l2 forwarding over fastL4, its addresses answer neither ARP nor ICMP"""
    declared_class = 'Service_Forwarding'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('forwardingType') == 'ip':
            item['ip-forward'] = ' '
        if item.get('forwardingType') == 'l2':
            item['l2-forward'] = ' '
        if item.get('profileL4') is None or isinstance(item.get('profileL4'), str):
            item['profileL4'] = {'bigip': '/Common/fastL4'}
        add_profile(item, 'profileL4')
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class ServiceSCTPTranslator(ServiceCoreTranslator):
    declared_class = 'Service_SCTP'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('profileSCTP') is None or isinstance(item.get('profileSCTP'), str):
            item['profileSCTP'] = {'bigip': '/Common/sctp'}
        add_profile(item, 'profileSCTP')
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class ServiceL4Translator(ServiceCoreTranslator):
    declared_class = 'Service_L4'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('profileL4') is None or isinstance(item.get('profileL4'), str):
            item['profileL4'] = {'bigip': '/Common/fastL4'}
        for key in ('profileAnalyticsTcp', 'profileL4', 'profileFIX'):
            add_profile(item, key)
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class ServiceGenericTranslator(ServiceCoreTranslator):
    declared_class = 'Service_Generic'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        add_profile(item, 'profileAnalyticsTcp')
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)
