"""
Network firewall, NAT and timer policies with their address and port lists.
"""
import logging
from typing import Any, Dict, List

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.paths import bigip_path_from_src, mcp_path
from f5_as3_translator.translators import service_discovery
from f5_as3_translator.translators.base import REMARK, REMARK_OR_NONE, GenericTranslator, Translator

logger = logging.getLogger(__name__)

ENABLED = dict(truth='enabled', falsehood='disabled')

ENDPOINT_PROPERTIES = (
    Prop('address-lists', source='addressLists', extend='set'),
    Prop('addresses', extend='set'),
    Prop('port-lists', source='portLists', extend='set'),
    Prop('ports', extend='set'),
    Prop('vlans', extend='set'),
)

RULE_PROPERTIES = (
    REMARK,
    Prop('action'),
    Prop('destination', extend='object', sub=ENDPOINT_PROPERTIES),
    Prop('ip-protocol', source='protocol'),
    Prop('irule', source='iRule'),
    Prop('irule-sample-rate', source='iRuleSampleRate'),
    Prop('log', source='loggingEnabled', truth='yes', falsehood='no'),
    Prop('source', extend='object', sub=ENDPOINT_PROPERTIES),
)

RULE_LIST_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('rules', extend='objarray', sub=RULE_PROPERTIES),
)

POLICY_RULE_PROPERTIES = RULE_PROPERTIES + (
    Prop('rule-list', source='ruleList'),
)

FIREWALL_POLICY_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('rules', extend='objarray', sub=POLICY_RULE_PROPERTIES),
)

ROUTE_DOMAIN_PROPERTIES = (
    Prop('fw-enforced-policy', source='fwEnforcedPolicy'),
)

ADDRESS_LIST_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('address-lists', source='addressLists', extend='set'),
    Prop('addresses', extend='set'),
    Prop('fqdns', extend='set'),
    Prop('geo', source='geo', extend='set'),
)

PORT_LIST_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('port-lists', source='portLists', extend='set'),
    Prop('ports', extend='set'),
)

NAT_RULE_PROPERTIES = (
    REMARK,
    Prop('destination', extend='object', sub=ENDPOINT_PROPERTIES),
    Prop('ip-protocol', source='protocol'),
    Prop('log-profile', source='securityLogProfile'),
    Prop('source', extend='object', sub=ENDPOINT_PROPERTIES),
    Prop('translation', extend='object', sub=(Prop('source'),)),
)

NAT_POLICY_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('rules', extend='objarray', sub=NAT_RULE_PROPERTIES),
)

NAT_SOURCE_TRANSLATION_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('addresses', extend='objarray'),
    Prop('client-connection-limit', source='clientConnectionLimit'),
    Prop('egress-interfaces', source='egressInterfaces', extend='set'),
    Prop('egress-interfaces-disabled', source='egressInterfacesDisabled'),
    Prop('egress-interfaces-enabled', source='egressInterfacesEnabled'),
    Prop('exclude-address-lists', source='excludeAddressLists', extend='objarray'),
    Prop('exclude-addresses', source='excludeAddresses', extend='objarray'),
    Prop('hairpin-mode', source='hairpinModeEnabled', **ENABLED),
    Prop('inbound-mode', source='inboundMode'),
    Prop('mapping', extend='object', sub=(Prop('mode'), Prop('timeout'))),
    Prop('pat-mode', source='patMode'),
    Prop('port-block-allocation', source='portBlockAllocation', extend='object', sub=(
        Prop('block-idle-timeout', source='blockIdleTimeout'),
        Prop('block-lifetime', source='blockLifetime'),
        Prop('block-size', source='blockSize'),
        Prop('client-block-limit', source='clientBlockLimit'),
        Prop('zombie-timeout', source='zombieTimeout'),
    )),
    Prop('ports', extend='objarray'),
    Prop('route-advertisement', source='routeAdvertisement', **ENABLED),
    Prop('type'),
)

TIMER_RULE_PROPERTIES = (
    Prop('description', quoted=True),
    Prop('destination-ports', source='destinationPorts', extend='objarray'),
    Prop('ip-protocol', source='protocol'),
    Prop('timers', extend='named', sub=(Prop('value'),)),
)

TIMER_POLICY_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('rules', extend='objarray', sub=TIMER_RULE_PROPERTIES),
)

# Dynamic PAT settings the appliance fills in when they are left out
DYNAMIC_PAT_DEFAULTS = {
    'clientConnectionLimit': 0,
    'hairpinModeEnabled': False,
    'inboundMode': 'none',
    'mapping': {'mode': 'address-pooling-paired', 'timeout': 300},
    'patMode': 'napt',
}

PORT_BLOCK_ALLOCATION_DEFAULTS = {
    'blockIdleTimeout': 3600,
    'blockLifetime': 0,
    'blockSize': 64,
    'clientBlockLimit': 1,
    'zombieTimeout': 0,
}


class FirewallPolicyTranslator(Translator):
    """
    Firewall_Policy → security firewall policy.

    Rules given as rule-list pointers become named rule-list references, and each
    route domain listed under routeDomainEnforcement gets the policy as its enforced
    firewall policy.
    """
    declared_class = 'Firewall_Policy'
    command = 'security firewall policy'
    properties = FIREWALL_POLICY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        rules = item.get('rules') or []
        for index, rule in enumerate(rules):
            if rule.get('use') or rule.get('bigip'):
                rule_list = bigip_path_from_src(rule)
                rules[index] = {'name': rule_list.split('/')[-1], 'ruleList': rule_list}

        path = mcp_path(tenant_id, app_id, item_id)
        result = TranslationResult(configs=[self.render(ctx, item, path)])
        for route_domain in item.get('routeDomainEnforcement') or []:
            result.configs.append(self.render(ctx, {'fwEnforcedPolicy': path}, route_domain['bigip'],
                                              'net route-domain', ROUTE_DOMAIN_PROPERTIES))
        return result


class FirewallAddressListTranslator(Translator):
    """
    Firewall_Address_List → security firewall address-list.

    Discovered entries are handed to discovery worker tasks, which then own the
    addresses property, so the address list ignores it.
    """
    declared_class = 'Firewall_Address_List'
    command = 'security firewall address-list'
    properties = ADDRESS_LIST_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        addresses = item.get('addresses')
        discovered: List[Dict[str, Any]] = []
        if isinstance(addresses, list):
            discovered = [address for address in addresses if isinstance(address, dict)]
            item['addresses'] = [address for address in addresses if not isinstance(address, dict)]

        config = self.render(ctx, item, path)
        result = TranslationResult(configs=[config])
        if not discovered:
            return result

        config.ignore.append('addresses')
        resources = [{'item': item, 'path': path}]
        definitions = []
        if item['addresses']:
            definitions.append({'addressDiscovery': 'static', 'serverAddresses': item['addresses']})
        definitions.extend(discovered)
        for definition in definitions:
            task = service_discovery.create_task(definition, tenant_id, resources)
            service_discovery.prepare_task_for_render(task)
            result.configs.append(self.render(ctx, task, mcp_path(tenant_id, None, task['id']),
                                              service_discovery.TASK_COMMAND, service_discovery.TASK_PROPERTIES))
        return result


class NATPolicyTranslator(Translator):
    declared_class = 'NAT_Policy'
    command = 'security nat policy'
    properties = NAT_POLICY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        for rule in item.get('rules') or []:
            if rule.get('sourceTranslation'):
                rule['translation'] = {'source': rule['sourceTranslation'].get('use')}
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class NATSourceTranslationTranslator(Translator):
    """
    NAT_Source_Translation → security nat source-translation.

    Dynamic PAT translations carry the appliance defaults explicitly so leaving a
    setting out of a later declaration restores it. Egress interfaces render as an
    allow list, a deny list, or an empty deny list when neither is declared.
    """
    declared_class = 'NAT_Source_Translation'
    command = 'security nat source-translation'
    properties = NAT_SOURCE_TRANSLATION_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('type') == 'dynamic-pat':
            for key, value in DYNAMIC_PAT_DEFAULTS.items():
                if not item.get(key):
                    item[key] = dict(value) if isinstance(value, dict) else value
            if item['patMode'] == 'pba' and not item.get('portBlockAllocation'):
                item['portBlockAllocation'] = dict(PORT_BLOCK_ALLOCATION_DEFAULTS)

        if item.get('addresses'):
            item['addresses'] = [{'name': address} for address in item['addresses']]
        if item.get('ports'):
            item['ports'] = [{'name': str(port)} for port in item['ports']]

        excluded = item.get('excludeAddresses')
        if isinstance(excluded, list):
            item['excludeAddresses'] = [{'name': address} for address in excluded if isinstance(address, str)]
            item['excludeAddressLists'] = [{'name': bigip_path_from_src(address)}
                                           for address in excluded if isinstance(address, dict)]

        if item.get('allowEgressInterfaces'):
            item['egressInterfaces'] = item['allowEgressInterfaces']
            item['egressInterfacesEnabled'] = ' '
        else:
            item['egressInterfaces'] = item.get('disallowEgressInterfaces') or []
            item['egressInterfacesDisabled'] = ' '
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class IdleTimeoutPolicyTranslator(Translator):
    """Idle_Timeout_Policy → net timer-policy, one flow-idle-timeout timer per rule"""
    declared_class = 'Idle_Timeout_Policy'
    command = 'net timer-policy'
    properties = TIMER_POLICY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        for rule in item.get('rules') or []:
            idle_timeout = rule.pop('idleTimeout', None)
            rule['timers'] = {} if idle_timeout is None else {'flow-idle-timeout': {'value': str(idle_timeout)}}
            if rule.get('remark'):
                rule['description'] = rule.pop('remark')
            if rule.get('destinationPorts'):
                rule['destinationPorts'] = [{'name': '0' if port == 'all-other' else str(port)}
                                            for port in rule['destinationPorts']]
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


FIREWALL_PORT_LIST = GenericTranslator('Firewall_Port_List', 'security firewall port-list', PORT_LIST_PROPERTIES)
FIREWALL_RULE_LIST = GenericTranslator('Firewall_Rule_List', 'security firewall rule-list', RULE_LIST_PROPERTIES)
NET_ADDRESS_LIST = GenericTranslator('Net_Address_List', 'net address-list', ADDRESS_LIST_PROPERTIES)
NET_PORT_LIST = GenericTranslator('Net_Port_List', 'net port-list', PORT_LIST_PROPERTIES)
