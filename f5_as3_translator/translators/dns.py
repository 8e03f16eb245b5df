"""
DNS profiles, caches, zones, nameservers and TSIG keys.

Caches are emitted under one of three commands picked by their type, and each
command accepts a different property subset, see DNS_CACHE_ALLOWED.
"""
from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import secret
from f5_as3_translator.paths import mcp_path
from f5_as3_translator.translators.base import REMARK_OR_NONE, GenericTranslator, Translator

YES_NO = dict(truth='yes', falsehood='no')

DNS_PROFILE_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('avr-dnsstat-sample-rate', source='statisticsSampleRate'),
    Prop('cache'),
    Prop('defaults-from', source='parentProfile', default='/Common/dns'),
    Prop('dns64', source='dns64Mode'),
    Prop('dns64-additional-section-rewrite', source='dns64AdditionalSectionRewrite'),
    Prop('dns64-prefix', source='dns64Prefix'),
    Prop('dns-security', source='securityProfile'),
    Prop('enable-cache', source='cacheEnabled', **YES_NO),
    Prop('enable-dns-express', source='dnsExpressEnabled', **YES_NO),
    Prop('enable-dns-firewall', source='securityEnabled', **YES_NO),
    Prop('enable-dnssec', source='dnssecEnabled', **YES_NO),
    Prop('enable-gtm', source='globalServerLoadBalancingEnabled', **YES_NO),
    Prop('enable-hardware-query-validation', source='hardwareQueryValidationEnabled', **YES_NO),
    Prop('enable-hardware-response-cache', source='hardwareResponseCacheEnabled', **YES_NO),
    Prop('enable-logging', source='loggingEnabled', **YES_NO),
    Prop('enable-rapid-response', source='rapidResponseEnabled', **YES_NO),
    Prop('log-profile', source='loggingProfile'),
    Prop('process-rd', source='recursionDesiredEnabled', **YES_NO),
    Prop('process-xfr', source='zoneTransferEnabled', **YES_NO),
    Prop('rapid-response-last-action', source='rapidResponseLastAction'),
    Prop('unhandled-query-action', source='unhandledQueryAction'),
    Prop('use-local-bind', source='localBindServerEnabled', **YES_NO),
)

LOCAL_ZONE_PROPERTIES = (
    Prop('type'),
    Prop('records', extend='set', quoted=True),
)

FORWARD_ZONE_PROPERTIES = (
    Prop('name'),
    Prop('nameservers', extend='set'),
)

DNS_CACHE_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allowed-query-time', source='allowedQueryTime'),
    Prop('answer-default-zones', source='answerDefaultZones', **YES_NO),
    Prop('forward-zones', source='forwardZones', extend='objarray', sub=FORWARD_ZONE_PROPERTIES),
    Prop('ignore-cd', source='ignoreChecking', **YES_NO),
    Prop('key-cache-size', source='keyCacheSize'),
    Prop('local-zones', source='localZones', extend='named', sub=LOCAL_ZONE_PROPERTIES),
    Prop('max-concurrent-queries', source='maxConcurrentQueries'),
    Prop('max-concurrent-tcp', source='maxConcurrentTcp'),
    Prop('max-concurrent-udp', source='maxConcurrentUdp'),
    Prop('msg-cache-size', source='messageCacheSize'),
    Prop('nameserver-cache-count', source='nameserverCacheCount'),
    Prop('prefetch-key', source='keyCachePrefetchEnabled', **YES_NO),
    Prop('route-domain', source='routeDomain'),
    Prop('rrset-cache-size', source='recordCacheSize'),
    Prop('rrset-rotate', source='recordRotationMethod'),
    Prop('trust-anchors', source='trustAnchors', extend='set', quoted=True),
    Prop('unwanted-query-reply-threshold', source='unwantedQueryReplyThreshold'),
)

# Properties each cache type accepts, anything else is dropped
_CACHE_TRANSPARENT = ('description', 'answer-default-zones', 'local-zones', 'msg-cache-size')
_CACHE_RESOLVER = _CACHE_TRANSPARENT + (
    'allowed-query-time', 'forward-zones', 'max-concurrent-queries', 'max-concurrent-tcp', 'max-concurrent-udp',
    'nameserver-cache-count', 'route-domain', 'rrset-cache-size', 'rrset-rotate', 'unwanted-query-reply-threshold')
DNS_CACHE_ALLOWED = {
    'transparent': _CACHE_TRANSPARENT,
    'resolver': _CACHE_RESOLVER,
    'validating-resolver': _CACHE_RESOLVER + ('ignore-cd', 'key-cache-size', 'prefetch-key', 'trust-anchors'),
}

DNS_LOGGING_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('enable-query-logging', source='logQueriesEnabled', **YES_NO),
    Prop('enable-response-logging', source='logResponsesEnabled', **YES_NO),
    Prop('include-complete-answer', source='includeCompleteAnswer', **YES_NO),
    Prop('include-query-id', source='includeQueryId', **YES_NO),
    Prop('include-source', source='includeSource', **YES_NO),
    Prop('include-timestamp', source='includeTimestamp', **YES_NO),
    Prop('include-view', source='includeView', **YES_NO),
    Prop('log-publisher', source='logPublisher'),
)

DNS_NAMESERVER_PROPERTIES = (
    Prop('address'),
    Prop('port'),
    Prop('route-domain', source='routeDomain', default='/Common/0'),
    Prop('tsig-key', source='tsigKey', default='none'),
)

DNS_TSIG_KEY_PROPERTIES = (
    Prop('algorithm'),
    Prop('secret'),
)

DNS_ZONE_PROPERTIES = (
    Prop('dns-express-allow-notify', source='dnsExpressAllowNotify', extend='set'),
    Prop('dns-express-enabled', source='dnsExpressEnabled', **YES_NO),
    Prop('dns-express-notify-action', source='dnsExpressNotifyAction'),
    Prop('dns-express-notify-tsig-verify', source='dnsExpressNotifyTsigVerify', **YES_NO),
    Prop('dns-express-server', source='dnsExpressServer', default='none'),
    Prop('response-policy', source='responsePolicyEnabled', **YES_NO),
    Prop('server-tsig-key', source='serverTsigKey', default='none'),
    Prop('transfer-clients', source='transferClients', extend='set'),
)


class DNSProfileTranslator(Translator):
    """DNS_Profile → ltm profile dns, logging switched off unless a logging profile is named"""
    declared_class = 'DNS_Profile'
    command = 'ltm profile dns'
    properties = DNS_PROFILE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['cache'] = item.get('cache') or 'none'
        item['securityProfile'] = item.get('securityProfile') or 'none'
        item['remark'] = item.get('remark') or ''
        if not item.get('loggingProfile'):
            item['loggingEnabled'] = False
            item['loggingProfile'] = 'none'
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class DNSCacheTranslator(Translator):
    """
    DNS_Cache → ltm dns cache <type>.

    localZones is keyed by zone name, forwardZones is an array of named zones with
    their nameservers. Both render as 'none' when absent.
    """
    declared_class = 'DNS_Cache'
    command = 'ltm dns cache'
    properties = DNS_CACHE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        cache_type = item.get('type', 'transparent')
        item['localZones'] = item.get('localZones') or 'none'
        item['forwardZones'] = item.get('forwardZones') or 'none'
        if isinstance(item.get('routeDomain'), int):
            item['routeDomain'] = f"/Common/{item['routeDomain']}"

        config = self.render(ctx, item, mcp_path(tenant_id, app_id, item_id), f"{self.command} {cache_type}")
        allowed = DNS_CACHE_ALLOWED.get(cache_type, _CACHE_TRANSPARENT)
        config.properties = {key: value for key, value in config.properties.items() if key in allowed}
        return TranslationResult(configs=[config])


class DNSTSIGKeyTranslator(Translator):
    declared_class = 'DNS_TSIG_Key'
    command = 'ltm dns tsig-key'
    properties = DNS_TSIG_KEY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item.setdefault('ignore', {})
        value = item.get('secret')
        if value is not None:
            item['secret'] = secret(value)
            if isinstance(value, dict) and value.get('ignoreChanges') is True:
                item['ignore']['secret'] = item['secret']
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class DNSZoneTranslator(Translator):
    """DNS_Zone → ltm dns zone, DNS Express settings flattened onto the zone"""
    declared_class = 'DNS_Zone'
    command = 'ltm dns zone'
    properties = DNS_ZONE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        express = item.get('dnsExpress')
        if express:
            item['dnsExpressEnabled'] = express.get('enabled')
            item['dnsExpressNotifyAction'] = express.get('notifyAction')
            item['dnsExpressNotifyTsigVerify'] = express.get('verifyNotifyTsig')
            item['dnsExpressServer'] = express.get('nameserver')
            item['dnsExpressAllowNotify'] = express.get('allowNotifyFrom')
        else:
            item['dnsExpressEnabled'] = True
            item['dnsExpressNotifyAction'] = 'consume'
            item['dnsExpressNotifyTsigVerify'] = True
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


DNS_LOGGING_PROFILE = GenericTranslator('DNS_Logging_Profile', 'ltm profile dns-logging', DNS_LOGGING_PROPERTIES)
DNS_NAMESERVER = GenericTranslator('DNS_Nameserver', 'ltm dns nameserver', DNS_NAMESERVER_PROPERTIES)
