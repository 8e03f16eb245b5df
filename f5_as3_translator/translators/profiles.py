"""
Transport and application profiles that map onto a single appliance profile, plus
bandwidth control policies.

Timeouts declared as -1 mean "never" and 0 often means "immediately"; each command
spells those differently, see the per-class sentinel tables.
"""
import logging
from typing import Any, Dict

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import secret
from f5_as3_translator.paths import bigip_path, minimize_ip, mcp_path
from f5_as3_translator.translators.base import REMARK_OR_NONE, GenericTranslator, Translator
from f5_as3_translator.translators.service import PERSISTENCE_RENAMES

logger = logging.getLogger(__name__)

ENABLED = dict(truth='enabled', falsehood='disabled')
MAX_UINT32 = 4294967295

TCP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('abc', source='byteCounting', **ENABLED),
    Prop('ack-on-push', source='pushAcknowledgement', **ENABLED),
    Prop('close-wait-timeout', source='closeWaitTimeout'),
    Prop('congestion-control', source='congestionControl'),
    Prop('deferred-accept', source='deferredAccept', **ENABLED),
    Prop('delayed-acks', source='delayedACK', **ENABLED),
    Prop('early-retransmit', source='earlyRetransmit', **ENABLED),
    Prop('fin-wait-2-timeout', source='finWait2Timeout'),
    Prop('fin-wait-timeout', source='finWaitTimeout'),
    Prop('idle-timeout', source='idleTimeout'),
    Prop('initial-congestion-windowsize', source='initCwnd'),
    Prop('keep-alive-interval', source='keepAliveInterval'),
    Prop('md5-signature', source='md5SignatureEnabled', **ENABLED),
    Prop('md5-signature-passphrase', source='md5SignaturePassphrase'),
    Prop('minimum-rto', source='minimumRTO'),
    Prop('mptcp'),
    Prop('nagle'),
    Prop('proxy-buffer-high', source='proxyBufferHigh'),
    Prop('proxy-buffer-low', source='proxyBufferLow'),
    Prop('receive-window-size', source='receiveWindowSize'),
    Prop('send-buffer-size', source='sendBufferSize'),
    Prop('syn-rto-base', source='synRtoBase'),
    Prop('tcp-options', source='tcpOptions'),
    Prop('time-wait-timeout', source='timeWaitTimeout'),
    Prop('zero-window-timeout', source='zeroWindowTimeout'),
)

UDP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allow-no-payload', source='allowNoPayload', **ENABLED),
    Prop('buffer-max-bytes', source='bufferMaxBytes'),
    Prop('buffer-max-packets', source='bufferMaxPackets'),
    Prop('datagram-load-balancing', source='datagramLoadBalancing', **ENABLED),
    Prop('idle-timeout', source='idleTimeout'),
    Prop('ip-df-mode', source='ipDfMode'),
    Prop('ip-tos-to-client', source='ipTosToClient'),
    Prop('link-qos-to-client', source='linkQosToClient'),
    Prop('proxy-mss', source='proxyMSS', **ENABLED),
)

L4_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('client-timeout', source='clientTimeout'),
    Prop('explicit-flow-migration', source='explicitFlowMigration', **ENABLED),
    Prop('hardware-syn-cookie', source='hardwareSynCookie', **ENABLED),
    Prop('idle-timeout', source='idleTimeout'),
    Prop('ip-df-mode', source='ipDfMode'),
    Prop('ip-tos-to-client', source='ipTosToClient'),
    Prop('ip-tos-to-server', source='ipTosToServer'),
    Prop('keep-alive-interval', source='keepAliveInterval'),
    Prop('late-binding', source='lateBinding', **ENABLED),
    Prop('link-qos-to-client', source='linkQosToClient'),
    Prop('link-qos-to-server', source='linkQosToServer'),
    Prop('loose-close', source='looseClose', **ENABLED),
    Prop('loose-initialization', source='looseInitialization', **ENABLED),
    Prop('mss-override', source='maxSegmentSize'),
    Prop('pva-acceleration', source='pvaAcceleration'),
    Prop('reassemble-fragments', source='reassembleFragments', **ENABLED),
    Prop('reset-on-timeout', source='resetOnTimeout', **ENABLED),
    Prop('syn-cookie-enable', source='synCookieEnable', **ENABLED),
    Prop('tcp-close-timeout', source='tcpCloseTimeout'),
    Prop('tcp-handshake-timeout', source='tcpHandshakeTimeout'),
)

PERSIST_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('always-send', source='alwaysSend', **ENABLED),
    Prop('cookie-encryption', source='encrypt', truth='required', falsehood='disabled'),
    Prop('cookie-encryption-passphrase', source='passphrase'),
    Prop('cookie-name', source='cookieName'),
    Prop('expiration', source='ttl'),
    Prop('hash-algorithm', source='hashAlgorithm'),
    Prop('hash-buffer-limit', source='hashBufferLimit'),
    Prop('hash-end-pattern', source='hashEndPattern', quoted=True),
    Prop('hash-length', source='hashLength'),
    Prop('hash-offset', source='hashOffset'),
    Prop('hash-start-pattern', source='hashStartPattern', quoted=True),
    Prop('httponly', source='httpOnly', **ENABLED),
    Prop('mask', source='addressMask'),
    Prop('match-across-pools', source='matchAcrossPools', **ENABLED),
    Prop('match-across-services', source='matchAcrossServices', **ENABLED),
    Prop('match-across-virtuals', source='matchAcrossVirtualServers', **ENABLED),
    Prop('method', source='cookieMethod'),
    Prop('mirror', **ENABLED),
    Prop('override-connection-limit', source='overrideConnectionLimit', **ENABLED),
    Prop('rule', source='iRule'),
    Prop('secure', **ENABLED),
    Prop('sip-info', source='sipInfoField'),
    Prop('timeout', source='duration'),
)

# Properties each persistence command accepts, anything else is dropped
PERSIST_COMMON = ('description', 'match-across-pools', 'match-across-services', 'match-across-virtuals', 'mirror',
                  'override-connection-limit', 'timeout')
PERSIST_TYPE_PROPERTIES = {
    'cookie': PERSIST_COMMON + ('always-send', 'cookie-name', 'method', 'expiration', 'httponly', 'secure'),
    'hash': PERSIST_COMMON + ('hash-algorithm', 'hash-length', 'hash-buffer-limit', 'hash-offset',
                              'hash-start-pattern', 'hash-end-pattern', 'rule'),
    'msrdp': PERSIST_COMMON + ('has-session-dir',),
    'sip': PERSIST_COMMON + ('sip-info',),
    'ssl': PERSIST_COMMON,
    'universal': PERSIST_COMMON + ('rule',),
    'dest-addr': PERSIST_COMMON + ('hash-algorithm', 'mask'),
    'source-addr': PERSIST_COMMON + ('hash-algorithm', 'mask'),
}

STREAM_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('chunk-size', source='chunkSize'),
    Prop('chunking', source='chunkingEnabled', **ENABLED),
    Prop('defaults-from', source='parentProfile'),
    Prop('source', quoted=True),
    Prop('target', quoted=True),
)

FTP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allow-active-mode', source='allowActiveMode', **ENABLED),
    Prop('allow-ftps', source='allowFtps', **ENABLED),
    Prop('enforce-tls-session-reuse', source='enforceTlsSesionReuseEnabled', **ENABLED),
    Prop('inherit-parent-profile', source='inheritParentProfileEnabled', **ENABLED),
    Prop('inherit-vlan-list', source='inheritVlanListEnabled', **ENABLED),
    Prop('log-profile', source='logProfile', default='none'),
    Prop('log-publisher', source='logPublisher', default='none'),
    Prop('port'),
    Prop('security', source='securityEnabled', **ENABLED),
    Prop('translate-extended', source='translateExtended', **ENABLED),
)

TFTP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('idle-timeout', source='idleTimeout'),
    Prop('log-profile', source='logProfile', default='none'),
    Prop('log-publisher', source='logPublisher', default='none'),
)

STATISTICS_PROPERTIES = (REMARK_OR_NONE,) + tuple(Prop(f"field{index}", default='none') for index in range(1, 33))

REQUEST_LOG_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('proxy-close-on-error', source='proxyCloseOnErrorEnabled', truth='yes', falsehood='no'),
    Prop('proxy-respond-on-logging-error', source='proxyRespondOnLoggingErrorEnabled', truth='yes',
         falsehood='no'),
    Prop('proxy-response', source='proxyResponse', quoted=True),
    Prop('request-error-logging', source='requestErrorLoggingEnabled', **ENABLED),
    Prop('request-error-pool', source='requestErrorPool'),
    Prop('request-error-protocol', source='requestErrorProtocol'),
    Prop('request-error-template', source='requestErrorTemplate', quoted=True),
    Prop('request-log-error-pool', source='requestErrorPool'),
    Prop('request-logging', source='requestEnabled', **ENABLED),
    Prop('request-log-pool', source='requestPool'),
    Prop('request-log-protocol', source='requestProtocol'),
    Prop('request-log-template', source='requestTemplate', quoted=True),
    Prop('response-error-logging', source='responseErrorLoggingEnabled', **ENABLED),
    Prop('response-log-error-pool', source='responseErrorPool'),
    Prop('response-log-error-template', source='responseErrorTemplate', quoted=True),
    Prop('response-logging', source='responseEnabled', **ENABLED),
    Prop('response-log-pool', source='responsePool'),
    Prop('response-log-protocol', source='responseProtocol'),
    Prop('response-log-template', source='responseTemplate', quoted=True),
)

ICAP_PROPERTIES = (
    Prop('from', source='fromHeader', quoted=True),
    Prop('host', source='hostHeader', quoted=True),
    Prop('preview-length', source='previewLength'),
    Prop('referer', source='refererHeader', quoted=True),
    Prop('uri', quoted=True),
    Prop('user-agent', source='userAgentHeader', quoted=True),
)

ADAPT_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allow-http-10', source='allowHTTP10', truth='yes', falsehood='no'),
    Prop('enabled', source='enableHttpAdaptation', truth='yes', falsehood='no'),
    Prop('internal-virtual', source='internalService'),
    Prop('preview-size', source='previewSize'),
    Prop('service-down-action', source='serviceDownAction'),
    Prop('timeout'),
)


CAPTURE_FILTER_PROPERTIES = (
    Prop('captured-protocols', source='capturedProtocols'),
    Prop('captured-ready-for-js-injection', source='capturedReadyForJsInjection', **ENABLED),
    Prop('client-ips', source='clientIps', extend='set'),
    Prop('client-port', source='clientPort'),
    Prop('dos-activity', source='dosActivity'),
    Prop('methods', extend='set'),
    Prop('node-addresses', source='nodeAddresses', extend='set'),
    Prop('request-captured-parts', source='requestCapturedParts'),
    Prop('request-content-filter-search-part', source='requestContentFilterSearchPart'),
    Prop('request-content-filter-search-string', source='requestContentFilterSearchString', quoted=True),
    Prop('response-captured-parts', source='responseCapturedParts'),
    Prop('response-codes', source='responseCodes', extend='set'),
    Prop('response-content-filter-search-part', source='responseContentFilterSearchPart'),
    Prop('response-content-filter-search-string', source='responseContentFilterSearchString', quoted=True),
    Prop('url-filter-type', source='urlFilterType'),
    Prop('url-path-prefixes', source='urlPathPrefixes', extend='set', quoted=True),
    Prop('user-agent-substrings', source='userAgentSubstrings'),
    Prop('virtual-servers', source='virtualServers', extend='set'),
)

ANALYTICS_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('captured-traffic-external-logging', source='capturedTrafficExternalLogging', **ENABLED),
    Prop('captured-traffic-internal-logging', source='capturedTrafficInternalLogging', **ENABLED),
    Prop('collect-client-side-statistics', source='collectClientSideStatistics', **ENABLED),
    Prop('collect-geo', source='collectGeo', **ENABLED),
    Prop('collect-ip', source='collectIp', **ENABLED),
    Prop('collect-max-tps-and-throughput', source='collectMaxTpsAndThroughput', **ENABLED),
    Prop('collect-methods', source='collectMethod', **ENABLED),
    Prop('collect-os-and-browser', source='collectOsAndBrowser', **ENABLED),
    Prop('collect-page-load-time', source='collectPageLoadTime', **ENABLED),
    Prop('collect-response-codes', source='collectResponseCode', **ENABLED),
    Prop('collect-subnets', source='collectSubnet', **ENABLED),
    Prop('collect-url', source='collectUrl', **ENABLED),
    Prop('collect-user-agent', source='collectUserAgent', **ENABLED),
    Prop('collect-user-sessions', source='collectUserSession', **ENABLED),
    Prop('collected-stats-external-logging', source='collectedStatsExternalLogging', **ENABLED),
    Prop('collected-stats-internal-logging', source='collectedStatsInternalLogging', **ENABLED),
    Prop('countries-for-stat-collection', source='countriesForStatCollection'),
    Prop('external-logging-publisher', source='externalLoggingPublisher', default='none'),
    Prop('notification-by-email', source='notificationByEmail', **ENABLED),
    Prop('notification-by-snmp', source='notificationBySnmp', **ENABLED),
    Prop('notification-by-syslog', source='notificationBySyslog', **ENABLED),
    Prop('notification-email-addresses', source='notificationEmailAddresses'),
    Prop('publish-irule-statistics', source='publishIruleStatistics', **ENABLED),
    Prop('sampling-rate', source='samplingRate'),
    Prop('session-cookie-security', source='sessionCookieSecurity'),
    Prop('session-timeout-minutes', source='sessionTimeoutMinutes'),
    Prop('subnets-for-stat-collection', source='subnetsForStatCollection'),
    Prop('traffic-capture', source='captureFilter', extend='named', sub=CAPTURE_FILTER_PROPERTIES),
    Prop('urls-for-stat-collection', source='urlsForStatCollection'),
)

# Collections tmsh would read as content when sent empty alongside their disabled switch
ANALYTICS_COLLECTIONS = (
    ('collect-geo', 'countries-for-stat-collection'),
    ('collect-subnets', 'subnets-for-stat-collection'),
    ('collect-url', 'urls-for-stat-collection'),
)

HTML_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('content-detection', source='contentDetectionEnabled', **ENABLED),
    Prop('content-selection', source='contentSelection', extend='set', quoted=True),
    Prop('rules', extend='set'),
)

REWRITE_HOST_PROPERTIES = (
    Prop('host'),
    Prop('path'),
    Prop('port'),
    Prop('scheme'),
)

REWRITE_COOKIE_PROPERTIES = (
    Prop('domain'),
    Prop('path'),
)

REWRITE_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('bypass-list', source='bypassList', extend='set', quoted=True),
    Prop('client-caching-type', source='clientCachingType'),
    Prop('defaults-from', source='defaultsFrom'),
    Prop('java-ca-file', source='javaCaFile', default='/Common/ca-bundle.crt'),
    Prop('java-crl', source='javaCrl', default='none'),
    Prop('java-sign-key', source='javaSignKey'),
    Prop('java-sign-key-passphrase-encrypted', source='javaSignKeyPassphrase'),
    Prop('java-signer', source='certificate'),
    Prop('location-specific', source='locationSpecificEnabled', truth='true', falsehood='false'),
    Prop('request', source='requestSettings', extend='object', sub=(
        Prop('insert-xfwd-for', source='insertXforwardedForEnabled', **ENABLED),
        Prop('insert-xfwd-host', source='insertXforwardedHostEnabled', **ENABLED),
        Prop('insert-xfwd-protocol', source='insertXforwardedProtoEnabled', **ENABLED),
        Prop('rewrite-headers', source='rewriteHeadersEnabled', **ENABLED),
    )),
    Prop('response', source='responseSettings', extend='object', sub=(
        Prop('rewrite-content', source='rewriteContentEnabled', **ENABLED),
        Prop('rewrite-headers', source='rewriteHeadersEnabled', **ENABLED),
    )),
    Prop('rewrite-list', source='rewriteList', extend='set', quoted=True),
    Prop('rewrite-mode', source='rewriteMode'),
    Prop('set-cookie-rules', source='setCookieRules', extend='objarray', sub=(
        Prop('client', extend='object', sub=REWRITE_COOKIE_PROPERTIES),
        Prop('server', extend='object', sub=REWRITE_COOKIE_PROPERTIES),
    )),
    Prop('split-tunneling', source='splitTunnelingEnabled', truth='true', falsehood='false'),
    Prop('uri-rules', source='uriRules', extend='objarray', sub=(
        Prop('type'),
        Prop('client', extend='object', sub=REWRITE_HOST_PROPERTIES),
        Prop('server', extend='object', sub=REWRITE_HOST_PROPERTIES),
    )),
)

BWC_CATEGORY_PROPERTIES = (
    Prop('ip-tos', source='markIP', default='pass-through'),
    Prop('link-qos', source='markL2', default='pass-through'),
    Prop('max-cat-rate', source='maxBandwidth'),
    Prop('max-cat-rate-percentage', source='maxCatRatePercentage'),
)

BWC_POLICY_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('categories', extend='objarray', sub=BWC_CATEGORY_PROPERTIES),
    Prop('dynamic', source='dynamicControlEnabled', **ENABLED),
    Prop('ip-tos', source='markIP', default='pass-through'),
    Prop('link-qos', source='markL2', default='pass-through'),
    Prop('log-period', source='logPeriod', default=2048),
    Prop('log-publisher', source='logPublisher'),
    Prop('logging', source='loggingEnabled', **ENABLED),
    Prop('max-rate', source='maxBandwidth'),
    Prop('max-user-pps', source='maxUserPPS', default=0),
    Prop('max-user-rate', source='maxUserBandwidth', default=0),
)

# Multipliers from a declared bandwidth unit to bits per second
BANDWIDTH_UNITS = {'bps': 1, 'Kbps': 10 ** 3, 'Mbps': 10 ** 6, 'Gbps': 10 ** 9}


def replace_sentinels(item: Dict[str, Any], sentinels: Dict[str, Dict[Any, Any]]) -> Dict[str, Any]:
    """
    Swap declared sentinel values for the command's own spelling.

    Args:
        item: Declared profile
        sentinels: {key: {declared value: rendered value}}
    """
    for key, mapping in sentinels.items():
        value = item.get(key)
        if not isinstance(value, bool) and value in mapping:
            item[key] = mapping[value]
    return item


def ttl_to_hour_min_sec(ttl: Any) -> str:
    """
    Cookie expiration in the appliance's [h:][m:]s form.

    Examples:
        ttl_to_hour_min_sec(3661) → '1:1:1'
        ttl_to_hour_min_sec(60) → '1:0'
        ttl_to_hour_min_sec(0) → '0'
    """
    hours, remainder = divmod(int(ttl or 0) % 86400, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{hours}:" if hours else ''
    if hours or minutes:
        text += f"{minutes}:"
    return f"{text}{seconds}"


class TCPProfileTranslator(Translator):
    """TCP_Profile → ltm profile tcp"""
    declared_class = 'TCP_Profile'
    command = 'ltm profile tcp'
    properties = TCP_PROPERTIES
    sentinels = {
        'closeWaitTimeout': {-1: MAX_UINT32},
        'finWaitTimeout': {-1: MAX_UINT32},
        'finWait2Timeout': {-1: MAX_UINT32},
        'idleTimeout': {-1: MAX_UINT32},
        'timeWaitTimeout': {-1: 'indefinite'},
        'zeroWindowTimeout': {-1: MAX_UINT32},
    }

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item.setdefault('ignore', {})
        item['remark'] = item.get('remark') or ''
        for key, keep in (('nagle', 'auto'), ('mptcp', 'passthrough')):
            # enable/disable become enabled/disabled
            if key in item and item[key] != keep:
                item[key] = f"{item[key]}d"
        if item.get('md5SignaturePassphrase') is not None:
            passphrase = item['md5SignaturePassphrase']
            item['md5SignaturePassphrase'] = secret(passphrase)
            if isinstance(passphrase, dict) and passphrase.get('ignoreChanges'):
                item['ignore']['md5SignaturePassphrase'] = item['md5SignaturePassphrase']
        replace_sentinels(item, self.sentinels)
        options = item.get('tcpOptions')
        if options is None:
            item['tcpOptions'] = 'none'
        else:
            item['tcpOptions'] = ' '.join(f"{{{option['option']} {option['when']}}}" for option in options)
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class UDPProfileTranslator(Translator):
    declared_class = 'UDP_Profile'
    command = 'ltm profile udp'
    properties = UDP_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        replace_sentinels(item, {'idleTimeout': {0: 'immediate', -1: 'indefinite'}})
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class L4ProfileTranslator(Translator):
    """L4_Profile → ltm profile fastl4"""
    declared_class = 'L4_Profile'
    command = 'ltm profile fastl4'
    properties = L4_PROPERTIES
    sentinels = {
        'clientTimeout': {-1: 86400},
        'idleTimeout': {-1: 'indefinite'},
        'maxSegmentSize': {-1: 9162},
        'tcpCloseTimeout': {-1: 'indefinite', 0: 'immediate'},
        'tcpHandshakeTimeout': {-1: 'indefinite', 0: 'immediate'},
    }

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        replace_sentinels(item, self.sentinels)
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class PersistTranslator(Translator):
    """
    Persist → ltm persistence <type>.

    The command depends on the persistence method and each one accepts a different
    property subset, see PERSIST_TYPE_PROPERTIES.
    """
    declared_class = 'Persist'
    command = 'ltm persistence'
    properties = PERSIST_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item.setdefault('ignore', {})
        item['ttl'] = ttl_to_hour_min_sec(item.get('ttl'))
        if item.get('duration') == 0:
            item['duration'] = 'indefinite'
        item['remark'] = item.get('remark') or ''
        item['addressMask'] = minimize_ip(item.get('addressMask')) or ''
        item['iRule'] = item.get('iRule', '')
        if item.get('passphrase') is not None:
            passphrase = item['passphrase']
            item['passphrase'] = secret(passphrase)
            if isinstance(passphrase, dict) and passphrase.get('ignoreChanges'):
                item['ignore']['passphrase'] = item['passphrase']

        persist_type = item.get('persistenceMethod', '')
        for old, new in PERSISTENCE_RENAMES:
            persist_type = persist_type.replace(old, new)

        config = self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))
        allowed = PERSIST_TYPE_PROPERTIES.get(persist_type, PERSIST_COMMON)
        method = config.properties.get('method')
        if persist_type == 'cookie' and method == 'hash':
            allowed += ('hash-length', 'hash-offset')
            if item.get('hashCount') is not None:
                config.properties['hash-length'] = item['hashCount']
        elif persist_type == 'cookie' and method == 'insert':
            allowed += ('cookie-encryption', 'cookie-encryption-passphrase')
        config.properties = {key: value for key, value in config.properties.items() if key in allowed}
        config.command = f"{self.command} {persist_type}"
        return TranslationResult(configs=[config])


class StreamProfileTranslator(Translator):
    declared_class = 'Stream_Profile'
    command = 'ltm profile stream'
    properties = STREAM_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['source'] = item.get('source') or 'none'
        item['target'] = item.get('target') or 'none'
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class FTPProfileTranslator(Translator):
    declared_class = 'FTP_Profile'
    command = 'ltm profile ftp'
    properties = FTP_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['allowFtps'] = item.get('ftpsMode', 'disallow') != 'disallow'
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class TrafficLogProfileTranslator(Translator):
    """Traffic_Log_Profile → ltm profile request-log, request and response settings flattened"""
    declared_class = 'Traffic_Log_Profile'
    command = 'ltm profile request-log'
    properties = REQUEST_LOG_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        for group, keys in (('requestSettings', ('proxyResponse', 'requestErrorPool', 'requestErrorTemplate',
                                                 'requestPool', 'requestTemplate')),
                            ('responseSettings', ('responseErrorPool', 'responseErrorTemplate', 'responsePool',
                                                  'responseTemplate'))):
            settings = item.get(group) or {}
            item.update(settings)
            for key in keys:
                item[key] = settings.get(key) or 'none'
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class ICAPProfileTranslator(Translator):
    declared_class = 'ICAP_Profile'
    command = 'ltm profile icap'
    properties = ICAP_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        for key in ('uri', 'fromHeader', 'hostHeader', 'refererHeader', 'userAgentHeader'):
            item[key] = item.get(key) or 'none'
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class AdaptProfileTranslator(Translator):
    """
    Adapt_Profile → ltm profile request-adapt and/or response-adapt.

    request-and-response emits both, at <item>_request and <item>_response.
    """
    declared_class = 'Adapt_Profile'
    properties = ADAPT_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        configs = []
        item['internalService'] = item.get('internalService') or 'none'
        message_type = item.get('messageType', 'request')
        both = message_type == 'request-and-response'
        for direction in ('request', 'response'):
            if message_type in (direction, 'request-and-response'):
                name = f"{item_id}_{direction}" if both else item_id
                configs.append(self.render(ctx, item, mcp_path(tenant_id, app_id, name),
                                           f"ltm profile {direction}-adapt"))
        return TranslationResult(configs=configs)


def quoted_list(values) -> str:
    """'"a" "b"' form tmsh takes for a list property given as one string"""
    return '"' + '" "'.join(values) + '"'


class AnalyticsProfileTranslator(Translator):
    """
    Analytics_Profile → ltm profile analytics.

    The capture filter becomes the profile's single traffic-capture entry,
    capture-for-f5-appsvcs. Bare virtual server and node names in it are qualified
    with the item's application and tenant.
    """
    declared_class = 'Analytics_Profile'
    command = 'ltm profile analytics'
    properties = ANALYTICS_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['remark'] = item.get('remark') or ''
        item['notificationEmailAddresses'] = ' '.join(item.get('notificationEmailAddresses') or [])
        for key in ('countriesForStatCollection', 'subnetsForStatCollection', 'urlsForStatCollection'):
            if item.get(key):
                item[key] = quoted_list(item[key])

        capture = item.get('captureFilter')
        if capture:
            if capture.get('userAgentSubstrings'):
                capture['userAgentSubstrings'] = quoted_list(capture['userAgentSubstrings'])
            if capture.get('virtualServers'):
                capture['virtualServers'] = [name if '/' in name else mcp_path(tenant_id, app_id, name)
                                             for name in capture['virtualServers']]
            if capture.get('nodeAddresses'):
                capture['nodeAddresses'] = [name if '/' in name else mcp_path(tenant_id, None, name)
                                            for name in capture['nodeAddresses']]
            item['captureFilter'] = {'capture-for-f5-appsvcs': capture}

        config = self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))
        for switch, collection in ANALYTICS_COLLECTIONS:
            if config.properties.get(switch) == 'disabled':
                config.properties.pop(collection, None)
        return TranslationResult(configs=[config])


class RewriteProfileTranslator(Translator):
    """
    Rewrite_Profile → ltm profile rewrite.

    Without a certificate the Java applet signer falls back to the appliance's
    default certificate and key.
    """
    declared_class = 'Rewrite_Profile'
    command = 'ltm profile rewrite'
    properties = REWRITE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item.setdefault('ignore', {})
        item['defaultsFrom'] = '/Common/rewrite'
        certificate = bigip_path(item, 'certificate')
        if certificate:
            certificate = certificate[:-len('.crt')] if certificate.endswith('.crt') else certificate
            item['certificate'] = f"{certificate}.crt"
            item['javaSignKey'] = f"{certificate}.key"
        else:
            item['certificate'] = '/Common/default.crt'
            item['javaSignKey'] = '/Common/default.key'

        passphrase = item.get('javaSignKeyPassphrase')
        if passphrase:
            item['javaSignKeyPassphrase'] = secret(passphrase)
            if isinstance(passphrase, dict) and passphrase.get('ignoreChanges') is True:
                item['ignore']['javaSignKeyPassphrase'] = item['javaSignKeyPassphrase']

        for key in ('setCookieRules', 'uriRules'):
            for index, rule in enumerate(item.get(key) or []):
                rule['name'] = str(index)
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class BandwidthControlPolicyTranslator(Translator):
    """
    Bandwidth_Control_Policy → net bwc policy.

    Rates are declared with a unit and rendered in bits (or packets) per second. A
    category limited in percent carries max-cat-rate-percentage and a zero rate.
    """
    declared_class = 'Bandwidth_Control_Policy'
    command = 'net bwc policy'
    properties = BWC_POLICY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        for key, unit_key, default_unit in (('maxBandwidth', 'maxBandwidthUnit', 'Mbps'),
                                            ('maxUserBandwidth', 'maxUserBandwidthUnit', 'Mbps'),
                                            ('maxUserPPS', 'maxUserPPSUnit', 'Mpps')):
            if item.get(key) is not None:
                unit = item.get(unit_key, default_unit).replace('pps', 'bps')
                item[key] = item[key] * BANDWIDTH_UNITS[unit]
        item.setdefault('dynamicControlEnabled', False)
        item.setdefault('loggingEnabled', False)

        for category in item.get('categories') or []:
            if category.get('maxBandwidthUnit') == '%':
                category['maxCatRatePercentage'] = category.get('maxBandwidth')
                category['maxBandwidth'] = 0
            else:
                category['maxCatRatePercentage'] = 0
                category['maxBandwidth'] = category.get('maxBandwidth', 0) * BANDWIDTH_UNITS[
                    category.get('maxBandwidthUnit', 'Mbps')]
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


TFTP_PROFILE = GenericTranslator('TFTP_Profile', 'ltm profile tftp', TFTP_PROPERTIES)
STATISTICS_PROFILE = GenericTranslator('Statistics_Profile', 'ltm profile statistics', STATISTICS_PROPERTIES)
HTML_PROFILE = GenericTranslator('HTML_Profile', 'ltm profile html', HTML_PROPERTIES)
