"""
Security profiles: DOS, security logging, protocol inspection and the log publisher chain.

Each of these nests per-vector or per-check blocks. Blocks with nothing in them are
dropped from the rendered object rather than emitted empty, the appliance rejects or
rewrites empty blocks.
"""
import json
import logging
import re
from typing import Any, Dict, List

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import from_camel_case
from f5_as3_translator.paths import bigip_path, bigip_path_from_src, mcp_path
from f5_as3_translator.translators.base import REMARK_OR_NONE, Translator

logger = logging.getLogger(__name__)

ENABLED = dict(truth='enabled', falsehood='disabled')
YES_NO = dict(truth='yes', falsehood='no')
MAX_UINT32 = 4294967295
BOT_DEFENSE_VERSION = '14.1'

# Deprecated Security_Log_Profile and DOS_Profile keys and their replacements
DEPRECATED_ALIASES = {
    'blacklistedGeolocations': 'denylistedGeolocations',
    'whitelistedGeolocations': 'allowlistedGeolocations',
    'urlWhitelist': 'urlAllowlist',
    'autoBlacklistSettings': 'autoDenylistSettings',
}

DEFAULT_BOT_ALLOWLIST = (
    {'name': 'favicon_1', 'matchOrder': 1, 'url': '/favicon.ico'},
    {'name': 'apple_touch_1', 'matchOrder': 2, 'url': '/apple-touch-icon*.png'},
)

VECTOR_PROPERTIES = (
    Prop('allow-advertisement', source='allowAdvertisement', **ENABLED),
    Prop('auto-blacklisting', source='autoBlacklisting', **ENABLED),
    Prop('auto-threshold', source='autoThreshold'),
    Prop('bad-actor', source='badActor', **ENABLED),
    Prop('blacklist-category', source='blacklistCategory'),
    Prop('blacklist-detection-seconds', source='blacklistDetectionSeconds'),
    Prop('blacklist-duration', source='blacklistDuration'),
    Prop('ceiling', source='autoAttackCeiling'),
    Prop('default-internal-rate-limit', source='rateLimit'),
    Prop('detection-threshold-percent', source='rateIncreaseThreshold'),
    Prop('detection-threshold-pps', source='rateThreshold'),
    Prop('floor', source='autoAttackFloor'),
    Prop('per-source-ip-detection-pps', source='perSourceIpDetectionPps'),
    Prop('per-source-ip-limit-pps', source='perSourceIpLimitPps'),
    Prop('simulate-auto-threshold', source='simulateAutoThreshold', **ENABLED),
    Prop('state', source='thresholdMode'),
)

DOS_PROTOCOL_PROPERTIES = (
    Prop('dynamic-signatures', source='dynamicSignatures', extend='object',
         sub=(Prop('detection'), Prop('mitigation'), Prop('scrubbing-detection', source='scrubbingDetection'))),
    Prop('network-attack-vector', source='vectors', extend='objarray', sub=VECTOR_PROPERTIES),
)

DOS_APPLICATION_PROPERTIES = (
    Prop('bot-defense', source='botDefense', extend='object',
         sub=(Prop('mode'), Prop('block-suspicious-browsers', source='blockSuspiscousBrowsers', **ENABLED))),
    Prop('bot-signatures', source='botSignatures', extend='object',
         sub=(Prop('categories', extend='objarray', sub=(Prop('action'),)),
              Prop('check', source='checkingEnabled', **ENABLED))),
    Prop('captcha-response', source='captchaResponse', extend='object',
         sub=(Prop('first', extend='object', sub=(Prop('type'), Prop('body', quoted=True))),
              Prop('failure', extend='object', sub=(Prop('type'), Prop('body', quoted=True))))),
    Prop('geolocations', extend='objarray', sub=(Prop('black-listed', source='blackListed', truth='true'),
                                                  Prop('white-listed', source='whiteListed', truth='true'))),
    Prop('heavy-urls', source='heavyURLProtection', extend='object',
         sub=(Prop('automatic-detection', source='automaticDetectionEnabled', **ENABLED),
              Prop('exclude', source='excludeList', extend='set'),
              Prop('protection', source='detectionThreshold'),
              Prop('include', source='protectList', extend='objarray', sub=(Prop('threshold'),)))),
    Prop('rtbh-duration-sec', source='remoteTriggeredBlackHoleDuration', modules=('afm',)),
    Prop('rtbh-enable', source='rtbhEnable', modules=('afm',)),
    Prop('scrubbing-duration-sec', source='scrubbingDuration', modules=('afm',)),
    Prop('scrubbing-enable', source='scrubbingEnable', modules=('afm',)),
    Prop('single-page-application', source='singlePageApplicationEnabled', **ENABLED),
    Prop('stress-based', source='stressBasedDetection'),
    Prop('tps-based', source='rateBasedDetection'),
    Prop('trigger-irule', source='triggerIRule', **ENABLED),
)

DOS_PROFILE_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allowlist', source='allowlist', alt='whitelist'),
    Prop('application', extend='objarray', sub=DOS_APPLICATION_PROPERTIES),
    Prop('dos-network', source='network', extend='objarray', sub=DOS_PROTOCOL_PROPERTIES, modules=('afm',)),
    Prop('protocol-dns', source='protocolDNS', extend='objarray', sub=DOS_PROTOCOL_PROPERTIES, modules=('afm',)),
    Prop('protocol-sip', source='protocolSIP', extend='objarray', sub=DOS_PROTOCOL_PROPERTIES, modules=('afm',)),
    Prop('threshold-sensitivity', source='thresholdSensitivity'),
)

BOT_DEFENSE_PROPERTIES = (
    Prop('class-overrides', source='classOverrides', extend='objarray',
         sub=(Prop('verification', extend='object', sub=(Prop('action'),)),
              Prop('mitigation', extend='object', sub=(Prop('action'),)))),
    Prop('cross-domain-requests', source='crossDomainRequests'),
    Prop('dos-attack-strict-mitigation', source='dosMitigation'),
    Prop('enforcement-mode', source='enforcementMode'),
    Prop('external-domains', source='externalDomains', extend='set'),
    Prop('grace-period', source='gracePeriod'),
    Prop('mobile-detection', source='mobileDefense', extend='object',
         sub=(Prop('allow-android-rooted-device', source='allowAndroidRootedDevice', **ENABLED),
              Prop('allow-any-android-package', source='allowAnyAndroidPackage', **ENABLED),
              Prop('allow-any-ios-package', source='allowAnyIosPackage', **ENABLED),
              Prop('allow-emulators', source='allowEmulators', **ENABLED),
              Prop('allow-jailbroken-devices', source='allowJailbrokenDevices', **ENABLED),
              Prop('client-side-challenge-mode', source='clientSideChallengeMode'))),
    Prop('signature-category-overrides', source='signatureCategoryOverrides', extend='objarray',
         sub=(Prop('action'),)),
    Prop('signature-overrides', source='signatureOverrides', extend='objarray', sub=(Prop('action'),)),
    Prop('single-page-application', source='singlePageApplication', **ENABLED),
    Prop('site-domains', source='siteDomains', extend='set'),
    Prop('whitelist', extend='objarray', sub=(Prop('match-order', source='matchOrder'), Prop('url'))),
)

LOG_FORMAT_PROPERTIES = (
    Prop('field-list', source='fieldList', extend='set'),
    Prop('field-list-delimiter', source='fieldListDelimiter'),
    Prop('type'),
    Prop('user-defined', source='userDefined', quoted=True),
)

SECURITY_LOG_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('application', extend='objarray', sub=(
        Prop('filter', extend='objarray', sub=(Prop('values', extend='set'),)),
        Prop('format', extend='object', sub=(Prop('field-delimiter', source='fieldDelimiter'), Prop('type'),
                                             Prop('user-string', source='userString', quoted=True),
                                             Prop('fields', extend='set'))),
        Prop('guarantee-logging', source='guaranteeLoggingEnabled', **ENABLED),
        Prop('guarantee-response-logging', source='guaranteeResponseLoggingEnabled', **ENABLED),
        Prop('local-storage', source='localStorage', **ENABLED),
        Prop('logger-type', source='loggerType'),
        Prop('logic-operation', source='logic-operation'),
        Prop('maximum-entry-length', source='maxEntryLength'),
        Prop('maximum-header-size', source='maxHeaderSize'),
        Prop('maximum-query-size', source='maxQuerySize'),
        Prop('maximum-request-size', source='maxRequestSize'),
        Prop('protocol', source='protocol'),
        Prop('remote-storage', source='remoteStorage'),
        Prop('report-anomalies', source='reportAnomaliesEnabled', **ENABLED),
        Prop('response-logging', source='responseLogging'),
        Prop('servers', extend='objarray', sub=()),
    )),
    Prop('bot-defense', source='botDefense', extend='objarray', sub=(
        Prop('filter'),
        Prop('local-publisher', source='localPublisher'),
        Prop('remote-publisher', source='remotePublisher'),
        Prop('send-remote-challenge-failure-messages', source='sendRemoteChallengeFailureMessages', **ENABLED),
    )),
    Prop('dos-application', source='dosApplication', extend='objarray', sub=(
        Prop('local-publisher', source='localPublisher'),
        Prop('remote-publisher', source='remotePublisher'),
    )),
    Prop('dos-network-publisher', source='dosNetworkPublisher'),
    Prop('nat', extend='object', sub=(
        Prop('end-inbound-session', source='logEndInboundSession', **ENABLED),
        Prop('end-outbound-session', source='logEndOutboundSession'),
        Prop('errors', source='logErrors', **ENABLED),
        Prop('format'),
        Prop('log-publisher', source='publisher'),
        Prop('quota-exceeded', source='logQuotaExceeded', **ENABLED),
        Prop('rate-limit', source='rateLimit'),
        Prop('start-inbound-session', source='logStartInboundSession', **ENABLED),
        Prop('start-outbound-session', source='logStartOutboundSession'),
    )),
    Prop('network', extend='objarray', sub=(
        Prop('filter'),
        Prop('format', extend='object', sub=LOG_FORMAT_PROPERTIES),
        Prop('publisher'),
        Prop('rate-limit', source='rateLimit'),
    )),
    Prop('protocol-dns', source='protocolDns', extend='objarray', sub=(
        Prop('filter'),
        Prop('format', extend='object', sub=LOG_FORMAT_PROPERTIES),
        Prop('publisher'),
    )),
    Prop('protocol-dns-dos-publisher', source='protocolDnsDosPublisher'),
    Prop('protocol-sip', source='protocolSip', extend='objarray', sub=(
        Prop('filter'),
        Prop('format', extend='object', sub=LOG_FORMAT_PROPERTIES),
        Prop('publisher'),
    )),
    Prop('protocol-sip-dos-publisher', source='protocolSipDosPublisher'),
    Prop('protocol-transfer', source='protocolTransfer', extend='objarray', sub=(Prop('publisher'),)),
    Prop('ssh-proxy', source='sshProxy', extend='objarray', sub=(
        Prop('auth-fail', source='logAuthFail', **ENABLED),
        Prop('log-publisher', source='logPublisher'),
    )),
)

PROTOCOL_INSPECTION_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('auto-add-new-inspections', source='autoAddNewInspections', **ENABLED),
    Prop('auto-publish-suggestion', source='autoPublish', **ENABLED),
    Prop('collect-avr-stats', source='collectAvrStats', **ENABLED),
    Prop('enable-compliance-checks', source='complianceChecks', **ENABLED),
    Prop('enable-signature-checks', source='signatureChecks', **ENABLED),
    Prop('services', extend='objarray', sub=(
        Prop('name', source='type'),
        Prop('compliance', extend='objarray', sub=(Prop('name', source='check'), Prop('action'), Prop('log'),
                                                   Prop('value'))),
        Prop('ports', extend='objarray', sub=()),
        Prop('signature', extend='objarray', sub=(Prop('name', source='check'), Prop('action'), Prop('log'))),
    )),
)

LOG_PUBLISHER_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('destinations', extend='set'),
)

LOG_DESTINATION_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('address', source='address'),
    Prop('distribution'),
    Prop('forward-to', source='forwardTo'),
    Prop('format'),
    Prop('pool-name', source='poolName'),
    Prop('port'),
    Prop('protocol'),
    Prop('remote-high-speed-log', source='remoteHighSpeedLog'),
    Prop('remote-syslog-format', source='remoteSyslogFormat'),
    Prop('template-delete-delay', source='templateDeleteDelay'),
    Prop('template-retransmit-interval', source='templateRetransmitInterval'),
    Prop('transport-profile', source='transportProfile'),
)


def apply_aliases(value: Any) -> Any:
    """Rename deprecated keys anywhere inside value, a current key already present wins"""
    if isinstance(value, list):
        return [apply_aliases(element) for element in value]
    if not isinstance(value, dict):
        return value
    renamed = {}
    for key, sub_value in value.items():
        current = DEPRECATED_ALIASES.get(key)
        if current is not None:
            if current in value:
                continue
            logger.debug(f"Using {current} for deprecated {key}")
            key = current
        renamed[key] = apply_aliases(sub_value)
    return renamed


def max_to_infinite(source: Dict[str, Any], *keys: str) -> None:
    for key in keys:
        if source.get(key) == MAX_UINT32:
            source[key] = 'infinite'


class DOSProfileTranslator(Translator):
    """
    DOS_Profile → security dos profile.

    From 14.1 with ASM provisioned a bot defense profile f5_appsvcs_<item>_botDefense is
    emitted alongside for Service_HTTP to attach.
    """
    declared_class = 'DOS_Profile'
    command = 'security dos profile'
    properties = DOS_PROFILE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item = apply_aliases(item)
        bot_defense: Dict[str, Any] = {}
        application = item.get('application')

        if application:
            self._application(ctx, application, bot_defense)
            application['name'] = item_id
            item['application'] = [application]
        elif ctx.at_least(BOT_DEFENSE_VERSION):
            bot_defense.update(
                dosMitigation='enabled',
                enforcementMode='transparent',
                whitelist=[dict(entry) for entry in DEFAULT_BOT_ALLOWLIST],
                crossDomainRequests='allow-all',
                gracePeriod=300,
                singlePageApplication=False,
                mobileDefense={
                    'allowAndroidRootedDevice': False,
                    'allowAnyAndroidPackage': True,
                    'allowAnyIosPackage': True,
                    'allowEmulators': False,
                    'allowJailbrokenDevices': False,
                    'clientSideChallengeMode': 'pass',
                },
            )

        for key, vector_type in (('network', 'network'), ('protocolDNS', 'dns'), ('protocolSIP', 'sip')):
            if item.get(key):
                self._vectors(item[key].get('vectors') or [], vector_type)
                item[key]['name'] = item_id
                item[key] = [item[key]]

        configs = [self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))]
        if bot_defense and ctx.at_least(BOT_DEFENSE_VERSION) and ctx.provisioned('asm'):
            path = mcp_path(tenant_id, app_id, f"f5_appsvcs_{item_id}_botDefense")
            configs.append(self.render(ctx, bot_defense, path, 'security bot-defense profile',
                                       BOT_DEFENSE_PROPERTIES))
        return TranslationResult(configs=configs)

    @staticmethod
    def _application(ctx, application, bot_defense):
        captcha = application.setdefault('captchaResponse', {})
        for key in ('first', 'failure'):
            body = captcha.get(key)
            captcha[key] = {'type': 'default'} if body is None else {'type': 'custom', 'body': body}

        geolocations = [{'name': json.dumps(location), 'blackListed': True}
                        for location in application.pop('denylistedGeolocations', None) or []]
        geolocations += [{'name': json.dumps(location), 'whiteListed': True}
                         for location in application.pop('allowlistedGeolocations', None) or []]
        application['geolocations'] = geolocations

        heavy = application.get('heavyURLProtection') or {}
        for index, entry in enumerate(heavy.get('protectList') or []):
            entry['name'] = str(index)
            entry['threshold'] = entry.get('threshold') or 'auto'

        if ctx.provisioned('afm'):
            # the appliance resets disabled durations to 600 and 300
            if application.get('scrubbingDuration'):
                application['scrubbingEnable'] = 'enabled'
            else:
                application['scrubbingDuration'] = 600
                application['scrubbingEnable'] = 'disabled'
            if application.get('remoteTriggeredBlackHoleDuration'):
                application['rtbhEnable'] = 'enabled'
            else:
                application['remoteTriggeredBlackHoleDuration'] = 300
                application['rtbhEnable'] = 'disabled'

        bot = application.get('botDefense') or {}
        if bot.get('mode') == 'off':
            bot['mode'] = 'disabled'

        signatures = application.get('botSignatures') or {}
        mobile = application.get('mobileDefense') or {}
        if ctx.below(BOT_DEFENSE_VERSION):
            if signatures:
                signatures['categories'] = (
                    [{'name': bigip_path_from_src(category), 'action': 'block'}
                     for category in signatures.get('blockedCategories') or []]
                    + [{'name': bigip_path_from_src(category), 'action': 'report'}
                       for category in signatures.get('reportedCategories') or []])
            if mobile:
                DOSProfileTranslator._mobile_defense(mobile)
        else:
            DOSProfileTranslator._bot_defense(application, bot, mobile, signatures, bot_defense)

        for key in ('rateBasedDetection', 'stressBasedDetection'):
            detection = application.get(key)
            if isinstance(detection, dict):
                for group, prefix in (('sourceIP', 'ip'), ('deviceID', 'device'), ('geolocation', 'geo'),
                                      ('url', 'url'), ('site', 'site')):
                    for name, value in (detection.pop(group, None) or {}).items():
                        detection[f"{prefix}{name[:1].upper()}{name[1:]}"] = value
                application[key] = _appliance_block(detection)

    @staticmethod
    def _mobile_defense(mobile):
        mobile['allowAnyAndroidPackage'] = mobile.get('allowAndroidPublishers') is None
        mobile['allowAnyIosPackage'] = mobile.get('allowIosPackageNames') is None
        if mobile.get('clientSideChallengeMode') == 'challenge':
            mobile['clientSideChallengeMode'] = 'cshui'
        return mobile

    @staticmethod
    def _bot_defense(application, bot, mobile, signatures, bot_defense):
        bot_defense['singlePageApplication'] = application.get('singlePageApplicationEnabled', False)
        bot_defense['crossDomainRequests'] = bot.get('crossDomainRequests') or 'allow-all'
        bot_defense['gracePeriod'] = bot.get('gracePeriod') or 300
        if bot:
            browser = {'name': 'Browser', 'verification': {'action': 'none'}, 'mitigation': {'action': 'none'}}
            overrides: List[Dict[str, Any]] = []
            mode = bot.get('mode')
            if mode == 'always':
                browser['verification']['action'] = 'browser-verify-before-access'
                overrides.append({'name': 'Unknown', 'mitigation': {'action': 'tcp-reset'},
                                  'verification': {'action': 'none'}})
                bot_defense['dosMitigation'] = 'disabled'
            else:
                bot_defense['dosMitigation'] = 'enabled'

            if mode != 'disabled':
                bot_defense['enforcementMode'] = 'blocking'
                if bot.get('blockSuspiscousBrowsers'):
                    browser['verification']['action'] = 'browser-verify-before-access'
                    if bot.get('issueCaptchaChallenge'):
                        overrides.append({'name': '"Suspicious Browser"', 'mitigation': {'action': 'captcha'},
                                          'verification': {'action': 'none'}})
            else:
                bot_defense['enforcementMode'] = 'transparent'
            overrides.append(browser)
            bot_defense['classOverrides'] = overrides
            bot_defense['externalDomains'] = bot.get('externalDomains')
            bot_defense['siteDomains'] = bot.get('siteDomains')
            allowlist = [dict(entry) for entry in DEFAULT_BOT_ALLOWLIST]
            for index, url in enumerate(bot.get('urlAllowlist') or []):
                allowlist.append({'matchOrder': index + 3, 'name': f"url_{index}", 'url': url})
            bot_defense['whitelist'] = allowlist

        bot_defense['mobileDefense'] = DOSProfileTranslator._mobile_defense(dict(mobile))
        if signatures:
            bot_defense['signatureCategoryOverrides'] = (
                [{'name': bigip_path_from_src(category), 'action': 'block'}
                 for category in signatures.get('blockedCategories') or []]
                + [{'name': bigip_path_from_src(category), 'action': 'alarm'}
                   for category in signatures.get('reportedCategories') or []])
            bot_defense['signatureOverrides'] = [
                {'name': bigip_path_from_src(signature), 'action': 'alarm'}
                for signature in signatures.pop('disabledSignatures', None) or []]

    @staticmethod
    def _vectors(vectors, vector_type):
        for vector in vectors:
            if vector.get('type') == 'malformed':
                vector['type'] = f"{vector_type}-malformed"
            vector['name'] = vector.get('type')
            max_to_infinite(vector, 'autoAttackCeiling', 'autoAttackFloor', 'rateLimit', 'rateThreshold')
            vector['autoThreshold'] = 'disabled'

            settings = vector.get('badActorSettings')
            if settings:
                vector['badActor'] = settings.get('enabled')
                vector['perSourceIpDetectionPps'] = settings.get('sourceDetectionThreshold')
                vector['perSourceIpLimitPps'] = settings.get('sourceMitigationThreshold')
                max_to_infinite(vector, 'perSourceIpDetectionPps', 'perSourceIpLimitPps')

            settings = vector.get('autoDenylistSettings')
            if settings:
                vector['autoBlacklisting'] = settings.get('enabled')
                vector['blacklistCategory'] = bigip_path_from_src(settings.get('category'))
                vector['blacklistDetectionSeconds'] = settings.get('attackDetectionTime')
                vector['blacklistDuration'] = settings.get('categoryDuration')
                vector['allowAdvertisement'] = settings.get('externalAdvertisementEnabled')


def _extract(block: Dict[str, Any], predicate) -> Dict[str, Any]:
    """Move the keys matching predicate out of block into a new mapping"""
    extracted = {key: block[key] for key in list(block) if predicate(key)}
    for key in extracted:
        del block[key]
    return extracted


def _appliance_block(block: Dict[str, Any], strip: str = '') -> Dict[str, Any]:
    """
    Declared sub-block in appliance form: keys dashed with an optional prefix removed,
    booleans as enabled/disabled and lists as sets.

    Examples:
        _appliance_block({'rateLimitAclMatchAccept': 10}, 'rateLimit') → {'acl-match-accept': 10}
    """
    rendered = {}
    for key, value in block.items():
        if strip and key.startswith(strip) and key != strip:
            key = key[len(strip):]
            key = key[:1].lower() + key[1:]
        if isinstance(value, bool):
            value = 'enabled' if value else 'disabled'
        elif isinstance(value, dict):
            value = _appliance_block(value)
        elif isinstance(value, list):
            value = {str(element): {} for element in value}
        elif value is None:
            continue
        rendered[from_camel_case(key)] = value
    return rendered


def _log_format(block: Dict[str, Any], in_key: str = 'storageFormat', out_key: str = 'format') -> None:
    value = block.pop(in_key, None)
    if isinstance(value, str):
        block[out_key] = {'type': 'user-defined', 'userDefined': value}
    elif isinstance(value, dict):
        block[out_key] = {
            'type': 'field-list',
            'fieldList': [field.replace('-', '_') for field in value.get('fields') or []],
            'fieldListDelimiter': value.get('delimiter'),
        }
    else:
        block[out_key] = {'type': 'none'}


class SecurityLogProfileTranslator(Translator):
    """Security_Log_Profile → security log profile, one block per logged facility"""
    declared_class = 'Security_Log_Profile'
    command = 'security log profile'
    properties = SECURITY_LOG_PROPERTIES

    # storageFilter keys and the appliance filter they become
    APPLICATION_FILTERS = {
        'protocols': 'protocol',
        'responseCodes': 'response-code',
        'httpMethods': 'http-method',
        'loginResults': 'login-result',
    }

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item = apply_aliases(item)

        if item.get('application'):
            item['application'] = [self._application(item['application'], item_id)]
        if item.get('botDefense'):
            bot = item['botDefense']
            bot['filter'] = _appliance_block(_extract(bot, lambda key: key.startswith('log')))
            bot['name'] = item_id
            item['botDefense'] = [bot]
        if item.get('dosApplication'):
            item['dosApplication'] = [dict(item['dosApplication'], name=item_id)]
        if item.get('dosNetwork'):
            item['dosNetworkPublisher'] = item['dosNetwork'].get('publisher')
        if item.get('nat'):
            self._nat(item['nat'])
        if item.get('network'):
            network = item['network']
            _log_format(network)
            network['filter'] = _appliance_block(
                _extract(network, lambda key: key.startswith('log') or key == 'alwaysLogRegion'))
            network['rateLimit'] = _appliance_block(
                _extract(network, lambda key: key.startswith('rateLimit')), 'rateLimit')
            network['name'] = item_id
            item['network'] = [network]
        for key in ('protocolDns', 'protocolSip'):
            if item.get(key):
                block = item[key]
                block['filter'] = _appliance_block(_extract(block, lambda name: name.startswith('log')))
                _log_format(block)
                block['name'] = item_id
                item[key] = [block]
        for key in ('protocolDnsDos', 'protocolSipDos'):
            if item.get(key):
                item[f"{key}Publisher"] = item[key].get('publisher')
        if item.get('protocolTransfer'):
            item['protocolTransfer'] = [dict(item['protocolTransfer'], name=item_id)]
        if item.get('sshProxy'):
            ssh = dict(item['sshProxy'], name=item_id)
            ssh['logPublisher'] = ssh.pop('publisher', None)
            item['sshProxy'] = [ssh]

        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))])

    def _application(self, application, item_id):
        storage_filter = application.get('storageFilter') or {}
        application['logic-operation'] = storage_filter.get('logicalOperation')
        filters = [{'name': 'request-type', 'values': [storage_filter.get('requestType')]}]
        for key, value in storage_filter.items():
            if key in ('logicalOperation', 'requestType'):
                continue
            if key == 'requestContains':
                filters.append({'name': value.get('searchIn'), 'values': [value.get('value')]})
            else:
                filters.append({'name': self.APPLICATION_FILTERS.get(key, key),
                                'values': value if isinstance(value, list) else [value]})
        application['filter'] = filters

        storage_format = application.get('storageFormat')
        if isinstance(storage_format, str):
            application['format'] = {'type': 'user-defined', 'userString': storage_format}
        elif isinstance(storage_format, dict):
            application['format'] = {'type': 'predefined', 'fieldDelimiter': storage_format.get('delimiter'),
                                     'fields': list(storage_format.get('fields') or [])}
        else:
            application['format'] = {'type': 'predefined', 'fieldDelimiter': ','}

        for key in ('maxHeaderSize', 'maxQuerySize', 'maxRequestSize'):
            application[key] = str(application[key]) if application.get(key) else 'any'

        if application.get('remoteStorage'):
            application['localStorage'] = False
            application['loggerType'] = 'remote'
        else:
            application['remoteStorage'] = 'none'
            application['loggerType'] = 'local'
            application['localStorage'] = True

        servers = []
        for server in application.get('servers') or []:
            delimiter = '.' if ':' in server['address'] else ':'
            servers.append({'name': f"{server['address']}{delimiter}{server['port']}"})
        if servers:
            application['servers'] = servers
        application['name'] = item_id
        return application

    @staticmethod
    def _nat(nat):
        nat['rateLimit'] = _appliance_block(_extract(nat, lambda key: key.startswith('rateLimit')), 'rateLimit')
        formats = _extract(nat, lambda key: key.startswith('format'))
        nat['format'] = {}
        for key, value in formats.items():
            holder = {'in': value}
            _log_format(holder, 'in', 'out')
            nat['format'].update(_appliance_block({key: holder['out']}, 'format'))
        for session in ('logStartOutboundSession', 'logEndOutboundSession'):
            action = nat.get(session)
            session_block = {'action': action}
            if action is True and nat.pop(f"{session}Destination", None) is True:
                session_block['elements'] = ['destination']
            nat[session] = _appliance_block(session_block)


# Compliance check values that are plain integers stay unquoted
INTEGER_VALUE = re.compile(r'^[0-9]+$')


class ProtocolInspectionProfileTranslator(Translator):
    """
    Protocol_Inspection_Profile → security protocol-inspection profile.

    Services with no compliance, signature or port entries lose that block, a profile
    whose services are all empty loses its services property.
    """
    declared_class = 'Protocol_Inspection_Profile'
    command = 'security protocol-inspection profile'
    properties = PROTOCOL_INSPECTION_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        for service in item.get('services') or []:
            service['ports'] = [{'name': str(port)} for port in service.get('ports') or []]
            for check in service.get('compliance') or []:
                if isinstance(check.get('value'), (int, float)):
                    check['value'] = str(check['value'])

        config = self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))
        services = config.properties.get('services') or {}
        for service in services.values():
            for check_type in ('compliance', 'signature', 'ports'):
                if not service.get(check_type):
                    service.pop(check_type, None)
                elif check_type == 'compliance':
                    for check in service['compliance'].values():
                        self._compliance_value(check)
        if not services:
            config.properties.pop('services', None)
        return TranslationResult(configs=[config])

    @staticmethod
    def _compliance_value(check):
        value = check.get('value')
        if not value:
            return
        if value == 'none':
            # checks without a value still store none on the appliance
            del check['value']
        elif not INTEGER_VALUE.match(value):
            check['value'] = f"{{ {value} }}"


class LogPublisherTranslator(Translator):
    declared_class = 'Log_Publisher'
    command = 'sys log-config publisher'
    properties = LOG_PUBLISHER_PROPERTIES


class LogDestinationTranslator(Translator):
    """Log_Destination → sys log-config destination <type>"""
    declared_class = 'Log_Destination'
    properties = LOG_DESTINATION_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('pool'):
            item['poolName'] = bigip_path(item, 'pool')
        if item.get('remoteHighSpeedLog'):
            item['remoteHighSpeedLog'] = bigip_path(item, 'remoteHighSpeedLog')
        if item.get('forwardTo'):
            item['forwardTo'] = bigip_path(item, 'forwardTo')
        command = f"sys log-config destination {item.get('type')}"
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, app_id, item_id), command)])
