"""
TLS_Server → ltm profile client-ssl, TLS_Client → ltm profile server-ssl, plus cipher rules and groups
and OCSP certificate validators.

Certificates are referenced by the files their Certificate item installs:
<cert>.crt, <cert>.key and, when the certificate declares a chainCA, <cert>-bundle.crt.
The Certificate translator's path updates later point those names at bigip or use
targets where the certificate itself is not uploaded.
"""
import logging
from typing import Any, Dict, List, Optional

from f5_as3_translator.config_object import ConfigObject, TranslationResult
from f5_as3_translator.errors import InvalidReferenceError
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import secret
from f5_as3_translator.paths import bigip_path, mcp_path
from f5_as3_translator.resolver import ReferenceResolver
from f5_as3_translator.translators.base import REMARK_OR_NONE, Translator

logger = logging.getLogger(__name__)

ENABLED = dict(truth='enabled', falsehood='disabled')
MAX_UINT32 = 4294967295
# Before this version proxy CA certificates were plain profile properties, not cert-key-chain entries
CERT_USAGE_VERSION = '14.0'

# (declaration flag, option set when the flag is off, or on for the inverted ones)
TLS_OPTION_FLAGS = (
    ('tls1_3Enabled', 'no-tlsv1.3'),
    ('tls1_2Enabled', 'no-tlsv1.2'),
    ('tls1_1Enabled', 'no-tlsv1.1'),
    ('tls1_0Enabled', 'no-tlsv1'),
    ('dtlsEnabled', 'no-dtls'),
    ('dtls1_2Enabled', 'no-dtlsv1.2'),
    ('sslEnabled', 'no-ssl'),
    ('ssl3Enabled', 'no-sslv3'),
)

CERT_KEY_CHAIN_PROPERTIES = (
    Prop('cert', source='certificate'),
    Prop('chain'),
    Prop('key'),
    Prop('passphrase'),
    Prop('usage', min_version=CERT_USAGE_VERSION),
)

COMMON_TLS_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('alert-timeout', source='alertTimeout'),
    Prop('allow-expired-crl', source='allowExpiredCRL', **ENABLED),
    Prop('authenticate', source='authenticationFrequency'),
    Prop('authenticate-depth', source='authenticationDepth'),
    Prop('cache-size', source='cacheSize'),
    Prop('cache-timeout', source='cacheTimeout'),
    Prop('cipher-group', source='cipherGroup'),
    Prop('ciphers'),
    Prop('crl-file', source='crlFile'),
    Prop('data-0rtt', source='data0rtt', min_version='15.0'),
    Prop('handshake-timeout', source='handshakeTimeout'),
    Prop('options', extend='set'),
    Prop('renegotiate-period', source='renegotiatePeriod'),
    Prop('renegotiate-size', source='renegotiateSize'),
    Prop('renegotiation', source='renegotiationEnabled', **ENABLED),
    Prop('retain-certificate', source='retainCertificateEnabled', truth='true', falsehood='false'),
    Prop('secure-renegotiation', source='secureRenegotiation'),
    Prop('sni-default', source='sniDefault', truth='true', falsehood='false'),
    Prop('sni-require', source='sniRequire', truth='true', falsehood='false'),
    Prop('ssl-sign-hash', source='sslSignHash'),
    Prop('unclean-shutdown', source='uncleanShutdownEnabled', **ENABLED),
)

CLIENT_SSL_PROPERTIES = COMMON_TLS_PROPERTIES + (
    Prop('advertised-cert-authority', source='authenticationInviteCA'),
    Prop('ca-file', source='authenticationTrustCA'),
    Prop('cert-key-chain', source='certificates', extend='objarray', sub=CERT_KEY_CHAIN_PROPERTIES),
    Prop('c3d-drop-unknown-ocsp-status', source='c3dDropUnknownOcspStatus'),
    Prop('c3d-ocsp', source='c3dOCSP'),
    Prop('mode', **ENABLED),
    Prop('peer-cert-mode', source='authenticationMode'),
    Prop('proxy-ca-cert'),
    Prop('proxy-ca-key'),
    Prop('proxy-ca-passphrase'),
    Prop('renegotiate-max-record-delay', source='renegotiateMaxRecordDelay'),
    Prop('server-name', source='matchToSNI'),
    Prop('ssl-c3d', source='c3dEnabled', **ENABLED),
    Prop('ssl-forward-proxy', source='forwardProxyEnabled', **ENABLED),
    Prop('ssl-forward-proxy-bypass', source='forwardProxyBypassEnabled', **ENABLED),
    Prop('ssl-forward-proxy-bypass-allowlist', source='forwardProxyBypassAllowlist'),
    Prop('ssl-forward-proxy-verified-handshake', source='forwardProxyVerifiedHandshake', **ENABLED),
)

SERVER_SSL_PROPERTIES = COMMON_TLS_PROPERTIES + (
    Prop('ca-file', source='trustCA'),
    Prop('cert', source='clientCertificate'),
    Prop('c3d-ca-cert', source='c3dCACertificate'),
    Prop('c3d-ca-key', source='c3dCAKey'),
    Prop('c3d-ca-passphrase', source='c3dCAPassphrase'),
    Prop('chain'),
    Prop('expire-cert-response-control', source='validateCertificate', truth='drop', falsehood='ignore'),
    Prop('key'),
    Prop('passphrase'),
    Prop('peer-cert-mode', source='authenticationMode'),
    Prop('server-name', source='serverName'),
    Prop('ssl-c3d', source='c3dEnabled', **ENABLED),
    Prop('ssl-forward-proxy', source='forwardProxyEnabled', **ENABLED),
    Prop('ssl-forward-proxy-bypass', source='forwardProxyBypassEnabled', **ENABLED),
    Prop('untrusted-cert-response-control', source='ignoreUntrustedCertificate', truth='ignore',
         falsehood='drop'),
)

STARTTLS_PROPERTIES = (
    Prop('activation-mode', source='activationMode'),
)

CIPHER_RULE_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('cipher'),
    Prop('dh-groups', source='dhGroups'),
    Prop('signature-algorithms', source='signatureAlgorithms'),
)

CIPHER_GROUP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('allow', source='allowCipherRules', extend='set'),
    Prop('exclude', source='excludeCipherRules', extend='set'),
    Prop('ordering', source='order'),
    Prop('require', source='requireCipherRules', extend='set'),
)

OCSP_VALIDATOR_PROPERTIES = (
    Prop('connection-timeout', source='timeout'),
    Prop('dns-resolver', source='dnsResolver'),
    Prop('responder-url', source='responderUrl', default='none'),
    Prop('sign-hash', source='signingHashAlgorithm'),
    Prop('signer-cert', source='signingCertificate'),
    Prop('signer-key', source='signingPrivateKey'),
    Prop('signer-key-passphrase', source='signingPassphrase'),
)


def update_tls_options(ctx, item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace the protocol flags with the profile's options set.

    TLS 1.3 only exists from 14.0, older targets never get a no-tlsv1.3 option.
    """
    options = []
    if not item.pop('insertEmptyFragmentsEnabled', False):
        options.append('dont-insert-empty-fragments')
    if item.pop('singleUseDhEnabled', False):
        options.append('single-dh-use')
    for flag, option in TLS_OPTION_FLAGS:
        enabled = item.pop(flag, False)
        if flag == 'tls1_3Enabled' and ctx.below('14.0'):
            continue
        if not enabled:
            options.append(option)
    item['options'] = options
    return item


def indefinite_to_max(item: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    for key in keys:
        if item.get(key) == 'indefinite':
            item[key] = MAX_UINT32
    return item


def authentication_frequency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.replace('one-time', 'once').replace('every-time', 'always')


def certificate_pointer(resolver: ReferenceResolver, value: Any, tenant_id: str, app_id: str) -> Optional[str]:
    """The absolute /T/A/cert path of a certificate reference given as a string or use pointer"""
    if isinstance(value, dict):
        value = value.get('use')
    if not value or value == 'none':
        return None
    value = value[:-len('.crt')] if value.endswith('.crt') else value
    return '/' + '/'.join(resolver.absolute_segments(value, tenant_id, app_id))


def declared_certificate(resolver: ReferenceResolver, path: str) -> Dict[str, Any]:
    try:
        certificate = resolver.get(path)
    except InvalidReferenceError:
        logger.warning(f"Certificate {path} is not declared, assuming it has no chain or passphrase")
        return {}
    return certificate if isinstance(certificate, dict) else {}


class TLSClientTranslator(Translator):
    """
    TLS_Client → ltm profile server-ssl.

    A STARTTLS ldap activation mode adds an ltm profile server-ldap at
    f5_appsvcs_serverside_<mode> for services to attach.
    """
    declared_class = 'TLS_Client'
    command = 'ltm profile server-ssl'
    properties = SERVER_SSL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        resolver = self.resolver(declaration)
        configs = []
        item.setdefault('ignore', {})
        item['remark'] = item.get('remark') or ''
        item['authenticationFrequency'] = authentication_frequency(item.get('authenticationFrequency'))
        if item.get('cipherGroup'):
            item['ciphers'] = 'none'
        item['cipherGroup'] = item.get('cipherGroup') or 'none'

        self._parse_certificate(item, resolver, tenant_id, app_id, 'clientCertificate', 'clientCertificate',
                                'key', 'passphrase')
        if item.get('trustCA') in (None, 'generic'):
            item['trustCA'] = '/Common/ca-bundle.crt'
        else:
            item['trustCA'] = bigip_path(item, 'trustCA', '/Common/ca-bundle.crt')
        self._parse_certificate(item, resolver, tenant_id, app_id, 'c3dCertificateAuthority', 'c3dCACertificate',
                                'c3dCAKey', 'c3dCAPassphrase')
        item['crlFile'] = bigip_path(item, 'crlFile', 'none')

        update_tls_options(ctx, item)
        indefinite_to_max(item, 'renegotiatePeriod', 'renegotiateSize', 'handshakeTimeout')
        configs.append(self.render(ctx, item, mcp_path(tenant_id, app_id, item_id)))

        if item.get('ldapStartTLS'):
            path = mcp_path(tenant_id, app_id, f"f5_appsvcs_serverside_{item['ldapStartTLS']}")
            configs.append(self.render(ctx, {'activationMode': item['ldapStartTLS']}, path,
                                       'ltm profile server-ldap', STARTTLS_PROPERTIES))
        return TranslationResult(configs=configs)

    @staticmethod
    def _parse_certificate(item, resolver, tenant_id, app_id, source_key, cert_key, key_key, passphrase_key):
        """Fill in the cert, key, chain and passphrase properties for one certificate reference"""
        reference = item.get(source_key) or 'none'
        if isinstance(reference, dict) and reference.get('bigip'):
            item[cert_key] = reference['bigip']
            item[key_key] = reference['bigip'].replace('.crt', '.key')
            item[passphrase_key] = 'none'
            return

        path = certificate_pointer(resolver, reference, tenant_id, app_id)
        if path is None:
            item['chain'] = item.get('chain') or 'none'
            item[cert_key] = 'none'
            item[key_key] = 'none'
            return

        certificate = declared_certificate(resolver, path)
        item['chain'] = f"{path}-bundle.crt" if certificate.get('chainCA') else (item.get('chain') or 'none')
        item[cert_key] = f"{path}.crt"
        item[key_key] = f"{path}.key"

        passphrase = certificate.get('passphrase')
        if isinstance(passphrase, dict):
            item[passphrase_key] = secret(passphrase)
            if passphrase.get('ignoreChanges'):
                item['ignore'][passphrase_key] = item[passphrase_key]
        elif isinstance(passphrase, str):
            item[passphrase_key] = passphrase
            if (certificate.get('ignore') or {}).get('passphrase'):
                item['ignore'][passphrase_key] = passphrase


class TLSServerTranslator(Translator):
    """
    TLS_Server → one ltm profile client-ssl per certificate.

    Profiles are named <item>, <item>-1-, <item>-2-, ... or after the certificate with
    namingScheme 'certificate'. The first profile is the SNI default unless another
    certificate says it is. When the context sets tls_multi_cert_threshold and the
    target reaches it, a single profile carries every certificate instead.
    """
    declared_class = 'TLS_Server'
    command = 'ltm profile client-ssl'
    properties = CLIENT_SSL_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        resolver = self.resolver(declaration)
        configs: List[ConfigObject] = []
        item.setdefault('ignore', {})
        item['remark'] = item.get('remark') or ''
        item['authenticationTrustCA'] = bigip_path(item, 'authenticationTrustCA', '')
        item['authenticationInviteCA'] = bigip_path(item, 'authenticationInviteCA', '')
        item['authenticationFrequency'] = authentication_frequency(item.get('authenticationFrequency'))
        item['c3dOCSP'] = bigip_path(item, 'c3dOCSP', 'none')
        item['crlFile'] = bigip_path(item, 'crlFile', 'none')
        item['forwardProxyBypassAllowlist'] = bigip_path(item, 'forwardProxyBypassAllowlist', 'none')
        if item.get('cipherGroup'):
            item['ciphers'] = 'none'
        item['cipherGroup'] = item.get('cipherGroup') or 'none'

        update_tls_options(ctx, item)
        indefinite_to_max(item, 'renegotiateMaxRecordDelay', 'renegotiatePeriod', 'renegotiateSize',
                          'handshakeTimeout')

        declared = item.pop('certificates', None) or []
        explicit_sni_default = any(entry.get('sniDefault') for entry in declared)
        threshold = ctx.tls_multi_cert_threshold

        if threshold is not None and ctx.at_least(threshold) and declared:
            profile = self._profile(ctx, item, resolver, tenant_id, app_id, declared)
            first = declared[0]
            profile['sniDefault'] = True
            profile['matchToSNI'] = first.get('matchToSNI') or 'none'
            profile['mode'] = first.get('enabled', True)
            configs.append(self.render(ctx, profile, mcp_path(tenant_id, app_id, item_id)))
        else:
            for index, entry in enumerate(declared):
                if item.get('namingScheme') == 'certificate':
                    name = str(entry.get('certificate', '')).split('/')[-1]
                else:
                    name = item_id if index == 0 else f"{item_id}-{index}-"
                profile = self._profile(ctx, item, resolver, tenant_id, app_id, [entry])
                if index == 0:
                    profile['sniDefault'] = bool(entry.get('sniDefault')) or not explicit_sni_default
                else:
                    profile['sniDefault'] = bool(entry.get('sniDefault'))
                profile['matchToSNI'] = entry.get('matchToSNI') or 'none'
                profile['mode'] = entry.get('enabled', True)
                configs.append(self.render(ctx, profile, mcp_path(tenant_id, app_id, name)))

        if item.get('ldapStartTLS'):
            path = mcp_path(tenant_id, app_id, f"f5_appsvcs_clientside_{item['ldapStartTLS']}")
            configs.append(self.render(ctx, {'activationMode': item['ldapStartTLS']}, path,
                                       'ltm profile client-ldap', STARTTLS_PROPERTIES))
        if isinstance(item.get('smtpsStartTLS'), str):
            path = mcp_path(tenant_id, app_id, f"f5_appsvcs_smtps_{item['smtpsStartTLS']}")
            configs.append(self.render(ctx, {'activationMode': item['smtpsStartTLS']}, path,
                                       'ltm profile smtps', STARTTLS_PROPERTIES))
        return TranslationResult(configs=configs)

    def _profile(self, ctx, item, resolver, tenant_id, app_id, entries) -> Dict[str, Any]:
        """A copy of the shared settings with the cert-key-chain for entries"""
        profile = dict(item)
        profile['ignore'] = dict(item['ignore'])
        profile['certificates'] = []
        for entry in entries:
            self._add_certificate(ctx, profile, resolver, tenant_id, app_id, entry.get('certificate'), 'SERVER')
            self._add_certificate(ctx, profile, resolver, tenant_id, app_id, entry.get('proxyCertificate'), 'CA')
        return profile

    @staticmethod
    def _add_certificate(ctx, profile, resolver, tenant_id, app_id, reference, usage):
        legacy_ca = usage == 'CA' and ctx.below(CERT_USAGE_VERSION)
        if legacy_ca:
            profile.setdefault('proxy-ca-cert', 'none')
            profile.setdefault('proxy-ca-key', 'none')
            profile.setdefault('proxy-ca-passphrase', 'none')

        path = certificate_pointer(resolver, reference, tenant_id, app_id)
        if path is None:
            return
        certificate = declared_certificate(resolver, path)
        entry = {
            'name': f"set{len(profile['certificates'])}",
            'key': f"{path}.key",
            'certificate': f"{path}.crt",
            'chain': f"{path}-bundle.crt" if certificate.get('chainCA') else 'none',
            'usage': usage,
        }

        passphrase = certificate.get('passphrase')
        ignored = False
        if isinstance(passphrase, dict):
            entry['passphrase'] = secret(passphrase)
            ignored = bool(passphrase.get('ignoreChanges'))
        elif isinstance(passphrase, str):
            entry['passphrase'] = passphrase
            ignored = True

        if legacy_ca:
            profile['proxy-ca-cert'] = entry['certificate']
            profile['proxy-ca-key'] = entry['key']
            profile['proxy-ca-passphrase'] = entry.get('passphrase') or 'none'
            if ignored:
                profile['ignore']['proxy-ca-passphrase'] = entry['passphrase']
            return

        if ignored:
            profile['ignore'].setdefault('certificates', []).append(
                {'name': entry['name'], 'passphrase': entry['passphrase']})
        profile['certificates'].append(entry)


class CipherRuleTranslator(Translator):
    declared_class = 'Cipher_Rule'
    command = 'ltm cipher rule'
    properties = CIPHER_RULE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if item.get('cipherSuites'):
            item['cipher'] = ':'.join(item['cipherSuites'])
        if item.get('namedGroups'):
            item['dhGroups'] = ':'.join(item['namedGroups'])
        if item.get('signatureAlgorithms'):
            item['signatureAlgorithms'] = ':'.join(item['signatureAlgorithms'])
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)


class CipherGroupTranslator(Translator):
    declared_class = 'Cipher_Group'
    command = 'ltm cipher group'
    properties = CIPHER_GROUP_PROPERTIES


class CertificateValidatorOCSPTranslator(Translator):
    """
    Certificate_Validator_OCSP → sys crypto cert-validator ocsp.

    Responses are signed with the referenced certificate's key and passphrase, or
    left unsigned when no certificate is given.
    """
    declared_class = 'Certificate_Validator_OCSP'
    command = 'sys crypto cert-validator ocsp'
    properties = OCSP_VALIDATOR_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item.setdefault('ignore', {})
        if item.get('signingCertificate'):
            TLSClientTranslator._parse_certificate(item, self.resolver(declaration), tenant_id, app_id,
                                                   'signingCertificate', 'signingCertificate', 'signingPrivateKey',
                                                   'signingPassphrase')
        else:
            item['signingCertificate'] = 'none'
            item['signingPrivateKey'] = 'none'
        item['signingPassphrase'] = item.get('signingPassphrase') or 'none'
        return super()._do_translate(ctx, tenant_id, app_id, item_id, item, declaration)
