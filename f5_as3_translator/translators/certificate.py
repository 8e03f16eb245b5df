"""
Certificate and CA_Bundle → sys file ssl-cert / ssl-key uploads.

Inline PEM text is uploaded and installed at <item>.crt, <item>.key and
<item>-bundle.crt. Parts given as bigip or use pointers are not uploaded, instead a
path update tells the executor to rewrite every reference to the generated name.
"""
import logging
import re
from typing import Any, Dict

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from f5_as3_translator.config_object import PathUpdate, TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import secret
from f5_as3_translator.paths import bigip_path, mcp_path
from f5_as3_translator.translators.base import DOWNLOAD_PATH, Translator

logger = logging.getLogger(__name__)

PEM_LINE_LENGTH = 64

SSL_CERT_PROPERTIES = (
    Prop('cert-validation-options', source='cert-validation-options', extend='set'),
    Prop('cert-validators', source='cert-validators', extend='set'),
    Prop('checksum'),
    Prop('iControl_post', source='iControl_post'),
    Prop('issuer-cert', source='issuer-cert'),
    Prop('source-path'),
)

SSL_KEY_PROPERTIES = (
    Prop('checksum'),
    Prop('iControl_post', source='iControl_post'),
    Prop('passphrase'),
    Prop('source-path'),
)


def normalise_pem(text: str) -> str:
    """CRLF to LF and lines folded at 64 characters the way the appliance stores PEM files"""
    text = text.replace('\r\n', '\n')
    text = re.sub(f"(.{{{PEM_LINE_LENGTH}}})", r'\1\n', text)
    return re.sub(f"(.{{{PEM_LINE_LENGTH}}})\n\n", r'\1\n', text)


def file_checksum(content: str) -> str:
    """
    Checksum in the appliance's SHA1:<length>:<hex> form.

    Examples:
        file_checksum('') → 'SHA1:0:da39a3ee5e6b4b0d3255bfef95601890afd80709'
    """
    digest = hashes.Hash(hashes.SHA1())
    digest.update(content.encode('utf-8'))
    return f"SHA1:{len(content)}:{digest.finalize().hex()}"


def check_certificate_pem(text: str, path: str) -> None:
    """Log a warning for certificate text that does not parse, the appliance has the final say"""
    try:
        x509.load_pem_x509_certificates(text.encode('utf-8'))
    except ValueError as e:
        logger.warning(f"Certificate content for {path} could not be parsed: {e}")


class CertificateTranslator(Translator):
    """Certificate → uploaded certificate, key and chain files"""
    declared_class = 'Certificate'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        result = TranslationResult()
        item.setdefault('ignore', {})

        if item.get('class', self.declared_class) == 'Certificate':
            self._validation_options(item)
        if item.get('pkcs12'):
            self._unpack_pkcs12(item)

        self._part(ctx, result, item, 'bundle', path, 'ssl-cert')
        self._part(ctx, result, item, 'certificate', f"{path}.crt", 'ssl-cert')
        if item.get('chainCA'):
            # a chain replaces any OCSP and issuer settings
            for key in ('cert-validation-options', 'cert-validators', 'issuer-cert'):
                item.pop(key, None)
            self._part(ctx, result, item, 'chainCA', f"{path}-bundle.crt", 'ssl-cert')
        self._part(ctx, result, item, 'privateKey', f"{path}.key", 'ssl-key')
        return result

    @staticmethod
    def _validation_options(item):
        stapler = item.get('staplerOCSP')
        if stapler:
            item['cert-validation-options'] = ['ocsp']
            item['cert-validators'] = [stapler.get('bigip') or stapler.get('use')]
        if item.get('issuerCertificate'):
            issuer = bigip_path(item, 'issuerCertificate')
            item['issuer-cert'] = issuer if issuer.endswith('.crt') else f"{issuer}.crt"

    @staticmethod
    def _unpack_pkcs12(item):
        """PKCS#12 content arrives already decoded into PEM certificates and a key"""
        options = item.get('pkcs12Options') or {}
        decoded = (options.get('internalOnly') or [{}])[0]
        certificates = decoded.get('certificates') or []
        if len(certificates) == 1:
            item['certificate'] = certificates[0]
        else:
            item['bundle'] = '\n'.join(certificates)
        item['privateKey'] = decoded.get('privateKey')
        if options.get('ignoreChanges'):
            item['ignore']['checksum'] = 'checksum'

    def _part(self, ctx, result: TranslationResult, item: Dict[str, Any], key: str, file_path: str,
              file_type: str) -> None:
        value = item.get(key)
        if not value:
            return
        if isinstance(value, dict):
            target = value.get('bigip') or (value.get('use') if key == 'chainCA' else None)
            if isinstance(target, str):
                result.path_updates.append(PathUpdate(old_string=file_path, new_string=target))
            return

        content = normalise_pem(value)
        if file_type == 'ssl-cert':
            check_certificate_pem(content, file_path)
        upload_name = file_path.replace('/', '_')
        file_item: Dict[str, Any] = {
            'iControl_post': self.upload_request(file_path, content, f"upload {key} file"),
            'checksum': file_checksum(content),
            'source-path': f"{DOWNLOAD_PATH}/{upload_name}",
            'ignore': dict(item['ignore']),
        }

        if file_type == 'ssl-key':
            passphrase = item.get('passphrase')
            if isinstance(passphrase, dict):
                file_item['passphrase'] = secret(passphrase)
                if passphrase.get('ignoreChanges'):
                    file_item['ignore']['passphrase'] = file_item['passphrase']
            elif passphrase is not None:
                file_item['passphrase'] = passphrase
            table = SSL_KEY_PROPERTIES
        else:
            for option in ('cert-validation-options', 'cert-validators', 'issuer-cert'):
                if option in item:
                    file_item[option] = item[option]
            table = SSL_CERT_PROPERTIES

        result.configs.append(self.render(ctx, file_item, file_path, f"sys file {file_type}", table))


class CABundleTranslator(CertificateTranslator):
    """CA_Bundle → a single uploaded certificate file at the item path"""
    declared_class = 'CA_Bundle'
