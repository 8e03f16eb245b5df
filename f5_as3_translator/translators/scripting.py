import base64
import re
from typing import Any, Dict, Optional

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import normalise_script, quote_string, secret
from f5_as3_translator.paths import mcp_path
from f5_as3_translator.translators.base import DOWNLOAD_PATH, REMARK, REMARK_OR_NONE, UPLOAD_PATH, Translator

IRULE_PROPERTIES = (
    REMARK,
    Prop('api-anonymous', source='iRule'),
)

IFILE_PROPERTIES = (
    REMARK,
    Prop('file-name'),
)

IFILE_UPLOAD_PROPERTIES = (
    Prop('iControl_post', source='iControl_post'),
    Prop('source-path'),
)

RECORD_PROPERTIES = (
    Prop('data', source='value', quoted=True),
)

INTERNAL_DATA_GROUP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('type', source='keyDataType'),
    Prop('records', extend='objarray', sub=RECORD_PROPERTIES),
)

EXTERNAL_DATA_GROUP_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('external-file-name', source='dataGroupName', alt='dataGroupFile'),
)

DATA_GROUP_FILE_PROPERTIES = (
    Prop('type', source='keyDataType'),
    Prop('separator', quoted=True),
    Prop('source-path', source='externalFilePath'),
    Prop('iControl_postFromRemote', source='iControl_postFromRemote'),
)

SAFE_RECORD_KEY = re.compile(r'^[\w.:/%-]+$')


def script_text(value: Any) -> str:
    """
    Extract script text from the forms an iRule body can take.

    Upstream fetching leaves either a plain string, {'base64': ...} or {'text': ...}.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if 'base64' in value:
            return base64.b64decode(value['base64']).decode('utf-8')
        if 'text' in value:
            return value['text']
    return ''


def normalise_url(value: Any) -> Dict[str, Any]:
    """Split a url property into the url, TLS verification flag and authentication block"""
    if not isinstance(value, dict):
        return {'url': value, 'rejectUnauthorized': True}
    result = {'url': value.get('url'), 'rejectUnauthorized': not value.get('skipCertificateCheck', False)}
    auth = value.get('authentication')
    if auth:
        auth = dict(auth)
        if auth.get('method') == 'basic' and isinstance(auth.get('passphrase'), dict):
            auth['passphrase'] = secret(auth['passphrase'])
        result['authentication'] = auth
    return result


class IRuleTranslator(Translator):
    """iRule → ltm rule, with the body trimmed the way the appliance stores it"""
    declared_class = 'iRule'
    command = 'ltm rule'
    properties = IRULE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item.setdefault('ignore', {})
        source = item.get('iRule')
        if isinstance(source, dict) and isinstance(source.get('url'), dict) and source['url'].get('ignoreChanges'):
            item['ignore']['iRule'] = ''
        item['iRule'] = script_text(source)

        config = self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))
        if 'api-anonymous' not in config.ignore and 'api-anonymous' in config.properties:
            config.properties['api-anonymous'] = normalise_script(config.properties['api-anonymous'])
        return TranslationResult(configs=[config])


class GSLBIRuleTranslator(IRuleTranslator):
    declared_class = 'GSLB_iRule'
    command = 'gtm rule'


class IFileTranslator(Translator):
    """
    iFile → ltm ifile.

    Inline content is uploaded first as a 'sys file ifile' at <path>-ifile, a bigip
    pointer references the existing system file instead.
    """
    declared_class = 'iFile'
    command = 'ltm ifile'
    properties = IFILE_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        configs = []
        source = item.get('iFile')

        if isinstance(source, dict) and source.get('bigip'):
            item['fileName'] = source['bigip']
        else:
            file_path = f"{path}-ifile"
            upload = {
                'iControl_post': self.upload_request(file_path, script_text(source), 'upload ifile', upload_name=path),
                'sourcePath': f"{DOWNLOAD_PATH}/{path.replace('/', '_')}",
            }
            item['fileName'] = file_path
            configs.append(self.render(ctx, upload, file_path, 'sys file ifile', IFILE_UPLOAD_PROPERTIES))

        configs.append(self.render(ctx, item, path))
        return TranslationResult(configs=configs)


class DataGroupTranslator(Translator):
    """
    Data_Group → ltm data-group internal, or ltm data-group external plus its system file.

    Internal records are keyed by record key, ip keys without a prefix length get /32.
    External groups fetched with a bearer token carry the fetch and upload instructions
    for the executor.
    """
    declared_class = 'Data_Group'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        item.setdefault('ignore', {})
        item['remark'] = item.get('remark') or ''

        if item.get('storageType', 'internal') == 'internal':
            item['records'] = [self._record(item, record) for record in item.get('records', [])]
            config = self.render(ctx, item, path, 'ltm data-group internal', INTERNAL_DATA_GROUP_PROPERTIES)
            return TranslationResult(configs=[config])

        item.pop('records', None)
        external = item.get('externalFilePath')
        if not external:
            config = self.render(ctx, item, path, 'ltm data-group external', EXTERNAL_DATA_GROUP_PROPERTIES)
            return TranslationResult(configs=[config])

        if item.get('ignoreChanges'):
            item['ignore']['dataGroupName'] = path
            item['ignore']['externalFilePath'] = external
        auth = external.get('authentication', {}) if isinstance(external, dict) else {}
        if auth.get('method') == 'bearer-token':
            item['iControl_postFromRemote'] = self._token_requests(item, item_id, path)
            item.pop('externalFilePath', None)
        else:
            item['externalFilePath'] = external.get('url') if isinstance(external, dict) else external
        item['dataGroupName'] = path

        config = self.render(ctx, item, path, 'ltm data-group external', EXTERNAL_DATA_GROUP_PROPERTIES)
        file_config = self.render(ctx, item, path, 'sys file data-group', DATA_GROUP_FILE_PROPERTIES)
        if 'iControl_postFromRemote' in file_config.properties:
            downloaded = f"{DOWNLOAD_PATH}/{path.replace('/', '_')}"
            config.properties['source-path'] = downloaded
            file_config.properties['source-path'] = downloaded
        return TranslationResult(configs=[config, file_config])

    @staticmethod
    def _record(item: Dict[str, Any], record: Dict[str, Any]) -> Dict[str, Any]:
        key = str(record['key'])
        if item.get('keyDataType') == 'ip' and '/' not in key:
            key += '/32'
        if not SAFE_RECORD_KEY.match(key):
            key = quote_string(key)
        value: Optional[str] = record.get('value')
        return {'name': key, 'value': value if value != '' else None}

    @staticmethod
    def _token_requests(item: Dict[str, Any], item_id: str, path: str) -> Dict[str, Any]:
        url = normalise_url(item['externalFilePath'])
        settings = {key: value for key, value in item.items() if key != 'ignore'}
        settings['externalFilePath'] = dict(item['externalFilePath'], url=url['url'])
        return {
            'get': {
                'path': url['url'],
                'method': 'GET',
                'rejectUnauthorized': url['rejectUnauthorized'],
                'ctype': 'application/octet-stream',
                'why': f"get Data Group {item_id} from url",
                'authentication': url.get('authentication'),
            },
            'post': {
                'path': f"{UPLOAD_PATH}/{path.replace('/', '_')}",
                'method': 'POST',
                'ctype': 'application/octet-stream',
                'why': f"upload Data Group {item_id}",
                'settings': settings,
            },
        }
