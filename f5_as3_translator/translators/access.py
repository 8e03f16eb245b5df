"""
Security policies imported from files: ASM (WAF) policies and APM access
profiles and per-request access policies.

Inline policies are uploaded to the appliance. Policies given by url carry a GET
and a POST instruction the executor runs before the import, each keeping a copy
of the declared settings so a changed url or token produces a diff.
"""
import logging
from typing import Any, Dict, Optional

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.paths import mcp_path
from f5_as3_translator.translators.base import UPLOAD_PATH, Translator
from f5_as3_translator.translators.scripting import normalise_url, script_text

logger = logging.getLogger(__name__)

WAF_POLICY_PROPERTIES = (
    Prop('iControl_post', source='iControl_post'),
    Prop('iControl_postFromRemote', source='iControl_postFromRemote'),
    Prop('enforcementMode', source='enforcementMode'),
)

APM_POLICY_PROPERTIES = (
    Prop('iControl_postFromRemote', source='iControl_postFromRemote'),
)


def remote_policy_requests(item: Dict[str, Any], item_id: str, path: str, settings: Dict[str, Any],
                           display_name: str, suffix: str, reference: Optional[str] = None) -> Dict[str, Any]:
    """
    Fetch and upload instructions for a policy given by url.

    Args:
        item: Working copy of the declared item, its url is read and its ignore
            mapping updated when a token is not to be diffed
        item_id: Declared item name, used in the instructions' descriptions
        path: Appliance path of the policy, its last segment names the upload
        settings: Copy of the declared item stored with the upload
        display_name: Human readable class name for the descriptions
        suffix: Upload file extension
        reference: Path the upload is recorded against, if any
    """
    url = normalise_url(item['url'])
    settings['url'] = url['url']
    post = {
        'path': f"{UPLOAD_PATH}/{path.split('/')[-1]}{suffix}",
        'method': 'POST',
        'ctype': 'application/octet-stream',
        'why': f"upload {display_name} {item_id}",
        'settings': settings,
    }
    if reference:
        post['reference'] = reference
    requests = {
        'get': {
            'path': url['url'],
            'method': 'GET',
            'rejectUnauthorized': url['rejectUnauthorized'],
            'ctype': 'application/octet-stream',
            'why': f"get {display_name} {item_id} from url",
            'authentication': url.get('authentication'),
        },
        'post': post,
    }

    token = (url.get('authentication') or {}).get('token')
    if item.get('ignoreChanges') and token:
        item['ignore']['iControl_postFromRemote'] = {'get': {'authentication': {'token': token}}}
    return requests


def _url_ignores_changes(item: Dict[str, Any]) -> bool:
    url = item.get('url')
    if isinstance(url, dict) and url.get('ignoreChanges'):
        return True
    return bool(item.get('ignoreChanges'))


class WAFPolicyTranslator(Translator):
    """
    WAF_Policy → asm policy.

    The executor loads the uploaded XML, activates and publishes it.
    """
    declared_class = 'WAF_Policy'
    command = 'asm policy'
    properties = WAF_POLICY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, app_id, item_id)
        settings = {key: value for key, value in item.items() if key != 'ignore'}
        item.setdefault('ignore', {})
        item['ignoreChanges'] = _url_ignores_changes(item)

        if item.get('url') is not None:
            item['iControl_postFromRemote'] = remote_policy_requests(item, item_id, path, settings, 'asm policy',
                                                                     '.xml', reference=path)
        elif item.get('policy') or item.get('file'):
            payload = script_text(item['policy']) if item.get('policy') else item.pop('file')
            request = self.upload_request(path, payload, f"upload asm policy {item_id}", upload_name=f"{item_id}.xml")
            request['settings'] = settings
            item['iControl_post'] = request
        else:
            logger.debug(f"WAF policy {path} has no url, policy or file to upload")
        item.pop('ignoreChanges', None)
        return TranslationResult(configs=[self.render(ctx, item, path)])


class AccessProfileTranslator(Translator):
    """
    Access_Profile → apm profile access at the tenant level.

    'enable' is not part of the stored settings, so toggling it alone does not
    trigger a fresh import.
    """
    declared_class = 'Access_Profile'
    command = 'apm profile access'
    properties = APM_POLICY_PROPERTIES
    display_name = 'Access Profile'

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        path = mcp_path(tenant_id, None, item_id)
        settings = {key: value for key, value in item.items() if key not in ('ignore', 'enable')}
        item.setdefault('ignore', {})
        item['ignoreChanges'] = _url_ignores_changes(item)
        if item.get('url'):
            suffix = '.tar.gz' if '.tar.gz' in normalise_url(item['url'])['url'] else '.tar'
            item['iControl_postFromRemote'] = remote_policy_requests(item, item_id, path, settings,
                                                                     self.display_name, suffix)
        item.pop('ignoreChanges', None)

        config = self.render(ctx, item, path)
        self._finish(config, item)
        return TranslationResult(configs=[config])

    @staticmethod
    def _finish(config, item):
        config.properties['enable'] = item.get('enable') or False


class PerRequestAccessPolicyTranslator(AccessProfileTranslator):
    """Per_Request_Access_Policy → apm policy access-policy at the tenant level"""
    declared_class = 'Per_Request_Access_Policy'
    command = 'apm policy access-policy'
    display_name = 'Access Policy'

    @staticmethod
    def _finish(config, item):
        pass
