from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.paths import mcp_path
from f5_as3_translator.translators.base import REMARK, Translator

TENANT_PROPERTIES = (
    REMARK,
    Prop('default-route-domain', source='defaultRouteDomain', default=0),
)

FOLDER_PROPERTIES = (
    REMARK,
)


class TenantTranslator(Translator):
    """Tenant → auth partition, except Common which always exists on the appliance"""
    declared_class = 'Tenant'
    command = 'auth partition'
    properties = TENANT_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        if tenant_id == 'Common':
            return TranslationResult()
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, '', ''))])


class ApplicationTranslator(Translator):
    """Application → sys folder"""
    declared_class = 'Application'
    command = 'sys folder'
    properties = FOLDER_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        return TranslationResult(configs=[self.render(ctx, {}, mcp_path(tenant_id, app_id, ''))])
