import copy
import logging
from typing import Any, Dict, Optional, Tuple

from f5_as3_translator.config_object import ConfigObject, TranslationResult
from f5_as3_translator.context import TranslationContext
from f5_as3_translator.normalize.properties import Prop, actionable_config
from f5_as3_translator.paths import mcp_path
from f5_as3_translator.resolver import ReferenceResolver

logger = logging.getLogger(__name__)

# Description stamped on objects the translator owns but the author never declared
MANAGED_DESCRIPTION = 'This object is managed by appsvcs, do not modify this description'

UPLOAD_PATH = '/mgmt/shared/file-transfer/uploads'
DOWNLOAD_PATH = 'file:/var/config/rest/downloads'


class Translator:
    """
    Base class for per-class translators.

    A subclass names the declaration class it handles and either sets command and
    properties (a single object at /tenant/app/item) or overrides _do_translate.
    translate() hands _do_translate a private deep copy of the item with every use
    pointer made absolute, so subclasses are free to rework it in place.
    """
    declared_class: str = ''
    command: Optional[str] = None
    properties: Tuple[Prop, ...] = ()

    def translate(self, ctx: TranslationContext, tenant_id: str, app_id: Optional[str], item_id: str,
                  item: Dict[str, Any], declaration: Dict[str, Any]) -> TranslationResult:
        """
        Translate one declared item.

        Args:
            ctx: Translation context
            tenant_id: Owning tenant name
            app_id: Owning application name
            item_id: Item name inside the application
            item: The declared item, left untouched
            declaration: Whole declaration, read-only, for cross-references

        Returns:
            TranslationResult with the item's config objects in dependency order
        """
        working = self.resolver(declaration).absolutize(copy.deepcopy(item), tenant_id, app_id)
        return self._do_translate(ctx, tenant_id, app_id, item_id, working, declaration)

    def _do_translate(self, ctx: TranslationContext, tenant_id: str, app_id: Optional[str], item_id: str,
                      item: Dict[str, Any], declaration: Dict[str, Any]) -> TranslationResult:
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))])

    def render(self, ctx: TranslationContext, item: Dict[str, Any], path: str,
               command: Optional[str] = None, table: Optional[Tuple[Prop, ...]] = None) -> ConfigObject:
        """Render item with this translator's (or the given) command and property table"""
        return actionable_config(ctx, item, command or self.command, path,
                                 self.properties if table is None else table)

    @staticmethod
    def resolver(declaration: Dict[str, Any]) -> ReferenceResolver:
        return ReferenceResolver(declaration)

    @staticmethod
    def upload_request(reference: str, payload: str, why: str, upload_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Request body the executor posts to the appliance's file-transfer endpoint.

        The uploaded file is named after upload_name (the reference by default) with
        slashes turned into underscores.
        """
        upload_name = upload_name or reference
        return {
            'reference': reference,
            'path': f"{UPLOAD_PATH}/{upload_name.replace('/', '_')}",
            'method': 'POST',
            'ctype': 'application/octet-stream',
            'why': why,
            'send': payload,
        }

    def __repr__(self):
        return f"<{self.__class__.__name__} for '{self.declared_class}'>"


class GenericTranslator(Translator):
    """Translator for classes that map one-to-one onto a single command"""

    def __init__(self, declared_class: str, command: str, properties: Tuple[Prop, ...]):
        self.declared_class = declared_class
        self.command = command
        self.properties = properties


# Rows most commands share
REMARK = Prop('description', source='remark', quoted=True)
REMARK_OR_NONE = Prop('description', source='remark', quoted=True, default='none')
