"""
Endpoint_Policy → ltm policy and Endpoint_Strategy → ltm policy-strategy.

Actions, conditions and operands are rendered to the appliance's one-line policy
language. 'type' becomes the verb, 'event' follows it, then every remaining key in
declaration order:

    {'type': 'httpHeader', 'event': 'request', 'name': 'X-Test', 'all': {'operand': 'equals',
     'values': ['a b', 'c']}}
    → 'http-header request name X-Test all equals values { "a b" c }'
"""
import logging
from typing import Any, Dict, List

from f5_as3_translator.config_object import TranslationResult
from f5_as3_translator.normalize.properties import Prop
from f5_as3_translator.normalize.strings import escape_tcl, from_camel_case, wrap_string_with_spaces
from f5_as3_translator.paths import bigip_path, mcp_path
from f5_as3_translator.translators.base import REMARK_OR_NONE, Translator

logger = logging.getLogger(__name__)

NEGATED_OPERANDS = {
    'does-not-contain': 'contains',
    'does-not-end-with': 'ends-with',
    'does-not-equal': 'equals',
    'does-not-start-with': 'starts-with',
    'does-not-match': 'matches',
    'does-not-exist': 'exists',
}

POLICY_STRING_PROPERTIES = (
    Prop('policy-string', source='policyString'),
)

RULE_PROPERTIES = (
    Prop('description', source='remark', quoted=True),
    Prop('ordinal'),
    Prop('actions', extend='objarray', sub=POLICY_STRING_PROPERTIES),
    Prop('conditions', extend='objarray', sub=POLICY_STRING_PROPERTIES),
)

POLICY_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('strategy'),
    Prop('rules', extend='objarray', sub=RULE_PROPERTIES),
)

STRATEGY_PROPERTIES = (
    REMARK_OR_NONE,
    Prop('operands', extend='objarray', sub=POLICY_STRING_PROPERTIES),
)


class PolicyStringError(ValueError):
    """Raised when a policy action, condition or operand holds a value the language cannot express."""
    pass


def _string_value(value: str) -> str:
    text = escape_tcl(value).replace('"', '\\"')
    if ' ' in value or value.startswith('tcl:'):
        text = f'"{text}"'
    return text


def convert_to_policy_string(obj: Any) -> str:
    """
    Render one action, condition or operand as a policy-language string.

    Strings are escaped for the command language and quoted when they contain a space
    or are tcl: expressions. True flags emit their name, False flags nothing. Lists
    become 'values { ... }' with whitespace-bearing elements quoted.

    Raises:
        PolicyStringError: For a value of unsupported type, such as None
    """
    if isinstance(obj, str):
        return obj

    keys = [key for key in ('type', 'event') if key in obj]
    keys += [key for key in obj if key not in ('type', 'event')]

    tokens: List[str] = []
    for key in keys:
        value = obj[key]
        if key == 'type':
            tokens.append(from_camel_case(value))
        elif key in ('event', 'operand'):
            if key == 'operand' and value in NEGATED_OPERANDS:
                tokens.extend(['not', NEGATED_OPERANDS[value]])
            else:
                tokens.append(str(value))
        elif isinstance(value, bool):
            if value:
                tokens.append(from_camel_case(key))
        elif isinstance(value, str):
            tokens.extend([from_camel_case(key), _string_value(value)])
        elif isinstance(value, (int, float)):
            tokens.extend([from_camel_case(key), str(value)])
        elif isinstance(value, list):
            tokens.append(f"values {{ {' '.join(wrap_string_with_spaces(element) for element in value)} }}")
        elif isinstance(value, dict):
            tokens.append(from_camel_case(key))
            tokens.append(convert_to_policy_string(value))
        else:
            raise PolicyStringError(f'Unable to convert property "{key}" to LTM policy string')
    return ' '.join(token for token in tokens if token != '')


def create_policy_string_array(entries: List[Any]) -> List[Dict[str, str]]:
    """[{'name': '0', 'policyString': ...}, ...] in declaration order"""
    return [{'name': str(index), 'policyString': convert_to_policy_string(entry)}
            for index, entry in enumerate(entries)]


def _rewrite_action(action: Dict[str, Any]) -> None:
    """Map declaration action shapes onto the appliance's action vocabulary"""
    kind = action.get('type')
    if kind == 'forward' and isinstance(action.get('select'), dict):
        select = action['select']
        if select.get('service'):
            select['virtual'] = bigip_path(select, 'service')
            del select['service']
        elif select.get('pool'):
            select['pool'] = bigip_path(select, 'pool')
    elif kind == 'waf':
        action['type'] = 'asm'
        if action.get('policy'):
            action['enable'] = True
            action['policy'] = bigip_path(action, 'policy')
        else:
            action['disable'] = True
    elif kind == 'botDefense':
        if action.get('profile'):
            action['enable'] = True
            action['fromProfile'] = bigip_path(action, 'profile')
            del action['profile']
        else:
            action['disable'] = True
    elif kind == 'drop':
        action['type'] = 'shutdown'
    elif kind == 'httpRedirect':
        action['redirect'] = {'location': action.pop('location', '')}
        action['type'] = 'httpReply'
    elif kind in ('clientSsl', 'http'):
        if kind == 'clientSsl':
            action['type'] = 'serverSsl'
        action['enable' if action.pop('enabled', False) else 'disable'] = True


def _rewrite_condition(condition: Dict[str, Any]) -> None:
    if condition.get('type') == 'sslExtension':
        condition['index'] = condition.get('index') or 0
        return
    for value in condition.values():
        if isinstance(value, dict) and isinstance(value.get('datagroup'), dict):
            value['datagroup'] = value['datagroup'].get('bigip') or value['datagroup'].get('use')


class EndpointPolicyTranslator(Translator):
    """Endpoint_Policy → ltm policy with one policy string per action and condition"""
    declared_class = 'Endpoint_Policy'
    command = 'ltm policy'
    properties = POLICY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        strategy = item.get('strategy', 'first-match')
        if strategy == 'custom':
            item['strategy'] = bigip_path(item, 'customStrategy')
        else:
            item['strategy'] = f"/Common/{strategy}"

        for index, rule in enumerate(item.get('rules') or []):
            rule['ordinal'] = index
            rule['actions'] = rule.get('actions') or []
            rule['conditions'] = rule.get('conditions') or []
            for action in rule['actions']:
                if isinstance(action, dict):
                    _rewrite_action(action)
            for condition in rule['conditions']:
                if isinstance(condition, dict):
                    _rewrite_condition(condition)
            rule['actions'] = create_policy_string_array(rule['actions'])
            rule['conditions'] = create_policy_string_array(rule['conditions'])

        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))])


class EndpointStrategyTranslator(Translator):
    """Endpoint_Strategy → ltm policy-strategy"""
    declared_class = 'Endpoint_Strategy'
    command = 'ltm policy-strategy'
    properties = STRATEGY_PROPERTIES

    def _do_translate(self, ctx, tenant_id, app_id, item_id, item, declaration):
        item['operands'] = create_policy_string_array(item.get('operands') or [])
        return TranslationResult(configs=[self.render(ctx, item, mcp_path(tenant_id, app_id, item_id))])
