# __init__.py
from f5_as3_translator.normalize.properties import MISSING, Prop, actionable_config, assign_property, ignored_keys
from f5_as3_translator.normalize.strings import quote_string, quote_or_none, from_camel_case, to_camel_case
