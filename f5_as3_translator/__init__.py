# f5_as3_translator/__init__.py
"""Translate AS3 declarations into BIG-IP configuration objects."""

from f5_as3_translator.config_object import ConfigObject, PathUpdate, SnatAddress, TranslationResult
from f5_as3_translator.context import InventoryReader, StaticInventory, TargetInfo, TranslationContext
from f5_as3_translator.engine import TranslationBatch, translate_declaration, translate_tenant
from f5_as3_translator.registry import TranslatorRegistry

__all__ = [
    'ConfigObject',
    'PathUpdate',
    'SnatAddress',
    'TranslationResult',
    'InventoryReader',
    'StaticInventory',
    'TargetInfo',
    'TranslationContext',
    'TranslationBatch',
    'translate_declaration',
    'translate_tenant',
    'TranslatorRegistry',
]
