import base64
import re
from typing import Any, Optional

CONTROL_CHARACTERS = re.compile(r'[\x00-\x1f\x7f]')
TCL_SPECIALS = re.compile(r'([;$\[\]{}])')


def quote_string(value: str) -> str:
    """
    Quote a user string for the appliance command language.

    Whitespace characters become escape sequences whose backslash is itself escaped,
    so a newline is written as \\n. Backslash and ? are escaped,
    unescaped double quotes get a backslash, remaining control characters become '.',
    and each of ; $ [ ] { } is prefixed with a backslash.

    Examples:
        quote_string('A description') → '"A description"'
        quote_string('${x}') → '"\\$\\{x\\}"'
    """
    text = (value
            .replace('\r', '\\r')
            .replace('\n', '\\n')
            .replace('\t', '\\t')
            .replace('\f', '\\f')
            .replace('\b', '\\b')
            .replace('\\', '\\\\')
            .replace('?', '\\?'))
    text = re.sub(r'(\\)?"', lambda m: m.group(0) if m.group(1) else '\\"', text)
    text = CONTROL_CHARACTERS.sub('.', text)
    text = TCL_SPECIALS.sub(r'\\\1', text)
    return f'"{text}"'


def quote_or_none(value: Optional[str]) -> str:
    """Empty or absent text renders as the bare token none"""
    if value is None or value == '' or value == 'none':
        return 'none'
    if value.startswith('"'):
        return value
    return quote_string(value)


def escape_tcl(value: str) -> str:
    """Escape a value for inline use in an LTM policy string"""
    text = value.replace('\n', ';')
    text = re.sub(r'\s*\}', ' }', text)
    text = re.sub(r'\s*\{', ' {', text)
    text = TCL_SPECIALS.sub(r'\\\1', text)
    return re.sub(r'  +', ' ', text)


def wrap_string_with_spaces(value: Any) -> str:
    """Quote list elements that contain whitespace"""
    text = str(value)
    if re.search(r'\s', text) and not text.startswith('"'):
        return f'"{text}"'
    return text


def normalise_script(script: str) -> str:
    """Trim an iRule body the way the appliance stores it"""
    text = script.strip().replace('\r\n', '\n')
    text = re.sub(r'[ \t]+\n', '\n', text)
    return re.sub(r'\\\n[ \t]+', '', text)


def from_camel_case(name: str) -> str:
    """
    Convert a declaration key to its appliance form.

    Examples:
        from_camel_case('connectionLimit') → 'connection-limit'
        from_camel_case('tls1_2Enabled') → 'tls1-2-enabled'
    """
    return re.sub(r'[A-Z]', lambda m: f"-{m.group(0).lower()}", name).replace('_', '-')


def to_camel_case(name: str) -> str:
    """Inverse of from_camel_case for dash-separated names"""
    parts = name.split('-')
    return parts[0] + ''.join(part[:1].upper() + part[1:] for part in parts[1:])


def secret(value: Any) -> str:
    """
    Decode a secret value.

    Secrets arrive either as plain strings or as {'ciphertext': <base64>} objects whose
    payload has already been decrypted upstream.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, dict) or not value.get('ciphertext'):
        return ''
    return base64.b64decode(value['ciphertext']).decode('utf-8')
