from typing import Any, Optional
import re

_QUANTITY_RE = re.compile(r'^([+-]?[0-9.]+(?:[eE][+-]?[0-9]+)?)([a-zA-Z]*)$')

_BINARY = {
    'Ki': 2 ** 10,
    'Mi': 2 ** 20,
    'Gi': 2 ** 30,
    'Ti': 2 ** 40,
    'Pi': 2 ** 50,
    'Ei': 2 ** 60,
}

_DECIMAL = {
    'n': 1e-9,
    'u': 1e-6,
    'm': 1e-3,
    '': 1.0,
    'k': 1e3,
    'M': 1e6,
    'G': 1e9,
    'T': 1e12,
    'P': 1e15,
    'E': 1e18,
}


def parse_quantity(value: Any) -> Optional[float]:
    """
    Parse a Kubernetes resource quantity ("250m", "128Mi", "1.5", "2e3")
    into a plain float in base units. Returns None when absent or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    m = _QUANTITY_RE.match(str(value).strip())
    if not m:
        return None
    try:
        number = float(m.group(1))
    except ValueError:
        return None
    suffix = m.group(2)
    if suffix in _BINARY:
        return number * _BINARY[suffix]
    if suffix in _DECIMAL:
        return number * _DECIMAL[suffix]
    return None


def parse_cpu(value: Any) -> Optional[float]:
    """CPU quantity in cores."""
    return parse_quantity(value)


def parse_memory(value: Any) -> Optional[float]:
    """Memory quantity in bytes."""
    return parse_quantity(value)


def format_cpu(cores: Optional[float]) -> str:
    if cores is None:
        return 'n/a'
    millicores = round(cores * 1000)
    if millicores < 1000:
        return f"{millicores}m"
    return f"{cores:.2f} cores"


def format_memory(num_bytes: Optional[float]) -> str:
    if num_bytes is None:
        return 'n/a'
    for unit, factor in (('Gi', 2 ** 30), ('Mi', 2 ** 20), ('Ki', 2 ** 10)):
        if num_bytes >= factor:
            return f"{num_bytes / factor:.1f}{unit}"
    return f"{int(num_bytes)}B"
