"""Message formatting strategy for log call sites.

MessageFormatter is handed to whatever builds records (for example
AdapterHandler) instead of being patched into a logging library's defaults.
"""

from typing import Any, Callable, Union

from dualsink.core.serialization import make_json_encoder

Template = Union[str, Callable[[], str]]

_SCALARS = (str, int, float, bool, type(None))


class MessageFormatter:
    """Render ``template % params`` with structured parameters encoded as JSON.

    Dicts, lists and other objects are written as canonical JSON, so a dict
    parameter becomes ``{"a":1}`` rather than its repr. Scalars are left as
    they are so ``%d`` and friends keep working. Multi-line parameters are
    indented by two spaces after the first line.

    Args:
        pretty: Spread JSON parameters over several lines.

    Example:
        >>> MessageFormatter().format("user %s logged in from %s", {"id": 7}, "10.0.0.1")
        'user {"id":7} logged in from 10.0.0.1'
    """

    def __init__(self, *, pretty: bool = False) -> None:
        self.encoder = make_json_encoder(pretty=pretty)

    def encode_param(self, value: Any) -> Any:
        if isinstance(value, _SCALARS):
            return _indent(value) if isinstance(value, str) else value
        try:
            text = self.encoder.encode(value)
        except Exception:
            text = str(value)
        return _indent(text)

    def format(self, template: Template, *params: Any) -> str:
        if callable(template):
            return template()
        if not params:
            return template
        encoded = tuple(self.encode_param(p) for p in params)
        try:
            return template % encoded
        except (TypeError, ValueError):
            # Placeholder mismatch: keep the data rather than losing the message.
            return " ".join([template, *(str(p) for p in encoded)])


def _indent(text: str) -> str:
    return text.rstrip("\n").replace("\n", "\n  ")
