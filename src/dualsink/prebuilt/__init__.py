from dualsink.prebuilt.bridge import AdapterHandler, attach, severity_for_level
from dualsink.prebuilt.hooks import (
    HookHandle,
    exception_record,
    install_excepthook,
    install_hooks,
    install_warning_hook,
)
from dualsink.prebuilt.message import MessageFormatter

__all__ = [
    # Hooks
    "install_hooks",
    "install_warning_hook",
    "install_excepthook",
    "exception_record",
    "HookHandle",
    # Logging bridge
    "AdapterHandler",
    "attach",
    "severity_for_level",
    "MessageFormatter",
]
