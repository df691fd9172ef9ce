"""Custom exception hierarchy for chatcmd.

Only construction-time faults are exceptions here. A key that matches
nothing, or a handler invoked from the wrong conversation kind, is
normal operation and is reported as an ``Unmatched`` result instead.
"""

from enum import Enum
from typing import Any, List, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for escalation decisions."""
    PERMANENT = "permanent"          # Broken declaration, fix the code
    INFRASTRUCTURE = "infrastructure"  # Environment or settings problem


class ChatCmdError(Exception):
    """Base exception for all chatcmd errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification for escalation decisions.
        module: Originating module name (e.g. "validator").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(ChatCmdError):
    """Invalid configuration, unscannable namespace or bad declaration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        namespace: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.namespace = namespace
        if namespace is not None:
            context.setdefault("namespace", namespace)
        super().__init__(
            message, category=category, module=module or "config", **context
        )


class ModuleInstantiationError(ConfigurationError):
    """A command module could not be constructed with no arguments.

    Never raised by the resolver: it is attached to the ``Unmatched``
    result so one broken module cannot take down the others.

    Attributes:
        module_name: Qualified name of the module class.
    """

    def __init__(
        self,
        message: str = "",
        *,
        module_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.module_name = module_name
        super().__init__(
            message,
            category=category,
            module=module or "resolver",
            module_name=module_name,
            **context,
        )


# ---------------------------------------------------------------------------
# Registry exceptions
# ---------------------------------------------------------------------------

class DuplicateKeyError(ChatCmdError):
    """Two or more handlers in one registry share a command key.

    Attributes:
        duplicates: Every offending pair found, in deterministic order.
    """

    def __init__(
        self,
        message: str = "",
        *,
        duplicates: Optional[List[Any]] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.duplicates = list(duplicates or [])
        super().__init__(
            message, category=category, module=module or "validator", **context
        )
