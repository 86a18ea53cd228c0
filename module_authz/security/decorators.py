from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from module_authz.engine.enums import Action, Module
from module_authz.engine.registry import PolicyRegistry, UnknownPolicyError
from module_authz.engine.requirements import module_access_policy_name, module_action_policy_name

POLICY_ATTR = "__authz_policy__"
PUBLIC_ATTR = "__authz_public__"


def require_policy(name: str) -> Callable:
    """
    Bind an endpoint to one named policy.

    Implementation detail:
    - This decorator does NOT evaluate anything itself.
    - It attaches the policy name; the global `enforce_authorization`
      dependency reads it after routing.
    - An endpoint carries exactly one policy. Binding a second, different
      one raises at import time.
    """

    def decorator(fn: Callable) -> Callable:
        existing = getattr(fn, POLICY_ATTR, None)
        if existing is not None and existing != name:
            raise ValueError(f"{fn.__qualname__} is already bound to policy {existing!r}; cannot also bind {name!r}")
        if getattr(fn, PUBLIC_ATTR, False):
            raise ValueError(f"{fn.__qualname__} is marked public; cannot bind policy {name!r}")
        setattr(fn, POLICY_ATTR, name)
        return fn

    return decorator


def require_module_permission(module: Module, action: Action) -> Callable:
    """Bind to ``ModulePermission.<module>.<action>``."""
    return require_policy(module_action_policy_name(module, action))


def require_module_access(module: Module) -> Callable:
    """Bind to ``ModuleAccess.<module>`` (any action in the module)."""
    return require_policy(module_access_policy_name(module))


def public() -> Callable:
    """
    Mark an endpoint as needing no authorization at all.

    Unmarked endpoints without a policy are denied, so this is the only way
    to expose something without a decision.
    """

    def decorator(fn: Callable) -> Callable:
        if getattr(fn, POLICY_ATTR, None) is not None:
            raise ValueError(f"{fn.__qualname__} is bound to a policy; cannot mark it public")
        setattr(fn, PUBLIC_ATTR, True)
        return fn

    return decorator


def bound_policy(endpoint: Any) -> str | None:
    return getattr(endpoint, POLICY_ATTR, None)


def is_public(endpoint: Any) -> bool:
    return bool(getattr(endpoint, PUBLIC_ATTR, False))


def validate_bindings(endpoints: Iterable[Any], registry: PolicyRegistry) -> int:
    """
    Check that every bound policy name exists in ``registry``.

    Run at startup so a typo fails the process instead of denying (or worse)
    at request time. Returns the number of bound endpoints checked.
    """

    checked = 0
    for endpoint in endpoints:
        name = bound_policy(endpoint)
        if name is None:
            continue
        if name not in registry:
            raise UnknownPolicyError(f"{getattr(endpoint, '__qualname__', endpoint)!s} is bound to unknown policy {name!r}")
        checked += 1
    return checked
