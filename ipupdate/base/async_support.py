"""
Coroutine variants of blocking zone-API and discovery calls.

boto3 and requests are synchronous. The updater runs one task per hostname
and per zone, so every blocking call is pushed onto a worker thread with
:func:`asyncio.to_thread` and awaited. Implementations stay plain
synchronous code and are tested that way.

Usage::

    from ipupdate.base.async_support import async_wrap

    aget_address = async_wrap(get_address_from_ip_service)
    addresses = await aget_address(session, url, timeout)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Coroutine, TypeVar

T = TypeVar("T")


def async_wrap(
    fn: Callable[..., T],
) -> Callable[..., Coroutine[Any, Any, T]]:
    """Return a coroutine function that runs *fn* on a worker thread.

    Cancelling the returned coroutine abandons the result; the thread still
    finishes the call it is in.

    Raises:
        TypeError: If *fn* is already a coroutine function.
    """
    if inspect.iscoroutinefunction(fn):
        raise TypeError(f"{fn.__qualname__} is already a coroutine function")

    @functools.wraps(fn)
    async def _wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(fn, *args, **kwargs)

    return _wrapper


class AsyncMixin:
    """Mixin that adds an ``a<name>`` coroutine for each name in ``async_operations``.

    The operation list normally comes from the blueprint the class also
    derives from. Variants are generated for operations the class itself
    defines, so an override in a subclass gets a fresh variant; an
    ``a<name>`` coroutine written by hand is left alone.

    Example::

        class Route53(ZoneAPIBlueprint, AsyncMixin):
            def get_change_status(self, change_id, *, zone_id=None): ...

        status = await route53.aget_change_status(change_id, zone_id=zone_id)
    """

    async_operations: tuple[str, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        own = vars(cls)
        for name in cls.async_operations:
            method = own.get(name)
            async_name = f"a{name}"
            if method is None or async_name in own:
                continue
            if inspect.iscoroutinefunction(method):
                raise TypeError(f"{cls.__name__}.{name} must be synchronous")
            setattr(cls, async_name, async_wrap(method))
