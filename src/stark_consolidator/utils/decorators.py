import functools
import json
import logging
from typing import Any, Callable

MAX_ARG_REPR = 200


def _format_arg(arg: Any) -> str:
    if hasattr(arg, '__dict__'):
        return arg.__class__.__name__
    if isinstance(arg, (list, tuple)) and len(arg) > 5:
        return f"{arg.__class__.__name__}[{len(arg)}]"
    try:
        text = json.dumps(arg)
    except (TypeError, ValueError):
        text = str(arg)
    # HTML documents pass through here; keep log lines short
    if len(text) > MAX_ARG_REPR:
        text = f"{text[:MAX_ARG_REPR]}... ({len(text)} chars)"
    return text


def log_method(func: Callable) -> Callable:
    """
    Decorator that logs method entry/exit with parameters and results.
    Also captures and logs any exceptions before re-raising them.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        # Get logger from instance or module
        logger = getattr(args[0], 'logger', None) if args else None
        if not isinstance(logger, logging.Logger):
            logger = logging.getLogger(func.__module__)

        debug = logger.isEnabledFor(logging.DEBUG)
        if debug:
            args_repr = [_format_arg(a) for a in args[1:]]
            kwargs_repr = {k: _format_arg(v) for k, v in kwargs.items()}
            logger.debug(
                f"START {func.__qualname__} | "
                f"args: {args_repr}, kwargs: {kwargs_repr}"
            )

        try:
            result = func(*args, **kwargs)
            if debug:
                logger.debug(
                    f"END {func.__qualname__} | "
                    f"result: {_format_arg(result)}"
                )
            return result

        except Exception as e:
            logger.exception(
                f"ERROR in {func.__qualname__}: {str(e)}"
            )
            raise

    return wrapper
