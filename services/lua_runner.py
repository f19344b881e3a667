"""
Runs user-defined Lua scripts

A script defines a ``compute(context)`` function. ``context.input`` holds the
attributes the script depends on and ``context.user`` the user it runs for.
It returns a table of the attributes to set:

    return { attributes = { ["score"] = { value = 42 } } }
"""
import logging
from typing import Any, Dict

import lupa
from lupa import LuaError, LuaRuntime

logger = logging.getLogger(__name__)


SANDBOX = """
os.execute, os.remove, os.rename, os.exit, os.getenv, os.tmpname = nil, nil, nil, nil, nil, nil
io, require, dofile, loadfile, load, package, python, debug = nil, nil, nil, nil, nil, nil, nil, nil
"""


class ScriptExecutionError(Exception):
    """The script could not be run or returned something unusable"""


def _deny_attributes(obj, name, is_setting):
    """Python objects handed to a script (only ``log``) expose no attributes"""
    raise AttributeError(f"access to {name!r} is not allowed")


def _to_python(value: Any) -> Any:
    """Convert Lua tables (recursively) to dicts"""
    if lupa.lua_type(value) == "table":
        return {key: _to_python(item) for key, item in value.items()}
    return value


def run_lua(code: str, context: Dict[str, Any], max_instructions: int = 0) -> Dict[str, Any]:
    """
    Run a script's ``compute`` function with the given context.

    Args:
        code: Lua source defining ``compute``
        context: JSON-like data passed as the function's argument
        max_instructions: Abort the script after this many VM instructions (0 = no limit)

    Returns:
        The table returned by ``compute``, converted to a dict
    """
    lua = LuaRuntime(
        register_eval=False,
        register_builtins=False,
        unpack_returned_tuples=True,
        attribute_filter=_deny_attributes,
    )

    if max_instructions:
        lua.execute(
            "debug.sethook(function() error('instruction limit exceeded') end, '', %d)" % max_instructions
        )

    # Scripts only compute values; nothing on the host is reachable from them
    lua.execute(SANDBOX)
    lua.globals().log = lambda message: logger.debug(f"[SCRIPT] {message}")

    try:
        lua.execute(code)
        compute = lua.globals().compute
        if lupa.lua_type(compute) != "function":
            raise ScriptExecutionError("script does not define a compute function")

        result = _to_python(compute(lua.table_from(context, recursive=True)))
    except LuaError as e:
        raise ScriptExecutionError(str(e)) from e

    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ScriptExecutionError("compute must return a table")

    return result
