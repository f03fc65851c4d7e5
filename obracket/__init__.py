from obracket.obracket_datatypes import (
    BabelError, TemplateResolutionError, MalformedTemplateError, ExecutionError, ParamsError,
    Text, Placeholder, Newline, Quote, Table,
)
from obracket.obracket_params import BlockParams, load_params, NO_SESSION
from obracket.obracket_template import expand, coerce_template
from obracket.obracket_printer import Printer, bind, supports_binding
from obracket.obracket_compose import compose, compose_params
from obracket.obracket_session import RacketSession, SessionRegistry
from obracket.obracket_exec import Dispatcher, SubprocessRunner, Mode
from obracket.obracket_result import normalize, read_table
from obracket.obracket_runtime import BlockRunner, ExecutionResult

__all__ = [
    "BabelError", "TemplateResolutionError", "MalformedTemplateError", "ExecutionError", "ParamsError",
    "Text", "Placeholder", "Newline", "Quote", "Table",
    "BlockParams", "load_params", "NO_SESSION",
    "expand", "coerce_template",
    "Printer", "bind", "supports_binding",
    "compose", "compose_params",
    "RacketSession", "SessionRegistry",
    "Dispatcher", "SubprocessRunner", "Mode",
    "normalize", "read_table",
    "BlockRunner", "ExecutionResult",
]
