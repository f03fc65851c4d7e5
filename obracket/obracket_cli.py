import argparse
import sys
from pathlib import Path

from obracket.obracket_datatypes import BabelError, Table
from obracket.obracket_params import BlockParams, load_params
from obracket.obracket_runtime import BlockRunner


def format_value(value) -> str:
    """Render a block value for the terminal; tables as tab separated rows."""
    if value is None:
        return ""
    if isinstance(value, Table):
        lines = []
        if value.colnames and isinstance(value.colnames, list):
            lines.append("\t".join(str(c) for c in value.colnames))
        for row in value.rows:
            if isinstance(row, list):
                lines.append("\t".join(str(c) for c in row))
            else:
                lines.append(str(row))
        return "\n".join(lines)
    return str(value).rstrip("\n")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="obracket", description="Run a Racket code block and print its result.")
    ap.add_argument("block", help="file holding the block body, or '-' for stdin")
    ap.add_argument("--params", help="YAML file with block options")
    ap.add_argument("--lang", help="language for the #lang line")
    ap.add_argument("--cmd", help="command used to run the program file")
    ap.add_argument("--session", help="run inside the named interactive session")
    ap.add_argument("--file", help="write the program to this path instead of running it")
    ap.add_argument("--var", action="append", default=[], metavar="NAME=VALUE", help="bind a variable (repeatable); adds to the params file bindings")
    ap.add_argument("--debug", action="store_true", help="print the composed program to stderr")
    ap.add_argument("--expand", action="store_true", help="print the composed program and exit")
    return ap


def read_body(block: str) -> str:
    if block == "-":
        return sys.stdin.read()
    p = Path(block)
    try:
        return p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {block}", file=sys.stderr)
        raise SystemExit(1)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    body = read_body(args.block)

    try:
        params = load_params(args.params) if args.params else BlockParams()
        overrides = {k: v for k, v in (
            ("lang", args.lang),
            ("cmd", args.cmd),
            ("session", args.session),
            ("file", args.file),
        ) if v is not None}
        if args.var:
            overrides["var"] = args.var
        if args.debug:
            overrides["debug"] = True
        params = params.merge(overrides)
    except (BabelError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    runner = BlockRunner()
    try:
        if args.expand:
            side_effects = []
            print(runner.expand_body(body, params, side_effects))
            for effect in side_effects:
                print(effect.get('message', ''), file=sys.stderr)
            return 0

        result = runner.handle_block(body, params)
        for effect in result.side_effects:
            if 'warning' in effect.get('topics', []):
                print(f"Warning: {effect.get('message', '')}", file=sys.stderr)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            return 1
        text = format_value(result.value)
        if text:
            print(text)
        return 0
    except BabelError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        runner.registry.close_all()


if __name__ == "__main__":
    raise SystemExit(main())
