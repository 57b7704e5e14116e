import sys

from plait.plait_runtime import TemplateRunner
from plait.plait_serialize import serialize

USAGE = "usage: plait TEMPLATE [DATA] [-I PATH]... [--format json|yaml]"


def parse_args(argv):
    """Splits argv into (files, include paths, output format)."""
    files, includes, fmt = [], [], "json"
    args = iter(argv)
    for arg in args:
        if arg in ("-h", "--help"):
            print(USAGE)
            raise SystemExit(0)
        if arg == "-I" or arg == "--include":
            path = next(args, None)
            if path is None:
                raise SystemExit(f"{arg} needs a path\n{USAGE}")
            includes.append(path)
        elif arg.startswith("-I") and len(arg) > 2:
            includes.append(arg[2:])
        elif arg == "--format":
            fmt = next(args, None)
            if fmt not in ("json", "yaml"):
                raise SystemExit(f"--format must be json or yaml\n{USAGE}")
        elif arg.startswith("-"):
            raise SystemExit(f"unknown option {arg}\n{USAGE}")
        else:
            files.append(arg)
    if not 1 <= len(files) <= 2:
        raise SystemExit(USAGE)
    return files, includes, fmt


def main(argv=None):
    """Render a template file against an optional data file and print the result."""
    files, includes, fmt = parse_args(sys.argv[1:] if argv is None else argv)
    runner = TemplateRunner()
    runner.engine.add_include_paths(*includes)
    result = runner.run_files(*files)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    print(serialize(result.value, fmt=fmt).rstrip("\n"))


if __name__ == "__main__":
    main()
