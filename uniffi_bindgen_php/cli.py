from __future__ import annotations
import argparse, sys
from pathlib import Path

from uniffi_bindgen_php.backend.generator import BindingGeneratorPHP, generate_bindings
from uniffi_bindgen_php.backend.layout import DATA_LAYOUTS, DEFAULT_TARGET
from uniffi_bindgen_php.config import Config, load_config
from uniffi_bindgen_php.interface.loader import load_interface
from uniffi_bindgen_php.interface.typeexpr import TypeExprError
from uniffi_bindgen_php.internals.errors import GenerationError
from uniffi_bindgen_php.internals.report import Reporter
from uniffi_bindgen_php.internals.version import print_banner, version_line


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="uniffi-bindgen-php",
                                 description="Generate PHP FFI bindings for a UniFFI component")
    ap.add_argument("interface", nargs="?", help="Path to the interface description (.json)")
    ap.add_argument("-o", "--out-dir", metavar="DIR", default=".",
                    help="Directory the <module_name>.php file is written to (default: current directory)")
    ap.add_argument("-c", "--config", metavar="TOML",
                    help="uniffi.toml holding a [bindings.php] table")
    ap.add_argument("--target", choices=sorted(DATA_LAYOUTS), default=DEFAULT_TARGET,
                    help="Data layout the FFI declarations are checked against")
    ap.add_argument("--check", action="store_true",
                    help="Render and verify the bindings without writing them")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print progress to stderr")
    ap.add_argument("--traceback", action="store_true",
                    help="Print full traceback on generation errors (for debugging)")
    ap.add_argument("--version", action="store_true", help="Print version information and exit")

    args = ap.parse_args(argv)

    if args.version:
        print(version_line())
        return 0

    if not args.interface:
        print("error: interface description required", file=sys.stderr)
        return 2

    if args.verbose:
        print_banner()

    src_path = Path(args.interface).resolve()
    reporter = Reporter(filename=str(src_path))

    try:
        config = load_config(Path(args.config)) if args.config else Config()
        ci = load_interface(src_path)
        if args.verbose:
            print(f"loaded component '{ci.namespace}' from {src_path}", file=sys.stderr)

        generator = BindingGeneratorPHP(target=args.target)
        components = generator.update_component_configs([(ci, config)])
        if args.check:
            for comp, comp_config in components:
                generate_bindings(comp_config, comp, args.target)
            if args.verbose:
                print("bindings check passed", file=sys.stderr)
            return 0

        written = generator.write_bindings(Path(args.out_dir), components)
    except GenerationError as e:
        if args.traceback:
            raise
        # type expression failures carry a span into the offending expression
        span = e.span if isinstance(e, TypeExprError) else None
        reporter.error(e.code, e.message, span, e.entity)

    if reporter.has_errors:
        reporter.print()
        return 2

    if args.verbose:
        for path in written:
            print(f"wrote {path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
