from __future__ import annotations
import sys, platform

import llvmlite
from llvmlite import binding as llvm

from uniffi_bindgen_php import __version__ as app_ver, __dev__ as is_dev

def _get_versions() -> dict[str, str]:
    llvm_lib_ver = ".".join(map(str, llvm.llvm_version_info)) or "unknown"
    return {
        "app": app_ver,
        "python": platform.python_version(),
        "llvmlite": getattr(llvmlite, "__version__", "unknown"),
        "llvm": llvm_lib_ver,
    }

def version_line() -> str:
    v = _get_versions()
    dev_marker = " (dev)" if is_dev else ""
    return (f"uniffi-bindgen-php {v['app']}{dev_marker} "
            f"(Python {v['python']}, llvmlite {v['llvmlite']}, LLVM {v['llvm']})")

def print_banner(stream=None) -> None:
    stream = stream or sys.stderr
    use_ansi = getattr(stream, "isatty", lambda: False)()
    DIM, RESET = ("\x1b[2m", "\x1b[0m") if use_ansi else ("", "")
    print(f"{DIM}{version_line()}{RESET}", file=stream)
