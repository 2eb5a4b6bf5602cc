"""
Command-line interface for jlbuild.

This module provides the `jlbuild` CLI tool for compiling a Julia program
into an object file, a shared library, or a standalone executable.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from jlbuild import __version__
from jlbuild.build import BuildOrchestrator
from jlbuild.build.flag_builder import parse_flag_string
from jlbuild.cli_utils import ErrorFormatter, OptionMerger, PathValidator, setup_logging
from jlbuild.config import BuildConfiguration
from jlbuild.errors import JlbuildError

YES_NO = ["yes", "no"]

STAGE_OPTIONS = [
    ("-c", "--clean", "clean", "remove build directory"),
    ("-a", "--auto-deps", "auto_deps", "automatically build required dependencies"),
    ("-o", "--object", "object", "build object file"),
    ("-s", "--shared", "shared", "build shared library"),
    ("-i", "--shared-init", "shared_init",
     "shared library includes init_jl_runtime and exit_jl_runtime for julia runtime initialization"),
    ("-e", "--executable", "executable", "build executable file"),
    ("-t", "--remove-temp", "remove_temp", "remove temporary build files"),
    ("-j", "--copy-julialibs", "copy_runtime_libs", "copy Julia libraries to build directory"),
    ("-r", "--release", "release", "build in release mode, implies -O3 -g0 unless otherwise specified"),
    ("-R", "--full-release", "full_release",
     "perform a fully automated release build, equivalent to -caetjr"),
]


def build_command(config: BuildConfiguration) -> None:
    """Compile a Julia program.

    Examples:
        jlbuild hello.jl -aes             # Build shared library and executable
        jlbuild hello.jl -R               # Fully automated release build
        jlbuild hello.jl -o -d build      # Object file only, in ./build
        jlbuild hello.jl -c               # Remove the build directory
    """
    quiet = config.quiet and not config.verbose
    if not quiet:
        print(f"jlbuild v{__version__}")
        print()

    try:
        orchestrator = BuildOrchestrator()
        result = orchestrator.build(config)

        if not quiet:
            if result.stages_run:
                ErrorFormatter.print_success("Build successful!")
                print()
                for label, path in (
                    ("Object", result.object_file),
                    ("Shared library", result.shared_library),
                    ("Executable", result.executable),
                ):
                    if path:
                        print(f"{label}: {path}")
            if result.stages_run and result.build_time:
                print(f"Build time: {result.build_time:.2f}s")
        sys.exit(0)

    except JlbuildError as e:
        ErrorFormatter.handle_pipeline_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, config.verbose)


def create_parser() -> argparse.ArgumentParser:
    """Create the jlbuild argument parser.

    Every option defaults to None so that jlbuild.ini values are only
    overridden by options actually given on the command line.
    """
    parser = argparse.ArgumentParser(
        prog="jlbuild",
        description="jlbuild - compile a Julia program into native artifacts",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jlbuild {__version__}",
    )
    parser.add_argument("program", type=Path, help="Julia program to compile")
    parser.add_argument(
        "cprog",
        nargs="?",
        type=Path,
        default=None,
        help="C program to compile (required only when building an executable; "
        "if not provided a minimal driver program is used)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="increase verbosity")
    parser.add_argument("-q", "--quiet", action="store_true", default=None, help="suppress non-error messages")
    parser.add_argument("-d", "--builddir", dest="build_dir", type=Path, default=None, help="build directory")
    parser.add_argument("-n", "--outname", dest="output_name", default=None, help="output files basename")
    parser.add_argument("-p", "--snoopfile", dest="snoop_file", type=Path, default=None,
                        help="specify script calling functions to precompile")

    for short, long, dest, help_text in STAGE_OPTIONS:
        parser.add_argument(short, long, dest=dest, action="store_true", default=None, help=help_text)
    parser.add_argument("--copy-files", dest="copy_files", action="append", type=Path, default=None,
                        metavar="FILE",
                        help="copy a user-specified file to build directory (repeat for more files)")

    julia_group = parser.add_argument_group("julia options")
    julia_group.add_argument("-J", "--sysimage", default=None, help="start up with the given system image file")
    julia_group.add_argument("--precompiled", choices=YES_NO, default=None,
                             help="use precompiled code from system image if available")
    julia_group.add_argument("--compilecache", choices=YES_NO, default=None,
                             help="enable/disable incremental precompilation of modules")
    julia_group.add_argument("-H", "--home", default=None, help="set location of julia executable")
    julia_group.add_argument("--startup-file", dest="startup_file", choices=YES_NO, default=None,
                             help="load ~/.juliarc.jl")
    julia_group.add_argument("--handle-signals", dest="handle_signals", choices=YES_NO, default=None,
                             help="enable or disable Julia's default signal handlers")
    julia_group.add_argument("--compile", choices=["yes", "no", "all", "min"], default=None,
                             help="enable or disable JIT compiler, or request exhaustive compilation")
    julia_group.add_argument("-C", "--cpu-target", dest="cpu_target", default=None,
                             help="limit usage of CPU features up to <target> (forces --precompiled=no)")
    julia_group.add_argument("-O", "--optimize", type=int, choices=[0, 1, 2, 3], default=None,
                             help="set the optimization level")
    julia_group.add_argument("-g", "--debug", type=int, choices=[0, 1, 2], default=None,
                             help="enable / set the level of debug info generation")
    julia_group.add_argument("--inline", choices=YES_NO, default=None,
                             help="control whether inlining is permitted")
    julia_group.add_argument("--check-bounds", dest="check_bounds", choices=YES_NO, default=None,
                             help="emit bounds checks always or never")
    julia_group.add_argument("--math-mode", dest="math_mode", choices=["ieee", "fast"], default=None,
                             help="disallow or enable unsafe floating point optimizations")
    julia_group.add_argument("--depwarn", choices=["yes", "no", "error"], default=None,
                             help="enable or disable syntax and method deprecation warnings")
    julia_group.add_argument("--julia", default=None, help="julia executable used to compile (default: julia)")

    toolchain_group = parser.add_argument_group("C toolchain options")
    toolchain_group.add_argument("--cc", default=None, help="system C compiler (default: gcc)")
    toolchain_group.add_argument("--cc-flags", dest="cc_flags", default=None,
                                 help="pass custom flags to the system C compiler when building "
                                 "a shared library or executable (e.g. --cc-flags='-Wall -march=native')")
    toolchain_group.add_argument("--toolchain-root", dest="toolchain_root", type=Path, default=None,
                                 help="MinGW sysroot whose bin/ and include/ directories are used on Windows")

    config_group = parser.add_argument_group("configuration")
    config_group.add_argument("--config", type=Path, default=None,
                              help="read defaults from this file (default: ./jlbuild.ini if present)")
    config_group.add_argument("--profile", default=None, help="apply a [profile:<name>] section of the config file")
    config_group.add_argument("--log-level", dest="log_level", default="WARNING",
                              choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                              help="diagnostic logging level (default: WARNING)")
    return parser


def cli_options(parsed_args: argparse.Namespace) -> Dict[str, Any]:
    """Extract BuildConfiguration options from parsed arguments."""
    options = {
        name: getattr(parsed_args, name)
        for name in BuildConfiguration.field_names()
        if hasattr(parsed_args, name)
    }
    options["driver_program"] = parsed_args.cprog
    if parsed_args.cc_flags is not None:
        options["cc_flags"] = tuple(parse_flag_string(parsed_args.cc_flags))
    if parsed_args.copy_files is not None:
        options["copy_files"] = tuple(parsed_args.copy_files)
    return options


def main(argv: Optional[List[str]] = None) -> None:
    """jlbuild - compile a Julia program into native artifacts."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    setup_logging(parsed_args.log_level)
    PathValidator.validate_config_file(parsed_args.config)

    try:
        file_options = OptionMerger.load_file_options(
            parsed_args.config, parsed_args.profile, Path.cwd()
        )
        options = OptionMerger.merge(file_options, cli_options(parsed_args))
        config = BuildConfiguration(**options)
    except JlbuildError as e:
        ErrorFormatter.handle_pipeline_error(e)
        return

    build_command(config)


if __name__ == "__main__":
    main()
